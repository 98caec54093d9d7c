"""Custom exception classes for the flowkit library."""

from typing import Dict, Optional


class FlowkitError(Exception):
    """Base exception for all flowkit errors."""

    pass


class ConfigMissing(FlowkitError, FileNotFoundError):
    """Raised when no configuration file is found at any resolved path."""

    pass


class OutdatedFormat(FlowkitError, ValueError):
    """Raised when a configuration file uses the legacy top-level format."""

    pass


class ParseError(FlowkitError, ValueError):
    """Raised when JSON, arguments or contract source cannot be parsed."""

    pass


class ValidationError(FlowkitError, ValueError):
    """Raised when configuration cross-references do not resolve."""

    pass


class NotFoundError(FlowkitError, LookupError):
    """Raised when a named account, network, contract or deployment is missing."""

    pass


class BadKeyConfig(FlowkitError, ValueError):
    """Raised when an account key is misconfigured."""

    pass


class MissingCredentials(FlowkitError, RuntimeError):
    """Raised when KMS credentials cannot be obtained."""

    pass


class AmbiguousDeployment(FlowkitError, ValueError):
    """Raised when one contract is deployed to multiple accounts on a network."""

    pass


class UnresolvedImport(FlowkitError, LookupError):
    """Raised when an import path has no matching contract or alias."""

    pass


class ImportCycle(FlowkitError, ValueError):
    """Raised when the contract dependency graph contains a cycle."""

    def __init__(self, message: str, cycle: Optional[list] = None):
        super().__init__(message)
        self.cycle = cycle or []


class MissingTargetAccount(FlowkitError, LookupError):
    """Raised when a deployment target address is not a configured account."""

    pass


class RoleMismatch(FlowkitError, ValueError):
    """Raised when a signer does not hold the role it signs for."""

    pass


class UnpreparedTransaction(FlowkitError, RuntimeError):
    """Raised when a transaction is submitted or mutated in an invalid state."""

    pass


class GatewayError(FlowkitError, RuntimeError):
    """Raised for any error surfaced from the access node gateway."""

    pass


class AccountCreateFailed(FlowkitError, RuntimeError):
    """Raised when a create-account transaction yields no new address."""

    pass


class ProjectDeployError(FlowkitError):
    """
    Aggregate of per-contract failures from a project deployment.

    Attributes:
        contracts: Maps contract name -> wrapped cause
    """

    def __init__(self, contracts: Optional[Dict[str, Exception]] = None):
        self.contracts: Dict[str, Exception] = contracts or {}
        super().__init__(str(self))

    def add(self, name: str, err: Exception, msg: str) -> None:
        wrapped = FlowkitError(f"{msg}: {err}")
        wrapped.__cause__ = err
        self.contracts[name] = wrapped

    def __str__(self) -> str:
        return ", ".join(f"{name}: {err}" for name, err in self.contracts.items())

    def __bool__(self) -> bool:
        return len(self.contracts) > 0
