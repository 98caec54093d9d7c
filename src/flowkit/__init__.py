"""
flowkit: Python toolkit for Flow projects, from configuration to contract deployment
"""

from importlib.metadata import PackageNotFoundError, version

from .account import Account
from .address import Address, ChainID
from .exceptions import (
    AccountCreateFailed,
    AmbiguousDeployment,
    BadKeyConfig,
    ConfigMissing,
    FlowkitError,
    GatewayError,
    ImportCycle,
    MissingCredentials,
    MissingTargetAccount,
    NotFoundError,
    OutdatedFormat,
    ParseError,
    ProjectDeployError,
    RoleMismatch,
    UnpreparedTransaction,
    UnresolvedImport,
    ValidationError,
)
from .gateway import new_gateway
from .project import Project
from .services import Services

try:
    __version__ = version("flowkit")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "Account",
    "Address",
    "ChainID",
    "Project",
    "Services",
    "new_gateway",
    "FlowkitError",
    "AccountCreateFailed",
    "AmbiguousDeployment",
    "BadKeyConfig",
    "ConfigMissing",
    "GatewayError",
    "ImportCycle",
    "MissingCredentials",
    "MissingTargetAccount",
    "NotFoundError",
    "OutdatedFormat",
    "ParseError",
    "ProjectDeployError",
    "RoleMismatch",
    "UnpreparedTransaction",
    "UnresolvedImport",
    "ValidationError",
]
