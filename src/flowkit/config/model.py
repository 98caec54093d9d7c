"""In-memory project configuration: accounts, networks, contracts, deployments, emulators."""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from .. import cadence
from ..address import Address, ChainID, service_address
from ..constants import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_EMULATOR_NAME,
    DEFAULT_EMULATOR_PORT,
    DEFAULT_EMULATOR_SERVICE_ACCOUNT,
    NETWORK_CONFIG,
)
from ..crypto import HashAlgorithm, PrivateKey, SignatureAlgorithm
from ..exceptions import BadKeyConfig, NotFoundError, ValidationError

DEFAULT_PATH = DEFAULT_CONFIG_FILE


def global_path() -> str:
    """Path of the global configuration file in the user's home directory."""
    return str(Path.home() / DEFAULT_CONFIG_FILE)


def default_paths() -> List[str]:
    return [global_path(), DEFAULT_PATH]


def is_default_path(paths: List[str]) -> bool:
    return list(paths) == default_paths()


def exists(path: str) -> bool:
    return os.path.exists(path)


class KeyType(Enum):
    """
    Account key storage types.

    Value strings define de/serialization law.
    """

    HEX = "hex"
    GOOGLE_KMS = "google-kms"

    @classmethod
    def from_string(cls, value: str) -> "KeyType":
        for key_type in cls:
            if key_type.value == value:
                return key_type
        raise BadKeyConfig(f"invalid key type {value}")


@dataclass
class AccountKey:
    """Configured signing key of an account."""

    type: KeyType = KeyType.HEX
    index: int = 0
    sig_algo: SignatureAlgorithm = SignatureAlgorithm.ECDSA_P256
    hash_algo: HashAlgorithm = HashAlgorithm.SHA3_256
    resource_id: str = ""
    private_key: Optional[PrivateKey] = None

    def is_default(self) -> bool:
        """Whether the key can be written in the simple form."""
        return (
            self.type == KeyType.HEX
            and self.index == 0
            and self.sig_algo == SignatureAlgorithm.ECDSA_P256
            and self.hash_algo == HashAlgorithm.SHA3_256
        )


@dataclass
class Account:
    name: str
    address: Address
    key: AccountKey = field(default_factory=AccountKey)
    # Write the advanced key form even when the key matches the defaults
    use_advanced_format: bool = False


@dataclass
class Network:
    name: str
    host: str
    key: str = ""


@dataclass
class Contract:
    """
    Contract source entry.

    A contract with an empty network applies to all networks. A contract with
    an alias on a network is not deployed there.
    """

    name: str
    location: str
    network: str = ""
    # Hex address the contract already lives at on the network
    alias: str = ""

    def is_aliased(self) -> bool:
        return self.alias != ""


@dataclass
class ContractDeployment:
    name: str
    args: List[cadence.Value] = field(default_factory=list)


@dataclass
class Deployment:
    network: str
    account: str
    contracts: List[ContractDeployment] = field(default_factory=list)

    def add_contract(self, contract: ContractDeployment) -> None:
        for i, existing in enumerate(self.contracts):
            if existing.name == contract.name:
                self.contracts[i] = contract
                return
        self.contracts.append(contract)

    def remove_contract(self, name: str) -> None:
        self.contracts = [c for c in self.contracts if c.name != name]


@dataclass
class Emulator:
    name: str = DEFAULT_EMULATOR_NAME
    port: int = DEFAULT_EMULATOR_PORT
    service_account: str = DEFAULT_EMULATOR_SERVICE_ACCOUNT


class Accounts(list):
    def by_name(self, name: str) -> Account:
        """
        Raises:
            NotFoundError: If no account has the name
        """
        for account in self:
            if account.name == name:
                return account
        raise NotFoundError(f"account {name} does not exist in configuration")

    def add_or_update(self, name: str, account: Account) -> None:
        for i, existing in enumerate(self):
            if existing.name == name:
                self[i] = account
                return
        self.append(account)

    def remove(self, name: str) -> None:
        account = self.by_name(name)
        super().remove(account)


class Networks(list):
    def by_name(self, name: str) -> Network:
        """
        Raises:
            NotFoundError: If no network has the name
        """
        for network in self:
            if network.name == name:
                return network
        raise NotFoundError(f"network {name} does not exist in configuration")

    def add_or_update(self, name: str, network: Network) -> None:
        for i, existing in enumerate(self):
            if existing.name == name:
                self[i] = network
                return
        self.append(network)

    def remove(self, name: str) -> None:
        network = self.by_name(name)
        super().remove(network)


class Contracts(list):
    def by_name(self, name: str) -> Contract:
        """
        Raises:
            NotFoundError: If no contract has the name
        """
        for contract in self:
            if contract.name == name:
                return contract
        raise NotFoundError(f"contract {name} does not exist in configuration")

    def by_network(self, network: str) -> List[Contract]:
        """Contracts for a network, including those that apply to all networks."""
        return [c for c in self if c.network == network or c.network == ""]

    def by_name_and_network(self, name: str, network: str) -> Contract:
        """
        Find a contract for a network, falling back to a network-agnostic copy.

        Raises:
            NotFoundError: If no contract has the name
        """
        for contract in self:
            if contract.name == name and contract.network == network:
                return contract

        generic = self.by_name(name)
        return Contract(name=generic.name, location=generic.location, network=network)

    def add_or_update(self, name: str, contract: Contract) -> None:
        for i, existing in enumerate(self):
            if existing.name == name and existing.network == contract.network:
                self[i] = contract
                return
        self.append(contract)

    def remove(self, name: str) -> None:
        before = len(self)
        self[:] = [c for c in self if c.name != name]
        if len(self) == before:
            raise NotFoundError(f"contract {name} does not exist in configuration")


class Deployments(list):
    def by_network(self, network: str) -> List[Deployment]:
        return [d for d in self if d.network == network]

    def by_account_and_network(self, account: str, network: str) -> List[Deployment]:
        return [d for d in self if d.account == account and d.network == network]

    def add_or_update(self, deployment: Deployment) -> None:
        for i, existing in enumerate(self):
            if existing.account == deployment.account and existing.network == deployment.network:
                self[i] = deployment
                return
        self.append(deployment)

    def remove(self, account: str, network: str) -> None:
        before = len(self)
        self[:] = [d for d in self if not (d.account == account and d.network == network)]
        if len(self) == before:
            raise NotFoundError(
                f"deployment for account {account} on network {network} does not exist in configuration"
            )


class Emulators(list):
    def by_name(self, name: str) -> Emulator:
        for emulator in self:
            if emulator.name == name:
                return emulator
        raise NotFoundError(f"emulator {name} does not exist in configuration")

    def default(self) -> Optional[Emulator]:
        for emulator in self:
            if emulator.name == DEFAULT_EMULATOR_NAME:
                return emulator
        return None

    def add_or_update(self, name: str, emulator: Emulator) -> None:
        for i, existing in enumerate(self):
            if existing.name == name:
                self[i] = emulator
                return
        self.append(emulator)


@dataclass
class Config:
    emulators: Emulators = field(default_factory=Emulators)
    contracts: Contracts = field(default_factory=Contracts)
    networks: Networks = field(default_factory=Networks)
    accounts: Accounts = field(default_factory=Accounts)
    deployments: Deployments = field(default_factory=Deployments)

    def validate(self) -> None:
        """
        Check that cross references resolve.

        Raises:
            ValidationError: If a contract, emulator or deployment references a
                missing network, account or contract
        """
        network_names = {n.name for n in self.networks}
        account_names = {a.name for a in self.accounts}
        contract_names = {c.name for c in self.contracts}

        for contract in self.contracts:
            if contract.network and contract.network not in network_names:
                raise ValidationError(
                    f"contract {contract.name} contains nonexisting network {contract.network}"
                )

        for emulator in self.emulators:
            if emulator.service_account not in account_names:
                raise ValidationError(
                    f"emulator {emulator.name} contains nonexisting service account "
                    f"{emulator.service_account}"
                )

        for deployment in self.deployments:
            if deployment.network not in network_names:
                raise ValidationError(
                    f"deployment contains nonexisting network {deployment.network}"
                )
            for contract in deployment.contracts:
                if contract.name not in contract_names:
                    raise ValidationError(
                        f"deployment contains nonexisting contract {contract.name}"
                    )
            if deployment.account not in account_names:
                raise ValidationError(
                    f"deployment contains nonexisting account {deployment.account}"
                )


def default_emulator() -> Emulator:
    return Emulator()


def default_networks() -> Networks:
    return Networks(Network(name, cfg["host"]) for name, cfg in NETWORK_CONFIG.items())


def default_emulator_network() -> Network:
    return Network("emulator", NETWORK_CONFIG["emulator"]["host"])


def default_emulator_service_address() -> Address:
    return service_address(ChainID.EMULATOR)


def empty() -> Config:
    return Config()


def default() -> Config:
    """Default configuration with the emulator profile and default networks."""
    return Config(
        emulators=Emulators([default_emulator()]),
        networks=default_networks(),
    )


def chain_for_network(network: Network) -> Optional[ChainID]:
    """Chain of a default network, None for custom networks."""
    try:
        return ChainID.from_network(network.name)
    except ValueError:
        return None


__all__ = [
    "DEFAULT_PATH",
    "global_path",
    "default_paths",
    "is_default_path",
    "exists",
    "KeyType",
    "AccountKey",
    "Account",
    "Network",
    "Contract",
    "ContractDeployment",
    "Deployment",
    "Emulator",
    "Accounts",
    "Networks",
    "Contracts",
    "Deployments",
    "Emulators",
    "Config",
    "default",
    "empty",
    "default_emulator",
    "default_networks",
    "default_emulator_network",
    "default_emulator_service_address",
    "chain_for_network",
]
