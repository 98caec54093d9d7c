"""Project state: the loaded configuration, its accounts and derived lookups."""

import logging
import os
from typing import Dict, List, Optional

from . import config
from .account import Account, Accounts, accounts_from_config, generate_emulator_service_account
from .address import Address
from .crypto import HashAlgorithm, PrivateKey, SignatureAlgorithm
from .deployment import ResolvedContract
from .exceptions import FlowkitError, NotFoundError
from .keys import HexAccountKey
from .program import clean_path

logger = logging.getLogger(__name__)


def exists(path: str) -> bool:
    """Whether a configuration file exists at the path."""
    return config.exists(path)


def _new_loader(reader_writer: config.ReaderWriter) -> config.Loader:
    loader = config.Loader(reader_writer)
    loader.add_parser(config.JSONParser())
    return loader


class Project:
    """
    A Flow project backed by one or more configuration files.

    Use `Project.load` for an existing configuration and `Project.init` for a
    new one.
    """

    def __init__(
        self,
        conf: config.Config,
        loader: config.Loader,
        reader_writer: config.ReaderWriter,
        accounts: Accounts,
    ):
        self.conf = conf
        self.loader = loader
        self.reader_writer = reader_writer
        self.accounts = accounts

    @classmethod
    def load(cls, paths: List[str], reader_writer: config.ReaderWriter) -> "Project":
        """
        Load a project from configuration files.

        When the emulator service account is configured but no emulator
        profile is, the default emulator profile is added.

        Raises:
            ConfigMissing: If no configuration file can be found
            ParseError: If a file cannot be parsed
            ValidationError: If cross references do not resolve
            BadKeyConfig: If an account key is invalid
        """
        loader = _new_loader(reader_writer)
        conf = loader.load(paths)

        service_account = config.default_emulator().service_account
        if any(a.name == service_account for a in conf.accounts) and len(conf.emulators) == 0:
            conf.emulators.add_or_update("", config.default_emulator())

        return cls(conf, loader, reader_writer, accounts_from_config(conf))

    @classmethod
    def init(
        cls,
        reader_writer: config.ReaderWriter,
        sig_algo: SignatureAlgorithm = SignatureAlgorithm.ECDSA_P256,
        hash_algo: HashAlgorithm = HashAlgorithm.SHA3_256,
    ) -> "Project":
        """New project with the default configuration and a fresh emulator service account."""
        service_account = generate_emulator_service_account(sig_algo, hash_algo)
        return cls(
            config.default(),
            _new_loader(reader_writer),
            reader_writer,
            Accounts([service_account]),
        )

    @property
    def networks(self) -> config.Networks:
        return self.conf.networks

    @property
    def contracts(self) -> config.Contracts:
        return self.conf.contracts

    @property
    def deployments(self) -> config.Deployments:
        return self.conf.deployments

    def read_file(self, path: str) -> bytes:
        return self.reader_writer.read_file(path)

    def save(self, path: str) -> None:
        """
        Raises:
            FlowkitError: If the configuration cannot be written
        """
        self.conf.accounts = config.Accounts(
            a.to_config(use_advanced_format=False) for a in self.accounts
        )
        try:
            self.loader.save(self.conf, path)
        except OSError as e:
            raise FlowkitError(f"failed to save project configuration to: {path}") from e

    def save_default(self) -> None:
        self.save(config.DEFAULT_PATH)

    def save_edited(self, paths: List[str]) -> None:
        """
        Save to the configuration the project was loaded from.

        Raises:
            FlowkitError: If several non-default paths are given, or the
                default local configuration does not exist
        """
        if not config.is_default_path(paths) and len(paths) > 1:
            raise FlowkitError(
                "specifying multiple paths is not supported when updating configuration"
            )

        if config.is_default_path(paths):
            if not self._local_config_exists():
                raise FlowkitError(
                    "default configuration not found, please initialize it first "
                    "or specify another configuration file"
                )
            self.save_default()
            return

        self.save(paths[0])

    def _local_config_exists(self) -> bool:
        try:
            self.reader_writer.read_file(config.DEFAULT_PATH)
        except FileNotFoundError:
            return False
        return True

    def emulator_service_account(self) -> Account:
        """
        Service account of the default emulator profile.

        Raises:
            NotFoundError: If there is no default emulator or its account is missing
        """
        emulator = self.conf.emulators.default()
        if emulator is None:
            raise NotFoundError("no default emulator account")
        return self.accounts.by_name(emulator.service_account)

    def set_emulator_key(self, private_key: PrivateKey) -> None:
        account = self.emulator_service_account()
        account.key = HexAccountKey.from_private_key(
            account.key.index, account.key.hash_algo, private_key
        )

    def _contract_location(self, location: str) -> str:
        # Paths are relative to the first loaded configuration
        if self.loader.loaded_locations:
            location = os.path.join(os.path.dirname(self.loader.loaded_locations[0]), location)
        return clean_path(location)

    def contracts_by_network(self, network: str) -> List[ResolvedContract]:
        """
        Contracts deployed on a network, bound to their deploying accounts.

        Raises:
            NotFoundError: If a deployment names a missing account or contract
            FlowkitError: If a contract source cannot be read
        """
        contracts: List[ResolvedContract] = []

        for deployment in self.conf.deployments.by_network(network):
            account = self.accounts.by_name(deployment.account)

            for deployment_contract in deployment.contracts:
                contract = self.conf.contracts.by_name(deployment_contract.name)
                location = self._contract_location(contract.location)

                try:
                    code = self.read_file(location)
                except OSError as e:
                    raise FlowkitError(
                        f"deployment by network failed to read contract code: {e}"
                    ) from e

                contracts.append(
                    ResolvedContract(
                        name=contract.name,
                        location=location,
                        target=account.address,
                        account_name=account.name,
                        args=list(deployment_contract.args),
                        code=code.decode("utf-8"),
                    )
                )

        return contracts

    def accounts_for_network(self, network: str) -> Accounts:
        """Accounts with a deployment on the network."""
        return Accounts(
            a for a in self.accounts if self.conf.deployments.by_account_and_network(a.name, network)
        )

    def account_names_for_network(self, network: str) -> List[str]:
        return self.accounts_for_network(network).names()

    def aliases_for_network(self, network: str) -> Dict[str, str]:
        """Hex addresses of aliased contracts, by cleaned location and by name."""
        aliases: Dict[str, str] = {}
        for contract in self.conf.contracts:
            if contract.network == network and contract.is_aliased():
                aliases[self._contract_location(contract.location)] = contract.alias
                aliases[contract.name] = contract.alias
        return aliases

    def contract_conflict_exists(self, network: str) -> bool:
        """Whether a contract name appears more than once in the network's deployments."""
        names = [
            c.name for d in self.conf.deployments.by_network(network) for c in d.contracts
        ]
        return len(names) != len(set(names))

    def network_by_name(self, name: str) -> config.Network:
        return self.conf.networks.by_name(name)

    def account_by_name(self, name: str) -> Account:
        return self.accounts.by_name(name)

    def add_or_update_account(self, account: Account) -> None:
        self.accounts.add_or_update(account)

    def find_account(self, name_or_address: str) -> Optional[Account]:
        """Account by name, or by address when the value parses as one."""
        for account in self.accounts:
            if account.name == name_or_address:
                return account
        try:
            return self.accounts.by_address(Address.from_hex(name_or_address))
        except (ValueError, NotFoundError):
            return None

    # Defined last: the name shadows the config module inside the class body
    @property
    def config(self) -> "config.Config":
        return self.conf
