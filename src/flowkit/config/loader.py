"""Loading, composing and saving configuration files."""

import logging
import os
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Protocol

from ..exceptions import ConfigMissing, ParseError
from . import processor
from .model import DEFAULT_PATH, Account, Accounts, Config, global_path, is_default_path

logger = logging.getLogger(__name__)


class ReaderWriter(Protocol):
    """File access used by the loader and project."""

    def read_file(self, path: str) -> bytes: ...

    def write_file(self, path: str, data: bytes) -> None: ...


class FileReaderWriter:
    """ReaderWriter backed by the local filesystem."""

    def read_file(self, path: str) -> bytes:
        with open(path, "rb") as f:
            return f.read()

    def write_file(self, path: str, data: bytes) -> None:
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)


class ConfigParser(Protocol):
    def supports_extension(self, extension: str) -> bool: ...

    def serialize(self, config: Config) -> bytes: ...

    def deserialize(self, raw: bytes) -> Config: ...


def compose(base: Config, overlay: Config) -> None:
    """Overlay accounts, networks, contracts, deployments and emulators onto base."""
    for account in overlay.accounts:
        base.accounts.add_or_update(account.name, account)
    for network in overlay.networks:
        base.networks.add_or_update(network.name, network)
    for contract in overlay.contracts:
        base.contracts.add_or_update(contract.name, contract)
    for deployment in overlay.deployments:
        base.deployments.add_or_update(deployment)
    for emulator in overlay.emulators:
        base.emulators.add_or_update(emulator.name, emulator)


class Loader:
    """
    Loads configuration from one or more files.

    The first file is the base and later files overlay it. Accounts declared as
    {"fromFile": path} are loaded from their external file after composition.
    """

    def __init__(self, reader_writer: ReaderWriter, env: Optional[Mapping[str, str]] = None):
        """
        Args:
            reader_writer: File access
            env: Substitution values for $NAME tokens (defaults to process env and .env)
        """
        self.reader_writer = reader_writer
        self.env = env
        self.parsers: List[ConfigParser] = []
        self.accounts_from_file: Dict[str, str] = {}
        self.loaded_locations: List[str] = []
        self._from_file_base: Dict[str, str] = {}

    def add_parser(self, parser: ConfigParser) -> None:
        self.parsers.append(parser)

    def set_account_from_file(self, name: str, location: str) -> None:
        """
        Save the named account to an external file from now on.

        A relative location is resolved against the first loaded configuration.
        """
        self.accounts_from_file[name] = location
        self._from_file_base[name] = (
            os.path.dirname(self.loaded_locations[0]) if self.loaded_locations else ""
        )

    def _parser_for(self, path: str) -> ConfigParser:
        extension = Path(path).suffix
        for parser in self.parsers:
            if parser.supports_extension(extension):
                return parser
        raise ParseError(f"parser not found for config: {path}")

    def _load_file(self, path: str) -> bytes:
        try:
            return self.reader_writer.read_file(path)
        except FileNotFoundError as e:
            raise ConfigMissing(f"missing configuration: {path}") from e

    def _load_config(self, path: str) -> Config:
        raw = self._load_file(path)
        raw, from_file = processor.run(raw, self.env)
        for name, location in from_file.items():
            self.accounts_from_file[name] = location
            self._from_file_base[name] = os.path.dirname(path)

        config = self._parser_for(path).deserialize(raw)
        self.loaded_locations.append(path)
        logger.debug("loaded configuration from %s", path)
        return config

    def load(self, paths: List[str]) -> Config:
        """
        Load and compose configuration files.

        When called with the default pair of paths, the local file is tried
        first and the global file second.

        Args:
            paths: Ordered configuration file paths

        Returns:
            Composed and validated configuration

        Raises:
            ConfigMissing: If no configuration file can be found
            OutdatedFormat: If a file uses the legacy format
            ParseError: If a file cannot be parsed
            ValidationError: If cross references do not resolve
        """
        self.accounts_from_file = {}
        self._from_file_base = {}
        self.loaded_locations = []

        if is_default_path(paths):
            try:
                config = self._load_config(DEFAULT_PATH)
            except ConfigMissing:
                try:
                    config = self._load_config(global_path())
                except ConfigMissing as e:
                    raise ConfigMissing("missing configuration") from e
            return self._postprocess(config)

        base: Optional[Config] = None
        for path in paths:
            config = self._load_config(path)
            if base is None:
                base = config
            else:
                compose(base, config)

        if base is None:
            raise ConfigMissing("missing configuration")

        return self._postprocess(base)

    def _resolve_from_file(self, name: str, location: str) -> str:
        if os.path.isabs(location):
            return location
        return os.path.join(self._from_file_base.get(name, ""), location)

    def _postprocess(self, base: Config) -> Config:
        for name, location in self.accounts_from_file.items():
            path = self._resolve_from_file(name, location)
            raw = self._load_file(path)
            config = self._parser_for(path).deserialize(raw)
            account = config.accounts.by_name(name)

            overlay = Config()
            overlay.accounts.append(account)
            compose(base, overlay)

        base.validate()
        return base

    def save(self, config: Config, path: str) -> None:
        """
        Serialize a configuration to a file, using the parser for its extension.

        Accounts loaded from external files are written back to those files in
        the advanced format and referenced from the main file.

        Raises:
            ParseError: If no parser supports the file extension
        """
        external: Dict[str, List[Account]] = {}
        references: Dict[str, str] = {}
        main = replace(config, accounts=Accounts())

        for account in config.accounts:
            location = self.accounts_from_file.get(account.name)
            if location is None:
                main.accounts.append(account)
                continue
            path_on_disk = self._resolve_from_file(account.name, location)
            external.setdefault(path_on_disk, []).append(
                replace(account, use_advanced_format=True)
            )
            references[account.name] = location

        for external_path, accounts in external.items():
            data = self._parser_for(external_path).serialize(Config(accounts=Accounts(accounts)))
            self.reader_writer.write_file(external_path, data)
            logger.debug("saved external accounts to %s", external_path)

        data = self._parser_for(path).serialize(main)
        data = processor.add_from_file(data, references)
        self.reader_writer.write_file(path, data)
        logger.debug("saved configuration to %s", path)
