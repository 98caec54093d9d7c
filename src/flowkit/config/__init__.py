"""Project configuration model, loader and parsers."""

from .json_parser import JSONParser
from .loader import ConfigParser, FileReaderWriter, Loader, ReaderWriter, compose
from .model import (
    DEFAULT_PATH,
    Account,
    AccountKey,
    Accounts,
    Config,
    Contract,
    ContractDeployment,
    Contracts,
    Deployment,
    Deployments,
    Emulator,
    Emulators,
    KeyType,
    Network,
    Networks,
    chain_for_network,
    default,
    default_emulator,
    default_emulator_network,
    default_emulator_service_address,
    default_networks,
    default_paths,
    empty,
    exists,
    global_path,
    is_default_path,
)

__all__ = [
    "JSONParser",
    "ConfigParser",
    "FileReaderWriter",
    "Loader",
    "ReaderWriter",
    "compose",
    "DEFAULT_PATH",
    "Account",
    "AccountKey",
    "Accounts",
    "Config",
    "Contract",
    "ContractDeployment",
    "Contracts",
    "Deployment",
    "Deployments",
    "Emulator",
    "Emulators",
    "KeyType",
    "Network",
    "Networks",
    "chain_for_network",
    "default",
    "default_emulator",
    "default_emulator_network",
    "default_emulator_service_address",
    "default_networks",
    "default_paths",
    "empty",
    "exists",
    "global_path",
    "is_default_path",
]
