"""Global options shared by the commands, and how commands get their services."""

import functools
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import typer

from .. import config
from ..constants import MEMORY_HOST
from ..exceptions import ConfigMissing, FlowkitError
from ..gateway import EmulatorKey, Gateway, new_gateway
from ..keys import HexAccountKey
from ..project import Project
from ..services import Services
from .output import Result, print_result

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "error": logging.ERROR,
    "none": logging.CRITICAL + 1,
}

logger = logging.getLogger("flowkit")


def configure_logging(level: str) -> None:
    """
    Raises:
        ValueError: If the level is unknown
    """
    if level not in LOG_LEVELS:
        raise ValueError(f"invalid log level {level}, valid are: {', '.join(LOG_LEVELS)}")
    logging.basicConfig(level=LOG_LEVELS[level], format="%(message)s", force=True)


@dataclass
class GlobalOptions:
    config_paths: List[str] = field(default_factory=config.default_paths)
    network: str = "emulator"
    host: str = ""
    log: str = "info"
    yes: bool = False
    output: str = "table"
    save: str = ""
    reader_writer: config.ReaderWriter = field(default_factory=config.FileReaderWriter)

    _project: Optional[Project] = None
    _project_loaded: bool = False

    def project(self) -> Optional[Project]:
        """The project at the configured paths, None when no configuration exists."""
        if not self._project_loaded:
            try:
                self._project = Project.load(self.config_paths, self.reader_writer)
            except ConfigMissing:
                self._project = None
            self._project_loaded = True
        return self._project

    def require_project(self) -> Project:
        project = self.project()
        if project is None:
            raise FlowkitError("missing configuration, initialize it: flow project init")
        return project

    def resolve_host(self) -> str:
        """
        Host of the selected network, overridden by --host.

        Raises:
            NotFoundError: If the network is neither configured nor a default one
        """
        if self.host:
            return self.host

        project = self.project()
        if project is not None:
            return project.network_by_name(self.network).host
        return config.default_networks().by_name(self.network).host

    def gateway(self) -> Gateway:
        host = self.resolve_host()
        emulator_key = None
        if host == MEMORY_HOST:
            emulator_key = self._emulator_key()
        return new_gateway(host, emulator_key)

    def _emulator_key(self) -> EmulatorKey:
        service = self.require_project().emulator_service_account()
        if not isinstance(service.key, HexAccountKey):
            raise FlowkitError("in-process emulator requires a hex service account key")
        service.key.validate()
        return EmulatorKey(service.key.private_key.public_key(), service.key.hash_algo)

    def services(self) -> Services:
        return Services(self.project(), self.gateway(), logger)

    def render(self, result: Result) -> None:
        print_result(result, self.output, self.save)


def options(ctx: typer.Context) -> GlobalOptions:
    if ctx.obj is None:
        ctx.obj = GlobalOptions()
    return ctx.obj


def handle_errors(func: Callable) -> Callable:
    """Turn flowkit, value and file errors into a message and exit code 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (FlowkitError, ValueError, OSError) as e:
            logger.debug("command failed", exc_info=True)
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(code=1) from e

    return wrapper
