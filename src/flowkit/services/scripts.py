"""Script execution against an access node."""

import logging
from typing import Optional, Sequence

from .. import cadence
from ..gateway import Gateway
from ..program import Program
from ..project import Project
from .transactions import resolve_imports


class Scripts:
    """
    Script service.

    Args:
        gateway: Access node gateway
        project: Loaded project, needed only to resolve imports
        logger: Log sink, the module logger by default
    """

    def __init__(
        self,
        gateway: Gateway,
        project: Optional[Project] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.gateway = gateway
        self.project = project
        self.logger = logger or logging.getLogger(__name__)

    def execute(
        self,
        code: str,
        args: Optional[Sequence[cadence.Value]] = None,
        location: str = "",
        network: str = "",
    ) -> cadence.Value:
        """
        Execute a script and return its value.

        Imports are resolved the same way as for transactions.

        Raises:
            FlowkitError: If imports cannot be resolved
            GatewayError: If execution fails
        """
        program = resolve_imports(
            self.project, Program(code, location, list(args or [])), network, "script"
        )

        self.logger.debug("executing script %r", program)
        return self.gateway.execute_script(program.code.encode("utf-8"), program.args)
