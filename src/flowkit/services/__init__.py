"""Services behind each CLI command group."""

import logging
from typing import Optional

from ..gateway import Gateway
from ..project import Project
from .accounts import Accounts
from .blocks import Blocks
from .collections import Collections
from .events import Events
from .keys import Keys
from .project import ProjectService
from .scripts import Scripts
from .status import NetworkStatus, Status
from .transactions import Transactions


class Services:
    """
    All services sharing one project, gateway and log sink.

    Args:
        project: Loaded project, None when no configuration exists
        gateway: Access node gateway
        logger: Log sink passed to every service
    """

    def __init__(
        self,
        project: Optional[Project],
        gateway: Gateway,
        logger: Optional[logging.Logger] = None,
    ):
        self.accounts = Accounts(gateway, project, logger)
        self.project = ProjectService(gateway, project, logger)
        self.transactions = Transactions(gateway, project, logger)
        self.scripts = Scripts(gateway, project, logger)
        self.blocks = Blocks(gateway, logger)
        self.events = Events(gateway, logger)
        self.collections = Collections(gateway, logger)
        self.keys = Keys(logger)
        self.status = Status(gateway, project, logger)


__all__ = [
    "Services",
    "Accounts",
    "Blocks",
    "Collections",
    "Events",
    "Keys",
    "NetworkStatus",
    "ProjectService",
    "Scripts",
    "Status",
    "Transactions",
]
