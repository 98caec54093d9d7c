"""Network reachability."""

import logging
from dataclasses import dataclass
from typing import Optional

from ..exceptions import GatewayError
from ..gateway import Gateway
from ..project import Project


@dataclass
class NetworkStatus:
    network: str
    host: str
    online: bool
    error: str = ""


class Status:
    def __init__(
        self,
        gateway: Gateway,
        project: Optional[Project] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.gateway = gateway
        self.project = project
        self.logger = logger or logging.getLogger(__name__)

    def ping(self, network: str) -> NetworkStatus:
        """
        Check whether the network's access node responds.

        An unreachable node is reported in the status, not raised.

        Raises:
            NotFoundError: If the network is not configured
        """
        host = self.project.network_by_name(network).host if self.project else ""

        try:
            self.gateway.ping()
        except GatewayError as e:
            self.logger.debug("ping to %s failed: %s", network, e)
            return NetworkStatus(network, host, online=False, error=str(e))
        return NetworkStatus(network, host, online=True)
