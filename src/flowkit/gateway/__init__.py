"""Gateways to access nodes: remote REST and the in-process emulator."""

from typing import Optional

from ..constants import MEMORY_HOST
from ..exceptions import GatewayError
from .base import Gateway
from .emulator import EmulatorGateway, EmulatorKey
from .rest import RestGateway


def new_gateway(host: str, emulator_key: Optional[EmulatorKey] = None) -> Gateway:
    """
    Create the gateway for a network host.

    The "memory" host selects the in-process emulator, which needs the service
    account key.

    Raises:
        GatewayError: If the emulator is selected without a service key
    """
    if host == MEMORY_HOST:
        if emulator_key is None:
            raise GatewayError("in-process emulator requires the emulator service account key")
        return EmulatorGateway(emulator_key)
    return RestGateway(host)


__all__ = ["Gateway", "EmulatorGateway", "EmulatorKey", "RestGateway", "new_gateway"]
