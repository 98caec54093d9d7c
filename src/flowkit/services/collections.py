"""Collection queries."""

import logging
from typing import Optional

from ..gateway import Gateway
from ..types import Collection


class Collections:
    def __init__(self, gateway: Gateway, logger: Optional[logging.Logger] = None):
        self.gateway = gateway
        self.logger = logger or logging.getLogger(__name__)

    def get(self, collection_id: str) -> Collection:
        self.logger.info("Fetching collection...")
        return self.gateway.get_collection(collection_id)
