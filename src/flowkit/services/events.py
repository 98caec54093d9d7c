"""Event queries over block ranges."""

import logging
from typing import List, Optional, Tuple

from ..constants import EVENTS_BLOCK_CHUNK
from ..gateway import Gateway
from ..types import BlockEvents

DEFAULT_LAST_BLOCKS = 10


def event_queries(
    event_types: List[str], start_height: int, end_height: int, chunk: int = EVENTS_BLOCK_CHUNK
) -> List[Tuple[str, int, int]]:
    """
    Split an inclusive block range into (type, start, end) queries of at most
    chunk blocks each.
    """
    queries = []
    while start_height <= end_height:
        end = min(start_height + chunk - 1, end_height)
        for event_type in event_types:
            queries.append((event_type, start_height, end))
        start_height = end + 1
    return queries


class Events:
    def __init__(self, gateway: Gateway, logger: Optional[logging.Logger] = None):
        self.gateway = gateway
        self.logger = logger or logging.getLogger(__name__)

    def get(
        self,
        event_types: List[str],
        start_height: int = 0,
        end_height: int = 0,
        block_count: int = DEFAULT_LAST_BLOCKS,
    ) -> List[BlockEvents]:
        """
        Fetch events of the given types in an inclusive block range.

        When both heights are 0 the range is the latest block_count blocks.

        Raises:
            ValueError: If the end height is below the start height
            GatewayError: If a query fails
        """
        if start_height == 0 and end_height == 0:
            end_height = self.gateway.get_latest_block().height
            start_height = max(end_height - block_count + 1, 0)

        if end_height < start_height:
            raise ValueError(
                f"cannot have end height ({end_height}) of block range less that "
                f"start height ({start_height})"
            )

        self.logger.info("Fetching events...")

        results: List[BlockEvents] = []
        for event_type, start, end in event_queries(event_types, start_height, end_height):
            self.logger.debug("fetching %s events in blocks %d-%d", event_type, start, end)
            results.extend(self.gateway.get_events(event_type, start, end))
        return results
