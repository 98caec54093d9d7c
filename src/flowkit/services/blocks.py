"""Block queries."""

import logging
import re
from typing import List, Optional, Tuple

from ..exceptions import GatewayError, ParseError
from ..gateway import Gateway
from ..types import Block, BlockEvents, Collection

_BLOCK_ID_PATTERN = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")


class Blocks:
    def __init__(self, gateway: Gateway, logger: Optional[logging.Logger] = None):
        self.gateway = gateway
        self.logger = logger or logging.getLogger(__name__)

    def get_block(
        self, query: str, event_types: Optional[List[str]] = None, verbose: bool = False
    ) -> Tuple[Block, List[BlockEvents], List[Collection]]:
        """
        Fetch a block by "latest", height or ID.

        Args:
            query: "latest", a decimal height or a 64 digit hex block ID
            event_types: Event types to fetch for the block
            verbose: Also fetch the block's collections

        Returns:
            The block, its events of the requested types and its collections

        Raises:
            ParseError: If the query is none of the accepted forms
            GatewayError: If the block cannot be fetched
        """
        self.logger.info("Fetching block...")

        try:
            if query == "latest":
                block = self.gateway.get_latest_block()
            elif query.isdigit():
                block = self.gateway.get_block_by_height(int(query))
            elif _BLOCK_ID_PATTERN.match(query):
                block = self.gateway.get_block_by_id(query.removeprefix("0x").lower())
            else:
                raise ParseError(
                    f'invalid query: {query}, valid are: "latest", block height or block ID'
                )
        except GatewayError as e:
            raise GatewayError(f"error fetching block: {e}") from e

        events: List[BlockEvents] = []
        for event_type in event_types or []:
            events.extend(self.gateway.get_events(event_type, block.height, block.height))

        collections: List[Collection] = []
        if verbose:
            for collection_id in block.collection_ids:
                collections.append(self.gateway.get_collection(collection_id))

        return block, events, collections

    def get_latest_block_height(self) -> int:
        return self.gateway.get_latest_block().height
