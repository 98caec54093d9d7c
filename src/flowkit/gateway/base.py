"""Gateway interface to an access node."""

from abc import ABC, abstractmethod
from typing import List, Sequence

from .. import cadence
from ..address import Address
from ..transaction import FlowTransaction
from ..types import Block, BlockEvents, Collection, FlowAccount, TransactionResult


class Gateway(ABC):
    """
    Operations against an access node.

    Every operation is synchronous. Failures raise GatewayError carrying the
    upstream message.
    """

    @abstractmethod
    def get_account(self, address: Address) -> FlowAccount: ...

    @abstractmethod
    def send_signed_transaction(self, tx: FlowTransaction) -> FlowTransaction: ...

    @abstractmethod
    def get_transaction(self, tx_id: str) -> FlowTransaction: ...

    @abstractmethod
    def get_transaction_result(self, tx_id: str, wait_seal: bool) -> TransactionResult:
        """
        Result of a transaction.

        With wait_seal set, blocks until the transaction is sealed. A sealed
        result with an error is returned, not raised.
        """

    @abstractmethod
    def execute_script(self, script: bytes, args: Sequence[cadence.Value]) -> cadence.Value: ...

    @abstractmethod
    def get_latest_block(self) -> Block: ...

    @abstractmethod
    def get_block_by_id(self, block_id: str) -> Block: ...

    @abstractmethod
    def get_block_by_height(self, height: int) -> Block: ...

    @abstractmethod
    def get_events(self, event_type: str, start_height: int, end_height: int) -> List[BlockEvents]: ...

    @abstractmethod
    def get_collection(self, collection_id: str) -> Collection: ...

    @abstractmethod
    def ping(self) -> None:
        """
        Raises:
            GatewayError: If the access node cannot be reached
        """
