"""Data types returned by the gateway: accounts, blocks, collections, results and events."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from . import cadence
from .address import Address
from .crypto import HashAlgorithm, SignatureAlgorithm


@dataclass
class AccountKeyInfo:
    """Key registered on an account."""

    index: int
    public_key: str  # Hex, 64-byte X||Y
    sig_algo: SignatureAlgorithm
    hash_algo: HashAlgorithm
    weight: int
    sequence_number: int = 0
    revoked: bool = False


@dataclass
class FlowAccount:
    """Account state as stored on chain."""

    address: Address
    balance: int = 0  # In the smallest token unit, 1e-8 FLOW
    keys: List[AccountKeyInfo] = field(default_factory=list)
    contracts: Dict[str, str] = field(default_factory=dict)  # Name -> code

    def balance_flow(self) -> Decimal:
        return (Decimal(self.balance) / Decimal(10**8)).quantize(cadence.FIX_SCALE)

    def key_at(self, index: int) -> Optional[AccountKeyInfo]:
        for key in self.keys:
            if key.index == index:
                return key
        return None


@dataclass
class Block:
    id: str
    parent_id: str
    height: int
    timestamp: Optional[datetime]
    collection_ids: List[str] = field(default_factory=list)
    seal_count: int = 0


@dataclass
class Collection:
    id: str
    transaction_ids: List[str] = field(default_factory=list)


class TransactionStatus(Enum):
    """
    Transaction lifecycle states.

    Value strings match the names the access API reports.
    """

    UNKNOWN = "Unknown"
    PENDING = "Pending"
    FINALIZED = "Finalized"
    EXECUTED = "Executed"
    SEALED = "Sealed"
    EXPIRED = "Expired"

    @classmethod
    def from_string(cls, value: str) -> "TransactionStatus":
        for status in cls:
            if status.value.lower() == (value or "").lower():
                return status
        return cls.UNKNOWN


@dataclass
class Event:
    """Event emitted by a transaction."""

    type: str
    transaction_id: str
    transaction_index: int
    event_index: int
    payload: cadence.Value

    def value(self, name: str) -> Optional[cadence.Value]:
        """Field of the event payload by name."""
        return cadence.composite_fields(self.payload).get(name)


@dataclass
class TransactionResult:
    status: TransactionStatus
    error: str = ""
    events: List[Event] = field(default_factory=list)
    block_id: str = ""
    block_height: int = 0

    def is_sealed(self) -> bool:
        return self.status == TransactionStatus.SEALED


@dataclass
class BlockEvents:
    """Events of one type emitted in one block."""

    block_id: str
    height: int
    timestamp: Optional[datetime] = None
    events: List[Event] = field(default_factory=list)
