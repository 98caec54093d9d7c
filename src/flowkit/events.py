"""Helpers over the events emitted by a transaction."""

from typing import List, Optional

from . import cadence
from .address import Address
from .constants import ACCOUNT_CREATED_EVENT
from .types import Event, TransactionResult


class Events(list):
    """Events of one transaction, in emission order."""

    @classmethod
    def from_result(cls, result: TransactionResult) -> "Events":
        return cls(result.events)

    def by_type(self, event_type: str) -> List[Event]:
        return [e for e in self if e.type == event_type]

    def get_address(self) -> Optional[Address]:
        """Address of the account created by the transaction, if any."""
        for event in self.by_type(ACCOUNT_CREATED_EVENT):
            value = event.value("address")
            if isinstance(value, cadence.Address):
                return value.value
        return None
