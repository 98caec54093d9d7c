"""Command results and their table, one-line and JSON renderings."""

import json
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

import typer

from .. import cadence
from ..crypto import PrivateKey
from ..deployment import ResolvedContract
from ..services.status import NetworkStatus
from ..transaction import FlowTransaction
from ..types import AccountKeyInfo, Block, BlockEvents, Collection, FlowAccount, TransactionResult

OUTPUT_FORMATS = ("table", "inline", "json")


def _table(rows: Sequence[Tuple[str, Any]]) -> str:
    width = max((len(label) for label, _ in rows), default=0)
    return "\n".join(f"{label.ljust(width)}\t{value}" for label, value in rows)


def _timestamp(value: Optional[datetime]) -> str:
    return value.isoformat() if value else ""


class Result(ABC):
    """Output of a command, renderable in every output format."""

    @abstractmethod
    def to_table(self) -> str: ...

    @abstractmethod
    def to_one_line(self) -> str: ...

    @abstractmethod
    def to_json(self) -> Any:
        """JSON-serializable form of the result."""


def format_result(result: Result, output: str) -> str:
    """
    Render a result in an output format.

    Raises:
        ValueError: If the format is unknown
    """
    match output:
        case "json":
            return json.dumps(result.to_json(), indent=2, default=str)
        case "inline":
            return result.to_one_line()
        case "table":
            return result.to_table()
    raise ValueError(f"unsupported output format {output}, valid are: {', '.join(OUTPUT_FORMATS)}")


def print_result(result: Result, output: str = "table", save: str = "") -> None:
    """Print a rendered result, or write it to a file when save is set."""
    rendered = format_result(result, output)
    if save:
        with open(save, "w") as f:
            f.write(rendered)
        typer.echo(f"Result saved to: {save}")
        return
    typer.echo(rendered)


class MessageResult(Result):
    def __init__(self, message: str):
        self.message = message

    def to_table(self) -> str:
        return self.message

    def to_one_line(self) -> str:
        return self.message

    def to_json(self) -> Any:
        return {"message": self.message}


def _key_json(key: AccountKeyInfo) -> Dict[str, Any]:
    return {
        "index": key.index,
        "publicKey": key.public_key,
        "sigAlgo": key.sig_algo.name,
        "hashAlgo": key.hash_algo.name,
        "weight": key.weight,
        "sequenceNumber": key.sequence_number,
        "revoked": key.revoked,
    }


class AccountResult(Result):
    def __init__(self, account: FlowAccount, show_code: bool = False):
        self.account = account
        self.show_code = show_code

    def to_table(self) -> str:
        rows: List[Tuple[str, Any]] = [
            ("Address", self.account.address.hex_with_prefix()),
            ("Balance", self.account.balance_flow()),
            ("Keys", len(self.account.keys)),
        ]
        for key in self.account.keys:
            rows += [
                (f"Key {key.index}", f"Public Key\t{key.public_key}"),
                ("", f"Weight\t{key.weight}"),
                ("", f"Signature Algorithm\t{key.sig_algo.name}"),
                ("", f"Hash Algorithm\t{key.hash_algo.name}"),
                ("", f"Revoked\t{str(key.revoked).lower()}"),
                ("", f"Sequence Number\t{key.sequence_number}"),
            ]
        rows.append(("Contracts Deployed", len(self.account.contracts)))
        for name, code in self.account.contracts.items():
            rows.append(("Contract", f"'{name}'"))
            if self.show_code:
                rows.append(("", code))
        return _table(rows)

    def to_one_line(self) -> str:
        return (
            f"Address: {self.account.address.hex_with_prefix()}, "
            f"Balance: {self.account.balance_flow()}, Public Keys: "
            f"[{' '.join(k.public_key for k in self.account.keys)}]"
        )

    def to_json(self) -> Any:
        return {
            "address": self.account.address.hex(),
            "balance": str(self.account.balance_flow()),
            "keys": [_key_json(k) for k in self.account.keys],
            "contracts": sorted(self.account.contracts),
            "code": self.account.contracts if self.show_code else {},
        }


class StakingResult(Result):
    def __init__(self, staking: List[Dict[str, Any]], delegation: List[Dict[str, Any]]):
        self.staking = staking
        self.delegation = delegation

    def to_table(self) -> str:
        lines = ["Account Staking Info:"]
        for info in self.staking:
            lines.append(_table([(name, value) for name, value in info.items()]))
            lines.append("")
        lines.append("Account Delegation Info:")
        for info in self.delegation:
            lines.append(_table([(name, value) for name, value in info.items()]))
            lines.append("")
        return "\n".join(lines)

    def to_one_line(self) -> str:
        return f"Staking: {len(self.staking)} nodes, Delegation: {len(self.delegation)} delegators"

    def to_json(self) -> Any:
        return {"staking": self.staking, "delegation": self.delegation}


class KeyResult(Result):
    def __init__(self, private_key: PrivateKey):
        self.private_key = private_key

    def to_table(self) -> str:
        return _table(
            [
                ("Private Key", self.private_key.hex()),
                ("Public Key", self.private_key.public_key().hex()),
                ("Signature Algorithm", self.private_key.sig_algo.name),
            ]
        )

    def to_one_line(self) -> str:
        return f"Private Key: {self.private_key.hex()}, Public Key: {self.private_key.public_key().hex()}"

    def to_json(self) -> Any:
        return {
            "private": self.private_key.hex(),
            "public": self.private_key.public_key().hex(),
            "sigAlgo": self.private_key.sig_algo.name,
        }


class AccountKeyResult(Result):
    def __init__(self, key: AccountKeyInfo):
        self.key = key

    def to_table(self) -> str:
        return _table(
            [
                ("Public Key", self.key.public_key),
                ("Signature Algorithm", self.key.sig_algo.name),
                ("Hash Algorithm", self.key.hash_algo.name),
                ("Weight", self.key.weight),
                ("Revoked", str(self.key.revoked).lower()),
            ]
        )

    def to_one_line(self) -> str:
        return f"Public Key: {self.key.public_key}"

    def to_json(self) -> Any:
        return _key_json(self.key)


def _event_json(event) -> Dict[str, Any]:
    return {
        "type": event.type,
        "transactionId": event.transaction_id,
        "index": event.event_index,
        "values": event.payload.to_python(),
    }


def _events_rows(events) -> List[Tuple[str, Any]]:
    rows: List[Tuple[str, Any]] = []
    for event in events:
        rows.append(("Event", f"{event.event_index}: {event.type}"))
        rows.append(("", f"Tx ID\t{event.transaction_id}"))
        for name, value in cadence.composite_fields(event.payload).items():
            rows.append(("", f"{name}\t{value.to_python()}"))
    return rows


class BlockResult(Result):
    def __init__(
        self,
        block: Block,
        events: Optional[List[BlockEvents]] = None,
        collections: Optional[List[Collection]] = None,
    ):
        self.block = block
        self.events = events or []
        self.collections = collections or []

    def to_table(self) -> str:
        rows: List[Tuple[str, Any]] = [
            ("Block ID", self.block.id),
            ("Parent ID", self.block.parent_id),
            ("Timestamp", _timestamp(self.block.timestamp)),
            ("Height", self.block.height),
            ("Total Seals", self.block.seal_count),
            ("Total Collections", len(self.block.collection_ids)),
        ]
        for collection_id in self.block.collection_ids:
            rows.append(("Collection", collection_id))
        for collection in self.collections:
            for tx_id in collection.transaction_ids:
                rows.append(("", f"Transaction\t{tx_id}"))
        for block_events in self.events:
            rows += _events_rows(block_events.events)
        return _table(rows)

    def to_one_line(self) -> str:
        return f"Block ID: {self.block.id}, Height: {self.block.height}"

    def to_json(self) -> Any:
        return {
            "blockId": self.block.id,
            "parentId": self.block.parent_id,
            "height": self.block.height,
            "timestamp": _timestamp(self.block.timestamp),
            "totalSeals": self.block.seal_count,
            "collection": [
                {"id": c.id, "transactions": c.transaction_ids} for c in self.collections
            ]
            or [{"id": c} for c in self.block.collection_ids],
            "events": [_event_json(e) for b in self.events for e in b.events],
        }


class CollectionResult(Result):
    def __init__(self, collection: Collection):
        self.collection = collection

    def to_table(self) -> str:
        rows: List[Tuple[str, Any]] = [("Collection ID", self.collection.id)]
        rows += [("Transaction", tx_id) for tx_id in self.collection.transaction_ids]
        return _table(rows)

    def to_one_line(self) -> str:
        return f"Collection ID {self.collection.id}: {','.join(self.collection.transaction_ids)}"

    def to_json(self) -> Any:
        return {"id": self.collection.id, "transactions": self.collection.transaction_ids}


class EventsResult(Result):
    def __init__(self, block_events: List[BlockEvents]):
        self.block_events = [b for b in block_events if b.events]

    def to_table(self) -> str:
        sections = []
        for block in self.block_events:
            rows: List[Tuple[str, Any]] = [("Events Block", f"#{block.height}")]
            rows += _events_rows(block.events)
            sections.append(_table(rows))
        return "\n\n".join(sections) if sections else "No events found"

    def to_one_line(self) -> str:
        return "; ".join(
            f"#{b.height}: {', '.join(e.type for e in b.events)}" for b in self.block_events
        )

    def to_json(self) -> Any:
        return [
            {
                "blockId": b.block_id,
                "blockHeight": b.height,
                "events": [_event_json(e) for e in b.events],
            }
            for b in self.block_events
        ]


class ScriptResult(Result):
    def __init__(self, value: cadence.Value):
        self.value = value

    def to_table(self) -> str:
        return f"Result: {self.value.to_python()}"

    def to_one_line(self) -> str:
        return str(self.value.to_python())

    def to_json(self) -> Any:
        return cadence.encode(self.value)


class TransactionOutput(Result):
    """A transaction with its result, if it was sent."""

    def __init__(self, tx: FlowTransaction, result: Optional[TransactionResult] = None):
        self.tx = tx
        self.result = result

    def to_table(self) -> str:
        rows: List[Tuple[str, Any]] = [("ID", self.tx.id())]
        if self.result is not None:
            rows.append(("Status", self.result.status.value.upper()))
            if self.result.error:
                rows.append(("Error", self.result.error))
            if self.result.block_id:
                rows.append(("Block ID", self.result.block_id))
        rows += [
            ("Payer", self.tx.payer.hex()),
            ("Authorizers", f"[{' '.join(a.hex() for a in self.tx.authorizers)}]"),
            ("Proposal Key", ""),
            ("", f"Address\t{self.tx.proposal_key.address.hex()}"),
            ("", f"Index\t{self.tx.proposal_key.key_index}"),
            ("", f"Sequence\t{self.tx.proposal_key.sequence_number}"),
            ("Payload Signatures", len(self.tx.payload_signatures)),
            ("Envelope Signatures", len(self.tx.envelope_signatures)),
            ("Gas Limit", self.tx.gas_limit),
        ]
        if self.result is not None:
            rows += _events_rows(self.result.events)
        return _table(rows)

    def to_one_line(self) -> str:
        line = f"ID: {self.tx.id()}"
        if self.result is not None:
            line += f", Status: {self.result.status.value.upper()}"
            if self.result.error:
                line += f", Error: {self.result.error}"
        return line

    def to_json(self) -> Any:
        data: Dict[str, Any] = {
            "id": self.tx.id(),
            "payer": self.tx.payer.hex(),
            "authorizers": [a.hex() for a in self.tx.authorizers],
            "payload": self.tx.encode().hex(),
        }
        if self.result is not None:
            data.update(
                {
                    "status": self.result.status.value.upper(),
                    "error": self.result.error,
                    "events": [_event_json(e) for e in self.result.events],
                }
            )
        return data


class PayloadResult(Result):
    """A built or signed transaction, for passing to the next signer."""

    def __init__(self, tx: FlowTransaction):
        self.tx = tx

    def to_table(self) -> str:
        return _table(
            [
                ("ID", self.tx.id()),
                ("Payer", self.tx.payer.hex()),
                ("Authorizers", f"[{' '.join(a.hex() for a in self.tx.authorizers)}]"),
                ("Payload Signatures", len(self.tx.payload_signatures)),
                ("Envelope Signatures", len(self.tx.envelope_signatures)),
                ("Payload", self.tx.encode().hex()),
            ]
        )

    def to_one_line(self) -> str:
        return self.tx.encode().hex()

    def to_json(self) -> Any:
        return {"id": self.tx.id(), "payload": self.tx.encode().hex()}


class DeployResult(Result):
    def __init__(self, contracts: List[ResolvedContract]):
        self.contracts = contracts

    def to_table(self) -> str:
        return _table(
            [(c.name, f"0x{c.target.hex()}\t{c.location}") for c in self.contracts]
        )

    def to_one_line(self) -> str:
        return ", ".join(f"{c.name} -> 0x{c.target.hex()}" for c in self.contracts)

    def to_json(self) -> Any:
        return [
            {"name": c.name, "address": c.target.hex(), "location": c.location}
            for c in self.contracts
        ]


class StatusResult(Result):
    def __init__(self, status: NetworkStatus):
        self.status = status

    def _state(self) -> str:
        return "ONLINE" if self.status.online else "OFFLINE"

    def to_table(self) -> str:
        return _table(
            [
                ("Status", self._state()),
                ("Network", self.status.network),
                ("Access Node", self.status.host),
            ]
        )

    def to_one_line(self) -> str:
        return f"{self.status.network}: {self._state()}"

    def to_json(self) -> Any:
        return {
            "network": self.status.network,
            "accessNode": self.status.host,
            "online": self.status.online,
            "error": self.status.error,
        }
