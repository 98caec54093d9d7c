"""Gateway to an access node over its REST API."""

import base64
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import requests

from .. import cadence
from ..address import Address
from ..constants import REST_ENDPOINTS, SEAL_POLL_INTERVAL
from ..crypto import HashAlgorithm, SignatureAlgorithm
from ..exceptions import GatewayError, ParseError
from ..transaction import FlowTransaction, ProposalKey, TransactionSignature
from ..types import (
    AccountKeyInfo,
    Block,
    BlockEvents,
    Collection,
    Event,
    FlowAccount,
    TransactionResult,
    TransactionStatus,
)
from .base import Gateway

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30


def rest_url(host: str) -> str:
    """REST endpoint for an access node host."""
    if host.startswith(("http://", "https://")):
        return host.rstrip("/")
    return REST_ENDPOINTS.get(host, f"http://{host}")


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _unb64(data: str) -> bytes:
    return base64.b64decode(data or "")


def _strip_prefix(value: str) -> str:
    return value[2:] if value.startswith("0x") else value


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    text = value.replace("Z", "+00:00")
    # Access nodes report nanoseconds, datetime accepts at most microseconds
    if "." in text:
        head, rest = text.split(".", 1)
        zone_at = next((i for i, c in enumerate(rest) if not c.isdigit()), len(rest))
        digits, zone = rest[:zone_at], rest[zone_at:]
        text = f"{head}.{digits[:6].ljust(6, '0')}{zone}"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _decode_event(raw: Dict[str, Any]) -> Event:
    return Event(
        type=raw["type"],
        transaction_id=raw.get("transaction_id", ""),
        transaction_index=int(raw.get("transaction_index", 0)),
        event_index=int(raw.get("event_index", 0)),
        payload=cadence.decode_json(_unb64(raw.get("payload", ""))),
    )


def _decode_block(raw: Dict[str, Any]) -> Block:
    header = raw["header"]
    payload = raw.get("payload") or {}
    return Block(
        id=header["id"],
        parent_id=header.get("parent_id", ""),
        height=int(header["height"]),
        timestamp=_parse_timestamp(header.get("timestamp")),
        collection_ids=[g["collection_id"] for g in payload.get("collection_guarantees", [])],
        seal_count=len(payload.get("block_seals", [])),
    )


def _encode_signatures(signatures: List[TransactionSignature]) -> List[Dict[str, str]]:
    return [
        {
            "address": s.address.hex(),
            "key_index": str(s.key_index),
            "signature": _b64(s.signature),
        }
        for s in signatures
    ]


def _decode_signatures(raw: List[Dict[str, Any]]) -> List[TransactionSignature]:
    return [
        TransactionSignature(
            Address.from_hex(s["address"]), int(s["key_index"]), _unb64(s["signature"])
        )
        for s in raw or []
    ]


def encode_transaction(tx: FlowTransaction) -> Dict[str, Any]:
    """Request body of a transaction for the REST API."""
    return {
        "script": _b64(tx.script),
        "arguments": [_b64(a) for a in tx.arguments],
        "reference_block_id": tx.reference_block_id.hex(),
        "gas_limit": str(tx.gas_limit),
        "payer": tx.payer.hex(),
        "proposal_key": {
            "address": tx.proposal_key.address.hex(),
            "key_index": str(tx.proposal_key.key_index),
            "sequence_number": str(tx.proposal_key.sequence_number),
        },
        "authorizers": [a.hex() for a in tx.authorizers],
        "payload_signatures": _encode_signatures(tx.payload_signatures),
        "envelope_signatures": _encode_signatures(tx.envelope_signatures),
    }


def decode_transaction(raw: Dict[str, Any]) -> FlowTransaction:
    proposal = raw["proposal_key"]
    return FlowTransaction(
        script=_unb64(raw["script"]),
        arguments=[_unb64(a) for a in raw.get("arguments", [])],
        reference_block_id=bytes.fromhex(_strip_prefix(raw["reference_block_id"])),
        gas_limit=int(raw["gas_limit"]),
        proposal_key=ProposalKey(
            Address.from_hex(proposal["address"]),
            int(proposal["key_index"]),
            int(proposal["sequence_number"]),
        ),
        payer=Address.from_hex(raw["payer"]),
        authorizers=[Address.from_hex(a) for a in raw.get("authorizers", [])],
        payload_signatures=_decode_signatures(raw.get("payload_signatures")),
        envelope_signatures=_decode_signatures(raw.get("envelope_signatures")),
    )


def decode_account(raw: Dict[str, Any]) -> FlowAccount:
    keys = [
        AccountKeyInfo(
            index=int(k["index"]),
            public_key=_strip_prefix(k["public_key"]),
            sig_algo=SignatureAlgorithm.from_string(k["signing_algorithm"]),
            hash_algo=HashAlgorithm.from_string(k["hashing_algorithm"]),
            weight=int(k["weight"]),
            sequence_number=int(k.get("sequence_number", 0)),
            revoked=bool(k.get("revoked", False)),
        )
        for k in raw.get("keys", [])
    ]
    contracts = {
        name: _unb64(code).decode("utf-8") for name, code in (raw.get("contracts") or {}).items()
    }
    return FlowAccount(
        address=Address.from_hex(raw["address"]),
        balance=int(raw.get("balance", 0)),
        keys=keys,
        contracts=contracts,
    )


class RestGateway(Gateway):
    """
    Gateway speaking the access node REST API.

    Args:
        host: Access node host or REST URL
        poll_interval: Seconds between polls while waiting for a seal
    """

    def __init__(self, host: str, poll_interval: float = SEAL_POLL_INTERVAL):
        self.host = host
        self.url = rest_url(host)
        self.poll_interval = poll_interval

    def _request(self, method: str, action: str, path: str, **kwargs) -> Any:
        """
        Make a request and return the decoded JSON body.

        Raises:
            GatewayError: On network errors and non-success responses
        """
        url = f"{self.url}{path}"
        try:
            if method == "POST":
                response = requests.post(url, timeout=REQUEST_TIMEOUT, **kwargs)
            else:
                response = requests.get(url, timeout=REQUEST_TIMEOUT, **kwargs)
        except requests.RequestException as e:
            raise GatewayError(f"failed to {action}: {e}") from e

        if response.status_code >= 400:
            try:
                message = response.json().get("message", response.text)
            except ValueError:
                message = response.text
            raise GatewayError(f"failed to {action}: {message}")

        try:
            return response.json()
        except ValueError as e:
            raise GatewayError(f"failed to {action}: invalid response body") from e

    def get_account(self, address: Address) -> FlowAccount:
        raw = self._request(
            "GET",
            f"get account with address {address.hex()}",
            f"/v1/accounts/{address.hex()}",
            params={"expand": "keys,contracts"},
        )
        return decode_account(raw)

    def send_signed_transaction(self, tx: FlowTransaction) -> FlowTransaction:
        self._request(
            "POST", "submit transaction", "/v1/transactions", json=encode_transaction(tx)
        )
        logger.debug("sent transaction %s to %s", tx.id(), self.host)
        return tx

    def get_transaction(self, tx_id: str) -> FlowTransaction:
        raw = self._request("GET", f"get transaction {tx_id}", f"/v1/transactions/{tx_id}")
        return decode_transaction(raw)

    def _fetch_result(self, tx_id: str) -> TransactionResult:
        raw = self._request(
            "GET", f"get transaction result {tx_id}", f"/v1/transaction_results/{tx_id}"
        )
        return TransactionResult(
            status=TransactionStatus.from_string(raw.get("status", "")),
            error=raw.get("error_message", ""),
            events=[_decode_event(e) for e in raw.get("events", [])],
            block_id=raw.get("block_id", ""),
        )

    def get_transaction_result(self, tx_id: str, wait_seal: bool) -> TransactionResult:
        result = self._fetch_result(tx_id)
        while wait_seal and result.status != TransactionStatus.SEALED:
            logger.debug("waiting for transaction %s to be sealed", tx_id)
            time.sleep(self.poll_interval)
            result = self._fetch_result(tx_id)
        return result

    def execute_script(self, script: bytes, args: Sequence[cadence.Value]) -> cadence.Value:
        raw = self._request(
            "POST",
            "execute script",
            "/v1/scripts",
            params={"block_height": "sealed"},
            json={
                "script": _b64(script),
                "arguments": [_b64(cadence.encode_json(a)) for a in args],
            },
        )
        try:
            return cadence.decode_json(_unb64(raw))
        except (ParseError, TypeError, ValueError) as e:
            raise GatewayError(f"failed to execute script: invalid result {raw!r}") from e

    def _get_block(self, action: str, path: str, params: Dict[str, str]) -> Block:
        raw = self._request("GET", action, path, params={**params, "expand": "payload"})
        if isinstance(raw, list):
            if not raw:
                raise GatewayError(f"failed to {action}: block not found")
            raw = raw[0]
        return _decode_block(raw)

    def get_latest_block(self) -> Block:
        return self._get_block("get latest block", "/v1/blocks", {"height": "sealed"})

    def get_block_by_id(self, block_id: str) -> Block:
        return self._get_block(f"get block by ID {block_id}", f"/v1/blocks/{block_id}", {})

    def get_block_by_height(self, height: int) -> Block:
        return self._get_block(f"get block by height {height}", "/v1/blocks", {"height": str(height)})

    def get_events(self, event_type: str, start_height: int, end_height: int) -> List[BlockEvents]:
        raw = self._request(
            "GET",
            f"get events {event_type}",
            "/v1/events",
            params={
                "type": event_type,
                "start_height": str(start_height),
                "end_height": str(end_height),
            },
        )
        return [
            BlockEvents(
                block_id=b["block_id"],
                height=int(b["block_height"]),
                timestamp=_parse_timestamp(b.get("block_timestamp")),
                events=[_decode_event(e) for e in b.get("events", [])],
            )
            for b in raw
        ]

    def get_collection(self, collection_id: str) -> Collection:
        raw = self._request(
            "GET",
            f"get collection {collection_id}",
            f"/v1/collections/{collection_id}",
            params={"expand": "transactions"},
        )
        return Collection(
            id=raw["id"],
            transaction_ids=[t["id"] for t in raw.get("transactions", [])],
        )

    def ping(self) -> None:
        self._request("GET", f"connect to {self.host}", "/v1/network/parameters")
