"""Unit tests for the REST gateway with the HTTP layer replaced."""

import base64
import json
from typing import Any, Dict, List

import pytest
import requests

from flowkit import cadence
from flowkit.address import Address
from flowkit.crypto import HashAlgorithm, SignatureAlgorithm
from flowkit.exceptions import GatewayError
from flowkit.gateway import EmulatorGateway, EmulatorKey, RestGateway, new_gateway
from flowkit.gateway import rest
from flowkit.transaction import FlowTransaction, ProposalKey, TransactionSignature
from flowkit.types import TransactionStatus


class FakeResponse:
    def __init__(self, body: Any, status_code: int = 200):
        self.body = body
        self.status_code = status_code
        self.text = json.dumps(body)

    def json(self) -> Any:
        return self.body


class FakeHTTP:
    """Serves queued responses and records requests."""

    def __init__(self):
        self.responses: List[FakeResponse] = []
        self.requests: List[Dict[str, Any]] = []

    def __call__(self, method: str):
        def request(url: str, timeout: float = None, **kwargs) -> FakeResponse:
            self.requests.append({"method": method, "url": url, "timeout": timeout, **kwargs})
            return self.responses.pop(0)

        return request


@pytest.fixture
def http(monkeypatch) -> FakeHTTP:
    fake = FakeHTTP()
    monkeypatch.setattr(rest.requests, "get", fake("GET"))
    monkeypatch.setattr(rest.requests, "post", fake("POST"))
    return fake


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


class TestRestURL:
    """Test mapping of hosts to REST endpoints."""

    def test_known_hosts(self):
        """Test the default network hosts."""
        assert rest.rest_url("127.0.0.1:3569") == "http://127.0.0.1:8888"
        assert rest.rest_url("access.mainnet.nodes.onflow.org:9000") == "https://rest-mainnet.onflow.org"

    def test_urls_and_custom_hosts(self):
        """Test full URLs and unknown hosts."""
        assert rest.rest_url("https://example.org/") == "https://example.org"
        assert rest.rest_url("10.0.0.1:8888") == "http://10.0.0.1:8888"


class TestNewGateway:
    """Test gateway selection by host."""

    def test_remote(self):
        """Test that hosts select the REST gateway."""
        assert isinstance(new_gateway("127.0.0.1:3569"), RestGateway)

    def test_memory_requires_key(self):
        """Test that the in-process emulator needs a service key."""
        with pytest.raises(GatewayError):
            new_gateway("memory")

    def test_memory(self, service_key):
        """Test that the memory host selects the emulator."""
        gateway = new_gateway("memory", EmulatorKey(service_key.public_key(), HashAlgorithm.SHA3_256))
        assert isinstance(gateway, EmulatorGateway)


class TestRestGateway:
    """Test requests and response decoding."""

    def test_get_account(self, http):
        """Test account decoding with keys and contracts."""
        http.responses.append(
            FakeResponse(
                {
                    "address": "0xf8d6e0586b0a20c7",
                    "balance": "100000000",
                    "keys": [
                        {
                            "index": "0",
                            "public_key": "0x" + "ab" * 64,
                            "signing_algorithm": "ECDSA_P256",
                            "hashing_algorithm": "SHA3_256",
                            "sequence_number": "4",
                            "weight": "1000",
                            "revoked": False,
                        }
                    ],
                    "contracts": {"Kibble": b64(b"pub contract Kibble {}")},
                }
            )
        )

        account = RestGateway("127.0.0.1:3569").get_account(Address.from_hex("f8d6e0586b0a20c7"))

        assert http.requests[0]["url"] == "http://127.0.0.1:8888/v1/accounts/f8d6e0586b0a20c7"
        assert http.requests[0]["timeout"] == rest.REQUEST_TIMEOUT
        assert str(account.balance_flow()) == "1.00000000"
        assert account.keys[0].sequence_number == 4
        assert account.keys[0].sig_algo == SignatureAlgorithm.ECDSA_P256
        assert account.contracts == {"Kibble": "pub contract Kibble {}"}

    def test_error_response(self, http):
        """Test that error responses raise GatewayError with the node message."""
        http.responses.append(FakeResponse({"code": 404, "message": "account not found"}, 404))

        with pytest.raises(GatewayError, match="failed to get account with address .*: account not found"):
            RestGateway("127.0.0.1:3569").get_account(Address.from_hex("01"))

    def test_connection_error(self, monkeypatch):
        """Test that network errors raise GatewayError."""

        def fail(url, **kwargs):
            raise requests.ConnectionError("refused")

        monkeypatch.setattr(rest.requests, "get", fail)
        with pytest.raises(GatewayError, match="failed to connect to 127.0.0.1:3569"):
            RestGateway("127.0.0.1:3569").ping()

    def test_send_transaction(self, http):
        """Test the request body of a submitted transaction."""
        http.responses.append(FakeResponse({"id": "ab"}))
        tx = FlowTransaction(
            script=b"transaction {}",
            arguments=[cadence.encode_json(cadence.String("hi"))],
            reference_block_id=bytes(32),
            gas_limit=100,
            proposal_key=ProposalKey(Address.from_hex("01"), 0, 3),
            payer=Address.from_hex("01"),
            envelope_signatures=[TransactionSignature(Address.from_hex("01"), 0, b"\x01\x02")],
        )

        RestGateway("127.0.0.1:3569").send_signed_transaction(tx)

        body = http.requests[0]["json"]
        assert http.requests[0]["method"] == "POST"
        assert body["script"] == b64(b"transaction {}")
        assert body["proposal_key"]["sequence_number"] == "3"
        assert body["envelope_signatures"][0]["signature"] == b64(b"\x01\x02")
        assert rest.decode_transaction(body) == tx

    def test_transaction_result(self, http):
        """Test result decoding with an event payload."""
        event_payload = cadence.encode_json(
            cadence.Composite(
                id="flow.AccountCreated",
                fields=(("address", cadence.Address(Address.from_hex("01cf0e2f2f715450"))),),
                kind="Event",
            )
        )
        http.responses.append(
            FakeResponse(
                {
                    "status": "Sealed",
                    "error_message": "",
                    "block_id": "cd" * 32,
                    "events": [
                        {
                            "type": "flow.AccountCreated",
                            "transaction_id": "ab",
                            "transaction_index": "0",
                            "event_index": "0",
                            "payload": b64(event_payload),
                        }
                    ],
                }
            )
        )

        result = RestGateway("127.0.0.1:3569").get_transaction_result("ab", wait_seal=True)

        assert result.status == TransactionStatus.SEALED
        assert result.events[0].value("address") == cadence.Address(Address.from_hex("01cf0e2f2f715450"))

    def test_waits_for_seal(self, http):
        """Test polling until the transaction is sealed."""
        http.responses.extend(
            [
                FakeResponse({"status": "Pending", "events": []}),
                FakeResponse({"status": "Executed", "events": []}),
                FakeResponse({"status": "Sealed", "events": []}),
            ]
        )

        result = RestGateway("127.0.0.1:3569", poll_interval=0).get_transaction_result("ab", wait_seal=True)

        assert result.is_sealed()
        assert len(http.requests) == 3

    def test_execute_script(self, http):
        """Test script arguments and the decoded result."""
        http.responses.append(FakeResponse(b64(cadence.encode_json(cadence.Integer(3, "Int")))))

        value = RestGateway("127.0.0.1:3569").execute_script(b"pub fun main(): Int { return 3 }", [cadence.String("x")])

        assert value == cadence.Integer(3, "Int")
        assert http.requests[0]["params"] == {"block_height": "sealed"}
        assert http.requests[0]["json"]["arguments"] == [b64(cadence.encode_json(cadence.String("x")))]

    def test_latest_block(self, http):
        """Test block decoding from a list response with nanosecond timestamps."""
        http.responses.append(
            FakeResponse(
                [
                    {
                        "header": {
                            "id": "ab" * 32,
                            "parent_id": "cd" * 32,
                            "height": "17",
                            "timestamp": "2023-01-02T03:04:05.123456789Z",
                        },
                        "payload": {"collection_guarantees": [{"collection_id": "ef" * 32}], "block_seals": []},
                    }
                ]
            )
        )

        block = RestGateway("127.0.0.1:3569").get_latest_block()

        assert block.height == 17
        assert block.collection_ids == ["ef" * 32]
        assert block.timestamp.microsecond == 123456
        assert http.requests[0]["params"] == {"height": "sealed", "expand": "payload"}

    def test_block_not_found(self, http):
        """Test that an empty block list raises GatewayError."""
        http.responses.append(FakeResponse([]))
        with pytest.raises(GatewayError, match="block not found"):
            RestGateway("127.0.0.1:3569").get_block_by_height(5)

    def test_events(self, http):
        """Test event range query parameters."""
        http.responses.append(FakeResponse([{"block_id": "ab", "block_height": "9", "events": []}]))

        blocks = RestGateway("127.0.0.1:3569").get_events("A.Foo", 1, 9)

        assert blocks[0].height == 9
        assert http.requests[0]["params"] == {"type": "A.Foo", "start_height": "1", "end_height": "9"}
