"""
In-process emulator gateway.

Keeps a small ledger in memory: accounts, blocks, collections, transactions
and their results. Every accepted transaction is sealed immediately into a new
block. Transaction scripts are not interpreted by a Cadence runtime; the
account creation and account contract templates are recognized and applied to
the ledger, any other script is sealed with an error result.
"""

import copy
import hashlib
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Sequence, Tuple

import rlp

from .. import cadence
from ..address import Address, AddressGenerator, ChainID
from ..constants import (
    ACCOUNT_CONTRACT_ADDED_EVENT,
    ACCOUNT_CONTRACT_REMOVED_EVENT,
    ACCOUNT_CONTRACT_UPDATED_EVENT,
    ACCOUNT_CREATED_EVENT,
    ACCOUNT_KEY_WEIGHT_THRESHOLD,
)
from ..crypto import HashAlgorithm, PublicKey, decode_public_key_hex
from ..exceptions import BadKeyConfig, GatewayError, ParseError, RoleMismatch
from ..program import Program
from ..transaction import (
    ADD_ACCOUNT_CONTRACT_TEMPLATE,
    CREATE_ACCOUNT_TEMPLATE,
    REMOVE_ACCOUNT_CONTRACT_TEMPLATE,
    UPDATE_ACCOUNT_CONTRACT_TEMPLATE,
    FlowTransaction,
    TransactionSignature,
    decode_account_key,
)
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

# Addresses after the service account reserved for system contracts
SYSTEM_ACCOUNT_COUNT = 3

SERVICE_ACCOUNT_BALANCE = 10**17

_ADDRESS_IMPORT_PATTERN = re.compile(r"\bimport\s+([\w\s,]+?)\s+from\s+0x([0-9a-fA-F]+)")


@dataclass
class EmulatorKey:
    """Public key the emulator service account is created with."""

    public_key: PublicKey
    hash_algo: HashAlgorithm = HashAlgorithm.SHA3_256


class ExecutionError(Exception):
    """Transaction failed while being applied to the ledger."""

    pass


def _hash_id(*parts: bytes) -> str:
    return hashlib.sha3_256(rlp.encode(list(parts))).hexdigest()


def _event_payload(event_type: str, fields: List[Tuple[str, cadence.Value]]) -> cadence.Composite:
    return cadence.Composite(event_type, tuple(fields), "Event")


def _string_arg(value: cadence.Value) -> str:
    if not isinstance(value, cadence.String):
        raise ExecutionError(f"expected String argument, got {value.type_id()}")
    return value.value


def _decode_hex_code(value: cadence.Value) -> str:
    try:
        return bytes.fromhex(_string_arg(value)).decode("utf-8")
    except ValueError as e:
        raise ExecutionError(f"failed to decode contract code: {e}") from e


class EmulatorGateway(Gateway):
    """
    Gateway backed by an in-memory ledger on the emulator chain.

    Args:
        service_key: Key of the service account created at genesis
    """

    def __init__(self, service_key: EmulatorKey):
        self.chain = ChainID.EMULATOR
        self._addresses = AddressGenerator(self.chain)
        self._accounts: Dict[Address, FlowAccount] = {}
        self._blocks: List[Block] = []
        self._blocks_by_id: Dict[str, Block] = {}
        self._collections: Dict[str, Collection] = {}
        self._transactions: Dict[str, FlowTransaction] = {}
        self._results: Dict[str, TransactionResult] = {}
        self._events: Dict[int, List[Event]] = {}

        self.service_address = self._create_account(
            [
                AccountKeyInfo(
                    index=0,
                    public_key=service_key.public_key.hex(),
                    sig_algo=service_key.public_key.sig_algo,
                    hash_algo=service_key.hash_algo,
                    weight=ACCOUNT_KEY_WEIGHT_THRESHOLD,
                )
            ],
            balance=SERVICE_ACCOUNT_BALANCE,
        )
        for _ in range(SYSTEM_ACCOUNT_COUNT):
            self._create_account([])

        self._commit_block([], [])

    def _create_account(self, keys: List[AccountKeyInfo], balance: int = 0) -> Address:
        address = self._addresses.next()
        self._accounts[address] = FlowAccount(address=address, balance=balance, keys=keys)
        return address

    def _commit_block(self, tx_ids: List[str], events: List[Event]) -> Block:
        parent = self._blocks[-1] if self._blocks else None
        height = parent.height + 1 if parent else 0
        parent_id = parent.id if parent else "00" * 32

        collection_ids = []
        if tx_ids:
            collection = Collection(
                id=_hash_id(*(bytes.fromhex(t) for t in tx_ids)), transaction_ids=list(tx_ids)
            )
            self._collections[collection.id] = collection
            collection_ids.append(collection.id)

        timestamp = datetime.now(timezone.utc)
        block = Block(
            id=_hash_id(
                bytes.fromhex(parent_id),
                height.to_bytes(8, "big"),
                str(timestamp.timestamp()).encode("ascii"),
                *(bytes.fromhex(c) for c in collection_ids),
            ),
            parent_id=parent_id,
            height=height,
            timestamp=timestamp,
            collection_ids=collection_ids,
            seal_count=1 if parent else 0,
        )
        self._blocks.append(block)
        self._blocks_by_id[block.id] = block
        self._events[height] = events
        return block

    def _account(self, address: Address) -> FlowAccount:
        account = self._accounts.get(address)
        if account is None:
            raise GatewayError(
                f"failed to get account with address {address.hex()}: account not found"
            )
        return account

    def get_account(self, address: Address) -> FlowAccount:
        return copy.deepcopy(self._account(address))

    def _verify_signature(self, sig: TransactionSignature, message: bytes) -> int:
        """Verify a signature and return the weight of the signing key."""
        account = self._account(sig.address)
        key = account.key_at(sig.key_index)
        if key is None or key.revoked:
            raise GatewayError(
                f"failed to submit transaction: account {sig.address.hex()} "
                f"has no valid key at index {sig.key_index}"
            )
        try:
            public_key = decode_public_key_hex(key.sig_algo, key.public_key)
        except BadKeyConfig as e:
            raise GatewayError(f"failed to submit transaction: {e}") from e

        if not public_key.verify(sig.signature, message, key.hash_algo):
            raise GatewayError(
                f"failed to submit transaction: invalid signature for account "
                f"{sig.address.hex()} key {sig.key_index}"
            )
        return key.weight

    def _verify(self, tx: FlowTransaction) -> None:
        if tx.reference_block_id.hex() not in self._blocks_by_id:
            raise GatewayError("failed to submit transaction: reference block not found")

        proposer = self._account(tx.proposal_key.address)
        key = proposer.key_at(tx.proposal_key.key_index)
        if key is None:
            raise GatewayError(
                f"failed to submit transaction: invalid proposal key {tx.proposal_key.key_index} "
                f"on account {proposer.address.hex()}"
            )
        if key.sequence_number != tx.proposal_key.sequence_number:
            raise GatewayError(
                f"failed to submit transaction: invalid proposal key sequence number, "
                f"expected {key.sequence_number}, got {tx.proposal_key.sequence_number}"
            )

        weights: Dict[Address, int] = {}
        try:
            payload_message = tx.payload_message()
            envelope_message = tx.envelope_message()
        except RoleMismatch as e:
            raise GatewayError(f"failed to submit transaction: {e}") from e
        for sig in tx.payload_signatures:
            weights[sig.address] = weights.get(sig.address, 0) + self._verify_signature(
                sig, payload_message
            )
        for sig in tx.envelope_signatures:
            if sig.address != tx.payer:
                raise GatewayError(
                    f"failed to submit transaction: envelope signed by {sig.address.hex()}, "
                    f"not by payer {tx.payer.hex()}"
                )
            weights[sig.address] = weights.get(sig.address, 0) + self._verify_signature(
                sig, envelope_message
            )

        for address in tx.signer_list():
            if weights.get(address, 0) < ACCOUNT_KEY_WEIGHT_THRESHOLD:
                raise GatewayError(
                    f"failed to submit transaction: missing signatures for account {address.hex()}"
                )

    def send_signed_transaction(self, tx: FlowTransaction) -> FlowTransaction:
        self._verify(tx)

        proposer = self._accounts[tx.proposal_key.address]
        proposer.key_at(tx.proposal_key.key_index).sequence_number += 1

        tx_id = tx.id()
        stored = copy.deepcopy(tx)
        self._transactions[tx_id] = stored

        try:
            fields = self._execute(stored)
            error = ""
        except ExecutionError as e:
            fields, error = [], str(e)

        events = [
            Event(
                type=event_type,
                transaction_id=tx_id,
                transaction_index=0,
                event_index=i,
                payload=_event_payload(event_type, event_fields),
            )
            for i, (event_type, event_fields) in enumerate(fields)
        ]
        block = self._commit_block([tx_id], events)

        self._results[tx_id] = TransactionResult(
            status=TransactionStatus.SEALED,
            error=error,
            events=events,
            block_id=block.id,
            block_height=block.height,
        )
        logger.debug("sealed transaction %s in block %d", tx_id, block.height)
        return tx

    def _check_imports(self, code: str) -> None:
        for match in _ADDRESS_IMPORT_PATTERN.finditer(code):
            address = Address.from_hex(match.group(2))
            account = self._accounts.get(address)
            for name in (n.strip() for n in match.group(1).split(",")):
                if account is None or name not in account.contracts:
                    raise ExecutionError(
                        f"cannot find declaration `{name}` in `0x{address.hex()}`"
                    )

    def _add_contract(self, account: FlowAccount, name: str, code: str) -> Tuple[str, list]:
        if name in account.contracts:
            raise ExecutionError(
                f'cannot overwrite existing contract with name "{name}" '
                f"in account 0x{account.address.hex()}"
            )
        try:
            declared = Program(code).name()
        except ParseError as e:
            raise ExecutionError(str(e)) from e
        if declared != name:
            raise ExecutionError(
                f"invalid account contract name: expected {name}, got {declared}"
            )

        self._check_imports(code)
        account.contracts[name] = code
        return ACCOUNT_CONTRACT_ADDED_EVENT, self._contract_event_fields(account, name, code)

    @staticmethod
    def _contract_event_fields(account: FlowAccount, name: str, code: str) -> list:
        return [
            ("address", cadence.Address(account.address)),
            ("codeHash", cadence.String(hashlib.sha3_256(code.encode("utf-8")).hexdigest())),
            ("contract", cadence.String(name)),
        ]

    def _execute(self, tx: FlowTransaction) -> List[Tuple[str, list]]:
        """Apply a template transaction to the ledger and return its events."""
        script = tx.script.decode("utf-8")
        try:
            args = tx.decoded_arguments()
        except ParseError as e:
            raise ExecutionError(f"failed to decode arguments: {e}") from e

        if not tx.authorizers:
            raise ExecutionError("transaction script not supported by the in-process emulator")
        signer = self._accounts.get(tx.authorizers[0])
        if signer is None:
            raise ExecutionError(f"account {tx.authorizers[0].hex()} not found")

        if script == CREATE_ACCOUNT_TEMPLATE and len(args) == 2:
            return self._create_account_from_args(args)

        if len(args) >= 2:
            params = "".join(f",arg{i}:{a.type_id()}" for i, a in enumerate(args[2:]))
            call_args = "".join(f",arg{i}" for i in range(len(args) - 2))
            if script == ADD_ACCOUNT_CONTRACT_TEMPLATE % (params, call_args):
                name = _string_arg(args[0])
                return [self._add_contract(signer, name, _decode_hex_code(args[1]))]

        if script == UPDATE_ACCOUNT_CONTRACT_TEMPLATE and len(args) == 2:
            name = _string_arg(args[0])
            if name not in signer.contracts:
                raise ExecutionError(
                    f"cannot update non-existing contract with name \"{name}\" "
                    f"in account 0x{signer.address.hex()}"
                )
            code = _decode_hex_code(args[1])
            self._check_imports(code)
            signer.contracts[name] = code
            return [
                (ACCOUNT_CONTRACT_UPDATED_EVENT, self._contract_event_fields(signer, name, code))
            ]

        if script == REMOVE_ACCOUNT_CONTRACT_TEMPLATE and len(args) == 1:
            name = _string_arg(args[0])
            code = signer.contracts.pop(name, None)
            if code is None:
                raise ExecutionError(
                    f"cannot remove non-existing contract with name \"{name}\" "
                    f"in account 0x{signer.address.hex()}"
                )
            return [
                (ACCOUNT_CONTRACT_REMOVED_EVENT, self._contract_event_fields(signer, name, code))
            ]

        raise ExecutionError("transaction script not supported by the in-process emulator")

    def _create_account_from_args(self, args: Sequence[cadence.Value]) -> List[Tuple[str, list]]:
        public_keys, contracts = args
        if not isinstance(public_keys, cadence.Array) or not isinstance(
            contracts, cadence.Dictionary
        ):
            raise ExecutionError("invalid arguments for account creation")

        keys = []
        for index, value in enumerate(public_keys.values):
            try:
                key = decode_account_key(bytes.fromhex(_string_arg(value)))
            except ValueError as e:
                raise ExecutionError(f"invalid account key: {e}") from e
            key.index = index
            keys.append(key)

        address = self._create_account(keys)
        account = self._accounts[address]
        events: List[Tuple[str, list]] = [
            (ACCOUNT_CREATED_EVENT, [("address", cadence.Address(address))])
        ]
        for name, code in contracts.pairs:
            events.append(self._add_contract(account, _string_arg(name), _decode_hex_code(code)))
        return events

    def get_transaction(self, tx_id: str) -> FlowTransaction:
        tx = self._transactions.get(tx_id)
        if tx is None:
            raise GatewayError(f"failed to get transaction {tx_id}: transaction not found")
        return copy.deepcopy(tx)

    def get_transaction_result(self, tx_id: str, wait_seal: bool) -> TransactionResult:
        result = self._results.get(tx_id)
        if result is None:
            raise GatewayError(f"failed to get transaction result {tx_id}: transaction not found")
        return copy.deepcopy(result)

    def execute_script(self, script: bytes, args: Sequence[cadence.Value]) -> cadence.Value:
        raise GatewayError(
            "failed to execute script: script execution is not supported by the in-process emulator"
        )

    def get_latest_block(self) -> Block:
        return copy.deepcopy(self._blocks[-1])

    def get_block_by_id(self, block_id: str) -> Block:
        block = self._blocks_by_id.get(block_id)
        if block is None:
            raise GatewayError(f"failed to get block by ID {block_id}: block not found")
        return copy.deepcopy(block)

    def get_block_by_height(self, height: int) -> Block:
        if height < 0 or height >= len(self._blocks):
            raise GatewayError(f"failed to get block by height {height}: block not found")
        return copy.deepcopy(self._blocks[height])

    def get_events(self, event_type: str, start_height: int, end_height: int) -> List[BlockEvents]:
        block_events = []
        for block in self._blocks[start_height : end_height + 1]:
            events = [e for e in self._events.get(block.height, []) if e.type == event_type]
            block_events.append(
                BlockEvents(
                    block_id=block.id,
                    height=block.height,
                    timestamp=block.timestamp,
                    events=copy.deepcopy(events),
                )
            )
        return block_events

    def get_collection(self, collection_id: str) -> Collection:
        collection = self._collections.get(collection_id)
        if collection is None:
            raise GatewayError(f"failed to get collection {collection_id}: collection not found")
        return copy.deepcopy(collection)

    def ping(self) -> None:
        return None
