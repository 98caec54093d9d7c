"""
Transaction encoding, signing and the builder used by the services.

A FlowTransaction is the wire-level transaction: payload fields plus payload
and envelope signatures. The Transaction builder wraps it with the signing
account and enforces role rules.
"""

import hashlib
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple, Union

import rlp
from rlp.exceptions import RLPException
from rlp.sedes import big_endian_int

from . import cadence
from .account import Account
from .address import EMPTY_ADDRESS, Address
from .constants import MAX_GAS_LIMIT
from .crypto import HashAlgorithm, SignatureAlgorithm
from .exceptions import ParseError, RoleMismatch, UnpreparedTransaction
from .keys import Signer
from .program import Program
from .types import AccountKeyInfo, Block, FlowAccount

logger = logging.getLogger(__name__)

TRANSACTION_DOMAIN_TAG = b"FLOW-V0.0-transaction".ljust(32, b"\x00")

REFERENCE_BLOCK_ID_LENGTH = 32


def _rlp_decode(data: bytes) -> Any:
    try:
        return rlp.decode(data)
    except RLPException as e:
        raise ValueError(f"invalid RLP encoding: {e}") from e


def _rlp_int(item: Any) -> int:
    try:
        return big_endian_int.deserialize(item)
    except RLPException as e:
        raise ValueError(f"invalid RLP integer: {e}") from e


CREATE_ACCOUNT_TEMPLATE = """
transaction(publicKeys: [String], contracts: {String: String}) {
	prepare(signer: AuthAccount) {
		let acct = AuthAccount(payer: signer)
		for key in publicKeys {
			acct.addPublicKey(key.decodeHex())
		}
		for contract in contracts.keys {
			acct.contracts.add(name: contract, code: contracts[contract]!.decodeHex())
		}
	}
}"""

# Both %s slots are extended with initializer arguments
ADD_ACCOUNT_CONTRACT_TEMPLATE = """
transaction(name: String, code: String %s) {
	prepare(signer: AuthAccount) {
		signer.contracts.add(name: name, code: code.decodeHex() %s)
	}
}"""

UPDATE_ACCOUNT_CONTRACT_TEMPLATE = """
transaction(name: String, code: String) {
	prepare(signer: AuthAccount) {
		signer.contracts.update__experimental(name: name, code: code.decodeHex())
	}
}"""

REMOVE_ACCOUNT_CONTRACT_TEMPLATE = """
transaction(name: String) {
	prepare(signer: AuthAccount) {
		signer.contracts.remove(name: name)
	}
}"""


@dataclass
class ProposalKey:
    address: Address = EMPTY_ADDRESS
    key_index: int = 0
    sequence_number: int = 0


@dataclass
class TransactionSignature:
    address: Address
    key_index: int
    signature: bytes


@dataclass
class FlowTransaction:
    """
    Wire-level transaction.

    Once an envelope signature is attached, every payload field is frozen.
    """

    script: bytes = b""
    arguments: List[bytes] = field(default_factory=list)
    reference_block_id: bytes = b""
    gas_limit: int = 0
    proposal_key: ProposalKey = field(default_factory=ProposalKey)
    payer: Address = EMPTY_ADDRESS
    authorizers: List[Address] = field(default_factory=list)
    payload_signatures: List[TransactionSignature] = field(default_factory=list)
    envelope_signatures: List[TransactionSignature] = field(default_factory=list)

    def _check_mutable(self) -> None:
        if self.envelope_signatures:
            raise UnpreparedTransaction(
                "transaction envelope is already signed, payload can not be modified"
            )

    def set_script(self, script: Union[str, bytes]) -> None:
        self._check_mutable()
        self.script = script.encode("utf-8") if isinstance(script, str) else script

    def add_argument(self, argument: cadence.Value) -> None:
        self._check_mutable()
        self.arguments.append(cadence.encode_json(argument))

    def set_reference_block_id(self, block_id: Union[str, bytes]) -> None:
        self._check_mutable()
        self.reference_block_id = bytes.fromhex(block_id) if isinstance(block_id, str) else block_id

    def set_gas_limit(self, gas_limit: int) -> None:
        self._check_mutable()
        self.gas_limit = gas_limit

    def set_proposal_key(self, address: Address, key_index: int, sequence_number: int) -> None:
        self._check_mutable()
        self.proposal_key = ProposalKey(address, key_index, sequence_number)

    def set_payer(self, address: Address) -> None:
        self._check_mutable()
        self.payer = address

    def add_authorizer(self, address: Address) -> None:
        self._check_mutable()
        self.authorizers.append(address)

    def decoded_arguments(self) -> List[cadence.Value]:
        return [cadence.decode_json(arg) for arg in self.arguments]

    def signer_list(self) -> List[Address]:
        """Distinct signing addresses: proposer, payer, then authorizers."""
        signers: List[Address] = []
        candidates = [self.proposal_key.address, self.payer, *self.authorizers]
        for address in candidates:
            if not address.is_empty() and address not in signers:
                signers.append(address)
        return signers

    def _payload_form(self) -> list:
        return [
            self.script,
            list(self.arguments),
            self.reference_block_id.rjust(REFERENCE_BLOCK_ID_LENGTH, b"\x00"),
            self.gas_limit,
            self.proposal_key.address.to_bytes(),
            self.proposal_key.key_index,
            self.proposal_key.sequence_number,
            self.payer.to_bytes(),
            [a.to_bytes() for a in self.authorizers],
        ]

    def _signatures_form(self, signatures: List[TransactionSignature]) -> list:
        signers = self.signer_list()
        form = []
        for sig in signatures:
            if sig.address not in signers:
                raise RoleMismatch(f"signature from {sig.address.hex()} is not from a transaction signer")
            form.append([signers.index(sig.address), sig.key_index, sig.signature])
        return sorted(form, key=lambda s: (s[0], s[1]))

    def payload_message(self) -> bytes:
        return TRANSACTION_DOMAIN_TAG + rlp.encode(self._payload_form())

    def envelope_message(self) -> bytes:
        return TRANSACTION_DOMAIN_TAG + rlp.encode(
            [self._payload_form(), self._signatures_form(self.payload_signatures)]
        )

    def sign_payload(self, address: Address, key_index: int, signer: Signer) -> None:
        self._check_mutable()
        signature = signer.sign(self.payload_message())
        self.payload_signatures.append(TransactionSignature(address, key_index, signature))

    def sign_envelope(self, address: Address, key_index: int, signer: Signer) -> None:
        signature = signer.sign(self.envelope_message())
        self.envelope_signatures.append(TransactionSignature(address, key_index, signature))

    def encode(self) -> bytes:
        """Canonical encoding: payload with payload and envelope signatures."""
        return rlp.encode(
            [
                self._payload_form(),
                self._signatures_form(self.payload_signatures),
                self._signatures_form(self.envelope_signatures),
            ]
        )

    def id(self) -> str:
        return hashlib.sha3_256(self.encode()).hexdigest()

    @classmethod
    def decode(cls, data: bytes) -> "FlowTransaction":
        """
        Decode a canonically encoded transaction.

        Raises:
            ValueError: If the data is not a valid transaction encoding
        """
        decoded = _rlp_decode(data)
        if not isinstance(decoded, (list, tuple)) or len(decoded) != 3:
            raise ValueError("invalid transaction encoding")
        payload, payload_sigs, envelope_sigs = decoded
        if not isinstance(payload, (list, tuple)) or len(payload) != 9:
            raise ValueError("invalid transaction payload encoding")

        script, arguments, ref_block, gas, proposer, key_index, sequence, payer, authorizers = payload
        tx = cls(
            script=script,
            arguments=list(arguments),
            reference_block_id=ref_block,
            gas_limit=_rlp_int(gas),
            proposal_key=ProposalKey(
                Address.from_bytes(proposer), _rlp_int(key_index), _rlp_int(sequence)
            ),
            payer=Address.from_bytes(payer),
            authorizers=[Address.from_bytes(a) for a in authorizers],
        )

        signers = tx.signer_list()
        for target, raw_sigs in (
            (tx.payload_signatures, payload_sigs),
            (tx.envelope_signatures, envelope_sigs),
        ):
            for signer_index, sig_key_index, signature in raw_sigs:
                index = _rlp_int(signer_index)
                if index >= len(signers):
                    raise ValueError(f"invalid signer index {index}")
                target.append(TransactionSignature(signers[index], _rlp_int(sig_key_index), signature))

        return tx


class SignerRole(Enum):
    AUTHORIZER = "authorizer"
    PROPOSER = "proposer"
    PAYER = "payer"


class Transaction:
    """
    Builder of a transaction signed by project accounts.

    Args:
        tx: Wire transaction to wrap, a new empty one by default
    """

    def __init__(self, tx: Optional[FlowTransaction] = None):
        self.tx = tx or FlowTransaction()
        self.signer: Optional[Account] = None
        self.proposer: Optional[FlowAccount] = None

    @classmethod
    def from_payload(cls, payload: Union[str, bytes]) -> "Transaction":
        """
        Build a transaction from its hex encoding.

        Raises:
            ParseError: If the payload is not hex or not a transaction
        """
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")
        payload = payload.strip()

        try:
            raw = bytes.fromhex(payload)
        except ValueError as e:
            raise ParseError(f"failed to decode partial transaction from {payload}: {e}") from e

        try:
            return cls(FlowTransaction.decode(raw))
        except (ValueError, TypeError) as e:
            raise ParseError(f"failed to decode transaction from {payload}: {e}") from e

    def encode(self) -> str:
        """Hex form of the transaction, as passed between signers."""
        return self.tx.encode().hex()

    def id(self) -> str:
        return self.tx.id()

    def set_script_with_args(self, script: Union[str, bytes], args: Sequence[cadence.Value]) -> None:
        self.tx.set_script(script)
        self.add_arguments(args)

    def add_arguments(self, args: Sequence[cadence.Value]) -> None:
        for arg in args:
            self.add_argument(arg)

    def add_argument(self, arg: cadence.Value) -> None:
        self.tx.add_argument(arg)

    def _valid_signer(self, address: Address) -> bool:
        return (
            self.tx.proposal_key.address == address
            or self.tx.payer == address
            or address in self.tx.authorizers
        )

    def set_signer(self, account: Account) -> None:
        """
        Raises:
            BadKeyConfig: If the account key is not valid
            RoleMismatch: If the account has no role in the transaction
        """
        account.key.validate()

        if not self._valid_signer(account.address):
            raise RoleMismatch(
                f"not a valid signer {account.address.hex()}, "
                f"proposer: {self.tx.proposal_key.address.hex()}, "
                f"payer: {self.tx.payer.hex()}, "
                f"authorizers: [{' '.join(a.hex() for a in self.tx.authorizers)}]"
            )
        self.signer = account

    def set_proposer(self, proposer: FlowAccount, key_index: int) -> None:
        """
        Raises:
            UnpreparedTransaction: If the proposer has no key at the index
        """
        if len(proposer.keys) <= key_index:
            raise UnpreparedTransaction(f"failed to retrieve proposer key at index {key_index}")

        self.proposer = proposer
        key = proposer.keys[key_index]
        self.tx.set_proposal_key(proposer.address, key.index, key.sequence_number)

    def set_payer(self, address: Address) -> None:
        self.tx.set_payer(address)

    def set_block_reference(self, block: Block) -> None:
        self.tx.set_reference_block_id(block.id)

    def set_gas_limit(self, gas_limit: int) -> None:
        self.tx.set_gas_limit(gas_limit)

    def add_authorizer(self, address: Address) -> None:
        """
        Raises:
            ValueError: If the address is empty
        """
        if address.is_empty():
            raise ValueError("authorizer address can not be empty")
        self.tx.add_authorizer(address)

    def add_authorizers(self, authorizers: Sequence[Address]) -> None:
        """
        Add authorizers, checking them against the prepare block parameters.

        Without a prepare block no authorizers are added.

        Raises:
            ParseError: If the script does not declare exactly one transaction
                or the authorizer count does not match
        """
        parameters = Program(self.tx.script).prepare_parameters()
        if parameters is None:
            parameters = []
            authorizers = []

        if len(parameters) != len(authorizers):
            raise ParseError(
                "provided authorizers length mismatch, required authorizers "
                f"{len(parameters)}, but provided {len(authorizers)}"
            )

        for authorizer in authorizers:
            self.add_authorizer(authorizer)

    def _should_sign_envelope(self) -> bool:
        return self.signer is not None and self.signer.address == self.tx.payer

    def sign(self) -> "Transaction":
        """
        Sign with the current signer: the envelope when it is the payer,
        otherwise the payload.

        Raises:
            UnpreparedTransaction: If no signer is set
        """
        if self.signer is None:
            raise UnpreparedTransaction("missing transaction signer")

        key = self.signer.key
        signer = key.signer()
        if self._should_sign_envelope():
            self.tx.sign_envelope(self.signer.address, key.index, signer)
        else:
            self.tx.sign_payload(self.signer.address, key.index, signer)

        logger.debug("signed transaction %s with %s", self.id(), self.signer.name)
        return self

    def sign_with_role(self, account: Account, role: SignerRole) -> "Transaction":
        """
        Sign in a given role.

        Authorizers are appended to the authorizer list when missing. Payers
        must match the payer of the transaction.

        Raises:
            RoleMismatch: If a payer signs a transaction with a different payer
        """
        if role == SignerRole.PAYER and self.tx.payer != account.address:
            raise RoleMismatch(
                f"payer {self.tx.payer.hex()} does not match signer {account.address.hex()}"
            )
        if role == SignerRole.AUTHORIZER and account.address not in self.tx.authorizers:
            self.add_authorizer(account.address)

        self.set_signer(account)
        key = account.key
        if role == SignerRole.PAYER:
            self.tx.sign_envelope(account.address, key.index, key.signer())
        else:
            self.tx.sign_payload(account.address, key.index, key.signer())
        return self

    def ensure_prepared(self) -> None:
        """
        Raises:
            UnpreparedTransaction: If the reference block, proposer or payer is
                missing, or the gas limit is not positive
        """
        if not self.tx.reference_block_id.strip(b"\x00"):
            raise UnpreparedTransaction("transaction is missing a reference block")
        if self.tx.proposal_key.address.is_empty():
            raise UnpreparedTransaction("transaction is missing a proposer")
        if self.tx.payer.is_empty():
            raise UnpreparedTransaction("transaction is missing a payer")
        if self.tx.gas_limit <= 0:
            raise UnpreparedTransaction("transaction gas limit must be positive")


@dataclass
class TransactionRoles:
    """Accounts filling each transaction role."""

    proposer: Account
    authorizers: List[Account]
    payer: Account

    @classmethod
    def single(cls, account: Account) -> "TransactionRoles":
        return cls(proposer=account, authorizers=[account], payer=account)

    def signers(self) -> List[Account]:
        """
        Distinct signing accounts: proposer, authorizers, then the payer last.
        """
        signers: List[Account] = []
        for account in [self.proposer, *self.authorizers]:
            if account.address != self.payer.address and all(
                s.address != account.address for s in signers
            ):
                signers.append(account)
        signers.append(self.payer)
        return signers


def encode_account_key(key: AccountKeyInfo) -> bytes:
    """RLP encoding of an account key as added by the create-account template."""
    return rlp.encode(
        [bytes.fromhex(key.public_key), key.sig_algo.value, key.hash_algo.value, key.weight]
    )


def decode_account_key(data: bytes) -> AccountKeyInfo:
    """
    Raises:
        ValueError: If the data is not an encoded account key
    """
    decoded = _rlp_decode(data)
    if not isinstance(decoded, (list, tuple)) or len(decoded) != 4:
        raise ValueError("invalid account key encoding")
    public_key, sig_algo, hash_algo, weight = decoded
    return AccountKeyInfo(
        index=0,
        public_key=bytes(public_key).hex(),
        sig_algo=SignatureAlgorithm(_rlp_int(sig_algo)),
        hash_algo=HashAlgorithm(_rlp_int(hash_algo)),
        weight=_rlp_int(weight),
    )


def _from_template(script: str, args: List[cadence.Value], signer: Account) -> Transaction:
    tx = Transaction()
    tx.set_script_with_args(script, args)
    tx.add_authorizer(signer.address)
    tx.set_payer(signer.address)
    tx.set_gas_limit(MAX_GAS_LIMIT)
    tx.set_signer(signer)
    return tx


def new_create_account_transaction(
    signer: Account,
    keys: Sequence[AccountKeyInfo],
    contracts: Sequence[Tuple[str, str]],
) -> Transaction:
    """
    Transaction creating a new account paid by the signer.

    Args:
        signer: Account paying for and authorizing the creation
        keys: Keys to add to the new account
        contracts: (name, source) pairs to deploy to the new account
    """
    public_keys = cadence.new_array([cadence.new_string(encode_account_key(k).hex()) for k in keys])
    contract_map = cadence.new_dictionary(
        [
            (cadence.new_string(name), cadence.new_string(source.encode("utf-8").hex()))
            for name, source in contracts
        ]
    )
    return _from_template(CREATE_ACCOUNT_TEMPLATE, [public_keys, contract_map], signer)


def new_add_account_contract_transaction(
    signer: Account,
    name: str,
    source: str,
    args: Optional[Sequence[cadence.Value]] = None,
) -> Transaction:
    """Transaction adding a contract with optional initializer arguments."""
    args = list(args or [])
    params = "".join(f",arg{i}:{arg.type_id()}" for i, arg in enumerate(args))
    call_args = "".join(f",arg{i}" for i in range(len(args)))
    script = ADD_ACCOUNT_CONTRACT_TEMPLATE % (params, call_args)

    return _from_template(
        script,
        [cadence.new_string(name), cadence.new_string(source.encode("utf-8").hex()), *args],
        signer,
    )


def new_update_account_contract_transaction(signer: Account, name: str, source: str) -> Transaction:
    return _from_template(
        UPDATE_ACCOUNT_CONTRACT_TEMPLATE,
        [cadence.new_string(name), cadence.new_string(source.encode("utf-8").hex())],
        signer,
    )


def new_remove_account_contract_transaction(signer: Account, name: str) -> Transaction:
    return _from_template(REMOVE_ACCOUNT_CONTRACT_TEMPLATE, [cadence.new_string(name)], signer)
