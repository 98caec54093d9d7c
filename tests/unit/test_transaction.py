"""Unit tests for transaction encoding, signing and roles."""

import pytest

from flowkit import cadence
from flowkit.account import Account
from flowkit.address import Address
from flowkit.crypto import HashAlgorithm, SignatureAlgorithm, generate_private_key
from flowkit.exceptions import ParseError, RoleMismatch, UnpreparedTransaction
from flowkit.keys import HexAccountKey
from flowkit.transaction import (
    FlowTransaction,
    SignerRole,
    Transaction,
    TransactionRoles,
    new_add_account_contract_transaction,
    new_create_account_transaction,
)
from flowkit.types import AccountKeyInfo, Block, FlowAccount

SINGLE_SIGNER_SCRIPT = "transaction {\n  prepare(signer: AuthAccount) {}\n}"


def make_account(name: str, address: str, seed: bytes) -> Account:
    key = generate_private_key(SignatureAlgorithm.ECDSA_P256, seed.ljust(32, b"0"))
    return Account(name, Address.from_hex(address), HexAccountKey.from_private_key(0, HashAlgorithm.SHA3_256, key))


@pytest.fixture
def alice() -> Account:
    return make_account("alice", "f8d6e0586b0a20c7", b"alice")


@pytest.fixture
def bob() -> Account:
    return make_account("bob", "01cf0e2f2f715450", b"bob")


@pytest.fixture
def carol() -> Account:
    return make_account("carol", "179b6b1cb6755e31", b"carol")


def prepared(proposer: Account, payer: Account, script: str = SINGLE_SIGNER_SCRIPT) -> Transaction:
    tx = Transaction()
    tx.set_script_with_args(script, [cadence.String("hello")])
    tx.set_block_reference(Block(id="ab" * 32, parent_id="", height=1, timestamp=None))
    tx.set_gas_limit(1000)
    tx.set_proposer(
        FlowAccount(
            address=proposer.address,
            keys=[
                AccountKeyInfo(
                    index=0,
                    public_key=proposer.key.signer().public_key().hex(),
                    sig_algo=SignatureAlgorithm.ECDSA_P256,
                    hash_algo=HashAlgorithm.SHA3_256,
                    weight=1000,
                    sequence_number=7,
                )
            ],
        ),
        0,
    )
    tx.set_payer(payer.address)
    return tx


class TestFlowTransaction:
    """Test the wire-level transaction."""

    def test_encode_decode(self, alice, bob):
        """Test that a signed transaction decodes to itself."""
        tx = prepared(alice, bob)
        tx.add_authorizer(alice.address)
        tx.sign_with_role(alice, SignerRole.AUTHORIZER)
        tx.sign_with_role(bob, SignerRole.PAYER)

        decoded = FlowTransaction.decode(tx.tx.encode())
        assert decoded == tx.tx
        assert decoded.proposal_key.sequence_number == 7
        assert decoded.decoded_arguments() == [cadence.String("hello")]

    def test_id_depends_on_payload(self, alice):
        """Test that ids are 32-byte hashes that change with the payload."""
        tx = prepared(alice, alice)
        first = tx.id()
        tx.set_gas_limit(2000)

        assert len(first) == 64
        assert tx.id() != first

    def test_envelope_freezes_payload(self, alice):
        """Test that the payload cannot change after the envelope is signed."""
        tx = prepared(alice, alice)
        tx.set_signer(alice)
        tx.sign()

        with pytest.raises(UnpreparedTransaction):
            tx.set_gas_limit(5)

    def test_signer_list(self, alice, bob, carol):
        """Test distinct signers in proposer, payer, authorizer order."""
        tx = prepared(alice, bob)
        tx.add_authorizer(carol.address)
        tx.add_authorizer(alice.address)
        assert tx.tx.signer_list() == [alice.address, bob.address, carol.address]

    def test_signatures_verify(self, alice, bob):
        """Test that payload and envelope signatures cover their messages."""
        tx = prepared(alice, bob)
        tx.sign_with_role(alice, SignerRole.PROPOSER)
        tx.sign_with_role(bob, SignerRole.PAYER)

        payload_sig = tx.tx.payload_signatures[0]
        envelope_sig = tx.tx.envelope_signatures[0]
        assert alice.key.signer().public_key().verify(
            payload_sig.signature, tx.tx.payload_message(), HashAlgorithm.SHA3_256
        )
        assert bob.key.signer().public_key().verify(
            envelope_sig.signature, tx.tx.envelope_message(), HashAlgorithm.SHA3_256
        )

    def test_decode_invalid(self):
        """Test that non-transaction data raises ValueError."""
        with pytest.raises(ValueError):
            FlowTransaction.decode(bytes.fromhex("c0"))


class TestTransactionBuilder:
    """Test role rules of the transaction builder."""

    def test_from_payload(self, alice):
        """Test rebuilding a transaction from its hex form."""
        tx = prepared(alice, alice)
        assert Transaction.from_payload(tx.encode()).id() == tx.id()
        assert Transaction.from_payload(tx.encode().encode() + b"\n").id() == tx.id()

    @pytest.mark.parametrize("payload", ["zz", "c0"])
    def test_from_invalid_payload(self, payload):
        """Test that invalid payloads raise ParseError."""
        with pytest.raises(ParseError):
            Transaction.from_payload(payload)

    def test_signer_without_role(self, alice, bob):
        """Test that an account with no role cannot sign."""
        tx = prepared(alice, alice)
        with pytest.raises(RoleMismatch, match="not a valid signer"):
            tx.set_signer(bob)

    def test_payer_mismatch(self, alice, bob):
        """Test that a payer role must match the transaction payer."""
        tx = prepared(alice, alice)
        with pytest.raises(RoleMismatch, match="does not match signer"):
            tx.sign_with_role(bob, SignerRole.PAYER)

    def test_authorizer_added(self, alice, bob):
        """Test that signing as authorizer adds the authorizer."""
        tx = prepared(alice, alice)
        tx.sign_with_role(bob, SignerRole.AUTHORIZER)
        assert tx.tx.authorizers == [bob.address]
        assert tx.tx.payload_signatures[0].address == bob.address

    def test_sign_chooses_envelope_for_payer(self, alice, bob):
        """Test that the payer signs the envelope and others the payload."""
        tx = prepared(alice, bob)
        tx.set_signer(alice)
        tx.sign()
        tx.set_signer(bob)
        tx.sign()

        assert [s.address for s in tx.tx.payload_signatures] == [alice.address]
        assert [s.address for s in tx.tx.envelope_signatures] == [bob.address]

    def test_sign_without_signer(self, alice):
        """Test that signing needs a signer."""
        with pytest.raises(UnpreparedTransaction):
            prepared(alice, alice).sign()

    def test_add_authorizers(self, alice):
        """Test that authorizers must match the prepare parameters."""
        tx = prepared(alice, alice)
        with pytest.raises(ParseError, match="required authorizers 1, but provided 0"):
            tx.add_authorizers([])

        tx.add_authorizers([alice.address])
        assert tx.tx.authorizers == [alice.address]

    def test_add_authorizers_without_prepare(self, alice, bob):
        """Test that scripts without prepare take no authorizers."""
        tx = prepared(alice, alice, script="transaction { execute {} }")
        tx.add_authorizers([bob.address])
        assert tx.tx.authorizers == []

    def test_empty_authorizer(self):
        """Test that empty authorizer addresses are rejected."""
        with pytest.raises(ValueError):
            Transaction().add_authorizer(Address(0))

    def test_proposer_key_missing(self, alice):
        """Test that the proposer must have the key index."""
        with pytest.raises(UnpreparedTransaction):
            Transaction().set_proposer(FlowAccount(address=alice.address), 0)

    def test_ensure_prepared(self, alice):
        """Test the checks on reference block, proposer and payer."""
        tx = Transaction()
        with pytest.raises(UnpreparedTransaction, match="reference block"):
            tx.ensure_prepared()

        tx.set_block_reference(Block(id="01" * 32, parent_id="", height=1, timestamp=None))
        with pytest.raises(UnpreparedTransaction, match="proposer"):
            tx.ensure_prepared()

        prepared(alice, alice).ensure_prepared()

    def test_ensure_prepared_gas_limit(self, alice):
        """Test that a transaction without a gas limit is not prepared."""
        tx = prepared(alice, alice)
        tx.set_gas_limit(0)

        with pytest.raises(UnpreparedTransaction, match="gas limit"):
            tx.ensure_prepared()


class TestRoles:
    """Test the distinct signers of transaction roles."""

    def test_payer_signs_last(self, alice, bob, carol):
        """Test that signers are distinct and the payer comes last."""
        roles = TransactionRoles(proposer=alice, authorizers=[bob, alice, carol], payer=carol)
        assert [s.name for s in roles.signers()] == ["alice", "bob", "carol"]

    def test_single(self, alice):
        """Test a single account in every role."""
        assert TransactionRoles.single(alice).signers() == [alice]


class TestTemplates:
    """Test the account management transaction templates."""

    def test_add_contract_with_args(self, alice):
        """Test that initializer arguments extend the template."""
        tx = new_add_account_contract_transaction(
            alice, "Kibble", "pub contract Kibble {}", [cadence.Integer(5, "UInt64")]
        )

        script = tx.tx.script.decode("utf-8")
        assert "code: String ,arg0:UInt64" in script
        assert "code.decodeHex() ,arg0" in script
        assert tx.tx.decoded_arguments() == [
            cadence.String("Kibble"),
            cadence.String("pub contract Kibble {}".encode("utf-8").hex()),
            cadence.Integer(5, "UInt64"),
        ]
        assert tx.tx.payer == alice.address
        assert tx.tx.authorizers == [alice.address]

    def test_create_account(self, alice, bob):
        """Test the arguments of the create account template."""
        key = AccountKeyInfo(
            index=0,
            public_key=bob.key.signer().public_key().hex(),
            sig_algo=SignatureAlgorithm.ECDSA_P256,
            hash_algo=HashAlgorithm.SHA3_256,
            weight=1000,
        )
        tx = new_create_account_transaction(alice, [key], [])

        keys, contracts = tx.tx.decoded_arguments()
        assert len(keys.to_python()) == 1
        assert contracts.to_python() == {}
