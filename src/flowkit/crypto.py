"""Signature and hash algorithms, and in-memory ECDSA keys."""

import hashlib
from enum import Enum

from ecdsa import (
    NIST256p,
    SECP256k1,
    BadSignatureError,
    MalformedPointError,
    SigningKey,
    VerifyingKey,
)
from ecdsa.der import UnexpectedDER
from ecdsa.util import sigdecode_string, sigencode_string

from .constants import MIN_SEED_LENGTH
from .exceptions import BadKeyConfig


class SignatureAlgorithm(Enum):
    """
    Supported signature algorithms.

    Values are the algorithm codes used in account keys on chain.
    """

    ECDSA_P256 = 2
    ECDSA_secp256k1 = 3

    @classmethod
    def from_string(cls, name: str) -> "SignatureAlgorithm":
        """
        Parse an algorithm name, case-insensitive.

        Raises:
            BadKeyConfig: If the name is not a supported algorithm
        """
        for algo in cls:
            if algo.name.lower() == (name or "").strip().lower():
                return algo
        raise BadKeyConfig(f"invalid signature algorithm {name}")

    @property
    def curve(self):
        return NIST256p if self is SignatureAlgorithm.ECDSA_P256 else SECP256k1


class HashAlgorithm(Enum):
    """
    Supported hash algorithms.

    Values are the algorithm codes used in account keys on chain.
    """

    SHA2_256 = 1
    SHA3_256 = 3

    @classmethod
    def from_string(cls, name: str) -> "HashAlgorithm":
        """
        Parse an algorithm name, case-insensitive.

        Raises:
            BadKeyConfig: If the name is not a supported algorithm
        """
        for algo in cls:
            if algo.name.lower() == (name or "").strip().lower():
                return algo
        raise BadKeyConfig(f"invalid hash algorithm {name}")

    def digest(self, message: bytes) -> bytes:
        if self is HashAlgorithm.SHA2_256:
            return hashlib.sha256(message).digest()
        return hashlib.sha3_256(message).digest()


class PublicKey:
    """ECDSA public key, encoded as raw 64-byte X||Y."""

    def __init__(self, verifying_key: VerifyingKey, sig_algo: SignatureAlgorithm):
        self._key = verifying_key
        self.sig_algo = sig_algo

    def to_bytes(self) -> bytes:
        return self._key.to_string()

    def hex(self) -> str:
        return self.to_bytes().hex()

    def verify(self, signature: bytes, message: bytes, hash_algo: HashAlgorithm) -> bool:
        try:
            return self._key.verify_digest(
                signature, hash_algo.digest(message), sigdecode=sigdecode_string
            )
        except BadSignatureError:
            return False

    def __eq__(self, other: object) -> bool:
        if isinstance(other, PublicKey):
            return self.sig_algo == other.sig_algo and self.to_bytes() == other.to_bytes()
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self.sig_algo, self.to_bytes()))

    def __repr__(self) -> str:
        return f"PublicKey({self.sig_algo.name}, {self.hex()})"


class PrivateKey:
    """ECDSA private key, encoded as raw 32-byte scalar."""

    def __init__(self, signing_key: SigningKey, sig_algo: SignatureAlgorithm):
        self._key = signing_key
        self.sig_algo = sig_algo

    def to_bytes(self) -> bytes:
        return self._key.to_string()

    def hex(self) -> str:
        return self.to_bytes().hex()

    def public_key(self) -> PublicKey:
        return PublicKey(self._key.get_verifying_key(), self.sig_algo)

    def sign(self, message: bytes, hash_algo: HashAlgorithm) -> bytes:
        """Hash the message and return the r||s signature."""
        return self._key.sign_digest_deterministic(
            hash_algo.digest(message),
            hashfunc=hashlib.sha256,
            sigencode=sigencode_string,
        )

    def __eq__(self, other: object) -> bool:
        if isinstance(other, PrivateKey):
            return self.sig_algo == other.sig_algo and self.to_bytes() == other.to_bytes()
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self.sig_algo, self.to_bytes()))

    def __str__(self) -> str:
        return "0x" + self.hex()

    def __repr__(self) -> str:
        return f"PrivateKey({self.sig_algo.name})"


def _strip_hex_prefix(value: str) -> str:
    value = value.strip()
    return value[2:] if value.startswith(("0x", "0X")) else value


def generate_private_key(sig_algo: SignatureAlgorithm, seed: bytes) -> PrivateKey:
    """
    Deterministically derive a private key from a seed.

    Args:
        sig_algo: Signature algorithm of the key
        seed: Seed bytes, at least MIN_SEED_LENGTH long

    Raises:
        BadKeyConfig: If the seed is too short
    """
    if len(seed) < MIN_SEED_LENGTH:
        raise BadKeyConfig(
            f"seed length must be at least {MIN_SEED_LENGTH} bytes, got {len(seed)}"
        )

    order = sig_algo.curve.order
    secret = int.from_bytes(hashlib.sha512(seed).digest(), "big") % (order - 1) + 1
    return PrivateKey(SigningKey.from_secret_exponent(secret, curve=sig_algo.curve), sig_algo)


def decode_private_key_hex(sig_algo: SignatureAlgorithm, value: str) -> PrivateKey:
    """
    Decode a hex-encoded private key.

    Raises:
        BadKeyConfig: If the value is not a valid key for the algorithm
    """
    try:
        raw = bytes.fromhex(_strip_hex_prefix(value))
        return PrivateKey(SigningKey.from_string(raw, curve=sig_algo.curve), sig_algo)
    except (ValueError, MalformedPointError) as e:
        raise BadKeyConfig(f"invalid private key: {e}") from e


def decode_public_key_hex(sig_algo: SignatureAlgorithm, value: str) -> PublicKey:
    """
    Decode a hex-encoded public key.

    Raises:
        BadKeyConfig: If the value is not a valid key for the algorithm
    """
    try:
        raw = bytes.fromhex(_strip_hex_prefix(value))
        return PublicKey(VerifyingKey.from_string(raw, curve=sig_algo.curve), sig_algo)
    except (ValueError, MalformedPointError) as e:
        raise BadKeyConfig(f"invalid public key: {e}") from e


def decode_public_key_pem(sig_algo: SignatureAlgorithm, pem: str) -> PublicKey:
    """
    Decode a PEM-encoded public key.

    Raises:
        BadKeyConfig: If the PEM is malformed or on another curve
    """
    try:
        key = VerifyingKey.from_pem(pem)
    except (ValueError, IndexError, MalformedPointError, UnexpectedDER) as e:
        raise BadKeyConfig(f"invalid PEM public key: {e}") from e

    if key.curve != sig_algo.curve:
        raise BadKeyConfig(f"PEM public key is not a {sig_algo.name} key")
    return PublicKey(key, sig_algo)
