"""Key generation and decoding."""

import logging
import os
from typing import Optional

from ..constants import MIN_SEED_LENGTH
from ..crypto import (
    HashAlgorithm,
    PrivateKey,
    SignatureAlgorithm,
    decode_public_key_pem,
    generate_private_key,
)
from ..exceptions import BadKeyConfig
from ..transaction import decode_account_key
from ..types import AccountKeyInfo

# Weight reported for keys decoded without on-chain information
UNKNOWN_WEIGHT = -1


class Keys:
    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def generate(
        self, seed: str = "", sig_algo: SignatureAlgorithm = SignatureAlgorithm.ECDSA_P256
    ) -> PrivateKey:
        """
        Generate a private key, from a random seed unless one is given.

        Raises:
            BadKeyConfig: If the given seed is too short
        """
        raw_seed = seed.encode("utf-8") if seed else os.urandom(MIN_SEED_LENGTH)
        try:
            return generate_private_key(sig_algo, raw_seed)
        except BadKeyConfig as e:
            raise BadKeyConfig(f"failed to generate private key: {e}") from e

    def decode_rlp(self, public_key: str) -> AccountKeyInfo:
        """
        Decode an RLP encoded account key.

        Raises:
            BadKeyConfig: If the value is not hex or not an encoded account key
        """
        try:
            raw = bytes.fromhex(public_key.strip().removeprefix("0x"))
        except ValueError as e:
            raise BadKeyConfig(f"failed to decode public key: {e}") from e

        try:
            return decode_account_key(raw)
        except (ValueError, TypeError) as e:
            raise BadKeyConfig(f"failed to decode: {e}") from e

    def decode_pem(self, pem: str, sig_algo: SignatureAlgorithm) -> AccountKeyInfo:
        """
        Decode a PEM public key into an account key of unknown weight.

        Raises:
            BadKeyConfig: If the PEM is malformed or for another algorithm
        """
        public_key = decode_public_key_pem(sig_algo, pem)
        return AccountKeyInfo(
            index=0,
            public_key=public_key.hex(),
            sig_algo=sig_algo,
            hash_algo=HashAlgorithm.SHA3_256,
            weight=UNKNOWN_WEIGHT,
        )
