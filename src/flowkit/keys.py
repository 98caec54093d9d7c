"""Account key material: in-memory hex keys and Google KMS key references."""

import logging
import os
import re
import subprocess
from abc import ABC, abstractmethod
from typing import Dict, Optional

from ecdsa.util import sigdecode_der, sigencode_string

from . import config
from .constants import GOOGLE_CREDENTIALS_ENV
from .crypto import (
    HashAlgorithm,
    PrivateKey,
    PublicKey,
    SignatureAlgorithm,
    decode_public_key_pem,
)
from .exceptions import BadKeyConfig, MissingCredentials

logger = logging.getLogger(__name__)

KMS_RESOURCE_PATTERN = re.compile(
    r"^projects/(?P<project>[^/]+)"
    r"/locations/(?P<location>[^/]+)"
    r"/keyRings/(?P<key_ring>[^/]+)"
    r"/cryptoKeys/(?P<key>[^/]+)"
    r"/cryptoKeyVersions/(?P<version>[^/]+)$"
)

_CREDENTIALS_PATH_PATTERN = re.compile(r"(?s)\[(.*)\]")


class Signer(ABC):
    """Signing capability over raw messages."""

    @abstractmethod
    def sign(self, message: bytes) -> bytes:
        """Hash and sign a message, returning the r||s signature."""

    @abstractmethod
    def public_key(self) -> PublicKey: ...


class InMemorySigner(Signer):
    def __init__(self, private_key: PrivateKey, hash_algo: HashAlgorithm):
        self._private_key = private_key
        self.hash_algo = hash_algo

    def sign(self, message: bytes) -> bytes:
        return self._private_key.sign(message, self.hash_algo)

    def public_key(self) -> PublicKey:
        return self._private_key.public_key()


def parse_kms_resource_id(resource_id: str) -> Dict[str, str]:
    """
    Split a KMS key version resource ID into its parts.

    Raises:
        BadKeyConfig: If the resource ID is malformed
    """
    match = KMS_RESOURCE_PATTERN.match(resource_id or "")
    if not match:
        raise BadKeyConfig(
            f"invalid KMS resource ID {resource_id}, expected "
            "projects/<p>/locations/<l>/keyRings/<r>/cryptoKeys/<k>/cryptoKeyVersions/<v>"
        )
    return match.groupdict()


def gcloud_application_signin(project: str) -> None:
    """
    Make sure Google application default credentials are available.

    Does nothing when GOOGLE_APPLICATION_CREDENTIALS is already set. Otherwise
    runs the gcloud login helper, parses the credentials file path from its
    output and exports it to the process environment.

    Raises:
        MissingCredentials: If gcloud is unavailable, fails, or prints no path
    """
    if os.environ.get(GOOGLE_CREDENTIALS_ENV):
        return

    command = ["gcloud", "auth", "application-default", "login", f"--project={project}"]
    logger.info("signing in to Google Cloud for project %s", project)
    try:
        result = subprocess.run(command, check=True, capture_output=True, text=True)
    except FileNotFoundError as e:
        raise MissingCredentials(
            "gcloud not found, install the Google Cloud SDK to use KMS keys"
        ) from e
    except subprocess.CalledProcessError as e:
        raise MissingCredentials(f"gcloud sign-in failed: {e.stderr or e}") from e

    match = _CREDENTIALS_PATH_PATTERN.search(result.stdout + result.stderr)
    if not match:
        raise MissingCredentials("could not find credentials path in gcloud output")

    os.environ[GOOGLE_CREDENTIALS_ENV] = match.group(1)


def _kms_client():
    try:
        from google.cloud import kms
    except ImportError as e:
        raise MissingCredentials(
            "google-cloud-kms is required for KMS keys, install flowkit[kms]"
        ) from e
    return kms.KeyManagementServiceClient()


class KmsSigner(Signer):
    """Signer delegating to a Google Cloud KMS asymmetric key version."""

    def __init__(self, resource_id: str, sig_algo: SignatureAlgorithm, hash_algo: HashAlgorithm):
        self.resource_id = resource_id
        self.sig_algo = sig_algo
        self.hash_algo = hash_algo
        self._client = _kms_client()
        self._public_key: Optional[PublicKey] = None

    def sign(self, message: bytes) -> bytes:
        digest = self.hash_algo.digest(message)
        response = self._client.asymmetric_sign(
            request={"name": self.resource_id, "digest": {"sha256": digest}}
        )
        order = self.sig_algo.curve.order
        r, s = sigdecode_der(response.signature, order)
        return sigencode_string(r, s, order)

    def public_key(self) -> PublicKey:
        if self._public_key is None:
            response = self._client.get_public_key(request={"name": self.resource_id})
            self._public_key = decode_public_key_pem(self.sig_algo, response.pem)
        return self._public_key


class AccountKey(ABC):
    """Key of a configured account, producing a signer on demand."""

    def __init__(self, index: int, sig_algo: SignatureAlgorithm, hash_algo: HashAlgorithm):
        self.index = index
        self.sig_algo = sig_algo
        self.hash_algo = hash_algo

    @property
    @abstractmethod
    def type(self) -> config.KeyType: ...

    @abstractmethod
    def validate(self) -> None:
        """
        Raises:
            BadKeyConfig: If the key is incomplete or malformed
        """

    @abstractmethod
    def signer(self) -> Signer: ...

    @abstractmethod
    def to_config(self) -> config.AccountKey: ...


class HexAccountKey(AccountKey):
    def __init__(
        self,
        index: int,
        sig_algo: SignatureAlgorithm,
        hash_algo: HashAlgorithm,
        private_key: Optional[PrivateKey],
    ):
        super().__init__(index, sig_algo, hash_algo)
        self.private_key = private_key

    @classmethod
    def from_private_key(
        cls, index: int, hash_algo: HashAlgorithm, private_key: PrivateKey
    ) -> "HexAccountKey":
        return cls(index, private_key.sig_algo, hash_algo, private_key)

    @property
    def type(self) -> config.KeyType:
        return config.KeyType.HEX

    def validate(self) -> None:
        if self.private_key is None:
            raise BadKeyConfig("missing private key for hex account key")
        if self.index < 0:
            raise BadKeyConfig(f"invalid key index {self.index}")

    def signer(self) -> Signer:
        self.validate()
        return InMemorySigner(self.private_key, self.hash_algo)

    def private_key_hex(self) -> str:
        return self.private_key.hex() if self.private_key else ""

    def to_config(self) -> config.AccountKey:
        return config.AccountKey(
            type=config.KeyType.HEX,
            index=self.index,
            sig_algo=self.sig_algo,
            hash_algo=self.hash_algo,
            private_key=self.private_key,
        )


class KmsAccountKey(AccountKey):
    def __init__(
        self,
        index: int,
        sig_algo: SignatureAlgorithm,
        hash_algo: HashAlgorithm,
        resource_id: str,
    ):
        super().__init__(index, sig_algo, hash_algo)
        self.resource_id = resource_id

    @property
    def type(self) -> config.KeyType:
        return config.KeyType.GOOGLE_KMS

    def validate(self) -> None:
        parse_kms_resource_id(self.resource_id)

    def signer(self) -> Signer:
        project = parse_kms_resource_id(self.resource_id)["project"]
        gcloud_application_signin(project)
        return KmsSigner(self.resource_id, self.sig_algo, self.hash_algo)

    def to_config(self) -> config.AccountKey:
        return config.AccountKey(
            type=config.KeyType.GOOGLE_KMS,
            index=self.index,
            sig_algo=self.sig_algo,
            hash_algo=self.hash_algo,
            resource_id=self.resource_id,
        )


def account_key_from_config(key: config.AccountKey) -> AccountKey:
    """
    Build a runtime account key from its configuration.

    Raises:
        BadKeyConfig: If the key type is not supported
    """
    match key.type:
        case config.KeyType.HEX:
            return HexAccountKey(key.index, key.sig_algo, key.hash_algo, key.private_key)
        case config.KeyType.GOOGLE_KMS:
            return KmsAccountKey(key.index, key.sig_algo, key.hash_algo, key.resource_id)
    raise BadKeyConfig(f"invalid key type {key.type}")
