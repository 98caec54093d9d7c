"""Shared pytest fixtures for flowkit tests."""

import json
from pathlib import Path
from typing import Any, Dict

import pytest

from flowkit.config import FileReaderWriter
from flowkit.crypto import HashAlgorithm, PrivateKey, SignatureAlgorithm, generate_private_key
from flowkit.gateway import EmulatorGateway, EmulatorKey
from flowkit.project import Project
from flowkit.services import Services

SERVICE_ADDRESS = "f8d6e0586b0a20c7"

NFT_INTERFACE = """
pub contract interface NonFungibleToken {
    pub var totalSupply: UInt64
}
"""

KIBBLE_CONTRACT = """
import NonFungibleToken from "./NonFungibleToken.cdc"

pub contract Kibble {
    pub var minted: UInt64

    init() {
        self.minted = 0
    }
}
"""


@pytest.fixture
def service_key() -> PrivateKey:
    """Return a deterministic emulator service account key."""
    return generate_private_key(SignatureAlgorithm.ECDSA_P256, b"flowkit-test-service-account-key")


@pytest.fixture
def user_key() -> PrivateKey:
    """Return a deterministic key for created accounts."""
    return generate_private_key(SignatureAlgorithm.ECDSA_P256, b"flowkit-test-user-account-key-01")


@pytest.fixture
def sample_config(service_key: PrivateKey) -> Dict[str, Any]:
    """Return a project configuration deploying Kibble and its interface."""
    return {
        "emulators": {"default": {"port": 3569, "serviceAccount": "emulator-account"}},
        "contracts": {
            "Kibble": "./contracts/Kibble.cdc",
            "NonFungibleToken": "./contracts/NonFungibleToken.cdc",
        },
        "networks": {
            "emulator": "127.0.0.1:3569",
            "testnet": "access.devnet.nodes.onflow.org:9000",
        },
        "accounts": {
            "emulator-account": {"address": SERVICE_ADDRESS, "key": service_key.hex()},
        },
        "deployments": {
            "emulator": {"emulator-account": ["Kibble", "NonFungibleToken"]},
        },
    }


@pytest.fixture
def project_dir(tmp_path: Path, sample_config: Dict[str, Any]) -> Path:
    """Create a temporary project directory with contracts and flow.json."""
    contracts = tmp_path / "contracts"
    contracts.mkdir()
    (contracts / "NonFungibleToken.cdc").write_text(NFT_INTERFACE)
    (contracts / "Kibble.cdc").write_text(KIBBLE_CONTRACT)

    with open(tmp_path / "flow.json", "w") as f:
        json.dump(sample_config, f, indent=2)
    return tmp_path


@pytest.fixture
def config_path(project_dir: Path) -> Path:
    """Return the path to the temporary project's flow.json."""
    return project_dir / "flow.json"


@pytest.fixture
def project(config_path: Path) -> Project:
    """Load the temporary project."""
    return Project.load([str(config_path)], FileReaderWriter())


@pytest.fixture
def emulator(service_key: PrivateKey) -> EmulatorGateway:
    """Create an in-process emulator whose service account uses service_key."""
    return EmulatorGateway(EmulatorKey(service_key.public_key(), HashAlgorithm.SHA3_256))


@pytest.fixture
def services(project: Project, emulator: EmulatorGateway) -> Services:
    """Return services bound to the temporary project and the emulator."""
    return Services(project, emulator)
