"""Unit tests for the configuration model, JSON parser, pre-processing and loader."""

import json
from pathlib import Path
from typing import Any, Dict

import pytest

from flowkit import cadence, config
from flowkit.config import processor
from flowkit.crypto import HashAlgorithm, SignatureAlgorithm
from flowkit.exceptions import (
    BadKeyConfig,
    ConfigMissing,
    NotFoundError,
    OutdatedFormat,
    ParseError,
    ValidationError,
)

KEY_A = "21c5dfdeb0ff03a7a73ef39788563b62c89adea67bbb21ab95e5f710bd1d40b7"
KEY_B = "dd72967fd2bd75234ae9037dd4694c1f00baad63a10c35172bf65fbb8ad74b47"


def write_json(path: Path, data: Dict[str, Any]) -> str:
    with open(path, "w") as f:
        json.dump(data, f)
    return str(path)


def new_loader(env=None) -> config.Loader:
    loader = config.Loader(config.FileReaderWriter(), env=env if env is not None else {})
    loader.add_parser(config.JSONParser())
    return loader


def simple_config(key: str = KEY_A) -> Dict[str, Any]:
    return {
        "networks": {"emulator": "127.0.0.1:3569"},
        "accounts": {"emulator-account": {"address": "f8d6e0586b0a20c7", "key": key}},
    }


class TestJSONParser:
    """Test JSON deserialization of each configuration section."""

    def test_simple_load(self):
        """Test a network and an account with a simple key."""
        conf = config.JSONParser().deserialize(json.dumps(simple_config()).encode())

        assert len(conf.accounts) == 1
        account = conf.accounts.by_name("emulator-account")
        assert account.address.hex() == "f8d6e0586b0a20c7"
        assert str(account.key.private_key) == "0x" + KEY_A
        assert account.key.sig_algo == SignatureAlgorithm.ECDSA_P256
        assert account.key.hash_algo == HashAlgorithm.SHA3_256
        assert conf.networks.by_name("emulator").host == "127.0.0.1:3569"

    def test_advanced_key(self):
        """Test an advanced hex key with explicit algorithms."""
        raw = {
            "accounts": {
                "admin": {
                    "address": "service",
                    "key": {
                        "type": "hex",
                        "index": 1,
                        "signatureAlgorithm": "ECDSA_secp256k1",
                        "hashAlgorithm": "SHA2_256",
                        "privateKey": KEY_A,
                    },
                }
            }
        }
        account = config.JSONParser().deserialize(json.dumps(raw).encode()).accounts[0]

        assert account.address.hex() == "f8d6e0586b0a20c7"
        assert account.key.index == 1
        assert account.key.sig_algo == SignatureAlgorithm.ECDSA_secp256k1
        assert account.key.hash_algo == HashAlgorithm.SHA2_256

    def test_kms_key(self):
        """Test a Google KMS key reference."""
        raw = {
            "accounts": {
                "kms": {
                    "address": "01",
                    "key": {
                        "type": "google-kms",
                        "signatureAlgorithm": "ECDSA_P256",
                        "hashAlgorithm": "SHA2_256",
                        "resourceID": "projects/p/locations/l/keyRings/r/cryptoKeys/k/cryptoKeyVersions/1",
                    },
                }
            }
        }
        key = config.JSONParser().deserialize(json.dumps(raw).encode()).accounts[0].key
        assert key.type == config.KeyType.GOOGLE_KMS
        assert key.private_key is None

    def test_legacy_keys_list(self):
        """Test the pre-0.22 keys list with a private key in its context."""
        raw = {
            "accounts": {
                "legacy": {
                    "address": "f8d6e0586b0a20c7",
                    "keys": [
                        {
                            "type": "hex",
                            "index": 0,
                            "signatureAlgorithm": "ECDSA_P256",
                            "hashAlgorithm": "SHA3_256",
                            "context": {"privateKey": KEY_A},
                        }
                    ],
                }
            }
        }
        key = config.JSONParser().deserialize(json.dumps(raw).encode()).accounts[0].key
        assert key.private_key.hex() == KEY_A

    @pytest.mark.parametrize(
        "key",
        [
            {"type": "ssh", "signatureAlgorithm": "ECDSA_P256", "hashAlgorithm": "SHA3_256"},
            {
                "type": "hex",
                "signatureAlgorithm": "ECDSA_P256",
                "hashAlgorithm": "SHA3_256",
                "privateKey": KEY_A,
                "resourceID": "x",
            },
            {"type": "hex", "signatureAlgorithm": "ECDSA_P256", "hashAlgorithm": "SHA3_256"},
            {"type": "hex", "signatureAlgorithm": "RSA", "hashAlgorithm": "SHA3_256", "privateKey": KEY_A},
            "not-hex",
        ],
    )
    def test_bad_keys(self, key):
        """Test that misconfigured keys raise BadKeyConfig."""
        raw = {"accounts": {"bad": {"address": "01", "key": key}}}
        with pytest.raises(BadKeyConfig):
            config.JSONParser().deserialize(json.dumps(raw).encode())

    def test_outdated_format(self):
        """Test that a top-level host is the outdated format."""
        with pytest.raises(OutdatedFormat):
            config.JSONParser().deserialize(b'{"host": "127.0.0.1:3569", "accounts": {}}')

    def test_syntax_error(self):
        """Test that invalid JSON raises ParseError."""
        with pytest.raises(ParseError, match="syntax error"):
            config.JSONParser().deserialize(b"{not json")

    def test_advanced_network(self):
        """Test a network with a host object."""
        raw = {"networks": {"custom": {"host": "10.0.0.1:9000", "chain": "flow-testnet"}}}
        network = config.JSONParser().deserialize(json.dumps(raw).encode()).networks[0]
        assert network.host == "10.0.0.1:9000"

    def test_contract_aliases(self):
        """Test that aliases expand to one contract entry per network."""
        raw = {
            "contracts": {
                "FungibleToken": {
                    "source": "./FungibleToken.cdc",
                    "aliases": {"testnet": "9a0766d93b6608b7", "emulator": "0xee82856bf20e2aa6"},
                },
                "Kibble": "./Kibble.cdc",
            }
        }
        contracts = config.JSONParser().deserialize(json.dumps(raw).encode()).contracts

        testnet = contracts.by_name_and_network("FungibleToken", "testnet")
        assert testnet.alias == "9a0766d93b6608b7"
        assert contracts.by_name_and_network("FungibleToken", "emulator").alias == "ee82856bf20e2aa6"
        assert not contracts.by_name("Kibble").is_aliased()

    def test_deployment_args(self):
        """Test deployments with initializer arguments."""
        raw = {
            "deployments": {
                "emulator": {
                    "emulator-account": [
                        "Kibble",
                        {"name": "Token", "args": [{"type": "String", "value": "Hello"}]},
                    ]
                }
            }
        }
        deployment = config.JSONParser().deserialize(json.dumps(raw).encode()).deployments[0]

        assert deployment.network == "emulator"
        assert [c.name for c in deployment.contracts] == ["Kibble", "Token"]
        assert deployment.contracts[1].args == [cadence.String("Hello")]

    def test_round_trip(self):
        """Test that serialize then deserialize preserves the configuration."""
        raw = {
            "emulators": {"default": {"port": 3569, "serviceAccount": "emulator-account"}},
            "contracts": {
                "Kibble": "./Kibble.cdc",
                "FungibleToken": {"source": "./FT.cdc", "aliases": {"testnet": "9a0766d93b6608b7"}},
            },
            "networks": {"emulator": "127.0.0.1:3569", "testnet": "access.devnet.nodes.onflow.org:9000"},
            "accounts": {
                "emulator-account": {"address": "f8d6e0586b0a20c7", "key": KEY_A},
                "other": {
                    "address": "01cf0e2f2f715450",
                    "key": {
                        "type": "hex",
                        "index": 2,
                        "signatureAlgorithm": "ECDSA_P256",
                        "hashAlgorithm": "SHA2_256",
                        "privateKey": KEY_B,
                    },
                },
            },
            "deployments": {
                "emulator": {
                    "emulator-account": ["Kibble", {"name": "FungibleToken", "args": [{"type": "UInt64", "value": "1"}]}]
                }
            },
        }
        parser = config.JSONParser()
        first = parser.deserialize(json.dumps(raw).encode())
        second = parser.deserialize(parser.serialize(first))

        assert second == first


class TestProcessor:
    """Test environment substitution and external account extraction."""

    def test_substitutes_known_variables(self):
        """Test both $NAME and ${NAME} forms."""
        raw = b'{"a": "$KEY", "b": "${KEY}"}'
        assert processor.process_env(raw, {"KEY": "v"}) == b'{"a": "v", "b": "v"}'

    def test_keeps_unknown_variables(self):
        """Test that unknown names are left as they are."""
        raw = b'{"a": "$MISSING"}'
        assert processor.process_env(raw, {}) == raw

    def test_dotenv_values(self, tmp_path: Path, monkeypatch):
        """Test that .env values are used and the process env wins."""
        env_file = tmp_path / ".env"
        env_file.write_text("FROM_FILE=file\nSHARED=file\n")
        monkeypatch.setenv("SHARED", "process")
        monkeypatch.delenv("FROM_FILE", raising=False)

        values = processor.load_env(env_file)
        assert values["FROM_FILE"] == "file"
        assert values["SHARED"] == "process"

    def test_from_file_extraction(self):
        """Test that fromFile accounts are removed and reported."""
        raw = json.dumps(
            {"accounts": {"admin": {"fromFile": "private.json"}, "local": {"address": "01", "key": KEY_A}}}
        ).encode()

        stripped, from_file = processor.process_from_file(raw)
        assert from_file == {"admin": "private.json"}
        assert "admin" not in json.loads(stripped)["accounts"]

    def test_invalid_json_passes_through(self):
        """Test that invalid payloads are returned unchanged."""
        assert processor.process_from_file(b"{oops") == (b"{oops", {})


class TestLoader:
    """Test loading and composing configuration files."""

    def test_missing_file(self, tmp_path: Path):
        """Test that a missing file raises ConfigMissing."""
        with pytest.raises(ConfigMissing):
            new_loader().load([str(tmp_path / "flow.json")])

    def test_environment_substitution(self, tmp_path: Path):
        """Test that keys can come from the environment."""
        path = write_json(tmp_path / "flow.json", simple_config(key="$EMULATOR_KEY"))
        conf = new_loader(env={"EMULATOR_KEY": KEY_B}).load([path])

        assert conf.accounts[0].key.private_key.hex() == KEY_B

    def test_overlay(self, tmp_path: Path):
        """Test that a later file overrides accounts by name."""
        base = write_json(tmp_path / "flow.json", simple_config(KEY_A))
        overlay = write_json(tmp_path / "private.json", simple_config(KEY_B))

        conf = new_loader().load([base, overlay])
        assert len(conf.accounts) == 1
        assert conf.accounts[0].key.private_key.hex() == KEY_B

    def test_overlay_idempotent(self, tmp_path: Path):
        """Test that applying an overlay twice equals applying it once."""
        base = write_json(tmp_path / "flow.json", simple_config(KEY_A))
        overlay_data = simple_config(KEY_B)
        overlay_data["networks"]["testnet"] = "access.devnet.nodes.onflow.org:9000"
        overlay = write_json(tmp_path / "overlay.json", overlay_data)

        once = new_loader().load([base, overlay])
        twice = new_loader().load([base, overlay, overlay])
        assert once == twice

    def test_external_account(self, tmp_path: Path):
        """Test accounts loaded from a fromFile reference."""
        base_data = simple_config()
        base_data["accounts"]["admin-account"] = {"fromFile": "private.json"}
        base = write_json(tmp_path / "flow.json", base_data)
        write_json(
            tmp_path / "private.json",
            {"accounts": {"admin-account": {"address": "f1d6e0586b0a20c7", "key": KEY_B}}},
        )

        conf = new_loader().load([base])
        assert len(conf.accounts) == 2
        assert conf.accounts.by_name("admin-account").address.hex() == "f1d6e0586b0a20c7"

    def test_save_keeps_external_accounts(self, tmp_path: Path):
        """Test that external accounts are written back to their file."""
        base_data = simple_config()
        base_data["accounts"]["admin-account"] = {"fromFile": "private.json"}
        base = write_json(tmp_path / "flow.json", base_data)
        write_json(
            tmp_path / "private.json",
            {"accounts": {"admin-account": {"address": "f1d6e0586b0a20c7", "key": KEY_B}}},
        )

        loader = new_loader()
        conf = loader.load([base])
        loader.save(conf, base)

        saved = json.loads((tmp_path / "flow.json").read_text())
        assert saved["accounts"]["admin-account"] == {"fromFile": "private.json"}
        external = json.loads((tmp_path / "private.json").read_text())
        assert external["accounts"]["admin-account"]["key"]["privateKey"] == KEY_B

    def test_move_account_to_file(self, tmp_path: Path):
        """Test that an account marked as external is saved to its own file."""
        base = write_json(tmp_path / "flow.json", simple_config())

        loader = new_loader()
        conf = loader.load([base])
        loader.set_account_from_file("emulator-account", "emulator.private.json")
        loader.save(conf, base)

        saved = json.loads((tmp_path / "flow.json").read_text())
        assert saved["accounts"]["emulator-account"] == {"fromFile": "emulator.private.json"}
        external = json.loads((tmp_path / "emulator.private.json").read_text())
        assert external["accounts"]["emulator-account"]["key"]["privateKey"] == KEY_A

        reloaded = new_loader().load([base])
        assert reloaded.accounts.by_name("emulator-account").address == conf.accounts.by_name(
            "emulator-account"
        ).address

    def test_unknown_extension(self, tmp_path: Path):
        """Test that files without a parser raise ParseError."""
        path = tmp_path / "flow.yaml"
        path.write_text("accounts: {}")
        with pytest.raises(ParseError, match="parser not found"):
            new_loader().load([str(path)])

    def test_validation(self, tmp_path: Path):
        """Test that deployments must reference configured networks."""
        data = simple_config()
        data["contracts"] = {"Kibble": "./Kibble.cdc"}
        data["deployments"] = {"testnet": {"emulator-account": ["Kibble"]}}
        path = write_json(tmp_path / "flow.json", data)

        with pytest.raises(ValidationError, match="nonexisting network testnet"):
            new_loader().load([path])


class TestModel:
    """Test collection helpers of the configuration model."""

    def test_default_config(self):
        """Test the default emulator profile and networks."""
        conf = config.default()
        assert conf.emulators.default().service_account == "emulator-account"
        assert [n.name for n in conf.networks] == ["emulator", "testnet", "mainnet"]

    def test_add_or_update_replaces_by_name(self):
        """Test that add_or_update replaces entries with the same name."""
        networks = config.Networks()
        networks.add_or_update("emulator", config.Network("emulator", "a"))
        networks.add_or_update("emulator", config.Network("emulator", "b"))
        assert len(networks) == 1
        assert networks.by_name("emulator").host == "b"

    def test_remove_missing(self):
        """Test that removing a missing entry raises NotFoundError."""
        with pytest.raises(NotFoundError):
            config.Contracts().remove("Kibble")

    def test_deployment_add_contract(self):
        """Test that a deployment keeps one entry per contract name."""
        deployment = config.Deployment(network="emulator", account="a")
        deployment.add_contract(config.ContractDeployment("Kibble"))
        deployment.add_contract(config.ContractDeployment("Kibble", [cadence.String("x")]))
        assert len(deployment.contracts) == 1
        assert deployment.contracts[0].args == [cadence.String("x")]
