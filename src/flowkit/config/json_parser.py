"""JSON format parser for project configuration files."""

import json
from typing import Any, Dict, List

from .. import cadence
from ..address import Address, ChainID, service_address
from ..crypto import (
    HashAlgorithm,
    SignatureAlgorithm,
    decode_private_key_hex,
    decode_public_key_hex,
)
from ..exceptions import BadKeyConfig, OutdatedFormat, ParseError
from .model import (
    Account,
    AccountKey,
    Accounts,
    Config,
    Contract,
    ContractDeployment,
    Contracts,
    Deployment,
    Deployments,
    Emulator,
    Emulators,
    KeyType,
    Network,
    Networks,
)

SERVICE_ADDRESS_SENTINEL = "service"


def _parse_address(raw: Any) -> Address:
    if raw == SERVICE_ADDRESS_SENTINEL:
        return service_address(ChainID.EMULATOR)
    if not isinstance(raw, str):
        raise ParseError("could not parse address")
    try:
        return Address.from_hex(raw)
    except ValueError as e:
        raise ParseError("could not parse address") from e


# --- accounts ----------------------------------------------------------------


def _parse_advanced_key(name: str, raw: Dict[str, Any]) -> AccountKey:
    try:
        key_type = KeyType.from_string(raw.get("type", ""))
    except BadKeyConfig as e:
        raise BadKeyConfig(f"invalid key type for account {name}") from e

    private_key_raw = raw.get("privateKey") or ""
    resource_id = raw.get("resourceID") or ""

    if private_key_raw and resource_id:
        raise BadKeyConfig(
            f"only provide value for private key or resource ID on account {name}"
        )

    index = raw.get("index", 0)
    if not isinstance(index, int) or index < 0:
        raise BadKeyConfig(f"invalid key index {index} on account {name}")

    sig_algo = SignatureAlgorithm.from_string(raw.get("signatureAlgorithm", ""))
    hash_algo = HashAlgorithm.from_string(raw.get("hashAlgorithm", ""))

    key = AccountKey(type=key_type, index=index, sig_algo=sig_algo, hash_algo=hash_algo)

    if key_type == KeyType.HEX:
        if not private_key_raw:
            raise BadKeyConfig(f"missing private key value for hex key type on account {name}")
        key.private_key = decode_private_key_hex(sig_algo, private_key_raw)
    else:
        if not resource_id:
            raise BadKeyConfig(f"missing resource ID value for key on account {name}")
        key.resource_id = resource_id

    return key


def _parse_simple_key(name: str, private_key_raw: str) -> AccountKey:
    sig_algo = SignatureAlgorithm.ECDSA_P256
    try:
        private_key = decode_private_key_hex(sig_algo, private_key_raw)
    except BadKeyConfig as e:
        raise BadKeyConfig(f"invalid private key for account {name}: {e}") from e
    return AccountKey(private_key=private_key)


def _parse_account(name: str, raw: Any) -> Account:
    if not isinstance(raw, dict):
        raise ParseError(f"invalid account {name} configuration")

    address = _parse_address(raw.get("address"))

    if "key" in raw:
        key_raw = raw["key"]
        if isinstance(key_raw, str):
            key = _parse_simple_key(name, key_raw)
            return Account(name=name, address=address, key=key)
        if isinstance(key_raw, dict):
            key = _parse_advanced_key(name, key_raw)
            return Account(name=name, address=address, key=key)
        raise BadKeyConfig(f"invalid key for account {name}")

    # Pre-0.22 format with a "keys" field
    keys_raw = raw.get("keys")
    if isinstance(keys_raw, str):
        return Account(name=name, address=address, key=_parse_simple_key(name, keys_raw))
    if isinstance(keys_raw, list) and keys_raw:
        first = dict(keys_raw[0])
        context = first.pop("context", None) or {}
        if "privateKey" in context and not first.get("privateKey"):
            first["privateKey"] = context["privateKey"]
        key = _parse_advanced_key(name, first)
        return Account(name=name, address=address, key=key)

    raise BadKeyConfig(f"missing key for account {name}")


def _account_to_json(account: Account) -> Dict[str, Any]:
    key = account.key
    if key.is_default() and not account.use_advanced_format and key.private_key is not None:
        return {"address": account.address.hex(), "key": key.private_key.hex()}

    key_json: Dict[str, Any] = {
        "type": key.type.value,
        "index": key.index,
        "signatureAlgorithm": key.sig_algo.name,
        "hashAlgorithm": key.hash_algo.name,
    }
    if key.type == KeyType.HEX and key.private_key is not None:
        key_json["privateKey"] = key.private_key.hex()
    if key.type == KeyType.GOOGLE_KMS:
        key_json["resourceID"] = key.resource_id

    return {"address": account.address.hex(), "key": key_json}


# --- networks ----------------------------------------------------------------


def _parse_network(name: str, raw: Any) -> Network:
    if isinstance(raw, str) and raw:
        return Network(name=name, host=raw)

    if isinstance(raw, dict) and raw.get("host"):
        # "chain" from older formats is ignored
        key = raw.get("key") or raw.get("network-key") or ""
        if key:
            try:
                decode_public_key_hex(SignatureAlgorithm.ECDSA_P256, key)
            except BadKeyConfig as e:
                raise ParseError(f"invalid key {key} for network with name {name}") from e
        return Network(name=name, host=raw["host"], key=key)

    raise ParseError(f"failed to transform networks configuration for network {name}")


def _network_to_json(network: Network) -> Any:
    if network.key:
        return {"host": network.host, "key": network.key}
    return network.host


# --- contracts ---------------------------------------------------------------


def _parse_contracts(raw: Dict[str, Any]) -> Contracts:
    contracts = Contracts()
    for name, value in raw.items():
        if isinstance(value, str):
            contracts.append(Contract(name=name, location=value))
            continue

        if not isinstance(value, dict) or "source" not in value:
            raise ParseError(f"invalid contract {name} configuration")

        aliases = value.get("aliases") or {}
        if not aliases:
            contracts.append(Contract(name=name, location=value["source"]))
        for network, alias in aliases.items():
            try:
                address = Address.from_hex(alias)
            except (ValueError, AttributeError) as e:
                raise ParseError(f"invalid alias address for contract {name}") from e
            contracts.append(
                Contract(
                    name=name,
                    location=value["source"],
                    network=network,
                    alias=address.hex(),
                )
            )
    return contracts


def _contracts_to_json(contracts: Contracts) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for contract in contracts:
        if not contract.network or not contract.alias:
            if contract.name not in result:
                result[contract.name] = contract.location
            continue

        existing = result.get(contract.name)
        if isinstance(existing, dict):
            existing["aliases"][contract.network] = contract.alias
        else:
            result[contract.name] = {
                "source": contract.location,
                "aliases": {contract.network: contract.alias},
            }
    return result


# --- deployments -------------------------------------------------------------


def _parse_deployments(raw: Dict[str, Any]) -> Deployments:
    deployments = Deployments()
    for network, accounts in raw.items():
        if not isinstance(accounts, dict):
            raise ParseError(f"invalid deployments configuration for network {network}")

        for account, entries in accounts.items():
            contracts: List[ContractDeployment] = []
            for entry in entries or []:
                if isinstance(entry, str):
                    contracts.append(ContractDeployment(name=entry))
                elif isinstance(entry, dict) and "name" in entry:
                    args = [cadence.decode(arg) for arg in entry.get("args") or []]
                    contracts.append(ContractDeployment(name=entry["name"], args=args))
                else:
                    raise ParseError(
                        f"invalid deployment entry {entry!r} for account {account}"
                    )
            deployments.append(Deployment(network=network, account=account, contracts=contracts))
    return deployments


def _deployments_to_json(deployments: Deployments) -> Dict[str, Any]:
    result: Dict[str, Dict[str, Any]] = {}
    for deployment in deployments:
        entries: List[Any] = []
        for contract in deployment.contracts:
            if not contract.args:
                entries.append(contract.name)
            else:
                entries.append(
                    {"name": contract.name, "args": [cadence.encode(a) for a in contract.args]}
                )
        result.setdefault(deployment.network, {})[deployment.account] = entries
    return result


# --- emulators ---------------------------------------------------------------


def _parse_emulators(raw: Dict[str, Any]) -> Emulators:
    emulators = Emulators()
    for name, value in raw.items():
        if not isinstance(value, dict):
            raise ParseError(f"invalid emulator {name} configuration")
        emulators.append(
            Emulator(
                name=name,
                port=int(value.get("port", 0)),
                service_account=value.get("serviceAccount", ""),
            )
        )
    return emulators


def _emulators_to_json(emulators: Emulators) -> Dict[str, Any]:
    return {
        e.name: {"port": e.port, "serviceAccount": e.service_account} for e in emulators
    }


class JSONParser:
    """Parser for the JSON configuration format."""

    extension = ".json"

    def supports_extension(self, extension: str) -> bool:
        return extension.lower() == self.extension

    def deserialize(self, raw: bytes) -> Config:
        """
        Parse a raw JSON payload into a configuration.

        Raises:
            ParseError: If the payload is not valid JSON or an entry is malformed
            OutdatedFormat: If the payload uses the legacy top-level host field
            BadKeyConfig: If an account key is misconfigured
        """
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ParseError(f"configuration syntax error: {e}") from e

        if not isinstance(data, dict):
            raise ParseError("configuration syntax error: expected a JSON object")

        if data.get("host") is not None:
            raise OutdatedFormat("you are using old configuration format")

        return Config(
            emulators=_parse_emulators(data.get("emulators") or {}),
            contracts=_parse_contracts(data.get("contracts") or {}),
            networks=Networks(
                _parse_network(name, value)
                for name, value in (data.get("networks") or {}).items()
            ),
            accounts=Accounts(
                _parse_account(name, value)
                for name, value in (data.get("accounts") or {}).items()
            ),
            deployments=_parse_deployments(data.get("deployments") or {}),
        )

    def serialize(self, config: Config) -> bytes:
        data = {
            "emulators": _emulators_to_json(config.emulators),
            "contracts": _contracts_to_json(config.contracts),
            "networks": {n.name: _network_to_json(n) for n in config.networks},
            "accounts": {a.name: _account_to_json(a) for a in config.accounts},
            "deployments": _deployments_to_json(config.deployments),
        }
        return json.dumps(data, indent="\t").encode("utf-8")
