"""Account creation, account contracts and staking information."""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .. import cadence
from ..account import Account
from ..address import Address, ChainID, get_address_network
from ..constants import ACCOUNT_KEY_WEIGHT_THRESHOLD, STAKING_CONTRACTS
from ..crypto import HashAlgorithm, PublicKey
from ..events import Events
from ..exceptions import AccountCreateFailed, FlowkitError, GatewayError, ParseError
from ..gateway import Gateway
from ..program import Program
from ..project import Project
from ..transaction import (
    new_add_account_contract_transaction,
    new_create_account_transaction,
    new_remove_account_contract_transaction,
    new_update_account_contract_transaction,
)
from ..types import AccountKeyInfo, FlowAccount
from .transactions import prepare_and_sign, resolve_imports, send_and_wait

STAKING_INFO_SCRIPT = """
import FlowIDTableStaking from {FlowIDTableStaking}
import FlowStakingCollection from {FlowStakingCollection}

pub fun main(address: Address): [FlowIDTableStaking.NodeInfo] {{
	return FlowStakingCollection.getAllNodeInfo(address: address)
}}
"""

DELEGATION_INFO_SCRIPT = """
import FlowIDTableStaking from {FlowIDTableStaking}
import FlowStakingCollection from {FlowStakingCollection}

pub fun main(address: Address): [FlowIDTableStaking.DelegatorInfo] {{
	return FlowStakingCollection.getAllDelegatorInfo(address: address)
}}
"""

TOTAL_COMMITMENT_SCRIPT = """
import FlowIDTableStaking from {FlowIDTableStaking}

pub fun main(nodeID: String): UFix64 {{
	let nodeInfo = FlowIDTableStaking.NodeInfo(nodeID: nodeID)
	return nodeInfo.totalCommittedWithDelegators()
}}
"""


def staking_infos_from_value(value: cadence.Value) -> List[Dict[str, Any]]:
    """
    Convert an array of staking structs into field maps.

    Raises:
        ParseError: If the value is not an array of composites
    """
    if not isinstance(value, cadence.Array):
        raise ParseError(f"expected an array of staking info, got {value.type_id()}")

    infos = []
    for item in value.values:
        if not isinstance(item, cadence.Composite):
            raise ParseError(f"expected a staking info struct, got {item.type_id()}")
        infos.append({name: field.to_python() for name, field in item.fields})
    return infos


def parse_contract_flag(contract: str) -> Tuple[str, str]:
    """
    Split a name:path contract flag.

    Raises:
        ParseError: If the flag has no separator
    """
    parts = contract.split(":", 1)
    if len(parts) != 2:
        raise ParseError(
            f"wrong format for contract. Correct format is name:path, but got: {contract}"
        )
    return parts[0], parts[1]


class Accounts:
    """
    Account service.

    Args:
        gateway: Access node gateway
        project: Loaded project, needed to read contract sources
        logger: Log sink, the module logger by default
    """

    def __init__(
        self,
        gateway: Gateway,
        project: Optional[Project] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.gateway = gateway
        self.project = project
        self.logger = logger or logging.getLogger(__name__)

    def get(self, address: Address) -> FlowAccount:
        self.logger.info("Loading %s...", address.hex())
        return self.gateway.get_account(address)

    def staking_info(
        self, address: Address
    ) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
        """
        Staking and delegation information of an account's staking collection.

        Every staking entry gets a "nodeTotalStake" with the node's total
        commitment including delegators.

        Raises:
            FlowkitError: If the address is on the emulator chain or on no chain
        """
        self.logger.info("Fetching info for %s...", address.hex())

        try:
            chain = get_address_network(address)
        except ValueError as e:
            raise FlowkitError(
                "failed to determine network from address, check the address and network"
            ) from e
        if chain == ChainID.EMULATOR:
            raise FlowkitError("emulator chain not supported")

        contracts = STAKING_CONTRACTS[chain.network]
        args = [cadence.Address(address)]

        try:
            staking_value = self.gateway.execute_script(
                STAKING_INFO_SCRIPT.format(**contracts).encode("utf-8"), args
            )
        except GatewayError as e:
            raise FlowkitError(f"error getting staking info: {e}") from e
        try:
            delegation_value = self.gateway.execute_script(
                DELEGATION_INFO_SCRIPT.format(**contracts).encode("utf-8"), args
            )
        except GatewayError as e:
            raise FlowkitError(f"error getting delegation info: {e}") from e

        try:
            staking_infos = staking_infos_from_value(staking_value)
        except ParseError as e:
            raise FlowkitError(f"error parsing staking info: {e}") from e
        try:
            delegation_infos = staking_infos_from_value(delegation_value)
        except ParseError as e:
            raise FlowkitError(f"error parsing delegation info: {e}") from e

        node_stakes: Dict[str, Any] = {}
        for info in staking_infos:
            node_id = info.get("id")
            if node_id is not None and node_id not in node_stakes:
                node_stakes[node_id] = self.node_total_stake(node_id, chain)

        for info in staking_infos:
            if "id" in info:
                info["nodeTotalStake"] = node_stakes[info["id"]]

        return staking_infos, delegation_infos

    def node_total_stake(self, node_id: str, chain: ChainID) -> Any:
        """
        Total commitment of a node including its delegators.

        Raises:
            FlowkitError: If the chain is the emulator or the script fails
        """
        if chain == ChainID.EMULATOR:
            raise FlowkitError("emulator chain not supported")

        script = TOTAL_COMMITMENT_SCRIPT.format(**STAKING_CONTRACTS[chain.network])
        try:
            value = self.gateway.execute_script(script.encode("utf-8"), [cadence.String(node_id)])
        except GatewayError as e:
            raise FlowkitError(f"error getting total stake for node: {e}") from e
        return value.to_python()

    def create(
        self,
        signer: Account,
        public_keys: Sequence[PublicKey],
        weights: Optional[Sequence[int]] = None,
        hash_algo: HashAlgorithm = HashAlgorithm.SHA3_256,
        contracts: Optional[Sequence[str]] = None,
    ) -> FlowAccount:
        """
        Create an account paid for by the signer.

        Args:
            signer: Project account paying for the new account
            public_keys: Keys of the new account
            weights: Weight per key, each in (0, 1000], 1000 when omitted
            hash_algo: Hash algorithm of every key
            contracts: Contracts to deploy to the new account, as name:path

        Returns:
            The new account as stored on chain

        Raises:
            ValueError: If weights do not match the keys or are out of range
            ParseError: If a contract flag is malformed
            GatewayError: If the transaction fails
            AccountCreateFailed: If the new address is missing from the events
        """
        weights = list(weights or [])
        if weights and len(weights) != len(public_keys):
            raise ValueError(
                "number of keys and weights provided must match, "
                f"number of provided keys: {len(public_keys)}, "
                f"number of provided key weights: {len(weights)}"
            )

        keys: List[AccountKeyInfo] = []
        for i, public_key in enumerate(public_keys):
            weight = weights[i] if weights else ACCOUNT_KEY_WEIGHT_THRESHOLD
            if weight <= 0 or weight > ACCOUNT_KEY_WEIGHT_THRESHOLD:
                raise ValueError(
                    f"invalid account key: weight {weight} must be between 1 and "
                    f"{ACCOUNT_KEY_WEIGHT_THRESHOLD}"
                )
            keys.append(
                AccountKeyInfo(
                    index=i,
                    public_key=public_key.hex(),
                    sig_algo=public_key.sig_algo,
                    hash_algo=hash_algo,
                    weight=weight,
                )
            )

        sources: List[Tuple[str, str]] = []
        for contract in contracts or []:
            name, path = parse_contract_flag(contract)
            sources.append((name, self._read_source(path)))

        tx = new_create_account_transaction(signer, keys, sources)
        tx = prepare_and_sign(self.gateway, tx, signer)

        self.logger.info("Transaction ID: %s", tx.id())
        self.logger.info("Creating account...")
        _, result = send_and_wait(self.gateway, tx)
        if result.error:
            raise GatewayError(result.error)

        address = Events.from_result(result).get_address()
        if address is None:
            raise AccountCreateFailed("new account address couldn't be fetched")

        return self.gateway.get_account(address)

    def _read_source(self, path: str) -> str:
        if self.project is None:
            raise FlowkitError("missing configuration, initialize it: flow init")
        return self.project.read_file(path).decode("utf-8")

    def add_contract(
        self,
        account: Account,
        contract_name: str,
        source: str,
        update: bool = False,
        args: Optional[Sequence[cadence.Value]] = None,
        location: str = "",
        network: str = "",
    ) -> FlowAccount:
        """
        Add a contract to an account, or update it when update is set.

        Imports in the source are resolved against the network's deployments
        when a location and network are given.

        Raises:
            GatewayError: If the transaction fails or is sealed with an error
        """
        program = resolve_imports(self.project, Program(source, location), network, "contract")

        if update:
            tx = new_update_account_contract_transaction(account, contract_name, program.code)
        else:
            tx = new_add_account_contract_transaction(
                account, contract_name, program.code, args
            )
        tx = prepare_and_sign(self.gateway, tx, account)

        self.logger.info("Transaction ID: %s", tx.id())
        status = "Updating contract '%s' on account '%s'..." if update else (
            "Adding contract '%s' to account '%s'..."
        )
        self.logger.info(status, contract_name, account.address.hex())

        _, result = send_and_wait(self.gateway, tx)
        if result.error:
            self.logger.error("Failed to deploy contract")
            raise GatewayError(result.error)

        updated = self.gateway.get_account(account.address)
        if update:
            self.logger.info(
                "Contract '%s' updated on the account '%s'.", contract_name, account.address.hex()
            )
        else:
            self.logger.info(
                "Contract '%s' deployed to the account '%s'.", contract_name, account.address.hex()
            )
        return updated

    def remove_contract(self, account: Account, contract_name: str) -> FlowAccount:
        """
        Remove a contract from an account.

        Raises:
            GatewayError: If the transaction fails or is sealed with an error
        """
        tx = new_remove_account_contract_transaction(account, contract_name)
        tx = prepare_and_sign(self.gateway, tx, account)

        self.logger.info("Transaction ID: %s", tx.id())
        self.logger.info(
            "Removing contract %s from %s...", contract_name, account.address.hex()
        )

        _, result = send_and_wait(self.gateway, tx)
        if result.error:
            self.logger.error("Removing contract failed")
            raise GatewayError(result.error)

        self.logger.info(
            "Contract %s removed from account %s.", contract_name, account.address.hex()
        )
        return self.gateway.get_account(account.address)
