"""Building, signing and sending transactions."""

import logging
from typing import Optional, Sequence, Tuple

import requests

from .. import cadence
from ..account import Account
from ..address import Address
from ..constants import DEFAULT_GAS_LIMIT
from ..exceptions import FlowkitError, GatewayError, UnresolvedImport
from ..gateway import Gateway
from ..program import Program
from ..project import Project
from ..resolver import ImportReplacer
from ..transaction import FlowTransaction, Transaction, TransactionRoles
from ..types import TransactionResult

REQUEST_TIMEOUT = 30


def prepare_and_sign(gateway: Gateway, tx: Transaction, account: Account) -> Transaction:
    """
    Attach the latest block and the account as proposer, then sign.

    Used for template transactions where one account holds every role.
    """
    block = gateway.get_latest_block()
    proposer = gateway.get_account(account.address)

    tx.set_block_reference(block)
    tx.set_proposer(proposer, account.key.index)
    return tx.sign()


def send_and_wait(gateway: Gateway, tx: Transaction) -> Tuple[FlowTransaction, TransactionResult]:
    """
    Submit a signed transaction and wait for it to be sealed.

    A sealed result carrying an error is returned, not raised.
    """
    tx.ensure_prepared()
    sent = gateway.send_signed_transaction(tx.tx)
    result = gateway.get_transaction_result(sent.id(), True)
    return sent, result


def resolve_imports(
    project: Optional[Project], program: Program, network: str, kind: str
) -> Program:
    """
    Rewrite the imports of a script or transaction for a network.

    Raises:
        FlowkitError: If imports are present but no network or location is known
        UnresolvedImport: If an import matches no deployed or aliased contract
    """
    if not program.has_imports():
        return program

    if project is None:
        raise FlowkitError("missing configuration, initialize it: flow init")
    if not network:
        raise FlowkitError(
            f"missing network, specify which network to use to resolve imports in {kind} code"
        )
    if not program.location:
        raise FlowkitError(f"resolving imports in {kind}s not supported")

    replacer = ImportReplacer(
        project.contracts_by_network(network), project.aliases_for_network(network)
    )
    try:
        return replacer.replace(program)
    except UnresolvedImport as e:
        raise UnresolvedImport(f"error resolving imports: {e}") from e


class Transactions:
    """
    Transaction service.

    Args:
        gateway: Access node gateway
        project: Loaded project, None when running without configuration
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

    def _require_project(self) -> Project:
        if self.project is None:
            raise FlowkitError("missing configuration, initialize it: flow init")
        return self.project

    def get_status(
        self, tx_id: str, wait_seal: bool
    ) -> Tuple[FlowTransaction, TransactionResult]:
        """Transaction and its result, optionally waiting for the seal."""
        self.logger.info("Fetching transaction %s...", tx_id)
        tx = self.gateway.get_transaction(tx_id)

        if wait_seal:
            self.logger.info("Waiting for transaction to be sealed...")
        result = self.gateway.get_transaction_result(tx_id, wait_seal)
        return tx, result

    def build(
        self,
        proposer: Address,
        payer: Address,
        authorizers: Sequence[Address],
        key_index: int,
        code: str,
        location: str = "",
        args: Optional[Sequence[cadence.Value]] = None,
        gas_limit: int = DEFAULT_GAS_LIMIT,
        network: str = "",
    ) -> Transaction:
        """
        Build an unsigned transaction.

        Imports in the code are resolved against the network's deployments.

        Args:
            proposer: Address whose key and sequence number are used
            payer: Address paying for the transaction
            authorizers: Addresses matching the prepare block parameters
            key_index: Proposer key index
            code: Transaction source
            location: Path the source was read from
            args: Transaction arguments
            gas_limit: Gas limit
            network: Network used to resolve imports

        Raises:
            FlowkitError: If imports cannot be resolved
            GatewayError: If the latest block or proposer cannot be fetched
            UnpreparedTransaction: If the proposer has no key at the index
            ParseError: If the authorizers do not match the prepare block
        """
        self._require_project()

        try:
            latest_block = self.gateway.get_latest_block()
        except GatewayError as e:
            raise GatewayError(f"failed to get latest sealed block: {e}") from e
        proposer_account = self.gateway.get_account(proposer)

        tx = Transaction()
        tx.set_payer(payer)
        tx.set_gas_limit(gas_limit)
        tx.set_block_reference(latest_block)

        program = resolve_imports(
            self.project, Program(code, location, list(args or [])), network, "transaction"
        )

        tx.set_proposer(proposer_account, key_index)
        tx.set_script_with_args(program.code, program.args)
        tx.add_authorizers(authorizers)
        return tx

    def sign(self, signer: Account, payload: str) -> Transaction:
        """
        Sign a hex encoded transaction with a project account.

        Raises:
            ParseError: If the payload cannot be decoded
            RoleMismatch: If the account has no role in the transaction
        """
        self._require_project()

        tx = Transaction.from_payload(payload)
        tx.set_signer(signer)
        return tx.sign()

    def send_signed(self, payload: str) -> Tuple[FlowTransaction, TransactionResult]:
        """Send a hex encoded, fully signed transaction and wait for the seal."""
        tx = Transaction.from_payload(payload)
        self.logger.info("Sending transaction with ID: %s", tx.id())
        return send_and_wait(self.gateway, tx)

    def send(
        self,
        roles: TransactionRoles,
        code: str,
        location: str = "",
        args: Optional[Sequence[cadence.Value]] = None,
        gas_limit: int = DEFAULT_GAS_LIMIT,
        network: str = "",
    ) -> Tuple[FlowTransaction, TransactionResult]:
        """
        Build, sign with every role and send a transaction.

        Signers sign in order proposer, authorizers, payer. The payer signs
        the envelope last.
        """
        self._require_project()

        tx = self.build(
            roles.proposer.address,
            roles.payer.address,
            [a.address for a in roles.authorizers],
            roles.proposer.key.index,
            code,
            location,
            args,
            gas_limit,
            network,
        )

        for signer in roles.signers():
            self.logger.debug("signing transaction with %s", signer.name)
            tx.set_signer(signer)
            tx.sign()

        self.logger.info("Transaction ID: %s", tx.id())
        self.logger.info("Sending transaction...")
        return send_and_wait(self.gateway, tx)

    def get_rlp(self, url: str) -> str:
        """
        Download a hex encoded transaction from a signing service.

        Raises:
            GatewayError: If the download fails
        """
        try:
            response = requests.get(url, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise GatewayError(f"error downloading RLP identifier: {e}") from e

        if response.status_code != 200:
            raise GatewayError("error downloading RLP identifier")
        return response.text.strip()

    def post_rlp(self, url: str, tx: Transaction) -> None:
        """
        Upload a signed transaction to a signing service.

        Raises:
            GatewayError: If the upload fails
        """
        try:
            response = requests.post(
                url,
                data=tx.encode(),
                headers={"Content-Type": "application/text"},
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            raise GatewayError(f"error posting signed RLP: {e}") from e

        if response.status_code != 200:
            raise GatewayError("error posting signed RLP")
