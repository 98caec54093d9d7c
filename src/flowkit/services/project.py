"""Project initialization and contract deployment."""

import logging
from typing import List, Optional

from .. import config
from ..crypto import HashAlgorithm, PrivateKey, SignatureAlgorithm
from ..deployment import Deployment, ResolvedContract
from ..exceptions import (
    FlowkitError,
    GatewayError,
    MissingTargetAccount,
    NotFoundError,
    ProjectDeployError,
)
from ..gateway import Gateway
from ..project import Project
from ..transaction import (
    new_add_account_contract_transaction,
    new_update_account_contract_transaction,
)


class ProjectService:
    """
    Project service.

    Args:
        gateway: Access node gateway
        project: Loaded project, None before initialization
        logger: Log sink, the module logger by default
    """

    def __init__(
        self,
        gateway: Optional[Gateway],
        project: Optional[Project] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.gateway = gateway
        self.project = project
        self.logger = logger or logging.getLogger(__name__)

    def init(
        self,
        reader_writer: config.ReaderWriter,
        reset: bool = False,
        global_: bool = False,
        sig_algo: SignatureAlgorithm = SignatureAlgorithm.ECDSA_P256,
        hash_algo: HashAlgorithm = HashAlgorithm.SHA3_256,
        service_key: Optional[PrivateKey] = None,
    ) -> Project:
        """
        Create and save a new project configuration.

        Args:
            reader_writer: File access
            reset: Overwrite an existing configuration
            global_: Write the global configuration instead of the local one
            sig_algo: Signature algorithm of the generated service key
            hash_algo: Hash algorithm of the service key
            service_key: Service account key to use instead of a generated one

        Raises:
            FlowkitError: If a configuration exists and reset is not set
        """
        path = config.global_path() if global_ else config.DEFAULT_PATH

        if config.exists(path) and not reset:
            raise FlowkitError(
                f"configuration already exists at: {path}, if you want to reset "
                "configuration use the reset flag"
            )

        project = Project.init(reader_writer, sig_algo, hash_algo)
        if service_key is not None:
            project.set_emulator_key(service_key)

        project.save(path)
        self.project = project
        self.logger.info("Configuration initialized at %s", path)
        return project

    def deploy(self, network: str, update: bool = False) -> List[ResolvedContract]:
        """
        Deploy the network's contracts in dependency order.

        A contract already on its account is skipped unless update is set, and
        an update whose code matches the deployed code is skipped too. Failing
        contracts do not stop the remaining ones.

        Args:
            network: Network to deploy to
            update: Update contracts that already exist

        Returns:
            Contracts in deployment order

        Raises:
            FlowkitError: If there is no project
            AmbiguousDeployment: If a contract is deployed to several accounts
            UnresolvedImport: If an import cannot be resolved
            ImportCycle: If contracts import each other in a cycle
            ProjectDeployError: With every per-contract failure
        """
        if self.project is None:
            raise FlowkitError("missing configuration, initialize it: flow init")
        if self.gateway is None:
            raise FlowkitError("missing gateway to deploy with")

        contracts = self.project.contracts_by_network(network)
        plan = Deployment(contracts, self.project.aliases_for_network(network)).plan()

        self.logger.info(
            "Deploying %d contracts for accounts: %s",
            len(plan),
            ",".join(self.project.account_names_for_network(network)),
        )

        deploy_error = ProjectDeployError()
        for contract in plan:
            self._deploy_contract(contract, update, deploy_error)

        if deploy_error:
            for name, err in deploy_error.contracts.items():
                self.logger.error("%s: %s", name, err)
            raise deploy_error

        self.logger.info("All contracts deployed successfully")
        return plan

    def _deploy_contract(
        self, contract: ResolvedContract, update: bool, deploy_error: ProjectDeployError
    ) -> None:
        try:
            target = self.project.account_by_name(contract.account_name)
        except NotFoundError as e:
            raise MissingTargetAccount(
                "target account for deploying contract not found in configuration"
            ) from e

        try:
            block = self.gateway.get_latest_block()
            target_info = self.gateway.get_account(target.address)
        except GatewayError as e:
            deploy_error.add(
                contract.name, e, f"failed to fetch information for account {target.name}"
            )
            return

        existing = target_info.contracts.get(contract.name)
        if existing is not None and not update:
            self.logger.info(
                "%s already deployed to this account, use update flag", contract.name
            )
            return
        if existing is not None and existing == contract.code:
            self.logger.info("no diff found in %s, skipping update", contract.name)
            return

        if existing is not None:
            tx = new_update_account_contract_transaction(target, contract.name, contract.code)
        else:
            tx = new_add_account_contract_transaction(
                target, contract.name, contract.code, contract.args
            )

        tx.set_block_reference(block)
        try:
            tx.set_proposer(target_info, target.key.index)
        except FlowkitError as e:
            deploy_error.add(contract.name, e, "failed to set proposer")
            return

        try:
            tx.sign()
        except FlowkitError as e:
            deploy_error.add(contract.name, e, "failed to sign deployment transaction")
            return

        self.logger.info("%s deploying...", contract.name)
        try:
            sent = self.gateway.send_signed_transaction(tx.tx)
        except FlowkitError as e:
            deploy_error.add(contract.name, e, "failed to send deployment transaction")
            return

        try:
            result = self.gateway.get_transaction_result(sent.id(), True)
        except FlowkitError as e:
            deploy_error.add(contract.name, e, "could not retrieve deployment result")
            return

        if result.error:
            deploy_error.add(contract.name, GatewayError(result.error), "failed deploying contract")
            return

        self.logger.info(
            "%s -> 0x%s (%s) %s",
            contract.name,
            contract.target.hex(),
            sent.id(),
            "(updated)" if existing is not None else "",
        )
