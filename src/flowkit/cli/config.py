"""flow config add and flow config remove."""

from typing import List, Optional, Tuple

import typer

from .. import config
from ..account import Account
from ..address import parse_address
from ..arguments import parse_inline_args
from ..crypto import HashAlgorithm, SignatureAlgorithm, decode_private_key_hex
from ..keys import HexAccountKey
from ..project import Project
from .context import GlobalOptions, handle_errors, options
from .output import MessageResult

app = typer.Typer(help="Utilities to manage the configuration", no_args_is_help=True)
add_app = typer.Typer(help="Add a resource to the configuration", no_args_is_help=True)
remove_app = typer.Typer(help="Remove a resource from the configuration", no_args_is_help=True)
app.add_typer(add_app, name="add")
app.add_typer(remove_app, name="remove")


def _saved(opts: GlobalOptions, project: Project, message: str) -> None:
    project.save_edited(opts.config_paths)
    opts.render(MessageResult(message))


def parse_alias(value: str) -> Tuple[str, str]:
    """
    Split a network:address alias.

    Raises:
        ValueError: If the value has no network or address part
    """
    network, sep, address = value.partition(":")
    if not sep or not network or not address:
        raise ValueError(f"alias must be in the form network:address, got {value}")
    return network, parse_address(address).hex()


@add_app.command("account")
@handle_errors
def add_account(
    ctx: typer.Context,
    name: str = typer.Option(..., "--name", help="Account name"),
    address: str = typer.Option(..., "--address", help="Account address"),
    private_key: str = typer.Option(..., "--private-key", help="Hex encoded private key"),
    sig_algo: str = typer.Option("ECDSA_P256", "--sig-algo", help="Signature algorithm"),
    hash_algo: str = typer.Option("SHA3_256", "--hash-algo", help="Hash algorithm"),
    key_index: int = typer.Option(0, "--key-index", help="Account key index"),
    from_file: str = typer.Option(
        "", "--file", help="Save the account to this file and reference it from the configuration"
    ),
) -> None:
    """Add an account with a hex private key."""
    opts = options(ctx)
    project = opts.require_project()

    key = decode_private_key_hex(SignatureAlgorithm.from_string(sig_algo), private_key)
    project.add_or_update_account(
        Account(
            name,
            parse_address(address),
            HexAccountKey.from_private_key(key_index, HashAlgorithm.from_string(hash_algo), key),
        )
    )
    if from_file:
        project.loader.set_account_from_file(name, from_file)
    _saved(opts, project, f"Account {name} added to the configuration")


@add_app.command("network")
@handle_errors
def add_network(
    ctx: typer.Context,
    name: str = typer.Option(..., "--name", help="Network name"),
    host: str = typer.Option(..., "--host", help="Access node host"),
    key: str = typer.Option("", "--network-key", help="Access node public key"),
) -> None:
    """Add a network."""
    opts = options(ctx)
    project = opts.require_project()
    project.networks.add_or_update(name, config.Network(name=name, host=host, key=key))
    _saved(opts, project, f"Network {name} added to the configuration")


@add_app.command("contract")
@handle_errors
def add_contract(
    ctx: typer.Context,
    name: str = typer.Option(..., "--name", help="Contract name"),
    filename: str = typer.Option(..., "--filename", help="Contract source file"),
    aliases: Optional[List[str]] = typer.Option(
        None, "--alias", help="Existing deployment as network:address"
    ),
) -> None:
    """Add a contract source, optionally aliased on some networks."""
    opts = options(ctx)
    project = opts.require_project()

    project.contracts.add_or_update(name, config.Contract(name=name, location=filename))
    for alias in aliases or []:
        network, address = parse_alias(alias)
        project.contracts.add_or_update(
            name,
            config.Contract(name=name, location=filename, network=network, alias=address),
        )
    _saved(opts, project, f"Contract {name} added to the configuration")


@add_app.command("deployment")
@handle_errors
def add_deployment(
    ctx: typer.Context,
    network: str = typer.Option(..., "--network", help="Network to deploy to"),
    account: str = typer.Option(..., "--account", help="Account to deploy to"),
    contracts: List[str] = typer.Option(..., "--contract", help="Contract names to deploy"),
) -> None:
    """Add a deployment of contracts to an account on a network."""
    opts = options(ctx)
    project = opts.require_project()

    project.network_by_name(network)
    project.account_by_name(account)
    for name in contracts:
        project.contracts.by_name(name)

    project.deployments.add_or_update(
        config.Deployment(
            network=network,
            account=account,
            contracts=[config.ContractDeployment(name=c) for c in contracts],
        )
    )
    _saved(opts, project, f"Deployment added to the configuration for account {account}")


@add_app.command("deployment-args")
@handle_errors
def add_deployment_args(
    ctx: typer.Context,
    network: str = typer.Option(..., "--network", help="Network of the deployment"),
    account: str = typer.Option(..., "--account", help="Account of the deployment"),
    contract: str = typer.Option(..., "--contract", help="Contract name"),
    args: List[str] = typer.Argument(..., help="Init arguments as Type:Value"),
) -> None:
    """Set the init arguments of a deployed contract."""
    opts = options(ctx)
    project = opts.require_project()

    deployments = project.deployments.by_account_and_network(account, network)
    if not deployments:
        raise ValueError(f"no deployment for account {account} on network {network}")
    deployments[0].add_contract(
        config.ContractDeployment(name=contract, args=parse_inline_args(args))
    )
    _saved(opts, project, f"Arguments of contract {contract} updated")


@remove_app.command("account")
@handle_errors
def remove_account(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Account name"),
) -> None:
    """Remove an account."""
    opts = options(ctx)
    project = opts.require_project()
    project.accounts.remove(name)
    _saved(opts, project, f"Account {name} removed from the configuration")


@remove_app.command("network")
@handle_errors
def remove_network(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Network name"),
) -> None:
    """Remove a network."""
    opts = options(ctx)
    project = opts.require_project()
    project.networks.remove(name)
    _saved(opts, project, f"Network {name} removed from the configuration")


@remove_app.command("contract")
@handle_errors
def remove_contract(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Contract name"),
) -> None:
    """Remove a contract and its aliases."""
    opts = options(ctx)
    project = opts.require_project()
    project.contracts.remove(name)
    _saved(opts, project, f"Contract {name} removed from the configuration")


@remove_app.command("deployment")
@handle_errors
def remove_deployment(
    ctx: typer.Context,
    account: str = typer.Argument(..., help="Account of the deployment"),
    network: str = typer.Argument(..., help="Network of the deployment"),
) -> None:
    """Remove the deployment of an account on a network."""
    opts = options(ctx)
    project = opts.require_project()
    project.deployments.remove(account, network)
    _saved(opts, project, f"Deployment for account {account} on {network} removed")
