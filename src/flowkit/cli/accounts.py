"""flow accounts: get, create, contracts and staking info."""

from typing import List, Optional

import typer

from ..address import parse_address
from ..arguments import parse_args_from_cli
from ..constants import DEFAULT_EMULATOR_SERVICE_ACCOUNT
from ..crypto import HashAlgorithm, SignatureAlgorithm, decode_public_key_hex
from .context import handle_errors, options
from .output import AccountResult, StakingResult

app = typer.Typer(help="Utilities to manage accounts", no_args_is_help=True)


@app.command("get")
@handle_errors
def get(
    ctx: typer.Context,
    address: str = typer.Argument(..., help="Account address"),
    contracts: bool = typer.Option(False, "--contracts", help="Display contract code"),
) -> None:
    """Get an account by address."""
    opts = options(ctx)
    account = opts.services().accounts.get(parse_address(address))
    opts.render(AccountResult(account, show_code=contracts))


@app.command("create")
@handle_errors
def create(
    ctx: typer.Context,
    keys: List[str] = typer.Option(..., "--key", help="Public keys to attach to the account"),
    weights: Optional[List[int]] = typer.Option(
        None, "--key-weight", help="Weight for each key, 1000 by default"
    ),
    sig_algo: str = typer.Option("ECDSA_P256", "--sig-algo", help="Signature algorithm of the keys"),
    hash_algo: str = typer.Option("SHA3_256", "--hash-algo", help="Hash algorithm of the keys"),
    signer: str = typer.Option(
        DEFAULT_EMULATOR_SERVICE_ACCOUNT, "--signer", help="Account name paying for the account"
    ),
    contracts: Optional[List[str]] = typer.Option(
        None, "--contract", help="Contract to deploy as name:path"
    ),
) -> None:
    """Create a new account on the network."""
    opts = options(ctx)
    project = opts.require_project()
    signer_account = project.account_by_name(signer)

    sig = SignatureAlgorithm.from_string(sig_algo)
    public_keys = [decode_public_key_hex(sig, key) for key in keys]

    account = opts.services().accounts.create(
        signer_account,
        public_keys,
        weights or [],
        HashAlgorithm.from_string(hash_algo),
        contracts or [],
    )
    opts.render(AccountResult(account))


def _add_contract(
    ctx: typer.Context,
    name: str,
    filename: str,
    signer: str,
    update: bool,
    args: Optional[List[str]] = None,
    args_json: str = "",
) -> None:
    opts = options(ctx)
    project = opts.require_project()
    account = project.account_by_name(signer)
    source = project.read_file(filename).decode("utf-8")

    updated = opts.services().accounts.add_contract(
        account,
        name,
        source,
        update=update,
        args=parse_args_from_cli(args, args_json),
        location=filename,
        network=opts.network,
    )
    opts.render(AccountResult(updated))


@app.command("add-contract")
@handle_errors
def add_contract(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Contract name"),
    filename: str = typer.Argument(..., help="Contract source file"),
    args: Optional[List[str]] = typer.Argument(None, help="Initializer arguments as Type:Value"),
    signer: str = typer.Option(DEFAULT_EMULATOR_SERVICE_ACCOUNT, "--signer", help="Account name"),
    args_json: str = typer.Option("", "--args-json", help="Initializer arguments as JSON"),
) -> None:
    """Deploy a new contract to an account."""
    _add_contract(ctx, name, filename, signer, False, args, args_json)


@app.command("update-contract")
@handle_errors
def update_contract(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Contract name"),
    filename: str = typer.Argument(..., help="Contract source file"),
    signer: str = typer.Option(DEFAULT_EMULATOR_SERVICE_ACCOUNT, "--signer", help="Account name"),
) -> None:
    """Update a contract deployed to an account."""
    _add_contract(ctx, name, filename, signer, True)


@app.command("remove-contract")
@handle_errors
def remove_contract(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Contract name"),
    signer: str = typer.Option(DEFAULT_EMULATOR_SERVICE_ACCOUNT, "--signer", help="Account name"),
) -> None:
    """Remove a contract deployed to an account."""
    opts = options(ctx)
    account = opts.require_project().account_by_name(signer)
    updated = opts.services().accounts.remove_contract(account, name)
    opts.render(AccountResult(updated))


@app.command("staking-info")
@handle_errors
def staking_info(
    ctx: typer.Context,
    address: str = typer.Argument(..., help="Address of the staking collection owner"),
) -> None:
    """Get staking and delegation information of an account."""
    opts = options(ctx)
    staking, delegation = opts.services().accounts.staking_info(parse_address(address))
    opts.render(StakingResult(staking, delegation))
