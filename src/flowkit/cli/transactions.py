"""flow transactions: build, sign, send and status."""

from typing import List, Optional

import typer

from ..address import parse_address
from ..arguments import parse_args_from_cli
from ..constants import DEFAULT_EMULATOR_SERVICE_ACCOUNT, DEFAULT_GAS_LIMIT
from ..transaction import TransactionRoles
from .context import GlobalOptions, handle_errors, options
from .output import PayloadResult, TransactionOutput

app = typer.Typer(help="Utilities to send transactions", no_args_is_help=True)


def _read_payload(opts: GlobalOptions, filename: str) -> str:
    return opts.reader_writer.read_file(filename).decode("utf-8").strip()


@app.command("send")
@handle_errors
def send(
    ctx: typer.Context,
    filename: str = typer.Argument(..., help="Transaction source file"),
    args: Optional[List[str]] = typer.Argument(None, help="Transaction arguments as Type:Value"),
    signer: str = typer.Option(
        DEFAULT_EMULATOR_SERVICE_ACCOUNT, "--signer", help="Account name holding every role"
    ),
    proposer: str = typer.Option("", "--proposer", help="Proposer account name"),
    payer: str = typer.Option("", "--payer", help="Payer account name"),
    authorizers: Optional[List[str]] = typer.Option(
        None, "--authorizer", help="Authorizer account names"
    ),
    gas_limit: int = typer.Option(DEFAULT_GAS_LIMIT, "--gas-limit", help="Transaction gas limit"),
    args_json: str = typer.Option("", "--args-json", help="Transaction arguments as JSON"),
) -> None:
    """Build, sign and send a transaction."""
    opts = options(ctx)
    project = opts.require_project()

    if proposer or payer or authorizers:
        roles = TransactionRoles(
            proposer=project.account_by_name(proposer or signer),
            authorizers=[project.account_by_name(a) for a in authorizers or []],
            payer=project.account_by_name(payer or signer),
        )
    else:
        roles = TransactionRoles.single(project.account_by_name(signer))

    code = project.read_file(filename).decode("utf-8")
    tx, result = opts.services().transactions.send(
        roles,
        code,
        filename,
        parse_args_from_cli(args, args_json),
        gas_limit,
        opts.network,
    )
    opts.render(TransactionOutput(tx, result))


@app.command("build")
@handle_errors
def build(
    ctx: typer.Context,
    filename: str = typer.Argument(..., help="Transaction source file"),
    args: Optional[List[str]] = typer.Argument(None, help="Transaction arguments as Type:Value"),
    proposer: str = typer.Option(
        DEFAULT_EMULATOR_SERVICE_ACCOUNT, "--proposer", help="Proposer account name or address"
    ),
    proposer_key_index: int = typer.Option(0, "--proposer-key-index", help="Proposer key index"),
    payer: str = typer.Option(
        DEFAULT_EMULATOR_SERVICE_ACCOUNT, "--payer", help="Payer account name or address"
    ),
    authorizers: Optional[List[str]] = typer.Option(
        None, "--authorizer", help="Authorizer account names or addresses"
    ),
    gas_limit: int = typer.Option(DEFAULT_GAS_LIMIT, "--gas-limit", help="Transaction gas limit"),
    args_json: str = typer.Option("", "--args-json", help="Transaction arguments as JSON"),
) -> None:
    """Build an unsigned transaction for signing by several parties."""
    opts = options(ctx)
    project = opts.require_project()

    def address_of(value: str):
        account = project.find_account(value)
        return account.address if account is not None else parse_address(value)

    code = project.read_file(filename).decode("utf-8")
    tx = opts.services().transactions.build(
        address_of(proposer),
        address_of(payer),
        [address_of(a) for a in authorizers or []],
        proposer_key_index,
        code,
        filename,
        parse_args_from_cli(args, args_json),
        gas_limit,
        opts.network,
    )
    opts.render(PayloadResult(tx.tx))


@app.command("sign")
@handle_errors
def sign(
    ctx: typer.Context,
    filename: str = typer.Argument("", help="File with the hex encoded transaction"),
    signer: str = typer.Option(DEFAULT_EMULATOR_SERVICE_ACCOUNT, "--signer", help="Account name"),
    from_remote_url: str = typer.Option("", "--from-remote-url", help="Fetch the payload from a URL"),
) -> None:
    """Sign a built transaction."""
    opts = options(ctx)
    project = opts.require_project()
    services = opts.services()

    if from_remote_url:
        payload = services.transactions.get_rlp(from_remote_url)
    elif filename:
        payload = _read_payload(opts, filename)
    else:
        raise ValueError("provide a payload file or --from-remote-url")

    tx = services.transactions.sign(project.account_by_name(signer), payload)
    if from_remote_url:
        services.transactions.post_rlp(from_remote_url, tx)
    opts.render(PayloadResult(tx.tx))


@app.command("send-signed")
@handle_errors
def send_signed(
    ctx: typer.Context,
    filename: str = typer.Argument(..., help="File with the signed hex encoded transaction"),
) -> None:
    """Send a signed transaction."""
    opts = options(ctx)
    tx, result = opts.services().transactions.send_signed(_read_payload(opts, filename))
    opts.render(TransactionOutput(tx, result))


@app.command("status")
@handle_errors
def status(
    ctx: typer.Context,
    tx_id: str = typer.Argument(..., help="Transaction ID"),
    sealed: bool = typer.Option(False, "--sealed", help="Wait for the transaction to be sealed"),
) -> None:
    """Get a transaction and its result."""
    opts = options(ctx)
    tx, result = opts.services().transactions.get_status(tx_id, sealed)
    opts.render(TransactionOutput(tx, result))
