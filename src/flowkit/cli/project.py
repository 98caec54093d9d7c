"""flow project: init and deploy, and flow status."""

import typer

from ..crypto import HashAlgorithm, SignatureAlgorithm, decode_private_key_hex
from ..services import ProjectService
from .context import handle_errors, options
from .output import DeployResult, MessageResult, StatusResult

app = typer.Typer(help="Manage the project configuration and deploy contracts", no_args_is_help=True)


@app.command("init")
@handle_errors
def init(
    ctx: typer.Context,
    reset: bool = typer.Option(False, "--reset", help="Overwrite an existing configuration"),
    global_: bool = typer.Option(False, "--global", help="Write the global configuration"),
    service_private_key: str = typer.Option(
        "", "--service-private-key", help="Hex private key of the emulator service account"
    ),
    service_sig_algo: str = typer.Option(
        "ECDSA_P256", "--service-sig-algo", help="Signature algorithm of the service key"
    ),
    service_hash_algo: str = typer.Option(
        "SHA3_256", "--service-hash-algo", help="Hash algorithm of the service key"
    ),
) -> None:
    """Initialize a new project configuration."""
    opts = options(ctx)
    sig_algo = SignatureAlgorithm.from_string(service_sig_algo)
    hash_algo = HashAlgorithm.from_string(service_hash_algo)

    service_key = None
    if service_private_key:
        service_key = decode_private_key_hex(sig_algo, service_private_key)

    project = ProjectService(None, logger=None).init(
        opts.reader_writer,
        reset=reset,
        global_=global_,
        sig_algo=sig_algo,
        hash_algo=hash_algo,
        service_key=service_key,
    )
    service = project.emulator_service_account()
    opts.render(
        MessageResult(
            f"Configuration initialized\nService account: 0x{service.address.hex()}"
        )
    )


@app.command("deploy")
@handle_errors
def deploy(
    ctx: typer.Context,
    update: bool = typer.Option(False, "--update", help="Update contracts that already exist"),
) -> None:
    """Deploy the project's contracts to the selected network."""
    opts = options(ctx)
    opts.require_project()
    contracts = opts.services().project.deploy(opts.network, update)
    opts.render(DeployResult(contracts))


@handle_errors
def status(ctx: typer.Context) -> None:
    """Report whether the selected network is reachable."""
    opts = options(ctx)
    opts.render(StatusResult(opts.services().status.ping(opts.network)))
