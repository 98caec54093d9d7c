"""flow keys: generate and decode."""

from typing import Optional

import typer

from ..crypto import SignatureAlgorithm
from ..services import Keys
from .context import handle_errors, options
from .output import AccountKeyResult, KeyResult

app = typer.Typer(help="Utilities to manage keys", no_args_is_help=True)


@app.command("generate")
@handle_errors
def generate(
    ctx: typer.Context,
    seed: str = typer.Option("", "--seed", help="Deterministic seed phrase"),
    sig_algo: str = typer.Option("ECDSA_P256", "--sig-algo", help="Signature algorithm"),
) -> None:
    """Generate a new key pair."""
    opts = options(ctx)
    private_key = Keys().generate(seed, SignatureAlgorithm.from_string(sig_algo))
    opts.render(KeyResult(private_key))


@app.command("decode")
@handle_errors
def decode(
    ctx: typer.Context,
    encoding: str = typer.Argument(..., help="Encoding of the key: rlp or pem"),
    value: Optional[str] = typer.Argument(None, help="Encoded key"),
    from_file: str = typer.Option("", "--from-file", help="Read the encoded key from a file"),
    sig_algo: str = typer.Option("ECDSA_P256", "--sig-algo", help="Signature algorithm of a PEM key"),
) -> None:
    """Decode an RLP or PEM encoded public key."""
    opts = options(ctx)
    if from_file:
        value = opts.reader_writer.read_file(from_file).decode("utf-8")
    if not value:
        raise ValueError("provide the key as an argument or with --from-file")

    keys = Keys()
    match encoding.lower():
        case "rlp":
            key = keys.decode_rlp(value)
        case "pem":
            key = keys.decode_pem(value, SignatureAlgorithm.from_string(sig_algo))
        case _:
            raise ValueError(f"encoding type not supported: {encoding}, valid are: rlp, pem")

    opts.render(AccountKeyResult(key))
