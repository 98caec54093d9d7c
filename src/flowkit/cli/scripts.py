"""flow scripts."""

from typing import List, Optional

import typer

from ..arguments import parse_args_from_cli
from .context import handle_errors, options
from .output import ScriptResult

app = typer.Typer(help="Utilities to execute scripts", no_args_is_help=True)


@app.command("execute")
@handle_errors
def execute(
    ctx: typer.Context,
    filename: str = typer.Argument(..., help="Script source file"),
    args: Optional[List[str]] = typer.Argument(None, help="Script arguments as Type:Value"),
    args_json: str = typer.Option("", "--args-json", help="Script arguments as JSON"),
) -> None:
    """Execute a script."""
    opts = options(ctx)
    code = opts.reader_writer.read_file(filename).decode("utf-8")

    value = opts.services().scripts.execute(
        code, parse_args_from_cli(args, args_json), filename, opts.network
    )
    opts.render(ScriptResult(value))
