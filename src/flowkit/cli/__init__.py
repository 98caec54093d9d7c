"""The flow command line."""

from typing import List, Optional

import typer

from ..config import default_paths
from . import accounts, blocks, keys, project, scripts, transactions
from . import config as config_cmd
from .context import GlobalOptions, configure_logging
from .output import OUTPUT_FORMATS

app = typer.Typer(
    name="flow",
    help="Manage Flow projects: configuration, accounts, contracts and transactions.",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main_options(
    ctx: typer.Context,
    config_paths: Optional[List[str]] = typer.Option(
        None, "--config-path", "-f", envvar="FLOW_CONFIG_PATH", help="Configuration files to load"
    ),
    network: str = typer.Option("emulator", "--network", "-n", envvar="FLOW_NETWORK"),
    host: str = typer.Option(
        "", "--host", envvar="FLOW_HOST", help="Access node host, 'memory' for the in-process emulator"
    ),
    log: str = typer.Option("info", "--log", envvar="FLOW_LOG", help="debug, info, error or none"),
    yes: bool = typer.Option(False, "--yes", "-y", envvar="FLOW_YES", help="Approve prompts"),
    output: str = typer.Option(
        "table", "--output", "-o", envvar="FLOW_OUTPUT", help="table, inline or json"
    ),
    save: str = typer.Option("", "--save", envvar="FLOW_SAVE", help="Write the result to a file"),
) -> None:
    try:
        configure_logging(log)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--log") from e
    if output not in OUTPUT_FORMATS:
        raise typer.BadParameter(
            f"invalid output format {output}, valid are: {', '.join(OUTPUT_FORMATS)}",
            param_hint="--output",
        )

    ctx.obj = GlobalOptions(
        config_paths=config_paths or default_paths(),
        network=network,
        host=host,
        log=log,
        yes=yes,
        output=output,
        save=save,
    )


app.add_typer(accounts.app, name="accounts")
app.add_typer(keys.app, name="keys")
app.add_typer(blocks.blocks_app, name="blocks")
app.add_typer(blocks.collections_app, name="collections")
app.add_typer(blocks.events_app, name="events")
app.add_typer(scripts.app, name="scripts")
app.add_typer(transactions.app, name="transactions")
app.add_typer(project.app, name="project")
app.add_typer(config_cmd.app, name="config")
app.command("status")(project.status)


def main() -> None:
    app()
