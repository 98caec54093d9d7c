"""flow blocks, flow collections and flow events."""

from typing import List, Optional

import typer

from .context import handle_errors, options
from .output import BlockResult, CollectionResult, EventsResult

blocks_app = typer.Typer(help="Utilities to read blocks", no_args_is_help=True)
collections_app = typer.Typer(help="Utilities to read collections", no_args_is_help=True)
events_app = typer.Typer(help="Utilities to read events", no_args_is_help=True)


@blocks_app.command("get")
@handle_errors
def get_block(
    ctx: typer.Context,
    query: str = typer.Argument("latest", help='"latest", a block height or a block ID'),
    events: Optional[List[str]] = typer.Option(
        None, "--events", help="Event types to list for the block"
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Include collection details"),
) -> None:
    """Get a block."""
    opts = options(ctx)
    block, block_events, collections = opts.services().blocks.get_block(
        query, events or [], verbose
    )
    opts.render(BlockResult(block, block_events, collections))


@collections_app.command("get")
@handle_errors
def get_collection(
    ctx: typer.Context,
    collection_id: str = typer.Argument(..., help="Collection ID"),
) -> None:
    """Get a collection."""
    opts = options(ctx)
    collection = opts.services().collections.get(collection_id)
    opts.render(CollectionResult(collection))


@events_app.command("get")
@handle_errors
def get_events(
    ctx: typer.Context,
    event_types: List[str] = typer.Argument(..., help="Event types, e.g. A.0x1.Contract.Event"),
    start: int = typer.Option(0, "--start", help="Start block height"),
    end: int = typer.Option(0, "--end", help="End block height"),
    last: int = typer.Option(10, "--last", help="Number of latest blocks when no range is given"),
) -> None:
    """Get events in a block range."""
    opts = options(ctx)
    block_events = opts.services().events.get(event_types, start, end, last)
    opts.render(EventsResult(block_events))
