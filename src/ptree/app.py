"""ptree - Process tree listing pipeline and command line entry point."""

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from ptree.config import Config, parse_pids
from ptree.directory import Directory, ProcessDirectory, snapshot
from ptree.errors import DirectoryError
from ptree.render import render_lines
from ptree.tree import Order, build_tree, flatten, lineage_tree, subtree

logger = logging.getLogger(__name__)


def run(
    config: Config,
    directory: Directory | None = None,
    console: Console | None = None,
) -> int:
    """
    Snapshot the processes and print the tree listing.

    Lineage selection with config.pids applies first, then config.root picks
    the subtree under one process. Either one falls back to the unrestricted
    forest when none of its pids are found.

    Raises:
        DirectoryError: The processes could not be enumerated.
    """
    if directory is None:
        directory = ProcessDirectory()
    if console is None:
        console = Console(color_system="auto" if config.color else None, highlight=False)

    table = snapshot(directory)
    tree = build_tree(table)

    if config.pids:
        restricted = lineage_tree(table, config.pids, tree)
        if restricted is None:
            logger.info("none of pids %s found, listing all processes", list(config.pids))
        else:
            tree = restricted

    if config.root is not None:
        rooted = subtree(tree, config.root)
        if rooted is None:
            logger.warning("pid %d not found, listing all processes", config.root)
        else:
            tree = rooted

    flat = flatten(tree, table, config.order)
    for line in render_lines(flat, table, config):
        console.print(line, soft_wrap=True)
    return 0


# -----------------------------
# Command line
# -----------------------------

app = typer.Typer(
    add_completion=False,
    help="ptree: print a tree listing of the processes running currently on the system.",
)
err_console = Console(stderr=True)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_time=False, show_path=False)],
        force=True,
    )


def _pids_option(value: str | None) -> tuple[int, ...]:
    if value is None:
        return ()
    try:
        return parse_pids(value)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


@app.command()
def cli(
    pids: str | None = typer.Option(
        None,
        "--pids",
        "-p",
        metavar="PID[,PID...]",
        help="Print the process tree for specific processes, with their ancestors and descendants.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Include full command path, arguments, and environment variables for each process.",
    ),
    root: int | None = typer.Option(
        None, "--root", "-r", help="Print only the subtree under this process."
    ),
    order: Order = typer.Option(
        Order.DEPTH,
        "--order",
        "-o",
        envvar="PTREE_ORDER",
        case_sensitive=False,
        help="Order of sibling processes: deepest subtree first, command name, or pid.",
    ),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colors."),
    debug: bool = typer.Option(False, "--debug", help="Log diagnostics to stderr."),
) -> None:
    """Print a tree listing of the processes running currently on the system."""
    config = Config(
        pids=_pids_option(pids),
        root=root,
        verbose=verbose,
        order=order,
        color=not no_color,
        log_level="DEBUG" if debug else "WARNING",
    )
    setup_logging(config.log_level)

    try:
        code = run(config)
    except DirectoryError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)
    raise typer.Exit(code=code)


def main() -> None:
    """Entry point for the ptree command."""
    app()


if __name__ == "__main__":
    main()
