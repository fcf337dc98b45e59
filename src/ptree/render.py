"""Rendering of the flattened process tree as rich markup lines."""

from collections.abc import Iterable

from rich.markup import escape

from ptree.config import Config
from ptree.models import ProcessRecord, ProcessTable

INDENT = "|\t"

PID_STYLE = "bright_white on black"
TARGET_STYLE = "bold reverse"
ARG_STYLE = "blue"
ENV_STYLE = "magenta"


def format_pid(pid: int, style: str = PID_STYLE) -> str:
    """Format a pid right-aligned in a 7 column field."""
    return f"[{style}]{pid:>7}[/{style}]"


def render_process(
    depth: int,
    pid: int,
    record: ProcessRecord | None,
    verbose: bool = False,
    target: bool = False,
) -> str:
    """
    Render one process of the listing.

    The non-verbose form is a single line with the command base name. The
    verbose form shows the full executable path, then each further argument
    and each environment variable on its own line one level deeper.
    """
    tab = INDENT * depth
    style = TARGET_STYLE if verbose and target else PID_STYLE
    head = f"{tab}{format_pid(pid, style)}"

    if record is None:
        return f"{head} ?"
    if not verbose:
        return f"{head} {escape(record.name)}"

    command = record.executable or (record.args[0] if record.args else "")
    lines = [f"{head} {escape(command)}"]
    tab += INDENT
    lines.extend(f"{tab}[{ARG_STYLE}]{escape(arg)}[/{ARG_STYLE}]" for arg in record.args[1:])
    lines.extend(f"{tab}[{ENV_STYLE}]{escape(env)}[/{ENV_STYLE}]" for env in record.envs)
    return "\n".join(lines)


def render_lines(
    flat: Iterable[tuple[int, int]],
    table: ProcessTable,
    config: Config,
) -> list[str]:
    """Render every (depth, pid) pair of a flattened tree."""
    targets = set(config.pids)
    return [
        render_process(depth, pid, table.get(pid), config.verbose, pid in targets)
        for depth, pid in flat
    ]
