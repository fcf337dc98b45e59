"""Run configuration for ptree."""

from dataclasses import dataclass

from ptree.tree import Order


@dataclass(slots=True, frozen=True)
class Config:
    """Options of a single run, read once from the command line."""

    pids: tuple[int, ...] = ()
    root: int | None = None
    verbose: bool = False
    order: Order = Order.DEPTH
    color: bool = True
    log_level: str = "WARNING"


def parse_pids(text: str) -> tuple[int, ...]:
    """
    Parse a comma separated list of pids.

    Blank items are skipped. Raises ValueError naming the first item that is
    not an integer.
    """
    pids = []
    for item in text.split(","):
        item = item.strip()
        if not item:
            continue
        try:
            pids.append(int(item))
        except ValueError:
            raise ValueError(f"invalid pid {item!r}") from None
    return tuple(pids)
