"""Process hierarchy: building, lineage selection and ordered flattening."""

import logging
from collections.abc import Callable, Iterable, Iterator
from enum import Enum
from typing import Any, Union

from ptree.models import NO_PARENT, ProcessRecord, ProcessTable, make_table

logger = logging.getLogger(__name__)


class ProcessTree:
    """
    A node of the process hierarchy, owning the subtrees of its children.

    The outermost node stands for the synthetic root: its children are the
    root processes of the forest. A node with no children is a leaf.
    """

    __slots__ = ("children",)

    def __init__(self, children: dict[int, "ProcessTree"] | None = None) -> None:
        self.children: dict[int, ProcessTree] = children if children is not None else {}

    def insert_path(self, path: Iterable[int]) -> None:
        """Insert a root-to-process path, reusing nodes that already exist."""
        node = self
        for pid in path:
            child = node.children.get(pid)
            if child is None:
                child = node.children[pid] = ProcessTree()
            node = child

    def find_subtree(self, pid: int) -> "ProcessTree | None":
        """Find the node of a process anywhere below this one."""
        stack = [self]
        while stack:
            node = stack.pop()
            child = node.children.get(pid)
            if child is not None:
                return child
            stack.extend(node.children.values())
        return None

    def path_to(self, pid: int) -> list[int] | None:
        """Return the pids from a root down to pid (inclusive), or None."""
        stack: list[tuple[ProcessTree, list[int]]] = [(self, [])]
        while stack:
            node, path = stack.pop()
            if pid in node.children:
                return [*path, pid]
            for child_pid, child in node.children.items():
                stack.append((child, [*path, child_pid]))
        return None

    def depths(self) -> dict[int, int]:
        """Map the id() of this node and of every node below it to its depth."""
        depths: dict[int, int] = {}
        stack: list[tuple[ProcessTree, bool]] = [(self, False)]
        while stack:
            node, expanded = stack.pop()
            if expanded:
                depths[id(node)] = max(
                    (depths[id(child)] + 1 for child in node.children.values()), default=0
                )
            else:
                stack.append((node, True))
                stack.extend((child, False) for child in node.children.values())
        return depths

    def depth(self) -> int:
        """Levels of descendants below this node (0 for a leaf)."""
        return self.depths()[id(self)]

    def ids(self) -> Iterator[int]:
        """Yield every pid below this node, in pre-order."""
        stack = list(reversed(self.children.items()))
        while stack:
            pid, node = stack.pop()
            yield pid
            stack.extend(reversed(node.children.items()))

    def __len__(self) -> int:
        return sum(1 for _ in self.ids())

    def __contains__(self, pid: object) -> bool:
        return isinstance(pid, int) and self.find_subtree(pid) is not None

    def __iter__(self) -> Iterator[int]:
        return iter(self.children)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProcessTree):
            return NotImplemented
        stack = [(self, other)]
        while stack:
            mine, theirs = stack.pop()
            if mine.children.keys() != theirs.children.keys():
                return False
            stack.extend((child, theirs.children[pid]) for pid, child in mine.children.items())
        return True

    def __repr__(self) -> str:
        return f"ProcessTree(roots={list(self.children)!r}, size={len(self)})"


# -----------------------------
# Hierarchy builder
# -----------------------------


def ancestry(table: ProcessTable, pid: int) -> list[int]:
    """
    Return the chain of pids from the process' root down to the process.

    The walk follows parent links until a parent is missing from the table
    or is the NO_PARENT sentinel. A parent cycle is cut at its lowest pid,
    which then acts as the root for every member of the cycle.
    """
    chain = [pid]
    seen = {pid}
    ppid = table[pid].ppid
    while ppid > NO_PARENT and ppid in table:
        if ppid in seen:
            cycle = chain[chain.index(ppid):]
            root = min(cycle)
            logger.warning("parent cycle among pids %s, treating %d as a root", sorted(cycle), root)
            chain = chain[: chain.index(root) + 1]
            break
        chain.append(ppid)
        seen.add(ppid)
        ppid = table[ppid].ppid

    chain.reverse()
    return chain


def build_tree(table: ProcessTable) -> ProcessTree:
    """Build the process forest from a process table."""
    tree = ProcessTree()
    for pid in sorted(table):
        tree.insert_path(ancestry(table, pid))
    return tree


def subtree(tree: ProcessTree, root: int) -> ProcessTree | None:
    """Return a forest holding only root and its descendants, or None."""
    node = tree.find_subtree(root)
    if node is None:
        return None
    return ProcessTree({root: node})


# -----------------------------
# Lineage selector
# -----------------------------


def family(tree: ProcessTree, target: int) -> set[int]:
    """
    Return the lineage of a process: its ancestors, itself and its descendants.

    Empty if target is not in the tree.
    """
    path = tree.path_to(target)
    if path is None:
        return set()
    lineage = set(path)
    node = tree.find_subtree(target)
    if node is not None:
        lineage.update(node.ids())
    return lineage


def select_targets(table: ProcessTable, pids: Iterable[int]) -> list[int]:
    """Deduplicate requested pids and drop those not in the table."""
    targets: list[int] = []
    for pid in pids:
        if pid in targets:
            continue
        if pid not in table:
            logger.debug("pid %d not found, ignored", pid)
            continue
        targets.append(pid)
    return targets


def restrict(table: ProcessTable, tree: ProcessTree, targets: Iterable[int]) -> ProcessTable:
    """Filter a table to the union of the targets' lineages."""
    keep: set[int] = set()
    for target in targets:
        keep |= family(tree, target)
    return make_table(table[pid] for pid in sorted(keep) if pid in table)


def lineage_tree(
    table: ProcessTable,
    pids: Iterable[int],
    tree: ProcessTree | None = None,
) -> ProcessTree | None:
    """
    Build the forest of the lineages of the requested processes.

    The forest is rebuilt from the restricted table, so shared ancestors merge
    into single branches. Returns None if none of the pids is in the table.
    """
    targets = select_targets(table, pids)
    if not targets:
        return None
    if tree is None:
        tree = build_tree(table)
    restricted = restrict(table, tree, targets)
    logger.debug("lineages of %s cover %d processes", targets, len(restricted))
    return build_tree(restricted)


# -----------------------------
# Ordered flattener
# -----------------------------


class Order(Enum):
    """Policies for ordering the children of a process."""

    DEPTH = "depth"  # deepest subtree first
    NAME = "name"  # command base name
    PID = "pid"


SortKeyFunc = Callable[[int, ProcessRecord | None, ProcessTree], Any]

_ORDER_KEYS: dict[Order, SortKeyFunc] = {
    Order.NAME: lambda pid, record, node: (record.name if record else "", pid),
    Order.PID: lambda pid, record, node: pid,
}


def _sort_key(tree: ProcessTree, order: Union[Order, str, SortKeyFunc]) -> SortKeyFunc:
    if callable(order):
        return order
    order = Order(order)
    if order is Order.DEPTH:
        depths = tree.depths()
        return lambda pid, record, node: (-depths[id(node)], pid)
    return _ORDER_KEYS[order]


def flatten(
    tree: ProcessTree,
    table: ProcessTable,
    order: Union[Order, str, SortKeyFunc] = Order.DEPTH,
) -> list[tuple[int, int]]:
    """
    Flatten a forest into (depth, pid) pairs in depth-first pre-order.

    Roots are at depth 0. Siblings are ordered by an Order policy, or by a
    key function called with (pid, record, node) where record is None for
    a pid that is not in the table.
    """
    key = _sort_key(tree, order)

    def ordered(node: ProcessTree, depth: int) -> list[tuple[int, int, ProcessTree]]:
        children = node.children
        pids = sorted(children, key=lambda pid: key(pid, table.get(pid), children[pid]))
        return [(depth, pid, children[pid]) for pid in reversed(pids)]

    flat: list[tuple[int, int]] = []
    stack = ordered(tree, 0)
    while stack:
        depth, pid, node = stack.pop()
        flat.append((depth, pid))
        stack.extend(ordered(node, depth + 1))
    return flat
