"""Data models for ptree."""

import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

# Parent id of processes with no parent (and of the synthetic root).
NO_PARENT = 0


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Immutable snapshot of a process' identity and command line."""

    pid: int
    ppid: int
    executable: str = ""
    args: tuple[str, ...] = ()
    envs: tuple[str, ...] = ()  # "KEY=VALUE"

    @property
    def name(self) -> str:
        """Base name of the process' command."""
        command = self.args[0] if self.args else self.executable
        return os.path.basename(command)


ProcessTable = Mapping[int, ProcessRecord]


def make_table(records: Iterable[ProcessRecord]) -> ProcessTable:
    """Build a read-only process table keyed by pid."""
    return MappingProxyType({record.pid: record for record in records})
