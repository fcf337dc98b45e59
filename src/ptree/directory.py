"""Process directory: captures the process snapshot using psutil."""

import logging
from collections.abc import Callable
from typing import Protocol, TypeVar

import psutil

from ptree.errors import DirectoryError
from ptree.models import ProcessRecord, ProcessTable, make_table

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Directory(Protocol):
    """Source of process ids and per-process records."""

    def list_pids(self) -> list[int]: ...

    def fetch_record(self, pid: int) -> ProcessRecord | None: ...


def _optional(getter: Callable[[], T], default: T) -> T:
    """Call a psutil getter, returning default if the field is not readable."""
    try:
        value = getter()
    except (psutil.AccessDenied, psutil.ZombieProcess):
        return default
    return value if value is not None else default


class ProcessDirectory:
    """
    Process directory backed by psutil.

    Reads each process' parent pid, executable, arguments and environment.
    Processes that exit between enumeration and the detail fetch, or whose
    parent pid cannot be read, are left out of the snapshot.
    """

    def list_pids(self) -> list[int]:
        """
        Enumerate the pids of all live processes in ascending order.

        Raises:
            DirectoryError: The process list could not be obtained.
        """
        try:
            pids = psutil.pids()
        except (OSError, psutil.Error) as e:
            raise DirectoryError(f"could not list processes: {e}") from e
        if not pids:
            raise DirectoryError("could not list processes: no processes found")
        return sorted(pids)

    def fetch_record(self, pid: int) -> ProcessRecord | None:
        """Fetch the record for a pid, or None if the process is not readable."""
        try:
            proc = psutil.Process(pid)
            # Use oneshot() context manager for efficient attribute access
            with proc.oneshot():
                ppid = proc.ppid()
                executable = _optional(proc.exe, "")
                args = _optional(proc.cmdline, [])
                environ = _optional(proc.environ, {})
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            # Process died mid-snapshot or its parent is not readable
            return None

        return ProcessRecord(
            pid=pid,
            ppid=ppid,
            executable=executable,
            args=tuple(args),
            envs=tuple(f"{key}={value}" for key, value in environ.items()),
        )


def snapshot(directory: Directory) -> ProcessTable:
    """
    Capture a process table from a directory.

    Enumeration failure is fatal; a failed fetch only excludes that pid.
    """
    pids = directory.list_pids()
    records = []
    missed = 0
    for pid in pids:
        record = directory.fetch_record(pid)
        if record is None:
            logger.debug("pid %d not readable, excluded from snapshot", pid)
            missed += 1
            continue
        records.append(record)

    logger.debug("captured %d of %d processes", len(records), len(pids))
    if missed:
        logger.info("%d processes exited or were unreadable during the snapshot", missed)
    return make_table(records)
