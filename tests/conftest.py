"""Shared fixtures for ptree tests."""

import pytest

from ptree.errors import DirectoryError
from ptree.models import ProcessRecord, ProcessTable, make_table


class FakeDirectory:
    """In-memory process directory."""

    def __init__(self, records, missing=(), fail=False):
        self._records = {record.pid: record for record in records}
        self._missing = set(missing)
        self._fail = fail

    def list_pids(self):
        if self._fail:
            raise DirectoryError("could not list processes: permission denied")
        return sorted(self._records.keys() | self._missing)

    def fetch_record(self, pid):
        if pid in self._missing:
            return None
        return self._records.get(pid)


def record(pid: int, ppid: int, command: str = "") -> ProcessRecord:
    """Build a record whose command is /usr/bin/<command> (default proc<pid>)."""
    command = command or f"proc{pid}"
    return ProcessRecord(
        pid=pid,
        ppid=ppid,
        executable=f"/usr/bin/{command}",
        args=(f"/usr/bin/{command}",),
    )


def table_of(parents: dict[int, int], commands: dict[int, str] | None = None) -> ProcessTable:
    """Build a table from a pid -> ppid mapping."""
    commands = commands or {}
    return make_table(record(pid, ppid, commands.get(pid, "")) for pid, ppid in parents.items())


@pytest.fixture
def small_table() -> ProcessTable:
    """Table 1 -> {2 -> {4}, 3}."""
    return table_of({1: 0, 2: 1, 3: 1, 4: 2})


@pytest.fixture
def host_table() -> ProcessTable:
    """A table shaped like a small host: init, a login shell, a daemon and an orphan."""
    return table_of(
        {
            1: 0,
            2: 0,  # kthreadd
            10: 2,
            11: 2,
            100: 1,  # sshd
            200: 100,  # sshd session
            201: 200,  # bash
            202: 201,  # vim
            203: 201,  # make
            204: 203,  # cc
            300: 1,  # cron
            500: 999,  # orphan, parent exited
        },
        {
            1: "init",
            2: "kthreadd",
            10: "kworker",
            11: "ksoftirqd",
            100: "sshd",
            200: "sshd",
            201: "bash",
            202: "vim",
            203: "make",
            204: "cc",
            300: "cron",
            500: "orphan",
        },
    )
