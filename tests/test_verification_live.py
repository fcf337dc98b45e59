"""Verification tests against live processes.

Spawns real child processes, snapshots the system while they come and go,
and checks the resulting trees stay well formed.
"""

import os
import random
import subprocess
import sys
import time

import pytest

from ptree.directory import ProcessDirectory, snapshot
from ptree.tree import build_tree, family, flatten, lineage_tree

SLEEPER = [sys.executable, "-c", "import time; time.sleep(30)"]


@pytest.fixture
def children():
    """Spawn sleeping child processes of the test process."""
    processes = [subprocess.Popen(SLEEPER) for _ in range(10)]
    try:
        yield processes
    finally:
        for p in processes:
            if p.poll() is None:
                p.terminate()
        for p in processes:
            p.wait(timeout=5.0)


class TestLiveTree:
    """Tree construction over real snapshots."""

    def test_children_under_test_process(self, children):
        """Test spawned children appear as children of the test process."""
        tree = build_tree(snapshot(ProcessDirectory()))
        node = tree.find_subtree(os.getpid())

        assert node is not None
        assert {p.pid for p in children} <= set(node.children)

    def test_lineage_of_children(self, children):
        """Test the lineage of two children holds their ancestors but not their siblings."""
        table = snapshot(ProcessDirectory())
        targets = [children[0].pid, children[1].pid]
        tree = lineage_tree(table, targets)

        assert tree is not None
        ids = set(tree.ids())
        assert set(targets) <= ids
        assert os.getpid() in ids
        assert children[2].pid not in ids
        assert ids == family(build_tree(table), targets[0]) | family(build_tree(table), targets[1])

    def test_snapshot_survives_process_termination(self, children):
        """
        Test snapshots stay well formed while processes exit.

        Processes terminated between enumeration and detail fetch must be
        left out without an error.
        """
        rng = random.Random(0)
        doomed = rng.sample(children, 5)

        for p in doomed:
            p.terminate()
            table = snapshot(ProcessDirectory())
            tree = build_tree(table)
            ids = list(tree.ids())

            assert len(ids) == len(set(ids)) == len(table)
            assert len(flatten(tree, table)) == len(tree)
            time.sleep(0.05)

    def test_rapid_churn(self):
        """Test repeated snapshots during rapid process creation and exit."""
        processes = []
        try:
            for _ in range(5):
                processes.append(subprocess.Popen([sys.executable, "-c", "pass"]))
                table = snapshot(ProcessDirectory())
                assert len(build_tree(table)) == len(table)
        finally:
            for p in processes:
                p.wait(timeout=10.0)
