"""Tests for the process snapshot provider."""

import multiprocessing
import time

import psutil
import pytest

from pymon import monitor
from pymon.errors import SnapshotFetchFailed
from pymon.models import ProcessRecord, SortMode
from pymon.monitor import (
    collect_processes,
    prime_cpu_counters,
    request_termination,
    sort_processes,
    top_processes,
    total_memory,
)


def record(pid: int, cpu: float = 0.0, ram: float = 0.0) -> ProcessRecord:
    return ProcessRecord(pid=pid, name=f"p{pid}", cpu_percent=cpu, ram_percent=ram, ram_bytes=0)


def busy_worker(duration: float = 10.0) -> None:
    """A worker process that spins on the CPU for a given duration."""
    deadline = time.monotonic() + duration
    while time.monotonic() < deadline:
        pass


class TestCollectProcesses:
    """Tests for collect_processes against the live system."""

    def test_collect_processes_returns_list(self):
        """Test collect_processes returns a list of ProcessRecord."""
        processes = collect_processes()

        assert isinstance(processes, list)
        assert len(processes) > 0
        for proc in processes:
            assert isinstance(proc, ProcessRecord)

    def test_process_record_has_required_fields(self):
        """Test collected records have all required fields."""
        processes = collect_processes()

        for proc in processes[:5]:
            assert proc.pid >= 0
            assert isinstance(proc.name, str)
            assert isinstance(proc.cpu_percent, float)
            assert isinstance(proc.ram_percent, float)
            assert isinstance(proc.ram_bytes, int)

    def test_own_process_is_listed(self):
        """Test the test runner itself appears in the snapshot."""
        pids = {proc.pid for proc in collect_processes()}
        assert psutil.Process().pid in pids

    def test_total_memory_positive(self):
        """Test total_memory reports physical memory."""
        assert total_memory() > 0

    def test_enumeration_failure_raises(self, monkeypatch):
        """Test a failing process table raises SnapshotFetchFailed."""

        def broken_iter(attrs=None):
            raise psutil.AccessDenied()

        monkeypatch.setattr(psutil, "process_iter", broken_iter)

        with pytest.raises(SnapshotFetchFailed):
            collect_processes()

    def test_sampled_snapshot_ranks_busy_process(self):
        """Test a busy child is among the top CPU consumers of a sampled snapshot."""
        p = multiprocessing.Process(target=busy_worker, args=(10.0,))
        p.start()

        try:
            time.sleep(0.5)
            top = top_processes(collect_processes(sample_interval=0.5), 5)

            assert p.pid in [proc.pid for proc in top]
            assert top[0].cpu_percent > 0.0
        finally:
            p.terminate()
            p.join(timeout=2.0)

    def test_sample_interval_primes_then_waits(self, monkeypatch):
        """Test a positive sample_interval primes counters before sleeping."""
        calls = []
        monkeypatch.setattr(monitor, "prime_cpu_counters", lambda: calls.append("prime"))
        monkeypatch.setattr(monitor.time, "sleep", lambda seconds: calls.append(seconds))

        collect_processes(sample_interval=0.3)

        assert calls == ["prime", 0.3]

    def test_no_sample_interval_skips_priming(self, monkeypatch):
        """Test the default snapshot returns without waiting."""
        calls = []
        monkeypatch.setattr(monitor, "prime_cpu_counters", lambda: calls.append("prime"))

        collect_processes()

        assert calls == []

    def test_prime_survives_enumeration_failure(self, monkeypatch):
        """Test priming logs and returns when the process table is unreadable."""

        def broken_iter(attrs=None):
            raise psutil.AccessDenied()

        monkeypatch.setattr(psutil, "process_iter", broken_iter)
        prime_cpu_counters()


class TestSortProcesses:
    """Tests for sort_processes and top_processes."""

    def test_cpu_descending(self):
        """Test CPU sort puts the largest consumer first."""
        result = sort_processes([record(1, cpu=10), record(2, cpu=90), record(3, cpu=50)], SortMode.CPU)
        assert [p.pid for p in result] == [2, 3, 1]

    def test_ram_descending(self):
        """Test RAM sort puts the largest consumer first."""
        result = sort_processes([record(1, ram=1), record(2, ram=3), record(3, ram=2)], SortMode.RAM)
        assert [p.pid for p in result] == [2, 3, 1]

    def test_pid_ascending(self):
        """Test PID sort is ascending."""
        result = sort_processes([record(30), record(10), record(20)], SortMode.PID)
        assert [p.pid for p in result] == [10, 20, 30]

    def test_stable_for_equal_keys(self):
        """Test equal CPU values keep their snapshot order."""
        processes = [record(5, cpu=1), record(3, cpu=7), record(9, cpu=1), record(1, cpu=1)]
        result = sort_processes(processes, SortMode.CPU)
        assert [p.pid for p in result] == [3, 5, 9, 1]

    def test_sort_returns_new_list(self):
        """Test the input list is left untouched."""
        processes = [record(2), record(1)]
        sort_processes(processes, SortMode.PID)
        assert [p.pid for p in processes] == [2, 1]

    def test_top_processes(self):
        """Test top_processes keeps the n highest CPU users, ties in order."""
        processes = [record(1, cpu=5), record(2, cpu=20), record(3, cpu=5), record(4, cpu=1)]
        assert [p.pid for p in top_processes(processes, 3)] == [2, 1, 3]

    def test_top_processes_non_positive(self):
        """Test n <= 0 yields nothing."""
        assert top_processes([record(1)], 0) == []
        assert top_processes([record(1)], -3) == []


class FakeProcess:
    """Stand-in for psutil.Process recording which signals were sent."""

    sent: list[tuple[int, str]] = []
    fail: set[str] = set()

    def __init__(self, pid: int) -> None:
        self.pid = pid

    def terminate(self) -> None:
        self._send("TERM")

    def kill(self) -> None:
        self._send("KILL")

    def _send(self, sig: str) -> None:
        FakeProcess.sent.append((self.pid, sig))
        if sig in FakeProcess.fail:
            raise psutil.AccessDenied(self.pid)


@pytest.fixture
def fake_process(monkeypatch):
    FakeProcess.sent = []
    FakeProcess.fail = set()
    monkeypatch.setattr(monitor.psutil, "Process", FakeProcess)
    return FakeProcess


class TestRequestTermination:
    """Tests for the graceful-then-forced termination primitive."""

    def test_graceful_success(self, fake_process):
        """Test a delivered SIGTERM is not followed by SIGKILL."""
        assert request_termination(4242)
        assert fake_process.sent == [(4242, "TERM")]

    def test_escalates_once(self, fake_process):
        """Test a failed SIGTERM escalates to exactly one SIGKILL."""
        fake_process.fail = {"TERM"}
        assert request_termination(4242)
        assert fake_process.sent == [(4242, "TERM"), (4242, "KILL")]

    def test_both_fail(self, fake_process):
        """Test failure of both signals is absorbed and reported as False."""
        fake_process.fail = {"TERM", "KILL"}
        assert not request_termination(4242)
        assert fake_process.sent == [(4242, "TERM"), (4242, "KILL")]

    def test_missing_process(self, monkeypatch):
        """Test a pid that does not exist returns False without raising."""

        def no_such_process(pid):
            raise psutil.NoSuchProcess(pid)

        monkeypatch.setattr(monitor.psutil, "Process", no_such_process)
        assert not request_termination(999999)
