"""Process snapshot provider and termination primitive for pymon."""

import logging
import time

import psutil

from pymon.errors import SnapshotFetchFailed, TerminationRequestFailed
from pymon.models import ProcessRecord, SortMode

logger = logging.getLogger(__name__)

# Attributes to fetch in oneshot
PROCESS_ATTRS = ["pid", "name", "cpu_percent", "memory_percent", "memory_info"]


def total_memory() -> int:
    """Return total physical memory in bytes."""
    return psutil.virtual_memory().total


def prime_cpu_counters() -> None:
    """Start a CPU measurement interval for every running process."""
    try:
        for _proc in psutil.process_iter(attrs=["cpu_percent"]):
            pass
    except (psutil.Error, OSError) as exc:
        logger.debug("Could not prime CPU counters: %s", exc)


def collect_processes(sample_interval: float = 0.0) -> list[ProcessRecord]:
    """
    Collect a fresh snapshot of all running processes.

    Processes that die mid-poll, deny access or are zombies are skipped.
    psutil keeps the Process objects returned by process_iter() cached, so
    cpu_percent is measured since the previous call (0.0 on the first one).

    Args:
        sample_interval: When positive, prime the CPU counters and wait this
            many seconds first, so a one-shot snapshot carries real CPU usage.

    Raises:
        SnapshotFetchFailed: The process table could not be enumerated.
    """
    if sample_interval > 0:
        prime_cpu_counters()
        time.sleep(sample_interval)

    processes: list[ProcessRecord] = []

    try:
        for proc in psutil.process_iter(attrs=PROCESS_ATTRS):
            try:
                with proc.oneshot():
                    info = proc.info

                    mem_info = info.get("memory_info")
                    processes.append(
                        ProcessRecord(
                            pid=info.get("pid", 0),
                            name=info.get("name") or "",
                            cpu_percent=info.get("cpu_percent") or 0.0,
                            ram_percent=info.get("memory_percent") or 0.0,
                            ram_bytes=mem_info.rss if mem_info else 0,
                        )
                    )
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue
    except (psutil.Error, OSError) as exc:
        raise SnapshotFetchFailed(str(exc)) from exc

    return processes


def sort_processes(processes: list[ProcessRecord], mode: SortMode) -> list[ProcessRecord]:
    """Return processes ordered for mode; equal keys keep their snapshot order."""
    key_func = {
        SortMode.CPU: lambda p: p.cpu_percent,
        SortMode.RAM: lambda p: p.ram_percent,
        SortMode.PID: lambda p: p.pid,
    }
    # sorted() stays stable with reverse=True
    return sorted(processes, key=key_func[mode], reverse=mode.descending)


def top_processes(processes: list[ProcessRecord], n: int) -> list[ProcessRecord]:
    """Return the n highest-CPU processes."""
    if n <= 0:
        return []
    return sort_processes(processes, SortMode.CPU)[:n]


def _send(pid: int, force: bool) -> None:
    try:
        proc = psutil.Process(pid)
        if force:
            proc.kill()
        else:
            proc.terminate()
    except (psutil.Error, OSError) as exc:
        raise TerminationRequestFailed(pid, str(exc) or type(exc).__name__) from exc


def request_termination(pid: int) -> bool:
    """
    Ask a process to exit, escalating once to a forced kill.

    Returns:
        True if one of the two signals was delivered.
    """
    try:
        _send(pid, force=False)
        return True
    except TerminationRequestFailed as exc:
        logger.debug("SIGTERM failed, escalating: %s", exc)

    try:
        _send(pid, force=True)
        return True
    except TerminationRequestFailed as exc:
        logger.debug("SIGKILL failed: %s", exc)
        return False
