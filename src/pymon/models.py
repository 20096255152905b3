"""Data models for pymon."""

from dataclasses import dataclass, field
from enum import Enum


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Immutable snapshot of one process row."""

    pid: int
    name: str
    cpu_percent: float  # 0.0 - 100.0 * core_count
    ram_percent: float
    ram_bytes: int  # RSS bytes


class SortMode(Enum):
    """Sort modes for the process table."""

    CPU = "cpu"
    RAM = "ram"
    PID = "pid"

    @property
    def descending(self) -> bool:
        """Largest consumers first for CPU and RAM, lowest pid first for PID."""
        return self is not SortMode.PID

    @property
    def label(self) -> str:
        """Label shown in the info bar."""
        arrow = "▼" if self.descending else "▲"
        return f"{self.name} {arrow}"


@dataclass(slots=True)
class Viewport:
    """Terminal size in character cells."""

    width: int = 120
    height: int = 40


@dataclass(slots=True)
class ViewState:
    """
    Mutable state of the interactive process table.

    Owned by a single InteractiveController; nothing else writes to it.
    """

    processes: list[ProcessRecord] = field(default_factory=list)
    selected_index: int = 0
    scroll_offset: int = 0
    sort_mode: SortMode = SortMode.CPU
    running: bool = True
    viewport: Viewport = field(default_factory=Viewport)
    total_memory: int = 0

    def selected(self) -> ProcessRecord | None:
        """Return the highlighted process, or None when the table is empty."""
        if not self.processes:
            return None
        return self.processes[self.selected_index]

    def move_selection(self, delta: int) -> None:
        """Move the selection by delta rows, clamped to the table bounds."""
        self.selected_index = self._clamp(self.selected_index + delta)

    def replace_processes(self, processes: list[ProcessRecord]) -> None:
        """
        Install a freshly sorted snapshot.

        The selection follows the previously selected pid when it survived the
        refresh; otherwise the old index is clamped into the new bounds.
        """
        current = self.selected()
        self.processes = processes
        if current is not None:
            for index, proc in enumerate(processes):
                if proc.pid == current.pid:
                    self.selected_index = index
                    return
        self.selected_index = self._clamp(self.selected_index)

    def _clamp(self, index: int) -> int:
        if not self.processes:
            return 0
        return max(0, min(index, len(self.processes) - 1))


class Key(Enum):
    """Kinds of normalized key events."""

    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    DELETE = "delete"
    REFRESH = "refresh"
    QUIT = "quit"
    CHAR = "char"
    RAW = "raw"


@dataclass(slots=True, frozen=True)
class KeyEvent:
    """A single decoded keypress."""

    key: Key
    data: bytes = b""

    @property
    def char(self) -> str:
        """The typed character for CHAR events, empty otherwise."""
        if self.key is not Key.CHAR:
            return ""
        return self.data.decode("ascii", errors="replace")
