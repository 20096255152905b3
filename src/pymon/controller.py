"""Interactive process table: event loop and state transitions."""

import logging
import shutil
import signal
import sys
import threading
import time
from collections.abc import Callable
from queue import Empty, Queue
from typing import TextIO

from pymon.config import MonitorConfig
from pymon.errors import SnapshotFetchFailed
from pymon.keys import KeyReader
from pymon.models import Key, KeyEvent, ProcessRecord, SortMode, ViewState, Viewport
from pymon.monitor import (
    collect_processes,
    prime_cpu_counters,
    request_termination,
    sort_processes,
    total_memory,
)
from pymon.render import fit_rows, render_screen, scroll_window
from pymon.terminal import CLEAR_SCREEN, CURSOR_HOME, TerminalGuard

logger = logging.getLogger(__name__)

CTRL_C = b"\x03"
HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class InteractiveController:
    """
    Owns the ViewState and drives the interactive session.

    Keys arrive from a KeyReader thread through a bounded queue; everything
    else (refreshing, sorting, killing, rendering) happens on the thread that
    called run(), one event at a time.
    """

    def __init__(
        self,
        config: MonitorConfig | None = None,
        fetch: Callable[[], list[ProcessRecord]] = collect_processes,
        terminate: Callable[[int], bool] = request_termination,
        memory_total: Callable[[], int] = total_memory,
        prime: Callable[[], None] = prime_cpu_counters,
        stream: TextIO | None = None,
        fd: int | None = None,
        guard_factory: Callable[..., TerminalGuard] = TerminalGuard,
        reader_factory: Callable[..., KeyReader] = KeyReader,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Initialize the InteractiveController.

        Args:
            config: Timing and layout tunables.
            fetch: Returns a fresh process snapshot.
            terminate: Asks a pid to exit; returns False if it could not.
            memory_total: Returns total system memory in bytes.
            prime: Starts CPU measurement so the first frame shows real usage.
            stream: Where frames are written. Defaults to stdout.
            fd: Terminal descriptor to read keys from. Defaults to stdin.
            guard_factory: Builds the raw-mode guard for (fd, stream).
            reader_factory: Builds the key reader for (fd, queue, chunk_size).
            sleep: Used for the CPU sampling pause and the pause after a
                termination request.
        """
        self.config = config or MonitorConfig()
        self.state = ViewState()
        self._fetch = fetch
        self._terminate = terminate
        self._memory_total = memory_total
        self._prime = prime
        self._stream = stream if stream is not None else sys.stdout
        self._fd = fd
        self._guard_factory = guard_factory
        self._reader_factory = reader_factory
        self._sleep = sleep
        self._keys: Queue[KeyEvent] = Queue(maxsize=self.config.key_queue_size)
        self._interrupted = threading.Event()
        self._next_refresh = 0.0

        self._key_actions: dict[Key, Callable[[], None]] = {
            Key.QUIT: self.stop,
            Key.UP: lambda: self.state.move_selection(-1),
            Key.DOWN: lambda: self.state.move_selection(1),
            Key.REFRESH: self.refresh,
            Key.DELETE: self.kill_selected,
        }
        self._char_actions: dict[str, Callable[[], None]] = {
            "q": self.stop,
            "k": lambda: self.state.move_selection(-1),
            "j": lambda: self.state.move_selection(1),
            "r": self.refresh,
            "c": lambda: self.set_sort_mode(SortMode.CPU),
            "m": lambda: self.set_sort_mode(SortMode.RAM),
            "p": lambda: self.set_sort_mode(SortMode.PID),
            "d": self.kill_selected,
        }

    @property
    def events(self) -> Queue[KeyEvent]:
        """Queue the key reader publishes to."""
        return self._keys

    def interrupt(self) -> None:
        """Request shutdown from a signal handler or another thread."""
        self._interrupted.set()

    def stop(self) -> None:
        """Leave the event loop after the current iteration."""
        self.state.running = False

    def refresh(self) -> None:
        """Replace the process list with a fresh, sorted snapshot."""
        self._next_refresh = time.monotonic() + self.config.refresh_interval
        try:
            processes = self._fetch()
        except SnapshotFetchFailed as exc:
            logger.debug("Keeping last snapshot: %s", exc)
            return
        self.state.replace_processes(sort_processes(processes, self.state.sort_mode))

    def set_sort_mode(self, mode: SortMode) -> None:
        """Switch ordering; the list is refetched in the new order."""
        self.state.sort_mode = mode
        # keep the order consistent even if the refetch fails
        self.state.replace_processes(sort_processes(self.state.processes, mode))
        self.refresh()

    def kill_selected(self) -> None:
        """Terminate the highlighted process, then refresh."""
        proc = self.state.selected()
        if proc is None:
            return
        logger.info("Terminating pid %d (%s)", proc.pid, proc.name)
        if not self._terminate(proc.pid):
            logger.debug("Could not terminate pid %d", proc.pid)
        self._sleep(self.config.kill_settle)
        self.refresh()

    def handle_key(self, event: KeyEvent) -> bool:
        """
        Apply one key event.

        Returns:
            True if the event changed the view and a frame was drawn.
        """
        if not self.state.running:
            return False
        action = self._action_for(event)
        if action is None:
            return False
        action()
        if not self.state.running:
            return False
        self.render()
        return True

    def _action_for(self, event: KeyEvent) -> Callable[[], None] | None:
        if event.key is Key.CHAR:
            return self._char_actions.get(event.char.lower())
        if event.key is Key.RAW and event.data == CTRL_C:
            return self.stop
        return self._key_actions.get(event.key)

    @property
    def visible_rows(self) -> int:
        """Configured process rows, reduced to what the terminal height allows."""
        return fit_rows(self.config.visible_rows, self.state.viewport.height)

    def render(self) -> None:
        """Scroll the selection into view and draw a full frame."""
        rows = self.visible_rows
        self.state.scroll_offset = scroll_window(
            self.state.selected_index, self.state.scroll_offset, rows
        )
        self._write(render_screen(self.state, rows))

    def run(self) -> None:
        """
        Run the interactive session until quit or interrupt.

        Raises:
            TerminalUnavailable: Raw mode could not be entered. Nothing has
                been drawn and the terminal is unchanged.
        """
        fd = sys.stdin.fileno() if self._fd is None else self._fd
        guard = self._guard_factory(fd, self._stream)
        guard.acquire()

        previous_handlers: dict[int, object] = {}
        reader = None
        try:
            previous_handlers = self._install_signal_handlers()
            reader = self._reader_factory(fd, self._keys, self.config.read_chunk)
            reader.start()

            self.state.viewport = self._read_viewport()
            self.state.total_memory = self._memory_total()
            self._prime()
            self._sleep(self.config.cpu_sample)
            self.refresh()
            self.render()
            self._loop()
        finally:
            if reader is not None:
                reader.stop()
            self._restore_signal_handlers(previous_handlers)
            self._write(CLEAR_SCREEN + CURSOR_HOME)
            guard.release()

    def _loop(self) -> None:
        while self.state.running:
            if self._interrupted.is_set():
                self.stop()
                break

            try:
                event = self._keys.get(timeout=self.config.poll_interval)
            except Empty:
                event = None

            if event is not None:
                self.handle_key(event)

            if self.state.running and time.monotonic() >= self._next_refresh:
                self.refresh()
                self.render()

    def _install_signal_handlers(self) -> dict[int, object]:
        previous: dict[int, object] = {}
        for signum in HANDLED_SIGNALS:
            try:
                previous[signum] = signal.signal(signum, self._on_signal)
            except ValueError:
                # not the main thread
                logger.debug("Cannot install handler for signal %d", signum)
        return previous

    def _restore_signal_handlers(self, previous: dict[int, object]) -> None:
        for signum, handler in previous.items():
            signal.signal(signum, handler)

    def _on_signal(self, signum: int, _frame) -> None:
        logger.debug("Received signal %d", signum)
        self.interrupt()

    def _read_viewport(self) -> Viewport:
        size = shutil.get_terminal_size()
        return Viewport(width=size.columns, height=size.lines)

    def _write(self, text: str) -> None:
        self._stream.write(text)
        self._stream.flush()
