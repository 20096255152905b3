"""Keyboard input capture for the interactive view."""

import logging
import os
import select
import threading
from queue import Full, Queue

from pymon.models import Key, KeyEvent

logger = logging.getLogger(__name__)

ESC = 0x1B
DEL = 0x7F
ESC_GRACE = 0.01  # seconds

ARROWS = {
    ord("A"): Key.UP,
    ord("B"): Key.DOWN,
    ord("C"): Key.RIGHT,
    ord("D"): Key.LEFT,
}
TILDE_KEYS = {
    b"15": Key.REFRESH,  # F5
    b"3": Key.DELETE,
}


def _decode_csi(data: bytes, start: int) -> tuple[KeyEvent, int]:
    """Decode the CSI sequence whose ESC is at start; return event and next index."""
    end = start + 2
    while end < len(data) and not 0x40 <= data[end] <= 0x7E:
        end += 1
    if end >= len(data):
        # unterminated sequence, swallow what we have
        return KeyEvent(Key.RAW, data[start:]), len(data)

    final = data[end]
    params = data[start + 2 : end]
    sequence = data[start : end + 1]
    if not params and final in ARROWS:
        return KeyEvent(ARROWS[final]), end + 1
    if final == ord("~") and params in TILDE_KEYS:
        return KeyEvent(TILDE_KEYS[params]), end + 1
    return KeyEvent(Key.RAW, sequence), end + 1


def incomplete_escape(data: bytes) -> bool:
    """Check whether data ends partway through an escape sequence."""
    start = data.rfind(ESC)
    if start < 0:
        return False
    tail = data[start:]
    if len(tail) == 1:
        return True
    if tail[1] != ord("["):
        return False
    return not any(0x40 <= byte <= 0x7E for byte in tail[2:])


def decode_keys(data: bytes) -> list[KeyEvent]:
    """
    Turn one chunk of raw terminal input into key events.

    A lone ESC at the end of the chunk is the Escape key itself and decodes
    to QUIT; ESC followed by anything but '[' is passed on as a RAW byte.
    """
    events: list[KeyEvent] = []
    i = 0
    n = len(data)
    while i < n:
        byte = data[i]
        if byte == ESC:
            if i == n - 1:
                events.append(KeyEvent(Key.QUIT))
                i += 1
            elif data[i + 1] == ord("["):
                event, i = _decode_csi(data, i)
                events.append(event)
            else:
                events.append(KeyEvent(Key.RAW, bytes([byte])))
                i += 1
            continue

        if byte == DEL:
            events.append(KeyEvent(Key.DELETE))
        elif 0x20 <= byte < 0x7F:
            events.append(KeyEvent(Key.CHAR, bytes([byte])))
        else:
            events.append(KeyEvent(Key.RAW, bytes([byte])))
        i += 1
    return events


class KeyReader:
    """
    Reads raw bytes from a terminal descriptor and publishes KeyEvents.

    Runs in a separate daemon thread and pushes events to a bounded Queue.
    A full queue blocks the reader instead of dropping keypresses.
    """

    def __init__(
        self,
        fd: int,
        event_queue: Queue[KeyEvent],
        chunk_size: int = 6,
        poll_timeout: float = 0.1,
    ) -> None:
        """
        Initialize the KeyReader.

        Args:
            fd: Descriptor to read from, normally stdin in raw mode.
            event_queue: Queue the controller consumes.
            chunk_size: Bytes per read; enough for one escape sequence.
            poll_timeout: How often the thread rechecks its stop flag (seconds).
        """
        self._fd = fd
        self._queue = event_queue
        self._chunk_size = chunk_size
        self._poll_timeout = poll_timeout
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        """Check if the reader thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the reader thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._read_loop,
            daemon=True,
            name="KeyReader",
        )
        self._thread.start()

    def stop(self, timeout: float | None = 1.0) -> None:
        """Stop the reader thread and wait for it to exit."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def _read_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                data = self._read_chunk()
            except OSError as exc:
                logger.debug("Key reader stopped: %s", exc)
                return
            if data is None:
                continue
            if not data:
                logger.debug("Key reader reached end of input")
                return
            for event in decode_keys(data):
                self._publish(event)

    def _read_chunk(self) -> bytes | None:
        """Return the next chunk, None on timeout, b"" at end of input."""
        ready, _, _ = select.select([self._fd], [], [], self._poll_timeout)
        if not ready:
            return None
        data = os.read(self._fd, self._chunk_size)
        # A sequence split across reads gets ESC_GRACE to complete; only a
        # trailing ESC with nothing after it stays lone.
        while data and incomplete_escape(data):
            ready, _, _ = select.select([self._fd], [], [], ESC_GRACE)
            if not ready:
                break
            more = os.read(self._fd, self._chunk_size)
            if not more:
                break
            data += more
        return data

    def _publish(self, event: KeyEvent) -> None:
        while not self._stop_event.is_set():
            try:
                self._queue.put(event, timeout=self._poll_timeout)
                return
            except Full:
                continue
