"""Exceptions raised by pymon."""


class PymonError(Exception):
    """Base class for pymon errors."""


class TerminalUnavailable(PymonError):
    """Raw terminal mode could not be engaged (no TTY or termios failure)."""


class SnapshotFetchFailed(PymonError):
    """The process list could not be enumerated."""


class TerminationRequestFailed(PymonError):
    """A termination signal could not be delivered to a process."""

    def __init__(self, pid: int, reason: str) -> None:
        super().__init__(f"could not signal process {pid}: {reason}")
        self.pid = pid
        self.reason = reason
