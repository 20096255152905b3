"""Runtime configuration and logging setup for pymon."""

import argparse
import logging
from dataclasses import dataclass

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

DEFAULT_REFRESH_INTERVAL = 2.0  # seconds
DEFAULT_VISIBLE_ROWS = 20


@dataclass(slots=True, frozen=True)
class MonitorConfig:
    """Tunables of the interactive controller."""

    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    poll_interval: float = 0.05  # seconds waited on the key queue per iteration
    visible_rows: int = DEFAULT_VISIBLE_ROWS
    key_queue_size: int = 10
    kill_settle: float = 0.1  # pause after a termination request
    cpu_sample: float = 0.25  # CPU measurement window before the first frame
    read_chunk: int = 6  # long enough for ESC [ 1 5 ~

    def __post_init__(self) -> None:
        # frozen dataclass: clamp through object.__setattr__
        object.__setattr__(self, "refresh_interval", max(0.1, self.refresh_interval))
        object.__setattr__(self, "visible_rows", max(1, self.visible_rows))
        object.__setattr__(self, "key_queue_size", max(1, self.key_queue_size))

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "MonitorConfig":
        """Build a config from parsed CLI arguments."""
        return cls(refresh_interval=args.interval, visible_rows=args.rows)


def configure_logging(
    verbose: bool = False,
    log_file: str | None = None,
    interactive: bool = False,
) -> None:
    """
    Configure the root logger.

    Args:
        verbose: Log at DEBUG instead of WARNING.
        log_file: Write records to this file instead of stderr.
        interactive: Full-screen mode; without a log file nothing may reach
            the terminal, so records are discarded.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    if log_file:
        handler: logging.Handler = logging.FileHandler(log_file)
    elif interactive:
        handler = logging.NullHandler()
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.basicConfig(level=level, handlers=[handler], force=True)
