"""pymon - command line entry point."""

import argparse
import logging
import sys

from rich.console import Console

from pymon import overview
from pymon.config import (
    DEFAULT_REFRESH_INTERVAL,
    DEFAULT_VISIBLE_ROWS,
    MonitorConfig,
    configure_logging,
)
from pymon.controller import InteractiveController
from pymon.errors import TerminalUnavailable

logger = logging.getLogger(__name__)

err_console = Console(stderr=True)

TTY_GUIDANCE = (
    "Interactive mode requires a TTY terminal; input seems to be redirected "
    "or piped.\nUse [bold]pymon --all[/bold] to see information without interactivity."
)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pymon",
        description="Terminal system monitor: CPU, RAM, disk, GPU and processes.",
        epilog=(
            "Examples:\n"
            "  pymon            # system summary\n"
            "  pymon -f         # interactive process manager\n"
            "  pymon --all      # complete overview\n"
            "  pymon -t 20      # top 20 processes by CPU"
        ),
        formatter_class=argparse.RawTextHelpFormatter,
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "-f",
        "--full",
        action="store_true",
        help="Interactive process table (navigate, sort, kill).",
    )
    mode.add_argument(
        "-t",
        "--top",
        type=int,
        nargs="?",
        const=10,
        metavar="N",
        help="Show the top N processes by CPU (default: 10).",
    )
    mode.add_argument("-a", "--all", action="store_true", help="Show a complete overview.")
    mode.add_argument("-c", "--cpu", action="store_true", help="Show CPU information.")
    mode.add_argument("-r", "--ram", action="store_true", help="Show RAM information.")
    mode.add_argument("-g", "--gpu", action="store_true", help="Show GPU information.")
    mode.add_argument("-d", "--disk", action="store_true", help="Show disk information.")

    parser.add_argument(
        "--interval",
        type=float,
        default=DEFAULT_REFRESH_INTERVAL,
        help="Seconds between refreshes in interactive mode (default: %(default)s).",
    )
    parser.add_argument(
        "--rows",
        type=int,
        default=DEFAULT_VISIBLE_ROWS,
        help="Process rows shown in interactive mode (default: %(default)s).",
    )
    parser.add_argument("--log-file", metavar="PATH", help="Write log records to PATH.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug details.")
    return parser.parse_args(argv)


def stdin_is_tty() -> bool:
    try:
        return sys.stdin.isatty()
    except (AttributeError, ValueError, OSError):
        return False


def run_interactive(config: MonitorConfig) -> int:
    """Run the process table; returns the exit status."""
    if not stdin_is_tty():
        err_console.print("[red]Error: Interactive mode requires a TTY terminal.[/red]")
        err_console.print(TTY_GUIDANCE)
        return 1

    controller = InteractiveController(config)
    try:
        controller.run()
    except TerminalUnavailable as exc:
        logger.debug("Interactive mode unavailable: %s", exc)
        err_console.print(f"[red]Error running interactive interface: {exc}[/red]")
        err_console.print(TTY_GUIDANCE)
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for pymon."""
    args = parse_args(argv)
    configure_logging(verbose=args.verbose, log_file=args.log_file, interactive=args.full)

    if args.full:
        return run_interactive(MonitorConfig.from_args(args))
    if args.top is not None:
        overview.show_top(args.top)
    elif args.all:
        overview.show_all()
    elif args.cpu:
        overview.show_cpu()
    elif args.ram:
        overview.show_ram()
    elif args.gpu:
        overview.show_gpu()
    elif args.disk:
        overview.show_disk()
    else:
        overview.show_default()
    return 0


if __name__ == "__main__":
    sys.exit(main())
