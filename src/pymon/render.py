"""Full-screen rendering of the interactive process table."""

from pymon.models import ProcessRecord, ViewState
from pymon.terminal import CLEAR_SCREEN, CURSOR_HOME, CSI

RESET = f"{CSI}0m"
BOLD = f"{CSI}1m"
RED = f"{CSI}31m"
GREEN = f"{CSI}32m"
YELLOW = f"{CSI}33m"
MAGENTA = f"{CSI}35m"
CYAN = f"{CSI}36m"
WHITE = f"{CSI}37m"
SELECTED = f"{CSI}44m{WHITE}{BOLD}"

NAME_WIDTH = 35
RULE_WIDTH = 113

BANNER = [
    "╔══════════════════════════════════════════════════════════════════════════════╗",
    "║  ██████╗ ██╗   ██╗███╗   ███╗ ██████╗ ███╗   ██╗                             ║",
    "║  ██╔══██╗╚██╗ ██╔╝████╗ ████║██╔═══██╗████╗  ██║   pymon                     ║",
    "║  ██████╔╝ ╚████╔╝ ██╔████╔██║██║   ██║██╔██╗ ██║   Interactive Process       ║",
    "║  ██╔═══╝   ╚██╔╝  ██║╚██╔╝██║██║   ██║██║╚██╗██║   Manager                   ║",
    "║  ██║        ██║   ██║ ╚═╝ ██║╚██████╔╝██║ ╚████║                             ║",
    "║  ╚═╝        ╚═╝   ╚═╝     ╚═╝ ╚═════╝ ╚═╝  ╚═══╝                             ║",
    "╚══════════════════════════════════════════════════════════════════════════════╝",
]

SHORTCUTS = [
    ("[↑/↓]", "Navigate", CYAN),
    ("[F5/R]", "Refresh", YELLOW),
    ("[C]", "CPU", GREEN),
    ("[M]", "RAM", MAGENTA),
    ("[P]", "PID", YELLOW),
    ("[D/DEL]", "Kill Process", RED),
    ("[Q/ESC]", "Quit", WHITE),
]

# banner + blank, info bar + blank, table header + rule, blank + rule + keys,
# and the line the cursor is left on
CHROME_HEIGHT = len(BANNER) + 1 + 2 + 2 + 3 + 1


def format_bytes(size: int) -> str:
    """Format bytes as human-readable string."""
    value = float(size)
    for unit in ["B", "KB", "MB", "GB"]:
        if value < 1024:
            return f"{size} B" if unit == "B" else f"{value:.2f} {unit}"
        value /= 1024
    return f"{value:.2f} TB"


def truncate(text: str, width: int) -> str:
    """Cut text to width characters, marking the cut with '...'."""
    if len(text) <= width:
        return text
    if width <= 3:
        return text[:width]
    return text[: width - 3] + "..."


def printable(text: str) -> str:
    """Replace control characters so a process name cannot emit escape codes."""
    return "".join(c if c.isprintable() else "?" for c in text)


def fit_rows(visible_rows: int, height: int) -> int:
    """Process rows that fit a terminal of height lines, at most visible_rows."""
    return max(1, min(visible_rows, height - CHROME_HEIGHT))


def scroll_window(selected: int, offset: int, visible_rows: int) -> int:
    """
    Return the scroll offset that keeps selected inside the visible window.

    The window only moves by the amount needed to reach the selection.
    """
    if selected < offset:
        return selected
    if selected >= offset + visible_rows:
        return selected - visible_rows + 1
    return offset


def render_header() -> list[str]:
    """Banner lines and a blank separator."""
    return [f"{CYAN}{BOLD}{line}{RESET}" for line in BANNER] + [""]


def render_info_bar(state: ViewState) -> list[str]:
    """Process count, summed usage, total memory and sort mode."""
    total_cpu = sum(p.cpu_percent for p in state.processes)
    total_ram = sum(p.ram_percent for p in state.processes)
    total_gb = state.total_memory / 1024**3
    line = (
        f"  {BOLD}{CYAN}Processes:{RESET} {len(state.processes)}  "
        f"{BOLD}{GREEN}Total CPU:{RESET} {total_cpu:.2f}%  "
        f"{BOLD}{MAGENTA}Total RAM:{RESET} {total_ram:.2f}% ({total_gb:.2f} GB)  "
        f"{BOLD}{WHITE}Sort by:{RESET} {YELLOW}{state.sort_mode.label}{RESET}"
    )
    return [line, ""]


def _rule(state: ViewState) -> str:
    return "  " + "─" * max(0, min(RULE_WIDTH, state.viewport.width - 4))


def render_table_header(state: ViewState) -> list[str]:
    """Column titles and a rule."""
    title = f"  {'PID':<8} {'NAME':<{NAME_WIDTH}} {'CPU %':>10} {'RAM %':>10} {'MEMORY':>15}"
    return [f"{BOLD}{title}{RESET}", _rule(state)]


def render_row(proc: ProcessRecord, selected: bool) -> str:
    """One table row; the selected row is highlighted."""
    line = (
        f"  {proc.pid:<8d} {truncate(printable(proc.name), NAME_WIDTH):<{NAME_WIDTH}} "
        f"{proc.cpu_percent:9.2f}% {proc.ram_percent:9.2f}% "
        f"{format_bytes(proc.ram_bytes):>15}"
    )
    if selected:
        return f"{SELECTED}{line}{RESET}"
    return line


def render_rows(state: ViewState, visible_rows: int) -> list[str]:
    """Exactly visible_rows lines starting at the scroll offset, blank-padded."""
    window = state.processes[state.scroll_offset : state.scroll_offset + visible_rows]
    lines = [
        render_row(proc, state.scroll_offset + i == state.selected_index)
        for i, proc in enumerate(window)
    ]
    lines.extend("" for _ in range(visible_rows - len(lines)))
    return lines


def render_footer(state: ViewState) -> list[str]:
    keys = "  ".join(f"{color}{BOLD}{key}{RESET} {label}" for key, label, color in SHORTCUTS)
    return ["", _rule(state), f"  {keys}"]


def render_screen(state: ViewState, visible_rows: int) -> str:
    """
    Build one complete frame for state.

    The frame starts by clearing the screen and homing the cursor, and always
    has the same number of lines for a given visible_rows.
    """
    lines = (
        render_header()
        + render_info_bar(state)
        + render_table_header(state)
        + render_rows(state, visible_rows)
        + render_footer(state)
    )
    return CLEAR_SCREEN + CURSOR_HOME + "\r\n".join(lines) + "\r\n"
