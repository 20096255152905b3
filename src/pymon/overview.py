"""One-shot (non-interactive) system views rendered with rich."""

import logging

import psutil
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from pymon import hardware
from pymon.errors import SnapshotFetchFailed
from pymon.models import ProcessRecord, SortMode
from pymon.monitor import collect_processes, sort_processes, top_processes
from pymon.render import format_bytes, truncate

logger = logging.getLogger(__name__)

console = Console()

SIDE_BY_SIDE_MIN_WIDTH = 110
CPU_SAMPLE_INTERVAL = 0.5  # seconds between CPU counter reads for one-shot tables

LOGO = """\
[bold green]██████╗ ██╗   ██╗███╗   ███╗ ██████╗ ███╗   ██╗[/]
[bold green]██╔══██╗╚██╗ ██╔╝████╗ ████║██╔═══██╗████╗  ██║[/]
[bold green]██████╔╝ ╚████╔╝ ██╔████╔██║██║   ██║██╔██╗ ██║[/]
[bold green]██╔═══╝   ╚██╔╝  ██║╚██╔╝██║██║   ██║██║╚██╗██║[/]
[bold green]██║        ██║   ██║ ╚═╝ ██║╚██████╔╝██║ ╚████║[/]
[bold green]╚═╝        ╚═╝   ╚═╝     ╚═╝ ╚═════╝ ╚═╝  ╚═══╝[/]"""


def _console(out: Console | None) -> Console:
    return out if out is not None else console


def _info_line(label: str, value: str, style: str) -> str:
    return f"[bold {style}]{label}[/]: {escape(value)}"


def _warn(out: Console, what: str, exc: Exception) -> None:
    logger.debug("%s failed: %s", what, exc)
    out.print(f"[yellow]⚠ Could not get {what}: {escape(str(exc))}[/yellow]")


def system_info_lines() -> list[str]:
    """Lines of the default view, each query failing independently."""
    info = hardware.system_info()
    lines = [
        _info_line("User", f"{info.user}@{info.hostname}", "blue"),
        _info_line("OS", info.os_name, "blue"),
        _info_line("Kernel", info.kernel, "blue"),
        _info_line("Uptime", info.uptime, "blue"),
        _info_line("Shell", info.shell, "blue"),
    ]

    try:
        cpu = hardware.cpu_summary()
        lines.append(_info_line("CPU", f"{truncate(cpu.model, 25)} ({cpu.cores} cores)", "cyan"))
        lines.append(_info_line("CPU Usage", f"{cpu.usage_percent:.2f}%", "cyan"))
        if cpu.temperature > 0:
            lines.append(_info_line("CPU Temp", f"{cpu.temperature}°C", "cyan"))
    except (psutil.Error, OSError) as exc:
        logger.debug("CPU summary failed: %s", exc)

    try:
        mem = hardware.memory_summary()
        ram = f"{format_bytes(mem.used)} / {format_bytes(mem.total)} ({mem.percent:.0f}%)"
        lines.append(_info_line("RAM", ram, "yellow"))
    except (psutil.Error, OSError) as exc:
        logger.debug("Memory summary failed: %s", exc)

    total, used, _ = hardware.storage_totals(hardware.storage_devices())
    percent = used / total * 100 if total else 0.0
    disk = f"{format_bytes(used)} / {format_bytes(total)} ({percent:.0f}%)"
    lines.append(_info_line("Disk", disk, "magenta"))

    gpu = hardware.gpu_summary()
    if gpu is None:
        gpu_text = "Not detected"
    else:
        gpu_text = truncate(gpu.model, 25)
        if gpu.temperature > 0:
            gpu_text = f"{gpu_text} ({gpu.temperature}°C)"
    lines.append(_info_line("GPU", gpu_text, "green"))
    return lines


def show_default(out: Console | None = None) -> None:
    """Logo beside the system summary; stacked on narrow consoles."""
    out = _console(out)
    logo = Panel(LOGO, border_style="bold cyan", expand=False)
    info = "\n".join(system_info_lines())

    if out.width < SIDE_BY_SIDE_MIN_WIDTH:
        out.print(logo)
        out.print(info)
        return

    grid = Table.grid(padding=(0, 4))
    grid.add_column()
    grid.add_column()
    grid.add_row(logo, info)
    out.print(grid)


def process_table(processes: list[ProcessRecord], title: str) -> Table:
    """Ranked process table with the same columns as the interactive view."""
    table = Table(title=title, title_style="bold magenta", header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("PID", justify="right")
    table.add_column("NAME", style="cyan")
    table.add_column("CPU %", justify="right", style="green")
    table.add_column("RAM %", justify="right", style="yellow")
    table.add_column("MEMORY", justify="right")
    for rank, proc in enumerate(processes, start=1):
        table.add_row(
            str(rank),
            str(proc.pid),
            escape(truncate(proc.name, 35)),
            f"{proc.cpu_percent:.2f}",
            f"{proc.ram_percent:.2f}",
            format_bytes(proc.ram_bytes),
        )
    return table


def show_top(n: int, out: Console | None = None) -> None:
    """Print the n processes using the most CPU."""
    out = _console(out)
    try:
        processes = collect_processes(sample_interval=CPU_SAMPLE_INTERVAL)
    except SnapshotFetchFailed as exc:
        _warn(out, "process list", exc)
        return
    out.print(process_table(top_processes(processes, n), f"Top {n} Processes by CPU"))


def _kv_table(title: str, rows: list[tuple[str, str]]) -> Table:
    table = Table(title=title, title_style="bold cyan", show_header=False, box=None)
    table.add_column(style="bold")
    table.add_column()
    for key, value in rows:
        table.add_row(key, escape(value))
    return table


def show_cpu(out: Console | None = None) -> None:
    """Print CPU details and the top CPU consumers."""
    out = _console(out)
    try:
        cpu = hardware.cpu_summary()
    except (psutil.Error, OSError) as exc:
        _warn(out, "CPU information", exc)
        return
    rows = [
        ("Model", cpu.model),
        ("Cores", f"{cpu.cores} physical / {cpu.threads} logical"),
        ("Usage", f"{cpu.usage_percent:.2f}%"),
        ("Clock", f"{cpu.frequency_mhz:.0f} MHz" if cpu.frequency_mhz else "N/A"),
        ("Temperature", f"{cpu.temperature}°C" if cpu.temperature else "N/A"),
    ]
    out.print(_kv_table("General CPU Information", rows))
    _show_top_by(out, SortMode.CPU, 5)


def show_ram(out: Console | None = None) -> None:
    """Print memory and swap usage and the top RAM consumers."""
    out = _console(out)
    try:
        mem = hardware.memory_summary()
    except (psutil.Error, OSError) as exc:
        _warn(out, "RAM information", exc)
        return
    rows = [
        ("Total", format_bytes(mem.total)),
        ("Used", f"{format_bytes(mem.used)} ({mem.percent:.1f}%)"),
        ("Available", format_bytes(mem.available)),
        ("Swap", f"{format_bytes(mem.swap_used)} / {format_bytes(mem.swap_total)}"),
        ("Swap Usage", f"{mem.swap_percent:.1f}%"),
    ]
    out.print(_kv_table("RAM Memory", rows))
    _show_top_by(out, SortMode.RAM, 5)


def _show_top_by(out: Console, mode: SortMode, n: int) -> None:
    try:
        processes = collect_processes(sample_interval=CPU_SAMPLE_INTERVAL)
    except SnapshotFetchFailed as exc:
        _warn(out, "process list", exc)
        return
    ranked = sort_processes(processes, mode)[:n]
    out.print(process_table(ranked, f"Top {n} Processes by {mode.name}"))


def show_gpu(out: Console | None = None) -> None:
    """Print the detected GPU, or a warning when there is none."""
    out = _console(out)
    gpu = hardware.gpu_summary()
    if gpu is None:
        out.print("[yellow]⚠ Could not detect any GPU in the system[/yellow]")
        return
    if gpu.memory_total_mb:
        vram_percent = gpu.memory_used_mb / gpu.memory_total_mb * 100
        vram = f"{gpu.memory_used_mb} / {gpu.memory_total_mb} MB ({vram_percent:.1f}%)"
    else:
        vram = "Shared (system RAM)"
    rows = [
        ("Model", gpu.model),
        ("Type", "Integrated" if gpu.integrated else "Dedicated"),
        ("Utilization", f"{gpu.utilization:.1f}%" if gpu.utilization else "N/A"),
        ("VRAM", vram),
        ("Temperature", f"{gpu.temperature}°C" if gpu.temperature else "N/A"),
    ]
    out.print(_kv_table("GPU Information", rows))


def show_disk(out: Console | None = None) -> None:
    """Print storage totals and one row per real disk."""
    out = _console(out)
    try:
        devices = hardware.storage_devices()
    except (psutil.Error, OSError) as exc:
        _warn(out, "disk information", exc)
        return

    total, used, free = hardware.storage_totals(devices)
    percent = used / total * 100 if total else 0.0
    out.print(
        _kv_table(
            "Total Storage",
            [
                ("Total", format_bytes(total)),
                ("Used", f"{format_bytes(used)} ({percent:.1f}%)"),
                ("Free", format_bytes(free)),
            ],
        )
    )

    table = Table(title="Devices", title_style="bold magenta", header_style="bold")
    for column in ("Mountpoint", "Type", "Total", "Used", "Free", "Use %"):
        table.add_column(column, justify="left" if column in ("Mountpoint", "Type") else "right")
    for device in devices:
        table.add_row(
            escape(device.mountpoint),
            device.fstype,
            format_bytes(device.total),
            format_bytes(device.used),
            format_bytes(device.free),
            f"{device.percent:.1f}",
        )
    out.print(table)


def show_all(out: Console | None = None) -> None:
    """Every section in turn, then the top processes."""
    out = _console(out)
    out.rule("[bold]SYSTEM OVERVIEW[/bold]", style="yellow")
    sections = [
        ("[1] PROCESSOR (CPU)", show_cpu),
        ("[2] RAM MEMORY", show_ram),
        ("[3] GRAPHICS CARD (GPU)", show_gpu),
        ("[4] STORAGE", show_disk),
    ]
    for title, show in sections:
        out.print(f"\n[bold blue]{escape(title)}[/bold blue]")
        show(out)
    out.print(f"\n[bold blue]{escape('[5] MOST ACTIVE PROCESSES')}[/bold blue]")
    show_top(10, out)
    out.rule(style="yellow")
    out.print("[cyan]Tip: use 'pymon --help' to see all available options[/cyan]")
