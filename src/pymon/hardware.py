"""One-shot hardware and system summaries."""

import getpass
import logging
import os
import platform
import shutil
import socket
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

import psutil

logger = logging.getLogger(__name__)

CPU_SENSOR_CHIPS = ("coretemp", "k10temp", "cpu_thermal", "x86_pkg_temp", "acpitz")
GPU_THERMAL_TYPES = ("INT3400", "acpitz", "pch_skylake", "B0D4")
THERMAL_BASE = Path("/sys/class/thermal")
DRM_BASE = Path("/sys/class/drm")

IGNORED_FS_TYPES = frozenset(
    {
        "tmpfs",
        "devtmpfs",
        "sysfs",
        "proc",
        "devpts",
        "securityfs",
        "cgroup",
        "cgroup2",
        "pstore",
        "efivarfs",
        "bpf",
        "autofs",
        "mqueue",
        "hugetlbfs",
        "debugfs",
        "tracefs",
        "configfs",
        "fusectl",
        "squashfs",
        "overlay",
    }
)
IGNORED_MOUNT_PREFIXES = (
    "/sys",
    "/proc",
    "/dev",
    "/run/snapd",
    "/run/lock",
    "/run/user",
    "/snap",
    "/boot/efi",
    "/var/snap",
)
MIN_STORAGE_SIZE = 1024**3

NVIDIA_QUERY = [
    "nvidia-smi",
    "--query-gpu=name,utilization.gpu,memory.total,memory.used,temperature.gpu",
    "--format=csv,noheader,nounits",
]
INTEL_VENDOR = "0x8086"
AMD_VENDOR = "0x1002"
INTEL_MODELS = {
    "0x3ea0": "Intel UHD Graphics 620",
    "0x5917": "Intel UHD Graphics 620",
    "0x5916": "Intel HD Graphics 620",
    "0x1916": "Intel HD Graphics 520",
    "0x191b": "Intel HD Graphics 530",
    "0x3e9b": "Intel UHD Graphics 630",
    "0x9a49": "Intel Iris Xe Graphics",
}


@dataclass(slots=True)
class CpuSummary:
    model: str
    cores: int
    threads: int
    usage_percent: float
    frequency_mhz: float
    temperature: int  # °C, 0 when unknown


@dataclass(slots=True)
class MemorySummary:
    total: int
    used: int
    available: int
    percent: float
    swap_total: int
    swap_used: int
    swap_percent: float


@dataclass(slots=True)
class StorageDevice:
    mountpoint: str
    fstype: str
    total: int
    used: int
    free: int
    percent: float


@dataclass(slots=True)
class GpuSummary:
    model: str
    utilization: float
    memory_total_mb: int  # 0 for integrated GPUs (shared RAM)
    memory_used_mb: int
    temperature: int
    integrated: bool


@dataclass(slots=True)
class SystemInfo:
    user: str
    hostname: str
    os_name: str
    kernel: str
    uptime: str
    shell: str


def _read_text(path: Path) -> str | None:
    try:
        return path.read_text().strip()
    except OSError:
        return None


def run_cmd(args: list[str]) -> str:
    """Run a command and return its stdout, or "" if it is missing or fails."""
    if shutil.which(args[0]) is None:
        return ""
    try:
        return subprocess.check_output(args, stderr=subprocess.DEVNULL, text=True, timeout=5)
    except (subprocess.SubprocessError, OSError) as exc:
        logger.debug("%s failed: %s", args[0], exc)
        return ""


def cpu_model() -> str:
    """CPU model name from /proc/cpuinfo, falling back to platform."""
    cpuinfo = _read_text(Path("/proc/cpuinfo")) or ""
    for line in cpuinfo.splitlines():
        if line.startswith("model name"):
            return line.split(":", 1)[1].strip()
    return platform.processor() or "Unknown CPU"


def cpu_temperature() -> int:
    """Package temperature in °C from the first known sensor chip, 0 if none."""
    try:
        sensors = psutil.sensors_temperatures()
    except (AttributeError, OSError) as exc:
        logger.debug("Temperature sensors unavailable: %s", exc)
        return 0
    for chip in CPU_SENSOR_CHIPS:
        for entry in sensors.get(chip, []):
            if 0 < entry.current < 150:
                return int(entry.current)
    return 0


def cpu_summary(sample_interval: float = 0.5) -> CpuSummary:
    """Collect CPU model, core counts, usage, clock and temperature."""
    usage = psutil.cpu_percent(interval=sample_interval)
    freq = psutil.cpu_freq()
    return CpuSummary(
        model=cpu_model(),
        cores=psutil.cpu_count(logical=False) or 0,
        threads=psutil.cpu_count(logical=True) or 0,
        usage_percent=usage,
        frequency_mhz=freq.current if freq else 0.0,
        temperature=cpu_temperature(),
    )


def memory_summary() -> MemorySummary:
    """Physical memory and swap usage."""
    mem = psutil.virtual_memory()
    swap = psutil.swap_memory()
    return MemorySummary(
        total=mem.total,
        used=mem.used,
        available=mem.available,
        percent=mem.percent,
        swap_total=swap.total,
        swap_used=swap.used,
        swap_percent=swap.percent,
    )


def is_real_disk(mountpoint: str, fstype: str) -> bool:
    """
    Check whether a mount is a physical disk worth reporting.

    Examples:
        is_real_disk("/", "ext4") -> True
        is_real_disk("/dev/shm", "tmpfs") -> False
        is_real_disk("/snap/core/1", "ext4") -> False
    """
    if fstype in IGNORED_FS_TYPES:
        return False
    return not any(
        mountpoint == prefix or mountpoint.startswith(prefix + "/")
        for prefix in IGNORED_MOUNT_PREFIXES
    )


def storage_devices() -> list[StorageDevice]:
    """Usage of every real disk partition of at least MIN_STORAGE_SIZE."""
    devices: list[StorageDevice] = []
    for part in psutil.disk_partitions(all=False):
        if not is_real_disk(part.mountpoint, part.fstype):
            continue
        try:
            usage = psutil.disk_usage(part.mountpoint)
        except OSError as exc:
            logger.debug("Skipping %s: %s", part.mountpoint, exc)
            continue
        if usage.total < MIN_STORAGE_SIZE:
            continue
        devices.append(
            StorageDevice(
                mountpoint=part.mountpoint,
                fstype=part.fstype,
                total=usage.total,
                used=usage.used,
                free=usage.free,
                percent=usage.percent,
            )
        )
    return devices


def storage_totals(devices: list[StorageDevice]) -> tuple[int, int, int]:
    """Summed (total, used, free) bytes over devices."""
    return (
        sum(d.total for d in devices),
        sum(d.used for d in devices),
        sum(d.free for d in devices),
    )


def _to_int(value: str) -> int:
    try:
        return int(float(value))
    except ValueError:
        return 0


def parse_nvidia_smi(output: str) -> GpuSummary | None:
    """Parse the first line of a csv,noheader,nounits nvidia-smi query."""
    lines = output.strip().splitlines()
    if not lines:
        return None
    fields = [f.strip() for f in lines[0].split(",")]
    if len(fields) < 5:
        return None
    try:
        utilization = float(fields[1])
    except ValueError:
        utilization = 0.0
    return GpuSummary(
        model=fields[0],
        utilization=utilization,
        memory_total_mb=_to_int(fields[2]),
        memory_used_mb=_to_int(fields[3]),
        temperature=_to_int(fields[4]),
        integrated=False,
    )


def identify_gpu_model(vendor: str, device: str) -> str:
    """Marketing name for a PCI vendor/device pair from sysfs."""
    if vendor == INTEL_VENDOR:
        return INTEL_MODELS.get(device, "Intel Integrated Graphics")
    if vendor == AMD_VENDOR:
        return "AMD Radeon Graphics"
    return f"Integrated Graphics (Vendor: {vendor}, Device: {device})"


def thermal_zone_temperature(types: tuple[str, ...] = GPU_THERMAL_TYPES) -> int:
    """First plausible reading from a thermal zone whose type matches, else zone 0."""
    for zone in sorted(THERMAL_BASE.glob("thermal_zone*")):
        zone_type = _read_text(zone / "type")
        if not zone_type or not any(t in zone_type for t in types):
            continue
        temp = _to_int(_read_text(zone / "temp") or "") // 1000
        if 0 < temp < 150:
            return temp
    return _to_int(_read_text(THERMAL_BASE / "thermal_zone0" / "temp") or "") // 1000


def _integrated_gpu() -> GpuSummary | None:
    for card in sorted(DRM_BASE.glob("card[0-9]*")):
        vendor = _read_text(card / "device" / "vendor")
        device = _read_text(card / "device" / "device")
        if vendor in (INTEL_VENDOR, AMD_VENDOR) and device:
            return GpuSummary(
                model=identify_gpu_model(vendor, device),
                utilization=0.0,
                memory_total_mb=0,
                memory_used_mb=0,
                temperature=thermal_zone_temperature(),
                integrated=True,
            )
    return None


def gpu_summary() -> GpuSummary | None:
    """NVIDIA GPU via nvidia-smi, else an integrated Intel/AMD GPU, else None."""
    stats = parse_nvidia_smi(run_cmd(NVIDIA_QUERY))
    if stats is not None:
        return stats
    return _integrated_gpu()


def format_uptime(seconds: float) -> str:
    """Format uptime like "3 days, 4 hours, 5 mins"."""
    minutes_total = int(seconds // 60)
    days, rem = divmod(minutes_total, 24 * 60)
    hours, minutes = divmod(rem, 60)
    if days:
        return f"{days} days, {hours} hours, {minutes} mins"
    return f"{hours} hours, {minutes} mins"


def os_name() -> str:
    """PRETTY_NAME from os-release, or the platform name."""
    try:
        return platform.freedesktop_os_release().get("PRETTY_NAME", platform.system())
    except OSError:
        return platform.system()


def system_info() -> SystemInfo:
    """User, host, OS, kernel, uptime and shell for the default view."""
    try:
        user = getpass.getuser()
    except (KeyError, OSError):
        user = "unknown"
    return SystemInfo(
        user=user,
        hostname=socket.gethostname() or "unknown",
        os_name=os_name(),
        kernel=platform.release(),
        uptime=format_uptime(time.time() - psutil.boot_time()),
        shell=os.environ.get("SHELL", ""),
    )
