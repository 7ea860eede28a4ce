"""Reads every opened source once and builds the status snapshot."""

import logging
import math
import time
from collections.abc import Iterable
from typing import TextIO

import psutil

from stts import wifi
from stts.handles import HostContext
from stts.models import MemoryInfo, StatusSnapshot

logger = logging.getLogger(__name__)


def parse_meminfo(text: str) -> MemoryInfo:
    """
    Build a MemoryInfo from ``/proc/meminfo`` content (``Key: value kB``).

    Counters the kernel doesn't report count as zero. ``available`` falls
    back to free + buffer + cache on kernels without MemAvailable.
    """
    counters: dict[str, int] = {}
    for line in text.splitlines():
        key, sep, rest = line.partition(":")
        if not sep:
            continue
        fields = rest.split()
        if not fields:
            continue
        try:
            counters[key.strip()] = int(fields[0])
        except ValueError:
            continue

    total = counters.get("MemTotal", 0)
    free = counters.get("MemFree", 0)
    buffer = counters.get("Buffers", 0)
    cache = counters.get("Cached", 0) + counters.get("SReclaimable", 0)
    available = counters.get("MemAvailable", free + buffer + cache)

    return MemoryInfo(
        total=total,
        used=total - free - buffer - cache,
        free=free,
        shared=counters.get("Shmem", 0),
        buffer=buffer,
        cache=cache,
        available=available,
    )


def millidegrees_to_degrees(raw: int) -> int:
    """Whole degrees, truncated toward zero."""
    degrees = abs(raw) // 1000
    return -degrees if raw < 0 else degrees


def read_source(handle: TextIO | None) -> str | None:
    """Read a handle's full content once; None if absent or unreadable."""
    if handle is None:
        return None
    try:
        return handle.read().strip()
    except (OSError, ValueError):
        logger.debug("Could not read %s", getattr(handle, "name", handle), exc_info=True)
        return None


def read_int(handle: TextIO | None) -> int | None:
    """The source as an integer, or None if unreadable or not a number."""
    text = read_source(handle)
    if text is None:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def read_temps(handles: Iterable[TextIO]) -> list[str]:
    """Degrees for every readable temperature handle, in handle order."""
    temps = []
    for handle in handles:
        raw = read_int(handle)
        if raw is None:
            continue
        temps.append(str(millidegrees_to_degrees(raw)))
    return temps


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up."""
    return math.floor(value + 0.5)


def battery_level(capacity: int | None, energy_now: int | None, energy_full: int | None) -> str:
    """Charge percentage: the capacity attribute if present, else derived from energy."""
    if capacity is not None:
        return str(capacity)
    if energy_now is None or not energy_full:
        return ""
    return str(round_half_up(100 * energy_now / energy_full))


def format_hours(hours: float) -> str:
    """
    Format a duration in hours as ``H:MM``.

    The duration is rounded half up to the nearest whole minute first, so
    2h 59.999m gives "3:00" and the minutes never read 60.
    """
    minutes = round_half_up(hours * 60)
    return f"{minutes // 60}:{minutes % 60:02d}"


def battery_time_left(
    status: str | None,
    energy_now: int | None,
    energy_full: int | None,
    power_now: int | None,
) -> str:
    """Estimated time to empty (discharging) or to full (charging)."""
    if not power_now or energy_now is None:
        return ""
    # some drivers report a signed current while discharging
    power = abs(power_now)
    if status == "Discharging":
        return format_hours(energy_now / power)
    if status == "Charging":
        if energy_full is None:
            return ""
        return format_hours(max(energy_full - energy_now, 0) / power)
    return ""


class InfoCollector:
    """
    Populates a StatusSnapshot from an opened HostContext.

    Each handle is read exactly once; a second collect() on the same host
    would see exhausted handles.
    """

    def __init__(self, host: HostContext) -> None:
        self._host = host

    def collect(self) -> StatusSnapshot:
        """Collect a snapshot of the current host state."""
        snapshot = StatusSnapshot()

        # Mandatory source first
        self._collect_sysinfo(snapshot)

        snapshot.cpu1_temps = read_temps(self._host.cpu1_temps)
        snapshot.cpu2_temps = read_temps(self._host.cpu2_temps)
        snapshot.drive_temps = read_temps(self._host.drive_temps)
        snapshot.mobo_temps = read_temps(self._host.mobo_temps)

        snapshot.wifi_bss, snapshot.wifi_station = wifi.query_link(self._host.wifi_iface)

        self._collect_battery(snapshot)
        return snapshot

    def _collect_sysinfo(self, snapshot: StatusSnapshot) -> None:
        # Memory info
        snapshot.mem = parse_meminfo(read_source(self._host.meminfo) or "")

        # Uptime, load average, process count
        try:
            snapshot.uptime_seconds = max(time.time() - psutil.boot_time(), 0.0)
        except (OSError, psutil.Error):
            logger.debug("Boot time unavailable", exc_info=True)
        try:
            snapshot.load_avg = tuple(psutil.getloadavg())
        except (OSError, AttributeError, psutil.Error):
            logger.debug("Load average unavailable", exc_info=True)
        try:
            snapshot.procs = len(psutil.pids())
        except (OSError, psutil.Error):
            logger.debug("Process list unavailable", exc_info=True)

    def _collect_battery(self, snapshot: StatusSnapshot) -> None:
        bat = self._host.battery
        capacity = read_int(bat.capacity)
        energy_now = read_int(bat.energy_now)
        energy_full = read_int(bat.energy_full)
        power_now = read_int(bat.power_now)
        status = read_source(bat.status)

        snapshot.bat_level = battery_level(capacity, energy_now, energy_full)
        snapshot.bat_time_left = battery_time_left(status, energy_now, energy_full, power_now)
