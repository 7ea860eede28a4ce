"""Data models for stts."""

from dataclasses import dataclass, field


@dataclass(slots=True)
class MemoryInfo:
    """Memory breakdown, all values in KiB as reported by /proc/meminfo."""

    total: int = 0
    used: int = 0
    free: int = 0
    shared: int = 0
    buffer: int = 0
    cache: int = 0
    available: int = 0


@dataclass(slots=True, frozen=True)
class WifiBss:
    """The basic service set the station is associated with."""

    ssid: str
    bssid: str
    frequency_mhz: int = 0
    signal_dbm: int | None = None


@dataclass(slots=True, frozen=True)
class WifiStation:
    """Per-link statistics for the current association."""

    signal_dbm: int | None = None
    rx_bitrate_mbps: float | None = None
    tx_bitrate_mbps: float | None = None
    rx_bytes: int | None = None
    tx_bytes: int | None = None


@dataclass(slots=True)
class StatusSnapshot:
    """Snapshot of host health produced by a single run."""

    uptime_seconds: float = 0.0
    load_avg: tuple[float, float, float] = (0.0, 0.0, 0.0)
    procs: int = 0
    mem: MemoryInfo = field(default_factory=MemoryInfo)

    cpu1_temps: list[str] = field(default_factory=list)
    cpu2_temps: list[str] = field(default_factory=list)
    drive_temps: list[str] = field(default_factory=list)
    mobo_temps: list[str] = field(default_factory=list)

    wifi_bss: WifiBss | None = None
    wifi_station: WifiStation | None = None

    bat_level: str = ""  # percent, e.g. "60"
    bat_time_left: str = ""  # H:MM
