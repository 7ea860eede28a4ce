"""Shared fixtures: a fake sysfs/procfs tree below tmp_path."""

from pathlib import Path

import psutil
import pytest

from stts.config import Config

MEMINFO = """\
MemTotal:       16000000 kB
MemFree:         8000000 kB
MemAvailable:   10000000 kB
Buffers:          500000 kB
Cached:          1500000 kB
SwapCached:            0 kB
Shmem:            200000 kB
"""


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


@pytest.fixture(autouse=True)
def no_host_interfaces(monkeypatch):
    """Keep the host's real network interfaces out of discovery."""
    monkeypatch.setattr(psutil, "net_if_stats", lambda: {})


@pytest.fixture
def sys_root(tmp_path) -> Path:
    root = tmp_path / "sys"
    root.mkdir()
    return root


@pytest.fixture
def proc_root(tmp_path) -> Path:
    root = tmp_path / "proc"
    write(root / "meminfo", MEMINFO)
    return root


@pytest.fixture
def config(sys_root, proc_root) -> Config:
    return Config(sys_root=str(sys_root), proc_root=str(proc_root), bench_limit=1000)


@pytest.fixture
def make_hwmon(sys_root):
    """Factory creating /sys/class/hwmon/hwmonN with a name and temp inputs."""

    def _make(index: int, name: str, temps: dict[str, str] | None = None) -> Path:
        hwmon = sys_root / "class" / "hwmon" / f"hwmon{index}"
        write(hwmon / "name", f"{name}\n")
        for filename, value in (temps or {}).items():
            write(hwmon / filename, f"{value}\n")
        return hwmon

    return _make


@pytest.fixture
def make_battery(sys_root):
    """Factory creating a power supply directory with the given attributes."""

    def _make(attrs: dict[str, str], name: str = "BAT0", supply_type: str | None = "Battery") -> Path:
        battery = sys_root / "class" / "power_supply" / name
        battery.mkdir(parents=True, exist_ok=True)
        if supply_type is not None:
            write(battery / "type", f"{supply_type}\n")
        for attr, value in attrs.items():
            write(battery / attr, f"{value}\n")
        return battery

    return _make
