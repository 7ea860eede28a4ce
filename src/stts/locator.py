"""Sensor discovery for stts.

Maps the platform's sysfs layout onto a list of readable paths per sensor
class. Nothing here opens a sensor for reading: only the small ``name`` and
``type`` attributes used to identify chips are read (and closed at once).
A class that cannot be found simply comes back empty.
"""

import logging
import os
import re
from dataclasses import dataclass, field

import psutil

from stts.config import Config

logger = logging.getLogger(__name__)

TEMP_INPUT_PATTERN = r"temp\d+_input"

CPU_HWMON_NAMES = frozenset({"coretemp", "k10temp", "zenpower", "k8temp", "cpu_thermal"})
DRIVE_HWMON_NAMES = frozenset({"drivetemp", "nvme"})
MOBO_HWMON_PATTERN = re.compile(
    r"(nct6\d{3}|it8\d{2,3}|it87|w83\d{3}\w*|f71\d{3}\w*|asus_wmi_sensors"
    r"|asus-ec-sensors|asusec|gigabyte_wmi|acpitz)$"
)
I2C_TEMP_NAMES = frozenset(
    {"jc42", "lm75", "lm73", "lm92", "tmp102", "tmp421", "tmp451", "max6697", "adt7475", "spd5118"}
)

BATTERY_ATTRS = ("capacity", "energy_now", "energy_full", "power_now", "status")
# Charge-reporting batteries expose the same ratios under different names.
CHARGE_FALLBACKS = {
    "energy_now": "charge_now",
    "energy_full": "charge_full",
    "power_now": "current_now",
}

_DIGITS = re.compile(r"(\d+)")


def natural_key(name: str) -> list[int | str]:
    """Sort key that orders ``hwmon2`` before ``hwmon10``."""
    return [int(part) if part.isdigit() else part for part in _DIGITS.split(name)]


def list_dir(directory: str) -> list[str]:
    """List a directory in natural order, or nothing if it can't be listed."""
    try:
        return sorted(os.listdir(directory), key=natural_key)
    except OSError:
        return []


def read_attr(path: str) -> str | None:
    """Read a one-line sysfs attribute, stripped."""
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            return f.read().strip()
    except OSError:
        return None


@dataclass(slots=True)
class BatteryPaths:
    """Paths of the battery attributes that exist; None where absent."""

    capacity: str | None = None
    energy_now: str | None = None
    energy_full: str | None = None
    power_now: str | None = None
    status: str | None = None


@dataclass(slots=True)
class SensorPaths:
    """Everything the locator found on this host."""

    cpu1_hwmon: str | None = None
    cpu2_hwmon: str | None = None
    drive_hwmons: list[str] = field(default_factory=list)
    mobo_hwmons: list[str] = field(default_factory=list)
    i2c_mobo_temps: list[str] = field(default_factory=list)
    misc_hwmon_names: list[str] = field(default_factory=list)
    misc_i2c_names: list[str] = field(default_factory=list)
    battery: BatteryPaths = field(default_factory=BatteryPaths)
    wifi_iface: str | None = None


class SensorLocator:
    """Discovers sensor sources below the configured sysfs root."""

    def __init__(self, config: Config) -> None:
        self._config = config

    @property
    def hwmon_root(self) -> str:
        return self._config.sys_path("class", "hwmon")

    def locate(self) -> SensorPaths:
        """Run every discovery step and collect the results."""
        paths = SensorPaths()

        cpu_hwmons = self.find_cpu_hwmons()
        if cpu_hwmons:
            paths.cpu1_hwmon = cpu_hwmons[0]
        if len(cpu_hwmons) > 1:
            paths.cpu2_hwmon = cpu_hwmons[1]
        if len(cpu_hwmons) > 2:
            logger.debug("Ignoring %d extra CPU hwmon(s)", len(cpu_hwmons) - 2)

        paths.drive_hwmons = self.find_drive_hwmons()
        paths.mobo_hwmons = self.find_mobo_hwmons()
        paths.i2c_mobo_temps = self.find_i2c_temps()

        known = set(cpu_hwmons) | set(paths.drive_hwmons) | set(paths.mobo_hwmons)
        for hwmon, name in self._hwmons():
            if hwmon not in known:
                paths.misc_hwmon_names.append(name)
        paths.misc_i2c_names = [
            name for _, name in self._i2c_devices() if name not in I2C_TEMP_NAMES
        ]
        if paths.misc_hwmon_names or paths.misc_i2c_names:
            logger.debug(
                "Unclassified chips: hwmon=%s i2c=%s",
                paths.misc_hwmon_names,
                paths.misc_i2c_names,
            )

        paths.battery = self.find_battery()
        paths.wifi_iface = self.find_wifi_interface()
        return paths

    def _hwmons(self) -> list[tuple[str, str]]:
        """All hwmon directories with their chip name, in natural order."""
        hwmons = []
        for entry in list_dir(self.hwmon_root):
            hwmon = os.path.join(self.hwmon_root, entry)
            name = read_attr(os.path.join(hwmon, "name"))
            if name is None:
                continue
            hwmons.append((os.path.realpath(hwmon), name))
        return hwmons

    def find_cpu_hwmons(self) -> list[str]:
        """Hwmon directories of CPU package sensors, one per socket."""
        return [hwmon for hwmon, name in self._hwmons() if name in CPU_HWMON_NAMES]

    def find_drive_hwmons(self) -> list[str]:
        """
        One hwmon directory per storage device.

        Block devices are walked first so the order follows the device list;
        drive sensors not reachable from a block device are appended after.
        """
        block_root = self._config.sys_path("block")
        found: list[str] = []

        for dev in list_dir(block_root):
            device = os.path.join(block_root, dev, "device")
            candidates = [
                os.path.join(device, "hwmon"),  # drivetemp: device/hwmon/hwmonN
                device,  # device/hwmonN
                os.path.join(device, "device"),  # nvme namespace -> controller
            ]
            for parent in candidates:
                hwmon = self._first_hwmon_in(parent)
                if hwmon is not None:
                    if hwmon not in found:
                        found.append(hwmon)
                    break

        for hwmon, name in self._hwmons():
            if name in DRIVE_HWMON_NAMES and hwmon not in found:
                found.append(hwmon)
        return found

    @staticmethod
    def _first_hwmon_in(parent: str) -> str | None:
        for entry in list_dir(parent):
            if re.fullmatch(r"hwmon\d+", entry):
                return os.path.realpath(os.path.join(parent, entry))
        return None

    def find_mobo_hwmons(self) -> list[str]:
        """Hwmon directories of known super-I/O and board sensor drivers."""
        return [hwmon for hwmon, name in self._hwmons() if MOBO_HWMON_PATTERN.match(name)]

    def _i2c_devices(self) -> list[tuple[str, str]]:
        i2c_root = self._config.sys_path("bus", "i2c", "devices")
        devices = []
        for entry in list_dir(i2c_root):
            device = os.path.join(i2c_root, entry)
            name = read_attr(os.path.join(device, "name"))
            if name is not None:
                devices.append((device, name))
        return devices

    def find_i2c_temps(self) -> list[str]:
        """Temperature input files of known i2c temperature chips."""
        temps: list[str] = []
        for device, name in self._i2c_devices():
            if name not in I2C_TEMP_NAMES:
                continue
            dirs = [device]
            hwmon = self._first_hwmon_in(os.path.join(device, "hwmon"))
            if hwmon is not None:
                dirs.append(hwmon)
            for directory in dirs:
                for entry in list_dir(directory):
                    if re.fullmatch(TEMP_INPUT_PATTERN, entry):
                        temps.append(os.path.join(directory, entry))
        return temps

    def find_battery(self) -> BatteryPaths:
        """Probe the first battery power supply for its attribute files."""
        supply_root = self._config.sys_path("class", "power_supply")
        battery_dir = None
        for entry in list_dir(supply_root):
            if read_attr(os.path.join(supply_root, entry, "type")) == "Battery":
                battery_dir = os.path.join(supply_root, entry)
                break
        if battery_dir is None:
            fallback = os.path.join(supply_root, "BAT0")
            if not os.path.isdir(fallback):
                return BatteryPaths()
            battery_dir = fallback

        found = {}
        for attr in BATTERY_ATTRS:
            path = os.path.join(battery_dir, attr)
            if not os.path.isfile(path) and attr in CHARGE_FALLBACKS:
                path = os.path.join(battery_dir, CHARGE_FALLBACKS[attr])
            found[attr] = path if os.path.isfile(path) else None
        return BatteryPaths(**found)

    def find_wifi_interface(self) -> str | None:
        """First network interface that sysfs marks as wireless."""
        try:
            ifaces = sorted(psutil.net_if_stats(), key=natural_key)
        except (OSError, psutil.Error):
            logger.debug("Could not list network interfaces", exc_info=True)
            return None

        for iface in ifaces:
            if os.path.isdir(self._config.sys_path("class", "net", iface, "wireless")):
                return iface
        return None
