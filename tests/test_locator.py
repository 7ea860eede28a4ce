"""Tests for sensor discovery."""

import os

import psutil

from conftest import write
from stts.locator import BatteryPaths, SensorLocator, natural_key


def real(path) -> str:
    return os.path.realpath(path)


def test_natural_key_orders_numbers():
    """Test hwmon2 sorts before hwmon10."""
    names = ["hwmon10", "hwmon2", "hwmon1", "temp10_input", "temp9_input"]
    assert sorted(names, key=natural_key) == [
        "hwmon1",
        "hwmon2",
        "hwmon10",
        "temp9_input",
        "temp10_input",
    ]


class TestCpuDiscovery:
    """Tests for CPU package hwmon detection."""

    def test_two_sockets(self, config, make_hwmon):
        """Test the first two CPU hwmons become socket 1 and socket 2."""
        make_hwmon(0, "acpitz")
        first = make_hwmon(1, "coretemp")
        second = make_hwmon(2, "coretemp")

        paths = SensorLocator(config).locate()

        assert paths.cpu1_hwmon == real(first)
        assert paths.cpu2_hwmon == real(second)

    def test_natural_order(self, config, make_hwmon):
        """Test discovery follows hwmon numbering, not string order."""
        later = make_hwmon(10, "k10temp")
        earlier = make_hwmon(2, "k10temp")

        assert SensorLocator(config).find_cpu_hwmons() == [real(earlier), real(later)]

    def test_single_socket(self, config, make_hwmon):
        """Test a single package leaves socket 2 empty."""
        only = make_hwmon(0, "zenpower")

        paths = SensorLocator(config).locate()

        assert paths.cpu1_hwmon == real(only)
        assert paths.cpu2_hwmon is None

    def test_no_hwmon_tree(self, config):
        """Test a host without /sys/class/hwmon finds nothing."""
        paths = SensorLocator(config).locate()

        assert paths.cpu1_hwmon is None
        assert paths.cpu2_hwmon is None
        assert paths.drive_hwmons == []
        assert paths.mobo_hwmons == []
        assert paths.i2c_mobo_temps == []

    def test_hwmon_without_name_is_ignored(self, config, sys_root):
        """Test an hwmon directory with no name attribute is skipped."""
        (sys_root / "class" / "hwmon" / "hwmon0").mkdir(parents=True)

        assert SensorLocator(config).find_cpu_hwmons() == []


class TestDriveDiscovery:
    """Tests for storage device hwmon detection."""

    def test_block_devices_in_order(self, config, sys_root):
        """Test one hwmon per block device, following the device list."""
        hwmon_class = sys_root / "class" / "hwmon"
        hwmon_class.mkdir(parents=True)

        # SATA disk with drivetemp: device/hwmon/hwmonN
        sda_hwmon = sys_root / "block" / "sda" / "device" / "hwmon" / "hwmon3"
        write(sda_hwmon / "name", "drivetemp\n")
        os.symlink(sda_hwmon, hwmon_class / "hwmon3")

        # NVMe controller shared by two namespaces: device/hwmonN
        controller = sys_root / "devices" / "nvme0"
        write(controller / "hwmon1" / "name", "nvme\n")
        os.symlink(controller / "hwmon1", hwmon_class / "hwmon1")
        for ns in ["nvme0n1", "nvme0n2"]:
            (sys_root / "block" / ns).mkdir(parents=True)
            os.symlink(controller, sys_root / "block" / ns / "device")

        # Virtual device without a sensor
        (sys_root / "block" / "loop0").mkdir(parents=True)

        drives = SensorLocator(config).find_drive_hwmons()

        assert drives == [real(controller / "hwmon1"), real(sda_hwmon)]

    def test_drive_hwmon_outside_block_list(self, config, make_hwmon):
        """Test drive sensors not reachable from a block device are appended."""
        orphan = make_hwmon(4, "drivetemp")

        assert SensorLocator(config).find_drive_hwmons() == [real(orphan)]


class TestMoboDiscovery:
    """Tests for motherboard hwmon and i2c detection."""

    def test_super_io_names(self, config, make_hwmon):
        """Test known super-I/O and board drivers are picked up."""
        nct = make_hwmon(0, "nct6798")
        make_hwmon(1, "coretemp")
        ite = make_hwmon(2, "it8688")
        asus = make_hwmon(3, "asus_wmi_sensors")
        make_hwmon(4, "amdgpu")

        paths = SensorLocator(config).locate()

        assert paths.mobo_hwmons == [real(nct), real(ite), real(asus)]
        assert paths.misc_hwmon_names == ["amdgpu"]

    def test_i2c_temperature_files(self, config, sys_root):
        """Test temp inputs of known i2c chips, directly or under hwmon."""
        devices = sys_root / "bus" / "i2c" / "devices"
        jc42 = devices / "0-0018"
        write(jc42 / "name", "jc42\n")
        write(jc42 / "hwmon" / "hwmon9" / "temp1_input", "33000\n")
        lm75 = devices / "1-0048"
        write(lm75 / "name", "lm75\n")
        write(lm75 / "temp1_input", "28000\n")
        write(lm75 / "temp1_max", "80000\n")
        eeprom = devices / "2-0050"
        write(eeprom / "name", "ee1004\n")

        paths = SensorLocator(config).locate()

        assert paths.i2c_mobo_temps == [
            os.path.join(real(jc42 / "hwmon" / "hwmon9"), "temp1_input"),
            str(lm75 / "temp1_input"),
        ]
        assert paths.misc_i2c_names == ["ee1004"]


class TestBatteryDiscovery:
    """Tests for battery attribute probing."""

    def test_energy_battery(self, config, make_battery):
        """Test energy-reporting attributes are found."""
        battery = make_battery(
            {"energy_now": "30000000", "energy_full": "50000000", "power_now": "10000000", "status": "Discharging"}
        )

        paths = SensorLocator(config).find_battery()

        assert paths == BatteryPaths(
            capacity=None,
            energy_now=str(battery / "energy_now"),
            energy_full=str(battery / "energy_full"),
            power_now=str(battery / "power_now"),
            status=str(battery / "status"),
        )

    def test_charge_battery_fallback(self, config, make_battery):
        """Test charge-based attributes stand in for energy-based ones."""
        battery = make_battery(
            {"capacity": "55", "charge_now": "2000000", "charge_full": "4000000", "current_now": "1000000"},
            name="BAT1",
        )

        paths = SensorLocator(config).find_battery()

        assert paths.capacity == str(battery / "capacity")
        assert paths.energy_now == str(battery / "charge_now")
        assert paths.energy_full == str(battery / "charge_full")
        assert paths.power_now == str(battery / "current_now")
        assert paths.status is None

    def test_skips_mains_supply(self, config, make_battery):
        """Test an AC adapter is not mistaken for a battery."""
        make_battery({"online": "1"}, name="AC", supply_type="Mains")
        battery = make_battery({"capacity": "90"}, name="BAT1")

        assert SensorLocator(config).find_battery().capacity == str(battery / "capacity")

    def test_bat0_without_type(self, config, make_battery):
        """Test BAT0 is used when no supply reports its type."""
        battery = make_battery({"capacity": "42"}, supply_type=None)

        assert SensorLocator(config).find_battery().capacity == str(battery / "capacity")

    def test_no_battery(self, config):
        """Test a desktop finds no battery attributes."""
        assert SensorLocator(config).find_battery() == BatteryPaths()


class TestWifiDiscovery:
    """Tests for wireless interface detection."""

    def test_first_wireless_interface(self, config, sys_root, monkeypatch):
        """Test the first interface with a wireless directory is chosen."""
        monkeypatch.setattr(psutil, "net_if_stats", lambda: {"wlan1": None, "lo": None, "eth0": None, "wlan0": None})
        (sys_root / "class" / "net" / "eth0").mkdir(parents=True)
        (sys_root / "class" / "net" / "wlan0" / "wireless").mkdir(parents=True)
        (sys_root / "class" / "net" / "wlan1" / "wireless").mkdir(parents=True)

        assert SensorLocator(config).find_wifi_interface() == "wlan0"

    def test_no_wireless_interface(self, config, monkeypatch):
        """Test wired-only hosts find nothing."""
        monkeypatch.setattr(psutil, "net_if_stats", lambda: {"lo": None, "eth0": None})

        assert SensorLocator(config).find_wifi_interface() is None

    def test_interface_listing_fails(self, config, monkeypatch):
        """Test a psutil failure is absorbed."""

        def broken():
            raise psutil.Error("no netlink")

        monkeypatch.setattr(psutil, "net_if_stats", broken)

        assert SensorLocator(config).find_wifi_interface() is None
