"""Wi-Fi link query via the platform ``iw`` utility."""

import logging
import re
import subprocess

from stts.models import WifiBss, WifiStation

logger = logging.getLogger(__name__)

IW_COMMAND = "iw"

_CONNECTED = re.compile(r"^Connected to ([0-9a-fA-F:]{17})")
_BYTES = re.compile(r"^(RX|TX):\s*(\d+) bytes")
_BITRATE = re.compile(r"^(rx|tx) bitrate:\s*([\d.]+)\s*MBit/s")


def run_iw(iface: str) -> str | None:
    """Run ``iw dev <iface> link`` and return its stdout, or None on failure."""
    command = [IW_COMMAND, "dev", iface, "link"]
    try:
        result = subprocess.run(command, check=False, text=True, capture_output=True)
    except FileNotFoundError:
        logger.debug("Command not found: %s", command[0])
        return None
    except OSError:
        logger.debug("Could not run %s", " ".join(command), exc_info=True)
        return None
    if result.returncode != 0:
        logger.debug("Command failed (%s): %s", result.returncode, " ".join(command))
        return None
    return result.stdout


def parse_link(output: str) -> tuple[WifiBss | None, WifiStation | None]:
    """
    Parse ``iw dev <iface> link`` output.

    Returns (None, None) when the interface is not associated.
    """
    lines = [line.strip() for line in output.splitlines() if line.strip()]
    if not lines:
        return None, None
    match = _CONNECTED.match(lines[0])
    if match is None:
        # "Not connected." and anything we don't understand
        return None, None

    bssid = match.group(1).lower()
    ssid = ""
    freq = 0
    signal: int | None = None
    bitrates: dict[str, float] = {}
    counters: dict[str, int] = {}

    for line in lines[1:]:
        if line.startswith("SSID:"):
            ssid = line.split(":", 1)[1].strip()
        elif line.startswith("freq:"):
            try:
                freq = int(float(line.split(":", 1)[1].split()[0]))
            except (IndexError, ValueError):
                pass
        elif line.startswith("signal:"):
            try:
                signal = int(line.split(":", 1)[1].split()[0])
            except (IndexError, ValueError):
                pass

        rate = _BITRATE.match(line)
        if rate:
            bitrates[rate.group(1)] = float(rate.group(2))
        count = _BYTES.match(line)
        if count:
            counters[count.group(1)] = int(count.group(2))

    bss = WifiBss(ssid=ssid, bssid=bssid, frequency_mhz=freq, signal_dbm=signal)
    station = WifiStation(
        signal_dbm=signal,
        rx_bitrate_mbps=bitrates.get("rx"),
        tx_bitrate_mbps=bitrates.get("tx"),
        rx_bytes=counters.get("RX"),
        tx_bytes=counters.get("TX"),
    )
    return bss, station


def query_link(iface: str | None) -> tuple[WifiBss | None, WifiStation | None]:
    """Current BSS and station info for ``iface``; (None, None) if unavailable."""
    if iface is None:
        return None, None
    output = run_iw(iface)
    if output is None:
        return None, None
    bss, station = parse_link(output)
    if bss is None:
        logger.debug("%s is not associated", iface)
    return bss, station
