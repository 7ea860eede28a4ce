"""stts - one-shot system status report."""

import argparse
import logging
import sys
from collections.abc import Sequence

from rich.console import Console
from rich.markup import escape

from stts.bench import BenchResult, run_benchmark
from stts.collector import InfoCollector
from stts.config import Config
from stts.handles import HostContext, SourceUnavailableError
from stts.models import StatusSnapshot

LABEL_WIDTH = 8


def format_kib(size: int) -> str:
    """Format a KiB count as a human-readable string."""
    for unit in ["K", "M", "G", "T"]:
        if size < 1024:
            return f"{size:.1f}{unit}" if unit != "K" else f"{size:d}{unit}"
        size = size / 1024
    return f"{size:.1f}P"


def format_uptime(uptime: float) -> str:
    """Format seconds as ``D days, HH:MM:SS`` (days omitted when zero, "1 day" singular)."""
    days = int(uptime // 86400)
    hours = int((uptime % 86400) // 3600)
    minutes = int((uptime % 3600) // 60)
    seconds = int(uptime % 60)
    if days == 1:
        return f"1 day, {hours:02d}:{minutes:02d}:{seconds:02d}"
    if days > 0:
        return f"{days} days, {hours:02d}:{minutes:02d}:{seconds:02d}"
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def _line(label: str, value: str, color: str = "cyan") -> str:
    """One aligned, colored label and its value."""
    return f"[bold {color}]{label:<{LABEL_WIDTH}}[/bold {color}]{value}"


def snapshot_lines(snapshot: StatusSnapshot) -> list[str]:
    """The report as console-markup lines, in display order."""
    mem = snapshot.mem
    load = snapshot.load_avg
    lines = [
        _line("uptime", format_uptime(snapshot.uptime_seconds)),
        _line("load", f"{load[0]:.2f} {load[1]:.2f} {load[2]:.2f}"),
        _line("procs", str(snapshot.procs)),
        _line("mem", f"{format_kib(mem.used)} used / {format_kib(mem.total)}, {format_kib(mem.available)} avail"),
        _line(
            "",
            f"{format_kib(mem.free)} free, {format_kib(mem.shared)} shared, "
            f"{format_kib(mem.buffer)} buffers, {format_kib(mem.cache)} cache",
        ),
    ]

    # One line per reading, discovery order
    temps = [
        ("cpu1", snapshot.cpu1_temps),
        ("cpu2", snapshot.cpu2_temps),
        ("drive", snapshot.drive_temps),
        ("mobo", snapshot.mobo_temps),
    ]
    for label, readings in temps:
        for reading in readings:
            lines.append(_line(label, f"{reading}°C", color="yellow"))

    bss = snapshot.wifi_bss
    if bss is not None:
        lines.append(_line("wifi", f"{escape(bss.ssid)} ({bss.bssid})", color="green"))
        link = f"{bss.frequency_mhz} MHz"
        if bss.signal_dbm is not None:
            link += f", {bss.signal_dbm} dBm"
        lines.append(_line("", link))
        station = snapshot.wifi_station
        if station is not None and (station.rx_bitrate_mbps is not None or station.tx_bitrate_mbps is not None):
            rx = f"{station.rx_bitrate_mbps:g}" if station.rx_bitrate_mbps is not None else "?"
            tx = f"{station.tx_bitrate_mbps:g}" if station.tx_bitrate_mbps is not None else "?"
            lines.append(_line("", f"rx {rx} MBit/s, tx {tx} MBit/s"))

    if snapshot.bat_level or snapshot.bat_time_left:
        parts = []
        if snapshot.bat_level:
            parts.append(f"{snapshot.bat_level}%")
        if snapshot.bat_time_left:
            parts.append(f"{snapshot.bat_time_left} left")
        lines.append(_line("bat", ", ".join(parts), color="green"))

    return lines


def render_snapshot(snapshot: StatusSnapshot, console: Console) -> None:
    """Print the status report."""
    for line in snapshot_lines(snapshot):
        console.print(line, highlight=False)


def render_bench(result: BenchResult, console: Console) -> None:
    """Print the benchmark result line."""
    console.print(
        _line(
            "bench",
            f"{result.workers} worker(s), {result.elapsed_seconds:.2f}s, score {result.score:,.0f}",
            color="magenta",
        ),
        highlight=False,
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse the command line; only the benchmark flag is accepted."""
    parser = argparse.ArgumentParser(prog="stts", description="Print a snapshot of system status.")
    parser.add_argument("-b", "--bench", action="store_true", help="perform a benchmark")
    return parser.parse_args(argv)


def run(config: Config, console: Console) -> int:
    """Run the pipeline for ``config``; returns the process exit code."""
    try:
        host = HostContext.open(config)
    except SourceUnavailableError as exc:
        Console(stderr=True).print(f"stts: {exc}", style="red", markup=False, highlight=False, soft_wrap=True)
        return 1

    with host:
        snapshot = InfoCollector(host).collect()
        render_snapshot(snapshot, console)

        if config.bench:
            render_bench(run_benchmark(limit=config.bench_limit), console)

    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for the stts command."""
    args = parse_args(argv)
    config = Config.from_env(bench=args.bench)
    level = getattr(logging, config.log_level, logging.WARNING)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(name)s: %(levelname)s: %(message)s",
        stream=sys.stderr,
    )
    return run(config, Console())


if __name__ == "__main__":
    sys.exit(main())
