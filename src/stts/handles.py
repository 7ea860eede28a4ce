"""Best-effort opening and guaranteed release of sensor read handles."""

import logging
import os
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import TextIO

from stts.config import Config
from stts.locator import TEMP_INPUT_PATTERN, SensorLocator, SensorPaths, list_dir

logger = logging.getLogger(__name__)


class SourceUnavailableError(RuntimeError):
    """A mandatory data source could not be opened."""

    def __init__(self, path: str, cause: OSError) -> None:
        super().__init__(f"cannot open {path}: {cause.strerror or cause}")
        self.path = path
        self.cause = cause


def _open(path: str) -> TextIO:
    return open(path, encoding="utf-8", errors="replace")


@dataclass(slots=True)
class BatchOpen:
    """Result of a best-effort batch open: what opened, and how much didn't."""

    handles: list[TextIO] = field(default_factory=list)
    failures: int = 0

    def extend(self, other: "BatchOpen") -> None:
        self.handles.extend(other.handles)
        self.failures += other.failures


def open_each(paths: Iterable[str]) -> BatchOpen:
    """Open every path for reading, skipping the ones that fail."""
    batch = BatchOpen()
    for path in paths:
        try:
            batch.handles.append(_open(path))
        except OSError:
            logger.debug("Skipping unreadable source %s", path)
            batch.failures += 1
    return batch


def open_many(directory: str | None, pattern: str = TEMP_INPUT_PATTERN) -> BatchOpen:
    """
    Open every entry of ``directory`` whose name fully matches ``pattern``.

    A directory that can't be listed (or is None) gives an empty batch.
    """
    if directory is None:
        return BatchOpen()
    regex = re.compile(pattern)
    names = [name for name in list_dir(directory) if regex.fullmatch(name)]
    return open_each(os.path.join(directory, name) for name in names)


def open_optional(path: str | None) -> TextIO | None:
    """Open a single optional attribute, or None if it isn't there."""
    if path is None:
        return None
    batch = open_each([path])
    return batch.handles[0] if batch.handles else None


@dataclass(slots=True)
class BatteryHandles:
    """Open battery attributes; None where an attribute is absent."""

    capacity: TextIO | None = None
    energy_now: TextIO | None = None
    energy_full: TextIO | None = None
    power_now: TextIO | None = None
    status: TextIO | None = None

    def __iter__(self) -> Iterator[TextIO | None]:
        yield self.capacity
        yield self.energy_now
        yield self.energy_full
        yield self.power_now
        yield self.status


@dataclass
class HostContext:
    """
    The opened resources for one run.

    Every handle held here was opened successfully; an empty list or None
    means the source is unavailable. ``close()`` releases each handle once
    and is safe to call again. Use as a context manager so release happens
    on every exit path.
    """

    meminfo: TextIO
    paths: SensorPaths = field(default_factory=SensorPaths)
    cpu1_temps: list[TextIO] = field(default_factory=list)
    cpu2_temps: list[TextIO] = field(default_factory=list)
    drive_temps: list[TextIO] = field(default_factory=list)
    mobo_temps: list[TextIO] = field(default_factory=list)
    battery: BatteryHandles = field(default_factory=BatteryHandles)
    failures: int = 0
    _closed: bool = field(default=False, repr=False)

    @property
    def wifi_iface(self) -> str | None:
        return self.paths.wifi_iface

    @property
    def closed(self) -> bool:
        return self._closed

    @classmethod
    def open(cls, config: Config, locator: SensorLocator | None = None) -> "HostContext":
        """
        Open the mandatory meminfo source, then discover and open the rest.

        Raises:
            SourceUnavailableError: meminfo can't be opened. Nothing else has
                been opened at that point.
        """
        meminfo_path = config.proc_path("meminfo")
        try:
            meminfo = _open(meminfo_path)
        except OSError as exc:
            raise SourceUnavailableError(meminfo_path, exc) from exc

        host = None
        try:
            paths = (locator or SensorLocator(config)).locate()
            host = cls(meminfo=meminfo, paths=paths)
            host._open_sources()
        except BaseException:
            if host is not None:
                host.close()
            else:
                meminfo.close()
            raise
        return host

    def _open_sources(self) -> None:
        # Handles land on self as soon as they open so close() can reach them
        paths = self.paths

        cpu1 = open_many(paths.cpu1_hwmon)
        self.cpu1_temps = cpu1.handles
        cpu2 = open_many(paths.cpu2_hwmon)
        self.cpu2_temps = cpu2.handles

        drive = BatchOpen(handles=self.drive_temps)
        for hwmon in paths.drive_hwmons:
            drive.extend(open_many(hwmon))

        mobo = BatchOpen(handles=self.mobo_temps)
        for hwmon in paths.mobo_hwmons:
            mobo.extend(open_many(hwmon))
        mobo.extend(open_each(paths.i2c_mobo_temps))

        self.failures = cpu1.failures + cpu2.failures + drive.failures + mobo.failures

        bat = paths.battery
        for attr in ("capacity", "energy_now", "energy_full", "power_now", "status"):
            setattr(self.battery, attr, open_optional(getattr(bat, attr)))

        logger.debug(
            "Opened %d temperature source(s), %d failed",
            len(self.cpu1_temps) + len(self.cpu2_temps) + len(self.drive_temps) + len(self.mobo_temps),
            self.failures,
        )

    def handles(self) -> Iterator[TextIO]:
        """Every handle currently held."""
        yield self.meminfo
        yield from self.cpu1_temps
        yield from self.cpu2_temps
        yield from self.drive_temps
        yield from self.mobo_temps
        for handle in self.battery:
            if handle is not None:
                yield handle

    def close(self) -> None:
        """Release every handle exactly once."""
        if self._closed:
            return
        self._closed = True
        for handle in self.handles():
            try:
                handle.close()
            except OSError:
                logger.debug("Error closing %s", getattr(handle, "name", handle), exc_info=True)

    def __enter__(self) -> "HostContext":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
