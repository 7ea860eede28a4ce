"""Run configuration for stts."""

import os
from collections.abc import Mapping
from dataclasses import dataclass

DEFAULT_BENCH_LIMIT = 200_000


@dataclass(slots=True, frozen=True)
class Config:
    """
    Settings for a single run, threaded explicitly from the entry point.

    The filesystem roots exist so the whole pipeline can be pointed at a
    fake sysfs/procfs tree.
    """

    bench: bool = False
    sys_root: str = "/sys"
    proc_root: str = "/proc"
    log_level: str = "WARNING"
    bench_limit: int = DEFAULT_BENCH_LIMIT

    @classmethod
    def from_env(cls, bench: bool = False, environ: Mapping[str, str] | None = None) -> "Config":
        """Build a Config from STTS_* environment variables."""
        env = os.environ if environ is None else environ
        return cls(
            bench=bench,
            sys_root=env.get("STTS_SYS_ROOT", "/sys"),
            proc_root=env.get("STTS_PROC_ROOT", "/proc"),
            log_level=env.get("STTS_LOG_LEVEL", "WARNING").upper(),
        )

    def sys_path(self, *parts: str) -> str:
        """Join parts below the sysfs root."""
        return os.path.join(self.sys_root, *parts)

    def proc_path(self, *parts: str) -> str:
        """Join parts below the procfs root."""
        return os.path.join(self.proc_root, *parts)
