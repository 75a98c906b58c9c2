"""Application configuration for cgtop."""

from dataclasses import dataclass
from pathlib import Path

DEFAULT_REFRESH_INTERVAL = 5.0
MIN_REFRESH_INTERVAL = 0.5


@dataclass
class Config:
    """Settings fixed for the lifetime of the application."""

    cgroup_root: Path
    proc_root: Path = Path("/proc")
    stat: int = 0  # index into STATS
    debug: bool = False
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    log_file: Path | None = None

    def __post_init__(self) -> None:
        self.cgroup_root = Path(self.cgroup_root)
        self.proc_root = Path(self.proc_root)
        self.refresh_interval = max(MIN_REFRESH_INTERVAL, self.refresh_interval)
