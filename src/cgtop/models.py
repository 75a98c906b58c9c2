"""Data models for cgtop."""

from dataclasses import dataclass
from enum import Enum

from cgtop.stat_def import ExtractError

SELF_SEGMENT = "<self>"


def join_path(parent: str, name: str) -> str:
    """Join relative cgroup paths, the root being the empty string."""
    return f"{parent}/{name}" if parent else name


def parent_path(path: str) -> str:
    """Relative path of the parent cgroup ("" for top-level cgroups)."""
    return path.rpartition("/")[0]


class CGroupSortOrder(Enum):
    """Sort orders for the cgroup tree."""

    NAME_ASC = "name_asc"
    NAME_DSC = "name_dsc"
    STAT_ASC = "stat_asc"
    STAT_DSC = "stat_dsc"


class ProcSortOrder(Enum):
    """Sort orders for the process table."""

    PID_ASC = "pid_asc"
    PID_DSC = "pid_dsc"
    NAME_ASC = "name_asc"
    NAME_DSC = "name_dsc"
    STAT_ASC = "stat_asc"
    STAT_DSC = "stat_dsc"


@dataclass(slots=True, frozen=True)
class CGroupNode:
    """Immutable snapshot of one cgroup (or a synthetic <self> entry)."""

    path: str  # relative to the cgroup2 mount, "" for the root
    stat: int = 0
    error: str | None = None
    children: tuple["CGroupNode", ...] = ()

    @property
    def name(self) -> str:
        """Last path segment, "/" for the root."""
        return self.path.rpartition("/")[2] or "/"

    @property
    def is_self(self) -> bool:
        return self.name == SELF_SEGMENT

    @property
    def cgroup_path(self) -> str:
        """Path of the real cgroup this node stands for."""
        if self.is_self:
            return parent_path(self.path)
        return self.path


@dataclass(slots=True, frozen=True)
class ProcessEntry:
    """Immutable snapshot of one process or thread."""

    pid: int
    cmd: str
    stat: int | None = None  # None when failed or when the stat has no process analog
    error: ExtractError | None = None

    @property
    def sort_stat(self) -> int:
        return self.stat if self.stat is not None else 0
