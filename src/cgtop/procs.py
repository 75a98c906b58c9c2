"""Process and thread listing for a cgroup."""

import os
from pathlib import Path

from cgtop.logging import get_logger
from cgtop.models import ProcessEntry, ProcSortOrder
from cgtop.stat_def import ExtractError, StatDefinition
from cgtop.stats import STATS, ProcStatType

log = get_logger(__name__)

PROC_ROOT = Path("/proc")

_CMDLINE = StatDefinition.single("cmdline")
_COMM = StatDefinition.single("comm")


def load_procs(
    cgroup_root: Path,
    cgroup: str,
    include_children: bool,
    threads: bool,
    stat: int,
    sort: ProcSortOrder,
    proc_root: Path = PROC_ROOT,
) -> list[ProcessEntry]:
    """
    List the processes (or threads) of a cgroup.

    Args:
        cgroup_root: Mount point of the cgroup2 filesystem.
        cgroup: Cgroup path relative to ``cgroup_root``.
        include_children: Also list the members of all descendant cgroups.
        threads: List threads (cgroup.threads) instead of processes (cgroup.procs).
        stat: Index into STATS of the statistic to show per process.
        sort: Row order.
        proc_root: Mount point of procfs.

    Raises:
        OSError: The id list of the cgroup itself could not be read or is malformed.
    """
    cgroup_path = Path(cgroup_root) / cgroup if cgroup else Path(cgroup_root)
    pids = load_pids(cgroup_path, threads, include_children)

    stat_info = STATS[stat]
    procs = []
    for pid in pids:
        proc_path = Path(proc_root) / str(pid)
        cmd = _command(proc_path)

        if stat_info.proc_def is None:
            procs.append(ProcessEntry(pid, cmd))
            continue

        try:
            value = stat_info.proc_def.get_stat(proc_path)
        except ExtractError as e:
            procs.append(ProcessEntry(pid, cmd, error=e))
            continue

        if stat_info.proc_stat_type is ProcStatType.MEM_QTY_KB:
            value *= 1024
        procs.append(ProcessEntry(pid, cmd, value))

    log.debug("procs_loaded", cgroup=cgroup, threads=threads, count=len(procs))

    return sort_procs(procs, sort, stat_info.has_proc_stat)


def load_pids(cgroup_path: Path, threads: bool, include_children: bool) -> list[int]:
    """Read the process or thread ids of a cgroup, optionally recursing."""
    id_file = cgroup_path / ("cgroup.threads" if threads else "cgroup.procs")

    pids = []
    with open(id_file, encoding="utf-8") as fh:
        for line in fh:
            line = line.rstrip("\n")
            if not line.isascii() or not line.isdigit():
                raise OSError(f"Invalid id {line!r} in {id_file}")
            pids.append(int(line))

    if include_children:
        with os.scandir(cgroup_path) as entries:
            child_dirs = [entry.path for entry in entries if entry.is_dir(follow_symlinks=False)]
        for child in child_dirs:
            try:
                pids.extend(load_pids(Path(child), threads, True))
            except OSError as e:
                log.debug("pid_list_failed", path=child, error=str(e))

    return pids


def _command(proc_path: Path) -> str:
    try:
        return _CMDLINE.get_value(proc_path).rstrip("\0").replace("\0", " ")
    except ExtractError:
        pass
    try:
        return f"[{_COMM.get_value(proc_path)}]"
    except ExtractError:
        return "<Unknown>"


def sort_procs(procs: list[ProcessEntry], sort: ProcSortOrder, has_stat: bool = True) -> list[ProcessEntry]:
    """
    Stable sort of process entries.

    Stat ordering without a per-process statistic falls back to pid ordering.
    """
    if not has_stat:
        if sort is ProcSortOrder.STAT_ASC:
            sort = ProcSortOrder.PID_ASC
        elif sort is ProcSortOrder.STAT_DSC:
            sort = ProcSortOrder.PID_DSC

    key_func = {
        ProcSortOrder.PID_ASC: lambda p: p.pid,
        ProcSortOrder.PID_DSC: lambda p: p.pid,
        ProcSortOrder.NAME_ASC: lambda p: p.cmd,
        ProcSortOrder.NAME_DSC: lambda p: p.cmd,
        ProcSortOrder.STAT_ASC: lambda p: p.sort_stat,
        ProcSortOrder.STAT_DSC: lambda p: p.sort_stat,
    }
    reverse = sort in (ProcSortOrder.PID_DSC, ProcSortOrder.NAME_DSC, ProcSortOrder.STAT_DSC)
    return sorted(procs, key=key_func[sort], reverse=reverse)
