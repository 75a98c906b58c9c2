"""Catalog of the statistics cgtop can display."""

from dataclasses import dataclass, field
from enum import Enum

from cgtop.stat_def import StatDefinition, parse


class StatType(Enum):
    """How a cgroup statistic aggregates over the hierarchy."""

    MEM_QTY_CUMUL = "mem_qty_cumul"  # bytes, parent already includes descendants
    QTY = "qty"  # plain count, local to each cgroup


class ProcStatType(Enum):
    """Unit of the per-process analog of a statistic."""

    NONE = "none"
    MEM_QTY_KB = "mem_qty_kb"


@dataclass(slots=True, frozen=True)
class Stat:
    """One displayable statistic."""

    definition: str
    short_desc: str
    desc: str
    stat_type: StatType = StatType.MEM_QTY_CUMUL
    proc_definition: str | None = None
    proc_short_desc: str = ""
    proc_stat_type: ProcStatType = ProcStatType.NONE
    cgroup_def: StatDefinition = field(init=False, repr=False, compare=False)
    proc_def: StatDefinition | None = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        cgroup_def = parse(self.definition)
        if cgroup_def is None:
            raise ValueError(f"Unrecognised stat definition {self.definition!r}")
        object.__setattr__(self, "cgroup_def", cgroup_def)

        proc_def = None
        if self.proc_definition is not None:
            proc_def = parse(self.proc_definition)
            if proc_def is None:
                raise ValueError(f"Unrecognised process stat definition {self.proc_definition!r}")
            if self.proc_stat_type is ProcStatType.NONE:
                raise ValueError(f"Process stat {self.proc_definition!r} has no unit")
        object.__setattr__(self, "proc_def", proc_def)

    @property
    def has_proc_stat(self) -> bool:
        return self.proc_def is not None


def _mem(definition: str, short_desc: str, desc: str, proc_key: str | None = None,
         proc_short_desc: str = "") -> Stat:
    if proc_key is None:
        return Stat(definition, short_desc, desc)
    return Stat(
        definition,
        short_desc,
        desc,
        proc_definition=f"status/=/1/{proc_key}:/2",
        proc_short_desc=proc_short_desc,
        proc_stat_type=ProcStatType.MEM_QTY_KB,
    )


# Descriptions from https://www.kernel.org/doc/Documentation/cgroup-v2.txt
STATS: tuple[Stat, ...] = (
    _mem("memory.current", "Current Total",
         "Current total memory usage including descendants", "VmRSS", "Resident"),
    _mem("memory.swap.current", "Current Swap",
         "Current total swap usage including descendants", "VmSwap", "Swap"),
    _mem("memory.stat/=/1/anon/2", "Anonymous",
         "Amount of memory used in anonymous mappings", "RssAnon", "Anonymous"),
    _mem("memory.stat/=/1/file/2", "File Cache",
         "Amount of memory used to cache filesystem data, including tmpfs and shared memory",
         "RssFile", "File"),
    _mem("memory.stat/=/1/kernel_stack/2", "Kernel Stack",
         "Amount of memory allocated to kernel stacks"),
    _mem("memory.stat/=/1/pagetables/2", "Page Tables",
         "Amount of memory used for page tables", "VmPTE", "Page Tables"),
    _mem("memory.stat/=/1/percpu/2", "Per CPU",
         "Amount of memory used for per-cpu data structures"),
    _mem("memory.stat/=/1/sock/2", "Socket",
         "Amount of memory used in network transmission buffers"),
    _mem("memory.stat/=/1/shmem/2", "Swap Backed",
         "Amount of cached filesystem data that is swap-backed", "RssShmem", "Shared"),
    _mem("memory.stat/=/1/file_mapped/2", "File Mapped",
         "Amount of cached filesystem data mapped"),
    _mem("memory.stat/=/1/file_dirty/2", "File Dirty",
         "Amount of cached filesystem data that was modified but not yet written back to disk"),
    _mem("memory.stat/=/1/file_writeback/2", "File Writeback",
         "Amount of cached filesystem data that was modified and is currently being written back"),
    _mem("memory.stat/=/1/swapcached/2", "Swap Cached",
         "Amount of memory cached in swap"),
    _mem("memory.stat/=/1/unevictable/2", "Unevictable",
         "Amount of unevictable memory"),
    _mem("memory.stat/=/1/slab/2", "Slab",
         "Amount of memory used for storing in-kernel data structures"),
    Stat("cgroup.procs/#", "Processes", "Number of processes", StatType.QTY),
    Stat("cgroup.threads/#", "Threads", "Number of threads", StatType.QTY),
)
