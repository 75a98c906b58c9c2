"""Loading of the cgroup v2 hierarchy into a tree of CGroupNode."""

import os
from pathlib import Path

from cgtop.logging import get_logger
from cgtop.models import SELF_SEGMENT, CGroupNode, CGroupSortOrder, join_path
from cgtop.stat_def import ExtractError, StatDefinition, StatIOError
from cgtop.stats import STATS, StatType

log = get_logger(__name__)

PROC_MOUNTS = Path("/proc/mounts")

_CONTROLLERS = StatDefinition.single("cgroup.controllers")


def find_cgroup2_mount(mounts: Path = PROC_MOUNTS) -> Path | None:
    """Find where the cgroup2 filesystem is mounted, or None if it isn't."""
    definition = StatDefinition.keyed(mounts.name, 3, "cgroup2", 2)
    try:
        return Path(definition.get_value(mounts.parent))
    except ExtractError as e:
        log.warning("cgroup2_mount_not_found", mounts=str(mounts), error=str(e))
        return None


def load_cgroups(cgroup_root: Path, stat: int, sort: CGroupSortOrder) -> list[CGroupNode]:
    """
    Load the cgroup tree rooted at ``cgroup_root``.

    Args:
        cgroup_root: Mount point of the cgroup2 filesystem.
        stat: Index into STATS of the statistic to aggregate.
        sort: Order for the children of every node.

    Returns:
        The top-level nodes. This is the root alone unless the root has no
        usable value of its own, in which case its children are returned.
        An unreadable root yields a single error node.
    """
    stat_info = STATS[stat]
    try:
        root = _load_cgroup_rec(Path(cgroup_root), "", stat_info.cgroup_def, stat_info.stat_type, sort)
    except OSError as e:
        log.warning("cgroup_root_unreadable", root=str(cgroup_root), error=str(e))
        return [CGroupNode("", error=e.strerror or str(e))]

    log.debug("cgroup_tree_loaded", root=str(cgroup_root), stat=stat_info.definition)

    if root.error is not None and root.children:
        return list(root.children)
    return [root]


def _load_cgroup_rec(
    abs_path: Path,
    rel_path: str,
    definition: StatDefinition,
    stat_type: StatType,
    sort: CGroupSortOrder,
) -> CGroupNode:
    children: list[CGroupNode] = []

    # Recurse in to sub directories first
    with os.scandir(abs_path) as entries:
        for entry in entries:
            try:
                if not entry.is_dir(follow_symlinks=False):
                    continue
            except OSError:
                continue

            sub_rel_path = join_path(rel_path, entry.name)
            try:
                children.append(_load_cgroup_rec(Path(entry.path), sub_rel_path, definition, stat_type, sort))
            except OSError as e:
                log.debug("cgroup_unreadable", path=sub_rel_path, error=str(e))
                children.append(CGroupNode(sub_rel_path, error=e.strerror or str(e)))

    stat = 0
    error = None
    try:
        stat = definition.get_stat(abs_path)
    except ExtractError as e:
        error = _stat_error(abs_path, e)

    if error is None:
        stat = _aggregate(rel_path, stat, children, stat_type)

    return CGroupNode(rel_path, stat, error, tuple(sort_cgroups(children, sort)))


def _stat_error(abs_path: Path, error: ExtractError) -> str:
    """Describe a failed extraction, recognising cgroups without memory accounting."""
    if isinstance(error, StatIOError):
        try:
            controllers = _CONTROLLERS.get_value(abs_path).split()
        except ExtractError:
            controllers = None
        if controllers is not None and "memory" not in controllers:
            return "No memory controller"
    return str(error)


def _aggregate(rel_path: str, own: int, children: list[CGroupNode], stat_type: StatType) -> int:
    """Append a <self> node to ``children`` where needed and return the node's value."""
    if not children:
        return own

    child_sum = sum(child.stat for child in children)
    self_path = join_path(rel_path, SELF_SEGMENT)

    if stat_type is StatType.MEM_QTY_CUMUL:
        # The kernel value already covers the children
        if child_sum < own:
            children.append(CGroupNode(self_path, own - child_sum))
        return own

    if child_sum > 0:
        if own > 0:
            children.append(CGroupNode(self_path, own))
        return own + child_sum
    return own


def sort_cgroups(nodes: list[CGroupNode], sort: CGroupSortOrder) -> list[CGroupNode]:
    """Stable sort of sibling nodes."""
    key_func = {
        CGroupSortOrder.NAME_ASC: lambda n: n.path,
        CGroupSortOrder.NAME_DSC: lambda n: n.path,
        CGroupSortOrder.STAT_ASC: lambda n: n.stat,
        CGroupSortOrder.STAT_DSC: lambda n: n.stat,
    }
    reverse = sort in (CGroupSortOrder.NAME_DSC, CGroupSortOrder.STAT_DSC)
    return sorted(nodes, key=key_func[sort], reverse=reverse)
