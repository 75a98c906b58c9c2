"""The application scenes: key handling and rendering.

Keys arrive as strings: printable characters as themselves ("q", "[", "P")
and everything else by name ("up", "pageup", "escape", "enter").
"""

from pathlib import Path

from rich.console import RenderableType
from rich.table import Table
from rich.text import Text

from cgtop.cgroup import load_cgroups
from cgtop.controller import (
    Action,
    ChangeScene,
    Exit,
    Reload,
    Scene,
    SceneConfig,
    SceneId,
    SetCGroupSort,
    SetCGroupTarget,
    SetProcessMode,
    SetProcessSort,
    SetStat,
)
from cgtop.formatters import format_mem_qty, format_qty
from cgtop.logging import get_logger
from cgtop.models import CGroupNode, CGroupSortOrder, ProcessEntry, ProcSortOrder
from cgtop.procs import PROC_ROOT, load_procs
from cgtop.stat_def import ValueNotFound
from cgtop.stats import STATS, StatType
from cgtop.views import ListNavigation, TableViewState, TreeViewState

log = get_logger(__name__)

ASC_MARK = " ▼"
DSC_MARK = " ▲"


def _toggle(current, ascending, descending):
    return descending if current is ascending else ascending


def _navigate(view: ListNavigation, key: str) -> list[Action] | None:
    """Common row movement keys. Returns [] if the selection moved."""
    moves = {
        "up": view.up,
        "down": view.down,
        "pageup": view.page_up,
        "pagedown": view.page_down,
        "home": view.home,
        "end": view.end,
    }
    move = moves.get(key)
    if move is None or not move():
        return None
    return []


def _next_stat(stat: int, up: bool, proc_only: bool = False) -> int:
    """Step to the next (or previous) statistic, wrapping around."""
    step = 1 if up else -1
    new_stat = stat
    for _ in range(len(STATS)):
        new_stat = (new_stat + step) % len(STATS)
        if not proc_only or STATS[new_stat].has_proc_stat:
            return new_stat
    return stat


def _format_stat(value: int, stat: int) -> Text:
    if STATS[stat].stat_type is StatType.QTY:
        return format_qty(value)
    return format_mem_qty(value)


def _cgroup_display(path: str) -> str:
    return f"/{path}"


class TreeScene(Scene):
    """The cgroup tree."""

    refreshes = True

    def __init__(self, cgroup_root: Path) -> None:
        self.cgroup_root = cgroup_root
        self.view = TreeViewState()

    def reload(self, config: SceneConfig) -> None:
        self.view.update(load_cgroups(self.cgroup_root, config.stat, config.cgroup_sort))

    def frame_title(self, config: SceneConfig) -> str:
        return f"CGroup {STATS[config.stat].short_desc} (press 'h' for help)"

    def key_event(self, key: str, config: SceneConfig) -> list[Action] | None:
        view = self.view
        if key in ("q", "escape"):
            return [Exit()]
        if key == "left":
            return [] if view.left() else None
        if key == "right":
            return [] if view.right() else None
        if key == "enter":
            node = view.selected_node()
            if node is None or not node.children:
                return None
            if view.is_expanded(node.path):
                view.left()
            else:
                view.right()
            return []
        if key == "c":
            return [] if view.collapse_all() else None
        if key == "n":
            return [SetCGroupSort(_toggle(config.cgroup_sort, CGroupSortOrder.NAME_ASC, CGroupSortOrder.NAME_DSC))]
        if key == "s":
            return [SetCGroupSort(_toggle(config.cgroup_sort, CGroupSortOrder.STAT_ASC, CGroupSortOrder.STAT_DSC))]
        if key == "z":
            return [ChangeScene(SceneId.STAT_CHOOSE)]
        if key == "[":
            return [SetStat(_next_stat(config.stat, up=False))]
        if key == "]":
            return [SetStat(_next_stat(config.stat, up=True))]
        if key in ("p", "t", "P", "T"):
            return self._show_procs(threads=key.lower() == "t", include_children=key.isupper())
        if key == "r":
            return [Reload()]
        if key == "h":
            return [ChangeScene(SceneId.TREE_HELP)]
        return _navigate(view, key)

    def _show_procs(self, threads: bool, include_children: bool) -> list[Action] | None:
        node = self.view.selected_node()
        if node is None:
            return None
        return [
            SetCGroupTarget(node.path),
            SetProcessMode(threads, include_children),
            ChangeScene(SceneId.PROCS),
        ]

    def render(self, config: SceneConfig, width: int, height: int) -> RenderableType:
        view = self.view
        view.page_size = height
        visible = view.visible()

        lines = []
        for row in view.window(height):
            node, depth = visible[row]
            line = self._node_text(node, depth, config.stat)
            if node.path == view.selected:
                line.stylize("reverse")
            lines.append(line)
        return Text("\n").join(lines)

    def _node_text(self, node: CGroupNode, depth: int, stat: int) -> Text:
        if not node.children:
            marker = "  "
        elif self.view.is_expanded(node.path):
            marker = "▼ "
        else:
            marker = "▶ "

        text = Text("  " * depth + marker)
        if node.error is not None:
            text.append(node.name, style="bold")
            text.append(": ")
            text.append(node.error, style="red")
        else:
            text.append_text(_format_stat(node.stat, stat))
            text.append(": ")
            text.append(node.name, style="bold")
        return text


class ProcsScene(Scene):
    """Processes or threads of one cgroup."""

    refreshes = True

    def __init__(self, cgroup_root: Path, proc_root: Path = PROC_ROOT) -> None:
        self.cgroup_root = cgroup_root
        self.proc_root = proc_root
        self.view = TableViewState()
        self._target: tuple[str, bool, bool] | None = None

    def reload(self, config: SceneConfig) -> None:
        target = (config.cgroup, config.threads, config.include_children)
        if target != self._target:
            self.view.reset()
            self._target = target

        try:
            procs = load_procs(
                self.cgroup_root,
                config.cgroup,
                config.include_children,
                config.threads,
                config.stat,
                config.proc_sort,
                self.proc_root,
            )
        except OSError as e:
            log.info("procs_unavailable", cgroup=config.cgroup, error=str(e))
            self.view.fail(_os_error_text(e))
            return
        self.view.update(procs)

    def frame_title(self, config: SceneConfig) -> str:
        kind = "Threads" if config.threads else "Processes"
        title = f"{kind} for {_cgroup_display(config.cgroup)}"
        if config.include_children:
            title += " and descendants"
        return title + " (press 'h' for help)"

    def key_event(self, key: str, config: SceneConfig) -> list[Action] | None:
        sort = config.proc_sort
        if key in ("q", "escape", "p", "t"):
            return [ChangeScene(SceneId.TREE)]
        if key == "i":
            return [SetProcessSort(_toggle(sort, ProcSortOrder.PID_ASC, ProcSortOrder.PID_DSC))]
        if key == "n":
            return [SetProcessSort(_toggle(sort, ProcSortOrder.NAME_ASC, ProcSortOrder.NAME_DSC))]
        if key == "s":
            return [SetProcessSort(_toggle(sort, ProcSortOrder.STAT_ASC, ProcSortOrder.STAT_DSC))]
        if key == "[":
            return [SetStat(_next_stat(config.stat, up=False, proc_only=True))]
        if key == "]":
            return [SetStat(_next_stat(config.stat, up=True, proc_only=True))]
        if key == "d":
            return [SetProcessMode(config.threads, not config.include_children)]
        if key == "r":
            return [Reload()]
        if key == "h":
            return [ChangeScene(SceneId.PROCS_HELP)]
        return _navigate(self.view, key)

    def render(self, config: SceneConfig, width: int, height: int) -> RenderableType:
        view = self.view
        if view.error is not None:
            return Text.assemble("Failed to load processes:\n", (view.error, "red"))

        # One line goes to the header
        view.page_size = max(height - 1, 0)

        stat_info = STATS[config.stat]
        sort = config.proc_sort

        table = Table(box=None, pad_edge=False, show_edge=False, header_style="on blue", expand=True)
        id_header = "TID" if config.threads else "PID"
        table.add_column(id_header + self._mark(sort, ProcSortOrder.PID_ASC, ProcSortOrder.PID_DSC), justify="right",
                         no_wrap=True)
        if stat_info.has_proc_stat:
            table.add_column(
                stat_info.proc_short_desc + self._mark(sort, ProcSortOrder.STAT_ASC, ProcSortOrder.STAT_DSC),
                justify="right",
                no_wrap=True,
            )
        table.add_column("Command" + self._mark(sort, ProcSortOrder.NAME_ASC, ProcSortOrder.NAME_DSC), no_wrap=True,
                         ratio=1)

        for row in view.window(view.page_size):
            entry = view.entries[row]
            cells: list[RenderableType] = [str(entry.pid)]
            if stat_info.has_proc_stat:
                cells.append(self._stat_cell(entry))
            cells.append(Text(entry.cmd))
            table.add_row(*cells, style="reverse" if entry.pid == view.selected else None)
        return table

    @staticmethod
    def _mark(sort: ProcSortOrder, ascending: ProcSortOrder, descending: ProcSortOrder) -> str:
        if sort is ascending:
            return ASC_MARK
        if sort is descending:
            return DSC_MARK
        return ""

    @staticmethod
    def _stat_cell(entry: ProcessEntry) -> Text:
        if entry.error is None:
            return format_mem_qty(entry.stat or 0)
        if isinstance(entry.error, ValueNotFound):
            return Text("<None>", style="red")
        return Text("<Error>", style="red")


class HelpScene(Scene):
    """Scrollable list of key bindings."""

    def __init__(self, title: str, intro: str, keys: list[tuple[str, str]], back: SceneId) -> None:
        self.title = title
        self.back = back
        self.scroll = 0
        self.lines = [Text(intro), Text("")]
        for key, desc in keys:
            self.lines.append(Text.assemble((f"  {key:<12}", "red"), " ", desc))
        self.lines += [Text(""), Text("Press q, h or Esc to exit help")]

    def key_event(self, key: str, config: SceneConfig) -> list[Action] | None:
        if key in ("q", "h", "escape"):
            return [ChangeScene(self.back)]
        if key == "up" and self.scroll > 0:
            self.scroll -= 1
            return []
        if key == "down" and self.scroll < len(self.lines) - 1:
            self.scroll += 1
            return []
        return None

    def render(self, config: SceneConfig, width: int, height: int) -> RenderableType:
        return Text("\n").join(self.lines[self.scroll:self.scroll + max(height, 0)])


TREE_HELP_KEYS = [
    ("Up Arrow", "Move selection up."),
    ("Down Arrow", "Move selection down."),
    ("Left Arrow", "Collapse tree node if on a parent node or move to parent otherwise."),
    ("Right Arrow", "Expand tree node if on a parent node."),
    ("Enter", "Toggle expansion of the selected node."),
    ("Page Up", "Move selection up a page."),
    ("Page Down", "Move selection down a page."),
    ("Home", "Move selection to the top."),
    ("End", "Move selection to the end."),
    ("n", "Sort by cgroup name. Pressing again toggles ascending / descending sort order."),
    ("s", "Sort by statistic. Pressing again toggles ascending / descending sort order."),
    ("c", "Collapse all expanded nodes."),
    ("z", "Select statistic to show."),
    ("[", "Move to previous statistic."),
    ("]", "Move to next statistic."),
    ("p", "Show processes for the selected cgroup."),
    ("t", "Show threads for the selected cgroup."),
    ("P", "Show processes for the selected cgroup and its descendants."),
    ("T", "Show threads for the selected cgroup and its descendants."),
    ("r", "Refresh the tree."),
    ("h", "Shows this help screen."),
    ("Esc / q", "Exit the program."),
]

PROCS_HELP_KEYS = [
    ("Up Arrow", "Move selection up."),
    ("Down Arrow", "Move selection down."),
    ("Page Up", "Move selection up a page."),
    ("Page Down", "Move selection down a page."),
    ("Home", "Move selection to the top."),
    ("End", "Move selection to the end."),
    ("i", "Sort by PID / TID. Pressing again toggles ascending / descending sort order."),
    ("n", "Sort by command. Pressing again toggles ascending / descending sort order."),
    ("s", "Sort by statistic (PID if the statistic has no per-process value). "
          "Pressing again toggles ascending / descending sort order."),
    ("[", "Move to previous statistic with a per-process value."),
    ("]", "Move to next statistic with a per-process value."),
    ("d", "Toggle including processes of descendant cgroups."),
    ("r", "Refresh the list."),
    ("h", "Shows this help screen."),
    ("Esc / q", "Return to the cgroup tree."),
]


def tree_help_scene() -> HelpScene:
    return HelpScene("Help", "Key bindings for cgroup display:", TREE_HELP_KEYS, SceneId.TREE)


def procs_help_scene() -> HelpScene:
    return HelpScene("Help", "Key bindings for process display:", PROCS_HELP_KEYS, SceneId.PROCS)


class _StatList(ListNavigation):
    def rows(self) -> list[int]:
        return list(range(len(STATS)))


class StatChooseScene(Scene):
    """Pick the displayed statistic from the catalog."""

    title = "Displayed Statistic"

    def __init__(self) -> None:
        self.nav = _StatList()

    def reload(self, config: SceneConfig) -> None:
        self.nav.selected = config.stat

    def key_event(self, key: str, config: SceneConfig) -> list[Action] | None:
        if key in ("q", "h", "escape"):
            return [ChangeScene(SceneId.TREE)]
        if key in ("enter", " "):
            if self.nav.selected is None:
                return None
            return [SetStat(self.nav.selected), ChangeScene(SceneId.TREE)]
        return _navigate(self.nav, key)

    def render(self, config: SceneConfig, width: int, height: int) -> RenderableType:
        self.nav.page_size = height
        lines = []
        for row in self.nav.window(height):
            stat = STATS[row]
            line = Text(f"{row + 1:>3}: {stat.short_desc:<16} {stat.desc}")
            if row == self.nav.selected:
                line.stylize("reverse")
            lines.append(line)
        return Text("\n").join(lines)


def _os_error_text(error: OSError) -> str:
    if error.strerror and error.filename:
        return f"{error.strerror}: {error.filename}"
    return error.strerror or str(error)


def build_scenes(cgroup_root: Path, proc_root: Path = PROC_ROOT) -> dict[SceneId, Scene]:
    """Create one instance of every scene."""
    return {
        SceneId.TREE: TreeScene(cgroup_root),
        SceneId.TREE_HELP: tree_help_scene(),
        SceneId.STAT_CHOOSE: StatChooseScene(),
        SceneId.PROCS: ProcsScene(cgroup_root, proc_root),
        SceneId.PROCS_HELP: procs_help_scene(),
    }
