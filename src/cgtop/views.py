"""Selection, expansion and scrolling state for the tree and table views.

The node lists are rebuilt from scratch on every reload, so the views only
ever remember logical identities (cgroup paths, pids), never list indices.
"""

from collections.abc import Hashable, Iterator

from cgtop.models import CGroupNode, ProcessEntry, parent_path


class ListNavigation:
    """Row navigation over a flat list of logical keys.

    Subclasses provide ``rows()``: the keys of the currently visible rows in
    display order. All movement clamps at the ends.
    """

    def __init__(self) -> None:
        self.selected: Hashable | None = None
        self.page_size: int = 0
        self.offset: int = 0

    def rows(self) -> list:
        raise NotImplementedError

    def selected_row(self) -> int | None:
        """Index of the selected key among the visible rows."""
        if self.selected is None:
            return None
        try:
            return self.rows().index(self.selected)
        except ValueError:
            return None

    def move_by(self, amount: int) -> bool:
        """Move the selection by ``amount`` rows. Returns True if it changed."""
        rows = self.rows()
        if amount == 0 or not rows:
            return False

        current = self.selected_row()
        if current is None:
            return self.move_to(0 if amount > 0 else -1)

        new_row = min(max(current + amount, 0), len(rows) - 1)
        if new_row == current:
            return False
        self.selected = rows[new_row]
        return True

    def move_to(self, row: int) -> bool:
        """Select a row by index, negative indices counting from the end."""
        rows = self.rows()
        if not rows:
            return False
        if row < 0:
            row = max(len(rows) + row, 0)
        key = rows[min(row, len(rows) - 1)]
        if key == self.selected:
            return False
        self.selected = key
        return True

    def up(self) -> bool:
        return self.move_by(-1)

    def down(self) -> bool:
        return self.move_by(1)

    def page_up(self) -> bool:
        return self.move_by(-max(self.page_size, 1))

    def page_down(self) -> bool:
        return self.move_by(max(self.page_size, 1))

    def home(self) -> bool:
        return self.move_to(0)

    def end(self) -> bool:
        return self.move_to(-1)

    def window(self, height: int) -> range:
        """Row indices to draw in ``height`` lines, scrolled to show the selection."""
        total = len(self.rows())
        height = max(height, 0)

        selected = self.selected_row()
        if selected is not None:
            if selected < self.offset:
                self.offset = selected
            elif selected >= self.offset + height:
                self.offset = selected - height + 1

        self.offset = max(min(self.offset, total - height), 0)
        return range(self.offset, min(self.offset + height, total))


class TreeViewState(ListNavigation):
    """State of the cgroup tree view."""

    def __init__(self) -> None:
        super().__init__()
        self.nodes: list[CGroupNode] = []
        self.expanded: set[str] = set()
        self._by_path: dict[str, CGroupNode] = {}
        self._single_root = False

    def update(self, nodes: list[CGroupNode]) -> None:
        """Replace the tree, carrying selection and expansion over by path."""
        old_selected = self.selected
        old_expanded = self.expanded

        self.nodes = nodes
        self._by_path = {}
        self.selected = None
        self.expanded = set()

        for node, _ in self._walk(nodes, 0, all_nodes=True):
            self._by_path[node.path] = node
            if node.path == old_selected:
                self.selected = node.path
            if node.path in old_expanded:
                self.expanded.add(node.path)

        single_root = len(nodes) == 1
        if single_root and not self._single_root:
            self.expanded.add(nodes[0].path)
        self._single_root = single_root

    def _walk(self, nodes, depth: int, all_nodes: bool = False) -> Iterator[tuple[CGroupNode, int]]:
        for node in nodes:
            yield node, depth
            if all_nodes or node.path in self.expanded:
                yield from self._walk(node.children, depth + 1, all_nodes)

    def visible(self) -> list[tuple[CGroupNode, int]]:
        """Visible nodes with their depth, in display order."""
        return list(self._walk(self.nodes, 0))

    def rows(self) -> list[str]:
        return [node.path for node, _ in self._walk(self.nodes, 0)]

    def node(self, path: str | None) -> CGroupNode | None:
        if path is None:
            return None
        return self._by_path.get(path)

    def selected_node(self) -> CGroupNode | None:
        return self.node(self.selected)

    def is_expanded(self, path: str) -> bool:
        return path in self.expanded

    def left(self) -> bool:
        """Collapse the selected node, or move to its parent if it is collapsed."""
        node = self.selected_node()
        if node is None:
            return False
        if node.path in self.expanded:
            self.expanded.discard(node.path)
            return True
        parent = self._parent_of(node.path)
        if parent is None:
            return False
        self.selected = parent
        return True

    def right(self) -> bool:
        """Expand the selected node if it has children."""
        node = self.selected_node()
        if node is None or not node.children or node.path in self.expanded:
            return False
        self.expanded.add(node.path)
        return True

    def collapse_all(self) -> bool:
        if not self.expanded:
            return False
        self.expanded.clear()
        top_level = {node.path for node in self.nodes}
        path = self.selected
        while path is not None and path not in top_level:
            path = self._parent_of(path)
        self.selected = path
        return True

    def _parent_of(self, path: str) -> str | None:
        # Walk up until we hit a displayed node; the top level may not be the root
        while path:
            path = parent_path(path)
            if path in self._by_path:
                return path
        return None


class TableViewState(ListNavigation):
    """State of the process table view."""

    def __init__(self) -> None:
        super().__init__()
        self.entries: list[ProcessEntry] = []
        self.error: str | None = None

    def update(self, entries: list[ProcessEntry]) -> None:
        """Replace the rows, keeping the selected pid if it is still listed."""
        self.entries = entries
        self.error = None
        if self.selected not in {entry.pid for entry in entries}:
            self.selected = None

    def fail(self, message: str) -> None:
        """Record a listing-wide failure."""
        self.entries = []
        self.error = message
        self.selected = None

    def reset(self) -> None:
        self.selected = None
        self.offset = 0

    def rows(self) -> list[int]:
        return [entry.pid for entry in self.entries]

    def selected_entry(self) -> ProcessEntry | None:
        for entry in self.entries:
            if entry.pid == self.selected:
                return entry
        return None
