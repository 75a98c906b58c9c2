"""Tests for tree and table view state."""

import pytest

from cgtop.models import CGroupNode, ProcessEntry
from cgtop.views import TableViewState, TreeViewState


def tree(*children: CGroupNode, path: str = "") -> CGroupNode:
    return CGroupNode(path, children=children)


def leaf(path: str) -> CGroupNode:
    return CGroupNode(path)


@pytest.fixture
def sample() -> list[CGroupNode]:
    """Root with a/x, a/y and b."""
    return [
        tree(
            tree(leaf("a/x"), leaf("a/y"), path="a"),
            leaf("b"),
        )
    ]


@pytest.fixture
def view(sample) -> TreeViewState:
    state = TreeViewState()
    state.update(sample)
    return state


class TestTreeUpdate:
    """Tests for carrying state across reloads."""

    def test_single_root_is_expanded(self, view: TreeViewState):
        assert view.is_expanded("")
        assert view.rows() == ["", "a", "b"]
        assert view.selected is None

    def test_single_root_not_re_expanded(self, view: TreeViewState, sample):
        """Test collapsing the sole root survives the next reload."""
        view.move_to(0)
        view.left()
        view.update(sample)
        assert not view.is_expanded("")
        assert view.rows() == [""]

    def test_selection_kept_by_path(self, view: TreeViewState):
        view.move_to(2)
        assert view.selected == "b"

        # "a" vanishes, "b" moves up a row
        view.update([tree(leaf("b"), leaf("c"))])

        assert view.selected == "b"
        assert view.selected_row() == 1

    def test_selection_cleared_when_path_vanishes(self, view: TreeViewState):
        view.move_to(2)
        view.update([tree(leaf("a"))])
        assert view.selected is None

    def test_expansion_kept_by_path(self, view: TreeViewState, sample):
        view.move_to(1)
        view.right()
        view.update(sample)
        assert view.rows() == ["", "a", "a/x", "a/y", "b"]

    def test_expansion_dropped_for_vanished_path(self, view: TreeViewState, sample):
        view.move_to(1)
        view.right()
        view.update([tree(leaf("b"))])
        view.update(sample)
        assert not view.is_expanded("a")

    def test_multiple_roots_not_expanded(self):
        state = TreeViewState()
        state.update([tree(leaf("a/x"), path="a"), leaf("b")])
        assert state.expanded == set()
        assert state.rows() == ["a", "b"]

    def test_transition_to_single_root_expands(self):
        state = TreeViewState()
        state.update([leaf("a"), leaf("b")])
        state.update([tree(leaf("a"))])
        assert state.is_expanded("")


class TestTreeNavigation:
    """Tests for moving around the tree."""

    def test_no_selection_down_selects_first(self, view: TreeViewState):
        assert view.down()
        assert view.selected == ""

    def test_no_selection_up_selects_last(self, view: TreeViewState):
        assert view.up()
        assert view.selected == "b"

    def test_no_wrap(self, view: TreeViewState):
        view.home()
        assert not view.up()
        view.end()
        assert not view.down()
        assert view.selected == "b"

    def test_paging_clamps(self, view: TreeViewState):
        view.page_size = 10
        view.home()
        assert view.page_down()
        assert view.selected == "b"
        assert view.page_up()
        assert view.selected == ""

    def test_page_size_zero_moves_one(self, view: TreeViewState):
        view.home()
        assert view.page_down()
        assert view.selected == "a"

    def test_right_expands_and_left_collapses(self, view: TreeViewState):
        view.move_to(1)
        assert view.right()
        assert not view.right()
        assert view.rows() == ["", "a", "a/x", "a/y", "b"]
        assert view.left()
        assert view.rows() == ["", "a", "b"]
        assert view.selected == "a"

    def test_right_on_leaf_does_nothing(self, view: TreeViewState):
        view.move_to(2)
        assert not view.right()

    def test_left_moves_to_parent(self, view: TreeViewState):
        view.move_to(1)
        view.right()
        view.move_to(3)
        assert view.selected == "a/y"
        assert view.left()
        assert view.selected == "a"

    def test_left_on_collapsed_root_does_nothing(self, view: TreeViewState):
        view.move_to(0)
        view.left()
        assert not view.left()
        assert view.selected == ""

    def test_left_on_top_level_of_forest(self):
        state = TreeViewState()
        state.update([leaf("system.slice"), leaf("user.slice")])
        state.move_to(1)
        assert not state.left()

    def test_collapse_all_selects_top_level_ancestor(self, view: TreeViewState):
        view.move_to(1)
        view.right()
        view.move_to(2)
        assert view.selected == "a/x"

        assert view.collapse_all()

        assert view.expanded == set()
        assert view.selected == ""
        assert not view.collapse_all()

    def test_selected_node(self, view: TreeViewState):
        assert view.selected_node() is None
        view.move_to(2)
        assert view.selected_node().path == "b"

    def test_visible_depths(self, view: TreeViewState):
        view.move_to(1)
        view.right()
        assert [(n.path, d) for n, d in view.visible()] == [("", 0), ("a", 1), ("a/x", 2), ("a/y", 2), ("b", 1)]


class TestWindow:
    """Tests for scrolling."""

    @pytest.fixture
    def table(self) -> TableViewState:
        state = TableViewState()
        state.update([ProcessEntry(pid, f"cmd{pid}") for pid in range(1, 21)])
        return state

    def test_scrolls_to_keep_selection_visible(self, table: TableViewState):
        assert table.window(5) == range(0, 5)
        table.move_to(9)
        assert table.window(5) == range(5, 10)
        table.move_to(7)
        assert table.window(5) == range(5, 10)
        table.move_to(2)
        assert table.window(5) == range(2, 7)

    def test_offset_clamped_when_rows_shrink(self, table: TableViewState):
        table.end()
        assert table.window(5) == range(15, 20)
        table.update([ProcessEntry(pid, "x") for pid in range(1, 4)])
        assert table.window(5) == range(0, 3)

    def test_zero_height(self, table: TableViewState):
        assert table.window(0) == range(0, 0)


class TestTable:
    """Tests for the process table state."""

    def test_selection_kept_by_pid(self):
        state = TableViewState()
        state.update([ProcessEntry(1, "a"), ProcessEntry(2, "b")])
        state.move_to(1)
        state.update([ProcessEntry(0, "z"), ProcessEntry(2, "b")])
        assert state.selected == 2
        assert state.selected_entry().cmd == "b"

    def test_selection_cleared_when_pid_exits(self):
        state = TableViewState()
        state.update([ProcessEntry(1, "a"), ProcessEntry(2, "b")])
        state.move_to(1)
        state.update([ProcessEntry(1, "a")])
        assert state.selected is None
        assert state.selected_entry() is None

    def test_fail_and_recover(self):
        state = TableViewState()
        state.update([ProcessEntry(1, "a")])
        state.move_to(0)
        state.fail("No such file or directory")
        assert state.error == "No such file or directory"
        assert state.rows() == []
        state.update([ProcessEntry(1, "a")])
        assert state.error is None

    def test_empty_navigation(self):
        state = TableViewState()
        assert not state.down()
        assert not state.end()
