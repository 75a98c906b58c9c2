"""Shared test fixtures for cgtop: synthetic cgroup2 and procfs trees."""

from pathlib import Path

import pytest


def make_cgroup(
    root: Path,
    rel_path: str = "",
    files: dict[str, str] | None = None,
    controllers: str | None = "memory pids",
) -> Path:
    """Create a cgroup directory holding the given pseudo-files."""
    path = root / rel_path if rel_path else root
    path.mkdir(parents=True, exist_ok=True)
    if controllers is not None:
        (path / "cgroup.controllers").write_text(controllers + "\n")
    for name, content in (files or {}).items():
        (path / name).write_text(content)
    return path


def make_proc(
    proc_root: Path,
    pid: int,
    cmdline: bytes | None = None,
    comm: str | None = None,
    status: str | None = None,
) -> Path:
    """Create a /proc/<pid> directory with the given files."""
    path = proc_root / str(pid)
    path.mkdir(parents=True, exist_ok=True)
    if cmdline is not None:
        (path / "cmdline").write_bytes(cmdline)
    if comm is not None:
        (path / "comm").write_text(comm)
    if status is not None:
        (path / "status").write_text(status)
    return path


def status_file(rss_kb: int, swap_kb: int = 0) -> str:
    """Minimal /proc/<pid>/status content."""
    return (
        "Name:\ttest\n"
        "State:\tS (sleeping)\n"
        f"VmRSS:\t    {rss_kb} kB\n"
        f"RssAnon:\t    {rss_kb // 2} kB\n"
        f"VmSwap:\t    {swap_kb} kB\n"
    )


@pytest.fixture
def cgroup_root(tmp_path: Path) -> Path:
    """An empty directory standing in for the cgroup2 mount."""
    root = tmp_path / "cgroup"
    root.mkdir()
    return root


@pytest.fixture
def proc_root(tmp_path: Path) -> Path:
    """An empty directory standing in for /proc."""
    root = tmp_path / "proc"
    root.mkdir()
    return root


@pytest.fixture
def memory_tree(cgroup_root: Path) -> Path:
    """root=300 with child1=100 and child2=150."""
    make_cgroup(cgroup_root, files={"memory.current": "300\n"})
    make_cgroup(cgroup_root, "child1", files={"memory.current": "100\n"})
    make_cgroup(cgroup_root, "child2", files={"memory.current": "150\n"})
    return cgroup_root
