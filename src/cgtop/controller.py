"""Scene state machine and the action protocol.

Scenes never touch the shared SceneConfig. They answer key presses with a list
of actions and the controller, the only writer, applies them in order.
"""

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum

from rich.console import RenderableType

from cgtop.logging import get_logger
from cgtop.models import SELF_SEGMENT, CGroupSortOrder, ProcSortOrder, parent_path

log = get_logger(__name__)


class SceneId(Enum):
    """The full-screen modes of the application."""

    TREE = "tree"
    TREE_HELP = "tree_help"
    STAT_CHOOSE = "stat_choose"
    PROCS = "procs"
    PROCS_HELP = "procs_help"


@dataclass(slots=True, frozen=True)
class Reload:
    pass


@dataclass(slots=True, frozen=True)
class Exit:
    pass


@dataclass(slots=True, frozen=True)
class ChangeScene:
    scene: SceneId


@dataclass(slots=True, frozen=True)
class SetStat:
    stat: int


@dataclass(slots=True, frozen=True)
class SetCGroupTarget:
    path: str


@dataclass(slots=True, frozen=True)
class SetProcessMode:
    threads: bool
    include_children: bool


@dataclass(slots=True, frozen=True)
class SetCGroupSort:
    sort: CGroupSortOrder


@dataclass(slots=True, frozen=True)
class SetProcessSort:
    sort: ProcSortOrder


Action = (
    Reload | Exit | ChangeScene | SetStat | SetCGroupTarget | SetProcessMode | SetCGroupSort | SetProcessSort
)


@dataclass(slots=True)
class SceneConfig:
    """Shared configuration, mutated only by SceneController.apply()."""

    scene: SceneId = SceneId.TREE
    stat: int = 0
    cgroup_sort: CGroupSortOrder = CGroupSortOrder.NAME_ASC
    proc_sort: ProcSortOrder = ProcSortOrder.PID_ASC
    cgroup: str = ""
    threads: bool = False
    include_children: bool = False


class Scene:
    """Base class for scenes.

    ``key_event`` returns None when the key means nothing to the scene, or a
    list of actions (possibly empty, meaning "redraw only").
    """

    title: str = ""
    refreshes: bool = False

    def reload(self, config: SceneConfig) -> None:
        """Rebuild the scene's data for the given configuration."""

    def key_event(self, key: str, config: SceneConfig) -> list[Action] | None:
        return None

    def render(self, config: SceneConfig, width: int, height: int) -> RenderableType:
        raise NotImplementedError

    def frame_title(self, config: SceneConfig) -> str:
        return self.title


class SceneController:
    """Owns the scene configuration, the active scene and the refresh deadline."""

    def __init__(
        self,
        scenes: dict[SceneId, Scene],
        config: SceneConfig,
        refresh_interval: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the SceneController.

        Args:
            scenes: One scene per SceneId.
            config: Initial shared configuration.
            refresh_interval: Seconds between reloads of refreshing scenes.
            clock: Monotonic time source.
        """
        self.scenes = scenes
        self.config = config
        self.refresh_interval = refresh_interval
        self._clock = clock
        self.needs_reload = True
        self.exit_requested = False
        self.next_refresh: float | None = None
        self.loads = 0
        self.draws = 0

    @property
    def active(self) -> Scene:
        return self.scenes[self.config.scene]

    def time_to_refresh(self) -> float | None:
        """Seconds until the active scene is due a reload, None if it never is."""
        if self.next_refresh is None:
            return None
        return max(self.next_refresh - self._clock(), 0.0)

    def handle_keys(self, keys: Iterable[str]) -> bool:
        """Feed a batch of key presses to the active scene(s).

        Returns True if anything needs redrawing.
        """
        redraw = False
        for key in keys:
            if self.exit_requested:
                break
            actions = self.active.key_event(key, self.config)
            if actions is None:
                continue
            self.apply(actions)
            redraw = True
        return redraw

    def handle_key(self, key: str) -> bool:
        return self.handle_keys([key])

    def handle_timeout(self) -> None:
        """The refresh deadline passed without input."""
        self.apply([Reload()])

    def apply(self, actions: Iterable[Action]) -> None:
        """Apply actions in order to the shared configuration."""
        config = self.config
        for action in actions:
            if isinstance(action, Exit):
                self.exit_requested = True
                continue

            if isinstance(action, ChangeScene):
                log.debug("scene_changed", old=config.scene.value, new=action.scene.value)
                config.scene = action.scene
            elif isinstance(action, SetStat):
                config.stat = action.stat
            elif isinstance(action, SetCGroupTarget):
                path = action.path
                if path.rpartition("/")[2] == SELF_SEGMENT:
                    path = parent_path(path)
                config.cgroup = path
            elif isinstance(action, SetProcessMode):
                config.threads = action.threads
                config.include_children = action.include_children
            elif isinstance(action, SetCGroupSort):
                config.cgroup_sort = action.sort
            elif isinstance(action, SetProcessSort):
                config.proc_sort = action.sort
            elif not isinstance(action, Reload):
                raise TypeError(f"Unknown action {action!r}")

            self.needs_reload = True

    def cycle(self) -> bool:
        """Reload the active scene if required. Returns True if it reloaded."""
        if not self.needs_reload:
            return False

        scene = self.active
        scene.reload(self.config)
        self.loads += 1
        self.needs_reload = False

        if scene.refreshes:
            self.next_refresh = self._clock() + self.refresh_interval
        else:
            self.next_refresh = None
        return True

    def render(self, width: int, height: int) -> RenderableType:
        self.draws += 1
        return self.active.render(self.config, width, height)

    def frame_title(self, debug: bool = False, rss: int | None = None) -> str:
        title = self.active.frame_title(self.config)
        if debug:
            title += f" ({self.loads} loads, {self.draws} draws"
            if rss is not None:
                title += f", {rss // 1024} KiB RSS"
            title += ")"
        return title
