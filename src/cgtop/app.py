"""cgtop - Main Textual application."""

import sys
from pathlib import Path

import click
import psutil
from textual import events
from textual.app import App, ComposeResult
from textual.timer import Timer
from textual.widgets import Static

from cgtop import logging as cgtop_logging
from cgtop.cgroup import find_cgroup2_mount
from cgtop.config import DEFAULT_REFRESH_INTERVAL, Config
from cgtop.controller import SceneConfig, SceneController
from cgtop.scenes import build_scenes
from cgtop.stats import STATS

log = cgtop_logging.get_logger(__name__)

# Keys forwarded to scenes by name rather than by character
_NAMED_KEYS = {"up", "down", "left", "right", "home", "end", "pageup", "pagedown", "escape", "enter"}


def scene_key(event: events.Key) -> str | None:
    """Translate a Textual key event into the key string scenes understand."""
    if event.key in _NAMED_KEYS:
        return event.key
    if event.is_printable and event.character:
        return event.character
    return None


class CgtopApp(App):
    """Main cgtop application."""

    TITLE = "cgtop"
    SUB_TITLE = "CGroup Memory Usage"

    CSS = """
    Screen {
        layout: vertical;
    }

    #body {
        height: 1fr;
        border: round $primary;
        border-title-align: left;
    }
    """

    def __init__(self, config: Config) -> None:
        """Initialize the CgtopApp."""
        super().__init__()
        self.config = config
        scenes = build_scenes(config.cgroup_root, config.proc_root)
        self.controller = SceneController(scenes, SceneConfig(stat=config.stat), config.refresh_interval)
        self._refresh_timer: Timer | None = None
        self._process = psutil.Process() if config.debug else None

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield Static(id="body")

    def on_mount(self) -> None:
        """Load the first scene once the layout is known."""
        self.call_after_refresh(self._cycle)

    def on_key(self, event: events.Key) -> None:
        """Hand key presses to the controller."""
        key = scene_key(event)
        if key is None:
            return
        event.stop()
        if self.controller.handle_key(key):
            self._cycle()

    def on_mouse_scroll_down(self, event: events.MouseScrollDown) -> None:
        if self.controller.handle_key("down"):
            self._cycle()

    def on_mouse_scroll_up(self, event: events.MouseScrollUp) -> None:
        if self.controller.handle_key("up"):
            self._cycle()

    def on_resize(self, event: events.Resize) -> None:
        self.call_after_refresh(self._draw)

    def _on_refresh_timeout(self) -> None:
        """No input arrived before the active scene was due a reload."""
        self._refresh_timer = None
        self.controller.handle_timeout()
        self._cycle()

    def _cycle(self) -> None:
        """Reload if the controller asks for it, redraw and re-arm the refresh timer."""
        if self.controller.exit_requested:
            self.exit()
            return

        if self.controller.cycle():
            self._arm_timer()
        self._draw()

    def _arm_timer(self) -> None:
        if self._refresh_timer is not None:
            self._refresh_timer.stop()
            self._refresh_timer = None

        delay = self.controller.time_to_refresh()
        if delay is not None:
            self._refresh_timer = self.set_timer(delay, self._on_refresh_timeout)

    def _draw(self) -> None:
        try:
            body = self.query_one("#body", Static)
        except Exception:
            return  # Not mounted yet

        size = body.content_size
        rss = self._process.memory_info().rss if self._process is not None else None
        body.border_title = self.controller.frame_title(self.config.debug, rss)
        body.update(self.controller.render(size.width, size.height))


def list_stats() -> None:
    click.echo("Available statistics:")
    for i, stat in enumerate(STATS):
        click.echo(f"  {i + 1:>2}: {stat.desc}")


@click.command()
@click.version_option(package_name="cgtop")
@click.option("-d", "--debug", is_flag=True, help="Enable debug mode")
@click.option("-l", "--list", "list_only", is_flag=True, help="List available statistics")
@click.option(
    "-s",
    "--stat",
    type=click.IntRange(1, len(STATS)),
    default=1,
    show_default=True,
    help="Initial statistic to display",
)
@click.option(
    "-i",
    "--interval",
    type=click.FloatRange(min=0.5),
    default=DEFAULT_REFRESH_INTERVAL,
    show_default=True,
    help="Seconds between refreshes",
)
@click.option(
    "--cgroup-root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Use this directory instead of the discovered cgroup2 mount",
)
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path), help="Write JSON logs here")
def main(
    debug: bool,
    list_only: bool,
    stat: int,
    interval: float,
    cgroup_root: Path | None,
    log_file: Path | None,
) -> None:
    """Show cgroup v2 memory usage and per-process memory."""
    if list_only:
        list_stats()
        return

    cgtop_logging.configure(log_file, debug)

    if cgroup_root is None:
        cgroup_root = find_cgroup2_mount()
        if cgroup_root is None:
            click.echo("Unable to find the mount point for the cgroup2 file system", err=True)
            sys.exit(1)

    config = Config(
        cgroup_root=cgroup_root,
        stat=stat - 1,
        debug=debug,
        refresh_interval=interval,
        log_file=log_file,
    )
    log.info("starting", cgroup_root=str(cgroup_root), stat=STATS[config.stat].definition)

    app = CgtopApp(config)
    app.run()
    if app.return_code:
        sys.exit(app.return_code)


if __name__ == "__main__":
    main()
