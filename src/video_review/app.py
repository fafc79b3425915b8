"""Textual front end for reviewing one page of videos at a time."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from textual.app import App, ComposeResult
from textual.containers import Vertical
from textual.css.query import NoMatches
from textual.timer import Timer
from textual.widgets import Header, Label, OptionList
from textual.widgets.option_list import Option

from video_review.action_messages import (
    build_no_match_message,
    build_page_failed_message,
    build_save_failed_message,
    build_start_failed_message,
)
from video_review.config import load_config, save_config
from video_review.help_ui import build_help_sections
from video_review.io_actions import launch_player
from video_review.models import ACCEPT, REJECT, ReviewConfig
from video_review.modals import ConfirmModal, GoToPageModal, HelpScreen, JumpToVideoModal, TagModal
from video_review.persistence import SaveResult
from video_review.services.interfaces import ReviewBackend
from video_review.session import ReviewSession, SessionStartError
from video_review.themes import TEXTUAL_THEMES, apply_theme_colors, next_theme_name
from video_review.ui_constants import APP_BINDINGS, APP_CSS
from video_review.widgets import (
    ContextFooter,
    StartupPanel,
    build_status_bar_text,
    render_empty_page,
    render_loading_page,
    render_video_option,
)

logger = logging.getLogger(__name__)

QUIT_AFTER_FAILED_SAVE_PROMPT = (
    "The final save failed.\nQuit anyway? Changes since the last successful save will be lost."
)


class VideoReviewApp(App):
    """Review videos page by page, labeling each accept or reject."""

    TITLE = "Video Review"

    CSS = APP_CSS

    BINDINGS = APP_BINDINGS

    def __init__(
        self,
        backend: ReviewBackend,
        config: ReviewConfig | None = None,
        *,
        restore_page: bool = True,
        load_config_fn: Callable[[], ReviewConfig] = load_config,
        save_config_fn: Callable[[ReviewConfig], bool] = save_config,
        launch_player_fn: Callable[[str, str], bool] = launch_player,
    ) -> None:
        super().__init__()
        # Register all Textual themes so $th-* CSS variables resolve before compose()
        for textual_theme in TEXTUAL_THEMES.values():
            self.register_theme(textual_theme)
        self._backend = backend
        self._config = config or ReviewConfig()
        self._restore_page = restore_page
        self._load_config_fn = load_config_fn
        self._save_config_fn = save_config_fn
        self._launch_player_fn = launch_player_fn
        self._background_tasks: set[asyncio.Task[Any]] = set()
        self._starting = False
        self._start_error: str | None = None
        self._quitting = False
        self._closed = False
        self._page_loading = False
        self._page_loads = 0
        self.session = ReviewSession(
            backend,
            self._config,
            schedule=self._schedule_save,
            on_save_status=self._on_save_status,
            on_save_result=self._on_save_result,
        )

    # ========================================================================
    # Lifecycle
    # ========================================================================

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="main-container"):
            yield Label("", id="page-header")
            yield StartupPanel(id="startup-panel")
            yield OptionList(id="video-list")
            yield Label("", id="status-bar")
        yield ContextFooter()

    def on_mount(self) -> None:
        """Apply the configured theme and start loading the session."""
        self._apply_theme()
        self.sub_title = self._backend.description
        self.query_one("#video-list", OptionList).display = False
        self._track_task(self._start_session())

    async def on_unmount(self) -> None:
        """Flush labels if the app is torn down without going through quit."""
        if self.session.loaded and not self._closed:
            self._closed = True
            await self.session.close()

        # Cancel tracked background tasks (loads only; writes are never cancelled)
        pending = [task for task in self._background_tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            _, still_pending = await asyncio.wait(pending, timeout=0.5)
            for task in still_pending:
                logger.debug("Background task did not cancel before shutdown: %r", task)
        self._background_tasks.clear()
        await self._backend.aclose()

    def _track_task(self, coro: Any) -> asyncio.Task[Any]:
        """Create an asyncio task and track it to prevent garbage collection."""
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        task.add_done_callback(self._on_task_done)
        return task

    @staticmethod
    def _on_task_done(task: asyncio.Task[Any]) -> None:
        """Log unhandled exceptions from background tasks."""
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Unhandled exception in background task: %s", exc, exc_info=exc)

    def _schedule_save(self, delay: float, callback: Callable[[], None]) -> Timer:
        return self.set_timer(delay, callback)

    async def _start_session(self) -> None:
        """Load catalog + review document; on failure show the retry panel."""
        if self._starting:
            return
        self._starting = True
        panel = self.query_one("#startup-panel", StartupPanel)
        video_list = self.query_one("#video-list", OptionList)
        panel.display = True
        video_list.display = False
        panel.show_loading(self._backend.description)
        self._update_footer()
        try:
            await self.session.load(restore_page=self._restore_page)
        except SessionStartError as e:
            self._start_error = str(e)
            panel.show_error(build_start_failed_message(self._backend.description, str(e)))
            self._update_footer()
            return
        finally:
            self._starting = False

        self._start_error = None
        self._remember_source()
        panel.display = False
        video_list.display = True
        video_list.focus()
        await self._load_page()

    def _remember_source(self) -> None:
        if self._config.last_source == self._backend.description:
            return
        self._config.last_source = self._backend.description
        self._persist_preference(last_source=self._config.last_source)

    def _persist_preference(self, **changes: Any) -> None:
        """Save only ``changes`` on top of the stored config.

        The running config also carries one-off command-line overrides,
        which must not leak into config.json.
        """
        stored = self._load_config_fn()
        for name, value in changes.items():
            setattr(stored, name, value)
        if not self._save_config_fn(stored):
            logger.warning("Could not persist preferences: %s", sorted(changes))

    # ========================================================================
    # Rendering
    # ========================================================================

    async def _load_page(self) -> None:
        self._page_loads += 1
        generation = self._page_loads
        self._page_loading = True
        self._render_page()
        try:
            ok = await self.session.open_page()
        finally:
            if generation == self._page_loads:
                self._page_loading = False
        if generation != self._page_loads:
            # A newer navigation owns the view now
            return
        if not ok and self.session.page_error:
            page_number = self.session.cursor.current_page + 1
            self.notify(
                build_page_failed_message(page_number, self.session.page_error),
                title="Page",
                severity="warning",
                timeout=6,
            )
        self._render_page()

    def _render_page(self) -> None:
        """Rebuild the page grid from the session's current page view."""
        if not self.session.loaded:
            return
        try:
            video_list = self.query_one("#video-list", OptionList)
        except NoMatches:
            return
        cursor = self.session.cursor
        view = self.session.page_view()
        video_list.clear_options()
        if view:
            video_list.add_options(
                Option(
                    render_video_option(
                        item,
                        label_style=self._config.label_style,
                        tags_enabled=self._config.tags_enabled,
                    ),
                    id=item.key,
                )
                for item in view
            )
            video_list.highlighted = min(cursor.focused_index, len(view) - 1)
        elif self._page_loading:
            video_list.add_option(Option(render_loading_page(cursor.current_page + 1), disabled=True))
        else:
            video_list.add_option(
                Option(
                    render_empty_page(cursor.current_page + 1, self.session.page_error),
                    disabled=True,
                )
            )
        if cursor.total_pages:
            header = f" Page {cursor.current_page + 1} of {cursor.total_pages}"
        else:
            header = " No videos"
        self.query_one("#page-header", Label).update(header)
        self._update_status_bar()

    def _update_status_bar(self) -> None:
        if not self.session.loaded:
            return
        try:
            status = self.query_one("#status-bar", Label)
        except NoMatches:
            return
        cursor = self.session.cursor
        status.update(
            build_status_bar_text(
                page=cursor.current_page,
                total_pages=cursor.total_pages,
                stats=self.session.stats(),
                save_status=self.session.persistence.status,
                label_style=self._config.label_style,
                tags_enabled=self._config.tags_enabled,
            )
        )
        self._update_footer()

    def _get_footer_bindings(self) -> list[tuple[str, str]]:
        """Return context-sensitive binding hints for the footer."""
        if self._start_error is not None:
            return [("r", "retry"), ("q", "quit")]
        if not self.session.loaded:
            return [("", "Loading..."), ("q", "quit")]
        hints = [("1-9", "focus"), ("t", "accept"), ("f", "reject")]
        if self._config.tags_enabled:
            hints.append(("g", "tag"))
        hints.extend([("]/[", "page"), ("/", "find"), ("enter", "play"), ("?", "help")])
        return hints

    def _update_footer(self) -> None:
        try:
            footer = self.query_one(ContextFooter)
        except NoMatches:
            return
        footer.render_bindings(self._get_footer_bindings())

    def _apply_theme(self) -> None:
        apply_theme_colors(self._config.theme_name)
        if self._config.theme_name in TEXTUAL_THEMES:
            self.theme = self._config.theme_name

    # ========================================================================
    # Save feedback
    # ========================================================================

    def _on_save_status(self, status: str) -> None:
        logger.debug("Save status: %s", status)
        self._update_status_bar()

    def _on_save_result(self, result: SaveResult) -> None:
        if result.ok:
            return
        self.notify(
            build_save_failed_message(result.error),
            title="Save",
            severity="error",
            timeout=8,
        )

    # ========================================================================
    # OptionList events
    # ========================================================================

    def on_option_list_option_highlighted(self, event: OptionList.OptionHighlighted) -> None:
        if event.option_list.id != "video-list" or not self.session.loaded:
            return
        if event.option.disabled:
            return
        self.session.focus(event.option_index)

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        if event.option_list.id != "video-list" or not self.session.loaded:
            return
        self.session.focus(event.option_index)
        self.action_play()

    # ========================================================================
    # Actions
    # ========================================================================

    def _can_act(self) -> bool:
        # App bindings stay live under modals; only act from the main screen
        if len(self.screen_stack) > 1:
            return False
        return self.session.loaded and self._start_error is None and not self._quitting

    def _sync_highlight(self) -> None:
        video_list = self.query_one("#video-list", OptionList)
        if video_list.option_count and self.session.page_view():
            video_list.highlighted = self.session.cursor.focused_index

    def action_focus_slot(self, slot: int) -> None:
        """Focus slot ``slot`` (1-based); slots past the page end are ignored."""
        if not self._can_act():
            return
        index = slot - 1
        if index >= len(self.session.page_view()):
            return
        if self.session.focus(index):
            self._sync_highlight()

    def action_focus_down(self) -> None:
        if self._can_act() and self.session.move_focus(1):
            self._sync_highlight()

    def action_focus_up(self) -> None:
        if self._can_act() and self.session.move_focus(-1):
            self._sync_highlight()

    def _label_focused(self, disposition: str) -> None:
        if not self._can_act():
            return
        if self.session.label_focused(disposition) is not None:
            self._render_page()

    def action_label_accept(self) -> None:
        self._label_focused(ACCEPT)

    def action_label_reject(self) -> None:
        self._label_focused(REJECT)

    def action_toggle_label(self) -> None:
        if self._can_act() and self.session.toggle_focused() is not None:
            self._render_page()

    def action_edit_tag(self) -> None:
        if not self._can_act():
            return
        if not self._config.tags_enabled:
            self.notify("Tags are disabled for this session.", title="Tag", timeout=3)
            return
        item = self.session.focused_item()
        if item is None:
            return
        key = item.key
        known_tags = [self.session.labels.get(k).tag for k in self.session.labels]

        def on_tag(tag: str | None) -> None:
            if tag is None:
                return
            self.session.set_tag(key, tag)
            self._render_page()

        self.push_screen(TagModal(key, item.label.tag, known_tags), on_tag)

    def _after_navigation(self, changed: bool) -> None:
        if changed:
            self._track_task(self._load_page())

    def action_next_page(self) -> None:
        if self._can_act():
            self._after_navigation(self.session.navigate(1))

    def action_prev_page(self) -> None:
        if self._can_act():
            self._after_navigation(self.session.navigate(-1))

    def action_go_to_page(self) -> None:
        if not self._can_act() or self.session.cursor.total_pages == 0:
            return
        cursor = self.session.cursor

        def on_page(page: int | None) -> None:
            if page is None:
                return
            if self.session.go_to_page(page) or not self.session.page_view():
                self._track_task(self._load_page())

        self.push_screen(GoToPageModal(cursor.current_page, cursor.total_pages), on_page)

    def action_jump_to_video(self) -> None:
        if not self._can_act():
            return

        def on_query(query: str | None) -> None:
            if not query:
                return
            before = self.session.cursor.current_page
            hit = self.session.jump_to(query)
            if hit is None:
                self.notify(
                    build_no_match_message(query, self.session.suggest(query)),
                    title="Find",
                    severity="warning",
                    timeout=6,
                )
                return
            if self.session.cursor.current_page != before:
                self._track_task(self._load_page())
            else:
                self._sync_highlight()

        self.push_screen(JumpToVideoModal(self.session.cursor.catalog), on_query)

    def action_play(self) -> None:
        if not self._can_act():
            return
        item = self.session.focused_item()
        if item is None:
            return
        if not self._launch_player_fn(self._config.player_command, item.url):
            self.notify(
                "Could not launch the video player.\n"
                "Next step: check player_command in config.json or pass --player.",
                title="Play",
                severity="error",
                timeout=8,
            )

    def action_save_now(self) -> None:
        if self.session.loaded and not self._closed:
            self.session.save_now()

    def action_retry(self) -> None:
        if self._start_error is None or self._starting:
            return
        self._track_task(self._start_session())

    def action_cycle_theme(self) -> None:
        self._config.theme_name = next_theme_name(self._config.theme_name)
        self._apply_theme()
        self._persist_preference(theme_name=self._config.theme_name)
        self._render_page()
        self.notify(f"Theme: {self._config.theme_name}", title="Theme", timeout=2)

    def action_show_help(self) -> None:
        self.push_screen(
            HelpScreen(build_help_sections(self.BINDINGS, tags_enabled=self._config.tags_enabled))
        )

    async def action_quit(self) -> None:
        """End-of-session save, then exit; confirm first if that save fails."""
        if self._quitting:
            return
        if not self.session.loaded or self._closed:
            self.exit()
            return
        self._quitting = True
        result = await self.session.close()
        if result is None or result.ok:
            self._closed = True
            self.exit()
            return

        def on_confirm(confirmed: bool | None) -> None:
            self._quitting = False
            if confirmed:
                self._closed = True
                self.exit()
                return
            self.session.persistence.resume()

        self.push_screen(ConfirmModal(QUIT_AFTER_FAILED_SAVE_PROMPT), on_confirm)


__all__ = ["VideoReviewApp"]
