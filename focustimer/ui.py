"""Textual-based UI for the focus timer."""

from typing import Any, Callable, Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Vertical
from textual.timer import Timer
from textual.widgets import Digits, Footer, Header, ProgressBar, Static

from .notifications import DesktopNotifier, describe
from .preferences import PRESETS
from .scheduler import PHASE_FIELDS, Phase, PhaseCompleted, PhaseScheduler
from .storage import ConfigStore


PHASE_CLASSES = {
    Phase.WORK: "work",
    Phase.BREAK: "break",
    Phase.LONG_BREAK: "long-break",
}


def format_mmss(total_seconds: int) -> str:
    """Format seconds as MM:SS, never negative."""
    seconds = max(0, int(total_seconds))
    mins, secs = divmod(seconds, 60)
    return f"{mins:02d}:{secs:02d}"


def window_title(scheduler: PhaseScheduler) -> str:
    return f"{scheduler.phase_label} {format_mmss(scheduler.remaining_seconds)}"


def settings_summary(scheduler: PhaseScheduler) -> str:
    prefs = scheduler.prefs
    every = f"every {prefs.long_break_every}" if prefs.long_break_every else "off"
    return (
        f"{prefs.work_minutes}/{prefs.break_minutes}/{prefs.long_break_minutes} min"
        f" · long break {every}"
        f" · auto {'on' if prefs.auto_start_next else 'off'}"
        f" · sound {'on' if prefs.notifications_enabled else 'off'}"
    )


class IntervalClock:
    """Countdown clock backed by ``App.set_interval``."""

    def __init__(self, app: App, interval: float = 1.0):
        self.app = app
        self.interval = interval

    def subscribe(self, callback: Callable[[], Any]) -> Timer:
        return self.app.set_interval(self.interval, callback)

    def cancel(self, handle: Timer) -> None:
        handle.stop()


class AppDispatcher:
    """Defers actions with ``App.call_later`` (after pending messages)."""

    def __init__(self, app: App):
        self.app = app

    def defer(self, action: Callable[[], Any]) -> None:
        self.app.call_later(action)


class AppNotifier:
    """Shows a toast and rings the bell, then forwards to the desktop."""

    def __init__(self, app: App, desktop: Optional[DesktopNotifier] = None):
        self.app = app
        self.desktop = desktop

    def notify_phase_complete(self, event: PhaseCompleted) -> None:
        title, message = describe(event)
        self.app.bell()
        self.app.notify(message, title=title)
        if self.desktop is not None:
            self.desktop.notify_phase_complete(event)


class PhaseLabel(Static):
    """Phase label with completed session count."""

    def __init__(self, scheduler: PhaseScheduler, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.scheduler = scheduler

    def on_mount(self) -> None:
        self.update_display()

    def update_display(self) -> None:
        sessions = self.scheduler.completed_work_sessions
        self.update(f"─── {self.scheduler.phase_label} · {sessions} done ───")


class StatusBadge(Static):
    """Status indicator badge."""

    def __init__(self, scheduler: PhaseScheduler, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.scheduler = scheduler

    def on_mount(self) -> None:
        self.update_display()

    def update_display(self) -> None:
        if self.scheduler.is_running:
            self.update("▶ RUNNING")
            self.remove_class("paused")
            self.add_class("running")
        else:
            self.update("⏸ PAUSED")
            self.remove_class("running")
            self.add_class("paused")


class FocusTimerApp(App):
    """Focus/break timer application."""

    CSS = """
    Screen {
        align: center middle;
    }
    #timer-container {
        width: auto;
        height: auto;
        padding: 1 4;
        border: round $primary;
    }
    #timer-container.work { border: round $error; }
    #timer-container.break { border: round $success; }
    #timer-container.long-break { border: round $accent; }
    PhaseLabel, StatusBadge, #settings {
        width: 100%;
        text-align: center;
    }
    Digits {
        width: auto;
        margin: 1 0;
    }
    StatusBadge.running { color: $success; }
    StatusBadge.paused { color: $warning; }
    #settings { color: $text-muted; }
    """

    BINDINGS = [
        Binding("space", "toggle", "Start/Pause"),
        Binding("r", "reset_phase", "Reset"),
        Binding("x", "reset_all", "Reset all"),
        Binding("n", "skip", "Skip"),
        Binding("plus", "adjust(1)", "+1 min"),
        Binding("minus", "adjust(-1)", "-1 min"),
        Binding("a", "toggle_pref('auto_start_next')", "Auto"),
        Binding("s", "toggle_pref('notifications_enabled')", "Sound"),
        Binding("1", "preset(0)", PRESETS[0].label),
        Binding("2", "preset(1)", PRESETS[1].label),
        Binding("3", "preset(2)", PRESETS[2].label),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        store: ConfigStore,
        desktop: Optional[DesktopNotifier] = None,
        start_immediately: bool = False,
    ) -> None:
        """Initialize the app.

        Args:
            store: Configuration store backing the preferences.
            desktop: Native desktop notifier, or None for in-app toasts only.
            start_immediately: Start the first work phase on launch.
        """
        super().__init__()
        self.scheduler = PhaseScheduler(
            store,
            IntervalClock(self),
            sink=AppNotifier(self, desktop),
            dispatcher=AppDispatcher(self),
        )
        self.start_immediately = start_immediately

    def compose(self) -> ComposeResult:
        yield Header()
        with Container(id="main"):
            with Vertical(id="timer-container"):
                yield PhaseLabel(self.scheduler, id="phase-label")
                yield Digits(format_mmss(self.scheduler.remaining_seconds), id="clock")
                yield StatusBadge(self.scheduler, id="status-badge")
                yield ProgressBar(id="progress", show_eta=False, show_percentage=False)
                yield Static(settings_summary(self.scheduler), id="settings")
        yield Footer()

    def on_mount(self) -> None:
        if self.start_immediately:
            self.scheduler.start()
        # Ticks and deferred actions mutate the scheduler outside our actions.
        self.set_interval(0.25, self._refresh_display)
        self._refresh_display()

    def on_unmount(self) -> None:
        self.scheduler.close()

    def _refresh_display(self) -> None:
        """Update all display elements."""
        self.query_one("#clock", Digits).update(format_mmss(self.scheduler.remaining_seconds))
        self.query_one("#phase-label", PhaseLabel).update_display()
        self.query_one("#status-badge", StatusBadge).update_display()
        self.query_one("#settings", Static).update(settings_summary(self.scheduler))
        self.query_one("#progress", ProgressBar).update(
            total=100, progress=self.scheduler.progress * 100
        )
        container = self.query_one("#timer-container")
        container.remove_class(*PHASE_CLASSES.values())
        container.add_class(PHASE_CLASSES[self.scheduler.phase])
        self.title = window_title(self.scheduler)

    def action_toggle(self) -> None:
        self.scheduler.toggle()
        self._refresh_display()

    def action_reset_phase(self) -> None:
        self.scheduler.reset_phase()
        self._refresh_display()

    def action_reset_all(self) -> None:
        self.scheduler.reset_all()
        self._refresh_display()

    def action_skip(self) -> None:
        self.scheduler.skip()
        self._refresh_display()

    def action_adjust(self, delta: int) -> None:
        """Change the current phase's duration by ``delta`` minutes."""
        field = PHASE_FIELDS[self.scheduler.phase]
        current = getattr(self.scheduler.prefs, field)
        self.scheduler.set_preference(field, current + delta)
        self._refresh_display()

    def action_toggle_pref(self, name: str) -> None:
        self.scheduler.set_preference(name, not getattr(self.scheduler.prefs, name))
        self._refresh_display()

    def action_preset(self, index: int) -> None:
        preset = PRESETS[index]
        self.scheduler.apply_preset(preset)
        self.notify(f"Preset {preset.label}", timeout=2)
        self._refresh_display()
