"""Phase/timer state machine for the focus/break cycle."""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Optional, Protocol

from .clock import CountdownClock, DeferredQueue, Dispatcher
from .preferences import Preferences, Preset
from .storage import ConfigStore


class Phase(Enum):
    """Timer phase types."""
    WORK = auto()
    BREAK = auto()
    LONG_BREAK = auto()


class Status(Enum):
    """Timer running status."""
    RUNNING = auto()
    PAUSED = auto()


# Preference field holding each phase's duration in minutes.
PHASE_FIELDS = {
    Phase.WORK: "work_minutes",
    Phase.BREAK: "break_minutes",
    Phase.LONG_BREAK: "long_break_minutes",
}

PHASE_LABELS = {
    Phase.WORK: "WORK",
    Phase.BREAK: "BREAK",
    Phase.LONG_BREAK: "LONG BREAK",
}


@dataclass(frozen=True)
class TimerSnapshot:
    """Read-only view of the timer for rendering."""
    phase: Phase
    remaining_seconds: int
    is_running: bool
    completed_work_sessions: int


@dataclass(frozen=True)
class PhaseCompleted:
    """Event handed to the notification sink when a phase ends."""
    finished: Phase
    next_phase: Phase
    completed_work_sessions: int
    skipped: bool = False


class NotificationSink(Protocol):
    def notify_phase_complete(self, event: PhaseCompleted) -> None:
        ...


class PhaseScheduler:
    """Owns the current phase, countdown and session count.

    All mutation happens through the public operations below or through
    ``tick()``, which the countdown clock calls while the timer runs. The
    scheduler holds at most one clock subscription at a time.
    """

    def __init__(
        self,
        store: ConfigStore,
        clock: CountdownClock,
        *,
        sink: Optional[NotificationSink] = None,
        dispatcher: Optional[Dispatcher] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize the scheduler.

        Args:
            store: Configuration store; preferences are loaded from it now
                and saved to it on every edit.
            clock: Tick source subscribed to while running.
            sink: Receives phase completion events, if given.
            dispatcher: Runs notifications and auto-start on a later turn.
                Defaults to a ``DeferredQueue`` the caller drains.
            logger: Logger for state transitions.
        """
        self.store = store
        self.clock = clock
        self.sink = sink
        self.dispatcher = dispatcher if dispatcher is not None else DeferredQueue()
        self._logger = logger or logging.getLogger(__name__)

        self.prefs: Preferences = store.load()
        self._phase = Phase.WORK
        self._status = Status.PAUSED
        self._remaining = self._duration_for(Phase.WORK)
        self._completed = 0
        self._subscription: Any = None
        # Bumped whenever the timer stops; stale deferred auto-starts check it.
        self._epoch = 0

    @property
    def phase(self) -> Phase:
        """Current phase."""
        return self._phase

    @property
    def status(self) -> Status:
        """Current status (RUNNING or PAUSED)."""
        return self._status

    @property
    def is_running(self) -> bool:
        return self._status == Status.RUNNING

    @property
    def remaining_seconds(self) -> int:
        """Seconds remaining in current phase."""
        return self._remaining

    @property
    def completed_work_sessions(self) -> int:
        """Work phases completed since start or the last full reset."""
        return self._completed

    @property
    def total_duration(self) -> int:
        """Total duration of current phase in seconds."""
        return self._duration_for(self._phase)

    @property
    def progress(self) -> float:
        """Progress through current phase (0.0 to 1.0)."""
        total = self.total_duration
        if total == 0:
            return 1.0
        return max(0.0, min(1.0, 1.0 - (self._remaining / total)))

    @property
    def phase_label(self) -> str:
        return PHASE_LABELS[self._phase]

    def snapshot(self) -> TimerSnapshot:
        return TimerSnapshot(
            phase=self._phase,
            remaining_seconds=self._remaining,
            is_running=self.is_running,
            completed_work_sessions=self._completed,
        )

    def _duration_for(self, phase: Phase) -> int:
        return getattr(self.prefs, PHASE_FIELDS[phase]) * 60

    def _cancel_subscription(self) -> None:
        if self._subscription is not None:
            self.clock.cancel(self._subscription)
            self._subscription = None

    def _stop(self) -> None:
        self._status = Status.PAUSED
        self._cancel_subscription()
        self._epoch += 1

    def start(self) -> None:
        """Start counting down the current phase."""
        if self._status == Status.RUNNING:
            return
        if self._remaining <= 0:
            self._remaining = self.total_duration
        self._status = Status.RUNNING
        self._cancel_subscription()
        self._subscription = self.clock.subscribe(self.tick)
        self._logger.debug("Started %s with %ss remaining", self._phase.name, self._remaining)

    def pause(self) -> None:
        """Pause, keeping the remaining time."""
        self._stop()

    def toggle(self) -> None:
        """Toggle between running and paused."""
        if self._status == Status.RUNNING:
            self.pause()
        else:
            self.start()

    def close(self) -> None:
        """Release the clock subscription; safe to call repeatedly."""
        self._stop()

    def tick(self) -> bool:
        """Count down one second if running.

        Returns:
            True if this tick completed the phase, False otherwise.
        """
        if self._status != Status.RUNNING:
            return False

        if self._remaining <= 1:
            self._remaining = 0
            self.complete_phase()
            return True

        self._remaining -= 1
        return False

    def complete_phase(self) -> None:
        """Finish the current phase and move to the next one.

        The notification and the optional auto-start are handed to the
        dispatcher, so they run after the transition has settled.
        """
        event = self._completion_event(skipped=False)
        self._stop()
        self._logger.info(
            "%s completed, next %s (sessions=%d)",
            event.finished.name,
            event.next_phase.name,
            event.completed_work_sessions,
        )
        self._dispatch_notification(event)
        self._advance_phase()
        if self.prefs.auto_start_next:
            epoch = self._epoch
            self.dispatcher.defer(lambda: self._auto_start(epoch))

    def skip(self) -> None:
        """Jump to the next phase as if the current one had expired."""
        event = self._completion_event(skipped=True)
        self._stop()
        self._logger.info("%s skipped, next %s", event.finished.name, event.next_phase.name)
        self._dispatch_notification(event)
        self._advance_phase()

    def reset_phase(self) -> None:
        """Stop and restore the current phase to its full duration."""
        self._stop()
        self._remaining = self.total_duration
        self._logger.info("Reset %s to %ss", self._phase.name, self._remaining)

    def reset_all(self) -> None:
        """Stop and return to the first work phase with no sessions done."""
        self._stop()
        self._phase = Phase.WORK
        self._completed = 0
        self._remaining = self.total_duration
        self._logger.info("Reset all")

    def apply_preset(self, preset: Preset) -> None:
        """Stop and adopt the preset's durations, keeping the cycle position."""
        self._stop()
        for name, value in preset.values().items():
            self.prefs.set(name, value)
        self.store.save(self.prefs)
        self._remaining = self.total_duration
        self._logger.info("Applied preset %r", preset.label)

    def set_preference(self, name: str, value: Any) -> Any:
        """Clamp, store and persist one preference.

        Editing the duration of the current phase while paused updates the
        countdown immediately; a running countdown is left alone.

        Returns:
            The value actually stored.

        Raises:
            KeyError: ``name`` is not a preference field.
        """
        stored = self.prefs.set(name, value)
        self.store.save(self.prefs)
        self._logger.debug("Preference %s=%r", name, stored)
        if not self.is_running and name == PHASE_FIELDS[self._phase]:
            self._remaining = self.total_duration
        return stored

    def _determine_next_phase(self) -> Phase:
        if self._phase != Phase.WORK:
            return Phase.WORK
        completed = self._completed + 1
        every = self.prefs.long_break_every
        if every > 0 and completed % every == 0:
            return Phase.LONG_BREAK
        return Phase.BREAK

    def _advance_phase(self) -> None:
        new_phase = self._determine_next_phase()
        if self._phase == Phase.WORK:
            self._completed += 1
        self._phase = new_phase
        self._remaining = self._duration_for(new_phase)

    def _completion_event(self, skipped: bool) -> PhaseCompleted:
        completed = self._completed + (1 if self._phase == Phase.WORK else 0)
        return PhaseCompleted(
            finished=self._phase,
            next_phase=self._determine_next_phase(),
            completed_work_sessions=completed,
            skipped=skipped,
        )

    def _dispatch_notification(self, event: PhaseCompleted) -> None:
        if not self.prefs.notifications_enabled or self.sink is None:
            return
        sink = self.sink
        self.dispatcher.defer(lambda: sink.notify_phase_complete(event))

    def _auto_start(self, epoch: int) -> None:
        if epoch != self._epoch:
            self._logger.debug("Dropped stale auto-start")
            return
        self.start()
