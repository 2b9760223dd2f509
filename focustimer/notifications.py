"""Phase completion notifications: terminal bell and desktop popups."""

import logging
import platform
import subprocess
import sys
from typing import Optional, Tuple

from .scheduler import Phase, PhaseCompleted

logger = logging.getLogger(__name__)


def _send_bell() -> None:
    sys.stdout.write("\a")
    sys.stdout.flush()


def _run_quietly(command: list) -> bool:
    try:
        subprocess.run(command, capture_output=True, timeout=5)
        return True
    except (subprocess.SubprocessError, FileNotFoundError, OSError) as error:
        logger.debug("Notification command %s failed: %s", command[0], error)
        return False


def _send_macos_notification(title: str, message: str) -> bool:
    """Send macOS notification via osascript."""
    script = f'display notification "{message}" with title "{title}"'
    return _run_quietly(["osascript", "-e", script])


def _send_linux_notification(title: str, message: str) -> bool:
    """Send Linux notification via notify-send."""
    return _run_quietly(["notify-send", title, message])


def describe(event: PhaseCompleted) -> Tuple[str, str]:
    """Title and message for a completed phase."""
    if event.finished == Phase.WORK:
        title = "Work session skipped" if event.skipped else "Work session complete!"
        if event.next_phase == Phase.LONG_BREAK:
            message = f"{event.completed_work_sessions} sessions done. Time for a long break."
        else:
            message = "Time for a short break."
    else:
        title = "Break skipped" if event.skipped else "Break over"
        message = "Ready to focus?"
    return title, message


class DesktopNotifier:
    """Notification sink ringing the bell and raising a native popup.

    Popups go through ``osascript`` on macOS and ``notify-send`` on Linux;
    other platforms get the bell only. Delivery failures are logged and
    dropped so a missing tool never reaches the scheduler.
    """

    def __init__(self, *, bell: bool = True, system: Optional[str] = None):
        self.bell = bell
        self.system = system or platform.system()

    def notify_phase_complete(self, event: PhaseCompleted) -> None:
        title, message = describe(event)
        logger.debug("Notifying %s: %s / %s", event.finished.name, title, message)
        if self.bell:
            _send_bell()
        self.popup(title, message)

    def popup(self, title: str, message: str) -> bool:
        """Raise a native popup; returns False when none could be shown."""
        if self.system == "Darwin":
            return _send_macos_notification(title, message)
        if self.system == "Linux":
            return _send_linux_notification(title, message)
        return False
