"""Entry point for python -m focustimer."""

import argparse
import logging
import sys
from typing import List, Optional

from textual.logging import TextualHandler

from .notifications import DesktopNotifier
from .preferences import PRESETS, find_preset
from .scheduler import PhaseScheduler
from .storage import ConfigStore, JsonFileBackend, PREFS_FILE_ENV, resolve_prefs_path
from .ui import FocusTimerApp

logger = logging.getLogger("focustimer")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="focustimer",
        description="Terminal focus/break timer with persistent preferences",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Controls:
  Space    Start/Pause
  r        Reset current phase
  x        Reset everything (back to the first work phase)
  n        Skip to the next phase
  + / -    Lengthen / shorten the current phase by a minute
  a        Toggle auto-start of the next phase
  s        Toggle notifications
  1 2 3    Apply a preset
  q        Quit

Preferences are stored in --prefs-file, ${PREFS_FILE_ENV}, or
~/.config/focustimer/prefs.json. Options below are saved there too.

Examples:
  focustimer                         # Last used settings
  focustimer --preset "Deep 50/10"   # 50/10 with a long break every 2
  focustimer --work 45 --auto        # 45-minute work, phases chain
""",
    )

    parser.add_argument("--prefs-file", metavar="PATH", help="Preferences JSON file")
    parser.add_argument("--preset", metavar="LABEL", help="Apply a preset before starting")
    parser.add_argument(
        "--list-presets",
        action="store_true",
        help="Print the preset catalog and exit",
    )
    parser.add_argument("--work", type=int, metavar="MINS", help="Work duration (1-180)")
    parser.add_argument(
        "--break",
        dest="break_minutes",
        type=int,
        metavar="MINS",
        help="Break duration (1-120)",
    )
    parser.add_argument("--long-break", type=int, metavar="MINS", help="Long break duration (1-180)")
    parser.add_argument(
        "--long-every",
        type=int,
        metavar="N",
        help="Work sessions between long breaks (0 disables, max 20)",
    )

    auto_group = parser.add_mutually_exclusive_group()
    auto_group.add_argument(
        "--auto",
        action="store_true",
        default=None,
        dest="auto_start_next",
        help="Start the next phase automatically",
    )
    auto_group.add_argument(
        "--no-auto",
        action="store_false",
        default=None,
        dest="auto_start_next",
        help="Wait for Space after each phase",
    )

    notify_group = parser.add_mutually_exclusive_group()
    notify_group.add_argument(
        "--notify",
        action="store_true",
        default=None,
        dest="notifications_enabled",
        help="Ring and notify when a phase ends",
    )
    notify_group.add_argument(
        "--no-notify",
        action="store_false",
        default=None,
        dest="notifications_enabled",
        help="Disable notifications (bell and system)",
    )

    parser.add_argument(
        "--no-desktop",
        action="store_true",
        help="Only show in-app notifications, no native popups",
    )
    parser.add_argument("--start", action="store_true", help="Start the first phase right away")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    parser.add_argument("--log-file", metavar="PATH", help="Write logs to this file")

    args = parser.parse_args(argv)
    if args.preset is not None:
        try:
            find_preset(args.preset)
        except KeyError:
            labels = ", ".join(repr(p.label) for p in PRESETS)
            parser.error(f"unknown preset {args.preset!r} (choose from {labels})")
    return args


def configure_logging(level: str, log_file: Optional[str]) -> None:
    """Route logs to a file, or to the textual devtools console."""
    if log_file:
        handler: logging.Handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    else:
        handler = TextualHandler()
    logging.basicConfig(level=getattr(logging, level), handlers=[handler])


def apply_overrides(scheduler: PhaseScheduler, args: argparse.Namespace) -> None:
    """Apply --preset, then individual options, through the scheduler."""
    if args.preset is not None:
        scheduler.apply_preset(find_preset(args.preset))

    overrides = {
        "work_minutes": args.work,
        "break_minutes": args.break_minutes,
        "long_break_minutes": args.long_break,
        "long_break_every": args.long_every,
        "auto_start_next": args.auto_start_next,
        "notifications_enabled": args.notifications_enabled,
    }
    for name, value in overrides.items():
        if value is not None:
            scheduler.set_preference(name, value)


def list_presets() -> None:
    for preset in PRESETS:
        print(
            f"{preset.label:<14} work {preset.work_minutes:>3}  break {preset.break_minutes:>3}"
            f"  long {preset.long_break_minutes:>3}  every {preset.long_break_every}"
        )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    if args.list_presets:
        list_presets()
        return 0

    configure_logging(args.log_level, args.log_file)

    prefs_path = resolve_prefs_path(args.prefs_file)
    logger.info("Using preferences file %s", prefs_path)
    store = ConfigStore(JsonFileBackend(prefs_path))
    desktop = None if args.no_desktop else DesktopNotifier(bell=False)

    app = FocusTimerApp(store, desktop, start_immediately=args.start)
    apply_overrides(app.scheduler, args)

    try:
        app.run()
    except KeyboardInterrupt:
        pass
    finally:
        app.scheduler.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
