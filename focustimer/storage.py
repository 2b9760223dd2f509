"""Preference persistence over a key-value backend."""

import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional, Protocol

from .preferences import Preferences

PREFS_KEY = "focustimer_prefs_v1"
PREFS_FILE_ENV = "FOCUSTIMER_PREFS_FILE"
DEFAULT_PREFS_FILE = Path("~/.config/focustimer/prefs.json")


class KeyValueBackend(Protocol):
    """Persistence collaborator storing text records under string keys."""

    def read(self, key: str) -> Optional[str]:
        ...

    def write(self, key: str, text: str) -> None:
        ...


class MemoryBackend:
    """In-process backend; nothing survives a restart."""

    def __init__(self, records: Optional[Dict[str, str]] = None):
        self.records: Dict[str, str] = dict(records or {})

    def read(self, key: str) -> Optional[str]:
        return self.records.get(key)

    def write(self, key: str, text: str) -> None:
        self.records[key] = text


class JsonFileBackend:
    """Backend keeping all records in one JSON object on disk."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object in {self.path}")
        return data

    def read(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def write(self, key: str, text: str) -> None:
        try:
            records = self._read_all()
        except ValueError:
            # Unreadable file gets replaced rather than blocking every save.
            records = {}
        records[key] = text
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(records, indent=2, sort_keys=True), encoding="utf-8")
        tmp_path.replace(self.path)


def resolve_prefs_path(prefs_file: Optional[str] = None) -> Path:
    """Pick the preferences file: explicit path, then env var, then default."""
    raw = prefs_file or os.getenv(PREFS_FILE_ENV) or str(DEFAULT_PREFS_FILE)
    return Path(raw).expanduser()


class ConfigStore:
    """Loads and saves Preferences; never raises persistence errors."""

    def __init__(
        self,
        backend: KeyValueBackend,
        *,
        key: str = PREFS_KEY,
        logger: Optional[logging.Logger] = None,
    ):
        self.backend = backend
        self.key = key
        self._logger = logger or logging.getLogger(__name__)

    def _read_record(self) -> Optional[dict]:
        raw = self.backend.read(self.key)
        if raw is None:
            return None
        record = json.loads(raw)
        if not isinstance(record, dict):
            raise ValueError(f"Record {self.key!r} is not a JSON object")
        return record

    def load(self) -> Preferences:
        """Return stored preferences, or defaults when nothing usable is stored."""
        try:
            record = self._read_record()
            if record is None:
                self._logger.debug("No stored preferences under %r", self.key)
                return Preferences()
            return Preferences.from_mapping(record)
        except (OSError, ValueError, TypeError, OverflowError) as error:
            self._logger.warning("Could not load preferences, using defaults: %s", error)
            return Preferences()

    def save(self, prefs: Preferences) -> None:
        """Persist ``prefs``, keeping unrelated fields already in the record."""
        try:
            try:
                record = self._read_record() or {}
            except ValueError:
                record = {}
            record.update(prefs.to_dict())
            self.backend.write(self.key, json.dumps(record))
        except (OSError, ValueError, TypeError) as error:
            self._logger.warning("Could not save preferences: %s", error)
