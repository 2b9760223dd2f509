"""Unit tests for storage.py."""

import json
from pathlib import Path

from focustimer.preferences import Preferences
from focustimer.storage import (
    PREFS_FILE_ENV,
    PREFS_KEY,
    ConfigStore,
    JsonFileBackend,
    MemoryBackend,
    resolve_prefs_path,
)


class FailingBackend:
    def read(self, key):
        raise OSError("disk gone")

    def write(self, key, text):
        raise OSError("disk gone")


def store_with(record):
    return ConfigStore(MemoryBackend({PREFS_KEY: json.dumps(record)}))


class TestConfigStore:
    """Test loading and saving preferences."""

    def test_load_missing_key_returns_defaults(self):
        """Nothing stored yet means defaults."""
        store = ConfigStore(MemoryBackend())
        assert store.load() == Preferences()

    def test_load_malformed_json_returns_defaults(self):
        """A record that is not JSON is ignored."""
        store = ConfigStore(MemoryBackend({PREFS_KEY: "{not json"}))
        assert store.load() == Preferences()

    def test_load_non_object_returns_defaults(self):
        """A JSON value other than an object is ignored."""
        store = ConfigStore(MemoryBackend({PREFS_KEY: "[1, 2, 3]"}))
        assert store.load() == Preferences()

    def test_load_reclamps_stored_values(self):
        """Stored numbers are clamped; missing fields default."""
        prefs = store_with({"work_minutes": 0, "break_minutes": 500, "long_break_every": 3}).load()
        assert prefs.work_minutes == 1
        assert prefs.break_minutes == 120
        assert prefs.long_break_every == 3
        assert prefs.long_break_minutes == 15

    def test_load_huge_integer_clamps_to_maximum(self):
        """An integer beyond float range still clamps to the upper bound."""
        prefs = store_with({"work_minutes": 10**400, "long_break_every": -(10**400)}).load()
        assert prefs.work_minutes == 180
        assert prefs.long_break_every == 0
        assert prefs.break_minutes == 5

    def test_load_float_overflow_literal(self):
        """A JSON number too large for a float does not break loading."""
        store = ConfigStore(MemoryBackend({PREFS_KEY: '{"work_minutes": 1e400, "break_minutes": 9}'}))
        prefs = store.load()
        assert prefs.work_minutes == 25
        assert prefs.break_minutes == 9

    def test_save_then_load(self):
        """Saved preferences come back unchanged."""
        store = ConfigStore(MemoryBackend())
        prefs = Preferences(work_minutes=50, auto_start_next=True)
        store.save(prefs)
        assert store.load() == prefs

    def test_save_keeps_cosmetic_fields(self):
        """Fields owned by other layers survive a save."""
        backend = MemoryBackend({PREFS_KEY: json.dumps({"theme": "ice", "work_minutes": 10})})
        ConfigStore(backend).save(Preferences(work_minutes=30))
        record = json.loads(backend.records[PREFS_KEY])
        assert record["theme"] == "ice"
        assert record["work_minutes"] == 30

    def test_save_over_malformed_record(self):
        """A broken record is replaced on save."""
        store = ConfigStore(MemoryBackend({PREFS_KEY: "garbage"}))
        store.save(Preferences(break_minutes=8))
        assert store.load().break_minutes == 8

    def test_backend_failures_are_swallowed(self):
        """Backend errors never reach the caller."""
        store = ConfigStore(FailingBackend())
        assert store.load() == Preferences()
        store.save(Preferences())

    def test_custom_key(self):
        """Records under other keys are independent."""
        backend = MemoryBackend()
        ConfigStore(backend, key="other").save(Preferences(work_minutes=7))
        assert "other" in backend.records
        assert ConfigStore(backend).load() == Preferences()


class TestJsonFileBackend:
    """Test the on-disk backend."""

    def test_round_trip(self, tmp_path):
        """Saving creates parent directories and a readable file."""
        path = tmp_path / "nested" / "prefs.json"
        ConfigStore(JsonFileBackend(path)).save(Preferences(long_break_every=0))

        assert path.exists()
        assert ConfigStore(JsonFileBackend(path)).load().long_break_every == 0
        on_disk = json.loads(path.read_text(encoding="utf-8"))
        assert PREFS_KEY in on_disk

    def test_keeps_other_records(self, tmp_path):
        """Other named records in the file are preserved."""
        path = tmp_path / "prefs.json"
        path.write_text(json.dumps({"window": "{}"}), encoding="utf-8")
        ConfigStore(JsonFileBackend(path)).save(Preferences())
        on_disk = json.loads(path.read_text(encoding="utf-8"))
        assert on_disk["window"] == "{}"

    def test_corrupt_file(self, tmp_path):
        """A corrupt file loads as defaults and is overwritten on save."""
        path = tmp_path / "prefs.json"
        path.write_text("{{{", encoding="utf-8")
        store = ConfigStore(JsonFileBackend(path))
        assert store.load() == Preferences()

        store.save(Preferences(work_minutes=42))
        assert store.load().work_minutes == 42

    def test_unwritable(self, tmp_path):
        """A directory in place of the file is tolerated."""
        store = ConfigStore(JsonFileBackend(tmp_path))
        assert store.load() == Preferences()
        store.save(Preferences())


class TestResolvePrefsPath:
    """Test preferences file selection."""

    def test_resolution_order(self, tmp_path, monkeypatch):
        """CLI path beats the environment, which beats the default."""
        monkeypatch.setenv(PREFS_FILE_ENV, str(tmp_path / "env.json"))
        assert resolve_prefs_path(str(tmp_path / "cli.json")) == tmp_path / "cli.json"
        assert resolve_prefs_path() == tmp_path / "env.json"

        monkeypatch.delenv(PREFS_FILE_ENV)
        assert resolve_prefs_path() == Path("~/.config/focustimer/prefs.json").expanduser()
