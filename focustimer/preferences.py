"""User-adjustable settings, value clamping and the preset catalog."""

import math
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Mapping, Optional, Tuple, Union

# Inclusive (min, max) bounds for every numeric preference.
FIELD_RANGES: Dict[str, Tuple[int, int]] = {
    "work_minutes": (1, 180),
    "break_minutes": (1, 120),
    "long_break_minutes": (1, 180),
    "long_break_every": (0, 20),
}

BOOL_FIELDS = ("auto_start_next", "notifications_enabled")

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off", ""}


def _as_number(value: Any) -> Optional[Union[int, float]]:
    """Return ``value`` as an int or finite float, or None if it is neither."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def clamp_int(value: Any, minimum: int, maximum: int) -> int:
    """Coerce raw input to an integer within [minimum, maximum].

    Numbers and numeric strings are truncated toward zero and clamped.
    Anything non-numeric or non-finite falls back to ``minimum``.
    """
    number = _as_number(value)
    if number is None:
        return minimum
    return max(minimum, min(maximum, math.trunc(number)))


def coerce_bool(value: Any, default: bool) -> bool:
    """Interpret common boolean spellings, returning ``default`` otherwise."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    return default


def clamp_field(name: str, value: Any) -> Any:
    """Return ``value`` made valid for the preference ``name``.

    Raises:
        KeyError: ``name`` is not a preference field.
    """
    if name in FIELD_RANGES:
        low, high = FIELD_RANGES[name]
        return clamp_int(value, low, high)
    if name in BOOL_FIELDS:
        return coerce_bool(value, getattr(Preferences(), name))
    raise KeyError(f"Unknown preference field: {name}")


@dataclass
class Preferences:
    """Settings that drive phase durations and transitions."""
    work_minutes: int = 25
    break_minutes: int = 5
    long_break_minutes: int = 15
    long_break_every: int = 4
    auto_start_next: bool = False
    notifications_enabled: bool = True

    def __post_init__(self) -> None:
        for name in FIELD_RANGES:
            setattr(self, name, clamp_field(name, getattr(self, name)))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Preferences":
        """Build preferences from untrusted data, defaulting field-by-field.

        Missing keys and values that are not numbers take their default.
        Numbers are clamped into range. Booleans that cannot be interpreted
        take their default.
        """
        defaults = cls()
        values = {}
        for f in fields(cls):
            default = getattr(defaults, f.name)
            raw = data.get(f.name)
            if raw is None:
                values[f.name] = default
            elif f.name in BOOL_FIELDS:
                values[f.name] = coerce_bool(raw, default)
            else:
                values[f.name] = raw if _as_number(raw) is not None else default
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def set(self, name: str, value: Any) -> Any:
        """Clamp ``value`` and store it on field ``name``; return what was stored."""
        clamped = clamp_field(name, value)
        setattr(self, name, clamped)
        return clamped


@dataclass(frozen=True)
class Preset:
    """Named bundle of durations and cadence applied in one action."""
    label: str
    work_minutes: int
    break_minutes: int
    long_break_minutes: int
    long_break_every: int

    def values(self) -> Dict[str, int]:
        return {name: getattr(self, name) for name in FIELD_RANGES}


PRESETS: Tuple[Preset, ...] = (
    Preset("Ignite 2/1", work_minutes=2, break_minutes=1, long_break_minutes=3, long_break_every=4),
    Preset("Classic 25/5", work_minutes=25, break_minutes=5, long_break_minutes=15, long_break_every=4),
    Preset("Deep 50/10", work_minutes=50, break_minutes=10, long_break_minutes=20, long_break_every=2),
)


def find_preset(label: str) -> Preset:
    """Look up a preset by label (case-insensitive)."""
    wanted = label.strip().lower()
    for preset in PRESETS:
        if preset.label.lower() == wanted:
            return preset
    raise KeyError(f"Unknown preset: {label}")
