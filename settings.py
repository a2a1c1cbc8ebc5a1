"""Panel configuration loaded from ``QSettings`` or plain mappings."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple

from config_validation import ValidationIssue, validate_configuration
from logger import LogCategory, get_logger

# QSettings key for every PanelSettings attribute
SETTINGS_KEYS: Dict[str, str] = {
    "max_integer_digits": "keypad/max_integer_digits",
    "max_fraction_digits": "keypad/max_fraction_digits",
    "auto_hide_seconds": "keypad/auto_hide_seconds",
    "application_dir": "storage/application_dir",
    "log_retention": "general/log_retention",
}


def _default_application_dir() -> str:
    return str(Path.home() / "PanelKit" / "data")


@dataclass
class PanelSettings:
    """Settings consumed by the keypad, storage tools and logging."""

    max_integer_digits: int = 9
    max_fraction_digits: int = 6
    auto_hide_seconds: int = 30
    application_dir: str = field(default_factory=_default_application_dir)
    log_retention: int = 30

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def flatten_settings(source: Mapping[str, Any]) -> Dict[str, Any]:
    """Accept either flat keys or ``section/key`` / nested section mappings."""
    flat: Dict[str, Any] = {}
    for name, qualified in SETTINGS_KEYS.items():
        section, key = qualified.split("/")
        if name in source:
            flat[name] = source[name]
        elif qualified in source:
            flat[name] = source[qualified]
        elif isinstance(source.get(section), Mapping) and key in source[section]:
            flat[name] = source[section][key]
    return flat


def _build(values: Dict[str, Any]) -> Tuple[PanelSettings, list[ValidationIssue]]:
    defaults = PanelSettings()
    merged = {**defaults.as_dict(), **values}
    issues = validate_configuration(merged)
    logger = get_logger()

    if issues:
        for issue in issues:
            logger.warning(
                f"Invalid setting '{issue.field}': {issue.message}",
                category=LogCategory.CONFIG,
                setting=issue.field,
                value=merged.get(issue.field),
            )
        # digit limits are only meaningful as a pair
        bad = {issue.field for issue in issues}
        if bad & {"max_integer_digits", "max_fraction_digits"}:
            bad |= {"max_integer_digits", "max_fraction_digits"}
        for name in bad:
            merged[name] = getattr(defaults, name)

    kwargs = {}
    for f in fields(PanelSettings):
        value = merged[f.name]
        kwargs[f.name] = str(value) if f.name == "application_dir" else int(value)
    return PanelSettings(**kwargs), issues


def settings_from_mapping(source: Mapping[str, Any]) -> Tuple[PanelSettings, list[ValidationIssue]]:
    """Build settings from a mapping; invalid entries fall back to defaults."""
    return _build(flatten_settings(source))


def load_settings(qsettings) -> Tuple[PanelSettings, list[ValidationIssue]]:
    """Read settings from a ``QSettings`` instance."""
    values: Dict[str, Any] = {}
    for name, key in SETTINGS_KEYS.items():
        if qsettings.contains(key):
            values[name] = qsettings.value(key)
    return _build(values)


def save_settings(qsettings, panel_settings: PanelSettings) -> None:
    """Write settings back to a ``QSettings`` instance."""
    for name, key in SETTINGS_KEYS.items():
        qsettings.setValue(key, getattr(panel_settings, name))
    qsettings.sync()
