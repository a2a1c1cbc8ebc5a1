"""Validation helpers for PanelKit configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from keypad import MAX_SIGNIFICANT_DIGITS


@dataclass(frozen=True)
class ValidationIssue:
    """Represents a configuration validation problem."""

    field: str
    title: str
    message: str


def _coerce_int(value: Any) -> int | None:
    """Best-effort conversion to ``int`` returning ``None`` on failure."""

    if isinstance(value, bool):
        # ``bool`` is a subclass of ``int`` in Python, but we treat it as invalid
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def _check_range(
    issues: List[ValidationIssue],
    settings: Dict[str, Any],
    key: str,
    low: int,
    high: int,
    label: str,
    unit: str = "",
) -> int | None:
    value = _coerce_int(settings.get(key))
    if value is None:
        issues.append(
            ValidationIssue(
                field=key,
                title=f"{label} Invalid",
                message=f"{label} must be a whole number between {low} and {high}{unit}.",
            )
        )
        return None
    if not low <= value <= high:
        issues.append(
            ValidationIssue(
                field=key,
                title=f"{label} Out of Range",
                message=f"Choose a value between {low} and {high}{unit}.",
            )
        )
        return None
    return value


def validate_configuration(settings: Dict[str, Any]) -> List[ValidationIssue]:
    """Validate a flat configuration payload.

    Parameters
    ----------
    settings:
        Mapping of configuration keys to values, as produced by
        :func:`settings.flatten_settings`.

    Returns
    -------
    list[ValidationIssue]
        A collection of validation issues. An empty list denotes success.
    """

    issues: List[ValidationIssue] = []

    integer_digits = _check_range(
        issues, settings, "max_integer_digits", 1, MAX_SIGNIFICANT_DIGITS, "Integer Digits"
    )
    fraction_digits = _check_range(
        issues, settings, "max_fraction_digits", 0, 10, "Fraction Digits"
    )
    if (
        integer_digits is not None
        and fraction_digits is not None
        and integer_digits + fraction_digits > MAX_SIGNIFICANT_DIGITS
    ):
        issues.append(
            ValidationIssue(
                field="max_fraction_digits",
                title="Too Many Digits",
                message=(
                    f"Integer and fraction digits together cannot exceed {MAX_SIGNIFICANT_DIGITS}; "
                    "longer entries lose precision on the panel."
                ),
            )
        )

    _check_range(issues, settings, "auto_hide_seconds", 5, 600, "Auto-Hide Delay", " seconds")
    _check_range(issues, settings, "log_retention", 7, 365, "Log Retention", " days")

    application_dir = str(settings.get("application_dir") or "").strip()
    if not application_dir:
        issues.append(
            ValidationIssue(
                field="application_dir",
                title="Application Directory Required",
                message="Provide the directory that holds the panel's embedded databases.",
            )
        )

    return issues
