"""
Numeric keypad input controller for PanelKit.

Turns discrete key presses (digits, decimal entry, backspace, sign toggle,
clear) into a single numeric value written to a bound field. The edit state
lives in an explicit buffer owned by the controller; the field only ever
receives the value derived from that buffer.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal, localcontext
from enum import Enum
from typing import Callable, List, Optional, Protocol

from logger import LogCategory, LoggableMixin


DECIMAL_SEPARATOR = "."
DIGITS = frozenset("0123456789")

# float64 represents every decimal of up to 15 significant digits exactly
MAX_SIGNIFICANT_DIGITS = 15
DEFAULT_MAX_INTEGER_DIGITS = 9
DEFAULT_MAX_FRACTION_DIGITS = 6


class KeypadKey:
    """Key tokens understood by :meth:`KeypadController.dispatch`."""

    DECIMAL = DECIMAL_SEPARATOR
    BACKSPACE = "backspace"
    TOGGLE_SIGN = "toggle_sign"
    CLEAR = "clear"


class EntryMode(Enum):
    """Which part of the number the next digit lands in."""
    INTEGER = "integer"
    FRACTION = "fraction"


class NumericField(Protocol):
    """Anything holding a numeric ``value`` the controller can read and write."""

    value: float


class ValueField:
    """In-memory bound field."""

    def __init__(self, value: float = 0.0):
        self.value = value

    def __repr__(self) -> str:
        return f"ValueField(value={self.value!r})"


@dataclass
class EntryBuffer:
    """Digits typed so far. An empty integer part reads as ``0``."""

    integer_digits: List[str] = field(default_factory=list)
    fraction_digits: List[str] = field(default_factory=list)
    negative: bool = False

    @property
    def is_zero(self) -> bool:
        return not any(d != "0" for d in self.integer_digits + self.fraction_digits)

    def to_text(self) -> str:
        text = "".join(self.integer_digits) or "0"
        if self.fraction_digits:
            text += DECIMAL_SEPARATOR + "".join(self.fraction_digits)
        if self.negative and not self.is_zero:
            text = "-" + text
        return text

    def to_value(self) -> float:
        value = float(self.to_text())
        # Never hand -0.0 to the field
        return value if value != 0 else 0.0

    def copy(self) -> "EntryBuffer":
        return EntryBuffer(list(self.integer_digits), list(self.fraction_digits), self.negative)

    @classmethod
    def from_value(cls, value: float, max_fraction_digits: int) -> "EntryBuffer":
        """Rebuild a buffer from a plain number.

        The value is rounded to ``max_fraction_digits`` and trailing
        fractional zeros are dropped, since a bare number carries no record
        of explicitly typed zeros. Non-finite values become zero.
        """
        if value is None or not math.isfinite(value):
            return cls()

        with localcontext() as ctx:
            # wide enough for any finite float64 written out in full
            ctx.prec = 400
            rounded = Decimal(repr(float(value))).quantize(Decimal(1).scaleb(-max_fraction_digits))
            text = format(rounded, "f")
        negative = text.startswith("-")
        text = text.lstrip("-")

        integer_text, _, fraction_text = text.partition(".")
        integer_text = integer_text.lstrip("0")
        fraction_text = fraction_text.rstrip("0")

        buffer = cls(list(integer_text), list(fraction_text), negative)
        if buffer.is_zero:
            buffer.negative = False
        return buffer


class KeypadController(LoggableMixin):
    """Applies keypad edit events to a bound numeric field.

    Two modes: integer entry (no fractional digits) and fraction entry. The
    switch to fraction entry happens when a digit arrives after
    :meth:`request_fraction_entry`; the way back is backspacing the last
    fractional digit, :meth:`clear`, or an external write to the field.
    """

    log_category = LogCategory.KEYPAD

    def __init__(
        self,
        bound_field: NumericField,
        *,
        max_integer_digits: int = DEFAULT_MAX_INTEGER_DIGITS,
        max_fraction_digits: int = DEFAULT_MAX_FRACTION_DIGITS,
        on_change: Optional[Callable[[float], None]] = None,
        seed_from_field: bool = False,
    ):
        LoggableMixin.__init__(self)

        if max_integer_digits < 1:
            raise ValueError("max_integer_digits must be at least 1")
        if max_fraction_digits < 0:
            raise ValueError("max_fraction_digits cannot be negative")
        if max_integer_digits + max_fraction_digits > MAX_SIGNIFICANT_DIGITS:
            raise ValueError(
                f"At most {MAX_SIGNIFICANT_DIGITS} significant digits are supported, "
                f"got {max_integer_digits} integer + {max_fraction_digits} fraction digits"
            )

        self._field = bound_field
        self.max_integer_digits = max_integer_digits
        self.max_fraction_digits = max_fraction_digits
        self.on_change = on_change

        self._buffer = EntryBuffer()
        self._pending_fraction_entry = False
        self._last_written: Optional[float] = None

        if seed_from_field:
            self.reload_from_field()
        else:
            self.clear()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def field(self) -> NumericField:
        return self._field

    @property
    def value(self) -> float:
        return self._buffer.to_value()

    @property
    def fraction_digits(self) -> int:
        return len(self._buffer.fraction_digits)

    @property
    def mode(self) -> EntryMode:
        return EntryMode.FRACTION if self._buffer.fraction_digits else EntryMode.INTEGER

    @property
    def pending_fraction_entry(self) -> bool:
        return self._pending_fraction_entry

    @property
    def buffer(self) -> EntryBuffer:
        return self._buffer.copy()

    @property
    def display_text(self) -> str:
        text = self._buffer.to_text()
        if self._pending_fraction_entry:
            text += DECIMAL_SEPARATOR
        return text

    # ------------------------------------------------------------------
    # Edit operations
    # ------------------------------------------------------------------
    def append_digit(self, digit: str) -> bool:
        """Append one digit; ``""`` is a backspace request.

        Returns ``False`` when the digit would exceed the configured integer
        or fraction length, in which case nothing changes.
        """
        if digit == "":
            return self.backspace()
        if digit not in DIGITS:
            raise ValueError(f"Expected a single decimal digit, got {digit!r}")

        self._sync_from_field()
        buffer = self._buffer

        if buffer.fraction_digits or self._pending_fraction_entry:
            if len(buffer.fraction_digits) >= self.max_fraction_digits:
                self.log_warning("Fraction digit rejected, limit reached",
                                 limit=self.max_fraction_digits)
                return False
            buffer.fraction_digits.append(digit)
            self._pending_fraction_entry = False
        else:
            if not buffer.integer_digits and digit == "0":
                # leading zero
                pass
            elif len(buffer.integer_digits) >= self.max_integer_digits:
                self.log_warning("Integer digit rejected, limit reached",
                                 limit=self.max_integer_digits)
                return False
            else:
                buffer.integer_digits.append(digit)

        self._write()
        return True

    def backspace(self) -> bool:
        """Remove the last typed character; an empty entry stays at zero."""
        self._sync_from_field()
        buffer = self._buffer

        if self._pending_fraction_entry and not buffer.fraction_digits:
            self._pending_fraction_entry = False
        elif buffer.fraction_digits:
            buffer.fraction_digits.pop()
        elif buffer.integer_digits:
            buffer.integer_digits.pop()

        if buffer.is_zero:
            buffer.negative = False

        self._write()
        return True

    def toggle_sign(self) -> None:
        """Negate the value. Zero has no sign and is left alone.

        A field value the buffer only holds rounded (written by someone else
        with more fractional digits than allowed) is negated in the field
        itself, so two toggles always restore it exactly.
        """
        self._sync_from_field()
        current = self._field.value
        if self._buffer.to_value() != current:
            self._negate_field(current)
            return
        if self._buffer.is_zero:
            return
        self._buffer.negative = not self._buffer.negative
        self._write()

    def clear(self) -> None:
        """Reset the value and fraction digit count to zero."""
        self._buffer = EntryBuffer()
        self._pending_fraction_entry = False
        self._write()

    def request_fraction_entry(self) -> None:
        """Make the next digit the first fractional digit."""
        self._sync_from_field()
        if self.mode is EntryMode.FRACTION or self.max_fraction_digits == 0:
            return
        self._pending_fraction_entry = True

    def dispatch(self, key: str) -> None:
        """Route a key token from a button grid to the matching operation."""
        if key in DIGITS:
            self.append_digit(key)
        elif key == KeypadKey.DECIMAL:
            self.request_fraction_entry()
        elif key == KeypadKey.BACKSPACE:
            self.backspace()
        elif key == KeypadKey.TOGGLE_SIGN:
            self.toggle_sign()
        elif key == KeypadKey.CLEAR:
            self.clear()
        else:
            raise ValueError(f"Unknown keypad key {key!r}")

    def reload_from_field(self) -> None:
        """Re-seed the buffer from whatever the field currently holds."""
        self._buffer = EntryBuffer.from_value(self._field.value, self.max_fraction_digits)
        self._pending_fraction_entry = False
        self._last_written = self._field.value

    # ------------------------------------------------------------------
    # Field synchronisation
    # ------------------------------------------------------------------
    def _sync_from_field(self) -> None:
        current = self._field.value
        if self._last_written is not None and current == self._last_written:
            return
        self.log_debug("Bound field changed outside the keypad, reloading",
                       field_value=current, last_written=self._last_written)
        self.reload_from_field()

    def _negate_field(self, current: float) -> None:
        self._field.value = -current
        self.reload_from_field()
        stored = self._last_written
        self.log_debug("Negated unrounded field value", written=-current, stored=stored)

        if self.on_change is not None:
            self.on_change(stored)

    def _write(self) -> None:
        value = self._buffer.to_value()
        self._field.value = value

        stored = self._field.value
        if stored != value:
            # The field clamped or rounded the value; follow it
            self.log_debug("Bound field adjusted written value",
                           written=value, stored=stored)
            self.reload_from_field()
        self._last_written = stored

        if self.on_change is not None:
            self.on_change(stored)
