from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

import numpy as np


DELETED_MARKER = "DELETED"

# Literal grammar accepted as a number: sign, digits/fraction, exponent, or inf/infinity/nan.
# Python-only spellings such as "1_000" are not numbers.
_FLOAT_RE = re.compile(
    r"^[+-]?(?:inf|infinity|nan|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)$",
    flags=re.IGNORECASE,
)


def parse_float32(token: str) -> Optional[np.float32]:
    """Parse *token* as a 32-bit float, ``None`` when it is not a number."""
    if not _FLOAT_RE.match(token):
        return None
    with np.errstate(over="ignore"):
        return np.float32(float(token))


def format_float32(value: np.float32) -> str:
    """Shortest positional form, no trailing ``.0`` (``10``, ``0.6``, ``nan``, ``inf``)."""
    v = np.float32(value)
    if np.isnan(v):
        return "nan"
    if np.isinf(v):
        return "inf" if v > 0 else "-inf"
    return np.format_float_positional(v, trim="-")


@dataclass(frozen=True, eq=False)
class Quantity:
    """
    Numeric cell value with an optional unit.

    Equality requires equal value and identical unit. NaN compares equal to NaN,
    a deliberate exception to IEEE semantics so that "nan" cells can match.
    """
    value: np.float32
    unit: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", np.float32(self.value))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Quantity):
            return NotImplemented
        if self.unit != other.unit:
            return False
        if np.isnan(self.value) and np.isnan(other.value):
            return True
        return bool(self.value == other.value)

    def __hash__(self) -> int:
        key = "nan" if np.isnan(self.value) else float(self.value)
        return hash((key, self.unit))

    def minimal_diff(self, other: Quantity) -> np.float32:
        """
        Smallest distance the two values can have given float32 representation error.

        Both operands are moved one ULP towards each other and the difference is
        rounded down by one more ULP.
        """
        lo = np.minimum(self.value, other.value)
        hi = np.maximum(self.value, other.value)
        up = np.float32(np.inf)
        down = np.float32(-np.inf)
        with np.errstate(over="ignore", invalid="ignore"):
            lo_up = np.nextafter(lo, up)
            hi_down = np.nextafter(hi, down)
            return np.nextafter(np.float32(hi_down - lo_up), down)

    def __str__(self) -> str:
        if self.unit is not None:
            return f"{format_float32(self.value)} {self.unit}"
        return format_float32(self.value)


class ValueKind(Enum):
    QUANTITY = "quantity"
    STRING = "string"


@dataclass(frozen=True)
class Value:
    """
    Typed table cell: either a :class:`Quantity` or a plain string.

    Build with :meth:`from_str` (parsing heuristic), :meth:`from_quantity` or
    :meth:`from_string`. Use :meth:`get_quantity` / :meth:`get_string` to access
    the payload; both return ``None`` on a kind mismatch.
    """
    kind: ValueKind
    payload: Union[Quantity, str]

    @classmethod
    def from_quantity(cls, quantity: Quantity) -> Value:
        return cls(ValueKind.QUANTITY, quantity)

    @classmethod
    def from_string(cls, text: str) -> Value:
        return cls(ValueKind.STRING, str(text))

    @classmethod
    def deleted(cls) -> Value:
        """Sentinel used by preprocessors to blank out cells without shifting indices."""
        return cls.from_str(DELETED_MARKER)

    @classmethod
    def from_str(cls, text: str, decimal_separator: Optional[str] = None) -> Value:
        """
        Coerce raw field text into a value. Never fails.

        The decimal separator is replaced by ``.``, the text is trimmed and split on
        single spaces. One or two tokens whose first token is a float give a
        Quantity (second token = unit); anything else is the trimmed original text.
        """
        field = text.replace(decimal_separator, ".") if decimal_separator else text
        parts = field.strip().split(" ")
        if len(parts) in (1, 2):
            number = parse_float32(parts[0])
            if number is not None:
                unit = parts[1] if len(parts) == 2 else None
                return cls.from_quantity(Quantity(number, unit))
        return cls.from_string(text.strip())

    @property
    def is_quantity(self) -> bool:
        return self.kind is ValueKind.QUANTITY

    @property
    def is_string(self) -> bool:
        return self.kind is ValueKind.STRING

    def get_quantity(self) -> Optional[Quantity]:
        return self.payload if self.kind is ValueKind.QUANTITY else None  # type: ignore[return-value]

    def get_string(self) -> Optional[str]:
        return self.payload if self.kind is ValueKind.STRING else None  # type: ignore[return-value]

    def as_str(self) -> str:
        """Raw text for strings, display form for quantities (used for regex matching)."""
        return str(self.payload)

    def __str__(self) -> str:
        if self.kind is ValueKind.QUANTITY:
            return str(self.payload)
        return f"'{self.payload}'"
