"""Comparison configuration -- delimiters, tolerance modes and preprocessing.

A :class:`CSVCompareConfig` groups every parameter that affects the outcome of
one file-pair comparison. It can be:

- Constructed directly (lists are converted to tuples)
- Serialized to/from a dict using the rule-file layout::

      {
        "field_delimiter": ";", "decimal_separator": ",",
        "comparison_modes": [{"Absolute": 0.1}, {"Relative": 0.01}, "Ignore"],
        "exclude_field_regex": "Surface",
        "preprocessing": ["ExtractHeaders", {"SortByColumnName": "Area"}]
      }
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple, Union

import numpy as np

from csv_golden_compare.models.value import Quantity, format_float32

if TYPE_CHECKING:
    from csv_golden_compare.analysis.preprocess import Preprocessor


# ---------------------------------------------------------------------------
# Delimiters
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Delimiters:
    """
    Field delimiter and decimal separator of a delimited text file.

    An unset field delimiter (the default) is guessed from the file content;
    a set decimal separator is kept.
    """
    field_delimiter: Optional[str] = None
    decimal_separator: Optional[str] = None

    def __post_init__(self) -> None:
        for name in ("field_delimiter", "decimal_separator"):
            v = getattr(self, name)
            if v is not None and len(v) != 1:
                raise ValueError(f"{name} must be a single character, got {v!r}")

    def is_empty(self) -> bool:
        return self.field_delimiter is None and self.decimal_separator is None

    @classmethod
    def autodetect(cls) -> Delimiters:
        return cls()


# ---------------------------------------------------------------------------
# Tolerance modes
# ---------------------------------------------------------------------------


class ModeKind(Enum):
    ABSOLUTE = "Absolute"
    RELATIVE = "Relative"
    IGNORE = "Ignore"


@dataclass(frozen=True)
class Mode:
    """One tolerance test applied to every pair of quantities."""
    kind: ModeKind
    tolerance: float = 0.0

    @classmethod
    def absolute(cls, tolerance: float) -> Mode:
        return cls(ModeKind.ABSOLUTE, float(tolerance))

    @classmethod
    def relative(cls, tolerance: float) -> Mode:
        return cls(ModeKind.RELATIVE, float(tolerance))

    @classmethod
    def ignore(cls) -> Mode:
        return cls(ModeKind.IGNORE)

    def in_tolerance(self, nominal: Quantity, actual: Quantity) -> bool:
        """
        Decide whether *actual* matches *nominal* under this mode.

        NaN against NaN always passes. Otherwise units must be identical and the
        values must be equal or within tolerance. Equal infinities are equal; an
        infinity against any other value always fails:

        - Absolute(t): ``|n - a| <= t``
        - Relative(t): ``|(n - a) / n| <= t`` (a zero nominal with a different actual fails)
        - Ignore: always passes
        """
        if np.isnan(nominal.value) and np.isnan(actual.value):
            return True
        if self.kind is ModeKind.IGNORE:
            return True

        identical_units = nominal.unit == actual.unit
        if nominal.value == actual.value:
            numerically = True
        elif not (np.isfinite(nominal.value) and np.isfinite(actual.value)):
            numerically = False
        else:
            tol = np.float32(self.tolerance)
            if tol == 0.0:
                numerically = False
            else:
                diff = nominal.minimal_diff(actual)
                if self.kind is ModeKind.RELATIVE:
                    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
                        diff = np.abs(diff / nominal.value)
                numerically = bool(diff <= tol)
        return numerically and identical_units

    def __str__(self) -> str:
        if self.kind is ModeKind.IGNORE:
            return "Ignored"
        return f"{self.kind.value} (tol: {format_float32(self.tolerance)})"

    def to_dict(self) -> Union[str, Dict[str, float]]:
        if self.kind is ModeKind.IGNORE:
            return ModeKind.IGNORE.value
        return {self.kind.value: self.tolerance}

    @classmethod
    def from_dict(cls, d: Union[str, Dict[str, Any]]) -> Mode:
        if isinstance(d, str):
            if d == ModeKind.IGNORE.value:
                return cls.ignore()
            raise ValueError(f"Unknown comparison mode: {d!r}")
        if not isinstance(d, dict) or len(d) != 1:
            raise ValueError(f"Comparison mode must be a single-key mapping, got {d!r}")
        (key, tol), = d.items()
        if key == ModeKind.ABSOLUTE.value:
            return cls.absolute(float(tol))
        if key == ModeKind.RELATIVE.value:
            return cls.relative(float(tol))
        if key == ModeKind.IGNORE.value:
            return cls.ignore()
        raise ValueError(f"Unknown comparison mode: {key!r}")


# ---------------------------------------------------------------------------
# Full configuration
# ---------------------------------------------------------------------------


_CONFIG_KEYS = {
    "field_delimiter",
    "decimal_separator",
    "comparison_modes",
    "exclude_field_regex",
    "preprocessing",
}


@dataclass(frozen=True)
class CSVCompareConfig:
    """Settings for one CSV file-pair comparison.

    delimiters : Delimiters
        Parsing delimiters; the default (both unset) triggers format guessing.
    comparison_modes : tuple of Mode
        All modes are applied to every quantity pair; strings are compared for identity.
    exclude_field_regex : str or None
        String cells whose *nominal* text matches are not compared.
    preprocessing : tuple of Preprocessor or None
        Applied in order to both tables before diffing.
    """
    delimiters: Delimiters = Delimiters()
    comparison_modes: Tuple[Mode, ...] = ()
    exclude_field_regex: Optional[str] = None
    preprocessing: Optional[Tuple["Preprocessor", ...]] = None

    def __post_init__(self) -> None:
        if not isinstance(self.comparison_modes, tuple):
            object.__setattr__(self, "comparison_modes", tuple(self.comparison_modes))
        if self.preprocessing is not None and not isinstance(self.preprocessing, tuple):
            object.__setattr__(self, "preprocessing", tuple(self.preprocessing))

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-friendly dict in the rule-file layout."""
        return {
            "field_delimiter": self.delimiters.field_delimiter,
            "decimal_separator": self.delimiters.decimal_separator,
            "comparison_modes": [m.to_dict() for m in self.comparison_modes],
            "exclude_field_regex": self.exclude_field_regex,
            "preprocessing": (
                None if self.preprocessing is None else [p.to_dict() for p in self.preprocessing]
            ),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> CSVCompareConfig:
        """Reconstruct from a dict (e.g. loaded from JSON)."""
        # Avoid circular import at module level
        from csv_golden_compare.analysis.preprocess import Preprocessor

        unknown = set(d) - _CONFIG_KEYS
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")

        preprocessing = d.get("preprocessing")
        return cls(
            delimiters=Delimiters(
                field_delimiter=d.get("field_delimiter"),
                decimal_separator=d.get("decimal_separator"),
            ),
            comparison_modes=tuple(Mode.from_dict(m) for m in d.get("comparison_modes") or ()),
            exclude_field_regex=d.get("exclude_field_regex"),
            preprocessing=(
                None if preprocessing is None else tuple(Preprocessor.from_dict(p) for p in preprocessing)
            ),
        )
