"""Tolerance-aware cell-by-cell comparison of two parsed tables.

Both tables are flattened row-major and paired positionally. Per pair:

1. Quantity vs Quantity: every configured mode is tested on its own and each
   failing mode yields one ``OUT_OF_TOLERANCE`` difference.
2. String vs String: skipped when the exclusion regex matches the nominal text,
   otherwise an ``UNEQUAL_STRINGS`` difference when the texts differ.
3. Anything else: one ``DIFFERENT_VALUE_TYPES`` difference.

When the tables hold a different number of cells, the surplus of the longer one
is not compared here; callers validate shapes upstream.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import pandas as pd

from csv_golden_compare.errors import RegexCompilationFailed
from csv_golden_compare.models.config import CSVCompareConfig, Mode
from csv_golden_compare.models.table import Position, Table
from csv_golden_compare.models.value import Quantity, Value


class DiffKind(Enum):
    UNEQUAL_STRINGS = "UnequalStrings"
    OUT_OF_TOLERANCE = "OutOfTolerance"
    DIFFERENT_VALUE_TYPES = "DifferentValueTypes"


@dataclass(frozen=True)
class DiffType:
    """
    One positioned discrepancy.

    nominal/actual hold strings for ``UNEQUAL_STRINGS``, quantities for
    ``OUT_OF_TOLERANCE`` (with the violated ``mode``) and whole values for
    ``DIFFERENT_VALUE_TYPES``.
    """
    kind: DiffKind
    position: Position
    nominal: Union[str, Quantity, Value]
    actual: Union[str, Quantity, Value]
    mode: Optional[Mode] = None

    @classmethod
    def unequal_strings(cls, nominal: str, actual: str, position: Position) -> DiffType:
        return cls(DiffKind.UNEQUAL_STRINGS, position, nominal, actual)

    @classmethod
    def out_of_tolerance(cls, nominal: Quantity, actual: Quantity, mode: Mode, position: Position) -> DiffType:
        return cls(DiffKind.OUT_OF_TOLERANCE, position, nominal, actual, mode)

    @classmethod
    def different_value_types(cls, nominal: Value, actual: Value, position: Position) -> DiffType:
        return cls(DiffKind.DIFFERENT_VALUE_TYPES, position, nominal, actual)

    def __str__(self) -> str:
        where = f"Line: {self.position.row}, Col: {self.position.col}"
        if self.kind is DiffKind.OUT_OF_TOLERANCE:
            return f"{where} -- Out of tolerance -- Expected {self.nominal}, Found {self.actual}, Mode {self.mode}"
        if self.kind is DiffKind.UNEQUAL_STRINGS:
            return f"{where} -- Different strings -- Expected {self.nominal}, Found {self.actual}"
        return f"{where} -- Different value types -- Expected {self.nominal}, Found {self.actual}"


def compile_exclusion(pattern: Optional[str]) -> Optional[re.Pattern]:
    if pattern is None:
        return None
    try:
        return re.compile(pattern)
    except re.error as e:
        raise RegexCompilationFailed(pattern, str(e)) from e


def compare_values(
    nominal: Value,
    actual: Value,
    modes: Tuple[Mode, ...],
    position: Position,
    exclude: Optional[re.Pattern] = None,
) -> List[DiffType]:
    nom_q = nominal.get_quantity()
    act_q = actual.get_quantity()
    if nom_q is not None and act_q is not None:
        return [
            DiffType.out_of_tolerance(nom_q, act_q, mode, position)
            for mode in modes
            if not mode.in_tolerance(nom_q, act_q)
        ]

    nom_s = nominal.get_string()
    act_s = actual.get_string()
    if nom_s is not None and act_s is not None:
        if exclude is not None and exclude.search(nom_s):
            return []
        if nom_s != act_s:
            return [DiffType.unequal_strings(nom_s, act_s, position)]
        return []

    return [DiffType.different_value_types(nominal, actual, position)]


def _flatten(table: Table) -> Iterator[Tuple[Position, Value]]:
    for r, row in enumerate(table.rows()):
        for c, value in enumerate(row):
            yield Position(row=r, col=c), value


def compare_tables(nominal: Table, actual: Table, config: CSVCompareConfig) -> List[DiffType]:
    """Compare two tables cell by cell; positions refer to the nominal table."""
    exclude = compile_exclusion(config.exclude_field_regex)
    modes = tuple(config.comparison_modes)

    diffs: List[DiffType] = []
    for (position, val_nom), (_, val_act) in zip(_flatten(nominal), _flatten(actual)):
        diffs.extend(compare_values(val_nom, val_act, modes, position, exclude))
    return diffs


def compare_headers(nominal: Table, actual: Table) -> List[str]:
    """One message per column whose headers are set on both sides and differ."""
    mismatches: List[str] = []
    for col, (nom_h, act_h) in enumerate(zip(nominal.headers, actual.headers)):
        if nom_h is not None and act_h is not None and nom_h != act_h:
            mismatches.append(f"Col: {col} -- Different header strings -- Expected {nom_h}, Found {act_h}")
    return mismatches


def differences_to_frame(diffs: List[DiffType]) -> pd.DataFrame:
    """One row per difference: kind, row, col, nominal, actual, mode."""
    records: List[Dict[str, Any]] = []
    for d in diffs:
        records.append({
            "kind": d.kind.value,
            "row": d.position.row,
            "col": d.position.col,
            "nominal": str(d.nominal),
            "actual": str(d.actual),
            "mode": "" if d.mode is None else str(d.mode),
        })
    return pd.DataFrame(records, columns=["kind", "row", "col", "nominal", "actual", "mode"])
