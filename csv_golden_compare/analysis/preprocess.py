"""Structural preprocessing of parsed tables.

Each :class:`Preprocessor` mutates one :class:`~csv_golden_compare.models.table.Table`
in place. Deletions never remove cells: they overwrite them with
``Value.deleted()`` so that positions stay aligned with the original file.

Failure policy
--------------
- Column deletion by an unknown name/number is a no-op.
- Sorting or row deletion that references a missing column/row raises
  :class:`~csv_golden_compare.errors.InvalidAccess`.
- Sorting by a column holding any non-numeric cell raises
  :class:`~csv_golden_compare.errors.UnexpectedValue`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Union

import numpy as np

from csv_golden_compare.errors import InvalidAccess, RegexCompilationFailed, UnexpectedValue
from csv_golden_compare.models.table import Table
from csv_golden_compare.models.value import Value


class PreprocessorKind(Enum):
    EXTRACT_HEADERS = "ExtractHeaders"
    DELETE_COLUMN_BY_NUMBER = "DeleteColumnByNumber"
    DELETE_COLUMN_BY_NAME = "DeleteColumnByName"
    SORT_BY_COLUMN_NAME = "SortByColumnName"
    SORT_BY_COLUMN_NUMBER = "SortByColumnNumber"
    DELETE_ROW_BY_NUMBER = "DeleteRowByNumber"
    DELETE_ROW_BY_REGEX = "DeleteRowByRegex"


_INT_ARG = {
    PreprocessorKind.DELETE_COLUMN_BY_NUMBER,
    PreprocessorKind.SORT_BY_COLUMN_NUMBER,
    PreprocessorKind.DELETE_ROW_BY_NUMBER,
}
_STR_ARG = {
    PreprocessorKind.DELETE_COLUMN_BY_NAME,
    PreprocessorKind.SORT_BY_COLUMN_NAME,
    PreprocessorKind.DELETE_ROW_BY_REGEX,
}


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


def extract_headers(table: Table) -> None:
    """Move row 0 of every column into the column header."""
    for i, col in enumerate(table.columns):
        if not col.rows:
            raise InvalidAccess(f"Cannot extract header: column {i} is empty")
        title = col.rows.pop(0)
        text = title.get_string()
        if text is None:
            table.warnings.append(f"First entry in column {i} was not a string: {title}")
        else:
            col.header = text


def delete_column_number(table: Table, number: int) -> None:
    if 0 <= number < len(table.columns):
        table.columns[number].delete_contents()


def delete_column_name(table: Table, name: str) -> None:
    for col in table.columns:
        if col.header == name:
            col.delete_contents()


def delete_row_number(table: Table, number: int) -> None:
    if not 0 <= number < table.n_rows:
        raise InvalidAccess(f"Row {number} does not exist (table has {table.n_rows} rows)")
    for col in table.columns:
        col.rows[number] = Value.deleted()


def delete_row_regex(table: Table, pattern: str) -> None:
    """Blank every row where any field's text matches *pattern*."""
    try:
        regex = re.compile(pattern)
    except re.error as e:
        raise RegexCompilationFailed(pattern, str(e)) from e

    hit_rows = [r for r, row in enumerate(table.rows()) if any(regex.search(v.as_str()) for v in row)]
    for r in hit_rows:
        for col in table.columns:
            col.rows[r] = Value.deleted()


def sort_by_column_number(table: Table, number: int) -> None:
    """
    Reorder all rows by descending value of column *number*.

    One stable permutation is computed from the sort column and applied to every
    column, so rows stay intact.
    """
    if not 0 <= number < len(table.columns):
        raise InvalidAccess(f"Sort column {number} does not exist (table has {len(table.columns)} columns)")

    master = table.columns[number].rows
    keys = np.empty(len(master), dtype=np.float32)
    for r, v in enumerate(master):
        q = v.get_quantity()
        if q is None:
            raise UnexpectedValue(v, f"sorting by column {number} needs numbers only (row {r})")
        keys[r] = q.value

    # stable argsort on the negated keys gives descending order with ties kept in place
    permutation = np.argsort(-keys, kind="stable")
    for col in table.columns:
        col.rows = [col.rows[i] for i in permutation]


def sort_by_column_name(table: Table, name: str) -> None:
    number = table.column_index(name)
    if number is None:
        raise InvalidAccess(f"Sort column '{name}' not found in headers {table.headers}")
    sort_by_column_number(table, number)


_OPERATIONS: Dict[PreprocessorKind, Callable[..., None]] = {
    PreprocessorKind.EXTRACT_HEADERS: extract_headers,
    PreprocessorKind.DELETE_COLUMN_BY_NUMBER: delete_column_number,
    PreprocessorKind.DELETE_COLUMN_BY_NAME: delete_column_name,
    PreprocessorKind.SORT_BY_COLUMN_NAME: sort_by_column_name,
    PreprocessorKind.SORT_BY_COLUMN_NUMBER: sort_by_column_number,
    PreprocessorKind.DELETE_ROW_BY_NUMBER: delete_row_number,
    PreprocessorKind.DELETE_ROW_BY_REGEX: delete_row_regex,
}


# ---------------------------------------------------------------------------
# Configured preprocessor
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Preprocessor:
    """A named preprocessing step with its argument (column/row number, name or regex)."""
    kind: PreprocessorKind
    argument: Optional[Union[int, str]] = None

    def __post_init__(self) -> None:
        if self.kind in _INT_ARG and not isinstance(self.argument, int):
            raise ValueError(f"{self.kind.value} needs an integer argument, got {self.argument!r}")
        if self.kind in _STR_ARG and not isinstance(self.argument, str):
            raise ValueError(f"{self.kind.value} needs a string argument, got {self.argument!r}")
        if self.kind is PreprocessorKind.EXTRACT_HEADERS and self.argument is not None:
            raise ValueError("ExtractHeaders takes no argument")

    @classmethod
    def extract_headers(cls) -> Preprocessor:
        return cls(PreprocessorKind.EXTRACT_HEADERS)

    @classmethod
    def delete_column_by_number(cls, number: int) -> Preprocessor:
        return cls(PreprocessorKind.DELETE_COLUMN_BY_NUMBER, number)

    @classmethod
    def delete_column_by_name(cls, name: str) -> Preprocessor:
        return cls(PreprocessorKind.DELETE_COLUMN_BY_NAME, name)

    @classmethod
    def sort_by_column_name(cls, name: str) -> Preprocessor:
        return cls(PreprocessorKind.SORT_BY_COLUMN_NAME, name)

    @classmethod
    def sort_by_column_number(cls, number: int) -> Preprocessor:
        return cls(PreprocessorKind.SORT_BY_COLUMN_NUMBER, number)

    @classmethod
    def delete_row_by_number(cls, number: int) -> Preprocessor:
        return cls(PreprocessorKind.DELETE_ROW_BY_NUMBER, number)

    @classmethod
    def delete_row_by_regex(cls, pattern: str) -> Preprocessor:
        return cls(PreprocessorKind.DELETE_ROW_BY_REGEX, pattern)

    def process(self, table: Table) -> None:
        op = _OPERATIONS[self.kind]
        if self.kind is PreprocessorKind.EXTRACT_HEADERS:
            op(table)
        else:
            op(table, self.argument)

    def to_dict(self) -> Union[str, Dict[str, Any]]:
        if self.kind is PreprocessorKind.EXTRACT_HEADERS:
            return self.kind.value
        return {self.kind.value: self.argument}

    @classmethod
    def from_dict(cls, d: Union[str, Dict[str, Any]]) -> Preprocessor:
        if isinstance(d, str):
            if d == PreprocessorKind.EXTRACT_HEADERS.value:
                return cls.extract_headers()
            raise ValueError(f"Unknown preprocessor or missing argument: {d!r}")
        if not isinstance(d, dict) or len(d) != 1:
            raise ValueError(f"Preprocessor must be a single-key mapping, got {d!r}")
        (key, arg), = d.items()
        try:
            kind = PreprocessorKind(key)
        except ValueError:
            raise ValueError(f"Unknown preprocessor: {key!r}") from None
        if kind is PreprocessorKind.EXTRACT_HEADERS:
            return cls.extract_headers()
        return cls(kind, arg)
