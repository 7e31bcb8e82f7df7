"""Typed failures of a single file-pair comparison.

Value coercion never raises; everything below aborts the comparison of the
file pair it occurred in.
"""

from __future__ import annotations

from typing import Any


class CsvCompareError(Exception):
    """Base class of all comparison failures."""


class UnterminatedLiteral(CsvCompareError, ValueError):
    def __init__(self, position: int) -> None:
        self.position = int(position)
        super().__init__(f"A string literal was started at offset {self.position} but never ended")


class UnstableColumnCount(CsvCompareError, ValueError):
    def __init__(self, row: int, expected: int, found: int) -> None:
        self.row = int(row)
        self.expected = int(expected)
        self.found = int(found)
        super().__init__(
            f"CSV format invalid: first row has {self.expected} columns, row {self.row} has {self.found}"
        )


class UnexpectedValue(CsvCompareError, ValueError):
    def __init__(self, value: Any, message: str) -> None:
        self.value = value
        super().__init__(f"Unexpected value found {value} - {message}")


class InvalidAccess(CsvCompareError, ValueError):
    pass


class RegexCompilationFailed(CsvCompareError, ValueError):
    def __init__(self, pattern: str, reason: str) -> None:
        self.pattern = pattern
        super().__init__(f"Failed to compile regex {pattern!r}: {reason}")


class UnequalRowCount(CsvCompareError, ValueError):
    def __init__(self, nominal: int, actual: int) -> None:
        self.nominal = int(nominal)
        self.actual = int(actual)
        super().__init__(
            f"The files compared have different row count. Nominal: {self.nominal}, and Actual: {self.actual}"
        )


class FileAccessFailed(CsvCompareError):
    def __init__(self, path: Any, reason: str) -> None:
        self.path = path
        super().__init__(f"File access failed for '{path}': {reason}")
