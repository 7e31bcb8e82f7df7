"""Table analysis package.

Design principle:
  - Ingest produces a :class:`~csv_golden_compare.models.table.Table` per file.
  - Preprocessing mutates tables in place; the diff engine only reads them.

Cells are addressed by table-local (row, col) positions, not raw file lines.
"""

from .preprocess import Preprocessor, PreprocessorKind
from .diff import DiffKind, DiffType, compare_headers, compare_tables, compare_values, differences_to_frame

__all__ = [
    "Preprocessor",
    "PreprocessorKind",
    "DiffKind",
    "DiffType",
    "compare_headers",
    "compare_tables",
    "compare_values",
    "differences_to_frame",
]
