from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, List, Optional, Sequence

from csv_golden_compare.errors import FileAccessFailed, UnstableColumnCount
from csv_golden_compare.models.config import Delimiters
from csv_golden_compare.models.value import DELETED_MARKER, Value


@dataclass(frozen=True)
class Position:
    """Zero-based (row, col) of a cell inside a parsed table."""
    row: int
    col: int


@dataclass
class Column:
    header: Optional[str] = None
    rows: List[Value] = field(default_factory=list)

    def delete_contents(self) -> None:
        """Blank every cell with the deletion sentinel, keeping the row count."""
        self.header = DELETED_MARKER
        self.rows = [Value.deleted() for _ in self.rows]


@dataclass
class Table:
    """
    Column-major table of parsed values.

    Notes
    - All columns have the same length; construction rejects ragged input.
    - ``delimiters`` records what was actually used for parsing (after guessing).
    - ``warnings`` collects non-fatal diagnostics from parsing and preprocessing.
    """
    columns: List[Column] = field(default_factory=list)
    delimiters: Delimiters = Delimiters()
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def from_rows(cls, rows: Iterable[Sequence[Value]], delimiters: Optional[Delimiters] = None) -> Table:
        columns: List[Column] = []
        for row_num, fields in enumerate(rows):
            if row_num == 0:
                columns = [Column() for _ in fields]
            if len(fields) != len(columns):
                raise UnstableColumnCount(row_num, len(columns), len(fields))
            for col, value in zip(columns, fields):
                col.rows.append(value)
        return cls(columns=columns, delimiters=delimiters or Delimiters())

    @classmethod
    def from_reader(cls, source: BinaryIO, delimiters: Optional[Delimiters] = None) -> Table:
        """Parse a seekable byte source; unset delimiters are guessed first."""
        # Avoid circular import at module level
        from csv_golden_compare.ingest.tokenizer import Tokenizer

        parser = Tokenizer(source, delimiters or Delimiters())
        rows = parser.parse_to_rows()
        table = cls.from_rows(rows, parser.delimiters)
        table.warnings.extend(parser.warnings)
        return table

    @classmethod
    def from_path(cls, path: Path, delimiters: Optional[Delimiters] = None) -> Table:
        p = Path(path)
        try:
            fh = open(p, "rb")
        except OSError as e:
            raise FileAccessFailed(p, str(e)) from e
        with fh:
            return cls.from_reader(fh, delimiters)

    @property
    def n_columns(self) -> int:
        return len(self.columns)

    @property
    def n_rows(self) -> int:
        return len(self.columns[0].rows) if self.columns else 0

    @property
    def headers(self) -> List[Optional[str]]:
        return [c.header for c in self.columns]

    def column_index(self, name: str) -> Optional[int]:
        """Index of the first column whose header equals *name*, else ``None``."""
        for i, col in enumerate(self.columns):
            if col.header == name:
                return i
        return None

    def rows(self) -> Iterator[List[Value]]:
        """Row-major view: one list of values per row."""
        for r in range(self.n_rows):
            yield [col.rows[r] for col in self.columns]
