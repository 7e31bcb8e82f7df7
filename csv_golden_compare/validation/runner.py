"""File-pair comparison runner -- reusable API for golden-tree validation.

This module provides:
1. Parsing a nominal and an actual source into tables (guessing delimiters if unset)
2. Running the configured preprocessing on both tables
3. Diffing them and wrapping the outcome with provenance
4. Exporting the differences (CSV + JSON sidecar)

Each call is self-contained: it either returns a result or raises one
:class:`~csv_golden_compare.errors.CsvCompareError`. Batch callers decide whether
a failed pair aborts the batch.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Tuple

from csv_golden_compare.analysis.diff import DiffType, compare_headers, compare_tables, differences_to_frame
from csv_golden_compare.errors import UnequalRowCount
from csv_golden_compare.models.config import CSVCompareConfig
from csv_golden_compare.models.table import Table


@dataclass
class FileCompareResult:
    """Outcome of comparing one nominal/actual file pair.

    ``header_mismatches`` lists columns whose extracted headers differ; they
    count as a failure just like cell differences.
    """

    nominal_path: Path
    actual_path: Path
    differences: List[DiffType]
    header_mismatches: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_error(self) -> bool:
        return bool(self.differences or self.header_mismatches)


def _preprocess_and_diff(nominal_table: Table, actual_table: Table, config: CSVCompareConfig) -> List[DiffType]:
    for preprocessor in config.preprocessing or ():
        preprocessor.process(nominal_table)
        preprocessor.process(actual_table)

    if nominal_table.n_rows != actual_table.n_rows:
        raise UnequalRowCount(nominal_table.n_rows, actual_table.n_rows)

    return compare_tables(nominal_table, actual_table, config)


def compare_readers(
    nominal: BinaryIO,
    actual: BinaryIO,
    config: CSVCompareConfig,
) -> Tuple[Table, Table, List[DiffType]]:
    """Parse, preprocess and diff two seekable sources.

    Raises
    ------
    UnequalRowCount
        If the preprocessed tables hold a different number of rows.
    """
    nominal_table = Table.from_reader(nominal, config.delimiters)
    actual_table = Table.from_reader(actual, config.delimiters)
    return nominal_table, actual_table, _preprocess_and_diff(nominal_table, actual_table, config)


def compare_paths(
    nominal_path: Path,
    actual_path: Path,
    config: CSVCompareConfig,
) -> FileCompareResult:
    """Compare two CSV files.

    Parameters
    ----------
    nominal_path : Path
        Golden (expected) file
    actual_path : Path
        Produced file under test
    config : CSVCompareConfig
        Delimiters, tolerance modes, exclusion regex and preprocessing

    Returns
    -------
    FileCompareResult
        Differences with provenance; ``is_error`` is True iff any cell difference
        or header mismatch was found
    """
    nominal_path = Path(nominal_path)
    actual_path = Path(actual_path)

    nominal_table = Table.from_path(nominal_path, config.delimiters)
    actual_table = Table.from_path(actual_path, config.delimiters)
    diffs = _preprocess_and_diff(nominal_table, actual_table, config)
    header_mismatches = compare_headers(nominal_table, actual_table)

    warnings: List[str] = []
    warnings.extend(f"nominal: {w}" for w in nominal_table.warnings)
    warnings.extend(f"actual: {w}" for w in actual_table.warnings)

    metadata = {
        "nominal_path": str(nominal_path),
        "actual_path": str(actual_path),
        "config": config.to_dict(),
        "nominal_delimiters": {
            "field_delimiter": nominal_table.delimiters.field_delimiter,
            "decimal_separator": nominal_table.delimiters.decimal_separator,
        },
        "actual_delimiters": {
            "field_delimiter": actual_table.delimiters.field_delimiter,
            "decimal_separator": actual_table.delimiters.decimal_separator,
        },
        "n_rows": nominal_table.n_rows,
        "n_columns": [nominal_table.n_columns, actual_table.n_columns],
        "n_differences": len(diffs),
        "header_mismatches": header_mismatches,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    return FileCompareResult(
        nominal_path=nominal_path,
        actual_path=actual_path,
        differences=diffs,
        header_mismatches=header_mismatches,
        warnings=warnings,
        metadata=metadata,
    )


def export_differences(
    result: FileCompareResult,
    output_path: Path,
    *,
    write_sidecar_json: bool = True,
) -> Path:
    """Export the differences to CSV with optional metadata sidecar.

    Parameters
    ----------
    result : FileCompareResult
        Comparison outcome
    output_path : Path
        Output file path
    write_sidecar_json : bool
        If True, write metadata and warnings to a JSON file next to the CSV

    Returns
    -------
    Path
        Path to the written CSV file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    differences_to_frame(result.differences).to_csv(output_path, index=False)

    if write_sidecar_json:
        json_path = output_path.with_suffix(".json")
        payload = dict(result.metadata)
        payload["warnings"] = list(result.warnings)
        with open(json_path, "w") as f:
            json.dump(payload, f, indent=2, default=str)

    return output_path
