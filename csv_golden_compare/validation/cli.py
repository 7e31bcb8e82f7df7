"""Command line entry point: compare one nominal/actual CSV pair.

Example::

    csv-golden-compare expected/Volume1.csv actual/Volume1.csv --absolute 0.5 --extract-headers

Exit codes: 0 = no differences, 1 = differences found, 2 = comparison failed.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional, Sequence

from csv_golden_compare.analysis.preprocess import Preprocessor
from csv_golden_compare.errors import CsvCompareError
from csv_golden_compare.models.config import CSVCompareConfig, Delimiters, Mode
from csv_golden_compare.validation.runner import compare_paths, export_differences


def _build_config(ns) -> CSVCompareConfig:
    if ns.config:
        cfg_dict = json.loads(Path(ns.config).read_text(encoding="utf-8"))
        base = CSVCompareConfig.from_dict(cfg_dict)
    else:
        base = CSVCompareConfig()

    modes: List[Mode] = list(base.comparison_modes)
    modes.extend(Mode.absolute(t) for t in ns.absolute or [])
    modes.extend(Mode.relative(t) for t in ns.relative or [])
    if ns.ignore:
        modes.append(Mode.ignore())

    delimiters = base.delimiters
    if ns.field_delimiter or ns.decimal_separator:
        delimiters = Delimiters(
            field_delimiter=ns.field_delimiter or delimiters.field_delimiter,
            decimal_separator=ns.decimal_separator or delimiters.decimal_separator,
        )

    preprocessing = list(base.preprocessing or ())
    if ns.extract_headers and Preprocessor.extract_headers() not in preprocessing:
        preprocessing.insert(0, Preprocessor.extract_headers())

    return CSVCompareConfig(
        delimiters=delimiters,
        comparison_modes=tuple(modes),
        exclude_field_regex=ns.exclude if ns.exclude is not None else base.exclude_field_regex,
        preprocessing=tuple(preprocessing) if preprocessing else None,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    import argparse

    p = argparse.ArgumentParser(
        description="Compare an actual CSV file against its golden (nominal) counterpart.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("nominal", type=Path, help="Golden/expected CSV file")
    p.add_argument("actual", type=Path, help="Produced CSV file under test")
    p.add_argument("--config", type=Path, default=None, help="JSON file with a CSV compare configuration")
    p.add_argument("--absolute", type=float, action="append", help="Absolute tolerance (repeatable)")
    p.add_argument("--relative", type=float, action="append", help="Relative tolerance (repeatable)")
    p.add_argument("--ignore", action="store_true", help="Add the Ignore mode (numbers always match)")
    p.add_argument("--exclude", default=None, help="Regex: string cells whose nominal text matches are skipped")
    p.add_argument("--field-delimiter", default=None, help="Field delimiter (guessed if omitted)")
    p.add_argument("--decimal-separator", default=None, help="Decimal separator (guessed if omitted)")
    p.add_argument("--extract-headers", action="store_true", help="Treat the first row as column headers")
    p.add_argument("--out", type=Path, default=None, help="Write differences to this CSV (+ JSON sidecar)")
    ns = p.parse_args(argv)

    try:
        cfg = _build_config(ns)
    except (OSError, ValueError) as e:
        print(f"[error] invalid configuration: {e}")
        return 2

    try:
        result = compare_paths(ns.nominal, ns.actual, cfg)
    except CsvCompareError as e:
        print(f"[error] {type(e).__name__}: {e}")
        return 2

    for w in result.warnings:
        tag = "info" if "Guessed delimiters" in w else "warn"
        print(f"[{tag}] {w}")

    for h in result.header_mismatches:
        print(f"  {h}")
    for d in result.differences:
        print(f"  {d}")
    status = "FAILED" if result.is_error else "PASSED"
    print(
        f"[{status}] {ns.nominal} vs {ns.actual}: {len(result.differences)} difference(s), "
        f"{len(result.header_mismatches)} header mismatch(es)"
    )

    if ns.out is not None:
        out = export_differences(result, ns.out)
        print(f"[info] wrote: {out}")

    return 1 if result.is_error else 0


if __name__ == "__main__":
    raise SystemExit(main())
