"""CSV Golden Compare -- rule-driven comparison of produced CSV files against golden references.

This package provides tools for:
- Guessing field delimiter and decimal separator of loosely formatted exports
- Tokenizing delimited text with quoted, escaped and multi-line literals
- Typed cell values (numbers with optional units, or strings)
- Structural preprocessing (header extraction, row/column deletion, sorting)
- Tolerance-aware cell-by-cell diffs with positioned, typed differences

Key principles:
- Value coercion never fails: anything that is not a number stays a string
- Deletions blank cells instead of removing them, so positions stay aligned
- One comparison call returns one result or raises one typed error

Main subpackages:
- models: Value model, table, configuration and tolerance modes
- ingest: Format guessing and tokenizer
- analysis: Preprocessing and diff engine
- validation: File-pair runner, export and command line
"""

__all__ = []
