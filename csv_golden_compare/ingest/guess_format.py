"""Delimiter inference for loosely formatted delimited text.

Field separator: ``;`` wins whenever present; otherwise the first ``,`` or ``|``
that directly follows a word character. Decimal separator: the candidate of
``,``/``.`` (minus the field separator) found most often between two digits.
Ties prefer ``.``.
"""

from __future__ import annotations

import re
from collections import Counter
from typing import BinaryIO, List, Optional, Tuple

from csv_golden_compare.models.config import Delimiters


_FIELD_SEP_RE = re.compile(r"\w([,|])[\W\w]")
_DECIMAL_CANDIDATES = (".", ",")  # order = tie-break preference
_BOM = "\ufeff"


def guess_format_from_line(
    line: str,
    field_separator_hint: Optional[str] = None,
) -> Tuple[Optional[str], Optional[str]]:
    """Return ``(field_separator, decimal_separator)`` for one line; either may be ``None``."""
    field_sep = field_separator_hint
    if field_sep is None:
        if ";" in line:
            field_sep = ";"
        else:
            m = _FIELD_SEP_RE.search(line)
            if m:
                field_sep = m.group(1)

    candidates = [c for c in _DECIMAL_CANDIDATES if c != field_sep]
    dec_re = re.compile(r"\d([" + re.escape("".join(candidates)) + r"])\d")
    counts = Counter(m.group(1) for m in dec_re.finditer(line))
    if not counts:
        return field_sep, None

    decimal_sep = max(candidates, key=lambda c: (counts.get(c, 0), -candidates.index(c)))
    return field_sep, decimal_sep


def _decode_line(raw) -> str:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    return raw.rstrip("\r\n")


def guess_format_from_reader(source: BinaryIO, warnings: Optional[List[str]] = None) -> Delimiters:
    """
    Scan *source* line by line until both separators are known or input ends.

    The source is rewound to the start afterwards. An undetected field separator
    stays ``None`` (one field per row); an undetected decimal separator means no
    substitution happens at parse time.
    """
    field_sep: Optional[str] = None
    decimal_sep: Optional[str] = None

    for i, raw in enumerate(source):
        line = _decode_line(raw)
        if i == 0:
            line = line.lstrip(_BOM)
        field_sep, line_decimal = guess_format_from_line(line, field_sep)
        if line_decimal is not None and (decimal_sep is None or decimal_sep == field_sep):
            decimal_sep = line_decimal
        if field_sep is not None and decimal_sep is not None and decimal_sep != field_sep:
            break

    source.seek(0)

    if decimal_sep is not None and decimal_sep == field_sep:
        decimal_sep = None

    if warnings is not None:
        warnings.append(
            f"Guessed delimiters: field={field_sep!r}, decimal={decimal_sep!r}"
        )
        if field_sep is None:
            warnings.append("No field delimiter detected, reading one field per row")
    return Delimiters(field_delimiter=field_sep, decimal_separator=decimal_sep)
