"""Tokenizer for heterogeneous delimited text.

Lexical rules, scanning left to right:

- ``\\`` before a character escapes it: the character is never structural.
- ``"`` opens a literal that runs to the next unescaped, undoubled ``"``
  (``""`` inside is an embedded quote). Newlines and field separators inside
  belong to the field, and the quotes stay part of the emitted text.
- After a literal closes, the field continues up to the next field separator,
  unless a newline comes first: then the newline ends field and row.
- An unescaped newline ends the row (the pending text, trimmed, is its last field).
- An unescaped field separator ends the field.
- End of input flushes remaining text as a trailing field.

The whole source is read into memory; ``\\r`` is removed and a leading BOM dropped.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Dict, List, Optional, Tuple

from csv_golden_compare.errors import UnterminatedLiteral
from csv_golden_compare.ingest.guess_format import guess_format_from_reader
from csv_golden_compare.models.config import Delimiters
from csv_golden_compare.models.value import Value


BOM = "\ufeff"
ESCAPE = "\\"
QUOTE = '"'
NEW_LINE = "\n"
CARRIAGE_RETURN = "\r"


class TokenKind(Enum):
    FIELD = "field"
    LINE_BREAK = "line_break"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str = ""

    @classmethod
    def field(cls, text: str) -> Token:
        return cls(TokenKind.FIELD, text)


LINE_BREAK = Token(TokenKind.LINE_BREAK)


class _SpecialKind(Enum):
    QUOTE = 0
    NEW_LINE = 1
    FIELD_STOP = 2


class _Finder:
    """Memoized search for the next unescaped occurrence of a character.

    Keeps the whole scan linear: a cached hit stays valid for every later start
    position up to the hit itself.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self._cache: Dict[str, Tuple[int, int]] = {}

    def find(self, ch: str, start: int) -> Optional[int]:
        entry = self._cache.get(ch)
        if entry is not None:
            from_pos, hit = entry
            if from_pos <= start and (hit < 0 or hit >= start):
                return hit if hit >= 0 else None
        hit = self._scan(ch, start)
        self._cache[ch] = (start, hit)
        return hit if hit >= 0 else None

    def _scan(self, ch: str, start: int) -> int:
        text = self.text
        pos = text.find(ch, start)
        while pos > 0 and text[pos - 1] == ESCAPE:
            pos = text.find(ch, pos + 1)
        return pos


def find_next_unescaped(text: str, ch: str, start: int = 0) -> Optional[int]:
    """Index of the first occurrence of *ch* at or after *start* not preceded by a backslash."""
    return _Finder(text).find(ch, start)


def _next_special(finder: _Finder, start: int, field_sep: Optional[str]) -> Optional[Tuple[_SpecialKind, int]]:
    hits = [
        (_SpecialKind.QUOTE, finder.find(QUOTE, start)),
        (_SpecialKind.NEW_LINE, finder.find(NEW_LINE, start)),
    ]
    if field_sep is not None:
        hits.append((_SpecialKind.FIELD_STOP, finder.find(field_sep, start)))
    found = [(kind, pos) for kind, pos in hits if pos is not None]
    if not found:
        return None
    return min(found, key=lambda kp: kp[1])


def _literal_end(finder: _Finder, open_pos: int) -> int:
    text = finder.text
    search = open_pos + 1
    while True:
        k = finder.find(QUOTE, search)
        if k is None:
            raise UnterminatedLiteral(open_pos)
        if k + 1 < len(text) and text[k + 1] == QUOTE:
            search = k + 2
            continue
        return k


def tokenize(text: str, field_sep: Optional[str]) -> List[Token]:
    """Split *text* into field and line-break tokens.

    With ``field_sep=None`` every line is a single field.
    """
    tokens: List[Token] = []
    finder = _Finder(text)
    n = len(text)
    pos = 0
    after_field_stop = False

    while True:
        special = _next_special(finder, pos, field_sep)
        if special is None:
            break
        kind, idx = special

        if kind is _SpecialKind.FIELD_STOP:
            tokens.append(Token.field(text[pos:idx]))
            pos = idx + 1
            after_field_stop = True
        elif kind is _SpecialKind.NEW_LINE:
            tokens.append(Token.field(text[pos:idx].strip()))
            tokens.append(LINE_BREAK)
            pos = idx + 1
            after_field_stop = False
        else:
            after_quote = _literal_end(finder, idx) + 1
            field_end = finder.find(field_sep, after_quote) if field_sep is not None else None
            line_end = finder.find(NEW_LINE, after_quote)
            field_end = n if field_end is None else field_end
            line_end = n if line_end is None else line_end
            if line_end < field_end:
                tokens.append(Token.field(text[pos:line_end].strip()))
                tokens.append(LINE_BREAK)
                pos = line_end + 1
                after_field_stop = False
            else:
                tokens.append(Token.field(text[pos:field_end]))
                pos = field_end + 1
                after_field_stop = field_end < n

    if pos < n or after_field_stop:
        tokens.append(Token.field(text[pos:]))
    return tokens


def _is_blank_row(row: List[str]) -> bool:
    return len(row) == 0 or (len(row) == 1 and row[0].strip() == "")


class Tokenizer:
    """
    One-shot parser of a seekable source into rows of :class:`Value`.

    An unset field delimiter is guessed from the content first, then the source is
    re-read from the start. A configured decimal separator is kept over the guessed
    one. ``delimiters`` holds what is used.
    A tokenizer consumes its source; build a new one to parse again.
    """

    def __init__(self, source: BinaryIO, delimiters: Optional[Delimiters] = None) -> None:
        self.warnings: List[str] = []
        delimiters = delimiters or Delimiters()
        if delimiters.field_delimiter is None:
            guessed = guess_format_from_reader(source, self.warnings)
            if delimiters.decimal_separator is not None:
                guessed = Delimiters(guessed.field_delimiter, delimiters.decimal_separator)
            delimiters = guessed
        self.delimiters = delimiters
        self._source = source
        self._consumed = False

    def _read_text(self) -> str:
        data = self._source.read()
        if isinstance(data, bytes):
            try:
                data = data.decode("utf-8")
            except UnicodeDecodeError as e:
                self.warnings.append(f"Input is not valid UTF-8 ({e.reason}), undecodable bytes replaced")
                data = data.decode("utf-8", errors="replace")
        if data.startswith(BOM):
            data = data[1:]
        return data.replace(CARRIAGE_RETURN, "")

    def tokenize(self) -> List[Token]:
        if self._consumed:
            raise RuntimeError("Tokenizer already consumed its source; create a new one to re-parse.")
        self._consumed = True
        return tokenize(self._read_text(), self.delimiters.field_delimiter)

    def parse_to_rows(self) -> List[List[Value]]:
        raw_rows: List[List[str]] = [[]]
        for tok in self.tokenize():
            if tok.kind is TokenKind.LINE_BREAK:
                raw_rows.append([])
            else:
                raw_rows[-1].append(tok.text)

        while raw_rows and _is_blank_row(raw_rows[-1]):
            raw_rows.pop()

        decimal = self.delimiters.decimal_separator
        return [[Value.from_str(f, decimal) for f in row] for row in raw_rows]


def parse(source: BinaryIO, delimiters: Optional[Delimiters] = None) -> List[List[Value]]:
    """Parse a whole seekable source into rows of values."""
    return Tokenizer(source, delimiters).parse_to_rows()
