from __future__ import annotations

import io
from typing import List

import pytest

from csv_golden_compare.errors import UnterminatedLiteral
from csv_golden_compare.ingest.tokenizer import (
    LINE_BREAK,
    Token,
    TokenKind,
    Tokenizer,
    find_next_unescaped,
    parse,
    tokenize,
)
from csv_golden_compare.models.config import Delimiters
from csv_golden_compare.models.value import Quantity, Value


def _fields(tokens: List[Token]) -> List[str]:
    return [t.text for t in tokens if t.kind is TokenKind.FIELD]


# -----------------------------------------------------------------------
# Low level scanning
# -----------------------------------------------------------------------


def test_find_next_unescaped() -> None:
    assert find_next_unescaped("...\\,...,", ",") == 8
    assert find_next_unescaped(",abc", ",") == 0
    assert find_next_unescaped("abc", ",") is None
    assert find_next_unescaped("a,b,c", ",", 2) == 3


def test_plain_fields() -> None:
    tokens = tokenize("bla,blubb,2.0", ",")
    assert tokens == [Token.field("bla"), Token.field("blubb"), Token.field("2.0")]


def test_newlines_break_rows() -> None:
    tokens = tokenize("bla,bla\nbla,bla", ",")
    assert len(tokens) == 5
    assert tokens[2] == LINE_BREAK
    assert _fields(tokens) == ["bla"] * 4


def test_trailing_empty_field_is_kept() -> None:
    assert _fields(tokenize("a,b,", ",")) == ["a", "b", ""]
    assert _fields(tokenize("a,b,\n", ",")) == ["a", "b", ""]


def test_no_field_separator_gives_whole_lines() -> None:
    tokens = tokenize("x,y\nz", None)
    assert tokens == [Token.field("x,y"), LINE_BREAK, Token.field("z")]


# -----------------------------------------------------------------------
# String literals and escapes
# -----------------------------------------------------------------------


def test_literal_with_field_separator() -> None:
    assert _fields(tokenize('bla,"bla,bla",2.0', ",")) == ["bla", '"bla,bla"', "2.0"]


def test_literal_with_newline() -> None:
    tokens = tokenize('bla,"bla\nbla",2.0', ",")
    assert LINE_BREAK not in tokens
    assert _fields(tokens) == ["bla", '"bla\nbla"', "2.0"]


def test_escaped_quotes() -> None:
    text = '\\"bla,"\'bla\\"\nbla\'",2.0'
    assert _fields(tokenize(text, ",")) == ['\\"bla', '"\'bla\\"\nbla\'"', "2.0"]


def test_doubled_quotes_stay_in_one_field() -> None:
    text = '"""Scene""=>""Mesh 1"""'
    assert _fields(tokenize(text, ",")) == [text]


def test_literal_followed_by_text() -> None:
    assert _fields(tokenize('"a", trailing;b', ";")) == ['"a", trailing', "b"]


def test_literal_followed_by_newline() -> None:
    tokens = tokenize('"a" x\nb', ",")
    assert tokens == [Token.field('"a" x'), LINE_BREAK, Token.field("b")]


def test_unterminated_literal_raises() -> None:
    with pytest.raises(UnterminatedLiteral) as exc:
        tokenize('bla,"unterminated', ",")
    assert exc.value.position == 4


def test_long_input_is_linear_enough() -> None:
    line = ",".join(str(i) for i in range(50)) + "\n"
    tokens = tokenize(line * 2000, ",")
    assert len(tokens) == 2000 * 51


# -----------------------------------------------------------------------
# Tokenizer over byte sources
# -----------------------------------------------------------------------


def test_bom_is_trimmed() -> None:
    rows = parse(io.BytesIO("\ufeffHallo\n".encode("utf-8")))
    assert rows == [[Value.from_string("Hallo")]]


def test_trailing_newlines_are_cut() -> None:
    rows = parse(io.BytesIO(b"bla\n2.0\n\n\n"), Delimiters(None, "."))
    assert rows == [[Value.from_string("bla")], [Value.from_quantity(Quantity(2.0))]]


def test_carriage_returns_are_removed() -> None:
    rows = parse(io.BytesIO(b"a,b\r\n1,2\r\n"))
    assert rows == [
        [Value.from_string("a"), Value.from_string("b")],
        [Value.from_quantity(Quantity(1.0)), Value.from_quantity(Quantity(2.0))],
    ]


def test_guessed_delimiters_are_recorded() -> None:
    parser = Tokenizer(io.BytesIO(b"Name;Volume\nPore 1;1,5 mm3\n"))
    assert parser.delimiters == Delimiters(";", ",")
    rows = parser.parse_to_rows()
    assert rows[1][1] == Value.from_quantity(Quantity(1.5, "mm3"))
    assert any(w.startswith("Guessed delimiters") for w in parser.warnings)


def test_field_delimiter_is_guessed_when_only_decimal_is_set() -> None:
    parser = Tokenizer(io.BytesIO(b"Pore 1;1,50\nPore 2;2,5\n"), Delimiters(None, ","))
    assert parser.delimiters == Delimiters(";", ",")
    rows = parser.parse_to_rows()
    assert rows[0] == [Value.from_string("Pore 1"), Value.from_quantity(Quantity(1.5))]
    assert rows[1][1] == Value.from_quantity(Quantity(2.5))


def test_configured_decimal_wins_over_guessed() -> None:
    parser = Tokenizer(io.BytesIO(b"x;y\n1.5;2\n"), Delimiters(None, ","))
    assert parser.delimiters == Delimiters(";", ",")
    assert any(w.startswith("Guessed delimiters") for w in parser.warnings)


def test_configured_field_delimiter_is_not_guessed() -> None:
    parser = Tokenizer(io.BytesIO(b"x;y\n"), Delimiters(",", None))
    assert parser.delimiters == Delimiters(",", None)
    assert parser.parse_to_rows() == [[Value.from_string("x;y")]]
    assert parser.warnings == []


def test_invalid_utf8_is_replaced_with_warning() -> None:
    parser = Tokenizer(io.BytesIO(b"a;\xff\n"), Delimiters(";", None))
    rows = parser.parse_to_rows()
    assert rows[0][1] == Value.from_string("\ufffd")
    assert len(parser.warnings) == 1


def test_tokenizer_is_one_shot() -> None:
    parser = Tokenizer(io.BytesIO(b"a,b\n"), Delimiters(",", "."))
    parser.tokenize()
    with pytest.raises(RuntimeError):
        parser.tokenize()
