"""Ingest package - delimited text parsing.

This package handles:
- Guessing field delimiter and decimal separator from file content
- Tokenizing the whole file into rows of typed values

Key classes:
- Tokenizer: one-shot parser of a seekable source

Design principle:
- The source is read once for guessing, rewound, and read in full for parsing
- Malformed literals are fatal, value coercion is not
"""
from .guess_format import guess_format_from_line, guess_format_from_reader
from .tokenizer import Tokenizer, parse, tokenize

__all__ = [
    "guess_format_from_line",
    "guess_format_from_reader",
    "Tokenizer",
    "parse",
    "tokenize",
]
