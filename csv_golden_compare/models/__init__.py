from .value import Quantity, Value, ValueKind
from .config import CSVCompareConfig, Delimiters, Mode, ModeKind
from .table import Column, Position, Table

__all__ = [
    "Quantity",
    "Value",
    "ValueKind",
    "CSVCompareConfig",
    "Delimiters",
    "Mode",
    "ModeKind",
    "Column",
    "Position",
    "Table",
]
