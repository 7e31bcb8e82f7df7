"""Tests for tolerance modes and the comparison configuration."""

from __future__ import annotations

import dataclasses

import pytest

from csv_golden_compare.analysis.preprocess import Preprocessor
from csv_golden_compare.models.config import CSVCompareConfig, Delimiters, Mode, ModeKind
from csv_golden_compare.models.value import Quantity


def _q(value: float, unit=None) -> Quantity:
    return Quantity(value, unit)


# -----------------------------------------------------------------------
# Absolute / Relative / Ignore
# -----------------------------------------------------------------------


def test_absolute_mode() -> None:
    abs_tol = Mode.absolute(1.0)
    assert abs_tol.in_tolerance(_q(0.0), _q(1.0))
    assert not abs_tol.in_tolerance(_q(0.0), _q(1.01))
    assert abs_tol.in_tolerance(_q(-0.5), _q(0.5))
    assert not abs_tol.in_tolerance(_q(-0.5), _q(0.51))


def test_relative_mode() -> None:
    rel_tol = Mode.relative(1.0)
    assert rel_tol.in_tolerance(_q(1.0), _q(2.0))
    assert not rel_tol.in_tolerance(_q(1.0), _q(2.01))
    assert rel_tol.in_tolerance(_q(-1.0), _q(-2.0))
    assert not rel_tol.in_tolerance(_q(2.0), _q(4.01))


def test_relative_mode_zero_nominal() -> None:
    rel_tol = Mode.relative(10.0)
    assert rel_tol.in_tolerance(_q(0.0), _q(0.0))
    assert not rel_tol.in_tolerance(_q(0.0), _q(1.0))


def test_ignore_mode() -> None:
    ign = Mode.ignore()
    assert ign.in_tolerance(_q(0.0), _q(1e30))
    assert ign.in_tolerance(_q(1.0, "mm"), _q(2.0, "m"))


def test_zero_tolerance_means_exact() -> None:
    assert Mode.absolute(0.0).in_tolerance(_q(3.5), _q(3.5))
    assert not Mode.absolute(0.0).in_tolerance(_q(3.5), _q(3.5000002))
    assert not Mode.relative(0.0).in_tolerance(_q(3.5), _q(3.4999998))


def test_float_precision_is_accounted_for() -> None:
    nominal = _q(0.03914)
    actual = _q(0.03913)
    assert Mode.absolute(0.00001).in_tolerance(nominal, actual)
    assert Mode.relative(0.00001 / 0.03914).in_tolerance(nominal, actual)


def test_tolerance_is_monotone() -> None:
    nominal, actual = _q(10.0), _q(10.4)
    assert not Mode.absolute(0.3).in_tolerance(nominal, actual)
    passing = [t for t in (0.3, 0.39, 0.41, 0.5, 1.0, 100.0) if Mode.absolute(t).in_tolerance(nominal, actual)]
    assert passing == [0.41, 0.5, 1.0, 100.0]


# -----------------------------------------------------------------------
# NaN and units
# -----------------------------------------------------------------------


def test_nan_pair_passes_every_mode() -> None:
    nan = float("nan")
    for mode in (Mode.absolute(0.0), Mode.relative(0.0), Mode.ignore()):
        assert mode.in_tolerance(_q(nan), _q(nan))
    # NaN against a number only matches under Ignore
    assert not Mode.absolute(1e30).in_tolerance(_q(nan), _q(1.0))


def test_unit_sensitivity() -> None:
    assert not Mode.absolute(1.0).in_tolerance(_q(2.0, "mm"), _q(2.0, "m"))
    assert not Mode.relative(1.0).in_tolerance(_q(2.0), _q(2.0, "m"))
    assert Mode.absolute(1.0).in_tolerance(_q(2.0, "mm"), _q(2.5, "mm"))


def test_infinities() -> None:
    inf = float("inf")
    # identical cells stay identical, including infinities
    assert Mode.absolute(0.0).in_tolerance(_q(inf), _q(inf))
    assert Mode.relative(0.0).in_tolerance(_q(-inf), _q(-inf))
    # an infinity never lies within a finite distance of anything else
    assert not Mode.absolute(1e30).in_tolerance(_q(inf), _q(1.0))
    assert not Mode.absolute(float("inf")).in_tolerance(_q(1.0), _q(inf))
    assert not Mode.relative(1e30).in_tolerance(_q(-inf), _q(inf))
    assert Mode.ignore().in_tolerance(_q(inf), _q(1.0))


def test_minimal_diff_is_below_naive_diff() -> None:
    a, b = _q(1.0), _q(2.0)
    d = a.minimal_diff(b)
    assert d < 1.0
    assert d == b.minimal_diff(a)


# -----------------------------------------------------------------------
# Display and serialization
# -----------------------------------------------------------------------


def test_mode_display() -> None:
    assert str(Mode.absolute(11.0)) == "Absolute (tol: 11)"
    assert str(Mode.absolute(0.00001)) == "Absolute (tol: 0.00001)"
    assert str(Mode.relative(0.5)) == "Relative (tol: 0.5)"
    assert str(Mode.ignore()) == "Ignored"


def test_mode_dict_layout() -> None:
    assert Mode.absolute(0.1).to_dict() == {"Absolute": 0.1}
    assert Mode.ignore().to_dict() == "Ignore"
    assert Mode.from_dict({"Relative": 0.01}) == Mode.relative(0.01)
    assert Mode.from_dict("Ignore").kind is ModeKind.IGNORE
    with pytest.raises(ValueError):
        Mode.from_dict({"Percent": 1})
    with pytest.raises(ValueError):
        Mode.from_dict("Absolute")


def test_config_round_trip() -> None:
    cfg = CSVCompareConfig(
        delimiters=Delimiters(";", ","),
        comparison_modes=[Mode.absolute(0.1), Mode.relative(0.01), Mode.ignore()],
        exclude_field_regex="Surface",
        preprocessing=[Preprocessor.extract_headers(), Preprocessor.sort_by_column_name("Area")],
    )
    assert isinstance(cfg.comparison_modes, tuple)
    assert isinstance(cfg.preprocessing, tuple)

    d = cfg.to_dict()
    assert d["comparison_modes"] == [{"Absolute": 0.1}, {"Relative": 0.01}, "Ignore"]
    assert d["preprocessing"] == ["ExtractHeaders", {"SortByColumnName": "Area"}]
    assert CSVCompareConfig.from_dict(d) == cfg


def test_config_defaults_and_unknown_keys() -> None:
    cfg = CSVCompareConfig.from_dict({})
    assert cfg.delimiters.is_empty()
    assert cfg.comparison_modes == ()
    assert cfg.preprocessing is None
    with pytest.raises(ValueError, match="Unknown configuration keys"):
        CSVCompareConfig.from_dict({"tolerance": 1})


def test_config_is_frozen() -> None:
    cfg = CSVCompareConfig()
    with pytest.raises(dataclasses.FrozenInstanceError):
        cfg.exclude_field_regex = "x"  # type: ignore[misc]


def test_delimiters_must_be_single_characters() -> None:
    with pytest.raises(ValueError):
        Delimiters(field_delimiter=";;")
    assert Delimiters.autodetect().is_empty()
    assert not Delimiters(decimal_separator=",").is_empty()
