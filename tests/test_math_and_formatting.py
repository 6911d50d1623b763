import math

import pytest

from inverapp.utils.math_utils import to_number, safe_div, round2, floor_decimals, clamp
from inverapp.utils.formatting import format_uf, format_pct, format_clp, uf_to_pesos


@pytest.mark.parametrize("raw, expected", [
    ("1.234,56", 1234.56),
    ("1,234.56", 1234.56),
    ("12,5", 12.5),
    ("  42 ", 42.0),
    (7, 7.0),
    (None, 0.0),
    ("", 0.0),
    ("abc", 0.0),
    (float('nan'), 0.0),
    (float('inf'), 0.0),
    (True, 0.0),
])
def test_to_number_is_total(raw, expected):
    assert to_number(raw) == pytest.approx(expected)


def test_to_number_custom_default():
    assert to_number("garbage", default=None) is None


def test_safe_div_zero_and_garbage_denominator():
    assert safe_div(10, 0) == 0.0
    assert safe_div(10, "x") == 0.0
    assert safe_div(10, 4) == 2.5


def test_round2_half_away_from_zero():
    assert round2(1.005) == 1.01
    assert round2(2.675) == 2.68
    assert round2(-1.005) == -1.01


def test_round2_never_returns_negative_zero():
    value = round2(-0.001)
    assert value == 0.0
    assert math.copysign(1, value) == 1


def test_floor_decimals_truncates():
    assert floor_decimals(0.123456, 4) == pytest.approx(0.1234)
    assert floor_decimals(0.99999, 2) == pytest.approx(0.99)


def test_clamp_coerces_input():
    assert clamp("1,5", 0, 1) == 1
    assert clamp(None, 0, 1) == 0
    assert clamp(-3, 0, 100) == 0


def test_format_uf_and_pct():
    assert format_uf(1234.5) == '1.234,50'
    assert format_uf(0) == '0,00'
    assert format_uf(-1500) == '-1.500,00'
    assert format_uf(float('nan')) == '0,00'
    assert format_pct(5.5) == '5,50%'


def test_format_clp():
    assert format_clp(1234567.8) == '$ 1.234.568'
    assert format_clp(0.4) == '$ 0'
    assert format_clp(None) == '$ 0'
    assert format_clp(-1500) == '-$ 1.500'


def test_uf_to_pesos():
    assert uf_to_pesos(2, 37000.5) == '$ 74.001'
    assert uf_to_pesos(2, None) == '$ 0'
