"""Tests for fraction rendering and unit normalization."""

from __future__ import annotations

import math

import pytest

from potluck.grocery.quantity import decimal_to_fraction, normalize_unit


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0, "0"),
        (2, "2"),
        (3.0, "3"),
        (0.5, "1/2"),
        (1.5, "1 1/2"),
        (0.25, "1/4"),
        (2.75, "2 3/4"),
        (1 / 3, "1/3"),
        (1.333, "1 1/3"),
        (2 / 3, "2/3"),
        (0.66, "2/3"),
        (1.125, "1 1/8"),
        (0.875, "7/8"),
    ],
)
def test_decimal_to_fraction_snaps_to_cooking_fractions(value, expected):
    assert decimal_to_fraction(value) == expected


def test_decimal_to_fraction_falls_back_to_two_decimals():
    assert decimal_to_fraction(0.1) == "0.1"
    assert decimal_to_fraction(2.2) == "2.2"
    assert decimal_to_fraction(1.456) == "1.46"


@pytest.mark.parametrize("value", [-0.5, math.inf, math.nan])
def test_decimal_to_fraction_rejects_invalid_values(value):
    with pytest.raises(ValueError):
        decimal_to_fraction(value)


@pytest.mark.parametrize(
    ("unit", "expected"),
    [
        ("cups", "cup"),
        ("Cups", "cup"),
        (" tablespoons ", "tbsp"),
        ("tsp", "tsp"),
        ("lbs", "lb"),
        ("cloves", "clove"),
        ("handful", "handful"),
        ("", None),
        ("   ", None),
        (None, None),
    ],
)
def test_normalize_unit(unit, expected):
    assert normalize_unit(unit) == expected
