from __future__ import annotations

import math

import pytest

from desk_notify.errors import ParseError
from desk_notify.request.coerce import coerce, hint_from_scalar
from desk_notify.request.models import HintValue


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("true", True),
        ("TRUE", True),
        ("False", False),
        ("42", 42),
        ("-7", -7),
        ("+5", 5),
        ("3.14", 3.14),
        ("1e3", 1000.0),
        ("hello", "hello"),
        ("yes", "yes"),
        ("", ""),
    ],
)
def test_coerce_order(raw: str, expected: object) -> None:
    got = coerce(raw)
    assert got == expected
    assert type(got) is type(expected)


def test_coerce_strips_nul_from_strings() -> None:
    assert coerce("a\0b") == "ab"


def test_coerce_int_wider_than_int64_becomes_float() -> None:
    got = coerce("99999999999999999999")
    assert isinstance(got, float)


def test_coerce_rejects_python_only_number_syntax() -> None:
    assert coerce("1_000") == "1_000"


def test_coerce_special_floats() -> None:
    assert math.isinf(coerce("inf"))


def test_hint_from_scalar_types() -> None:
    assert hint_from_scalar(True) == HintValue("b", True)
    assert hint_from_scalar(3) == HintValue("x", 3)
    assert hint_from_scalar(2**63) == HintValue("t", 2**63)
    assert hint_from_scalar(1.5) == HintValue("d", 1.5)
    assert hint_from_scalar("x\0y") == HintValue("s", "xy")
    assert hint_from_scalar(None) == HintValue("s", "")


@pytest.mark.parametrize("value", [[1, 2], {"a": 1}, -(2**64)])
def test_hint_from_scalar_rejects_non_scalars(value: object) -> None:
    with pytest.raises(ParseError):
        hint_from_scalar(value)


@pytest.mark.parametrize("raw", ["42\n", " 42", "4.2\n", "true\n"])
def test_coerce_surrounding_whitespace_stays_string(raw: str) -> None:
    assert coerce(raw) == raw
