from decimal import Decimal

import pytest

from seiton.utils.validation import is_valid_email, parse_amount


@pytest.mark.parametrize("text, expected", [
    ("100,50", Decimal("100.50")),
    (" 7 ", Decimal("7")),
    ("-3.2", Decimal("-3.2")),
])
def test_parse_amount(text, expected):
    assert parse_amount(text) == expected


@pytest.mark.parametrize("text", ["", "abc", "1.2.3", "10.555", "1e5"])
def test_parse_amount_rejects(text):
    with pytest.raises(ValueError):
        parse_amount(text)


def test_three_decimals_for_quantities():
    assert parse_amount("0,125", max_decimal_places=3) == Decimal("0.125")


def test_email_shape():
    assert is_valid_email("owner@example.com")
    assert not is_valid_email("owner@example")
