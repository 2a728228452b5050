import pytest

from visa_portal.utils.phone import format_phone_number, is_valid_phone_number


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("9876543210", "+919876543210"),
        ("98765 43210", "+919876543210"),
        ("919876543210", "+919876543210"),
        ("+91 98765-43210", "+919876543210"),
        ("0919876543210", "+919876543210"),
        ("12345", "12345"),
    ],
)
def test_format_phone_number(raw, expected):
    assert format_phone_number(raw) == expected


@pytest.mark.parametrize("phone", ["+919876543210", "+911234567890", "9876543210"])
def test_valid_phone_numbers(phone):
    assert is_valid_phone_number(phone)


@pytest.mark.parametrize("phone", ["", "12345", "+1 415 555 0100", "+9198765432101"])
def test_invalid_phone_numbers(phone):
    assert not is_valid_phone_number(phone)
