from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.errors import ValidationError
from app.shared.validators import (
    add_minutes,
    as_utc,
    clean_description,
    normalize_name,
    parse_timestamp,
    validate_duration,
    validate_email,
    validate_positive_id,
    validate_price,
    validate_us_phone,
)


@pytest.mark.parametrize("value, expected", [(1, 1), ("42", 42), (" 7 ", 7), (3.0, 3)])
def test_positive_ids(value, expected):
    assert validate_positive_id(value) == expected


@pytest.mark.parametrize("value", [0, -1, "0", "abc", "1.5", 2.5, True, None, ""])
def test_invalid_ids(value):
    with pytest.raises(ValidationError) as exc_info:
        validate_positive_id(value, "pet_id")
    assert exc_info.value.message == "invalid pet_id"


def test_parse_timestamp_handles_zulu_and_offsets():
    expected = datetime(2026, 1, 1, 10, 0, tzinfo=timezone.utc)

    assert parse_timestamp("2026-01-01T10:00:00Z") == expected
    assert parse_timestamp("2026-01-01T05:00:00-05:00") == expected
    assert parse_timestamp("2026-01-01T10:00:00") == expected
    assert parse_timestamp(datetime(2026, 1, 1, 10, 0)) == expected


def test_parse_timestamp_converts_aware_values_to_utc():
    tz = timezone(timedelta(hours=9))
    parsed = parse_timestamp(datetime(2026, 1, 1, 19, 0, tzinfo=tz))

    assert parsed.utcoffset() == timedelta(0)
    assert parsed.hour == 10


@pytest.mark.parametrize("value", ["", "   ", "not-a-date", None, 1234])
def test_parse_timestamp_rejects_garbage(value):
    with pytest.raises(ValidationError):
        parse_timestamp(value)


def test_parse_timestamp_rejects_instants_before_datetime_min():
    with pytest.raises(ValidationError) as exc_info:
        parse_timestamp("0001-01-01T00:00:00+05:00")
    assert exc_info.value.message == "invalid start_time"


def test_add_minutes():
    start = datetime(2026, 1, 1, 10, 0, tzinfo=timezone.utc)
    assert add_minutes(start, 30) == datetime(2026, 1, 1, 10, 30, tzinfo=timezone.utc)

    with pytest.raises(ValidationError) as exc_info:
        add_minutes(datetime(9999, 12, 31, 23, 59, tzinfo=timezone.utc), 30)
    assert exc_info.value.message == "invalid start_time"


def test_as_utc():
    assert as_utc(None) is None
    assert as_utc(datetime(2026, 1, 1)).tzinfo == timezone.utc


def test_price_validation():
    assert validate_price("40.00") == Decimal("40.00")
    assert validate_price(0) == Decimal("0")

    for bad in (-1, "abc", "NaN", None, True):
        with pytest.raises(ValidationError):
            validate_price(bad)
    with pytest.raises(ValidationError):
        validate_price(0, allow_zero=False)


def test_duration_validation():
    assert validate_duration(30) == 30
    assert validate_duration("45") == 45

    for bad in (0, -5, 1.5, "ten", None):
        with pytest.raises(ValidationError):
            validate_duration(bad)


def test_normalize_name():
    assert normalize_name("  Rex  ", "pet name") == "Rex"

    with pytest.raises(ValidationError) as exc_info:
        normalize_name("", "pet name")
    assert exc_info.value.message == "pet name cannot be empty"

    with pytest.raises(ValidationError):
        normalize_name("x" * 61, "pet name")


def test_clean_description():
    assert clean_description(None) is None
    assert clean_description("   ") is None
    assert clean_description(" calm dog ") == "calm dog"
    with pytest.raises(ValidationError):
        clean_description("x" * 2001)


def test_phone_and_email():
    assert validate_us_phone("+1 (555) 555-0100") == "+15555550100"
    assert validate_email(" Dana@Example.COM ") == "dana@example.com"
    assert validate_email("") is None

    with pytest.raises(ValidationError):
        validate_us_phone("555-0100")
    with pytest.raises(ValidationError):
        validate_email("not-an-email")


def test_validation_error_is_a_value_error():
    # pydantic field validators only convert ValueError subclasses
    assert issubclass(ValidationError, ValueError)
