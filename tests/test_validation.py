"""
Unit tests for input validation and timestamp helpers.
"""

from datetime import datetime, timedelta, timezone

import pytest

from tradieiq.models.errors import ErrorCode, TradieError
from tradieiq.utils.passwords import hash_password, verify_password
from tradieiq.utils.validation import (
    MAX_PASSWORD_LENGTH,
    format_utc_timestamp,
    get_current_utc_timestamp,
    is_valid_email,
    normalize_email,
    parse_utc_timestamp,
    validate_credentials_present,
    validate_new_password,
)


class TestValidateCredentialsPresent:
    def test_returns_stripped_email(self):
        assert validate_credentials_present("  tom@example.com ", "pw") == "tom@example.com"

    @pytest.mark.parametrize(
        "email,password",
        [("", "secret"), ("   ", "secret"), ("tom@example.com", ""), (None, "secret"), ("tom@example.com", None)],
    )
    def test_missing_field(self, email, password):
        with pytest.raises(TradieError) as exc_info:
            validate_credentials_present(email, password)

        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR
        assert exc_info.value.message == "Please enter both email and password"


class TestValidateNewPassword:
    def test_accepts_minimum_length(self):
        assert validate_new_password("abcdef", 6) == "abcdef"

    def test_too_short(self):
        with pytest.raises(TradieError) as exc_info:
            validate_new_password("abc", 6)
        assert exc_info.value.message == "Password must be at least 6 characters"

    def test_custom_minimum(self):
        with pytest.raises(TradieError) as exc_info:
            validate_new_password("abcdef", 8)
        assert "at least 8" in exc_info.value.message

    def test_too_long(self):
        with pytest.raises(TradieError):
            validate_new_password("x" * (MAX_PASSWORD_LENGTH + 1), 6)


class TestEmail:
    @pytest.mark.parametrize("email", ["tom@example.com", "a.b+c@sub.example.co.nz"])
    def test_valid(self, email):
        assert is_valid_email(email)

    @pytest.mark.parametrize("email", [None, "", "tom", "tom@", "@example.com", "tom@example", "t om@example.com"])
    def test_invalid(self, email):
        assert not is_valid_email(email)

    def test_normalize(self):
        assert normalize_email("  Tom@Example.COM ") == "tom@example.com"


class TestTimestamps:
    def test_format_millisecond_precision(self):
        moment = datetime(2026, 2, 4, 3, 47, 36, 966123, tzinfo=timezone.utc)
        assert format_utc_timestamp(moment) == "2026-02-04T03:47:36.966Z"

    def test_format_converts_to_utc(self):
        moment = datetime(2026, 2, 4, 13, 0, tzinfo=timezone(timedelta(hours=10)))
        assert format_utc_timestamp(moment) == "2026-02-04T03:00:00.000Z"

    def test_naive_treated_as_utc(self):
        assert format_utc_timestamp(datetime(2026, 1, 1)) == "2026-01-01T00:00:00.000Z"

    def test_parse(self):
        parsed = parse_utc_timestamp("2026-02-04T03:47:36.966Z")
        assert parsed == datetime(2026, 2, 4, 3, 47, 36, 966000, tzinfo=timezone.utc)

    def test_parse_empty(self):
        assert parse_utc_timestamp(None) is None
        assert parse_utc_timestamp("") is None

    def test_current_timestamp_format(self):
        value = get_current_utc_timestamp()
        assert value.endswith("Z")
        assert parse_utc_timestamp(value).tzinfo is not None


class TestPasswords:
    def test_hash_verifies(self):
        stored = hash_password("hammer1")
        assert verify_password("hammer1", stored)
        assert not verify_password("hammer2", stored)

    def test_hash_is_salted(self):
        assert hash_password("hammer1") != hash_password("hammer1")

    def test_malformed_hash_does_not_verify(self):
        assert not verify_password("hammer1", "not-a-hash")
