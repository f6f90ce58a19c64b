"""Tests for typed coercion of environment strings."""

import pytest

from azconfig.coerce import env_value, parse_bool, parse_float, parse_int
from azconfig.errors import ConfigurationError, MalformedValue

pytestmark = pytest.mark.unit


class TestEnvValue:
    """Unset and empty variables are both absent."""

    def test_unset_is_none(self):
        """A missing variable reads as None."""
        assert env_value({}, "LOCATION") is None

    def test_empty_is_none(self):
        """An empty variable reads as None."""
        assert env_value({"LOCATION": ""}, "LOCATION") is None

    def test_whitespace_is_kept(self):
        """Whitespace is returned untouched for the parsers to judge."""
        assert env_value({"LOCATION": " westus "}, "LOCATION") == " westus "


class TestParseBool:
    """Boolean literals accepted by the environment path."""

    @pytest.mark.parametrize("raw", ["1", "t", "T", "TRUE", "true", "True"])
    def test_true_literals(self, raw):
        """Every true literal parses to True."""
        assert parse_bool("ENABLE_BACKOFF", raw) is True

    @pytest.mark.parametrize("raw", ["0", "f", "F", "FALSE", "false", "False"])
    def test_false_literals(self, raw):
        """Every false literal parses to False."""
        assert parse_bool("ENABLE_BACKOFF", raw) is False

    @pytest.mark.parametrize("raw", ["yes", "no", "tRuE", " true", "2", "on"])
    def test_rejects_other_strings(self, raw):
        """Anything outside the literal sets is malformed."""
        with pytest.raises(MalformedValue, match="ENABLE_BACKOFF"):
            parse_bool("ENABLE_BACKOFF", raw)

    def test_error_carries_key_and_raw(self):
        """MalformedValue records the variable, raw string and target type."""
        with pytest.raises(MalformedValue) as excinfo:
            parse_bool("ARM_USE_MANAGED_IDENTITY_EXTENSION", "yes")

        assert excinfo.value.key == "ARM_USE_MANAGED_IDENTITY_EXTENSION"
        assert excinfo.value.raw == "yes"
        assert excinfo.value.expected == "bool"
        assert isinstance(excinfo.value, ConfigurationError)


class TestParseInt:
    """Signed base-10 integers within 64 bits."""

    @pytest.mark.parametrize("raw,expected", [("0", 0), ("42", 42), ("-7", -7), ("+3", 3), ("007", 7)])
    def test_valid(self, raw, expected):
        """Signed and zero-padded decimals parse."""
        assert parse_int("BACKOFF_RETRIES", raw) == expected

    @pytest.mark.parametrize("raw", ["1.5", "abc", " 1", "1 ", "1_000", "0x10", ""])
    def test_rejects_malformed(self, raw):
        """Fractions, padding, separators and other bases are rejected."""
        with pytest.raises(MalformedValue, match="as int"):
            parse_int("BACKOFF_RETRIES", raw)

    def test_rejects_overflow(self):
        """Values beyond 64 bits are rejected."""
        with pytest.raises(MalformedValue):
            parse_int("BACKOFF_RETRIES", str(2 ** 63))

    def test_accepts_int64_bounds(self):
        """Both 64-bit bounds are accepted."""
        assert parse_int("K", str(2 ** 63 - 1)) == 2 ** 63 - 1
        assert parse_int("K", str(-(2 ** 63))) == -(2 ** 63)


class TestParseFloat:
    """Floating point literals."""

    @pytest.mark.parametrize("raw,expected", [("1", 1.0), ("1.5", 1.5), ("-0.25", -0.25), ("1e2", 100.0)])
    def test_valid(self, raw, expected):
        """Integer, decimal and exponent forms parse."""
        assert parse_float("RATE_LIMIT_READ_QPS", raw) == expected

    @pytest.mark.parametrize("raw", ["abc", "1.5.0", " 1.5", "1.5 ", "1_0", ""])
    def test_rejects_malformed(self, raw):
        """Padding and underscores are rejected even though float() allows them."""
        with pytest.raises(MalformedValue, match="RATE_LIMIT_READ_QPS"):
            parse_float("RATE_LIMIT_READ_QPS", raw)
