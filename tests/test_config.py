"""Tests for retry configuration - behavior focused."""

import pytest

from backoff_runner.exceptions import (
    NON_RETRYABLE,
    BackoffError,
    ConfigurationError,
    NonRetryableError,
)
from backoff_runner.retry import BackoffConfig, matches_kind


class AuthError(Exception):
    """Caller-defined error kind."""


class TestValidation:
    """Malformed configuration fails immediately."""

    def test_valid_config_is_accepted(self):
        config = BackoffConfig(min_delay=10, max_delay=20, max_attempts=5, max_duration=40)

        assert config.max_duration == 40
        assert config.use_jitter is False

    @pytest.mark.parametrize("max_attempts", [0, -1, 1.5, True, None])
    def test_rejects_bad_max_attempts(self, max_attempts):
        with pytest.raises(ConfigurationError):
            BackoffConfig(min_delay=0, max_delay=10, max_attempts=max_attempts)

    def test_rejects_negative_min_delay(self):
        with pytest.raises(ConfigurationError):
            BackoffConfig(min_delay=-1, max_delay=10, max_attempts=3)

    def test_rejects_max_delay_below_min_delay(self):
        with pytest.raises(ConfigurationError):
            BackoffConfig(min_delay=100, max_delay=10, max_attempts=3)

    def test_rejects_negative_max_duration(self):
        with pytest.raises(ConfigurationError):
            BackoffConfig(min_delay=0, max_delay=10, max_attempts=3, max_duration=-5)

    def test_configuration_error_is_value_error(self):
        """Callers catching ValueError still see configuration errors."""
        with pytest.raises(ValueError):
            BackoffConfig(min_delay=0, max_delay=10, max_attempts=0)

    def test_config_is_immutable(self):
        config = BackoffConfig(min_delay=0, max_delay=10, max_attempts=3)

        with pytest.raises(AttributeError):
            config.max_attempts = 5


class TestNonRetryableKinds:
    """Test error-kind classification."""

    def test_default_matches_marker_error(self):
        config = BackoffConfig(min_delay=0, max_delay=10, max_attempts=3)

        assert config.is_non_retryable(NonRetryableError("stop")) is True
        assert config.is_non_retryable(RuntimeError("boom")) is False

    def test_single_kind_is_normalized_to_tuple(self):
        config = BackoffConfig(min_delay=0, max_delay=10, max_attempts=3, non_retryable=AuthError)

        assert config.non_retryable == (AuthError,)
        assert config.is_non_retryable(AuthError()) is True

    def test_list_of_kinds_matches_any(self):
        config = BackoffConfig(
            min_delay=0,
            max_delay=10,
            max_attempts=3,
            non_retryable=[AuthError, KeyError, NON_RETRYABLE],
        )

        assert config.is_non_retryable(AuthError()) is True
        assert config.is_non_retryable(KeyError("x")) is True
        assert config.is_non_retryable(NonRetryableError()) is True
        assert config.is_non_retryable(ValueError()) is False

    def test_custom_kinds_replace_default(self):
        """Supplying kinds replaces the default tag, but the marker still stops."""
        config = BackoffConfig(min_delay=0, max_delay=10, max_attempts=3, non_retryable=[AuthError])

        assert config.non_retryable == (AuthError,)
        assert config.is_non_retryable(NonRetryableError()) is True
        assert config.is_non_retryable(KeyError("x")) is False

    def test_no_kinds(self):
        config = BackoffConfig(min_delay=0, max_delay=10, max_attempts=3, non_retryable=None)

        assert config.non_retryable == ()
        assert config.is_non_retryable(NonRetryableError()) is True
        assert config.is_non_retryable(ValueError()) is False

    def test_retryable_flag_is_honored(self):
        config = BackoffConfig(min_delay=0, max_delay=10, max_attempts=3, non_retryable=None)

        assert config.is_non_retryable(BackoffError("denied", retryable=False)) is True
        assert config.is_non_retryable(BackoffError("busy")) is False

    def test_string_tag_matches_error_kind_attribute(self):
        config = BackoffConfig(min_delay=0, max_delay=10, max_attempts=3, non_retryable="auth")

        assert config.is_non_retryable(BackoffError("denied", kind="auth")) is True
        assert config.is_non_retryable(BackoffError("other")) is False

    def test_interrupts_are_never_retried(self):
        """BaseExceptions outside Exception always stop the session."""
        config = BackoffConfig(min_delay=0, max_delay=10, max_attempts=3, non_retryable=None)

        assert config.is_non_retryable(KeyboardInterrupt()) is True

    def test_rejects_invalid_kind(self):
        with pytest.raises(ConfigurationError):
            BackoffConfig(min_delay=0, max_delay=10, max_attempts=3, non_retryable=[42])

    def test_matches_kind_on_non_exception_values(self):
        """Callback-style failures may be plain values."""
        assert matches_kind("ERROR", NON_RETRYABLE) is False
        assert matches_kind("ERROR", str) is True


class TestFromMapping:
    """Test building configuration from plain options."""

    def test_accepts_camel_case_options(self):
        config = BackoffConfig.from_mapping(
            {
                "minDelay": 10,
                "maxDelay": 20,
                "maxAttempts": 5,
                "maxDuration": 40,
                "useJitter": True,
                "nonRetryableErrorKinds": [AuthError],
            }
        )

        assert config == BackoffConfig(
            min_delay=10,
            max_delay=20,
            max_attempts=5,
            max_duration=40,
            use_jitter=True,
            non_retryable=(AuthError,),
        )

    def test_accepts_snake_case_options(self):
        config = BackoffConfig.from_mapping({"min_delay": 1, "max_delay": 2, "max_attempts": 3})

        assert config.max_attempts == 3

    def test_rejects_unknown_option(self):
        with pytest.raises(ConfigurationError, match="retries"):
            BackoffConfig.from_mapping({"min_delay": 1, "max_delay": 2, "max_attempts": 3, "retries": 4})

    def test_rejects_missing_required_option(self):
        with pytest.raises(ConfigurationError, match="max_attempts"):
            BackoffConfig.from_mapping({"minDelay": 1, "maxDelay": 2})


class TestPresets:
    """Test preset configurations."""

    def test_aggressive_preset_has_more_attempts(self):
        assert BackoffConfig.aggressive().max_attempts > BackoffConfig.conservative().max_attempts

    def test_aggressive_preset_uses_jitter(self):
        assert BackoffConfig.aggressive().use_jitter is True

    def test_no_retry_preset_has_single_attempt(self):
        assert BackoffConfig.no_retry().max_attempts == 1
