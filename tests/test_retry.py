"""
Tests for download retry logic.
"""

import pytest
from rorlink.retry import (
    exponential_backoff,
    is_transient_error,
    parse_retry_after,
    should_retry_http_status,
    RetryableHTTPError,
    RetryError,
)


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr("rorlink.retry.time.sleep", lambda s: None)


class TestExponentialBackoff:
    """Test exponential backoff decorator."""

    def test_success_on_first_try(self):
        """Function that succeeds immediately should not retry."""
        call_count = [0]

        @exponential_backoff(max_retries=3, base_delay=0.1)
        def succeeds():
            call_count[0] += 1
            return "metadata"

        assert succeeds() == "metadata"
        assert call_count[0] == 1

    def test_retry_then_succeed(self):
        """Function that fails then succeeds should retry."""
        call_count = [0]

        @exponential_backoff(max_retries=3, base_delay=0.01)
        def fails_twice():
            call_count[0] += 1
            if call_count[0] < 3:
                raise RetryableHTTPError(503, "https://mds.example.org")
            return "metadata"

        assert fails_twice() == "metadata"
        assert call_count[0] == 3

    def test_all_retries_exhausted(self):
        """Should raise RetryError chained to the last failure."""
        call_count = [0]

        @exponential_backoff(max_retries=2, base_delay=0.01)
        def always_fails():
            call_count[0] += 1
            raise ConnectionError("Always fails")

        with pytest.raises(RetryError) as exc_info:
            always_fails()

        assert call_count[0] == 3  # Initial + 2 retries
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    def test_no_retries(self):
        call_count = [0]

        @exponential_backoff(max_retries=0)
        def fails():
            call_count[0] += 1
            raise ConnectionError("down")

        with pytest.raises(RetryError):
            fails()
        assert call_count[0] == 1

    def test_only_catches_specified_exceptions(self):
        """Should only retry on specified exception types."""
        call_count = [0]

        @exponential_backoff(
            max_retries=3,
            base_delay=0.01,
            exceptions=(ConnectionError,)
        )
        def raises_value_error():
            call_count[0] += 1
            raise ValueError("Not retryable")

        with pytest.raises(ValueError):
            raises_value_error()

        assert call_count[0] == 1

    def test_exponential_delay(self):
        """Delay should increase exponentially."""
        delays = []

        @exponential_backoff(
            max_retries=3,
            base_delay=0.01,
            exponential_base=2.0,
            on_retry=lambda attempt, exception, delay: delays.append(delay),
        )
        def always_fails():
            raise ConnectionError("Test")

        with pytest.raises(RetryError):
            always_fails()

        assert delays == [0.01, 0.02, 0.04]

    def test_max_delay_cap(self):
        """Delay should not exceed max_delay."""
        delays = []

        @exponential_backoff(
            max_retries=5,
            base_delay=1.0,
            max_delay=2.0,
            exponential_base=3.0,
            on_retry=lambda attempt, exception, delay: delays.append(delay),
        )
        def always_fails():
            raise ConnectionError("Test")

        with pytest.raises(RetryError):
            always_fails()

        assert len(delays) == 5
        assert all(d <= 2.0 for d in delays)

    def test_retry_after_extends_delay(self):
        """A longer server supplied Retry-After replaces the computed delay."""
        delays = []
        calls = [0]

        @exponential_backoff(
            max_retries=2,
            base_delay=1.0,
            max_delay=30.0,
            on_retry=lambda attempt, exception, delay: delays.append(delay),
        )
        def rate_limited():
            calls[0] += 1
            if calls[0] == 1:
                raise RetryableHTTPError(429, "https://api.github.com/repos", retry_after=120)
            if calls[0] == 2:
                raise RetryableHTTPError(503, "https://api.github.com/repos", retry_after=0.5)
            return "listing"

        assert rate_limited() == "listing"
        assert delays == [30.0, 2.0]

    def test_parse_retry_after(self):
        assert parse_retry_after("5") == 5.0
        assert parse_retry_after(" 1.5 ") == 1.5
        assert parse_retry_after(None) is None
        assert parse_retry_after("Wed, 21 Oct 2026 07:28:00 GMT") is None
        assert parse_retry_after("-3") is None


class TestTransientErrorDetection:
    """Test transient error detection utilities."""

    def test_retryable_http_error(self):
        error = RetryableHTTPError(429, "https://query.wikidata.org/sparql")
        assert is_transient_error(error)
        assert error.status_code == 429
        assert "429" in str(error)

    def test_detects_timeout_errors(self):
        assert is_transient_error(ConnectionError("Connection timeout"))
        assert is_transient_error(Exception("Read timed out"))

    def test_detects_connection_errors(self):
        assert is_transient_error(Exception("Connection reset by peer"))

    def test_follows_cause_chain(self):
        """Wrapped download failures are judged by their cause."""
        try:
            try:
                raise RetryableHTTPError(503, "https://mds.edugain.org")
            except RetryableHTTPError as e:
                raise ValueError("edugain download failed after retries") from e
        except ValueError as wrapped:
            assert is_transient_error(wrapped)

        assert not is_transient_error(None)

    def test_non_transient_errors(self):
        """Should not detect permanent errors as transient."""
        errors = [
            Exception("404 Not Found"),
            ValueError("Invalid data"),
            Exception("401 Unauthorized"),
        ]
        for error in errors:
            assert not is_transient_error(error)

    def test_http_status_retry_logic(self):
        """Should correctly identify retryable HTTP status codes."""
        for status in (408, 429, 500, 502, 503, 504):
            assert should_retry_http_status(status)

        for status in (200, 401, 403, 404):
            assert not should_retry_http_status(status)
