"""
Unit tests for throttling backoff.

Tests retry bounds, quadratic delays and error classification.
"""

from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError

from aws_service_limits.core.retry import (
    backoff_delay,
    call_with_backoff,
    is_throttling_error,
    with_backoff,
)


def _client_error(code: str, operation: str = "GetAWSDefaultServiceQuota") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": "test"}}, operation)


class TestIsThrottlingError:
    """Test classification of throttling errors."""
    
    def test_too_many_requests_client_error(self):
        """Service Quotas rate limits are throttling errors."""
        assert is_throttling_error(_client_error("TooManyRequestsException"))
    
    def test_throttling_exception_client_error(self):
        """CloudWatch rate limits are throttling errors."""
        assert is_throttling_error(_client_error("ThrottlingException"))
    
    def test_access_denied_is_not_throttling(self):
        """Authorization errors are not retried."""
        assert not is_throttling_error(_client_error("AccessDeniedException"))
    
    def test_message_match(self):
        """Plain errors mentioning the throttling code are recognized."""
        assert is_throttling_error(RuntimeError("TooManyRequestsException: slow down"))
    
    def test_unrelated_error(self):
        """Other errors are not throttling errors."""
        assert not is_throttling_error(ValueError("boom"))


class TestCallWithBackoff:
    """Test retry behavior."""
    
    def setup_method(self):
        """Record sleeps instead of waiting."""
        self.sleeps = []
    
    def _sleep(self, seconds):
        self.sleeps.append(seconds)
    
    def test_success_first_attempt(self):
        """Successful calls are not retried."""
        func = Mock(return_value="ok")
        
        assert call_with_backoff(func, "ec2", sleep=self._sleep) == "ok"
        func.assert_called_once_with("ec2")
        assert self.sleeps == []
    
    def test_throttled_twice_then_succeeds(self):
        """Two throttles then success waits 1 + 4 = 5 seconds."""
        func = Mock(side_effect=[
            _client_error("TooManyRequestsException"),
            _client_error("TooManyRequestsException"),
            "third",
        ])
        
        result = call_with_backoff(func, sleep=self._sleep)
        
        assert result == "third"
        assert func.call_count == 3
        assert self.sleeps == [1, 4]
        assert sum(self.sleeps) == 5
    
    def test_throttled_on_every_attempt_raises_last_error(self):
        """Exhausting five attempts re-raises the last throttling error."""
        errors = [_client_error("TooManyRequestsException") for _ in range(5)]
        func = Mock(side_effect=errors)
        
        with pytest.raises(ClientError) as exc_info:
            call_with_backoff(func, sleep=self._sleep)
        
        assert exc_info.value is errors[-1]
        assert func.call_count == 5
        assert self.sleeps == [1, 4, 9, 16]
    
    def test_non_throttling_error_aborts_immediately(self):
        """Other errors propagate without retrying."""
        func = Mock(side_effect=_client_error("AccessDeniedException"))
        
        with pytest.raises(ClientError):
            call_with_backoff(func, sleep=self._sleep)
        
        func.assert_called_once()
        assert self.sleeps == []
    
    def test_custom_max_attempts(self):
        """The attempt bound is configurable."""
        func = Mock(side_effect=_client_error("ThrottlingException"))
        
        with pytest.raises(ClientError):
            call_with_backoff(func, max_attempts=2, sleep=self._sleep)
        
        assert func.call_count == 2
        assert self.sleeps == [1]
    
    def test_invalid_max_attempts(self):
        """At least one attempt is required."""
        with pytest.raises(ValueError, match="max_attempts must be >= 1"):
            call_with_backoff(Mock(), max_attempts=0, sleep=self._sleep)
    
    def test_decorator(self):
        """with_backoff wraps a function with the same retry policy."""
        func = Mock(side_effect=[_client_error("TooManyRequestsException"), 42])
        wrapped = with_backoff(sleep=self._sleep)(func)
        
        assert wrapped("ec2", "L-1") == 42
        assert func.call_count == 2
        assert self.sleeps == [1]


def test_backoff_delay_is_quadratic():
    """Attempt k waits k squared seconds."""
    assert [backoff_delay(k) for k in range(1, 6)] == [1, 4, 9, 16, 25]
