"""Tests for rate limiting utilities."""

from __future__ import annotations

from unittest.mock import patch

from kubernetes.client.exceptions import ApiException

import memcached_operator.utils.rate_limit as rl
from memcached_operator.utils.rate_limit import is_rate_limit_error, rate_limit_k8s


class TestRateLimitK8s:
    """Test cases for Kubernetes API rate limiting."""

    def test_rate_limit_k8s_decorator(self):
        """Test that k8s rate limiting decorator works."""
        call_count = 0

        @rate_limit_k8s
        def test_func():
            nonlocal call_count
            call_count += 1
            return "success"

        assert test_func() == "success"
        assert call_count == 1

    def test_rate_limit_k8s_with_args(self):
        """Test rate limiting with function arguments."""
        @rate_limit_k8s
        def test_func(a, b, c=None):
            return f"{a}-{b}-{c}"

        assert test_func("x", "y", c="z") == "x-y-z"

    @patch("memcached_operator.utils.rate_limit.time.sleep")
    def test_rate_limit_k8s_sleeps_when_needed(self, mock_sleep):
        """Test that rate limiter sleeps when calls are too fast."""
        with patch("memcached_operator.utils.rate_limit._K8S_RATE_LIMIT_PER_SECOND", 1.0):
            rl._k8s_last_call_time = 0.0

            @rate_limit_k8s
            def test_func():
                return "ok"

            with patch("memcached_operator.utils.rate_limit.time.time", return_value=10.0):
                test_func()
            mock_sleep.assert_not_called()

            with patch("memcached_operator.utils.rate_limit.time.time", return_value=10.1):
                test_func()

            mock_sleep.assert_called_once()
            assert abs(mock_sleep.call_args[0][0] - 0.9) < 1e-6

    def test_exceptions_propagate(self):
        """Test the wrapped function's errors are not swallowed."""
        @rate_limit_k8s
        def test_func():
            raise ApiException(status=500)

        try:
            test_func()
        except ApiException as e:
            assert e.status == 500
        else:
            raise AssertionError("expected ApiException")


class TestIsRateLimitError:
    """Test cases for throttling detection."""

    def test_429(self):
        assert is_rate_limit_error(ApiException(status=429, reason="Too Many Requests"))

    def test_503_with_rate_limit(self):
        """Test 503 counts only when it mentions a rate limit."""
        assert is_rate_limit_error(ApiException(status=503, reason="Service Unavailable: rate limit exceeded"))
        assert not is_rate_limit_error(ApiException(status=503, reason="Service Unavailable"))

    def test_other_errors(self):
        assert not is_rate_limit_error(ApiException(status=404, reason="Not Found"))
        assert not is_rate_limit_error(ValueError("429"))
