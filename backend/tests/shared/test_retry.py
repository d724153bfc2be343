"""Tests for shared/retry.py."""

from unittest.mock import AsyncMock, patch

import pytest

from shared.retry import NO_RETRY, RetryPolicy, retry_async


class TestRetryPolicy:
    def test_delay_grows_exponentially(self):
        """Delays should multiply per attempt until max_delay."""
        policy = RetryPolicy(base_delay=0.1, multiplier=2.0, max_delay=0.3, jitter=False)
        assert policy.delay_for(1) == pytest.approx(0.1)
        assert policy.delay_for(2) == pytest.approx(0.2)
        assert policy.delay_for(3) == pytest.approx(0.3)
        assert policy.delay_for(4) == pytest.approx(0.3)

    def test_jitter_stays_within_bound(self):
        """Jittered delay should not exceed the computed delay."""
        policy = RetryPolicy(base_delay=0.2, jitter=True)
        for _ in range(20):
            assert 0 <= policy.delay_for(1) <= 0.2

    def test_rejects_zero_attempts(self):
        """max_attempts below 1 is invalid."""
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)

    def test_rejects_negative_delay(self):
        with pytest.raises(ValueError):
            RetryPolicy(base_delay=-1)


class TestRetryAsync:
    @pytest.mark.asyncio
    async def test_returns_first_success(self):
        """Should not retry when the operation succeeds."""
        operation = AsyncMock(return_value="ok")
        result = await retry_async(operation, RetryPolicy(jitter=False), (KeyError,))
        assert result == "ok"
        operation.assert_awaited_once()

    @pytest.mark.asyncio
    @patch("shared.retry.asyncio.sleep", new_callable=AsyncMock)
    async def test_retries_then_succeeds(self, mock_sleep):
        """Should retry on a listed exception and return the later result."""
        operation = AsyncMock(side_effect=[KeyError("race"), "ok"])
        policy = RetryPolicy(max_attempts=3, base_delay=0.05, jitter=False)

        result = await retry_async(operation, policy, (KeyError,))

        assert result == "ok"
        assert operation.await_count == 2
        mock_sleep.assert_awaited_once_with(0.05)

    @pytest.mark.asyncio
    @patch("shared.retry.asyncio.sleep", new_callable=AsyncMock)
    async def test_raises_after_exhausting_attempts(self, mock_sleep):
        """Should re-raise the last error when attempts run out."""
        operation = AsyncMock(side_effect=KeyError("race"))
        policy = RetryPolicy(max_attempts=3, jitter=False)

        with pytest.raises(KeyError):
            await retry_async(operation, policy, (KeyError,))

        assert operation.await_count == 3
        assert mock_sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_other_exceptions_propagate_immediately(self):
        """Exceptions outside retry_on should not be retried."""
        operation = AsyncMock(side_effect=ValueError("bad"))
        with pytest.raises(ValueError):
            await retry_async(operation, RetryPolicy(), (KeyError,))
        operation.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_retry_policy_tries_once(self):
        """NO_RETRY should make a single attempt."""
        operation = AsyncMock(side_effect=KeyError("race"))
        with pytest.raises(KeyError):
            await retry_async(operation, NO_RETRY, (KeyError,))
        operation.assert_awaited_once()
