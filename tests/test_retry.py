from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.utils.retry import is_transient_error, with_retry


class TestIsTransientError:
    def test_detects_known_markers(self):
        assert is_transient_error(Exception("upstream connect error or disconnect"))
        assert is_transient_error(Exception("remote connection failure"))
        assert is_transient_error(Exception("HTTP 503 Service Unavailable"))

    def test_other_errors_are_not_transient(self):
        assert not is_transient_error(ValueError("duplicate key value"))


class TestWithRetry:
    @pytest.mark.asyncio
    async def test_returns_first_success_without_sleeping(self):
        operation = MagicMock(return_value="ok")

        with patch("app.utils.retry.asyncio.sleep", new_callable=AsyncMock) as sleep:
            assert await with_retry(operation) == "ok"

        operation.assert_called_once()
        sleep.assert_not_called()

    @pytest.mark.asyncio
    async def test_awaits_coroutine_results(self):
        operation = AsyncMock(return_value=42)

        assert await with_retry(operation) == 42

    @pytest.mark.asyncio
    async def test_retries_transient_errors_with_backoff(self):
        operation = MagicMock(
            side_effect=[Exception("upstream connect error"), Exception("remote connection failure"), "done"]
        )

        with patch("app.utils.retry.asyncio.sleep", new_callable=AsyncMock) as sleep:
            result = await with_retry(operation, max_retries=3, delay=1.0)

        assert result == "done"
        assert operation.call_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_on_retry_runs_before_each_new_attempt(self):
        operation = MagicMock(
            side_effect=[Exception("upstream connect error"), Exception("upstream connect error"), "done"]
        )
        rollback = MagicMock()

        with patch("app.utils.retry.asyncio.sleep", new_callable=AsyncMock):
            assert await with_retry(operation, on_retry=rollback) == "done"

        assert rollback.call_count == 2

    @pytest.mark.asyncio
    async def test_on_retry_not_called_for_permanent_errors(self):
        operation = MagicMock(side_effect=ValueError("bad data"))
        rollback = MagicMock()

        with pytest.raises(ValueError):
            await with_retry(operation, on_retry=rollback)

        rollback.assert_not_called()

    @pytest.mark.asyncio
    async def test_non_transient_error_propagates_immediately(self):
        operation = MagicMock(side_effect=ValueError("bad data"))

        with patch("app.utils.retry.asyncio.sleep", new_callable=AsyncMock) as sleep:
            with pytest.raises(ValueError, match="bad data"):
                await with_retry(operation)

        operation.assert_called_once()
        sleep.assert_not_called()

    @pytest.mark.asyncio
    async def test_raises_last_error_after_exhausting_attempts(self):
        operation = MagicMock(side_effect=Exception("503 upstream"))

        with patch("app.utils.retry.asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(Exception, match="503 upstream"):
                await with_retry(operation, max_retries=2)

        assert operation.call_count == 2

    @pytest.mark.asyncio
    async def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            await with_retry(MagicMock(), max_retries=0)
