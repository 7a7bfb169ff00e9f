"""Tests for background task enqueueing."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from billing.tasks import enqueue_send_pending_invoices, enqueue_task, get_redis_pool


class TestTasks:
    @pytest.mark.asyncio
    async def test_get_redis_pool(self):
        """Test get_redis_pool creates a pool."""
        mock_pool = MagicMock()

        with patch("billing.tasks.create_pool", new_callable=AsyncMock) as mock_create:
            mock_create.return_value = mock_pool

            result = await get_redis_pool()

            assert result == mock_pool
            mock_create.assert_called_once()

    @pytest.mark.asyncio
    async def test_enqueue_task(self):
        """Test enqueue_task enqueues a job and closes the pool."""
        mock_job = MagicMock()
        mock_job.job_id = "job-123"

        mock_pool = MagicMock()
        mock_pool.enqueue_job = AsyncMock(return_value=mock_job)
        mock_pool.close = AsyncMock()

        with patch("billing.tasks.get_redis_pool", new_callable=AsyncMock) as mock_get_pool:
            mock_get_pool.return_value = mock_pool

            result = await enqueue_task("my_task", "arg1", kwarg1="value1")

            assert result == mock_job
            mock_pool.enqueue_job.assert_called_once_with("my_task", "arg1", kwarg1="value1")
            mock_pool.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_enqueue_task_closes_pool_on_error(self):
        """Test enqueue_task closes pool even when job enqueue fails."""
        mock_pool = MagicMock()
        mock_pool.enqueue_job = AsyncMock(side_effect=ConnectionError("Redis error"))
        mock_pool.close = AsyncMock()

        with patch("billing.tasks.get_redis_pool", new_callable=AsyncMock) as mock_get_pool:
            mock_get_pool.return_value = mock_pool

            with pytest.raises(ConnectionError, match="Redis error"):
                await enqueue_task("failing_task")

            mock_pool.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_enqueue_task_duplicate_job_id(self):
        """Test enqueue_task returns None when arq reports the job id is taken."""
        mock_pool = MagicMock()
        mock_pool.enqueue_job = AsyncMock(return_value=None)
        mock_pool.close = AsyncMock()

        with patch("billing.tasks.get_redis_pool", new_callable=AsyncMock) as mock_get_pool:
            mock_get_pool.return_value = mock_pool

            result = await enqueue_task("my_task", _job_id="fixed")

            assert result is None
            mock_pool.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_enqueue_send_pending_invoices(self):
        """Test the sweep is enqueued under the worker function's name."""
        with patch("billing.tasks.enqueue_task", new_callable=AsyncMock) as mock_enqueue:
            mock_enqueue.return_value = MagicMock()

            await enqueue_send_pending_invoices("4f7c7d2e-8d0b-4a59-9f43-7d1b2a6f0c11")

            mock_enqueue.assert_called_once_with(
                "send_pending_invoices_task",
                "4f7c7d2e-8d0b-4a59-9f43-7d1b2a6f0c11",
                _job_id="send_pending_invoices:4f7c7d2e-8d0b-4a59-9f43-7d1b2a6f0c11",
            )

    @pytest.mark.asyncio
    async def test_enqueue_send_pending_invoices_all_customers(self):
        with patch("billing.tasks.enqueue_task", new_callable=AsyncMock) as mock_enqueue:
            await enqueue_send_pending_invoices()

            mock_enqueue.assert_called_once_with(
                "send_pending_invoices_task", None, _job_id="send_pending_invoices:all"
            )
