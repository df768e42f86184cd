"""
Unit tests for the draft cleanup scheduler job.
"""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from formengine.config import Settings
from formengine.jobs.schedulers.draft_cleanup import cleanup_stale_drafts


@pytest.fixture
def mock_db():
    session = AsyncMock()

    @asynccontextmanager
    async def fake_db_context():
        yield session

    return fake_db_context


class TestCleanupStaleDrafts:
    """Test cleanup_stale_drafts."""

    @pytest.mark.asyncio
    async def test_deletes_with_configured_retention(self, mock_db):
        repo = MagicMock()
        repo.delete_stale_autosaved = AsyncMock(return_value=3)

        with (
            patch("formengine.jobs.schedulers.draft_cleanup.get_db_context", mock_db),
            patch(
                "formengine.jobs.schedulers.draft_cleanup.get_settings",
                return_value=Settings(draft_retention_days=7),
            ),
            patch(
                "formengine.jobs.schedulers.draft_cleanup.ConsultationDraftRepository",
                return_value=repo,
            ),
        ):
            results = await cleanup_stale_drafts()

        repo.delete_stale_autosaved.assert_awaited_once_with(older_than_days=7)
        assert results["drafts_deleted"] == 3
        assert results["retention_days"] == 7
        assert results["errors"] == []
        assert "duration_seconds" in results

    @pytest.mark.asyncio
    async def test_failure_is_reported_not_raised(self, mock_db):
        repo = MagicMock()
        repo.delete_stale_autosaved = AsyncMock(side_effect=RuntimeError("db unavailable"))

        with (
            patch("formengine.jobs.schedulers.draft_cleanup.get_db_context", mock_db),
            patch(
                "formengine.jobs.schedulers.draft_cleanup.ConsultationDraftRepository",
                return_value=repo,
            ),
        ):
            results = await cleanup_stale_drafts()

        assert results["drafts_deleted"] == 0
        assert results["errors"] == [{"error": "db unavailable"}]
