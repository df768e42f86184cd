"""
Draft Cleanup Scheduler

Deletes auto-saved drafts nobody has touched within the retention window
(daily). Manually saved drafts are never purged.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from formengine.config import get_settings
from formengine.core.database import get_db_context
from formengine.repositories.drafts import ConsultationDraftRepository

logger = logging.getLogger(__name__)


async def cleanup_stale_drafts() -> dict[str, Any]:
    """
    Delete auto-saved drafts older than the retention period.

    Returns:
        Summary of cleanup results
    """
    retention_days = get_settings().draft_retention_days
    start_time = datetime.now(timezone.utc)
    logger.info("▶ Draft cleanup starting")

    results: dict[str, Any] = {
        "retention_days": retention_days,
        "drafts_deleted": 0,
        "errors": [],
    }

    try:
        async with get_db_context() as db:
            repo = ConsultationDraftRepository(db)
            deleted_count = await repo.delete_stale_autosaved(older_than_days=retention_days)
            results["drafts_deleted"] = deleted_count

        end_time = datetime.now(timezone.utc)
        duration_seconds = (end_time - start_time).total_seconds()
        results["duration_seconds"] = duration_seconds
        results["start_time"] = start_time.isoformat()
        results["end_time"] = end_time.isoformat()

        logger.info(
            f"✓ Draft cleanup completed: "
            f"{deleted_count} drafts deleted ({duration_seconds:.1f}s)"
        )

    except Exception as e:
        logger.error(f"✗ Draft cleanup failed: {e}", exc_info=True)
        results["errors"].append({"error": str(e)})

    return results
