# Scheduled maintenance jobs
from formengine.jobs.schedulers.draft_cleanup import cleanup_stale_drafts

__all__ = ["cleanup_stale_drafts"]
