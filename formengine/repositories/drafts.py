"""
Consultation Draft Repository

One mutable draft row per (consultation, editor). Upserts overwrite the
row in place; the unique constraint is the only concurrency guarantee.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Mapping
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from formengine.core.exceptions import DraftConflictError
from formengine.models.contracts.consultations import CONTENT_SECTIONS
from formengine.models.orm import ConsultationDraft
from formengine.repositories.base import BaseRepository


class ConsultationDraftRepository(BaseRepository[ConsultationDraft]):
    """Repository for consultation drafts."""

    model = ConsultationDraft

    async def get_draft(self, consultation_id: UUID, user_id: UUID) -> ConsultationDraft | None:
        """Get the editor's draft for a consultation, if any."""
        result = await self.session.execute(
            select(ConsultationDraft).where(
                ConsultationDraft.consultation_id == consultation_id,
                ConsultationDraft.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def upsert_draft(
        self,
        consultation_id: UUID,
        user_id: UUID,
        sections: Mapping[str, dict[str, Any]],
        auto_saved: bool,
        draft_notes: str | None = None,
    ) -> ConsultationDraft:
        """
        Insert the draft or overwrite the existing one.

        Every write refreshes ``updated_at``. Sections missing from the
        payload are stored as empty.

        Raises:
            DraftConflictError: A concurrent insert won the unique constraint
        """
        now = datetime.now(timezone.utc)
        draft = await self.get_draft(consultation_id, user_id)

        if draft is None:
            draft = ConsultationDraft(
                consultation_id=consultation_id,
                user_id=user_id,
                created_at=now,
            )
            self.session.add(draft)

        for name in CONTENT_SECTIONS:
            setattr(draft, name, dict(sections.get(name) or {}))
        draft.auto_saved = auto_saved
        if draft_notes is not None:
            draft.draft_notes = draft_notes
        draft.updated_at = now

        try:
            await self.session.flush()
        except IntegrityError as e:
            raise DraftConflictError(consultation_id, user_id) from e
        return draft

    async def delete_draft(self, consultation_id: UUID, user_id: UUID) -> bool:
        """Delete the editor's draft. Returns True if one existed."""
        result = await self.session.execute(
            delete(ConsultationDraft).where(
                ConsultationDraft.consultation_id == consultation_id,
                ConsultationDraft.user_id == user_id,
            )
        )
        await self.session.flush()
        return (result.rowcount or 0) > 0

    async def delete_stale_autosaved(self, older_than_days: int = 30) -> int:
        """Delete auto-saved drafts not touched for the given days. Returns count deleted."""
        cutoff = datetime.now(timezone.utc) - timedelta(days=older_than_days)

        result = await self.session.execute(
            delete(ConsultationDraft).where(
                ConsultationDraft.auto_saved.is_(True),
                ConsultationDraft.updated_at < cutoff,
            ).execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return result.rowcount or 0
