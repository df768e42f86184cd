"""
Consultation Repository

Access to the live consultation row a form's data is committed to.
"""

from uuid import UUID

from sqlalchemy import select

from formengine.models.orm import Consultation
from formengine.repositories.base import BaseRepository


class ConsultationRepository(BaseRepository[Consultation]):
    """Repository for consultation (subject) rows."""

    model = Consultation

    async def get_for_update(self, consultation_id: UUID) -> Consultation | None:
        """
        Get the live row locked for the rest of the transaction.

        Serializes concurrent commits on PostgreSQL; ignored by SQLite.
        """
        result = await self.session.execute(
            select(Consultation)
            .where(Consultation.id == consultation_id)
            .with_for_update()
        )
        return result.scalar_one_or_none()
