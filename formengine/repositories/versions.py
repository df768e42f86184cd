"""
Consultation Version Repository

Append-only history of committed consultation changes. Version numbers are
1-based and strictly increasing per consultation.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import delete, func, select

from formengine.models.orm import ConsultationVersion
from formengine.repositories.base import BaseRepository


class ConsultationVersionRepository(BaseRepository[ConsultationVersion]):
    """Repository for consultation versions."""

    model = ConsultationVersion

    async def next_version_number(self, consultation_id: UUID) -> int:
        """max(version_number) + 1, or 1 for a consultation with no history."""
        result = await self.session.execute(
            select(func.coalesce(func.max(ConsultationVersion.version_number), 0)).where(
                ConsultationVersion.consultation_id == consultation_id
            )
        )
        return int(result.scalar() or 0) + 1

    async def create_version(self, version: ConsultationVersion) -> ConsultationVersion:
        self.session.add(version)
        await self.session.flush()
        return version

    async def get_version(
        self, consultation_id: UUID, version_number: int
    ) -> ConsultationVersion | None:
        result = await self.session.execute(
            select(ConsultationVersion).where(
                ConsultationVersion.consultation_id == consultation_id,
                ConsultationVersion.version_number == version_number,
            )
        )
        return result.scalar_one_or_none()

    async def list_versions(
        self,
        consultation_id: UUID,
        limit: int = 50,
        offset: int = 0,
    ) -> Sequence[ConsultationVersion]:
        """List versions newest first."""
        result = await self.session.execute(
            select(ConsultationVersion)
            .where(ConsultationVersion.consultation_id == consultation_id)
            .order_by(ConsultationVersion.version_number.desc())
            .limit(limit)
            .offset(offset)
        )
        return result.scalars().all()

    async def count_versions(self, consultation_id: UUID) -> int:
        result = await self.session.execute(
            select(func.count(ConsultationVersion.id)).where(
                ConsultationVersion.consultation_id == consultation_id
            )
        )
        return result.scalar() or 0

    async def prune_versions(self, consultation_id: UUID, keep: int) -> int:
        """
        Delete all but the ``keep`` highest-numbered versions.

        Surviving versions keep their numbers. At least one version must
        survive, since numbering continues from the highest stored one.
        Returns count deleted.

        Raises:
            ValueError: If keep is less than 1
        """
        if keep < 1:
            raise ValueError(f"keep must be at least 1, got {keep}")

        stale_ids = (
            select(ConsultationVersion.id)
            .where(ConsultationVersion.consultation_id == consultation_id)
            .order_by(ConsultationVersion.version_number.desc())
            .offset(keep)
        )
        ids = list((await self.session.execute(stale_ids)).scalars().all())
        if not ids:
            return 0

        result = await self.session.execute(
            delete(ConsultationVersion).where(ConsultationVersion.id.in_(ids))
        )
        await self.session.flush()
        return result.rowcount or 0
