"""
Form Repositories

Agency form definitions, platform templates and field option sets.
"""

from typing import Any, Iterable, Sequence
from uuid import UUID

from sqlalchemy import or_, select

from formengine.models.orm import AgencyForm, FieldOptionSet, FormTemplate
from formengine.repositories.base import BaseRepository


class FormTemplateRepository(BaseRepository[FormTemplate]):
    """Repository for platform form templates."""

    model = FormTemplate

    async def get_by_slug(self, slug: str) -> FormTemplate | None:
        result = await self.session.execute(
            select(FormTemplate).where(FormTemplate.slug == slug)
        )
        return result.scalar_one_or_none()


class AgencyFormRepository(BaseRepository[AgencyForm]):
    """Repository for agency-owned form definitions."""

    model = AgencyForm

    async def get_by_slug(self, agency_id: UUID, slug: str) -> AgencyForm | None:
        result = await self.session.execute(
            select(AgencyForm).where(
                AgencyForm.agency_id == agency_id,
                AgencyForm.slug == slug,
            )
        )
        return result.scalar_one_or_none()

    async def list_by_template(
        self, template_id: UUID, include_customized: bool = False
    ) -> Sequence[AgencyForm]:
        """Forms instantiated from a template; customized ones excluded by default."""
        stmt = select(AgencyForm).where(AgencyForm.source_template_id == template_id)
        if not include_customized:
            stmt = stmt.where(AgencyForm.is_customized.is_(False))

        result = await self.session.execute(stmt)
        return result.scalars().all()


class FieldOptionSetRepository(BaseRepository[FieldOptionSet]):
    """
    Repository for field option sets.

    System sets have a NULL agency_id. An agency's own set with the same
    slug takes precedence over the system one.
    """

    model = FieldOptionSet

    async def resolve(
        self, slugs: Iterable[str], agency_id: UUID | None = None
    ) -> dict[str, list[dict[str, Any]]]:
        """
        Resolve option set slugs to option lists for a form session.

        Unknown slugs are simply absent from the result.
        """
        wanted = set(slugs)
        if not wanted:
            return {}

        stmt = select(FieldOptionSet).where(FieldOptionSet.slug.in_(wanted))
        if agency_id:
            stmt = stmt.where(
                or_(
                    FieldOptionSet.agency_id == agency_id,
                    FieldOptionSet.agency_id.is_(None),
                )
            )
        else:
            stmt = stmt.where(FieldOptionSet.agency_id.is_(None))

        result = await self.session.execute(stmt)

        resolved: dict[str, list[dict[str, Any]]] = {}
        overridden: set[str] = set()
        for option_set in result.scalars().all():
            is_agency_set = option_set.agency_id is not None
            if option_set.slug in overridden and not is_agency_set:
                continue
            resolved[option_set.slug] = list(option_set.options or [])
            if is_agency_set:
                overridden.add(option_set.slug)
        return resolved
