"""
Unit tests for form repositories.

Tests option set resolution precedence and template lookups against SQLite.
"""

from uuid import uuid4

import pytest

from formengine.models.orm import AgencyForm, FieldOptionSet, FormTemplate
from formengine.repositories.forms import (
    AgencyFormRepository,
    FieldOptionSetRepository,
    FormTemplateRepository,
)


def _options(*values: str) -> list[dict[str, str]]:
    return [{"value": v, "label": v.title()} for v in values]


class TestFieldOptionSetRepository:
    """Agency option sets override system sets with the same slug."""

    @pytest.mark.asyncio
    async def test_resolve_prefers_agency_set(self, db_session):
        agency_id = uuid4()
        db_session.add_all([
            FieldOptionSet(slug="industries", name="Industries", options=_options("retail"), is_system=True),
            FieldOptionSet(slug="sizes", name="Sizes", options=_options("small", "large"), is_system=True),
            FieldOptionSet(agency_id=agency_id, slug="industries", name="Ours", options=_options("plumbing")),
            FieldOptionSet(agency_id=uuid4(), slug="sizes", name="Other agency", options=_options("huge")),
        ])
        await db_session.flush()

        resolved = await FieldOptionSetRepository(db_session).resolve(
            ["industries", "sizes", "unknown"], agency_id=agency_id
        )

        assert resolved == {
            "industries": _options("plumbing"),
            "sizes": _options("small", "large"),
        }

    @pytest.mark.asyncio
    async def test_resolve_without_agency_uses_system_sets(self, db_session):
        db_session.add_all([
            FieldOptionSet(slug="industries", name="Industries", options=_options("retail"), is_system=True),
            FieldOptionSet(agency_id=uuid4(), slug="industries", name="Ours", options=_options("plumbing")),
        ])
        await db_session.flush()

        resolved = await FieldOptionSetRepository(db_session).resolve(["industries"])

        assert resolved == {"industries": _options("retail")}

    @pytest.mark.asyncio
    async def test_resolve_nothing(self, db_session):
        assert await FieldOptionSetRepository(db_session).resolve([]) == {}


class TestFormRepositories:
    """Template and agency form lookups."""

    @pytest.mark.asyncio
    async def test_list_by_template_excludes_customized(self, db_session, two_step_document):
        template = await FormTemplateRepository(db_session).add(
            FormTemplate(name="Discovery", slug="discovery", schema=two_step_document)
        )
        agency_id = uuid4()
        repository = AgencyFormRepository(db_session)
        plain = await repository.add(AgencyForm(
            agency_id=agency_id, name="A", slug="a", schema=two_step_document,
            source_template_id=template.id,
        ))
        await repository.add(AgencyForm(
            agency_id=agency_id, name="B", slug="b", schema=two_step_document,
            source_template_id=template.id, is_customized=True,
        ))

        derived = await repository.list_by_template(template.id)
        everything = await repository.list_by_template(template.id, include_customized=True)

        assert [f.id for f in derived] == [plain.id]
        assert len(everything) == 2
        assert (await repository.get_by_slug(agency_id, "b")).name == "B"
        assert (await FormTemplateRepository(db_session).get_by_slug("discovery")).id == template.id
