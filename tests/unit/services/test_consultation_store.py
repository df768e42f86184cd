"""
Unit tests for ConsultationStore.

Runs against an in-memory SQLite database. Covers:
- Draft upsert (one live draft per consultation and editor)
- Commit ordering and no-op commits
- Version numbering, pruning and rollback
- Section mapping between flat form values and consultation documents
"""

from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from formengine.config import Settings
from formengine.core.exceptions import NotFoundError, VersionNotFoundError
from formengine.models.contracts.consultations import ConsultationDocument
from formengine.models.enums import ConsultationStatus
from formengine.models.orm import ConsultationDraft, ConsultationVersion
from formengine.services.consultations import (
    AUTO_CHANGE_SUMMARY,
    ConsultationStore,
    calculate_completion_percentage,
    diff_tracked_fields,
    document_from_form_values,
    form_values_from_consultation,
)


def _named(name: str) -> ConsultationDocument:
    return ConsultationDocument(contact_info={"business_name": name})


@pytest.fixture
def user_id():
    return uuid4()


@pytest.fixture
def store(db_session, store_settings):
    return ConsultationStore(db_session, store_settings)


@pytest_asyncio.fixture
async def consultation(store, user_id):
    return await store.create_consultation(user_id)


async def _count(session, model, consultation_id) -> int:
    result = await session.execute(
        select(func.count(model.id)).where(model.consultation_id == consultation_id)
    )
    return result.scalar()


class TestDrafts:
    """Draft upsert and lookup."""

    @pytest.mark.asyncio
    async def test_upsert_twice_keeps_one_draft(self, store, db_session, consultation, user_id):
        first = await store.upsert_draft(consultation.id, user_id, _named("First"), auto_saved=True)
        second = await store.upsert_draft(consultation.id, user_id, _named("Second"), auto_saved=False)

        assert await _count(db_session, ConsultationDraft, consultation.id) == 1
        assert second.id == first.id
        assert second.updated_at >= first.updated_at

        draft = await store.get_draft(consultation.id, user_id)
        assert draft.contact_info == {"business_name": "Second"}
        assert draft.auto_saved is False

    @pytest.mark.asyncio
    async def test_drafts_are_per_editor(self, store, db_session, consultation, user_id):
        other_user = uuid4()
        await store.upsert_draft(consultation.id, user_id, _named("Mine"))
        await store.upsert_draft(consultation.id, other_user, _named("Theirs"))

        assert await _count(db_session, ConsultationDraft, consultation.id) == 2
        mine = await store.get_draft(consultation.id, user_id)
        assert mine.contact_info == {"business_name": "Mine"}

    @pytest.mark.asyncio
    async def test_get_missing_draft(self, store, consultation, user_id):
        assert await store.get_draft(consultation.id, user_id) is None

    @pytest.mark.asyncio
    async def test_upsert_unknown_subject(self, store, user_id):
        with pytest.raises(NotFoundError):
            await store.upsert_draft(uuid4(), user_id, _named("Nobody"))

    @pytest.mark.asyncio
    async def test_discard_draft(self, store, consultation, user_id):
        await store.upsert_draft(consultation.id, user_id, _named("Temp"))

        assert await store.discard_draft(consultation.id, user_id) is True
        assert await store.get_draft(consultation.id, user_id) is None
        assert await store.discard_draft(consultation.id, user_id) is False

    @pytest.mark.asyncio
    async def test_draft_round_trips_to_form_values(self, store, consultation, user_id):
        values = {"business_name": "Acme", "industry": "retail", "favourite_colour": "teal"}
        await store.upsert_draft(consultation.id, user_id, document_from_form_values(values))

        draft = await store.get_draft(consultation.id, user_id)

        assert form_values_from_consultation(draft) == values
        assert draft.custom_data == {"favourite_colour": "teal"}

    @pytest.mark.asyncio
    async def test_load_form_values_prefers_draft(self, store, consultation, user_id):
        await store.commit_and_version(consultation.id, _named("Live"))

        assert await store.load_form_values(consultation.id, user_id) == {"business_name": "Live"}

        await store.upsert_draft(consultation.id, user_id, _named("Draft"))

        assert await store.load_form_values(consultation.id, user_id) == {"business_name": "Draft"}
        assert await store.load_form_values(consultation.id, uuid4()) == {"business_name": "Live"}

    @pytest.mark.asyncio
    async def test_load_form_values_unknown_subject(self, store, user_id):
        with pytest.raises(NotFoundError):
            await store.load_form_values(uuid4(), user_id)


class TestCommit:
    """commit_and_version ordering and change detection."""

    @pytest.mark.asyncio
    async def test_commit_versions_old_snapshot(self, store, db_session, consultation):
        result = await store.commit_and_version(consultation.id, _named("Acme"))

        assert result.version_number == 1
        assert result.changed_fields == ["contact_info", "completion_percentage"]

        version = (await store.list_versions(consultation.id)).versions[0]
        assert version.contact_info == {}
        assert version.completion_percentage == 0
        assert version.change_summary == AUTO_CHANGE_SUMMARY

        live = await store.consultations.get(consultation.id)
        assert live.contact_info == {"business_name": "Acme"}
        assert live.completion_percentage == 25

    @pytest.mark.asyncio
    async def test_identical_commit_creates_no_version(self, store, db_session, consultation):
        await store.commit_and_version(consultation.id, _named("Acme"))

        result = await store.commit_and_version(consultation.id, _named("Acme"))

        assert result.versioned is False
        assert result.changed_fields == []
        assert await _count(db_session, ConsultationVersion, consultation.id) == 1

    @pytest.mark.asyncio
    async def test_commit_of_unchanged_new_consultation_is_noop(self, store, db_session, consultation):
        result = await store.commit_and_version(consultation.id, ConsultationDocument())

        assert result.version_number is None
        assert await _count(db_session, ConsultationVersion, consultation.id) == 0

    @pytest.mark.asyncio
    async def test_status_change_is_tracked(self, store, consultation):
        document = ConsultationDocument(status=ConsultationStatus.ARCHIVED)

        result = await store.commit_and_version(consultation.id, document)

        assert result.changed_fields == ["status"]

    @pytest.mark.asyncio
    async def test_commit_unknown_subject(self, store):
        with pytest.raises(NotFoundError):
            await store.commit_and_version(uuid4(), _named("Ghost"))

    @pytest.mark.asyncio
    async def test_finalize(self, store, consultation, user_id):
        await store.upsert_draft(consultation.id, user_id, _named("Acme"))

        result = await store.finalize(consultation.id, user_id, _named("Acme"))

        assert "status" in result.changed_fields
        live = await store.consultations.get(consultation.id)
        assert live.status == ConsultationStatus.COMPLETED
        assert live.completed_at is not None
        assert await store.get_draft(consultation.id, user_id) is None


class TestVersions:
    """Version numbering, listing, pruning and rollback."""

    async def _commit_names(self, store, consultation_id, count: int) -> None:
        for i in range(1, count + 1):
            await store.commit_and_version(consultation_id, _named(f"Name {i}"))

    @pytest.mark.asyncio
    async def test_sequential_commits_number_from_one(self, store, consultation):
        await self._commit_names(store, consultation.id, 4)

        history = await store.list_versions(consultation.id)

        assert history.total == 4
        assert [v.version_number for v in history.versions] == [4, 3, 2, 1]

    @pytest.mark.asyncio
    async def test_prune_keeps_highest_numbers(self, store, consultation):
        await self._commit_names(store, consultation.id, 5)

        deleted = await store.prune_versions(consultation.id, keep=2)

        history = await store.list_versions(consultation.id)
        assert deleted == 3
        assert [v.version_number for v in history.versions] == [5, 4]

        # Numbering continues after pruning
        result = await store.commit_and_version(consultation.id, _named("After prune"))
        assert result.version_number == 6

    @pytest.mark.asyncio
    async def test_prune_to_single_version_keeps_numbering(self, store, consultation):
        await self._commit_names(store, consultation.id, 3)

        deleted = await store.prune_versions(consultation.id, keep=1)

        assert deleted == 2
        result = await store.commit_and_version(consultation.id, _named("After full prune"))
        assert result.version_number == 4

    @pytest.mark.asyncio
    @pytest.mark.parametrize("keep", [0, -1])
    async def test_prune_rejects_keep_below_one(self, store, db_session, consultation, keep):
        await self._commit_names(store, consultation.id, 3)

        with pytest.raises(ValueError):
            await store.prune_versions(consultation.id, keep=keep)
        with pytest.raises(ValueError):
            await store.versions.prune_versions(consultation.id, keep=keep)

        assert await _count(db_session, ConsultationVersion, consultation.id) == 3
        result = await store.commit_and_version(consultation.id, _named("Next"))
        assert result.version_number == 4

    @pytest.mark.asyncio
    async def test_auto_prune(self, db_session, user_id):
        store = ConsultationStore(
            db_session, Settings(auto_prune_versions=True, version_retention_count=2)
        )
        consultation = await store.create_consultation(user_id)

        await self._commit_names(store, consultation.id, 3)
        result = await store.commit_and_version(consultation.id, _named("Fourth"))

        assert result.pruned == 1
        history = await store.list_versions(consultation.id)
        assert [v.version_number for v in history.versions] == [4, 3]

    @pytest.mark.asyncio
    async def test_rollback_creates_new_version(self, store, consultation):
        await self._commit_names(store, consultation.id, 5)

        result = await store.rollback_to_version(consultation.id, 3)

        assert result.version_number == 6
        live = await store.consultations.get(consultation.id)
        # Version 3 holds the state before the third commit
        assert live.contact_info == {"business_name": "Name 2"}

        newest = (await store.list_versions(consultation.id, limit=1)).versions[0]
        assert newest.version_number == 6
        assert newest.contact_info == {"business_name": "Name 5"}
        assert newest.change_summary == "Rollback to version 3"

    @pytest.mark.asyncio
    async def test_rollback_to_first_version_restores_empty_document(self, store, consultation):
        await self._commit_names(store, consultation.id, 2)

        await store.rollback_to_version(consultation.id, 1)

        live = await store.consultations.get(consultation.id)
        assert live.contact_info == {}
        assert live.completion_percentage == 0

    @pytest.mark.asyncio
    async def test_rollback_to_missing_version(self, store, consultation):
        with pytest.raises(VersionNotFoundError):
            await store.rollback_to_version(consultation.id, 42)

    @pytest.mark.asyncio
    async def test_list_versions_pagination(self, store, consultation):
        await self._commit_names(store, consultation.id, 3)

        page = await store.list_versions(consultation.id, limit=1, offset=1)

        assert page.total == 3
        assert page.limit == 1
        assert [v.version_number for v in page.versions] == [2]

    @pytest.mark.asyncio
    async def test_compare_versions(self, store, consultation):
        await self._commit_names(store, consultation.id, 3)

        diffs = {d.field_name: d for d in await store.compare_versions(consultation.id, 2, 3)}

        assert diffs["contact_info"].has_changes is True
        assert diffs["contact_info"].version1_value == {"business_name": "Name 1"}
        assert diffs["contact_info"].version2_value == {"business_name": "Name 2"}
        assert diffs["pain_points"].has_changes is False


class TestDocumentHelpers:
    """Pure helpers."""

    def test_completion_percentage(self):
        assert calculate_completion_percentage({}) == 0
        assert calculate_completion_percentage({
            "contact_info": {"business_name": "Acme"},
            "business_context": {"industry": "retail"},
            "pain_points": {"primary_challenges": ["slow site"]},
            "goals_objectives": {"primary_goals": []},
        }) == 75

    def test_document_from_form_values(self):
        document = document_from_form_values({
            "business_name": "Acme",
            "team_size": 12,
            "urgency_level": "high",
            "budget_range": "10k-25k",
            "referral": "friend",
        })

        assert document.contact_info == {"business_name": "Acme"}
        assert document.business_context == {"team_size": 12}
        assert document.pain_points == {"urgency_level": "high"}
        assert document.goals_objectives == {"budget_range": "10k-25k"}
        assert document.custom_data == {"referral": "friend"}

    def test_diff_tracked_fields(self):
        old = {"contact_info": {"a": 1}, "status": ConsultationStatus.DRAFT}
        new = {"contact_info": {"a": 1}, "status": ConsultationStatus.COMPLETED}
        assert diff_tracked_fields(old, new) == ["status"]
