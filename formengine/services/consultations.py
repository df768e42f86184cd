"""
Consultation Store

Draft and version persistence for consultation documents.

Host applications call this around a FormSession: load the editor's draft
as initial values, upsert drafts on save/autosave, and commit on submit.
The form engine itself never calls the store.

Commit protocol:
    1. Compare each tracked field of the live row with the new document.
    2. No differences: nothing is written.
    3. Otherwise insert a version row holding the OLD values, numbered
       max(version_number) + 1, with the list of changed fields.
    4. Only then overwrite the live row.

So every committed change has a version describing what the row looked
like before it. Rollback is a commit of an old snapshot and is versioned
the same way.
"""

import copy
import logging
from datetime import datetime, timezone
from typing import Any, Mapping
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from formengine.config import Settings, get_settings
from formengine.core.exceptions import NotFoundError, VersionConflictError, VersionNotFoundError
from formengine.models.contracts.consultations import (
    CONTENT_SECTIONS,
    TRACKED_FIELDS,
    CommitResult,
    ConsultationDocument,
    ConsultationDraftPublic,
    ConsultationVersionPublic,
    ConsultationVersionsResponse,
    VersionFieldDiff,
)
from formengine.models.enums import ConsultationStatus
from formengine.models.orm import Consultation, ConsultationVersion
from formengine.repositories.consultations import ConsultationRepository
from formengine.repositories.drafts import ConsultationDraftRepository
from formengine.repositories.versions import ConsultationVersionRepository

logger = logging.getLogger(__name__)

AUTO_CHANGE_SUMMARY = "Automatic version created on update"

# Flat form field name -> consultation section. Anything else is custom_data.
SECTION_FIELDS: dict[str, tuple[str, ...]] = {
    "contact_info": (
        "business_name",
        "contact_person",
        "email",
        "phone",
        "website",
        "social_media",
    ),
    "business_context": (
        "industry",
        "business_type",
        "team_size",
        "current_platform",
        "digital_presence",
        "marketing_channels",
    ),
    "pain_points": (
        "primary_challenges",
        "technical_issues",
        "urgency_level",
        "impact_assessment",
        "current_solution_gaps",
    ),
    "goals_objectives": (
        "primary_goals",
        "secondary_goals",
        "success_metrics",
        "kpis",
        "timeline",
        "budget_range",
        "budget_constraints",
    ),
}

_FIELD_SECTION: dict[str, str] = {
    name: section for section, names in SECTION_FIELDS.items() for name in names
}


# ==================== DOCUMENT HELPERS ====================


def calculate_completion_percentage(sections: Mapping[str, Mapping[str, Any]]) -> int:
    """
    25 points each for a business name, an industry, at least one primary
    challenge and at least one primary goal.
    """
    checks = (
        bool((sections.get("contact_info") or {}).get("business_name")),
        bool((sections.get("business_context") or {}).get("industry")),
        bool((sections.get("pain_points") or {}).get("primary_challenges")),
        bool((sections.get("goals_objectives") or {}).get("primary_goals")),
    )
    return sum(checks) * 100 // len(checks)


def document_from_form_values(values: Mapping[str, Any]) -> ConsultationDocument:
    """Group flat form values into consultation sections."""
    sections: dict[str, dict[str, Any]] = {name: {} for name in CONTENT_SECTIONS}
    for name, value in values.items():
        section = _FIELD_SECTION.get(name, "custom_data")
        sections[section][name] = copy.deepcopy(value)
    return ConsultationDocument(**sections)


def form_values_from_consultation(source: Any) -> dict[str, Any]:
    """
    Flatten a consultation, draft or document back into form values.

    Used as ``initial_data`` for a FormSession.
    """
    values: dict[str, Any] = {}
    for section in CONTENT_SECTIONS:
        values.update(copy.deepcopy(getattr(source, section, None) or {}))
    return values


def tracked_snapshot(source: Any) -> dict[str, Any]:
    """Deep copy of the tracked fields of a consultation or version row."""
    return {name: copy.deepcopy(getattr(source, name)) for name in TRACKED_FIELDS}


def diff_tracked_fields(old: Mapping[str, Any], new: Mapping[str, Any]) -> list[str]:
    """Tracked field names whose values differ, in tracked-field order."""
    return [name for name in TRACKED_FIELDS if old.get(name) != new.get(name)]


# ==================== STORE ====================


class ConsultationStore:
    """
    Draft/version store for one database session.

    The caller owns the transaction: nothing here commits. Use inside
    get_db_context() or commit the session explicitly.
    """

    def __init__(self, session: AsyncSession, settings: Settings | None = None):
        self.session = session
        self.settings = settings or get_settings()
        self.consultations = ConsultationRepository(session)
        self.drafts = ConsultationDraftRepository(session)
        self.versions = ConsultationVersionRepository(session)

    async def _require(self, subject_id: UUID, lock: bool = False) -> Consultation:
        if lock:
            consultation = await self.consultations.get_for_update(subject_id)
        else:
            consultation = await self.consultations.get(subject_id)
        if consultation is None:
            raise NotFoundError(f"Consultation {subject_id} not found")
        return consultation

    async def create_consultation(
        self,
        user_id: UUID,
        document: ConsultationDocument | None = None,
        agency_id: UUID | None = None,
    ) -> Consultation:
        """Create a subject row. Creation is not versioned."""
        document = document or ConsultationDocument()
        sections = copy.deepcopy(document.sections())
        consultation = Consultation(
            user_id=user_id,
            agency_id=agency_id,
            status=document.status or ConsultationStatus.DRAFT,
            completion_percentage=(
                document.completion_percentage
                if document.completion_percentage is not None
                else calculate_completion_percentage(sections)
            ),
            **sections,
        )
        consultation = await self.consultations.add(consultation)
        logger.info(f"Created consultation {consultation.id} for user {user_id}")
        return consultation

    # ==================== DRAFTS ====================

    async def get_draft(self, subject_id: UUID, user_id: UUID) -> ConsultationDraftPublic | None:
        draft = await self.drafts.get_draft(subject_id, user_id)
        return ConsultationDraftPublic.model_validate(draft) if draft else None

    async def upsert_draft(
        self,
        subject_id: UUID,
        user_id: UUID,
        document: ConsultationDocument,
        auto_saved: bool = False,
        draft_notes: str | None = None,
    ) -> ConsultationDraftPublic:
        """
        Save the editor's draft, replacing any previous one.

        Raises:
            NotFoundError: Unknown subject
            DraftConflictError: Lost a concurrent insert race
        """
        await self._require(subject_id)
        draft = await self.drafts.upsert_draft(
            subject_id,
            user_id,
            copy.deepcopy(document.sections()),
            auto_saved=auto_saved,
            draft_notes=draft_notes,
        )
        logger.debug(
            f"{'Auto-saved' if auto_saved else 'Saved'} draft for consultation {subject_id}, user {user_id}"
        )
        return ConsultationDraftPublic.model_validate(draft)

    async def discard_draft(self, subject_id: UUID, user_id: UUID) -> bool:
        return await self.drafts.delete_draft(subject_id, user_id)

    async def load_form_values(self, subject_id: UUID, user_id: UUID) -> dict[str, Any]:
        """
        Initial values for an editor's FormSession.

        The editor's draft wins over the live row when one exists.

        Raises:
            NotFoundError: Unknown subject
        """
        consultation = await self._require(subject_id)
        draft = await self.get_draft(subject_id, user_id)
        if draft is not None:
            return form_values_from_consultation(draft.to_document())
        return form_values_from_consultation(consultation)

    # ==================== COMMIT ====================

    def _resolve_new_values(
        self, consultation: Consultation, document: ConsultationDocument
    ) -> dict[str, Any]:
        sections = copy.deepcopy(document.sections())
        values: dict[str, Any] = dict(sections)
        values["status"] = document.status or consultation.status
        values["completion_percentage"] = (
            document.completion_percentage
            if document.completion_percentage is not None
            else calculate_completion_percentage(sections)
        )
        return values

    async def commit_and_version(
        self,
        subject_id: UUID,
        new_document: ConsultationDocument,
        *,
        user_id: UUID | None = None,
        change_summary: str | None = None,
    ) -> CommitResult:
        """
        Commit a new document to the live row, versioning the old values.

        Args:
            subject_id: Consultation to update
            new_document: Full replacement of the content sections
            user_id: Editor recorded on the version (defaults to the owner)
            change_summary: Stored on the version row

        Returns:
            CommitResult; ``version_number`` is None for a no-op commit

        Raises:
            NotFoundError: Unknown subject
            VersionConflictError: A concurrent commit took the version number
        """
        consultation = await self._require(subject_id, lock=True)

        old_values = tracked_snapshot(consultation)
        new_values = self._resolve_new_values(consultation, new_document)
        changed = diff_tracked_fields(old_values, new_values)

        if not changed:
            logger.debug(f"No tracked changes for consultation {subject_id}, skipping version")
            return CommitResult(consultation_id=subject_id)

        version_number = await self.versions.next_version_number(subject_id)
        version = ConsultationVersion(
            consultation_id=subject_id,
            user_id=user_id or consultation.user_id,
            version_number=version_number,
            change_summary=change_summary or AUTO_CHANGE_SUMMARY,
            changed_fields=changed,
            **old_values,
        )
        try:
            await self.versions.create_version(version)
        except IntegrityError as e:
            raise VersionConflictError(subject_id, version_number) from e

        for name, value in new_values.items():
            setattr(consultation, name, value)
        now = datetime.now(timezone.utc)
        consultation.updated_at = now
        if new_values["status"] == ConsultationStatus.COMPLETED and consultation.completed_at is None:
            consultation.completed_at = now
        await self.session.flush()

        pruned = 0
        if self.settings.auto_prune_versions:
            pruned = await self.versions.prune_versions(
                subject_id, keep=self.settings.version_retention_count
            )

        logger.info(
            f"Consultation {subject_id} committed as version {version_number} "
            f"(changed: {', '.join(changed)})"
        )
        return CommitResult(
            consultation_id=subject_id,
            version_number=version_number,
            changed_fields=changed,
            pruned=pruned,
        )

    async def finalize(
        self, subject_id: UUID, user_id: UUID, document: ConsultationDocument
    ) -> CommitResult:
        """Commit as completed and drop the editor's draft."""
        completed = document.model_copy(update={"status": ConsultationStatus.COMPLETED})
        result = await self.commit_and_version(
            subject_id, completed, user_id=user_id, change_summary="Consultation completed"
        )
        await self.drafts.delete_draft(subject_id, user_id)
        return result

    # ==================== VERSIONS ====================

    async def list_versions(
        self, subject_id: UUID, limit: int = 50, offset: int = 0
    ) -> ConsultationVersionsResponse:
        """Version history, newest first."""
        versions = await self.versions.list_versions(subject_id, limit=limit, offset=offset)
        total = await self.versions.count_versions(subject_id)
        return ConsultationVersionsResponse(
            versions=[ConsultationVersionPublic.model_validate(v) for v in versions],
            total=total,
            limit=limit,
            offset=offset,
        )

    async def _require_version(self, subject_id: UUID, version_number: int) -> ConsultationVersion:
        version = await self.versions.get_version(subject_id, version_number)
        if version is None:
            raise VersionNotFoundError(subject_id, version_number)
        return version

    async def rollback_to_version(
        self, subject_id: UUID, version_number: int, *, user_id: UUID | None = None
    ) -> CommitResult:
        """
        Restore the live row to a stored snapshot.

        Goes through commit_and_version, so the pre-rollback state is itself
        recorded as a new version.

        Raises:
            VersionNotFoundError: No such version for this subject
        """
        version = await self._require_version(subject_id, version_number)
        snapshot = tracked_snapshot(version)
        document = ConsultationDocument(**snapshot)

        logger.info(f"Rolling back consultation {subject_id} to version {version_number}")
        return await self.commit_and_version(
            subject_id,
            document,
            user_id=user_id,
            change_summary=f"Rollback to version {version_number}",
        )

    async def prune_versions(self, subject_id: UUID, keep: int | None = None) -> int:
        """
        Keep only the ``keep`` most recent versions. Returns count deleted.

        Raises:
            ValueError: If keep is less than 1
        """
        keep = keep if keep is not None else self.settings.version_retention_count
        if keep < 1:
            raise ValueError(f"keep must be at least 1, got {keep}")
        deleted = await self.versions.prune_versions(subject_id, keep=keep)
        if deleted:
            logger.info(f"Pruned {deleted} version(s) of consultation {subject_id}")
        return deleted

    async def compare_versions(
        self, subject_id: UUID, version1: int, version2: int
    ) -> list[VersionFieldDiff]:
        """Per-field comparison of two stored versions."""
        first = tracked_snapshot(await self._require_version(subject_id, version1))
        second = tracked_snapshot(await self._require_version(subject_id, version2))
        return [
            VersionFieldDiff(
                field_name=name,
                version1_value=first[name],
                version2_value=second[name],
                has_changes=first[name] != second[name],
            )
            for name in TRACKED_FIELDS
        ]
