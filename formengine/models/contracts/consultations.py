"""
Consultation contract models.

A consultation document is split into JSONB sections. Drafts hold the
sections only; versions hold the full tracked snapshot (sections plus
status and completion percentage).
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from formengine.models.enums import ConsultationStatus

# Content sections stored as JSONB columns
CONTENT_SECTIONS: tuple[str, ...] = (
    "contact_info",
    "business_context",
    "pain_points",
    "goals_objectives",
    "custom_data",
)

# Fixed set of fields whose change produces a version row
TRACKED_FIELDS: tuple[str, ...] = CONTENT_SECTIONS + ("status", "completion_percentage")


class ConsultationDocument(BaseModel):
    """
    Candidate consultation content.

    Used as the draft payload and as the input to a commit. ``status`` and
    ``completion_percentage`` are optional on input: a missing status keeps
    the live value, a missing percentage is recomputed from the sections.
    """
    contact_info: dict[str, Any] = Field(default_factory=dict)
    business_context: dict[str, Any] = Field(default_factory=dict)
    pain_points: dict[str, Any] = Field(default_factory=dict)
    goals_objectives: dict[str, Any] = Field(default_factory=dict)
    custom_data: dict[str, Any] = Field(default_factory=dict)
    status: ConsultationStatus | None = None
    completion_percentage: int | None = Field(default=None, ge=0, le=100)

    def sections(self) -> dict[str, dict[str, Any]]:
        return {name: getattr(self, name) for name in CONTENT_SECTIONS}


class ConsultationDraftPublic(BaseModel):
    """Draft as returned to the host application"""
    id: UUID
    consultation_id: UUID
    user_id: UUID
    contact_info: dict[str, Any]
    business_context: dict[str, Any]
    pain_points: dict[str, Any]
    goals_objectives: dict[str, Any]
    custom_data: dict[str, Any]
    auto_saved: bool
    draft_notes: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    def to_document(self) -> ConsultationDocument:
        return ConsultationDocument(
            contact_info=self.contact_info,
            business_context=self.business_context,
            pain_points=self.pain_points,
            goals_objectives=self.goals_objectives,
            custom_data=self.custom_data,
        )


class ConsultationVersionPublic(BaseModel):
    """Immutable snapshot of a consultation before a committed change"""
    id: UUID
    consultation_id: UUID
    user_id: UUID | None = None
    version_number: int
    contact_info: dict[str, Any]
    business_context: dict[str, Any]
    pain_points: dict[str, Any]
    goals_objectives: dict[str, Any]
    custom_data: dict[str, Any]
    status: ConsultationStatus
    completion_percentage: int
    change_summary: str | None = None
    changed_fields: list[str] = Field(default_factory=list)
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ConsultationVersionsResponse(BaseModel):
    """Paginated version history, newest first"""
    versions: list[ConsultationVersionPublic]
    total: int
    limit: int
    offset: int


class VersionFieldDiff(BaseModel):
    """One tracked field compared across two versions"""
    field_name: str
    version1_value: Any = None
    version2_value: Any = None
    has_changes: bool


class CommitResult(BaseModel):
    """Outcome of commit_and_version"""
    consultation_id: UUID
    version_number: int | None = Field(
        default=None, description="Number of the version row created, None for a no-op commit")
    changed_fields: list[str] = Field(default_factory=list)
    pruned: int = 0

    @property
    def versioned(self) -> bool:
        return self.version_number is not None
