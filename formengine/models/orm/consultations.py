"""
Consultation, ConsultationDraft and ConsultationVersion ORM models.

A consultation is the subject a form's data belongs to. Drafts are the
mutable per-editor working copy; versions are the append-only history of
committed changes.
"""

from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum as SQLAlchemyEnum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formengine.models.enums import ConsultationStatus
from formengine.models.orm.base import Base, JSONDocument


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _status_column() -> SQLAlchemyEnum:
    return SQLAlchemyEnum(
        ConsultationStatus,
        name="consultation_status",
        native_enum=False,
        length=20,
        values_callable=lambda x: [e.value for e in x],
    )


class Consultation(Base):
    """Consultation database table (the live row of a subject)."""

    __tablename__ = "consultations"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    agency_id: Mapped[UUID | None] = mapped_column(default=None, index=True)
    user_id: Mapped[UUID] = mapped_column(nullable=False, index=True)

    # Content sections
    contact_info: Mapped[dict] = mapped_column(JSONDocument, default=dict)
    business_context: Mapped[dict] = mapped_column(JSONDocument, default=dict)
    pain_points: Mapped[dict] = mapped_column(JSONDocument, default=dict)
    goals_objectives: Mapped[dict] = mapped_column(JSONDocument, default=dict)
    custom_data: Mapped[dict] = mapped_column(JSONDocument, default=dict)

    status: Mapped[ConsultationStatus] = mapped_column(
        _status_column(), default=ConsultationStatus.DRAFT
    )
    completion_percentage: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=text("CURRENT_TIMESTAMP")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=_utcnow,
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)

    # Relationships
    drafts: Mapped[list["ConsultationDraft"]] = relationship(
        back_populates="consultation", cascade="all, delete-orphan", passive_deletes=True
    )
    versions: Mapped[list["ConsultationVersion"]] = relationship(
        back_populates="consultation",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ConsultationVersion.version_number",
    )


class ConsultationDraft(Base):
    """In-progress draft, one live row per (consultation, editor)."""

    __tablename__ = "consultation_drafts"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    consultation_id: Mapped[UUID] = mapped_column(
        ForeignKey("consultations.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[UUID] = mapped_column(nullable=False)

    contact_info: Mapped[dict] = mapped_column(JSONDocument, default=dict)
    business_context: Mapped[dict] = mapped_column(JSONDocument, default=dict)
    pain_points: Mapped[dict] = mapped_column(JSONDocument, default=dict)
    goals_objectives: Mapped[dict] = mapped_column(JSONDocument, default=dict)
    custom_data: Mapped[dict] = mapped_column(JSONDocument, default=dict)

    auto_saved: Mapped[bool] = mapped_column(Boolean, default=False)
    draft_notes: Mapped[str | None] = mapped_column(Text, default=None)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=text("CURRENT_TIMESTAMP")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=text("CURRENT_TIMESTAMP")
    )

    consultation: Mapped["Consultation"] = relationship(back_populates="drafts")

    __table_args__ = (
        UniqueConstraint("consultation_id", "user_id", name="uq_consultation_drafts_consultation_user"),
    )


class ConsultationVersion(Base):
    """Immutable pre-update snapshot of a consultation's tracked fields."""

    __tablename__ = "consultation_versions"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    consultation_id: Mapped[UUID] = mapped_column(
        ForeignKey("consultations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[UUID | None] = mapped_column(default=None)
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)

    contact_info: Mapped[dict] = mapped_column(JSONDocument, default=dict)
    business_context: Mapped[dict] = mapped_column(JSONDocument, default=dict)
    pain_points: Mapped[dict] = mapped_column(JSONDocument, default=dict)
    goals_objectives: Mapped[dict] = mapped_column(JSONDocument, default=dict)
    custom_data: Mapped[dict] = mapped_column(JSONDocument, default=dict)
    status: Mapped[ConsultationStatus] = mapped_column(_status_column())
    completion_percentage: Mapped[int] = mapped_column(Integer, default=0)

    change_summary: Mapped[str | None] = mapped_column(String(500), default=None)
    changed_fields: Mapped[list] = mapped_column(JSONDocument, default=list)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=text("CURRENT_TIMESTAMP")
    )

    consultation: Mapped["Consultation"] = relationship(back_populates="versions")

    __table_args__ = (
        UniqueConstraint(
            "consultation_id", "version_number", name="uq_consultation_versions_consultation_number"
        ),
    )
