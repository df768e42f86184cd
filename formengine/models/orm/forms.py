"""
AgencyForm, FormTemplate and FieldOptionSet ORM models.

A form's structural schema and its cosmetic UI config live in two separate
JSONB columns. Only structural edits bump ``version`` and mark
template-derived forms as customized.
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
from sqlalchemy.orm import Mapped, mapped_column

from formengine.models.enums import FormType
from formengine.models.orm.base import Base, JSONDocument


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FormTemplate(Base):
    """Platform-wide form template agencies can instantiate."""

    __tablename__ = "form_templates"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(255))
    slug: Mapped[str] = mapped_column(String(255), unique=True)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    category: Mapped[str] = mapped_column(String(100), default="general")
    schema: Mapped[dict] = mapped_column(JSONDocument)
    ui_config: Mapped[dict] = mapped_column(JSONDocument, default=dict)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False)
    display_order: Mapped[int] = mapped_column(Integer, default=0)
    usage_count: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=text("CURRENT_TIMESTAMP")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=_utcnow,
    )


class AgencyForm(Base):
    """Agency-owned form definition."""

    __tablename__ = "agency_forms"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    agency_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255))
    slug: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, default=None)
    form_type: Mapped[FormType] = mapped_column(
        SQLAlchemyEnum(
            FormType,
            name="form_type",
            native_enum=False,
            length=50,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=FormType.CUSTOM,
    )

    # Structural document (steps/fields/validation) and cosmetic document
    schema: Mapped[dict] = mapped_column(JSONDocument)
    ui_config: Mapped[dict] = mapped_column(JSONDocument, default=dict)
    branding: Mapped[dict | None] = mapped_column(JSONDocument, default=None)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)
    requires_auth: Mapped[bool] = mapped_column(Boolean, default=False)

    version: Mapped[int] = mapped_column(Integer, default=1)
    source_template_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("form_templates.id", ondelete="SET NULL"), default=None
    )
    is_customized: Mapped[bool] = mapped_column(Boolean, default=False)

    created_by: Mapped[UUID | None] = mapped_column(default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=text("CURRENT_TIMESTAMP")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=_utcnow,
    )

    __table_args__ = (
        UniqueConstraint("agency_id", "slug", name="uq_agency_forms_agency_slug"),
    )


class FieldOptionSet(Base):
    """Named option list referenced by FormField.optionSetSlug."""

    __tablename__ = "field_option_sets"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    # NULL agency_id = system-wide set
    agency_id: Mapped[UUID | None] = mapped_column(default=None, index=True)
    name: Mapped[str] = mapped_column(String(255))
    slug: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, default=None)
    options: Mapped[list] = mapped_column(JSONDocument, default=list)
    is_system: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=text("CURRENT_TIMESTAMP")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=_utcnow,
    )

    __table_args__ = (
        UniqueConstraint("agency_id", "slug", name="uq_field_option_sets_agency_slug"),
    )
