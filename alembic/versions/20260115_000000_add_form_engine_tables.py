"""Add form engine tables

Revision ID: add_form_engine_tables
Revises:
Create Date: 2026-01-15

Creates:
- form_templates, agency_forms, field_option_sets (form definitions with
  separate schema and ui_config JSONB columns)
- consultations (live subject rows)
- consultation_drafts (one per consultation and editor)
- consultation_versions (append-only pre-update snapshots)
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID


# revision identifiers, used by Alembic.
revision = "add_form_engine_tables"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
    ]


def _sections() -> list[sa.Column]:
    return [
        sa.Column(name, JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb"))
        for name in ("contact_info", "business_context", "pain_points", "goals_objectives", "custom_data")
    ]


def upgrade() -> None:
    # ==================== FORM DEFINITIONS ====================
    op.create_table(
        "form_templates",
        sa.Column("id", UUID(), nullable=False, server_default=sa.text("gen_random_uuid()")),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(100), nullable=False, server_default="general"),
        sa.Column("schema", JSONB(), nullable=False),
        sa.Column("ui_config", JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("is_featured", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("usage_count", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug", name="uq_form_templates_slug"),
    )

    op.create_table(
        "agency_forms",
        sa.Column("id", UUID(), nullable=False, server_default=sa.text("gen_random_uuid()")),
        sa.Column("agency_id", UUID(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("form_type", sa.String(50), nullable=False, server_default="custom"),

        # Structural and cosmetic documents
        sa.Column("schema", JSONB(), nullable=False),
        sa.Column("ui_config", JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("branding", JSONB(), nullable=True),

        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("requires_auth", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("source_template_id", UUID(), nullable=True),
        sa.Column("is_customized", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_by", UUID(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["source_template_id"], ["form_templates.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("agency_id", "slug", name="uq_agency_forms_agency_slug"),
    )
    op.create_index("ix_agency_forms_agency_id", "agency_forms", ["agency_id"])
    op.create_index(
        "ix_agency_forms_source_template_id",
        "agency_forms",
        ["source_template_id"],
        postgresql_where=sa.text("source_template_id IS NOT NULL"),
    )

    op.create_table(
        "field_option_sets",
        sa.Column("id", UUID(), nullable=False, server_default=sa.text("gen_random_uuid()")),
        sa.Column("agency_id", UUID(), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("options", JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("is_system", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("agency_id", "slug", name="uq_field_option_sets_agency_slug"),
    )
    op.create_index("ix_field_option_sets_agency_id", "field_option_sets", ["agency_id"])

    # ==================== CONSULTATIONS ====================
    op.create_table(
        "consultations",
        sa.Column("id", UUID(), nullable=False, server_default=sa.text("gen_random_uuid()")),
        sa.Column("agency_id", UUID(), nullable=True),
        sa.Column("user_id", UUID(), nullable=False),
        *_sections(),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("completion_percentage", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "completion_percentage >= 0 AND completion_percentage <= 100",
            name="ck_consultations_completion_percentage",
        ),
    )
    op.create_index("ix_consultations_agency_id", "consultations", ["agency_id"])
    op.create_index("ix_consultations_user_id", "consultations", ["user_id"])

    op.create_table(
        "consultation_drafts",
        sa.Column("id", UUID(), nullable=False, server_default=sa.text("gen_random_uuid()")),
        sa.Column("consultation_id", UUID(), nullable=False),
        sa.Column("user_id", UUID(), nullable=False),
        *_sections(),
        sa.Column("auto_saved", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("draft_notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["consultation_id"], ["consultations.id"], ondelete="CASCADE"),
        sa.UniqueConstraint(
            "consultation_id", "user_id", name="uq_consultation_drafts_consultation_user"
        ),
    )
    # Draft cleanup scans auto-saved drafts by age
    op.create_index(
        "ix_consultation_drafts_autosaved_updated_at",
        "consultation_drafts",
        ["updated_at"],
        postgresql_where=sa.text("auto_saved"),
    )

    op.create_table(
        "consultation_versions",
        sa.Column("id", UUID(), nullable=False, server_default=sa.text("gen_random_uuid()")),
        sa.Column("consultation_id", UUID(), nullable=False),
        sa.Column("user_id", UUID(), nullable=True),
        sa.Column("version_number", sa.Integer(), nullable=False),
        *_sections(),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("completion_percentage", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("change_summary", sa.String(500), nullable=True),
        sa.Column("changed_fields", JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["consultation_id"], ["consultations.id"], ondelete="CASCADE"),
        sa.UniqueConstraint(
            "consultation_id", "version_number", name="uq_consultation_versions_consultation_number"
        ),
    )
    op.create_index(
        "ix_consultation_versions_consultation_id", "consultation_versions", ["consultation_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_consultation_versions_consultation_id", table_name="consultation_versions")
    op.drop_table("consultation_versions")
    op.drop_index("ix_consultation_drafts_autosaved_updated_at", table_name="consultation_drafts")
    op.drop_table("consultation_drafts")
    op.drop_index("ix_consultations_user_id", table_name="consultations")
    op.drop_index("ix_consultations_agency_id", table_name="consultations")
    op.drop_table("consultations")
    op.drop_index("ix_field_option_sets_agency_id", table_name="field_option_sets")
    op.drop_table("field_option_sets")
    op.drop_index("ix_agency_forms_source_template_id", table_name="agency_forms")
    op.drop_index("ix_agency_forms_agency_id", table_name="agency_forms")
    op.drop_table("agency_forms")
    op.drop_table("form_templates")
