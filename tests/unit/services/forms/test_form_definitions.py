"""
Unit tests for form definition maintenance.

Structural edits bump the version and customize template-derived forms;
cosmetic edits do neither.
"""

import copy
from uuid import uuid4

import pytest

from formengine.core.exceptions import SchemaError
from formengine.models.orm import AgencyForm, FormTemplate
from formengine.services.forms.definitions import (
    apply_form_update,
    create_form_from_template,
    push_template_update,
)
from formengine.services.forms.schema import build_form_schema


@pytest.fixture
def template(two_step_document):
    return FormTemplate(
        id=uuid4(),
        name="Discovery",
        slug="discovery",
        description="Discovery questionnaire",
        schema=copy.deepcopy(two_step_document),
        ui_config={"layout": "wizard"},
        usage_count=0,
    )


@pytest.fixture
def derived_form(template):
    return create_form_from_template(template, uuid4())


class TestApplyFormUpdate:
    """Test apply_form_update."""

    def test_layout_change_is_cosmetic(self, derived_form):
        changed = apply_form_update(derived_form, ui_config={"layout": "single-column"})

        assert changed is False
        assert derived_form.version == 1
        assert derived_form.is_customized is False
        assert derived_form.ui_config == {"layout": "single-column"}

    def test_merged_schema_with_only_layout_change_is_cosmetic(self, derived_form):
        merged = build_form_schema(derived_form.schema, {"layout": "card"})

        changed = apply_form_update(derived_form, schema=merged)

        assert changed is False
        assert derived_form.version == 1
        assert derived_form.ui_config == {"layout": "card"}
        assert "uiConfig" not in derived_form.schema

    def test_structural_change_bumps_version_and_customizes(self, derived_form):
        edited = copy.deepcopy(derived_form.schema)
        edited["steps"][0]["fields"][0]["label"] = "Company name"

        changed = apply_form_update(derived_form, schema=edited)

        assert changed is True
        assert derived_form.version == 2
        assert derived_form.is_customized is True
        assert derived_form.schema["steps"][0]["fields"][0]["label"] == "Company name"

    def test_structural_change_on_agency_form_not_customized(self, two_step_document):
        form = AgencyForm(
            agency_id=uuid4(),
            name="Own form",
            slug="own",
            schema=copy.deepcopy(two_step_document),
            ui_config={},
            version=4,
            is_customized=False,
        )
        edited = copy.deepcopy(two_step_document)
        edited["steps"].pop()

        assert apply_form_update(form, schema=edited) is True
        assert form.version == 5
        assert form.is_customized is False

    def test_settings_applied(self, derived_form):
        apply_form_update(derived_form, name="Renamed", is_active=False)
        assert derived_form.name == "Renamed"
        assert derived_form.is_active is False
        assert derived_form.version == 1

    def test_unknown_setting_rejected(self, derived_form):
        with pytest.raises(ValueError, match="version"):
            apply_form_update(derived_form, version=10)

    def test_invalid_schema_rejected(self, derived_form):
        before = copy.deepcopy(derived_form.schema)

        with pytest.raises(SchemaError):
            apply_form_update(derived_form, schema={"steps": []})

        assert derived_form.schema == before
        assert derived_form.version == 1


class TestTemplates:
    """Test template instantiation and push updates."""

    def test_create_from_template(self, template):
        agency_id = uuid4()

        form = create_form_from_template(template, agency_id, name="Our discovery")

        assert form.agency_id == agency_id
        assert form.name == "Our discovery"
        assert form.slug == "discovery"
        assert form.source_template_id == template.id
        assert form.version == 1
        assert form.is_customized is False
        assert form.schema == template.schema
        assert form.schema is not template.schema
        assert form.ui_config == {"layout": "wizard"}
        assert template.usage_count == 1

    def test_push_skips_customized_and_foreign_forms(self, template):
        untouched = create_form_from_template(template, uuid4())
        customized = create_form_from_template(template, uuid4())
        customized.is_customized = True
        foreign = create_form_from_template(template, uuid4())
        foreign.source_template_id = uuid4()

        template.schema["steps"][0]["title"] = "Your business"
        template.ui_config = {"layout": "stepper"}

        updated = push_template_update(template, [untouched, customized, foreign])

        assert updated == [untouched]
        assert untouched.schema["steps"][0]["title"] == "Your business"
        assert untouched.version == 2
        assert untouched.ui_config == {"layout": "stepper"}
        assert customized.version == 1
        assert customized.schema["steps"][0]["title"] == "Contact"
        assert foreign.version == 1

    def test_push_cosmetic_only_keeps_version(self, template, derived_form):
        template.ui_config = {"layout": "card"}

        push_template_update(template, [derived_form])

        assert derived_form.version == 1
        assert derived_form.ui_config == {"layout": "card"}
