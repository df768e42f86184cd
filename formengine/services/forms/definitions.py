"""
Form Definition Maintenance

Applies edits to agency form definitions while keeping the structural and
cosmetic documents in their own columns.

Only a structural edit (steps, fields, validation) bumps ``version``; on a
template-derived form it also sets ``is_customized``, which excludes the
form from later template pushes. Layout and button-text edits do neither.
"""

import copy
import logging
from typing import Any, Iterable, Mapping
from uuid import UUID

from formengine.models.contracts.forms import FormSchema
from formengine.models.enums import FormType
from formengine.models.orm import AgencyForm, FormTemplate
from formengine.services.forms.schema import (
    build_form_schema,
    extract_ui_config,
    is_structural_change,
)

logger = logging.getLogger(__name__)

# Plain attributes apply_form_update may set alongside the documents
_UPDATABLE_SETTINGS = frozenset({
    "name",
    "description",
    "branding",
    "is_active",
    "is_default",
    "requires_auth",
})


def _split(schema: FormSchema | Mapping[str, Any]) -> tuple[dict[str, Any], dict[str, Any] | None]:
    split = extract_ui_config(schema)
    return split.schema, split.ui_config


def apply_form_update(
    form: AgencyForm,
    schema: FormSchema | Mapping[str, Any] | None = None,
    ui_config: Mapping[str, Any] | None = None,
    **settings: Any,
) -> bool:
    """
    Apply an edit from the form builder to an agency form.

    ``schema`` may be the merged render schema; its ``uiConfig`` is split off
    and stored in the ui_config column unless ``ui_config`` is passed
    explicitly.

    Args:
        form: Form row to update in place
        schema: Edited schema (merged or structural-only)
        ui_config: Edited UI config
        **settings: Plain attributes (name, description, branding, ...)

    Returns:
        True if the edit was structural and the version was bumped

    Raises:
        ValueError: If an unknown setting is passed
        SchemaError: If the edited schema does not parse
    """
    unknown = set(settings) - _UPDATABLE_SETTINGS
    if unknown:
        raise ValueError(f"Cannot update form attributes: {', '.join(sorted(unknown))}")

    structural_changed = False
    if schema is not None:
        structural, embedded_ui = _split(schema)
        # Parse before storing so broken documents never reach the column
        build_form_schema(structural, ui_config or embedded_ui)

        if is_structural_change(form.schema, structural):
            structural_changed = True
            form.schema = structural
        if ui_config is None and embedded_ui is not None:
            form.ui_config = embedded_ui

    if ui_config is not None:
        form.ui_config = copy.deepcopy(dict(ui_config))

    for key, value in settings.items():
        setattr(form, key, value)

    if structural_changed:
        form.version = (form.version or 1) + 1
        if form.source_template_id is not None and not form.is_customized:
            form.is_customized = True
            logger.info(f"Form {form.id} customized away from template {form.source_template_id}")
        logger.debug(f"Form {form.id} structural change, version -> {form.version}")

    return structural_changed


def create_form_from_template(
    template: FormTemplate,
    agency_id: UUID,
    *,
    name: str | None = None,
    slug: str | None = None,
    form_type: FormType = FormType.CUSTOM,
    created_by: UUID | None = None,
) -> AgencyForm:
    """
    Instantiate an agency form from a template.

    The caller adds the returned row to its session. Increments the
    template's ``usage_count``.
    """
    structural, embedded_ui = _split(template.schema)
    form = AgencyForm(
        agency_id=agency_id,
        name=name or template.name,
        slug=slug or template.slug,
        description=template.description,
        form_type=form_type,
        schema=structural,
        ui_config=copy.deepcopy(template.ui_config) or embedded_ui or {},
        version=1,
        is_active=True,
        is_default=False,
        requires_auth=False,
        source_template_id=template.id,
        is_customized=False,
        created_by=created_by,
    )
    template.usage_count = (template.usage_count or 0) + 1
    return form


def push_template_update(template: FormTemplate, forms: Iterable[AgencyForm]) -> list[AgencyForm]:
    """
    Propagate a template's current documents to the forms derived from it.

    Customized forms and forms from other templates are skipped. A form's
    version is bumped only when its structural document actually changes.

    Returns:
        The forms that were updated
    """
    structural, embedded_ui = _split(template.schema)
    template_ui = copy.deepcopy(template.ui_config) or embedded_ui or {}

    updated: list[AgencyForm] = []
    for form in forms:
        if form.source_template_id != template.id:
            continue
        if form.is_customized:
            logger.debug(f"Skipping customized form {form.id} for template {template.slug}")
            continue

        if is_structural_change(form.schema, structural):
            form.schema = copy.deepcopy(structural)
            form.version = (form.version or 1) + 1
        form.ui_config = copy.deepcopy(template_ui)
        updated.append(form)

    logger.info(f"Pushed template {template.slug} to {len(updated)} form(s)")
    return updated
