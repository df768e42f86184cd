"""
Form Schema Utilities

Initial values, schema/UI-config merge and split, and option resolution.

The database stores a form's structural ``schema`` and its cosmetic
``ui_config`` in separate columns. build_form_schema() merges them into one
render-ready FormSchema on read; extract_ui_config() splits an edited
schema back into the two documents on write, so that a layout change never
touches the structural document (and never bumps the form version).
"""

import copy
import json
import logging
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from formengine.core.exceptions import SchemaError
from formengine.models.contracts.forms import (
    FieldOption,
    FormField,
    FormSchema,
    SplitSchema,
    UIConfig,
)
from formengine.models.enums import (
    CHOICE_FIELD_TYPES,
    TEXT_FIELD_TYPES,
    FormFieldType,
)

logger = logging.getLogger(__name__)

UI_CONFIG_KEY = "uiConfig"

# Used when neither the ui_config column nor the schema carries a config
DEFAULT_UI_CONFIG: dict[str, Any] = {
    "layout": "single-column",
    "showProgressBar": True,
    "showStepNumbers": True,
    "submitButtonText": "Submit",
    "successMessage": "Thank you for your submission!",
}

OptionSets = Mapping[str, list[FieldOption] | list[dict[str, str]]]


# ==================== INITIAL VALUES ====================


def _type_default(field_type: FormFieldType) -> Any:
    if field_type == FormFieldType.CHECKBOX:
        return False
    if field_type == FormFieldType.MULTISELECT:
        return []
    if field_type in TEXT_FIELD_TYPES or field_type in CHOICE_FIELD_TYPES:
        return ""
    # numeric, date, file and signature fields start unset
    return None


def get_initial_form_data(schema: FormSchema) -> dict[str, Any]:
    """
    Compute the starting values for every data-carrying field.

    Layout elements are skipped. An explicit ``defaultValue`` on the field
    wins over the per-type default.

    Args:
        schema: Parsed form schema

    Returns:
        Mapping of field name to initial value
    """
    data: dict[str, Any] = {}
    for field in schema.input_fields():
        if field.name in data:
            continue
        if field.default_value is not None:
            data[field.name] = copy.deepcopy(field.default_value)
        else:
            data[field.name] = _type_default(field.type)
    return data


def merge_initial_data(
    schema: FormSchema, *sources: Mapping[str, Any] | None
) -> dict[str, Any]:
    """
    Overlay prior values (draft, saved record) on top of the schema defaults.

    Later sources win. Keys the schema does not define are kept so that
    saving the values back does not lose them.
    """
    data = get_initial_form_data(schema)
    for source in sources:
        if not source:
            continue
        for name, value in source.items():
            data[name] = copy.deepcopy(value)
    return data


# ==================== MERGE / SPLIT ====================


def _load_document(document: Any, what: str) -> dict[str, Any] | None:
    """Accept a dict, a JSON string, a pydantic document, or None."""
    if document is None:
        return None
    if isinstance(document, (FormSchema, UIConfig)):
        return document.model_dump(mode="json", by_alias=True, exclude_unset=True)
    if isinstance(document, (str, bytes)):
        if not document:
            return None
        try:
            document = json.loads(document)
        except json.JSONDecodeError as e:
            raise SchemaError(f"{what} is not valid JSON: {e}") from e
    if not isinstance(document, Mapping):
        raise SchemaError(f"{what} must be a JSON object, got {type(document).__name__}")
    return copy.deepcopy(dict(document))


def build_form_schema(structural: Any, ui_config: Any = None) -> FormSchema:
    """
    Merge the structural schema and the UI config column into one schema.

    UI config precedence: the ``ui_config`` document if non-empty, else the
    ``uiConfig`` embedded in the structural document (legacy forms), else
    DEFAULT_UI_CONFIG. Neither input is mutated.

    Args:
        structural: Schema document (dict, JSON string or FormSchema)
        ui_config: UI config document (dict, JSON string, UIConfig or None)

    Returns:
        Render-ready FormSchema

    Raises:
        SchemaError: If either document cannot be parsed
    """
    schema_doc = _load_document(structural, "Form schema")
    if schema_doc is None:
        raise SchemaError("Form schema is required")
    ui_doc = _load_document(ui_config, "UI config")

    embedded = schema_doc.pop(UI_CONFIG_KEY, None)
    if ui_doc:
        chosen = ui_doc
    elif embedded:
        chosen = embedded
    else:
        chosen = copy.deepcopy(DEFAULT_UI_CONFIG)

    schema_doc[UI_CONFIG_KEY] = chosen
    try:
        return FormSchema.model_validate(schema_doc)
    except ValidationError as e:
        raise SchemaError(f"Invalid form schema: {e}") from e


def extract_ui_config(schema: FormSchema | Mapping[str, Any]) -> SplitSchema:
    """
    Split a merged schema into the structural and cosmetic documents.

    Returns the structural document without ``uiConfig`` (for the ``schema``
    column) and the UI config on its own (for the ``ui_config`` column).
    """
    if isinstance(schema, FormSchema):
        document = schema.model_dump(mode="json", by_alias=True, exclude_unset=True)
    else:
        document = copy.deepcopy(dict(schema))

    ui_config = document.pop(UI_CONFIG_KEY, None)
    return SplitSchema(schema=document, ui_config=ui_config or None)


def _structural_document(schema: FormSchema | Mapping[str, Any] | None) -> dict[str, Any] | None:
    if schema is None:
        return None
    return extract_ui_config(schema).schema


def is_structural_change(
    old_schema: FormSchema | Mapping[str, Any] | None,
    new_schema: FormSchema | Mapping[str, Any] | None,
) -> bool:
    """
    True if two schemas differ in anything but their UI config.

    Comparison is by value on the structural documents.
    """
    return _structural_document(old_schema) != _structural_document(new_schema)


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def resolve_form_overrides(
    schema: FormSchema, branding: Mapping[str, Any] | None = None
) -> dict[str, Any]:
    """
    Resolve cosmetic overrides for rendering.

    Agency branding is the base, the schema's ``formOverrides`` win on
    overlapping keys, and the UI config's layout always wins over both
    (written to ``layout.formLayout``).
    """
    resolved = _deep_merge({}, branding or {})
    if schema.form_overrides:
        resolved = _deep_merge(resolved, schema.form_overrides)
    if schema.ui_config and schema.ui_config.layout:
        layout = resolved.get("layout")
        if not isinstance(layout, dict):
            layout = {}
        layout["formLayout"] = schema.ui_config.layout.value
        resolved["layout"] = layout
    return resolved


# ==================== OPTIONS ====================


def _coerce_options(options: Iterable[FieldOption | Mapping[str, str]]) -> list[FieldOption]:
    return [
        option if isinstance(option, FieldOption) else FieldOption.model_validate(option)
        for option in options
    ]


def resolve_field_options(
    field: FormField, option_sets: OptionSets | None = None
) -> list[FieldOption]:
    """
    Choices for a select/radio/multiselect field.

    A referenced option set wins when the caller resolved it; otherwise the
    inline options are used. The engine never looks option sets up itself.
    """
    if field.option_set_slug and option_sets and field.option_set_slug in option_sets:
        return _coerce_options(option_sets[field.option_set_slug])
    if field.option_set_slug and field.options is None:
        logger.debug(f"Option set '{field.option_set_slug}' not resolved for field '{field.name}'")
    return list(field.options or [])


def collect_option_set_slugs(schema: FormSchema) -> set[str]:
    """Slugs the host application must resolve before rendering the form."""
    return {field.option_set_slug for field in schema.input_fields() if field.option_set_slug}
