"""
Form engine services: schema utilities, validation, the runtime session,
and form definition maintenance.
"""

from formengine.services.forms.definitions import (
    apply_form_update,
    create_form_from_template,
    push_template_update,
)
from formengine.services.forms.schema import (
    DEFAULT_UI_CONFIG,
    build_form_schema,
    collect_option_set_slugs,
    extract_ui_config,
    get_initial_form_data,
    is_structural_change,
    merge_initial_data,
    resolve_field_options,
    resolve_form_overrides,
)
from formengine.services.forms.session import FormSession, FormState
from formengine.services.forms.validation import (
    ValidationResult,
    validate_field,
    validate_form_data,
)

__all__ = [
    "DEFAULT_UI_CONFIG",
    "FormSession",
    "FormState",
    "ValidationResult",
    "apply_form_update",
    "build_form_schema",
    "collect_option_set_slugs",
    "create_form_from_template",
    "extract_ui_config",
    "get_initial_form_data",
    "is_structural_change",
    "merge_initial_data",
    "push_template_update",
    "resolve_field_options",
    "resolve_form_overrides",
    "validate_field",
    "validate_form_data",
]
