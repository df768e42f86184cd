"""
Form Validation Engine

Validates candidate form values against a FormSchema and returns per-field
error messages. Validation never raises; failures come back as an errors
map keyed by field name.

Rule priority per field (only the first violation is reported):
    1. required
    2. type / pattern
    3. length / range

Type-specific rules are looked up in a dispatch table keyed by field type.
"""

import logging
import math
import re
from dataclasses import dataclass, field as dc_field
from datetime import date, datetime
from functools import lru_cache
from typing import Any, Callable, Iterable, Mapping

from pydantic import EmailStr, HttpUrl, TypeAdapter, ValidationError

from formengine.models.contracts.forms import FormField, FormSchema, ValidationRules
from formengine.models.enums import FormFieldType
from formengine.services.forms.schema import OptionSets, resolve_field_options

logger = logging.getLogger(__name__)

# Messages
REQUIRED_MESSAGE = "This field is required"
INVALID_MESSAGE = "Invalid value"
INVALID_EMAIL_MESSAGE = "Please enter a valid email address"
INVALID_URL_MESSAGE = "Please enter a valid URL"
INVALID_NUMBER_MESSAGE = "Please enter a valid number"
INVALID_DATE_MESSAGE = "Please enter a valid date"
INVALID_OPTION_MESSAGE = "Please select a valid option"
PATTERN_MESSAGE = "Invalid format"

DEFAULT_MAX_RATING = 5

_email_adapter = TypeAdapter(EmailStr)
_url_adapter = TypeAdapter(HttpUrl)
_date_adapter = TypeAdapter(date)
_datetime_adapter = TypeAdapter(datetime)

Check = Callable[[FormField, Any, "_Context"], str | None]


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validate_form_data. ``data`` holds the checked values on success."""
    errors: dict[str, str] = dc_field(default_factory=dict)
    data: dict[str, Any] | None = None

    @property
    def success(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class _Context:
    option_sets: OptionSets | None


# ==================== HELPERS ====================


def is_empty(value: Any) -> bool:
    """None, empty string, or empty list/tuple/set. Whitespace is a value."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) == 0
    return False


def _rules(field: FormField) -> ValidationRules:
    return field.validation or ValidationRules()


def _to_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str] | None:
    try:
        return re.compile(pattern)
    except re.error as e:
        logger.warning(f"Ignoring invalid validation pattern {pattern!r}: {e}")
        return None


def _adapter_accepts(adapter: TypeAdapter, value: Any) -> bool:
    try:
        adapter.validate_python(value)
    except ValidationError:
        return False
    return True


# ==================== TYPE / PATTERN CHECKS ====================


def _check_string(field: FormField, value: Any, ctx: _Context) -> str | None:
    return None if isinstance(value, str) else INVALID_MESSAGE


def _check_email(field: FormField, value: Any, ctx: _Context) -> str | None:
    if not isinstance(value, str) or not _adapter_accepts(_email_adapter, value.strip()):
        return INVALID_EMAIL_MESSAGE
    return None


def _check_url(field: FormField, value: Any, ctx: _Context) -> str | None:
    if not isinstance(value, str) or not _adapter_accepts(_url_adapter, value.strip()):
        return INVALID_URL_MESSAGE
    return None


def _check_pattern(field: FormField, value: Any, ctx: _Context) -> str | None:
    rules = _rules(field)
    if not rules.pattern or not isinstance(value, str):
        return None
    compiled = _compile(rules.pattern)
    if compiled is None or compiled.fullmatch(value):
        return None
    return rules.pattern_message or PATTERN_MESSAGE


def _check_number(field: FormField, value: Any, ctx: _Context) -> str | None:
    return None if _to_number(value) is not None else INVALID_NUMBER_MESSAGE


def _check_date(field: FormField, value: Any, ctx: _Context) -> str | None:
    if isinstance(value, date):
        return None
    if isinstance(value, str) and _adapter_accepts(_date_adapter, value.strip()):
        return None
    return INVALID_DATE_MESSAGE


def _check_datetime(field: FormField, value: Any, ctx: _Context) -> str | None:
    if isinstance(value, datetime):
        return None
    if isinstance(value, str) and _adapter_accepts(_datetime_adapter, value.strip()):
        return None
    return INVALID_DATE_MESSAGE


def _check_choice(field: FormField, value: Any, ctx: _Context) -> str | None:
    if not isinstance(value, str):
        return INVALID_OPTION_MESSAGE
    options = resolve_field_options(field, ctx.option_sets)
    if options and value not in {option.value for option in options}:
        return INVALID_OPTION_MESSAGE
    return None


def _check_multichoice(field: FormField, value: Any, ctx: _Context) -> str | None:
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        return INVALID_OPTION_MESSAGE
    options = resolve_field_options(field, ctx.option_sets)
    if options:
        allowed = {option.value for option in options}
        if any(v not in allowed for v in value):
            return INVALID_OPTION_MESSAGE
    return None


def _check_checkbox(field: FormField, value: Any, ctx: _Context) -> str | None:
    return None if isinstance(value, bool) else INVALID_MESSAGE


# ==================== LENGTH / RANGE CHECKS ====================


def _check_length(field: FormField, value: Any, ctx: _Context) -> str | None:
    rules = _rules(field)
    length = len(value)
    if rules.min_length is not None and length < rules.min_length:
        return f"Must be at least {rules.min_length} characters"
    if rules.max_length is not None and length > rules.max_length:
        return f"Must be at most {rules.max_length} characters"
    return None


def _check_range(field: FormField, value: Any, ctx: _Context) -> str | None:
    rules = _rules(field)
    number = _to_number(value)
    if number is None:
        return None
    if rules.min is not None and number < rules.min:
        return f"Must be at least {_format_number(rules.min)}"
    if rules.max is not None and number > rules.max:
        return f"Must be at most {_format_number(rules.max)}"
    return None


def _check_rating(field: FormField, value: Any, ctx: _Context) -> str | None:
    rules = _rules(field)
    number = _to_number(value)
    if number is None:
        return None
    upper = rules.max if rules.max is not None else DEFAULT_MAX_RATING
    if number < 1 or number > upper:
        return f"Please choose a rating between 1 and {_format_number(upper)}"
    return None


# ==================== DISPATCH TABLE ====================

# (type/pattern checks, length/range checks) per field type
_TEXT_RULES: tuple[tuple[Check, ...], tuple[Check, ...]] = (
    (_check_string, _check_pattern),
    (_check_length,),
)

FIELD_RULES: dict[FormFieldType, tuple[tuple[Check, ...], tuple[Check, ...]]] = {
    FormFieldType.TEXT: _TEXT_RULES,
    FormFieldType.TEL: _TEXT_RULES,
    FormFieldType.PASSWORD: _TEXT_RULES,
    FormFieldType.TEXTAREA: _TEXT_RULES,
    FormFieldType.EMAIL: ((_check_email, _check_pattern), (_check_length,)),
    FormFieldType.URL: ((_check_url, _check_pattern), (_check_length,)),
    FormFieldType.NUMBER: ((_check_number,), (_check_range,)),
    FormFieldType.SLIDER: ((_check_number,), (_check_range,)),
    FormFieldType.RATING: ((_check_number,), (_check_rating,)),
    FormFieldType.SELECT: ((_check_choice,), ()),
    FormFieldType.RADIO: ((_check_choice,), ()),
    FormFieldType.MULTISELECT: ((_check_multichoice,), ()),
    FormFieldType.CHECKBOX: ((_check_checkbox,), ()),
    FormFieldType.DATE: ((_check_date,), ()),
    FormFieldType.DATETIME: ((_check_datetime,), ()),
    # accept/maxSize are enforced by the upload collaborator
    FormFieldType.FILE: ((), ()),
    FormFieldType.SIGNATURE: ((), ()),
    FormFieldType.HEADING: ((), ()),
    FormFieldType.PARAGRAPH: ((), ()),
    FormFieldType.DIVIDER: ((), ()),
}


def validate_field(
    field: FormField, value: Any, option_sets: OptionSets | None = None
) -> str | None:
    """
    Validate a single value. Returns the first error message or None.
    """
    if field.is_layout:
        return None

    if is_empty(value):
        return REQUIRED_MESSAGE if field.is_required else None

    type_checks, bound_checks = FIELD_RULES[field.type]
    ctx = _Context(option_sets=option_sets)
    for check in (*type_checks, *bound_checks):
        message = check(field, value, ctx)
        if message:
            rules = field.validation
            return rules.custom_message if rules and rules.custom_message else message
    return None


def validate_form_data(
    schema: FormSchema,
    values: Mapping[str, Any],
    field_names: Iterable[str] | None = None,
    option_sets: OptionSets | None = None,
) -> ValidationResult:
    """
    Validate form values against a schema.

    Args:
        schema: Parsed form schema
        values: Candidate values keyed by field name
        field_names: If given, only these fields are checked (per-step validation)
        option_sets: Pre-resolved option sets keyed by slug

    Returns:
        ValidationResult with an errors map (empty on success)
    """
    scope = set(field_names) if field_names is not None else None
    errors: dict[str, str] = {}

    for field in schema.input_fields():
        if scope is not None and field.name not in scope:
            continue
        if field.name in errors:
            continue
        message = validate_field(field, values.get(field.name), option_sets)
        if message:
            errors[field.name] = message

    if errors:
        return ValidationResult(errors=errors)
    return ValidationResult(data=dict(values))
