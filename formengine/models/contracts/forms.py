"""
Form contract models.

Stored documents are camelCase JSON (optionSetSlug, minLength, uiConfig);
models expose snake_case attributes with camelCase aliases. Unknown keys
are kept so a document survives a parse/dump cycle unchanged.
"""

from dataclasses import dataclass
from typing import Any, Iterator

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from formengine.models.enums import (
    LAYOUT_FIELD_TYPES,
    FieldWidth,
    FormFieldType,
    FormLayout,
)


class DocumentModel(BaseModel):
    """Base for JSON document fragments stored in JSONB columns."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


# ==================== FIELD MODELS ====================


class FieldOption(DocumentModel):
    """A single choice for select/radio/multiselect fields"""
    value: str
    label: str


class ValidationRules(DocumentModel):
    """Per-field validation rules; which ones apply depends on the field type"""
    min_length: int | None = Field(default=None, ge=0)
    max_length: int | None = Field(default=None, ge=0)
    pattern: str | None = None
    pattern_message: str | None = None
    custom_message: str | None = None
    min: float | None = None
    max: float | None = None
    # File fields: advisory only, enforced by the upload collaborator
    accept: str | None = None
    max_size: int | None = None


class FieldLayout(DocumentModel):
    """Placement of a field within its step"""
    width: FieldWidth = FieldWidth.FULL
    order: int | None = None


class FormField(DocumentModel):
    """Form field definition"""
    id: str
    name: str = Field(..., min_length=1, description="Data key in form values")
    type: FormFieldType
    label: str = ""
    required: bool = False
    placeholder: str | None = None
    description: str | None = None
    validation: ValidationRules | None = None
    options: list[FieldOption] | None = None
    option_set_slug: str | None = Field(
        default=None, description="Named option list resolved by the host application")
    default_value: Any | None = None
    layout: FieldLayout | None = None

    @property
    def is_layout(self) -> bool:
        """Heading/paragraph/divider: display only, never validated"""
        return self.type in LAYOUT_FIELD_TYPES

    @property
    def is_required(self) -> bool:
        return self.required and not self.is_layout

    @property
    def width(self) -> FieldWidth:
        return self.layout.width if self.layout else FieldWidth.FULL


class FormStep(DocumentModel):
    """One page of a multi-step form"""
    id: str
    title: str
    description: str | None = None
    fields: list[FormField] = Field(default_factory=list)

    @field_validator("fields")
    @classmethod
    def validate_unique_names(cls, v: list[FormField]) -> list[FormField]:
        """Ensure field names are unique within the step"""
        names = [field.name for field in v if not field.is_layout]
        if len(names) != len(set(names)):
            raise ValueError("Field names must be unique within a step")
        return v

    @property
    def field_names(self) -> list[str]:
        return [field.name for field in self.fields if not field.is_layout]


# ==================== SCHEMA MODELS ====================


class UIConfig(DocumentModel):
    """Cosmetic form configuration, stored apart from the structural schema"""
    layout: FormLayout | None = None
    show_progress_bar: bool | None = None
    show_step_numbers: bool | None = None
    submit_button_text: str | None = None
    success_message: str | None = None
    success_redirect_url: str | None = None


class FormSchema(DocumentModel):
    """Render-ready form definition: ordered steps plus cosmetic config"""
    version: str | None = None
    steps: list[FormStep] = Field(..., min_length=1)
    ui_config: UIConfig | None = None
    form_overrides: dict[str, Any] | None = None

    def iter_fields(self) -> Iterator[tuple[int, FormField]]:
        """Yield (step_index, field) for every field in navigation order."""
        for index, step in enumerate(self.steps):
            for field in step.fields:
                yield index, field

    def input_fields(self) -> list[FormField]:
        """All data-carrying fields (layout elements excluded)."""
        return [field for _, field in self.iter_fields() if not field.is_layout]

    def step_field_names(self, index: int) -> list[str]:
        return self.steps[index].field_names

    def get_field(self, name: str) -> FormField | None:
        """First data-carrying field with this name, in step order."""
        for field in self.input_fields():
            if field.name == name:
                return field
        return None


@dataclass(frozen=True)
class SplitSchema:
    """Result of splitting a merged schema back into its two stored documents"""
    schema: dict[str, Any]
    ui_config: dict[str, Any] | None = None
