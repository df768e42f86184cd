"""
Enumeration types used across the form engine.
"""

from enum import Enum


class FormFieldType(str, Enum):
    """Form field types"""
    TEXT = "text"
    EMAIL = "email"
    TEL = "tel"
    URL = "url"
    PASSWORD = "password"
    NUMBER = "number"
    TEXTAREA = "textarea"
    SELECT = "select"
    MULTISELECT = "multiselect"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    DATE = "date"
    DATETIME = "datetime"
    SLIDER = "slider"
    RATING = "rating"
    FILE = "file"
    SIGNATURE = "signature"
    # Layout elements, never carry data
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    DIVIDER = "divider"


LAYOUT_FIELD_TYPES = frozenset({
    FormFieldType.HEADING,
    FormFieldType.PARAGRAPH,
    FormFieldType.DIVIDER,
})

TEXT_FIELD_TYPES = frozenset({
    FormFieldType.TEXT,
    FormFieldType.EMAIL,
    FormFieldType.TEL,
    FormFieldType.URL,
    FormFieldType.PASSWORD,
    FormFieldType.TEXTAREA,
})

CHOICE_FIELD_TYPES = frozenset({
    FormFieldType.SELECT,
    FormFieldType.RADIO,
    FormFieldType.MULTISELECT,
})


class FieldWidth(str, Enum):
    """Column width a field occupies in the rendered step"""
    FULL = "full"
    HALF = "half"
    THIRD = "third"


class FormLayout(str, Enum):
    """Cosmetic layout of a rendered form"""
    WIZARD = "wizard"
    STEPPER = "stepper"
    SINGLE_COLUMN = "single-column"
    TWO_COLUMN = "two-column"
    CARD = "card"


class FormType(str, Enum):
    """Kind of agency form"""
    QUESTIONNAIRE = "questionnaire"
    CONSULTATION = "consultation"
    FEEDBACK = "feedback"
    INTAKE = "intake"
    CUSTOM = "custom"


class FormPhase(str, Enum):
    """Submission lifecycle of a form session"""
    EDITING = "editing"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"


class StepDirection(str, Enum):
    """Direction passed to the step-change collaborator"""
    NEXT = "next"
    PREV = "prev"


class NavigationResult(str, Enum):
    """Outcome of an advance/retreat attempt"""
    MOVED = "moved"
    INVALID = "invalid"  # Step validation failed, cursor unchanged
    SUBMITTED = "submitted"
    REJECTED = "rejected"  # Not allowed from the current position
    BUSY = "busy"  # Another collaborator call is in flight


class ConsultationStatus(str, Enum):
    """Consultation lifecycle status"""
    DRAFT = "draft"
    COMPLETED = "completed"
    ARCHIVED = "archived"