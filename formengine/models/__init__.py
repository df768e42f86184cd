"""
Models package: enums, document contracts and ORM tables.
"""

from formengine.models.contracts.consultations import (
    TRACKED_FIELDS,
    CommitResult,
    ConsultationDocument,
    ConsultationDraftPublic,
    ConsultationVersionPublic,
    ConsultationVersionsResponse,
    VersionFieldDiff,
)
from formengine.models.contracts.forms import (
    FieldLayout,
    FieldOption,
    FormField,
    FormSchema,
    FormStep,
    SplitSchema,
    UIConfig,
    ValidationRules,
)
from formengine.models.enums import (
    ConsultationStatus,
    FieldWidth,
    FormFieldType,
    FormLayout,
    FormPhase,
    FormType,
    NavigationResult,
    StepDirection,
)
from formengine.models.orm import (
    AgencyForm,
    Base,
    Consultation,
    ConsultationDraft,
    ConsultationVersion,
    FieldOptionSet,
    FormTemplate,
)

__all__ = [
    # Enums
    "ConsultationStatus",
    "FieldWidth",
    "FormFieldType",
    "FormLayout",
    "FormPhase",
    "FormType",
    "NavigationResult",
    "StepDirection",
    # Form contracts
    "FieldLayout",
    "FieldOption",
    "FormField",
    "FormSchema",
    "FormStep",
    "SplitSchema",
    "UIConfig",
    "ValidationRules",
    # Consultation contracts
    "TRACKED_FIELDS",
    "CommitResult",
    "ConsultationDocument",
    "ConsultationDraftPublic",
    "ConsultationVersionPublic",
    "ConsultationVersionsResponse",
    "VersionFieldDiff",
    # ORM
    "AgencyForm",
    "Base",
    "Consultation",
    "ConsultationDraft",
    "ConsultationVersion",
    "FieldOptionSet",
    "FormTemplate",
]
