# Data access layer - PostgreSQL repositories
from formengine.repositories.base import BaseRepository
from formengine.repositories.consultations import ConsultationRepository
from formengine.repositories.drafts import ConsultationDraftRepository
from formengine.repositories.forms import (
    AgencyFormRepository,
    FieldOptionSetRepository,
    FormTemplateRepository,
)
from formengine.repositories.versions import ConsultationVersionRepository

__all__ = [
    "AgencyFormRepository",
    "BaseRepository",
    "ConsultationDraftRepository",
    "ConsultationRepository",
    "ConsultationVersionRepository",
    "FieldOptionSetRepository",
    "FormTemplateRepository",
]
