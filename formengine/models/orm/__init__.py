"""
SQLAlchemy ORM Models

Pure database models using SQLAlchemy 2.0 declarative style.
For document contracts, see formengine.models.contracts.
"""

from formengine.models.orm.base import Base, JSONDocument
from formengine.models.orm.consultations import Consultation, ConsultationDraft, ConsultationVersion
from formengine.models.orm.forms import AgencyForm, FieldOptionSet, FormTemplate

__all__ = [
    # Base
    "Base",
    "JSONDocument",
    # Consultations
    "Consultation",
    "ConsultationDraft",
    "ConsultationVersion",
    # Forms
    "AgencyForm",
    "FormTemplate",
    "FieldOptionSet",
]
