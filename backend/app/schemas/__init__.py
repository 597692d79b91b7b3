"""
Pydantic schemas package.
"""

from app.schemas.dates import OptionalDate, parse_optional_date
from app.schemas.recurring import (
    TemplateParticipantInput,
    TemplateParticipantResponse,
    TemplateCreate,
    TemplateUpdate,
    TemplateResponse,
    TemplatesByCategoryResponse,
    PreFillData,
    GenerationReport,
)
from app.schemas.movement import MovementParticipantInput, MovementCreate
from app.schemas.budget import BudgetSet

__all__ = [
    "OptionalDate",
    "parse_optional_date",
    "TemplateParticipantInput",
    "TemplateParticipantResponse",
    "TemplateCreate",
    "TemplateUpdate",
    "TemplateResponse",
    "TemplatesByCategoryResponse",
    "PreFillData",
    "GenerationReport",
    "MovementParticipantInput",
    "MovementCreate",
    "BudgetSet",
]
