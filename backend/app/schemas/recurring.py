"""Pydantic schemas for recurring movement templates."""

from pydantic import BaseModel
from typing import Optional, List, Dict
from datetime import date, datetime
from decimal import Decimal

from app.models.actor import Actor
from app.models.movement import MovementType
from app.models.recurring import RecurrencePattern
from app.schemas.dates import OptionalDate


class TemplateParticipantInput(BaseModel):
    participant: Actor
    percentage: float  # 0.0 to 1.0


class TemplateParticipantResponse(BaseModel):
    id: str
    participant: Actor
    percentage: float

    class Config:
        from_attributes = True


class TemplateCreate(BaseModel):
    """
    Full field set of a template.

    Field types are deliberately loose: completeness and ranges depend on
    the template mode and are checked by template validation, which reports
    the first violated rule.
    """
    name: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True

    movement_type: Optional[MovementType] = None
    category_id: Optional[str] = None
    amount: Optional[Decimal] = None
    currency: Optional[str] = None

    payer: Optional[Actor] = None
    counterparty: Optional[Actor] = None
    payment_method_id: Optional[str] = None
    receiver_account_id: Optional[str] = None
    participants: List[TemplateParticipantInput] = []

    auto_generate: bool = False
    recurrence_pattern: Optional[str] = None
    day_of_month: Optional[int] = None
    day_of_year: Optional[int] = None
    start_date: OptionalDate = None


class TemplateUpdate(BaseModel):
    """Partial update; only fields present in the payload are applied."""
    name: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None

    movement_type: Optional[MovementType] = None
    category_id: Optional[str] = None
    amount: Optional[Decimal] = None
    currency: Optional[str] = None

    payer: Optional[Actor] = None
    counterparty: Optional[Actor] = None
    payment_method_id: Optional[str] = None
    receiver_account_id: Optional[str] = None
    participants: Optional[List[TemplateParticipantInput]] = None

    auto_generate: Optional[bool] = None
    recurrence_pattern: Optional[str] = None
    day_of_month: Optional[int] = None
    day_of_year: Optional[int] = None
    start_date: OptionalDate = None


class TemplateResponse(BaseModel):
    id: str
    household_id: str
    name: str
    description: Optional[str] = None
    is_active: bool

    movement_type: Optional[MovementType] = None
    category_id: str
    amount: Decimal
    currency: str

    payer: Optional[Actor] = None
    counterparty: Optional[Actor] = None
    payment_method_id: Optional[str] = None
    receiver_account_id: Optional[str] = None
    participants: List[TemplateParticipantResponse] = []

    auto_generate: bool
    recurrence_pattern: Optional[RecurrencePattern] = None
    day_of_month: Optional[int] = None
    day_of_year: Optional[int] = None
    start_date: Optional[date] = None

    last_generated_date: Optional[datetime] = None
    next_scheduled_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TemplatesByCategoryResponse(BaseModel):
    """Templates grouped by category_id."""
    categories: Dict[str, List[TemplateResponse]]


class PreFillData(BaseModel):
    """Values used to seed the manual movement form from a template."""
    template_id: str
    template_name: str
    movement_type: Optional[MovementType] = None
    amount: Decimal
    currency: str
    category_id: str

    payer: Optional[Actor] = None
    counterparty: Optional[Actor] = None
    payment_method_id: Optional[str] = None
    receiver_account_id: Optional[str] = None
    participants: List[TemplateParticipantInput] = []


class GenerationReport(BaseModel):
    """Outcome of one generation pass."""
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    movement_ids: List[str] = []
