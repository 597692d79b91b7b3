"""
Movement schemas.
"""

from pydantic import BaseModel
from typing import Optional, List
from datetime import date
from decimal import Decimal

from app.models.actor import Actor
from app.models.movement import MovementType


class MovementParticipantInput(BaseModel):
    participant: Actor
    percentage: float


class MovementCreate(BaseModel):
    movement_type: MovementType
    description: str
    amount: Decimal
    currency: Optional[str] = None
    category_id: Optional[str] = None
    movement_date: date

    payer: Optional[Actor] = None
    counterparty: Optional[Actor] = None
    payment_method_id: Optional[str] = None
    receiver_account_id: Optional[str] = None
    participants: List[MovementParticipantInput] = []

    generated_from_template_id: Optional[str] = None
    household_id: Optional[str] = None  # defaults to the acting user's household
