"""
Payment method database model.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Enum, ForeignKey
import enum
from app.database import Base


class PaymentMethodType(str, enum.Enum):
    """Payment method type enumeration."""
    debit_card = "debit_card"
    credit_card = "credit_card"
    cash = "cash"
    transfer = "transfer"
    other = "other"


class PaymentMethod(Base):
    """Card, cash or transfer a household member pays with."""

    __tablename__ = "payment_methods"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    household_id = Column(String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False, index=True)
    owner_user_id = Column(String(36), nullable=False)
    name = Column(String(100), nullable=False)
    method_type = Column(Enum(PaymentMethodType), nullable=False, default=PaymentMethodType.debit_card)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
