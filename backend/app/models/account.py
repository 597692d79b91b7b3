"""
Account database model.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Enum, ForeignKey
import enum
from app.database import Base


class AccountType(str, enum.Enum):
    """Account type enumeration."""
    savings = "savings"
    checking = "checking"
    cash = "cash"
    other = "other"


class Account(Base):
    """Account that receives money, e.g. the creditor side of a debt payment."""

    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    household_id = Column(String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False, index=True)
    owner_user_id = Column(String(36), nullable=False)
    name = Column(String(100), nullable=False)
    account_type = Column(Enum(AccountType), nullable=False, default=AccountType.savings)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
