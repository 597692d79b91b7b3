"""
Monthly budget database model.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Date, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database import Base


class MonthlyBudget(Base):
    """Budgeted amount for one category in one calendar month."""

    __tablename__ = "monthly_budgets"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    household_id = Column(String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False)
    category_id = Column(String(36), ForeignKey("categories.id", ondelete="CASCADE"), nullable=False)
    month = Column(Date, nullable=False)  # First day of month
    amount = Column(Numeric(15, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    category = relationship("Category", back_populates="budgets")

    __table_args__ = (
        UniqueConstraint("household_id", "category_id", "month", name="uq_budget_category_month"),
    )
