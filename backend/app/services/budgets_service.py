"""Monthly budget service."""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import BudgetError
from app.models.budget import MonthlyBudget
from app.models.category import Category
from app.schemas.budget import BudgetSet
from app.services import households_service

logger = logging.getLogger(__name__)


def parse_month(month: str):
    """Parse a YYYY-MM string into the first day of that month."""
    try:
        return datetime.strptime(month, "%Y-%m").date()
    except (TypeError, ValueError):
        raise BudgetError("invalid month format (must be YYYY-MM)")


def set_budget(db: Session, user_id: str, data: BudgetSet) -> MonthlyBudget:
    """Create or replace the budget of a category for a month."""
    household_id = households_service.resolve_household_id(db, user_id, data.household_id)
    month = parse_month(data.month)
    if data.amount < 0:
        raise BudgetError("amount must be non-negative")

    category = db.query(Category).filter(
        Category.id == data.category_id,
        Category.household_id == household_id
    ).first()
    if not category:
        raise BudgetError("category not found")

    budget = db.query(MonthlyBudget).filter(
        MonthlyBudget.household_id == household_id,
        MonthlyBudget.category_id == data.category_id,
        MonthlyBudget.month == month
    ).first()
    if budget:
        budget.amount = data.amount
    else:
        budget = MonthlyBudget(
            household_id=household_id,
            category_id=data.category_id,
            month=month,
            amount=data.amount,
            currency=settings.default_currency,
        )
        db.add(budget)

    db.commit()
    db.refresh(budget)
    return budget


def get_budget(db: Session, household_id: str, category_id: str, month: str):
    """Get the budget of a category for a month, if any."""
    return db.query(MonthlyBudget).filter(
        MonthlyBudget.household_id == household_id,
        MonthlyBudget.category_id == category_id,
        MonthlyBudget.month == parse_month(month)
    ).first()
