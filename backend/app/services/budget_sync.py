"""Keep category budgets in line with the templates that forecast them."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.recurring import RecurringMovementTemplate
from app.schemas.budget import BudgetSet
from app.services import budgets_service

logger = logging.getLogger(__name__)


def templates_sum(db: Session, household_id: str, category_id: str) -> Decimal:
    """
    Sum of the amounts of a household's templates in a category.

    Only active templates count: deactivating a template removes it from the
    forecast instead of leaving a paused expense in the budget.
    """
    total = db.query(func.sum(RecurringMovementTemplate.amount)).filter(
        RecurringMovementTemplate.household_id == household_id,
        RecurringMovementTemplate.category_id == category_id,
        RecurringMovementTemplate.is_active == True
    ).scalar()
    return Decimal(str(total)) if total is not None else Decimal("0")


def sync_category_budget(
    db: Session,
    user_id: str,
    household_id: str,
    category_id: str,
    today: Optional[date] = None,
) -> None:
    """
    Push the templates sum of a category as this month's budget.

    A zero sum leaves the budget untouched. Failures are logged and never
    raised: the template change that triggered the sync has already been
    committed.
    """
    month = (today or date.today()).strftime("%Y-%m")
    try:
        total = templates_sum(db, household_id, category_id)
        if total == 0:
            logger.info(
                "no templates for category, skipping budget update category_id=%s month=%s",
                category_id, month,
            )
            return

        budgets_service.set_budget(
            db, user_id, BudgetSet(category_id=category_id, month=month, amount=total, household_id=household_id)
        )
        logger.info(
            "budget auto-updated from templates category_id=%s month=%s amount=%s",
            category_id, month, total,
        )
    except Exception:
        db.rollback()
        logger.warning(
            "failed to update budget from templates category_id=%s month=%s",
            category_id, month, exc_info=True,
        )
