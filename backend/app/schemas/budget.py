"""
Monthly budget schemas.
"""

from pydantic import BaseModel
from decimal import Decimal
from typing import Optional


class BudgetSet(BaseModel):
    """Set (create or replace) the budget of a category for a month."""
    category_id: str
    month: str  # YYYY-MM
    amount: Decimal
    household_id: Optional[str] = None  # defaults to the acting user's household
