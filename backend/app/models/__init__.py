"""
Database models package.
"""

from app.models.actor import Actor, Member, ExternalContact
from app.models.household import Household, HouseholdMember, Contact
from app.models.category import Category
from app.models.account import Account, AccountType
from app.models.payment_method import PaymentMethod, PaymentMethodType
from app.models.movement import Movement, MovementParticipant, MovementType
from app.models.budget import MonthlyBudget
from app.models.recurring import RecurringMovementTemplate, TemplateParticipant, RecurrencePattern

__all__ = [
    "Actor",
    "Member",
    "ExternalContact",
    "Household",
    "HouseholdMember",
    "Contact",
    "Category",
    "Account",
    "AccountType",
    "PaymentMethod",
    "PaymentMethodType",
    "Movement",
    "MovementParticipant",
    "MovementType",
    "MonthlyBudget",
    "RecurringMovementTemplate",
    "TemplateParticipant",
    "RecurrencePattern",
]
