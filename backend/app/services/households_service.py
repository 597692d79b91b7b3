"""Household membership lookups."""

from typing import Optional

from sqlalchemy.orm import Session

from app.exceptions import NotAuthorizedError
from app.models.household import HouseholdMember, Contact


def get_user_household_id(db: Session, user_id: str) -> str:
    """Return the household the user belongs to."""
    membership = db.query(HouseholdMember).filter(
        HouseholdMember.user_id == user_id
    ).order_by(HouseholdMember.created_at).first()
    if not membership:
        raise NotAuthorizedError("user does not belong to a household")
    return membership.household_id


def is_member(db: Session, household_id: str, user_id: str) -> bool:
    """Check whether a user is a member of the household."""
    return db.query(HouseholdMember).filter(
        HouseholdMember.household_id == household_id,
        HouseholdMember.user_id == user_id
    ).first() is not None


def is_household_contact(db: Session, household_id: str, contact_id: str) -> bool:
    """Check whether a contact belongs to the household."""
    return db.query(Contact).filter(
        Contact.household_id == household_id,
        Contact.id == contact_id
    ).first() is not None


def resolve_household_id(db: Session, user_id: str, household_id: Optional[str] = None) -> str:
    """
    Household an operation acts on.

    An explicit ``household_id`` must be one the user belongs to; without it
    the user's first household is used.
    """
    if household_id is None:
        return get_user_household_id(db, user_id)
    if not is_member(db, household_id, user_id):
        raise NotAuthorizedError("user does not belong to the household")
    return household_id
