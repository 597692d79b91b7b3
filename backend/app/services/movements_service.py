"""Ledger service: creation of movements."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import MovementError, NotAuthorizedError
from app.models.actor import Member, ExternalContact, actor_to_columns
from app.models.movement import Movement, MovementParticipant, MovementType
from app.schemas.movement import MovementCreate
from app.services import households_service

logger = logging.getLogger(__name__)


def _check_actor(db: Session, household_id: str, actor, role: str) -> None:
    if isinstance(actor, Member) and not households_service.is_member(db, household_id, actor.user_id):
        raise NotAuthorizedError(f"{role} is not a member of the household")
    if isinstance(actor, ExternalContact) and not households_service.is_household_contact(db, household_id, actor.contact_id):
        raise NotAuthorizedError(f"{role} is not a contact of the household")


def _check_shape(data: MovementCreate) -> None:
    if data.amount is None or data.amount <= 0:
        raise MovementError("amount must be greater than 0")
    if not data.description.strip():
        raise MovementError("description is required")

    if data.movement_type == MovementType.HOUSEHOLD:
        if data.payer or data.counterparty or data.participants:
            raise MovementError("HOUSEHOLD movements take no payer, counterparty or participants")
    elif data.movement_type == MovementType.SPLIT:
        if data.payer is None:
            raise MovementError("SPLIT movements require a payer")
        if not data.participants:
            raise MovementError("SPLIT movements require participants")
        total = sum(p.percentage for p in data.participants)
        if abs(total - 1.0) > 0.0001:
            raise MovementError("participant percentages must sum to 100%")
    elif data.movement_type == MovementType.DEBT_PAYMENT:
        if data.payer is None or data.counterparty is None:
            raise MovementError("DEBT_PAYMENT movements require a payer and a counterparty")
        if data.participants:
            raise MovementError("DEBT_PAYMENT movements take no participants")


def create_movement(db: Session, user_id: str, data: MovementCreate) -> Movement:
    """
    Create a movement on behalf of a user.

    The movement belongs to the user's household; every referenced member
    and contact must belong to that household too.
    """
    household_id = households_service.resolve_household_id(db, user_id, data.household_id)
    _check_shape(data)

    _check_actor(db, household_id, data.payer, "payer")
    _check_actor(db, household_id, data.counterparty, "counterparty")
    for p in data.participants:
        _check_actor(db, household_id, p.participant, "participant")

    movement = Movement(
        household_id=household_id,
        movement_type=data.movement_type,
        description=data.description,
        amount=data.amount,
        currency=data.currency or settings.default_currency,
        category_id=data.category_id,
        movement_date=data.movement_date,
        payment_method_id=data.payment_method_id,
        receiver_account_id=data.receiver_account_id,
        generated_from_template_id=data.generated_from_template_id,
        created_by_user_id=user_id,
    )
    movement.payer_user_id, movement.payer_contact_id = actor_to_columns(data.payer)
    movement.counterparty_user_id, movement.counterparty_contact_id = actor_to_columns(data.counterparty)

    for position, p in enumerate(data.participants):
        participant_user_id, participant_contact_id = actor_to_columns(p.participant)
        movement.participants.append(MovementParticipant(
            position=position,
            participant_user_id=participant_user_id,
            participant_contact_id=participant_contact_id,
            percentage=p.percentage,
        ))

    db.add(movement)
    db.commit()
    db.refresh(movement)

    logger.info(
        "movement created id=%s type=%s amount=%s template=%s",
        movement.id, movement.movement_type.value, movement.amount, movement.generated_from_template_id,
    )
    return movement

