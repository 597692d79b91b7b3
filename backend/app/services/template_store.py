"""Persistence of recurring movement templates and their participants."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import DuplicateTemplateNameError, TemplateNotFoundError
from app.models.movement import MovementType
from app.models.recurring import RecurringMovementTemplate, TemplateParticipant, RecurrencePattern
from app.schemas.recurring import TemplateCreate
from app.services.template_validation import stored_percentage


def _ensure_unique_name(db: Session, household_id: str, name: str, exclude_id: Optional[str] = None) -> None:
    query = db.query(RecurringMovementTemplate).filter(
        RecurringMovementTemplate.household_id == household_id,
        RecurringMovementTemplate.name == name
    )
    if exclude_id:
        query = query.filter(RecurringMovementTemplate.id != exclude_id)
    if query.first() is not None:
        raise DuplicateTemplateNameError(name)


def _apply_fields(template: RecurringMovementTemplate, draft: TemplateCreate) -> None:
    """Copy the user-authored fields of a validated draft onto a row."""
    template.name = draft.name.strip()
    template.description = draft.description
    template.is_active = draft.is_active

    template.movement_type = draft.movement_type
    template.category_id = draft.category_id
    template.amount = draft.amount
    template.currency = draft.currency or template.currency or settings.default_currency

    template.payer = draft.payer
    template.counterparty = draft.counterparty
    template.payment_method_id = draft.payment_method_id or None
    template.receiver_account_id = draft.receiver_account_id or None

    participants = []
    for position, p in enumerate(draft.participants):
        participant = TemplateParticipant(position=position, percentage=stored_percentage(p.percentage))
        participant.participant = p.participant
        participants.append(participant)
    template.participants = participants

    template.auto_generate = draft.auto_generate
    template.recurrence_pattern = (
        RecurrencePattern(draft.recurrence_pattern) if draft.recurrence_pattern is not None else None
    )
    template.day_of_month = draft.day_of_month
    template.day_of_year = draft.day_of_year
    template.start_date = draft.start_date


def create_template(
    db: Session,
    household_id: str,
    draft: TemplateCreate,
    next_scheduled_date: Optional[datetime] = None,
) -> RecurringMovementTemplate:
    """Insert a template and its participants in a single commit."""
    _ensure_unique_name(db, household_id, draft.name.strip())

    template = RecurringMovementTemplate(household_id=household_id)
    _apply_fields(template, draft)
    template.next_scheduled_date = next_scheduled_date

    db.add(template)
    db.commit()
    db.refresh(template)
    return template


def get_template(db: Session, template_id: str) -> RecurringMovementTemplate:
    template = db.query(RecurringMovementTemplate).filter(
        RecurringMovementTemplate.id == template_id
    ).first()
    if not template:
        raise TemplateNotFoundError(template_id)
    return template


def list_templates(
    db: Session,
    household_id: str,
    category_id: Optional[str] = None,
    is_active: Optional[bool] = None,
    movement_type: Optional[MovementType] = None,
) -> List[RecurringMovementTemplate]:
    """List a household's templates with optional filters."""
    query = db.query(RecurringMovementTemplate).filter(
        RecurringMovementTemplate.household_id == household_id
    )
    if category_id is not None:
        query = query.filter(RecurringMovementTemplate.category_id == category_id)
    if is_active is not None:
        query = query.filter(RecurringMovementTemplate.is_active == is_active)
    if movement_type is not None:
        query = query.filter(RecurringMovementTemplate.movement_type == movement_type)

    return query.order_by(RecurringMovementTemplate.name).all()


def list_templates_by_category(db: Session, category_id: str) -> List[RecurringMovementTemplate]:
    """List active templates of a category."""
    return db.query(RecurringMovementTemplate).filter(
        RecurringMovementTemplate.category_id == category_id,
        RecurringMovementTemplate.is_active == True
    ).order_by(RecurringMovementTemplate.name).all()


def list_pending_auto_generation(db: Session, now: datetime) -> List[RecurringMovementTemplate]:
    """Templates due for generation, least recently due first."""
    return db.query(RecurringMovementTemplate).filter(
        RecurringMovementTemplate.is_active == True,
        RecurringMovementTemplate.auto_generate == True,
        RecurringMovementTemplate.next_scheduled_date.isnot(None),
        RecurringMovementTemplate.next_scheduled_date <= now
    ).order_by(RecurringMovementTemplate.next_scheduled_date.asc()).all()


def update_template(
    db: Session,
    template: RecurringMovementTemplate,
    draft: TemplateCreate,
    next_scheduled_date: Optional[datetime],
) -> RecurringMovementTemplate:
    """Replace a template's user-authored fields and participants."""
    _ensure_unique_name(db, template.household_id, draft.name.strip(), exclude_id=template.id)

    _apply_fields(template, draft)
    template.next_scheduled_date = next_scheduled_date

    db.commit()
    db.refresh(template)
    return template


def update_generation_tracking(
    db: Session,
    template_id: str,
    last_generated: datetime,
    next_scheduled: Optional[datetime],
) -> None:
    """Record a generation. ``next_scheduled`` of None means nothing further is scheduled."""
    template = get_template(db, template_id)
    template.last_generated_date = last_generated
    template.next_scheduled_date = next_scheduled
    db.commit()


def delete_template(db: Session, template_id: str) -> None:
    template = get_template(db, template_id)
    db.delete(template)
    db.commit()
