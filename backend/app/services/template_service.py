"""Business logic for recurring movement templates."""

import logging
from datetime import datetime, time
from typing import Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.exceptions import NotAuthorizedError, TemplateValidationError
from app.models.account import Account
from app.models.actor import Member, ExternalContact
from app.models.category import Category
from app.models.movement import MovementType
from app.models.payment_method import PaymentMethod
from app.models.recurring import RecurringMovementTemplate, RecurrencePattern
from app.schemas.recurring import TemplateCreate, TemplateUpdate, PreFillData, TemplateParticipantInput
from app.services import budget_sync, households_service, template_store
from app.services.recurrence import calculate_next_scheduled_date
from app.services.template_validation import (
    BUDGET_ONLY_FORBIDDEN,
    FORBIDDEN_BY_TYPE,
    validate_template,
)

logger = logging.getLogger(__name__)

# Changing any of these recomputes next_scheduled_date
_SCHEDULE_FIELDS = {
    "is_active",
    "auto_generate",
    "movement_type",
    "recurrence_pattern",
    "day_of_month",
    "day_of_year",
    "start_date",
}


def _template_fields(template: RecurringMovementTemplate) -> dict:
    """Current user-authored fields of a template, shaped like TemplateCreate input."""
    return {
        "name": template.name,
        "description": template.description,
        "is_active": template.is_active,
        "movement_type": template.movement_type,
        "category_id": template.category_id,
        "amount": template.amount,
        "currency": template.currency,
        "payer": template.payer.model_dump() if template.payer else None,
        "counterparty": template.counterparty.model_dump() if template.counterparty else None,
        "payment_method_id": template.payment_method_id,
        "receiver_account_id": template.receiver_account_id,
        "participants": [
            {"participant": p.participant.model_dump(), "percentage": float(p.percentage)}
            for p in template.participants
        ],
        "auto_generate": template.auto_generate,
        "recurrence_pattern": template.recurrence_pattern.value if template.recurrence_pattern else None,
        "day_of_month": template.day_of_month,
        "day_of_year": template.day_of_year,
        "start_date": template.start_date,
    }


def _empty_value(field: str):
    return [] if field == "participants" else None


def _clear_for_type_change(fields: dict, new_type: Optional[MovementType], explicit: set) -> None:
    """Drop fields the new movement type cannot carry, unless the caller set them."""
    if new_type is None:
        cleared = BUDGET_ONLY_FORBIDDEN
        if "auto_generate" not in explicit:
            fields["auto_generate"] = False
    else:
        cleared = FORBIDDEN_BY_TYPE[new_type]

    for field in cleared:
        if field not in explicit:
            fields[field] = _empty_value(field)


def _check_actor(db: Session, household_id: str, actor, role: str) -> None:
    if isinstance(actor, Member):
        if not households_service.is_member(db, household_id, actor.user_id):
            logger.warning(
                "%s not member of household household_id=%s user_id=%s",
                role, household_id, actor.user_id,
            )
            raise NotAuthorizedError(f"{role} is not a member of the household")
    elif isinstance(actor, ExternalContact):
        if not households_service.is_household_contact(db, household_id, actor.contact_id):
            logger.warning(
                "%s contact not in household household_id=%s contact_id=%s",
                role, household_id, actor.contact_id,
            )
            raise NotAuthorizedError(f"{role} is not a contact of the household")


def _check_references(db: Session, household_id: str, draft: TemplateCreate) -> None:
    """Verify every id the template points at belongs to the household."""
    category = db.query(Category).filter(
        Category.id == draft.category_id,
        Category.household_id == household_id
    ).first()
    if not category:
        raise TemplateValidationError("category not found", field="category_id")

    if draft.payment_method_id:
        payment_method = db.query(PaymentMethod).filter(
            PaymentMethod.id == draft.payment_method_id,
            PaymentMethod.household_id == household_id
        ).first()
        if not payment_method:
            raise TemplateValidationError("payment method not found", field="payment_method_id")

    if draft.receiver_account_id:
        account = db.query(Account).filter(
            Account.id == draft.receiver_account_id,
            Account.household_id == household_id
        ).first()
        if not account:
            raise TemplateValidationError("receiver account not found", field="receiver_account_id")

    _check_actor(db, household_id, draft.payer, "payer")
    _check_actor(db, household_id, draft.counterparty, "counterparty")
    for p in draft.participants:
        _check_actor(db, household_id, p.participant, "participant")


def _initial_schedule(draft: TemplateCreate) -> Optional[datetime]:
    if not (draft.auto_generate and draft.is_active):
        return None
    anchor = datetime.combine(draft.start_date, time.min)
    return calculate_next_scheduled_date(
        anchor, draft.recurrence_pattern, draft.day_of_month, draft.day_of_year
    )


def _reschedule(template: RecurringMovementTemplate, draft: TemplateCreate) -> Optional[datetime]:
    """Next occurrence after a schedule change, continuing from the last generation."""
    if not (draft.auto_generate and draft.is_active):
        return None

    anchor = datetime.combine(draft.start_date, time.min)
    last = template.last_generated_date
    if last is not None and last >= anchor:
        if RecurrencePattern(draft.recurrence_pattern) == RecurrencePattern.ONE_TIME:
            return None
        anchor = last
    return calculate_next_scheduled_date(
        anchor, draft.recurrence_pattern, draft.day_of_month, draft.day_of_year
    )


def create_template(db: Session, user_id: str, data: TemplateCreate) -> RecurringMovementTemplate:
    """Validate and store a new template in the requester's household."""
    validate_template(data)

    household_id = households_service.get_user_household_id(db, user_id)
    _check_references(db, household_id, data)

    template = template_store.create_template(db, household_id, data, _initial_schedule(data))

    logger.info(
        "recurring movement template created template_id=%s name=%s auto_generate=%s user_id=%s",
        template.id, template.name, template.auto_generate, user_id,
    )

    budget_sync.sync_category_budget(db, user_id, household_id, template.category_id)
    return template


def get_template(db: Session, user_id: str, template_id: str) -> RecurringMovementTemplate:
    """Get a template the requester's household owns."""
    template = template_store.get_template(db, template_id)
    if not households_service.is_member(db, template.household_id, user_id):
        raise NotAuthorizedError("template belongs to another household")
    return template


def list_templates(
    db: Session,
    user_id: str,
    category_id: Optional[str] = None,
    is_active: Optional[bool] = None,
    movement_type: Optional[MovementType] = None,
) -> List[RecurringMovementTemplate]:
    household_id = households_service.get_user_household_id(db, user_id)
    return template_store.list_templates(
        db, household_id, category_id=category_id, is_active=is_active, movement_type=movement_type
    )


def list_templates_by_category(db: Session, user_id: str, category_id: str) -> List[RecurringMovementTemplate]:
    """Active templates of a category, restricted to the requester's household."""
    household_id = households_service.get_user_household_id(db, user_id)
    templates = template_store.list_templates_by_category(db, category_id)
    return [t for t in templates if t.household_id == household_id]


def list_templates_by_category_map(db: Session, user_id: str) -> Dict[str, List[RecurringMovementTemplate]]:
    """All household templates grouped by category_id."""
    household_id = households_service.get_user_household_id(db, user_id)
    grouped: Dict[str, List[RecurringMovementTemplate]] = {}
    for template in template_store.list_templates(db, household_id):
        grouped.setdefault(template.category_id, []).append(template)
    return grouped


def build_prefill_data(template: RecurringMovementTemplate, invert_roles: bool = False) -> PreFillData:
    """
    Project a template onto the manual movement form.

    With ``invert_roles`` a SPLIT template is turned into the DEBT_PAYMENT
    that settles it: the original payer becomes the counterparty and the
    participant with the largest share becomes the payer.
    """
    data = PreFillData(
        template_id=template.id,
        template_name=template.name,
        movement_type=template.movement_type,
        amount=template.amount,
        currency=template.currency,
        category_id=template.category_id,
        payment_method_id=template.payment_method_id,
        receiver_account_id=template.receiver_account_id,
    )

    if invert_roles and template.movement_type == MovementType.SPLIT:
        data.movement_type = MovementType.DEBT_PAYMENT
        data.counterparty = template.payer

        largest = None
        for p in template.participants:
            if largest is None or p.percentage > largest.percentage:
                largest = p
        data.payer = largest.participant if largest is not None else None
        data.participants = []
        return data

    data.payer = template.payer
    data.counterparty = template.counterparty
    data.participants = [
        TemplateParticipantInput(participant=p.participant, percentage=float(p.percentage))
        for p in template.participants
    ]
    return data


def get_prefill_data(db: Session, user_id: str, template_id: str, invert_roles: bool = False) -> PreFillData:
    template = get_template(db, user_id, template_id)
    return build_prefill_data(template, invert_roles)


def update_template(
    db: Session,
    user_id: str,
    template_id: str,
    data: TemplateUpdate,
) -> RecurringMovementTemplate:
    """
    Merge the fields present in ``data`` over the stored template.

    The merged result is validated as a whole, so an update either applies
    completely or not at all.
    """
    template = get_template(db, user_id, template_id)
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        return template

    fields = _template_fields(template)
    if "movement_type" in changes and changes["movement_type"] != fields["movement_type"]:
        _clear_for_type_change(fields, changes["movement_type"], set(changes))
    if "participants" in changes and changes["participants"] is None:
        changes["participants"] = []
    fields.update(changes)

    try:
        draft = TemplateCreate.model_validate(fields)
    except ValidationError as e:
        error = e.errors()[0]
        field = str(error["loc"][0]) if error["loc"] else None
        raise TemplateValidationError(f"{field}: {error['msg']}", field=field)
    validate_template(draft)
    _check_references(db, template.household_id, draft)

    previous_category_id = template.category_id
    if _SCHEDULE_FIELDS & set(changes):
        next_scheduled = _reschedule(template, draft)
    else:
        next_scheduled = template.next_scheduled_date

    updated = template_store.update_template(db, template, draft, next_scheduled)

    logger.info(
        "recurring movement template updated template_id=%s name=%s user_id=%s",
        updated.id, updated.name, user_id,
    )

    budget_sync.sync_category_budget(db, user_id, updated.household_id, updated.category_id)
    if previous_category_id != updated.category_id:
        budget_sync.sync_category_budget(db, user_id, updated.household_id, previous_category_id)

    return updated


def delete_template(db: Session, user_id: str, template_id: str) -> None:
    template = get_template(db, user_id, template_id)
    household_id = template.household_id
    category_id = template.category_id

    template_store.delete_template(db, template.id)

    logger.info(
        "recurring movement template deleted template_id=%s user_id=%s",
        template_id, user_id,
    )

    budget_sync.sync_category_budget(db, user_id, household_id, category_id)
