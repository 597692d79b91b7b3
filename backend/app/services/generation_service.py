"""Generation of ledger movements from auto-generating templates."""

import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.exceptions import ActorResolutionError
from app.models.actor import Member
from app.models.movement import Movement, MovementType
from app.models.payment_method import PaymentMethod
from app.models.recurring import RecurringMovementTemplate, RecurrencePattern
from app.schemas.movement import MovementCreate, MovementParticipantInput
from app.schemas.recurring import GenerationReport
from app.services import households_service, template_store
from app.services.movements_service import create_movement
from app.services.recurrence import calculate_next_scheduled_date

logger = logging.getLogger(__name__)

Ledger = Callable[[Session, str, MovementCreate], Movement]

# Passes run one at a time per process, whether started by the scheduler or by hand
_pass_lock = threading.Lock()


def build_movement_request(template: RecurringMovementTemplate, now: datetime) -> MovementCreate:
    """Movement a template produces when generated at ``now``."""
    participants = []
    if template.movement_type == MovementType.SPLIT:
        participants = [
            MovementParticipantInput(participant=p.participant, percentage=float(p.percentage))
            for p in template.participants
        ]

    return MovementCreate(
        movement_type=template.movement_type,
        description=template.name,
        amount=template.amount,
        currency=template.currency,
        category_id=template.category_id,
        movement_date=now.date(),
        payer=template.payer,
        counterparty=template.counterparty,
        payment_method_id=template.payment_method_id,
        receiver_account_id=template.receiver_account_id,
        participants=participants,
        generated_from_template_id=template.id,
        household_id=template.household_id,
    )


def resolve_acting_user(db: Session, template: RecurringMovementTemplate) -> str:
    """
    Pick the household member the movement is created on behalf of.

    In order: the payer if it is a member, the first member among the SPLIT
    participants, the owner of the template's payment method if that owner
    is a member.
    """
    if isinstance(template.payer, Member):
        return template.payer.user_id

    if template.movement_type == MovementType.SPLIT:
        for p in template.participants:
            if isinstance(p.participant, Member):
                return p.participant.user_id

    if template.payment_method_id:
        payment_method = db.query(PaymentMethod).filter(
            PaymentMethod.id == template.payment_method_id
        ).first()
        if payment_method and households_service.is_member(db, template.household_id, payment_method.owner_user_id):
            return payment_method.owner_user_id

    raise ActorResolutionError(
        f"cannot determine a household member to act for template {template.id}"
    )


def generate_movement(
    db: Session,
    template: RecurringMovementTemplate,
    now: Optional[datetime] = None,
    ledger: Ledger = create_movement,
) -> Optional[Movement]:
    """
    Create the movement for one due occurrence and advance the schedule.

    The schedule is only advanced after the ledger accepted the movement, so
    a failed occurrence is retried on the next pass. Movement creation and
    tracking are separate commits: a crash between them regenerates the
    occurrence.
    """
    if not template.auto_generate:
        return None

    now = now or datetime.now()
    template_id = template.id
    template_name = template.name
    request = build_movement_request(template, now)
    user_id = resolve_acting_user(db, template)

    movement = ledger(db, user_id, request)

    logger.info(
        "auto-generated movement from template template_id=%s template_name=%s movement_id=%s amount=%s",
        template_id, template_name, movement.id, movement.amount,
    )

    if template.recurrence_pattern == RecurrencePattern.ONE_TIME:
        next_scheduled = None
    else:
        next_scheduled = calculate_next_scheduled_date(
            now, template.recurrence_pattern, template.day_of_month, template.day_of_year
        )

    template_store.update_generation_tracking(db, template_id, now, next_scheduled)
    return movement


def process_pending_templates(
    db: Session,
    now: Optional[datetime] = None,
    ledger: Ledger = create_movement,
) -> GenerationReport:
    """
    Generate movements for every template due at ``now``.

    Templates are handled one after another in due order; a failure is
    logged and counted and does not stop the rest of the pass.
    """
    now = now or datetime.now()
    report = GenerationReport()

    with _pass_lock:
        templates = template_store.list_pending_auto_generation(db, now)
        if not templates:
            logger.debug("no pending templates to process")
            return report

        logger.info("processing pending templates count=%d", len(templates))
        pending = [(t.id, t.name) for t in templates]

        for template_id, template_name in pending:
            report.total += 1
            try:
                template = template_store.get_template(db, template_id)
                movement = generate_movement(db, template, now, ledger)
            except Exception:
                db.rollback()
                report.failed += 1
                logger.exception(
                    "failed to generate movement from template template_id=%s template_name=%s",
                    template_id, template_name,
                )
                continue

            report.succeeded += 1
            if movement is not None:
                report.movement_ids.append(movement.id)

    logger.info(
        "finished processing templates total=%d success=%d errors=%d",
        report.total, report.succeeded, report.failed,
    )
    return report
