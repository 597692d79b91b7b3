"""
Validation of recurring movement templates.

A template is classified by which fields it carries:

- budget display only: no movement type. It only feeds the category budget.
- form pre-fill: a movement type without auto-generation. Fields must be
  consistent but may be incomplete.
- auto-generate: a movement type with auto-generation. Everything needed to
  create a movement unattended must be present.

``validate_template`` raises the first violated rule and never touches the
database; membership and ownership checks live in the template service.
"""

import enum
from typing import List

from app.exceptions import (
    AmountRequiredError,
    AutoGenerateWithoutTypeError,
    CategoryRequiredError,
    FieldNotAllowedError,
    InvalidDayOfMonthError,
    InvalidDayOfYearError,
    InvalidParticipantsError,
    InvalidPercentageSumError,
    InvalidRecurrencePatternError,
    MissingFieldError,
    RecurrenceRequiredError,
)
from app.models.actor import Member
from app.models.movement import MovementType
from app.models.recurring import RecurrencePattern
from app.schemas.recurring import TemplateCreate, TemplateParticipantInput

PERCENTAGE_SUM_TOLERANCE = 0.0001

# Decimal places kept by the participant percentage columns
PERCENTAGE_SCALE = 8

MAX_DAY_OF_MONTH = 31
MAX_DAY_OF_YEAR = 365

BUDGET_ONLY_FORBIDDEN = (
    "payer",
    "counterparty",
    "payment_method_id",
    "receiver_account_id",
    "participants",
    "recurrence_pattern",
    "day_of_month",
    "day_of_year",
    "start_date",
)

# Fields a movement type can never carry, whatever the mode
FORBIDDEN_BY_TYPE = {
    MovementType.HOUSEHOLD: ("payer", "counterparty", "participants", "receiver_account_id"),
    MovementType.SPLIT: ("counterparty", "receiver_account_id"),
    MovementType.DEBT_PAYMENT: ("participants",),
}


class TemplateMode(str, enum.Enum):
    """What a template is used for."""
    BUDGET_ONLY = "BUDGET_ONLY"
    PREFILL = "PREFILL"
    AUTO_GENERATE = "AUTO_GENERATE"


def classify_template(draft: TemplateCreate) -> TemplateMode:
    """Infer the mode from the populated fields, without validating."""
    if draft.movement_type is None:
        return TemplateMode.BUDGET_ONLY
    if draft.auto_generate:
        return TemplateMode.AUTO_GENERATE
    return TemplateMode.PREFILL


def stored_percentage(value: float) -> float:
    """Percentage as it reads back from the database."""
    return round(value, PERCENTAGE_SCALE)


def _is_set(draft: TemplateCreate, field: str) -> bool:
    value = getattr(draft, field)
    if isinstance(value, list):
        return len(value) > 0
    if isinstance(value, str):
        return value.strip() != ""
    return value is not None


def _validate_common(draft: TemplateCreate) -> None:
    if draft.name is None or not draft.name.strip():
        raise MissingFieldError("name", "for every template")
    if draft.amount is None or draft.amount <= 0:
        raise AmountRequiredError()
    if not _is_set(draft, "category_id"):
        raise CategoryRequiredError()

    if draft.recurrence_pattern is not None:
        try:
            RecurrencePattern(draft.recurrence_pattern)
        except ValueError:
            raise InvalidRecurrencePatternError(draft.recurrence_pattern)
    if draft.day_of_month is not None and not 1 <= draft.day_of_month <= MAX_DAY_OF_MONTH:
        raise InvalidDayOfMonthError()
    if draft.day_of_year is not None and not 1 <= draft.day_of_year <= MAX_DAY_OF_YEAR:
        raise InvalidDayOfYearError()

    _validate_participant_entries(draft.participants)


def _validate_participant_entries(participants: List[TemplateParticipantInput]) -> None:
    seen = set()
    for p in participants:
        if not 0 < stored_percentage(p.percentage) <= 1:
            raise InvalidParticipantsError("participant percentage must be greater than 0 and at most 1")
        if p.participant in seen:
            raise InvalidParticipantsError("participant listed more than once")
        seen.add(p.participant)


def _validate_percentage_sum(participants: List[TemplateParticipantInput]) -> None:
    total = sum(stored_percentage(p.percentage) for p in participants)
    if abs(total - 1.0) > PERCENTAGE_SUM_TOLERANCE:
        raise InvalidPercentageSumError(total)


def _validate_budget_only(draft: TemplateCreate) -> None:
    if draft.auto_generate:
        raise AutoGenerateWithoutTypeError()
    for field in BUDGET_ONLY_FORBIDDEN:
        if _is_set(draft, field):
            raise FieldNotAllowedError(field, "on templates without a movement_type")


def _validate_type_consistency(draft: TemplateCreate) -> None:
    movement_type = draft.movement_type
    for field in FORBIDDEN_BY_TYPE[movement_type]:
        if _is_set(draft, field):
            raise FieldNotAllowedError(field, f"for {movement_type.value} templates")
    if draft.participants:
        _validate_percentage_sum(draft.participants)


def _validate_auto_generate_fields(draft: TemplateCreate) -> None:
    movement_type = draft.movement_type
    reason = f"for auto-generated {movement_type.value} templates"

    if movement_type == MovementType.HOUSEHOLD:
        if not _is_set(draft, "payment_method_id"):
            raise MissingFieldError("payment_method_id", reason)

    elif movement_type == MovementType.SPLIT:
        if draft.payer is None:
            raise MissingFieldError("payer", reason)
        if isinstance(draft.payer, Member) and not _is_set(draft, "payment_method_id"):
            raise MissingFieldError("payment_method_id", "when the payer is a household member")
        if not draft.participants:
            raise InvalidParticipantsError()

    elif movement_type == MovementType.DEBT_PAYMENT:
        if draft.payer is None:
            raise MissingFieldError("payer", reason)
        if draft.counterparty is None:
            raise MissingFieldError("counterparty", reason)
        if isinstance(draft.payer, Member) and not _is_set(draft, "payment_method_id"):
            raise MissingFieldError("payment_method_id", "when the payer is a household member")
        if isinstance(draft.counterparty, Member) and not _is_set(draft, "receiver_account_id"):
            raise MissingFieldError("receiver_account_id", "when the counterparty is a household member")


def _validate_recurrence_block(draft: TemplateCreate) -> None:
    if draft.recurrence_pattern is None:
        raise RecurrenceRequiredError("recurrence_pattern")
    if draft.start_date is None:
        raise RecurrenceRequiredError("start_date")

    pattern = RecurrencePattern(draft.recurrence_pattern)
    if pattern == RecurrencePattern.MONTHLY and draft.day_of_month is None:
        raise MissingFieldError("day_of_month", "for MONTHLY recurrence")
    if pattern == RecurrencePattern.YEARLY and draft.day_of_year is None:
        raise MissingFieldError("day_of_year", "for YEARLY recurrence")


def validate_template(draft: TemplateCreate) -> TemplateMode:
    """Validate a complete template field set and return its mode."""
    _validate_common(draft)

    mode = classify_template(draft)
    if mode == TemplateMode.BUDGET_ONLY:
        _validate_budget_only(draft)
        return mode

    _validate_type_consistency(draft)
    if mode == TemplateMode.AUTO_GENERATE:
        _validate_auto_generate_fields(draft)
        _validate_recurrence_block(draft)
    return mode
