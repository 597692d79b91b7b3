"""
Errors raised by the recurring template services and their collaborators.
"""

from typing import Optional


class TemplateError(Exception):
    """Base class for recurring movement template errors."""


class TemplateValidationError(TemplateError, ValueError):
    """Input rejected by template validation."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class InvalidRecurrencePatternError(TemplateValidationError):
    def __init__(self, value=None):
        super().__init__(f"invalid recurrence pattern: {value!r}", field="recurrence_pattern")


class InvalidDayOfMonthError(TemplateValidationError):
    def __init__(self):
        super().__init__("day_of_month must be between 1 and 31", field="day_of_month")


class InvalidDayOfYearError(TemplateValidationError):
    def __init__(self):
        super().__init__("day_of_year must be between 1 and 365", field="day_of_year")


class AmountRequiredError(TemplateValidationError):
    def __init__(self):
        super().__init__("amount is required and must be greater than 0", field="amount")


class CategoryRequiredError(TemplateValidationError):
    def __init__(self):
        super().__init__("category_id is required", field="category_id")


class MissingFieldError(TemplateValidationError):
    """A field needed by the template's mode is absent."""

    def __init__(self, field: str, reason: str):
        super().__init__(f"{field} is required {reason}", field=field)


class FieldNotAllowedError(TemplateValidationError):
    """A field is set that the template's mode or movement type does not allow."""

    def __init__(self, field: str, reason: str):
        super().__init__(f"{field} is not allowed {reason}", field=field)


class RecurrenceRequiredError(TemplateValidationError):
    def __init__(self, field: str = "recurrence_pattern"):
        super().__init__(
            "recurrence_pattern and start_date required when auto_generate is true",
            field=field,
        )


class AutoGenerateWithoutTypeError(TemplateValidationError):
    def __init__(self):
        super().__init__(
            "auto_generate requires a movement_type",
            field="auto_generate",
        )


class InvalidParticipantsError(TemplateValidationError):
    def __init__(self, message: str = "participants required for SPLIT templates"):
        super().__init__(message, field="participants")


class InvalidPercentageSumError(TemplateValidationError):
    def __init__(self, total: float):
        super().__init__(
            f"participant percentages must sum to 100% (got {total * 100:.2f}%)",
            field="participants",
        )


class DuplicateTemplateNameError(TemplateValidationError):
    def __init__(self, name: str):
        super().__init__(f"a template named {name!r} already exists", field="name")


class NotAuthorizedError(TemplateError):
    """Requester or referenced actor is outside the household."""


class TemplateNotFoundError(TemplateError):
    def __init__(self, template_id: str):
        super().__init__(f"recurring movement template {template_id} not found")
        self.template_id = template_id


class ActorResolutionError(TemplateError):
    """No household member could be found to act on behalf of a template."""


class MovementError(ValueError):
    """Ledger collaborator rejected a movement."""


class BudgetError(ValueError):
    """Budget collaborator rejected a budget."""
