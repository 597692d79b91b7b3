"""
Recurring movement template database models.
"""

import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, Boolean, Integer, DateTime, Date, Numeric, Text, Enum, ForeignKey,
    Index, UniqueConstraint,
)
from sqlalchemy.orm import relationship
import enum
from app.database import Base
from app.models.actor import actor_from_columns, actor_to_columns
from app.models.movement import MovementType


class RecurrencePattern(str, enum.Enum):
    """How often an auto-generating template repeats."""
    MONTHLY = "MONTHLY"  # On day_of_month every month
    YEARLY = "YEARLY"  # On day_of_year every year
    ONE_TIME = "ONE_TIME"  # Once, on start_date


class RecurringMovementTemplate(Base):
    """
    Definition of a financial event that keeps happening.

    Depending on which fields are set a template only feeds budget forecasts,
    pre-fills the manual movement form, or generates movements on a schedule.
    """

    __tablename__ = "recurring_movement_templates"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    household_id = Column(String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Ledger template fields
    movement_type = Column(Enum(MovementType), nullable=True)  # NULL = budget display only
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    currency = Column(String(3), nullable=False)

    # Actor template fields
    payer_user_id = Column(String(36), nullable=True)
    payer_contact_id = Column(String(36), ForeignKey("contacts.id"), nullable=True)
    counterparty_user_id = Column(String(36), nullable=True)
    counterparty_contact_id = Column(String(36), ForeignKey("contacts.id"), nullable=True)
    payment_method_id = Column(String(36), ForeignKey("payment_methods.id"), nullable=True)
    receiver_account_id = Column(String(36), ForeignKey("accounts.id"), nullable=True)

    # Recurrence (required when auto_generate is true)
    auto_generate = Column(Boolean, default=False, nullable=False)
    recurrence_pattern = Column(Enum(RecurrencePattern), nullable=True)
    day_of_month = Column(Integer, nullable=True)  # 1-31, MONTHLY
    day_of_year = Column(Integer, nullable=True)  # 1-365, YEARLY
    start_date = Column(Date, nullable=True)

    # Generation tracking, owned by the generator
    last_generated_date = Column(DateTime, nullable=True)
    next_scheduled_date = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    category = relationship("Category", back_populates="templates")
    participants = relationship(
        "TemplateParticipant",
        back_populates="template",
        cascade="all, delete-orphan",
        order_by="TemplateParticipant.position",
    )

    __table_args__ = (
        UniqueConstraint("household_id", "name", name="uq_template_household_name"),
        Index("idx_templates_pending_generation", "is_active", "auto_generate", "next_scheduled_date"),
    )

    @property
    def payer(self):
        return actor_from_columns(self.payer_user_id, self.payer_contact_id)

    @payer.setter
    def payer(self, actor):
        self.payer_user_id, self.payer_contact_id = actor_to_columns(actor)

    @property
    def counterparty(self):
        return actor_from_columns(self.counterparty_user_id, self.counterparty_contact_id)

    @counterparty.setter
    def counterparty(self, actor):
        self.counterparty_user_id, self.counterparty_contact_id = actor_to_columns(actor)


class TemplateParticipant(Base):
    """Percentage share of a SPLIT template."""

    __tablename__ = "recurring_movement_participants"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    template_id = Column(
        String(36),
        ForeignKey("recurring_movement_templates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False, default=0)
    participant_user_id = Column(String(36), nullable=True)
    participant_contact_id = Column(String(36), ForeignKey("contacts.id"), nullable=True)
    percentage = Column(Numeric(10, 8), nullable=False)  # share in (0, 1]
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    template = relationship("RecurringMovementTemplate", back_populates="participants")

    @property
    def participant(self):
        return actor_from_columns(self.participant_user_id, self.participant_contact_id)

    @participant.setter
    def participant(self, actor):
        self.participant_user_id, self.participant_contact_id = actor_to_columns(actor)
