"""
Movement (ledger entry) database models.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, Date, Numeric, Text, Enum, ForeignKey, Index
from sqlalchemy.orm import relationship
import enum
from app.database import Base
from app.models.actor import actor_from_columns


class MovementType(str, enum.Enum):
    """Movement type enumeration."""
    HOUSEHOLD = "HOUSEHOLD"  # Paid by the household as a unit
    SPLIT = "SPLIT"  # Paid by one actor, shared among participants
    DEBT_PAYMENT = "DEBT_PAYMENT"  # One actor pays another back


class Movement(Base):
    """Movement model."""

    __tablename__ = "movements"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    household_id = Column(String(36), ForeignKey("households.id", ondelete="CASCADE"), nullable=False)
    movement_type = Column(Enum(MovementType), nullable=False)
    description = Column(Text, nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=True)
    movement_date = Column(Date, nullable=False, index=True)

    payer_user_id = Column(String(36), nullable=True)
    payer_contact_id = Column(String(36), ForeignKey("contacts.id"), nullable=True)
    counterparty_user_id = Column(String(36), nullable=True)
    counterparty_contact_id = Column(String(36), ForeignKey("contacts.id"), nullable=True)
    payment_method_id = Column(String(36), ForeignKey("payment_methods.id"), nullable=True)
    receiver_account_id = Column(String(36), ForeignKey("accounts.id"), nullable=True)

    generated_from_template_id = Column(
        String(36),
        ForeignKey("recurring_movement_templates.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_by_user_id = Column(String(36), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    category = relationship("Category", back_populates="movements")
    participants = relationship(
        "MovementParticipant",
        back_populates="movement",
        cascade="all, delete-orphan",
        order_by="MovementParticipant.position",
    )

    # Indexes for common queries
    __table_args__ = (
        Index("idx_movement_household_date", "household_id", "movement_date"),
        Index("idx_movement_template", "generated_from_template_id"),
    )

    @property
    def payer(self):
        return actor_from_columns(self.payer_user_id, self.payer_contact_id)

    @property
    def counterparty(self):
        return actor_from_columns(self.counterparty_user_id, self.counterparty_contact_id)


class MovementParticipant(Base):
    """Share of a SPLIT movement owed by one actor."""

    __tablename__ = "movement_participants"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    movement_id = Column(String(36), ForeignKey("movements.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    participant_user_id = Column(String(36), nullable=True)
    participant_contact_id = Column(String(36), ForeignKey("contacts.id"), nullable=True)
    percentage = Column(Numeric(10, 8), nullable=False)  # share in (0, 1]

    movement = relationship("Movement", back_populates="participants")

    @property
    def participant(self):
        return actor_from_columns(self.participant_user_id, self.participant_contact_id)
