"""Shared test fixtures."""

import os

# Keep the app engine off disk and the scheduler off during tests
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from datetime import date
from decimal import Decimal
import uuid

from app.database import Base, get_db as database_get_db
from app.dependencies import get_db as dependencies_get_db
from app.main import app
from app.models.account import Account, AccountType
from app.models.category import Category
from app.models.household import Household, HouseholdMember, Contact
from app.models.payment_method import PaymentMethod, PaymentMethodType
from app.models.recurring import RecurringMovementTemplate, TemplateParticipant, RecurrencePattern
from app.models.movement import MovementType
from app.models.actor import Member

ALICE = "user-alice"
BOB = "user-bob"
MALLORY = "user-mallory"


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test using in-memory SQLite."""
    # Use StaticPool to ensure all connections use the same in-memory database
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with database override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[database_get_db] = override_get_db
    app.dependency_overrides[dependencies_get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def household(db_session):
    """Household with members alice and bob."""
    household = Household(id=str(uuid.uuid4()), name="Casa")
    household.members = [
        HouseholdMember(user_id=ALICE, name="Alice"),
        HouseholdMember(user_id=BOB, name="Bob"),
    ]
    db_session.add(household)
    db_session.commit()
    db_session.refresh(household)
    return household


@pytest.fixture
def other_household(db_session):
    """A second household, used to check isolation."""
    household = Household(id=str(uuid.uuid4()), name="Elsewhere")
    household.members = [HouseholdMember(user_id=MALLORY, name="Mallory")]
    db_session.add(household)
    db_session.commit()
    db_session.refresh(household)
    return household


@pytest.fixture
def contact(db_session, household):
    """An external contact of the household."""
    contact = Contact(id=str(uuid.uuid4()), household_id=household.id, name="Landlord")
    db_session.add(contact)
    db_session.commit()
    db_session.refresh(contact)
    return contact


@pytest.fixture
def sample_category(db_session, household):
    """Create a sample category."""
    category = Category(
        id=str(uuid.uuid4()),
        household_id=household.id,
        name="Housing",
        color="#22c55e",
        icon="home",
    )
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def other_category(db_session, household):
    category = Category(id=str(uuid.uuid4()), household_id=household.id, name="Utilities")
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def payment_method(db_session, household):
    """Alice's debit card."""
    pm = PaymentMethod(
        id=str(uuid.uuid4()),
        household_id=household.id,
        owner_user_id=ALICE,
        name="Alice debit",
        method_type=PaymentMethodType.debit_card,
    )
    db_session.add(pm)
    db_session.commit()
    db_session.refresh(pm)
    return pm


@pytest.fixture
def account(db_session, household):
    """Bob's savings account."""
    account = Account(
        id=str(uuid.uuid4()),
        household_id=household.id,
        owner_user_id=BOB,
        name="Bob savings",
        account_type=AccountType.savings,
    )
    db_session.add(account)
    db_session.commit()
    db_session.refresh(account)
    return account


@pytest.fixture
def split_template(db_session, household, sample_category, payment_method):
    """Auto-generating monthly SPLIT rent paid by alice, split 50/50 with bob."""
    template = RecurringMovementTemplate(
        id=str(uuid.uuid4()),
        household_id=household.id,
        name="Rent",
        movement_type=MovementType.SPLIT,
        category_id=sample_category.id,
        amount=Decimal("3200000"),
        currency="COP",
        payment_method_id=payment_method.id,
        auto_generate=True,
        recurrence_pattern=RecurrencePattern.MONTHLY,
        day_of_month=1,
        start_date=date(2026, 1, 1),
    )
    template.payer = Member(user_id=ALICE)
    for position, (user_id, percentage) in enumerate([(ALICE, 0.5), (BOB, 0.5)]):
        participant = TemplateParticipant(position=position, percentage=percentage)
        participant.participant = Member(user_id=user_id)
        template.participants.append(participant)
    db_session.add(template)
    db_session.commit()
    db_session.refresh(template)
    return template
