"""Tests for movement generation from auto-generating templates."""

import pytest
import uuid
from datetime import date, datetime
from decimal import Decimal

from app.exceptions import ActorResolutionError
from app.models.actor import Member, ExternalContact
from app.models.household import Contact, HouseholdMember
from app.models.movement import Movement, MovementType
from app.models.payment_method import PaymentMethod
from app.models.recurring import RecurringMovementTemplate
from app.schemas.recurring import TemplateCreate, TemplateUpdate
from app.services import budgets_service, generation_service, template_service, template_store
from app.services.movements_service import create_movement

from conftest import ALICE, BOB


def _member(user_id):
    return {"kind": "member", "user_id": user_id}


def _share(actor, percentage):
    return {"participant": actor, "percentage": percentage}


@pytest.fixture
def rent(db_session, household, sample_category, payment_method):
    """Monthly SPLIT on day 31 starting Jan 15, first due Jan 31."""
    return template_service.create_template(db_session, ALICE, TemplateCreate(
        name="Rent",
        amount=Decimal("3200000"),
        category_id=sample_category.id,
        movement_type=MovementType.SPLIT,
        payer=_member(ALICE),
        payment_method_id=payment_method.id,
        participants=[_share(_member(ALICE), 0.5), _share(_member(BOB), 0.5)],
        auto_generate=True,
        recurrence_pattern="MONTHLY",
        day_of_month=31,
        start_date="2026-01-15",
    ))


def _household_template(db_session, category_id, payment_method_id, name="Internet", **fields):
    data = dict(
        name=name,
        amount=Decimal("90000"),
        category_id=category_id,
        movement_type=MovementType.HOUSEHOLD,
        payment_method_id=payment_method_id,
        auto_generate=True,
        recurrence_pattern="MONTHLY",
        day_of_month=5,
        start_date="2026-01-01",
    )
    data.update(fields)
    return template_service.create_template(db_session, ALICE, TemplateCreate(**data))


class TestProcessPending:
    """Test a full generation pass."""

    def test_generates_due_template(self, db_session, rent):
        """Pass on Feb 1 books the Jan 31 occurrence and schedules Feb 28."""
        now = datetime(2026, 2, 1)
        report = generation_service.process_pending_templates(db_session, now)

        assert report.total == 1
        assert report.succeeded == 1
        assert report.failed == 0

        movement = db_session.query(Movement).one()
        assert report.movement_ids == [movement.id]
        assert movement.movement_date == date(2026, 2, 1)
        assert movement.movement_type == MovementType.SPLIT
        assert movement.amount == Decimal("3200000")
        assert movement.description == "Rent"
        assert movement.generated_from_template_id == rent.id
        assert movement.payer == Member(user_id=ALICE)
        assert movement.created_by_user_id == ALICE
        assert [p.participant for p in movement.participants] == [Member(user_id=ALICE), Member(user_id=BOB)]

        db_session.refresh(rent)
        assert rent.last_generated_date == now
        assert rent.next_scheduled_date == datetime(2026, 2, 28)

    def test_nothing_due(self, db_session, rent):
        report = generation_service.process_pending_templates(db_session, datetime(2026, 1, 20))
        assert report.total == 0
        assert db_session.query(Movement).count() == 0

    def test_not_due_twice_in_same_period(self, db_session, rent):
        generation_service.process_pending_templates(db_session, datetime(2026, 2, 1))
        report = generation_service.process_pending_templates(db_session, datetime(2026, 2, 2))
        assert report.total == 0
        assert db_session.query(Movement).count() == 1

    def test_skips_inactive(self, db_session, rent):
        rent.is_active = False
        db_session.commit()
        report = generation_service.process_pending_templates(db_session, datetime(2026, 2, 1))
        assert report.total == 0

    def test_one_time_generates_once(self, db_session, household, sample_category, payment_method):
        template = _household_template(
            db_session, sample_category.id, payment_method.id,
            recurrence_pattern="ONE_TIME", day_of_month=None, start_date="2026-01-10",
        )
        assert template.next_scheduled_date == datetime(2026, 1, 10)

        first = generation_service.process_pending_templates(db_session, datetime(2026, 1, 10, 6, 0))
        second = generation_service.process_pending_templates(db_session, datetime(2026, 6, 1))

        assert first.succeeded == 1
        assert second.total == 0
        db_session.refresh(template)
        assert template.next_scheduled_date is None
        assert template.last_generated_date == datetime(2026, 1, 10, 6, 0)

    def test_failure_does_not_stop_pass(self, db_session, rent, sample_category, payment_method):
        """A ledger rejection is counted and the other templates still run."""
        internet = _household_template(db_session, sample_category.id, payment_method.id)

        def ledger(db, user_id, request):
            if request.description == "Rent":
                raise RuntimeError("ledger unavailable")
            return create_movement(db, user_id, request)

        report = generation_service.process_pending_templates(db_session, datetime(2026, 2, 1), ledger)

        assert report.total == 2
        assert report.succeeded == 1
        assert report.failed == 1

        db_session.refresh(rent)
        db_session.refresh(internet)
        assert rent.last_generated_date is None
        assert rent.next_scheduled_date == datetime(2026, 1, 31)
        assert internet.last_generated_date == datetime(2026, 2, 1)
        assert internet.next_scheduled_date == datetime(2026, 2, 5)

    def test_failed_template_retried_next_pass(self, db_session, rent):
        def failing(db, user_id, request):
            raise RuntimeError("ledger unavailable")

        generation_service.process_pending_templates(db_session, datetime(2026, 2, 1), failing)
        report = generation_service.process_pending_templates(db_session, datetime(2026, 2, 1, 12, 0))

        assert report.succeeded == 1
        assert db_session.query(Movement).count() == 1

    def test_tracking_failure_counts_as_failed(self, db_session, rent, monkeypatch):
        """The movement stays booked and the occurrence remains due."""
        def boom(*args, **kwargs):
            raise RuntimeError("database locked")

        monkeypatch.setattr(template_store, "update_generation_tracking", boom)
        report = generation_service.process_pending_templates(db_session, datetime(2026, 2, 1))

        assert report.failed == 1
        assert db_session.query(Movement).count() == 1
        db_session.refresh(rent)
        assert rent.next_scheduled_date == datetime(2026, 1, 31)

    def test_unresolvable_actor_fails(self, db_session, household, sample_category):
        """No member payer and a payment method of a non-member cannot be generated."""
        orphan_card = PaymentMethod(
            id=str(uuid.uuid4()), household_id=household.id, owner_user_id="former-member", name="Old card",
        )
        db_session.add(orphan_card)
        db_session.commit()
        _household_template(db_session, sample_category.id, orphan_card.id)

        report = generation_service.process_pending_templates(db_session, datetime(2026, 2, 1))

        assert report.failed == 1
        assert db_session.query(Movement).count() == 0


class TestGenerateMovement:
    """Test generation of a single template."""

    def test_not_auto_generate(self, db_session, household, sample_category):
        template = template_service.create_template(db_session, ALICE, TemplateCreate(
            name="Groceries",
            amount=Decimal("50000"),
            category_id=sample_category.id,
            movement_type=MovementType.HOUSEHOLD,
        ))
        assert generation_service.generate_movement(db_session, template, datetime(2026, 2, 1)) is None
        assert db_session.query(Movement).count() == 0

    def test_household_movement_request(self, db_session, household, sample_category, payment_method):
        template = _household_template(db_session, sample_category.id, payment_method.id)
        request = generation_service.build_movement_request(template, datetime(2026, 2, 5, 3, 0))

        assert request.movement_type == MovementType.HOUSEHOLD
        assert request.movement_date == date(2026, 2, 5)
        assert request.payer is None
        assert request.participants == []
        assert request.payment_method_id == payment_method.id
        assert request.generated_from_template_id == template.id


class TestResolveActingUser:
    """Test the choice of member a movement is created for."""

    def test_member_payer(self, db_session, rent):
        assert generation_service.resolve_acting_user(db_session, rent) == ALICE

    def test_first_member_participant(self, db_session, household, contact, sample_category):
        template = template_service.create_template(db_session, ALICE, TemplateCreate(
            name="Dinner",
            amount=Decimal("120000"),
            category_id=sample_category.id,
            movement_type=MovementType.SPLIT,
            payer={"kind": "contact", "contact_id": contact.id},
            participants=[
                _share({"kind": "contact", "contact_id": contact.id}, 0.5),
                _share(_member(BOB), 0.5),
            ],
            auto_generate=True,
            recurrence_pattern="MONTHLY",
            day_of_month=1,
            start_date="2026-01-01",
        ))
        assert template.payer == ExternalContact(contact_id=contact.id)
        assert generation_service.resolve_acting_user(db_session, template) == BOB

    def test_payment_method_owner(self, db_session, household, sample_category, payment_method):
        template = _household_template(db_session, sample_category.id, payment_method.id)
        assert generation_service.resolve_acting_user(db_session, template) == ALICE

    def test_unresolvable(self, db_session, household, sample_category):
        template = template_service.create_template(db_session, ALICE, TemplateCreate(
            name="Gift", amount=Decimal("1000"), category_id=sample_category.id,
            movement_type=MovementType.HOUSEHOLD,
        ))
        with pytest.raises(ActorResolutionError):
            generation_service.resolve_acting_user(db_session, template)


class TestPassOrdering:
    """Due templates are handled in the order they fell due."""

    def test_oldest_due_first(self, db_session, rent, sample_category, payment_method):
        _household_template(db_session, sample_category.id, payment_method.id, name="Internet")
        _household_template(
            db_session, sample_category.id, payment_method.id, name="Insurance",
            recurrence_pattern="YEARLY", day_of_month=None, day_of_year=20,
        )
        booked = []

        def ledger(db, user_id, request):
            booked.append(request.description)
            return create_movement(db, user_id, request)

        report = generation_service.process_pending_templates(db_session, datetime(2026, 2, 1), ledger)

        assert report.succeeded == 3
        assert booked == ["Internet", "Insurance", "Rent"]


class TestFractionalShares:
    """Equal splits that do not divide evenly survive storage."""

    @pytest.fixture
    def cabin(self, db_session, household, sample_category, payment_method):
        guests = [Contact(household_id=household.id, name=f"Guest {i}") for i in range(4)]
        db_session.add_all(guests)
        db_session.commit()

        actors = [_member(ALICE), _member(BOB)] + [
            {"kind": "contact", "contact_id": guest.id} for guest in guests
        ]
        return template_service.create_template(db_session, ALICE, TemplateCreate(
            name="Cabin",
            amount=Decimal("600000"),
            category_id=sample_category.id,
            movement_type=MovementType.SPLIT,
            payer=_member(ALICE),
            payment_method_id=payment_method.id,
            participants=[_share(actor, 1 / 6) for actor in actors],
            auto_generate=True,
            recurrence_pattern="MONTHLY",
            day_of_month=1,
            start_date="2026-01-01",
        ))

    def test_six_way_split_generates(self, db_session, cabin):
        report = generation_service.process_pending_templates(db_session, datetime(2026, 2, 1))

        assert report.succeeded == 1
        movement = db_session.query(Movement).one()
        assert len(movement.participants) == 6

    def test_six_way_split_can_be_renamed(self, db_session, cabin):
        updated = template_service.update_template(db_session, ALICE, cabin.id, TemplateUpdate(name="Cabin 2"))
        assert updated.name == "Cabin 2"
        assert len(updated.participants) == 6


class TestSeveralHouseholds:
    """A payer who also belongs to another household."""

    @pytest.fixture
    def alice_elsewhere(self, db_session, rent, other_household):
        db_session.add(HouseholdMember(
            household_id=other_household.id, user_id=ALICE, created_at=datetime(2000, 1, 1),
        ))
        db_session.commit()
        return other_household

    def test_movement_booked_in_template_household(self, db_session, rent, household, alice_elsewhere):
        report = generation_service.process_pending_templates(db_session, datetime(2026, 2, 1))

        assert report.succeeded == 1
        movement = db_session.query(Movement).one()
        assert movement.household_id == household.id

    def test_budget_synced_in_template_household(self, db_session, rent, household, sample_category, alice_elsewhere):
        template_service.update_template(db_session, ALICE, rent.id, TemplateUpdate(amount=Decimal("3500000")))

        month = date.today().strftime("%Y-%m")
        budget = budgets_service.get_budget(db_session, household.id, sample_category.id, month)
        assert budget.amount == Decimal("3500000")
        assert budgets_service.get_budget(db_session, alice_elsewhere.id, sample_category.id, month) is None
