"""Tests for the ledger engine."""

from decimal import Decimal
from unittest import mock

import pytest
from django.utils import timezone

from clubman.exceptions import ClubmanError
from clubman.gates import GateResult, Gates
from clubman.models import Customer, EventType, LoyaltyEvent, Visit
from clubman.services import ledger
from clubman.signals import visit_logged


pytestmark = pytest.mark.django_db


class TestPointsFor:
    def test_floor(self):
        assert ledger.points_for(Decimal("199.99"), 10) == 19
        assert ledger.points_for(Decimal("250"), 10) == 25

    def test_no_points(self):
        assert ledger.points_for(Decimal("500"), 0) == 0
        assert ledger.points_for(Decimal("0"), 10) == 0


class TestValidateScan:
    def test_preview(self, customer, program):
        preview = ledger.validate_scan("tok-ana")

        assert preview == {
            "customer_name": "Ana",
            "program_type": "VISITS",
            "program_id": program.pk,
        }

    def test_does_not_mutate(self, customer):
        ledger.validate_scan("tok-ana")
        customer.refresh_from_db()
        assert customer.total_visits == 0

    def test_unknown_token(self, db):
        with pytest.raises(ClubmanError) as exc:
            ledger.validate_scan("missing")
        assert exc.value.code == "CUSTOMER_NOT_FOUND"


class TestLogVisit:
    def test_pure_visit(self, customer):
        summary = ledger.log_visit("staff-1", "tok-ana")

        customer.refresh_from_db()
        assert summary["new_visits"] == 1
        assert summary["points_earned"] == 0
        assert customer.total_visits == 1
        assert customer.current_visits == 1
        assert customer.last_visit_date is not None
        assert Visit.objects.filter(customer=customer, staff_id="staff-1").count() == 1
        assert customer.events.filter(event_type=EventType.VISIT).count() == 1

    def test_cooldown_rejects_second_pure_visit(self, customer):
        ledger.log_visit("staff-1", "tok-ana")

        with pytest.raises(ClubmanError) as exc:
            ledger.log_visit("staff-1", "tok-ana")

        assert exc.value.code == "VISIT_COOLDOWN"
        customer.refresh_from_db()
        assert customer.total_visits == 1
        assert Visit.objects.filter(customer=customer).count() == 1

    def test_visit_allowed_after_cooldown(self, customer, rewind_last_visit):
        ledger.log_visit("staff-1", "tok-ana")
        rewind_last_visit(customer)

        summary = ledger.log_visit("staff-1", "tok-ana")

        assert summary["new_visits"] == 2

    def test_spend_earns_points_and_skips_cooldown(self, points_customer):
        first = ledger.log_visit("staff-1", "tok-luis", spend_amount=Decimal("250"))
        second = ledger.log_visit("staff-1", "tok-luis", spend_amount=Decimal("199.99"))

        assert first["points_earned"] == 25
        assert second["points_earned"] == 19
        points_customer.refresh_from_db()
        assert points_customer.total_visits == 2
        assert points_customer.total_points == 44
        assert points_customer.current_points == 44
        assert points_customer.events.filter(event_type=EventType.SPEND).count() == 2

    def test_spend_in_visits_program(self, customer):
        summary = ledger.log_visit("staff-1", "tok-ana", spend_amount=Decimal("300"))

        assert summary["points_earned"] == 0
        assert summary["new_visits"] == 1

    def test_running_average_rating(self, points_customer):
        ledger.log_visit("s", "tok-luis", rating=5, spend_amount=Decimal("10"))
        ledger.log_visit("s", "tok-luis", rating=3, spend_amount=Decimal("10"))
        ledger.log_visit("s", "tok-luis", spend_amount=Decimal("10"))

        points_customer.refresh_from_db()
        assert points_customer.rating_count == 2
        assert points_customer.average_rating == pytest.approx(4.0)

    @pytest.mark.parametrize("rating", [0, 6, "5", 4.5, True])
    def test_invalid_rating(self, customer, rating):
        with pytest.raises(ClubmanError) as exc:
            ledger.log_visit("s", "tok-ana", rating=rating)

        assert exc.value.code == "INVALID_RATING"
        customer.refresh_from_db()
        assert customer.total_visits == 0

    def test_negative_spend(self, points_customer):
        with pytest.raises(ClubmanError) as exc:
            ledger.log_visit("s", "tok-luis", spend_amount=Decimal("-1"))
        assert exc.value.code == "INVALID_SPEND"

    def test_unknown_token(self, db):
        with pytest.raises(ClubmanError) as exc:
            ledger.log_visit("s", "missing")
        assert exc.value.code == "CUSTOMER_NOT_FOUND"

    def test_missing_staff_recorded_as_system(self, customer):
        ledger.log_visit("", "tok-ana")
        assert Visit.objects.get(customer=customer).staff_id == "SYSTEM"

    def test_totals_never_below_current(self, points_customer):
        ledger.log_visit("s", "tok-luis", spend_amount=Decimal("1000"))

        points_customer.refresh_from_db()
        assert points_customer.total_points >= points_customer.current_points
        assert points_customer.total_visits >= points_customer.current_visits

    def test_sends_signal(self, customer):
        received = []

        def handler(sender, customer, visit, points_earned, **kwargs):
            received.append((customer.pk, visit.pk, points_earned))

        visit_logged.connect(handler)
        try:
            ledger.log_visit("s", "tok-ana")
        finally:
            visit_logged.disconnect(handler)

        assert len(received) == 1
        assert received[0][0] == customer.pk


class TestConcurrentVisit:
    """Another terminal logs a visit between the cooldown check and the write."""

    @pytest.fixture
    def racing_visit(self, customer):
        def visit_cooldown(last_visit_date, is_points_transaction, now=None):
            Customer.objects.filter(pk=customer.pk).update(last_visit_date=timezone.now())
            return GateResult(True, "G1_VisitCooldown")

        with mock.patch.object(Gates, "visit_cooldown", visit_cooldown):
            yield

    def test_conditional_update_rejects(self, customer, racing_visit):
        with pytest.raises(ClubmanError) as exc:
            ledger.log_visit("staff-1", "tok-ana")

        assert exc.value.code == "VISIT_COOLDOWN"
        customer.refresh_from_db()
        assert customer.total_visits == 0
        assert customer.current_visits == 0
        assert not Visit.objects.filter(customer=customer).exists()
        assert not customer.events.filter(event_type=EventType.VISIT).exists()

    def test_same_message_as_gate(self, customer):
        ledger.log_visit("staff-1", "tok-ana")
        with pytest.raises(ClubmanError) as gate_exc:
            ledger.log_visit("staff-1", "tok-ana")

        with mock.patch.object(
            Gates,
            "visit_cooldown",
            lambda *args, **kwargs: GateResult(True, "G1_VisitCooldown"),
        ):
            with pytest.raises(ClubmanError) as race_exc:
                ledger.log_visit("staff-1", "tok-ana")

        assert race_exc.value.message == gate_exc.value.message
        assert gate_exc.value.message == "Visit already logged recently (wait 1 hour)"


class TestCreditAdjustment:
    def test_credits_totals_and_balances(self, points_customer):
        summary = ledger.credit_adjustment(points_customer.pk, "owner", visits=2, points=30, reason="migración")

        points_customer.refresh_from_db()
        assert summary["new_points"] == 30
        assert points_customer.total_visits == 2
        assert points_customer.current_visits == 2
        assert points_customer.total_points == 30
        assert points_customer.last_visit_date is None

        event = LoyaltyEvent.objects.get(customer=points_customer, event_type=EventType.ADJUSTMENT)
        assert event.metadata["reason"] == "migración"

    @pytest.mark.parametrize("visits,points", [(-1, 0), (0, -5), (0, 0)])
    def test_rejects_non_positive(self, customer, visits, points):
        with pytest.raises(ClubmanError) as exc:
            ledger.credit_adjustment(customer.pk, "owner", visits=visits, points=points)
        assert exc.value.code == "INVALID_ADJUSTMENT"

    def test_unknown_customer(self, db):
        with pytest.raises(ClubmanError) as exc:
            ledger.credit_adjustment(999, "owner", visits=1)
        assert exc.value.code == "CUSTOMER_NOT_FOUND"

    def test_reevaluates_tier(self, customer, tiers):
        summary = ledger.credit_adjustment(customer.pk, "owner", visits=5)

        assert summary["tier_name"] == "Plata"
