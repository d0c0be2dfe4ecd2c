"""Tests for reward unlock and redemption."""

from decimal import Decimal
from unittest import mock

import pytest

from clubman.exceptions import ClubmanError
from clubman.gates import GateResult, Gates
from clubman.models import (
    Customer,
    EventType,
    Redemption,
    RedemptionSource,
    RedemptionStatus,
    Reward,
)
from clubman.services import ledger, redemption as redemption_service
from clubman.services.program import sync_welcome_gift
from clubman.signals import reward_redeemed


pytestmark = pytest.mark.django_db


def _give(customer, visits=0, points=0):
    Customer.objects.filter(pk=customer.pk).update(
        total_visits=visits,
        current_visits=visits,
        total_points=points,
        current_points=points,
    )
    customer.refresh_from_db()


class TestUnlockLadder:
    def test_unlock_at_threshold(self, customer, ladder_reward):
        _give(customer, visits=3)

        claim = redemption_service.unlock(customer.pk, ladder_reward.pk)

        assert claim.status == RedemptionStatus.PENDING
        assert len(claim.redemption_code) == 8
        assert claim.points_spent == 0
        customer.refresh_from_db()
        assert customer.current_visits == 3

    def test_not_enough_visits(self, customer, ladder_reward):
        _give(customer, visits=2)

        with pytest.raises(ClubmanError) as exc:
            redemption_service.unlock(customer.pk, ladder_reward.pk)

        assert exc.value.code == "NOT_ENOUGH_VISITS"
        assert not Redemption.objects.exists()

    def test_unlocked_once(self, customer, ladder_reward):
        _give(customer, visits=5)
        redemption_service.unlock(customer.pk, ladder_reward.pk)

        with pytest.raises(ClubmanError) as exc:
            redemption_service.unlock(customer.pk, ladder_reward.pk)

        assert exc.value.code == "REWARD_ALREADY_UNLOCKED"
        assert Redemption.objects.filter(customer=customer).count() == 1

    def test_inactive_reward(self, customer, ladder_reward):
        _give(customer, visits=5)
        ladder_reward.is_active = False
        ladder_reward.save()

        with pytest.raises(ClubmanError) as exc:
            redemption_service.unlock(customer.pk, ladder_reward.pk)
        assert exc.value.code == "REWARD_INACTIVE"

    def test_reward_from_other_program(self, customer, points_reward):
        with pytest.raises(ClubmanError) as exc:
            redemption_service.unlock(customer.pk, points_reward.pk)
        assert exc.value.code == "REWARD_NOT_FOUND"

    def test_writes_unlock_event(self, customer, ladder_reward):
        _give(customer, visits=3)
        claim = redemption_service.unlock(customer.pk, ladder_reward.pk)

        event = customer.events.get(event_type=EventType.REWARD_UNLOCKED)
        assert event.metadata["redemption_code"] == claim.redemption_code


class TestUnlockPoints:
    def test_spends_current_points_only(self, points_customer, points_reward):
        _give(points_customer, visits=1, points=120)

        claim = redemption_service.unlock(points_customer.pk, points_reward.pk)

        assert claim.points_spent == 50
        points_customer.refresh_from_db()
        assert points_customer.current_points == 70
        assert points_customer.total_points == 120

    def test_repeatable_while_affordable(self, points_customer, points_reward):
        _give(points_customer, points=100)

        redemption_service.unlock(points_customer.pk, points_reward.pk)
        redemption_service.unlock(points_customer.pk, points_reward.pk)

        with pytest.raises(ClubmanError) as exc:
            redemption_service.unlock(points_customer.pk, points_reward.pk)

        assert exc.value.code == "NOT_ENOUGH_POINTS"
        points_customer.refresh_from_db()
        assert points_customer.current_points == 0
        assert Redemption.objects.filter(customer=points_customer).count() == 2

    def test_visits_floor_applies(self, points_customer, points_program):
        reward = Reward.objects.create(
            program=points_program,
            name="Combo",
            cost_in_points=10,
            cost_in_visits=4,
        )
        _give(points_customer, visits=3, points=100)

        with pytest.raises(ClubmanError) as exc:
            redemption_service.unlock(points_customer.pk, reward.pk)

        assert exc.value.code == "NOT_ENOUGH_VISITS"
        points_customer.refresh_from_db()
        assert points_customer.current_points == 100

    def test_earn_then_spend(self, points_customer, points_reward):
        ledger.log_visit("s", "tok-luis", spend_amount=Decimal("600"))

        claim = redemption_service.unlock(points_customer.pk, points_reward.pk)

        points_customer.refresh_from_db()
        assert claim.points_spent == 50
        assert points_customer.current_points == 10
        assert points_customer.total_points == 60


class TestWelcomeGift:
    def test_claim(self, customer, welcome_gift):
        claim = redemption_service.claim_welcome_gift(customer.pk)

        assert claim.reward == welcome_gift
        assert claim.source == RedemptionSource.WELCOME_GIFT

    def test_claim_once(self, customer, welcome_gift):
        redemption_service.claim_welcome_gift(customer.pk)

        with pytest.raises(ClubmanError) as exc:
            redemption_service.claim_welcome_gift(customer.pk)
        assert exc.value.code == "REWARD_ALREADY_UNLOCKED"

    def test_disabled_program_toggle(self, customer, welcome_gift, program):
        program.enable_first_visit_gift = False
        program.save()

        with pytest.raises(ClubmanError) as exc:
            redemption_service.claim_welcome_gift(customer.pk)
        assert exc.value.code == "GIFT_UNAVAILABLE"

    def test_no_gift_reward(self, customer):
        with pytest.raises(ClubmanError) as exc:
            redemption_service.claim_welcome_gift(customer.pk)
        assert exc.value.code == "GIFT_UNAVAILABLE"

    def test_unlock_routes_gift(self, customer, welcome_gift):
        claim = redemption_service.unlock(customer.pk, welcome_gift.pk)
        assert claim.source == RedemptionSource.WELCOME_GIFT


class TestRedeem:
    @pytest.fixture
    def pending(self, customer, ladder_reward):
        _give(customer, visits=3)
        return redemption_service.unlock(customer.pk, ladder_reward.pk)

    def test_delivers_once(self, pending):
        delivered = redemption_service.redeem("staff-2", pending.redemption_code, evidence_ref="foto-1")

        assert delivered == {"reward_name": "Café gratis", "customer_name": "Ana"}
        pending.refresh_from_db()
        assert pending.status == RedemptionStatus.REDEEMED
        assert pending.staff_id == "staff-2"
        assert pending.redeemed_at is not None
        assert pending.evidence_ref == "foto-1"

    def test_second_delivery_rejected(self, pending):
        redemption_service.redeem("staff-2", pending.redemption_code)

        with pytest.raises(ClubmanError) as exc:
            redemption_service.redeem("staff-3", pending.redemption_code)

        assert exc.value.code == "REWARD_ALREADY_REDEEMED"
        pending.refresh_from_db()
        assert pending.staff_id == "staff-2"

    def test_accepts_prefix_and_lowercase(self, pending):
        scanned = f"  r:{pending.redemption_code.lower()} "
        redemption_service.redeem("staff-2", scanned)

        pending.refresh_from_db()
        assert pending.is_redeemed

    def test_unknown_code(self, db):
        with pytest.raises(ClubmanError) as exc:
            redemption_service.redeem("staff-2", "NOPE1234")
        assert exc.value.code == "REDEMPTION_NOT_FOUND"
        assert exc.value.data == {"redemption_code": "NOPE1234"}

    def test_empty_code(self, db):
        with pytest.raises(ClubmanError) as exc:
            redemption_service.redeem("staff-2", "  R: ")
        assert exc.value.code == "CODE_REQUIRED"

    def test_delivery_does_not_touch_balances(self, pending, customer):
        redemption_service.redeem("staff-2", pending.redemption_code)

        customer.refresh_from_db()
        assert customer.current_visits == 3

    def test_event_and_signal(self, pending, customer):
        received = []

        def handler(sender, redemption, staff_id, **kwargs):
            received.append((redemption.pk, staff_id))

        reward_redeemed.connect(handler)
        try:
            redemption_service.redeem("", pending.redemption_code)
        finally:
            reward_redeemed.disconnect(handler)

        assert received == [(pending.pk, "SYSTEM")]
        assert customer.events.filter(event_type=EventType.REWARD_REDEEMED).count() == 1


class TestConcurrentWrites:
    """Another writer changes the row after the gate check, before the update."""

    def test_points_spent_elsewhere(self, points_customer, points_reward):
        _give(points_customer, visits=1, points=60)

        def single_unlock(customer_id, reward):
            Customer.objects.filter(pk=customer_id).update(current_points=0)
            return GateResult(True, "G2_SingleUnlock")

        with mock.patch.object(Gates, "single_unlock", single_unlock):
            with pytest.raises(ClubmanError) as exc:
                redemption_service.unlock(points_customer.pk, points_reward.pk)

        assert exc.value.code == "NOT_ENOUGH_POINTS"
        assert not Redemption.objects.exists()
        points_customer.refresh_from_db()
        assert points_customer.current_points == 60
        assert points_customer.total_points == 60

    def test_delivered_by_other_terminal(self, customer, ladder_reward):
        _give(customer, visits=3)
        pending = redemption_service.unlock(customer.pk, ladder_reward.pk)

        def single_delivery(redemption):
            Redemption.objects.filter(pk=redemption.pk).update(
                status=RedemptionStatus.REDEEMED,
                staff_id="staff-9",
            )
            return GateResult(True, "G3_SingleDelivery")

        with mock.patch.object(Gates, "single_delivery", single_delivery):
            with pytest.raises(ClubmanError) as exc:
                redemption_service.redeem("staff-2", pending.redemption_code)

        assert exc.value.code == "REWARD_ALREADY_REDEEMED"
        assert exc.value.kind == "conflict"
        assert exc.value.message == "Este premio ya fue entregado"
        assert not customer.events.filter(event_type=EventType.REWARD_REDEEMED).exists()


class TestSyncWelcomeGift:
    def test_creates_gift(self, program):
        program.enable_first_visit_gift = True
        program.first_visit_gift_text = "Café de cortesía"
        program.save()

        gift = sync_welcome_gift(program.pk)

        assert gift.is_welcome_gift
        assert gift.name == "Café de cortesía"
        assert gift.is_active

    def test_updates_existing_gift(self, program, welcome_gift):
        program.first_visit_gift_text = "Pan dulce"
        program.save()

        gift = sync_welcome_gift(program.pk)

        assert gift.pk == welcome_gift.pk
        assert gift.name == "Pan dulce"

    def test_disable_deactivates(self, program, welcome_gift):
        program.enable_first_visit_gift = False
        program.save()

        assert sync_welcome_gift(program.pk) is None
        welcome_gift.refresh_from_db()
        assert welcome_gift.is_active is False

    def test_reenable_reuses_gift(self, program, welcome_gift):
        program.enable_first_visit_gift = False
        program.save()
        sync_welcome_gift(program.pk)

        program.enable_first_visit_gift = True
        program.save()
        gift = sync_welcome_gift(program.pk)

        assert gift.pk == welcome_gift.pk
        assert gift.is_active

    def test_unknown_program(self, db):
        with pytest.raises(ClubmanError) as exc:
            sync_welcome_gift(999)
        assert exc.value.code == "PROGRAM_NOT_FOUND"
