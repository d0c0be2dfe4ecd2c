"""Tests for rule conditions and rule-granted rewards."""

from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

import pytest

from clubman.models import EventType, LoyaltyEvent, RedemptionSource, Reward, Rule, RuleTrigger
from clubman.rules import (
    ReferralCondition,
    RuleContext,
    SpendCondition,
    UnsupportedCondition,
    VisitCondition,
    parse_condition,
)
from clubman.services import ledger, rules as rules_service


# Thursday
THURSDAY = datetime(2024, 5, 2, 18, 0, tzinfo=dt_timezone.utc)


class TestParseCondition:
    def test_visit(self):
        condition = parse_condition("VISIT", {"frequency": 2, "days": 7})
        assert condition == VisitCondition(frequency=2, days=7)
        assert condition.needs_history

    def test_spend(self):
        condition = parse_condition("SPEND", {"minSpend": "500", "specificDay": 4})
        assert condition == SpendCondition(min_spend=Decimal("500"), weekday=4)
        assert not condition.needs_history

    def test_referral(self):
        assert parse_condition("REFERRAL", {}) == ReferralCondition()

    def test_unknown_trigger(self):
        assert isinstance(parse_condition("BIRTHDAY", {}), UnsupportedCondition)

    @pytest.mark.parametrize(
        "raw",
        [
            ["not", "a", "dict"],
            {"frequency": 0},
            {"frequency": "often"},
            {"specificDay": 9},
            {"frequency": True},
        ],
    )
    def test_malformed_is_unsupported(self, raw):
        assert isinstance(parse_condition("VISIT", raw), UnsupportedCondition)

    def test_none_is_empty(self):
        assert parse_condition("VISIT", None) == VisitCondition()


class TestConditionMatching:
    def test_empty_condition_always_fires(self):
        assert VisitCondition().is_met(RuleContext(now=THURSDAY))

    def test_frequency(self):
        condition = VisitCondition(frequency=3, days=7)
        assert not condition.is_met(RuleContext(now=THURSDAY, recent_events=2))
        assert condition.is_met(RuleContext(now=THURSDAY, recent_events=3))

    def test_weekday_sunday_first(self):
        assert VisitCondition(weekday=4).is_met(RuleContext(now=THURSDAY))
        assert not VisitCondition(weekday=0).is_met(RuleContext(now=THURSDAY))

    def test_min_spend(self):
        condition = SpendCondition(min_spend=Decimal("500"))
        assert condition.is_met(RuleContext(now=THURSDAY, amount=Decimal("500")))
        assert not condition.is_met(RuleContext(now=THURSDAY, amount=Decimal("499.99")))
        assert not condition.is_met(RuleContext(now=THURSDAY))

    def test_all_constraints_must_hold(self):
        condition = SpendCondition(min_spend=Decimal("100"), weekday=0)
        assert not condition.is_met(RuleContext(now=THURSDAY, amount=Decimal("200")))

    def test_unsupported_never_fires(self):
        assert not UnsupportedCondition("BIRTHDAY").is_met(RuleContext(now=THURSDAY))


@pytest.mark.django_db
class TestProcessEvent:
    @pytest.fixture
    def bonus(self, points_program):
        return Reward.objects.create(program=points_program, name="Bebida", cost_in_visits=0)

    def test_spend_rule_grants_reward(self, points_customer, points_program, bonus):
        Rule.objects.create(
            program=points_program,
            name="Gasto alto",
            trigger=RuleTrigger.SPEND,
            conditions={"minSpend": 500},
            reward=bonus,
        )

        ledger.log_visit("s", "tok-luis", spend_amount=Decimal("650"))

        claim = points_customer.redemptions.get()
        assert claim.reward == bonus
        assert claim.source == RedemptionSource.RULE

    def test_rule_below_threshold(self, points_customer, points_program, bonus):
        Rule.objects.create(
            program=points_program,
            name="Gasto alto",
            trigger=RuleTrigger.SPEND,
            conditions={"minSpend": 500},
            reward=bonus,
        )

        ledger.log_visit("s", "tok-luis", spend_amount=Decimal("100"))

        assert not points_customer.redemptions.exists()

    def test_frequency_counts_current_event(self, customer, program, rewind_last_visit):
        reward = Reward.objects.create(program=program, name="Pan dulce", cost_in_visits=0)
        Rule.objects.create(
            program=program,
            name="Dos visitas por semana",
            trigger=RuleTrigger.VISIT,
            conditions={"frequency": 2, "days": 7},
            reward=reward,
        )

        ledger.log_visit("s", "tok-ana")
        assert not customer.redemptions.exists()

        rewind_last_visit(customer)
        ledger.log_visit("s", "tok-ana")
        assert customer.redemptions.get().reward == reward

    def test_ladder_reward_granted_once(self, points_customer, points_program, bonus):
        Rule.objects.create(
            program=points_program,
            name="Siempre",
            trigger=RuleTrigger.SPEND,
            reward=bonus,
        )

        ledger.log_visit("s", "tok-luis", spend_amount=Decimal("10"))
        ledger.log_visit("s", "tok-luis", spend_amount=Decimal("10"))

        assert points_customer.redemptions.count() == 1

    def test_inactive_rule_ignored(self, points_customer, points_program, bonus):
        Rule.objects.create(
            program=points_program,
            name="Apagada",
            trigger=RuleTrigger.SPEND,
            reward=bonus,
            is_active=False,
        )

        granted = rules_service.process_event(points_customer, RuleTrigger.SPEND, amount=Decimal("10"))

        assert granted == []

    def test_rule_without_reward(self, points_customer, points_program):
        Rule.objects.create(program=points_program, name="Sin premio", trigger=RuleTrigger.SPEND)

        assert rules_service.process_event(points_customer, RuleTrigger.SPEND) == []

    def test_referral(self, points_customer, points_program, bonus):
        Rule.objects.create(
            program=points_program,
            name="Referido",
            trigger=RuleTrigger.REFERRAL,
            reward=bonus,
        )

        granted = rules_service.record_referral(points_customer.pk, {"referred_phone": "555"})

        assert [g.reward for g in granted] == [bonus]
        event = LoyaltyEvent.objects.get(customer=points_customer, event_type=EventType.REFERRAL)
        assert event.metadata == {"referred_phone": "555"}
