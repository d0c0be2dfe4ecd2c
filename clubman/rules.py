"""
Typed rule conditions.

Rule.conditions is stored as JSON. This module turns it into one of a
closed set of condition types keyed by the rule trigger:

    VISIT    -> VisitCondition(frequency, days, weekday)
    SPEND    -> SpendCondition(min_spend, weekday)
    REFERRAL -> ReferralCondition(frequency, days)
    other    -> UnsupportedCondition (never fires)

JSON keys:
    {"frequency": 2, "days": 7}   # 2 events of the trigger type in 7 days
    {"minSpend": 500}             # spend amount >= 500
    {"specificDay": 4}            # Sunday=0 .. Saturday=6

Every constraint present must hold. A condition with no constraints
fires on every event of its trigger type.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from django.utils import timezone


@dataclass(frozen=True)
class RuleContext:
    """Facts about the event being evaluated."""

    now: datetime
    amount: Decimal | None = None
    # Events of the trigger type inside the condition window, current one included
    recent_events: int = 0


def _weekday_matches(weekday: int | None, now: datetime) -> bool:
    if weekday is None:
        return True
    if timezone.is_aware(now):
        now = timezone.localtime(now)
    # Sunday-first numbering, as stored by the dashboard
    return (now.weekday() + 1) % 7 == weekday


def _frequency_met(frequency: int | None, ctx: RuleContext) -> bool:
    return frequency is None or ctx.recent_events >= frequency


@dataclass(frozen=True)
class VisitCondition:
    frequency: int | None = None
    days: int | None = None
    weekday: int | None = None

    @property
    def needs_history(self) -> bool:
        return self.frequency is not None

    def is_met(self, ctx: RuleContext) -> bool:
        return _frequency_met(self.frequency, ctx) and _weekday_matches(self.weekday, ctx.now)


@dataclass(frozen=True)
class SpendCondition:
    min_spend: Decimal | None = None
    weekday: int | None = None

    needs_history = False
    days = None

    def is_met(self, ctx: RuleContext) -> bool:
        if self.min_spend is not None:
            if ctx.amount is None or ctx.amount < self.min_spend:
                return False
        return _weekday_matches(self.weekday, ctx.now)


@dataclass(frozen=True)
class ReferralCondition:
    frequency: int | None = None
    days: int | None = None

    @property
    def needs_history(self) -> bool:
        return self.frequency is not None

    def is_met(self, ctx: RuleContext) -> bool:
        return _frequency_met(self.frequency, ctx)


@dataclass(frozen=True)
class UnsupportedCondition:
    trigger: str
    raw: Any = field(default=None, compare=False)

    needs_history = False
    days = None

    def is_met(self, ctx: RuleContext) -> bool:
        return False


Condition = VisitCondition | SpendCondition | ReferralCondition | UnsupportedCondition


class _BadValue(ValueError):
    pass


def _int(raw: dict, key: str, low: int = 0, high: int | None = None) -> int | None:
    value = raw.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise _BadValue(key)
    try:
        value = int(value)
    except ValueError:
        raise _BadValue(key)
    if value < low or (high is not None and value > high):
        raise _BadValue(key)
    return value


def _decimal(raw: dict, key: str) -> Decimal | None:
    value = raw.get(key)
    if value is None:
        return None
    if isinstance(value, bool):
        raise _BadValue(key)
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise _BadValue(key)


def parse_condition(trigger: str, raw: Any) -> Condition:
    """Build the typed condition for a rule. Malformed payloads are unsupported."""
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        return UnsupportedCondition(trigger, raw)

    try:
        if trigger == "VISIT":
            return VisitCondition(
                frequency=_int(raw, "frequency", low=1),
                days=_int(raw, "days", low=1),
                weekday=_int(raw, "specificDay", high=6),
            )
        if trigger == "SPEND":
            return SpendCondition(
                min_spend=_decimal(raw, "minSpend"),
                weekday=_int(raw, "specificDay", high=6),
            )
        if trigger == "REFERRAL":
            return ReferralCondition(
                frequency=_int(raw, "frequency", low=1),
                days=_int(raw, "days", low=1),
            )
    except _BadValue:
        return UnsupportedCondition(trigger, raw)

    return UnsupportedCondition(trigger, raw)
