"""Clubman models.

Configuration (owner-managed): Program, Promotion, Tier, Reward, Rule
Ledger (written by services): Customer, Visit, Redemption, LoyaltyEvent
Messaging: Notification
"""

from clubman.models.program import Program, ProgramType, Promotion
from clubman.models.tier import Tier
from clubman.models.reward import Reward, GIFT_SENTINEL
from clubman.models.rule import Rule, RuleTrigger
from clubman.models.customer import Customer
from clubman.models.visit import Visit
from clubman.models.redemption import Redemption, RedemptionStatus, RedemptionSource
from clubman.models.event import LoyaltyEvent, EventType
from clubman.models.notification import Notification

__all__ = [
    # Configuration
    "Program",
    "ProgramType",
    "Promotion",
    "Tier",
    "Reward",
    "GIFT_SENTINEL",
    "Rule",
    "RuleTrigger",
    # Ledger
    "Customer",
    "Visit",
    "Redemption",
    "RedemptionStatus",
    "RedemptionSource",
    "LoyaltyEvent",
    "EventType",
    # Messaging
    "Notification",
]
