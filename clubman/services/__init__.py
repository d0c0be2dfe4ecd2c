"""Clubman services.

Internal layer: functions raise ClubmanError. The public, non-raising API
is clubman.service.LoyaltyService.

- identity: customers, tokens, OTP, sessions
- ledger: visits, spend, adjustments
- tiers: tier evaluation (sole writer of Customer.tier)
- redemption: unlock / welcome gift / redeem
- rules: rule-triggered grants, referrals
- program: welcome gift sync
- notifications: owner broadcasts, customer feed
"""

from clubman.services import identity
from clubman.services import ledger
from clubman.services import notifications
from clubman.services import program
from clubman.services import redemption
from clubman.services import rules
from clubman.services import tiers

__all__ = ["identity", "ledger", "notifications", "program", "redemption", "rules", "tiers"]
