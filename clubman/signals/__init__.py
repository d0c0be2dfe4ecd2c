"""
Clubman signals: public event API.

Emitted signals:
- visit_logged: services.ledger.log_visit()
- tier_changed: services.tiers.evaluate()
- reward_unlocked: services.redemption.unlock() / claim_welcome_gift() / rules grants
- reward_redeemed: services.redemption.redeem()
- notification_sent: services.notifications.send()
"""

from django.dispatch import Signal

visit_logged = Signal()  # sender=Customer, customer, visit, points_earned
tier_changed = Signal()  # sender=Customer, customer, tier, previous_tier
reward_unlocked = Signal()  # sender=Redemption, redemption
reward_redeemed = Signal()  # sender=Redemption, redemption, staff_id
notification_sent = Signal()  # sender=Notification, notification
