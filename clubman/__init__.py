"""
Django Clubman - Customer Loyalty Ledger.

Usage:
    from clubman import LoyaltyService
    from clubman.gates import Gates, GateError, GateResult

    LoyaltyService.log_visit("staff-7", token, spend_amount=Decimal("200"))
    unlocked = LoyaltyService.unlock_reward(customer_id, reward_id)
    LoyaltyService.redeem("staff-7", unlocked.redemption_code)

    # Gates validation
    Gates.visit_cooldown(customer.last_visit_date, is_points_transaction=False)
    Gates.single_delivery(redemption)
"""


def __getattr__(name):
    if name == "LoyaltyService":
        from clubman.service import LoyaltyService

        return LoyaltyService
    if name == "Gates":
        from clubman.gates import Gates

        return Gates
    if name == "GateError":
        from clubman.gates import GateError

        return GateError
    if name == "GateResult":
        from clubman.gates import GateResult

        return GateResult
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["LoyaltyService", "Gates", "GateError", "GateResult"]
__version__ = "0.1.0"
