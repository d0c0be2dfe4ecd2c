"""
Operation results returned by the public facade.

Every result carries ``success`` plus, on failure, ``error_code``,
``error_kind`` and a user-facing ``message``. Success payloads are minimal
DTOs (ids, names, counters), never model instances.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime

from clubman.exceptions import ClubmanError


@dataclass
class Result:
    """Base operation result."""

    success: bool = True
    error_code: str | None = None
    error_kind: str | None = None
    message: str | None = None

    @classmethod
    def failure(cls, error: ClubmanError):
        return cls(
            success=False,
            error_code=error.code,
            error_kind=str(error.kind),
            message=error.message,
        )

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class ScanResult(Result):
    customer_name: str | None = None
    program_type: str | None = None
    program_id: int | None = None


@dataclass
class VisitResult(Result):
    new_visits: int = 0
    new_points: int = 0
    points_earned: int = 0
    tier_name: str | None = None


@dataclass
class UnlockResult(Result):
    redemption_id: int | None = None
    redemption_code: str | None = None
    reward_name: str | None = None
    points_spent: int = 0


@dataclass
class RedeemResult(Result):
    reward_name: str | None = None
    customer_name: str | None = None


@dataclass
class AuthResult(Result):
    customer_id: int | None = None
    token: str | None = None
    created: bool = False


@dataclass
class OtpResult(Result):
    expires_at: datetime | None = None
    dev_code: str | None = None


@dataclass
class StatusResult(Result):
    customer_id: int | None = None
    name: str | None = None
    phone: str | None = None
    total_visits: int = 0
    current_visits: int = 0
    total_points: int = 0
    current_points: int = 0
    tier_name: str | None = None
    pending: list[dict] = field(default_factory=list)
    rewards: list[dict] = field(default_factory=list)
    promotions: list[dict] = field(default_factory=list)


@dataclass
class GrantResult(Result):
    granted_codes: list[str] = field(default_factory=list)


@dataclass
class MembershipsResult(Result):
    memberships: list[dict] = field(default_factory=list)


@dataclass
class NotificationResult(Result):
    notification_id: int | None = None
    created_at: datetime | None = None


@dataclass
class FeedResult(Result):
    notifications: list[dict] = field(default_factory=list)
    unread_count: int = 0
