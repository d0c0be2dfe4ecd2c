"""Clubman exceptions."""

from django.db import models


class ErrorKind(models.TextChoices):
    """Error taxonomy shared by every loyalty operation."""

    NOT_FOUND = "not_found", "Not found"
    CONFLICT = "conflict", "Conflict"
    POLICY = "policy", "Policy violation"
    SYSTEM = "system", "System"


class BaseError(Exception):
    """
    Structured exception: a stable code, a human message and extra data.

    Subclasses provide ``_default_messages`` keyed by code.

    Usage:
        raise ClubmanError("REWARD_NOT_FOUND", reward_id=42)
        raise ClubmanError("VISIT_COOLDOWN", message="Wait a bit")
    """

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, /, message: str | None = None, **data):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(f"[{code}] {self.message}")

    def as_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "data": self.data}


class ClubmanError(BaseError):
    """
    Structured exception for loyalty operations.

    Every code belongs to exactly one ErrorKind (see ``_kinds``). Messages are
    shown to customers and staff as-is.

    Usage:
        try:
            ledger.log_visit(staff_id, token)
        except ClubmanError as e:
            if e.kind == ErrorKind.POLICY:
                show_warning(e.message)
    """

    _default_messages = {
        # Not found
        "CUSTOMER_NOT_FOUND": "Cliente no encontrado",
        "PROGRAM_NOT_FOUND": "Loyalty program not found",
        "REWARD_NOT_FOUND": "Reward not found",
        "REDEMPTION_NOT_FOUND": "Código inválido o no encontrado",
        # Conflict
        "REWARD_ALREADY_UNLOCKED": "This reward was already unlocked",
        "REWARD_ALREADY_REDEEMED": "Este premio ya fue entregado",
        "PHONE_TAKEN": "Phone number already registered in this program",
        # Policy
        "VISIT_COOLDOWN": "Visit already logged recently (wait 1 hour)",
        "NOT_ENOUGH_VISITS": "Not enough visits",
        "NOT_ENOUGH_POINTS": "Not enough points",
        "REWARD_INACTIVE": "Reward is no longer available",
        "GIFT_UNAVAILABLE": "Welcome gift is not available",
        "INVALID_RATING": "Rating must be between 1 and 5",
        "INVALID_SPEND": "Spend amount cannot be negative",
        "INVALID_ADJUSTMENT": "Adjustments must be positive",
        "INVALID_PHONE": "Invalid phone number",
        "CODE_REQUIRED": "Código requerido",
        "OTP_NOT_REQUESTED": "Solicita un nuevo código",
        "OTP_EXPIRED": "El código ha expirado",
        "OTP_INVALID": "Código incorrecto",
        "OTP_DELIVERY_FAILED": "Error al enviar código",
        "SESSION_INVALID": "Sesión inválida",
        "NOTIFICATION_REQUIRED": "Título y mensaje requeridos",
        # System
        "SYSTEM_ERROR": "Error de sistema",
    }

    _kinds = {
        "CUSTOMER_NOT_FOUND": ErrorKind.NOT_FOUND,
        "PROGRAM_NOT_FOUND": ErrorKind.NOT_FOUND,
        "REWARD_NOT_FOUND": ErrorKind.NOT_FOUND,
        "REDEMPTION_NOT_FOUND": ErrorKind.NOT_FOUND,
        "REWARD_ALREADY_UNLOCKED": ErrorKind.CONFLICT,
        "REWARD_ALREADY_REDEEMED": ErrorKind.CONFLICT,
        "PHONE_TAKEN": ErrorKind.CONFLICT,
        "SYSTEM_ERROR": ErrorKind.SYSTEM,
        "OTP_DELIVERY_FAILED": ErrorKind.SYSTEM,
    }

    @property
    def kind(self) -> str:
        """Error kind; unlisted codes are policy violations."""
        return self._kinds.get(self.code, ErrorKind.POLICY)

    def as_dict(self) -> dict:
        d = super().as_dict()
        d["kind"] = str(self.kind)
        return d
