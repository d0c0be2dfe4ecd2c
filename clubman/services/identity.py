"""Identity resolver - customers, access tokens, OTP and sessions.

Profile merge policy:
    resolve()/authenticate() only fill empty profile fields.
    update_profile() overwrites explicitly and re-checks phone uniqueness.
"""

import logging
from datetime import date, timedelta

from django.db import IntegrityError, transaction
from django.db.models import F, Q
from django.utils import timezone
from django.utils.module_loading import import_string

from clubman.conf import clubman_settings
from clubman.exceptions import ClubmanError
from clubman.gates import Gates
from clubman.models import Customer, Program, RedemptionStatus
from clubman.protocols.notifier import Notifier
from clubman.protocols.session import SessionStore
from clubman.utils import new_access_token, new_otp_code, normalize_phone

logger = logging.getLogger(__name__)

_MERGEABLE_FIELDS = ("name", "email", "photo_url", "external_user_id")


def _get_notifier() -> Notifier:
    """Get configured Notifier."""
    backend_class = import_string(clubman_settings.NOTIFIER_BACKEND)
    return backend_class()


def get_program(program_id: int) -> Program:
    try:
        return Program.objects.get(pk=program_id, is_active=True)
    except Program.DoesNotExist:
        raise ClubmanError("PROGRAM_NOT_FOUND", program_id=program_id)


def get_by_token(token: str, for_update: bool = False) -> Customer:
    """
    Get customer by access token.

    Raises:
        ClubmanError: CUSTOMER_NOT_FOUND
    """
    if not token:
        raise ClubmanError("CUSTOMER_NOT_FOUND")
    qs = Customer.objects.select_related("program")
    if for_update:
        qs = qs.select_for_update(of=("self",))
    try:
        return qs.get(token=token)
    except Customer.DoesNotExist:
        raise ClubmanError("CUSTOMER_NOT_FOUND")


def get_by_phone(program_id: int, phone: str) -> Customer | None:
    phone_normalized = normalize_phone(phone)
    if not phone_normalized:
        return None
    return Customer.objects.filter(program_id=program_id, phone=phone_normalized).first()


def ensure_token(customer: Customer) -> str:
    """
    Mint a token for legacy customers that have none.

    Existing tokens are never replaced. The conditional update keeps two
    concurrent first accesses from issuing different tokens.
    """
    if customer.token:
        return customer.token

    Customer.objects.filter(
        Q(token__isnull=True) | Q(token=""),
        pk=customer.pk,
    ).update(token=new_access_token())
    customer.refresh_from_db(fields=["token"])
    logger.info("Minted access token for legacy customer %s", customer.pk)
    return customer.token


def _fill_missing(customer: Customer, profile: dict) -> None:
    changed = []
    for field_name in _MERGEABLE_FIELDS:
        value = profile.get(field_name)
        if value and not getattr(customer, field_name):
            setattr(customer, field_name, value)
            changed.append(field_name)
    if changed:
        customer.save(update_fields=[*changed, "updated_at"])


def resolve(
    program_id: int,
    phone: str,
    name: str | None = None,
    email: str | None = None,
    photo_url: str | None = None,
    external_user_id: str | None = None,
) -> tuple[Customer, bool]:
    """
    Find or create the customer for (program, phone).

    Args:
        program_id: Program ID
        phone: Phone in any spacing, normalized before lookup
        name, email, photo_url, external_user_id: Profile data; only fills
            fields that are still empty on an existing customer

    Returns:
        Tuple of (Customer, created)

    Raises:
        ClubmanError: PROGRAM_NOT_FOUND, INVALID_PHONE
    """
    phone_normalized = normalize_phone(phone)
    if not phone_normalized:
        raise ClubmanError("INVALID_PHONE")

    get_program(program_id)
    profile = {
        "name": name,
        "email": email,
        "photo_url": photo_url,
        "external_user_id": external_user_id,
    }

    with transaction.atomic():
        customer = (
            Customer.objects.select_for_update()
            .filter(program_id=program_id, phone=phone_normalized)
            .first()
        )
        if customer is None:
            try:
                with transaction.atomic():
                    customer = Customer.objects.create(
                        program_id=program_id,
                        phone=phone_normalized,
                        token=new_access_token(),
                        **{k: v or "" for k, v in profile.items()},
                    )
                logger.info("Customer %s created for program %s", customer.pk, program_id)
                return customer, True
            except IntegrityError:
                # Concurrent first contact won the insert
                customer = Customer.objects.select_for_update().get(
                    program_id=program_id, phone=phone_normalized
                )

        _fill_missing(customer, profile)
        ensure_token(customer)

    return customer, False


def authenticate(program_id: int, phone: str, session: SessionStore, **profile) -> tuple[Customer, bool]:
    """resolve() and store the customer's token in ``session``."""
    customer, created = resolve(program_id, phone, **profile)
    session.set_session(customer.token)
    return customer, created


def current_customer(session: SessionStore) -> Customer | None:
    """Customer behind the session token, if any."""
    token = session.get_session_token()
    if not token:
        return None
    return Customer.objects.select_related("program", "tier").filter(token=token).first()


def logout(session: SessionStore) -> None:
    session.clear_session()


def update_profile(
    token: str,
    name: str | None = None,
    email: str | None = None,
    phone: str | None = None,
    photo_url: str | None = None,
    birthday: date | None = None,
) -> Customer:
    """
    Overwrite profile fields. ``None`` leaves a field untouched.

    Raises:
        ClubmanError: CUSTOMER_NOT_FOUND, INVALID_PHONE, PHONE_TAKEN
    """
    with transaction.atomic():
        customer = get_by_token(token, for_update=True)
        changed = []

        for field_name, value in (
            ("name", name),
            ("email", email),
            ("photo_url", photo_url),
            ("birthday", birthday),
        ):
            if value is not None:
                setattr(customer, field_name, value)
                changed.append(field_name)

        if phone is not None:
            phone_normalized = normalize_phone(phone)
            if not phone_normalized:
                raise ClubmanError("INVALID_PHONE")
            if phone_normalized != customer.phone:
                Gates.phone_uniqueness(
                    customer.program_id,
                    phone_normalized,
                    exclude_customer_id=customer.pk,
                )
                customer.phone = phone_normalized
                customer.is_phone_verified = False
                changed += ["phone", "is_phone_verified"]

        if changed:
            try:
                with transaction.atomic():
                    customer.save(update_fields=[*changed, "updated_at"])
            except IntegrityError:
                raise ClubmanError("PHONE_TAKEN", phone=customer.phone)

    return customer


def send_otp(program_id: int, phone: str) -> tuple[Customer, str]:
    """
    Issue a fresh OTP and hand it to the Notifier.

    Creates the customer on first contact.

    Returns:
        Tuple of (Customer, code)

    Raises:
        ClubmanError: PROGRAM_NOT_FOUND, INVALID_PHONE, OTP_DELIVERY_FAILED
    """
    customer, _ = resolve(program_id, phone)

    code = new_otp_code()
    expires_at = timezone.now() + timedelta(minutes=clubman_settings.OTP_TTL_MINUTES)
    customer.otp_code = code
    customer.otp_expires_at = expires_at
    customer.save(update_fields=["otp_code", "otp_expires_at", "updated_at"])

    try:
        _get_notifier().send_otp(customer.phone, code, expires_at)
    except Exception:
        logger.exception("OTP delivery failed for customer %s", customer.pk)
        raise ClubmanError("OTP_DELIVERY_FAILED")

    return customer, code


def verify_otp(
    program_id: int,
    phone: str,
    code: str,
    session: SessionStore | None = None,
) -> Customer:
    """
    Check an OTP, clear it and establish the session.

    Raises:
        ClubmanError: CUSTOMER_NOT_FOUND, OTP_NOT_REQUESTED, OTP_EXPIRED, OTP_INVALID
    """
    with transaction.atomic():
        customer = get_by_phone(program_id, phone)
        if customer is None:
            raise ClubmanError("CUSTOMER_NOT_FOUND")
        customer = Customer.objects.select_for_update().get(pk=customer.pk)

        Gates.otp_validity(customer, code)

        customer.otp_code = ""
        customer.otp_expires_at = None
        customer.is_phone_verified = True
        customer.save(
            update_fields=["otp_code", "otp_expires_at", "is_phone_verified", "updated_at"]
        )
        ensure_token(customer)

    if session is not None:
        session.set_session(customer.token)
    return customer


def status(program_id: int, token: str) -> dict:
    """
    Card view of a customer.

    Includes pending redemption codes with their reward, the program's
    active reward catalog and active promotions. A token from another
    program is reported as not found.

    Raises:
        ClubmanError: CUSTOMER_NOT_FOUND
    """
    customer = get_by_token(token)
    if customer.program_id != program_id:
        raise ClubmanError("CUSTOMER_NOT_FOUND")

    program = customer.program
    pending = (
        customer.redemptions.filter(status=RedemptionStatus.PENDING)
        .select_related("reward")
        .order_by("created_at")
    )
    rewards = program.rewards.filter(is_active=True).order_by("cost_in_visits", "cost_in_points", "pk")
    return {
        "customer_id": customer.pk,
        "name": customer.name or clubman_settings.DEFAULT_CUSTOMER_NAME,
        "phone": customer.phone,
        "total_visits": customer.total_visits,
        "current_visits": customer.current_visits,
        "total_points": customer.total_points,
        "current_points": customer.current_points,
        "tier_name": customer.tier.name if customer.tier_id else None,
        "pending": [
            {"code": r.redemption_code, "reward_name": r.reward.name} for r in pending
        ],
        "rewards": [
            {
                "id": reward.pk,
                "name": reward.name,
                "cost_in_visits": reward.cost_in_visits,
                "cost_in_points": reward.cost_in_points,
                "is_welcome_gift": reward.is_welcome_gift,
            }
            for reward in rewards
        ],
        "promotions": [
            {
                "id": promo.pk,
                "title": promo.title,
                "image_url": promo.image_url,
                "description": promo.description,
                "terms": promo.terms,
            }
            for promo in program.promotions.filter(is_active=True)
        ],
    }


def member_programs(external_user_id: str) -> list[dict]:
    """
    Loyalty cards linked to an external account, most recent visit first.

    Raises:
        ClubmanError: SESSION_INVALID when no account id is given
    """
    external_user_id = (external_user_id or "").strip()
    if not external_user_id:
        raise ClubmanError("SESSION_INVALID")

    customers = (
        Customer.objects.filter(external_user_id=external_user_id)
        .select_related("program", "tier")
        .order_by(F("last_visit_date").desc(nulls_last=True), "pk")
    )
    return [
        {
            "customer_id": c.pk,
            "token": c.token,
            "current_visits": c.current_visits,
            "current_points": c.current_points,
            "tier_name": c.tier.name if c.tier_id else None,
            "program_id": c.program_id,
            "business_name": c.program.business_name,
            "logo_url": c.program.logo_url,
            "theme_color": c.program.theme_color,
        }
        for c in customers
    ]
