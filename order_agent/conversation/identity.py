"""
Customer identity normalization.

Turns a raw transport address into a stable canonical id and a
displayable phone number, and rebuilds a transport address from a stored
phone when a ledger row has none.

Usage:
    identity = normalize("5541999998888:12@s.whatsapp.net")
    identity.canonical_id   # "5541999998888@s.whatsapp.net"
    identity.display_phone  # "5541999998888"
"""

import logging
from typing import Optional

from order_agent.config import settings
from order_agent.schemas.customer_schema import CustomerIdentity
from order_agent.utils import digits_only

logger = logging.getLogger(__name__)

LOCAL_MOBILE_DIGITS = 11
MAX_PHONE_DIGITS = 13


def _split_address(raw_address: str) -> tuple[str, str]:
    user, _, domain = (raw_address or "").strip().lower().partition("@")
    # "5541999998888:12" carries a device id after the colon
    user = user.split(":", 1)[0]
    return user, domain


def to_display_phone(value: str, country_code: Optional[str] = None) -> str:
    """Digits of a phone or address, country-code prefixed when it looks local.

    More than 13 digits means extra routing digits are embedded: only the
    last 11 are kept. Exactly 11 digits is a local mobile number.
    """
    code = country_code if country_code is not None else settings.identity.country_code
    user, _ = _split_address(value)
    digits = digits_only(user)
    if len(digits) > MAX_PHONE_DIGITS:
        return code + digits[-LOCAL_MOBILE_DIGITS:]
    if len(digits) == LOCAL_MOBILE_DIGITS:
        return code + digits
    return digits


def normalize(raw_address: str) -> CustomerIdentity:
    """Canonicalize a raw transport address. Never raises."""
    user, domain = _split_address(raw_address)
    domain = domain or settings.identity.transport_domain
    canonical_id = f"{user}@{domain}" if user else ""
    return CustomerIdentity(
        canonical_id=canonical_id,
        display_phone=to_display_phone(user),
    )


def address_for_phone(phone: str) -> Optional[str]:
    """Build a transport address from a stored phone, or None without digits."""
    display = to_display_phone(phone)
    if not display:
        return None
    return f"{display}@{settings.identity.transport_domain}"


def resolve_delivery_address(transport_address: str, phone: str) -> Optional[str]:
    """Prefer the stored transport address, falling back to the phone."""
    if transport_address and transport_address.strip():
        return transport_address.strip()
    address = address_for_phone(phone)
    if address:
        logger.debug("No stored transport address, derived %s from phone", address)
    return address
