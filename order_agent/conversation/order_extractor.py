"""
Structured order extraction, validation, and idempotent registration.

The agent signals "persist this order" by ending its reply with the
order-block marker followed by one JSON object. ``extract`` splits that
block off the customer-facing text and validates it. ``OrderRegistrar``
writes the order to the ledger unless the session already registered an
order with the same fingerprint, so a customer re-confirming the same
order never produces a second row.
"""

import json
import logging
import uuid
from datetime import datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from order_agent.config import settings
from order_agent.schemas.conversation_schema import ORDER_BLOCK_MARKER
from order_agent.schemas.customer_schema import CustomerIdentity, Session
from order_agent.schemas.order_schema import (
    UNKNOWN_CUSTOMER_NAME,
    LedgerOrder,
    OrderPayload,
    OrderStatus,
)
from order_agent.tools.ledger import Ledger

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%d/%m/%Y, %H:%M:%S"


def _parse_block(block: str) -> Optional[OrderPayload]:
    start = block.find("{")
    if start == -1:
        logger.warning("Order block marker without a JSON object")
        return None
    try:
        data, _ = json.JSONDecoder().raw_decode(block[start:])
    except json.JSONDecodeError as exc:
        logger.warning("Malformed order block discarded: %s", exc)
        return None
    if not isinstance(data, dict):
        logger.warning("Order block is not a JSON object, discarded")
        return None
    try:
        return OrderPayload.model_validate(data)
    except ValidationError as exc:
        logger.warning("Invalid order block discarded: %s", exc)
        return None


def extract(agent_text: str) -> tuple[str, Optional[OrderPayload]]:
    """Split agent output into the customer reply and an optional order.

    Everything from the marker on is removed from the reply, whether or
    not the block parses.
    """
    text = agent_text or ""
    head, marker, block = text.partition(ORDER_BLOCK_MARKER)
    if not marker:
        return text.strip(), None
    return head.rstrip(), _parse_block(block)


class OrderRegistrar:
    """Persists extracted orders once per distinct fingerprint per session."""

    def __init__(
        self,
        ledger: Ledger,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._ledger = ledger
        self._clock = clock or (lambda: datetime.now(ZoneInfo(settings.restaurant.timezone)))

    def build_order(
        self, session: Session, payload: OrderPayload, identity: CustomerIdentity
    ) -> LedgerOrder:
        """Fill defaults from the session and identity. Status is always pending."""
        return LedgerOrder(
            row_number=0,
            order_id=f"PED-{uuid.uuid4().hex[:6].upper()}",
            created_at=self._clock().strftime(TIMESTAMP_FORMAT),
            customer_name=payload.customer_name or session.customer_name or UNKNOWN_CUSTOMER_NAME,
            phone=payload.phone or identity.display_phone,
            items=payload.items,
            total=payload.total,
            status=OrderStatus.PENDING.value,
            region=payload.region,
            address=payload.address,
            payment_method=payload.payment_method,
            notes=payload.notes,
            origin=payload.origin,
            transport_address=identity.canonical_id or payload.transport_address,
        )

    async def register(
        self, session: Session, payload: OrderPayload, identity: CustomerIdentity
    ) -> Optional[LedgerOrder]:
        """Append the order unless it repeats the session's last registered one.

        Returns the stored order, or None when skipped or when the ledger
        write failed (logged, never raised).
        """
        fingerprint = payload.fingerprint()
        if fingerprint == session.last_registered_fingerprint:
            logger.info("Order identical to the last registered one, skipping")
            return None

        order = self.build_order(session, payload, identity)
        try:
            row_number = await self._ledger.append(order)
        except Exception:
            logger.exception("Failed to register order %s", order.order_id)
            return None

        stored = order.model_copy(update={"row_number": row_number or 0})
        session.last_known_order = stored
        session.last_registered_fingerprint = fingerprint
        logger.info("Order %s registered: %s (%s)", stored.order_id, stored.items, stored.total)
        return stored
