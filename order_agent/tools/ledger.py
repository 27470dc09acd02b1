"""
Order ledger port and an in-memory implementation.

The production ledger is a spreadsheet (see sheets_ledger.py). The
in-memory ledger backs the offline demo and the tests, and exposes
``set_status`` to simulate the restaurant editing a row.
"""

import logging
from typing import Optional, Protocol

from order_agent.schemas.order_schema import (
    NOTIFIABLE_STATUSES,
    LedgerOrder,
    OrderStatus,
)
from order_agent.utils import digits_only, phones_match

logger = logging.getLogger(__name__)


class LedgerError(Exception):
    """Raised when the ledger returns something the agent cannot use."""


class Ledger(Protocol):
    async def append(self, order: LedgerOrder) -> Optional[int]:
        """Insert an order row. Returns the assigned row number when known."""
        ...

    async def find_latest_by_phone(self, phone: str) -> Optional[LedgerOrder]: ...

    async def find_pending_notifications(self) -> list[LedgerOrder]: ...

    async def mark_notified(self, row_number: int, status: str) -> None: ...


def needs_notification(order: LedgerOrder) -> Optional[OrderStatus]:
    """Return the status to notify for this row, or None.

    Only notifiable statuses whose notified marker differs count, and the
    row must carry some way to reach the customer.
    """
    status = order.parsed_status
    if status not in NOTIFIABLE_STATUSES:
        return None
    if order.notified_status.strip().upper() == status.value:
        return None
    if not digits_only(order.phone) and not order.transport_address.strip():
        return None
    return status


def latest_matching(orders: list[LedgerOrder], phone: str) -> Optional[LedgerOrder]:
    """The last order (in row order) whose phone matches."""
    found: Optional[LedgerOrder] = None
    for order in orders:
        if phones_match(order.phone, phone):
            found = order
    return found


class InMemoryLedger:
    """Ledger kept in a list of rows. Row 1 is the header, so data starts at 2."""

    FIRST_DATA_ROW = 2

    def __init__(self) -> None:
        self._rows: list[LedgerOrder] = []

    @property
    def orders(self) -> list[LedgerOrder]:
        return list(self._rows)

    async def append(self, order: LedgerOrder) -> Optional[int]:
        row_number = self.FIRST_DATA_ROW + len(self._rows)
        stored = order.model_copy(update={"row_number": row_number})
        self._rows.append(stored)
        logger.info("Order %s appended at row %d", stored.order_id, row_number)
        return row_number

    async def find_latest_by_phone(self, phone: str) -> Optional[LedgerOrder]:
        return latest_matching(self._rows, phone)

    async def find_pending_notifications(self) -> list[LedgerOrder]:
        return [order for order in self._rows if needs_notification(order) is not None]

    async def mark_notified(self, row_number: int, status: str) -> None:
        index = row_number - self.FIRST_DATA_ROW
        if not 0 <= index < len(self._rows):
            raise LedgerError(f"Row {row_number} not found.")
        self._rows[index] = self._rows[index].model_copy(update={"notified_status": status})

    def set_status(self, row_number: int, status: str) -> None:
        """Simulate the restaurant changing an order's status cell."""
        index = row_number - self.FIRST_DATA_ROW
        if not 0 <= index < len(self._rows):
            raise LedgerError(f"Row {row_number} not found.")
        self._rows[index] = self._rows[index].model_copy(update={"status": status})
        logger.info("Row %d status set to %s", row_number, status)
