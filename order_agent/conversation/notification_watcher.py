"""
Order status notification watcher.

Polls the ledger on a fixed interval for rows whose status is ACCEPTED or
OUT_FOR_DELIVERY but whose notified marker does not match yet, sends the
customer a status message, and writes the marker right after each send.

The watcher keeps no state between polls: the ledger-resident marker is
the only record of what was already sent, so a crash mid-cycle reprocesses
just the rows that were not marked.
"""

import asyncio
import logging
from typing import Optional

from order_agent.config import settings
from order_agent.conversation.identity import resolve_delivery_address
from order_agent.logging_context import customer_scope
from order_agent.prompts.prompt_templates import build_status_notification
from order_agent.schemas.order_schema import NOTIFIABLE_STATUSES, LedgerOrder, OrderStatus
from order_agent.tools.ledger import Ledger
from order_agent.tools.transport import Transport

logger = logging.getLogger(__name__)


class NotificationWatcher:
    """Sends one notification per status transition of each ledger row."""

    def __init__(
        self,
        ledger: Ledger,
        transport: Transport,
        poll_interval: Optional[float] = None,
    ) -> None:
        self._ledger = ledger
        self._transport = transport
        self.poll_interval = (
            poll_interval if poll_interval is not None else settings.watcher.poll_interval_sec
        )
        self._cycle_lock = asyncio.Lock()
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_cycle(self) -> int:
        """Run one poll cycle. Returns how many notifications were sent."""
        async with self._cycle_lock:
            try:
                rows = await self._ledger.find_pending_notifications()
            except Exception:
                logger.exception("Could not fetch orders pending notification")
                return 0

            sent = 0
            for row in rows:
                if await self._notify(row):
                    sent += 1
            if sent:
                logger.info("Notification cycle sent %d message(s)", sent)
            return sent

    async def _notify(self, row: LedgerOrder) -> bool:
        status = row.parsed_status
        if status not in NOTIFIABLE_STATUSES:
            logger.debug("Row %d has non-notifiable status %r", row.row_number, row.status)
            return False
        if row.notified_status.strip().upper() == status.value:
            return False

        address = resolve_delivery_address(row.transport_address, row.phone)
        if not address:
            logger.warning("Row %d has no phone or transport address, skipping", row.row_number)
            return False

        with customer_scope(address):
            return await self._deliver(row, status, address)

    async def _deliver(self, row: LedgerOrder, status: OrderStatus, address: str) -> bool:
        message = build_status_notification(status, row.customer_name)
        if message is None:
            return False

        try:
            delivered = await self._transport.send(address, message)
        except Exception:
            logger.exception("Sending %s notification for row %d failed", status.value, row.row_number)
            return False
        if not delivered:
            logger.warning("Transport refused %s notification for row %d", status.value, row.row_number)
            return False

        try:
            await self._ledger.mark_notified(row.row_number, status.value)
        except Exception:
            # The next cycle will send this notification again.
            logger.exception("Could not mark row %d as notified for %s", row.row_number, status.value)
        logger.info("Row %d notified: %s -> %s", row.row_number, status.value, address)
        return True

    async def run_forever(self) -> None:
        """Poll until cancelled. A failing cycle never stops the loop."""
        logger.info("Notification watcher started (every %.0fs)", self.poll_interval)
        while True:
            try:
                await self.run_cycle()
            except Exception:
                logger.exception("Notification cycle failed")
            await asyncio.sleep(self.poll_interval)

    def start(self) -> "asyncio.Task[None]":
        """Schedule the poll loop on the running event loop. Idempotent while running."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run_forever(), name="notification-watcher")
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Notification watcher stopped")
