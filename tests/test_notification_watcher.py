"""Tests for the order status notification watcher."""

import asyncio

import pytest

from order_agent.conversation.notification_watcher import NotificationWatcher
from order_agent.tools.ledger import InMemoryLedger
from tests.conftest import CUSTOMER_ADDRESS, FailingLedger, RecordingTransport, make_order


class TestNotificationCycle:
    def setup_method(self):
        self.ledger = InMemoryLedger()
        self.transport = RecordingTransport()
        self.watcher = NotificationWatcher(self.ledger, self.transport, poll_interval=0.01)

    @pytest.mark.asyncio
    async def test_exactly_one_message_per_transition(self):
        row = await self.ledger.append(make_order())

        assert await self.watcher.run_cycle() == 0

        self.ledger.set_status(row, "ACEITO")
        assert await self.watcher.run_cycle() == 1
        assert await self.watcher.run_cycle() == 0

        self.ledger.set_status(row, "SAIU PRA ENTREGA")
        assert await self.watcher.run_cycle() == 1
        assert await self.watcher.run_cycle() == 0

        assert len(self.transport.sent) == 2
        accepted, dispatched = self.transport.texts
        assert "ACEITO" in accepted
        assert "SAIU PARA ENTREGA" in dispatched
        assert self.ledger.orders[0].notified_status == "SAIU PRA ENTREGA"

    @pytest.mark.asyncio
    async def test_message_greets_customer_by_name(self):
        row = await self.ledger.append(make_order(customer_name="Ana"))
        self.ledger.set_status(row, "ACEITO")
        await self.watcher.run_cycle()
        address, text = self.transport.sent[0]
        assert address == CUSTOMER_ADDRESS
        assert text.startswith("Olá, Ana!")

    @pytest.mark.asyncio
    async def test_sentinel_name_gets_generic_greeting(self):
        row = await self.ledger.append(make_order(customer_name="cliente"))
        self.ledger.set_status(row, "ACEITO")
        await self.watcher.run_cycle()
        assert self.transport.texts[0].startswith("Olá!")

    @pytest.mark.asyncio
    async def test_address_derived_from_phone(self):
        row = await self.ledger.append(make_order(transport_address="", phone="41999998888"))
        self.ledger.set_status(row, "ACEITO")
        await self.watcher.run_cycle()
        assert self.transport.sent[0][0] == "5541999998888@s.whatsapp.net"

    @pytest.mark.asyncio
    async def test_unknown_status_is_skipped(self):
        row = await self.ledger.append(make_order())
        self.ledger.set_status(row, "CANCELADO")
        assert await self.watcher.run_cycle() == 0
        assert self.transport.sent == []

    @pytest.mark.asyncio
    async def test_delivered_is_not_notified(self):
        row = await self.ledger.append(make_order())
        self.ledger.set_status(row, "ENTREGUE")
        assert await self.watcher.run_cycle() == 0

    @pytest.mark.asyncio
    async def test_unreachable_row_is_skipped(self):
        row = await self.ledger.append(make_order(phone="", transport_address=""))
        self.ledger.set_status(row, "ACEITO")
        assert await self.watcher.run_cycle() == 0
        assert self.ledger.orders[0].notified_status == ""

    @pytest.mark.asyncio
    async def test_failed_send_is_not_marked(self):
        watcher = NotificationWatcher(self.ledger, RecordingTransport(raise_error=True))
        row = await self.ledger.append(make_order())
        self.ledger.set_status(row, "ACEITO")
        assert await watcher.run_cycle() == 0
        assert self.ledger.orders[0].notified_status == ""

        assert await self.watcher.run_cycle() == 1
        assert self.ledger.orders[0].notified_status == "ACEITO"

    @pytest.mark.asyncio
    async def test_undelivered_send_is_not_marked(self):
        watcher = NotificationWatcher(self.ledger, RecordingTransport(deliver=False))
        row = await self.ledger.append(make_order())
        self.ledger.set_status(row, "ACEITO")
        assert await watcher.run_cycle() == 0
        assert self.ledger.orders[0].notified_status == ""

    @pytest.mark.asyncio
    async def test_unmarked_send_is_repeated_after_ledger_recovers(self):
        ledger = FailingLedger()
        watcher = NotificationWatcher(ledger, self.transport)
        row = await ledger.append(make_order())
        ledger.set_status(row, "ACEITO")

        ledger.fail_writes = True
        assert await watcher.run_cycle() == 1
        assert ledger.orders[0].notified_status == ""

        ledger.fail_writes = False
        assert await watcher.run_cycle() == 1
        assert ledger.orders[0].notified_status == "ACEITO"
        assert await watcher.run_cycle() == 0
        assert len(self.transport.sent) == 2

    @pytest.mark.asyncio
    async def test_one_bad_row_does_not_block_others(self):
        bad = await self.ledger.append(make_order(phone="", transport_address=""))
        good = await self.ledger.append(make_order(order_id="PED-2"))
        self.ledger.set_status(bad, "ACEITO")
        self.ledger.set_status(good, "ACEITO")
        assert await self.watcher.run_cycle() == 1

    @pytest.mark.asyncio
    async def test_ledger_read_failure_ends_cycle(self):
        watcher = NotificationWatcher(FailingLedger(fail_reads=True), self.transport)
        assert await watcher.run_cycle() == 0


class TestWatcherLoop:
    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        ledger = InMemoryLedger()
        transport = RecordingTransport()
        row = await ledger.append(make_order())
        ledger.set_status(row, "ACEITO")

        watcher = NotificationWatcher(ledger, transport, poll_interval=0.01)
        watcher.start()
        assert watcher.running
        await asyncio.sleep(0.05)
        await watcher.stop()

        assert not watcher.running
        assert len(transport.sent) == 1

    @pytest.mark.asyncio
    async def test_loop_survives_failing_ledger(self):
        watcher = NotificationWatcher(
            FailingLedger(fail_reads=True), RecordingTransport(), poll_interval=0.01
        )
        watcher.start()
        await asyncio.sleep(0.03)
        assert watcher.running
        await watcher.stop()

    @pytest.mark.asyncio
    async def test_start_is_idempotent_while_running(self):
        watcher = NotificationWatcher(InMemoryLedger(), RecordingTransport(), poll_interval=0.01)
        task = watcher.start()
        assert watcher.start() is task
        await watcher.stop()
        assert watcher.start() is not task
        await watcher.stop()
