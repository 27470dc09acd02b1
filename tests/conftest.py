"""Shared test fakes and helpers."""

from typing import Optional

import pytest

from order_agent.schemas.conversation_schema import AgentContext, AgentReply
from order_agent.schemas.order_schema import LedgerOrder, OrderPayload, OrderStatus
from order_agent.tools.ledger import InMemoryLedger

CUSTOMER_ADDRESS = "5541999998888@s.whatsapp.net"
CUSTOMER_PHONE = "5541999998888"


class RecordingTransport:
    """Transport that records every send and can be told to fail."""

    def __init__(self, deliver: bool = True, raise_error: bool = False) -> None:
        self.sent: list[tuple[str, str]] = []
        self.deliver = deliver
        self.raise_error = raise_error

    async def send(self, address: str, text: str) -> bool:
        if self.raise_error:
            raise ConnectionError("transport down")
        self.sent.append((address, text))
        return self.deliver

    @property
    def texts(self) -> list[str]:
        return [text for _, text in self.sent]


class FakeAgentGateway:
    """Gateway returning queued replies and recording the contexts it saw."""

    def __init__(self, *replies: AgentReply, error: Optional[Exception] = None) -> None:
        self.replies = list(replies)
        self.error = error
        self.contexts: list[AgentContext] = []

    async def generate(self, context: AgentContext) -> AgentReply:
        self.contexts.append(context)
        if self.error is not None:
            raise self.error
        if not self.replies:
            return AgentReply(text="Posso ajudar em algo mais?")
        return self.replies.pop(0)


class FailingLedger(InMemoryLedger):
    """In-memory ledger whose reads and writes can be made to fail."""

    def __init__(self, fail_reads: bool = False, fail_writes: bool = False) -> None:
        super().__init__()
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes

    async def append(self, order: LedgerOrder) -> Optional[int]:
        if self.fail_writes:
            raise ConnectionError("ledger unreachable")
        return await super().append(order)

    async def find_latest_by_phone(self, phone: str) -> Optional[LedgerOrder]:
        if self.fail_reads:
            raise ConnectionError("ledger unreachable")
        return await super().find_latest_by_phone(phone)

    async def find_pending_notifications(self) -> list[LedgerOrder]:
        if self.fail_reads:
            raise ConnectionError("ledger unreachable")
        return await super().find_pending_notifications()

    async def mark_notified(self, row_number: int, status: str) -> None:
        if self.fail_writes:
            raise ConnectionError("ledger unreachable")
        await super().mark_notified(row_number, status)


@pytest.fixture
def ledger():
    return InMemoryLedger()


@pytest.fixture
def transport():
    return RecordingTransport()


def make_payload(
    items: str = "1x Pizza Calabresa",
    total: str = "50,00",
    address: str = "Rua das Flores, 45",
    payment_method: str = "Pix",
    **kwargs,
) -> OrderPayload:
    """Helper to create an OrderPayload with sensible defaults."""
    return OrderPayload(
        items=items,
        total=total,
        address=address,
        payment_method=payment_method,
        **kwargs,
    )


def make_order(
    row_number: int = 0,
    customer_name: str = "Ana",
    phone: str = CUSTOMER_PHONE,
    status: str = OrderStatus.PENDING.value,
    notified_status: str = "",
    transport_address: str = CUSTOMER_ADDRESS,
    **kwargs,
) -> LedgerOrder:
    """Helper to create a LedgerOrder with sensible defaults."""
    defaults = {
        "order_id": "PED-ABC123",
        "created_at": "01/03/2025, 19:30:00",
        "items": "1x Pizza Calabresa",
        "total": "50,00",
        "region": "Centro",
        "address": "Rua das Flores, 45",
        "payment_method": "Pix",
        "origin": "WhatsApp",
    }
    defaults.update(kwargs)
    return LedgerOrder(
        row_number=row_number,
        customer_name=customer_name,
        phone=phone,
        status=status,
        notified_status=notified_status,
        transport_address=transport_address,
        **defaults,
    )
