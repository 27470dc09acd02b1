"""Inbound messages, intents, and the agent gateway contract."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from order_agent.schemas.order_schema import LastOrderSnapshot, OrderPayload


class Intent(str, Enum):
    CLOSING = "closing"
    STATUS_QUERY = "status_query"
    GENERIC = "generic"


class InboundMessage(BaseModel):
    """A message event delivered by the chat transport."""

    sender_address: str
    text: str = ""
    has_media: bool = False


class HistoryMessage(BaseModel):
    role: str
    content: str


class AgentContext(BaseModel):
    """Everything the agent gateway receives for one generic turn."""

    history: list[HistoryMessage] = Field(default_factory=list)
    message: str
    has_media: bool = False
    customer_name: Optional[str] = None
    phone: Optional[str] = None
    last_order: Optional[LastOrderSnapshot] = None
    address_confirmed: bool = False
    first_interaction: bool = False


class AgentReply(BaseModel):
    """Agent output: the text for the customer plus an optional order to persist."""

    text: str
    order: Optional[OrderPayload] = None


# Everything from this marker on is the structured order block, never shown to the customer.
ORDER_BLOCK_MARKER = "[[REGISTRAR_PEDIDO]]"
