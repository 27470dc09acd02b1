"""
Conversation coordinator: one inbound message from arrival to reply.

Flow per message:
    identity -> session (per-customer lock) -> first-message hydration
    -> session inference -> intent
    CLOSING / STATUS_QUERY: answered here, no agent call
    GENERIC: agent gateway -> reply sent -> order registered if emitted

No failure escapes ``handle_message``: external errors are logged and the
customer either gets a normal reply with the side effect dropped or, when
nothing could be computed, no reply at all.
"""

import logging
from typing import Optional

from order_agent.agents.gateway import AgentGateway
from order_agent.config import settings
from order_agent.conversation.identity import normalize
from order_agent.conversation.intent_router import IntentRouter
from order_agent.conversation.order_extractor import OrderRegistrar
from order_agent.conversation.session_store import SessionStore
from order_agent.logging_context import customer_scope
from order_agent.prompts.prompt_templates import (
    CLOSING_REPLY,
    EMPTY_MESSAGE,
    MEDIA_ONLY_MESSAGE,
    NO_RECENT_ORDER_REPLY,
    ORDER_REGISTERED_REPLY,
    build_status_reply,
)
from order_agent.schemas.conversation_schema import (
    AgentContext,
    HistoryMessage,
    InboundMessage,
    Intent,
)
from order_agent.schemas.customer_schema import CustomerIdentity, Role, Session
from order_agent.tools.ledger import Ledger
from order_agent.tools.transport import Transport

logger = logging.getLogger(__name__)


class ConversationCoordinator:
    """Routes each inbound message and keeps the customer's session coherent."""

    def __init__(
        self,
        gateway: AgentGateway,
        ledger: Ledger,
        transport: Transport,
        sessions: Optional[SessionStore] = None,
        router: Optional[IntentRouter] = None,
        registrar: Optional[OrderRegistrar] = None,
        history_window: Optional[int] = None,
    ) -> None:
        self._gateway = gateway
        self._ledger = ledger
        self._transport = transport
        self.sessions = sessions or SessionStore()
        self.router = router or IntentRouter()
        self.registrar = registrar or OrderRegistrar(ledger)
        self.history_window = history_window or settings.sessions.history_window

    async def handle_message(self, message: InboundMessage) -> Optional[str]:
        """Handle one inbound message. Returns the reply sent, if any."""
        identity = normalize(message.sender_address)
        if not identity.canonical_id:
            logger.warning("Ignoring message from unparseable address %r", message.sender_address)
            return None
        with customer_scope(identity.canonical_id):
            try:
                async with self.sessions.acquire(identity.canonical_id) as session:
                    return await self._handle(session, identity, message)
            except Exception:
                logger.exception("Unhandled error while handling message")
                return None

    async def _handle(
        self, session: Session, identity: CustomerIdentity, message: InboundMessage
    ) -> Optional[str]:
        text = (message.text or "").strip()

        if not session.initialized:
            await self._hydrate(session, identity)

        self.router.infer_session_updates(session, text)
        intent = self.router.classify(session, text)
        logger.debug("Message classified as %s", intent.value)

        if intent == Intent.CLOSING:
            return await self._reply_directly(session, identity, text, CLOSING_REPLY)
        if intent == Intent.STATUS_QUERY:
            reply = await self._status_reply(identity)
            return await self._reply_directly(session, identity, text, reply)
        return await self._generic_turn(session, identity, text, message.has_media)

    async def _hydrate(self, session: Session, identity: CustomerIdentity) -> None:
        """Load the customer's latest ledger order, once per session."""
        try:
            order = await self._ledger.find_latest_by_phone(identity.display_phone)
        except Exception:
            logger.exception("Could not load last order for session hydration")
            order = None
        finally:
            session.initialized = True

        if order is None:
            return
        session.last_known_order = order
        if not session.customer_name and order.has_known_name:
            session.customer_name = order.customer_name.strip()
        logger.info("Session hydrated from order %s (row %d)", order.order_id, order.row_number)

    async def _status_reply(self, identity: CustomerIdentity) -> str:
        order = await self._ledger.find_latest_by_phone(identity.display_phone)
        if order is None:
            return NO_RECENT_ORDER_REPLY
        return build_status_reply(order.status)

    async def _reply_directly(
        self, session: Session, identity: CustomerIdentity, text: str, reply: str
    ) -> str:
        session.add_turn(Role.USER, text or EMPTY_MESSAGE)
        session.add_turn(Role.ASSISTANT, reply)
        await self._send(identity, reply)
        return reply

    async def _generic_turn(
        self, session: Session, identity: CustomerIdentity, text: str, has_media: bool
    ) -> Optional[str]:
        recent = session.recent_history(self.history_window)
        context = AgentContext(
            history=[HistoryMessage(role=t.role.value, content=t.content) for t in recent],
            message=text or MEDIA_ONLY_MESSAGE,
            has_media=has_media,
            customer_name=session.customer_name,
            phone=identity.display_phone or None,
            last_order=session.last_known_order.snapshot() if session.last_known_order else None,
            address_confirmed=session.address_confirmed,
            first_interaction=not recent,
        )
        session.add_turn(Role.USER, text or EMPTY_MESSAGE)

        try:
            agent_reply = await self._gateway.generate(context)
        except Exception:
            logger.exception("Agent gateway call failed, no reply for this turn")
            return None

        reply = agent_reply.text or (ORDER_REGISTERED_REPLY if agent_reply.order else "")
        if not reply:
            logger.warning("Agent returned an empty reply, nothing sent")
            return None

        session.add_turn(Role.ASSISTANT, reply)
        await self._send(identity, reply)

        if agent_reply.order is not None:
            await self.registrar.register(session, agent_reply.order, identity)
        return reply

    async def _send(self, identity: CustomerIdentity, text: str) -> bool:
        try:
            delivered = await self._transport.send(identity.canonical_id, text)
        except Exception:
            logger.exception("Transport send failed")
            return False
        if not delivered:
            logger.warning("Transport did not deliver the reply")
        return delivered
