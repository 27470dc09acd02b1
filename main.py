"""
Ordering agent entry point.

Live mode wires the OpenAI attendant to the Google Sheets ledger and runs
the notification watcher in the background. The customer side is the
terminal: each line typed is one inbound message from CONSOLE_SENDER, and
outbound messages (replies and status notifications) are printed.

Usage:
    Live chat:    python main.py
    Offline demo: python main.py demo
"""

import asyncio
import logging
import os
import sys

from order_agent.config import settings

logger = logging.getLogger(__name__)

DEFAULT_CONSOLE_SENDER = "5541999998888@s.whatsapp.net"


async def _run_live_mode() -> None:
    """Chat with the real agent from the terminal (requires API keys)."""
    from console_demo import BLUE, DIM, RESET, ConsoleTransport
    from order_agent.agents.gateway import OpenAIAgentGateway
    from order_agent.conversation.coordinator import ConversationCoordinator
    from order_agent.conversation.notification_watcher import NotificationWatcher
    from order_agent.schemas.conversation_schema import InboundMessage
    from order_agent.tools.sheets_ledger import GoogleSheetsLedger

    if not settings.ledger.spreadsheet_id:
        raise SystemExit("SPREADSHEET_ID is not set, cannot start live mode.")

    sender = os.getenv("CONSOLE_SENDER", DEFAULT_CONSOLE_SENDER)
    ledger = GoogleSheetsLedger()
    transport = ConsoleTransport()
    coordinator = ConversationCoordinator(
        gateway=OpenAIAgentGateway(), ledger=ledger, transport=transport
    )
    watcher = NotificationWatcher(ledger, transport)
    watcher.start()
    logger.info("Live session started for %s (%s)", settings.restaurant.name, sender)

    print(f"{DIM}Chatting as {sender}. Type 'quit' to exit.{RESET}")
    try:
        while True:
            try:
                line = await asyncio.to_thread(input, f"\n{BLUE}[Customer] {RESET}")
            except EOFError:
                break
            text = line.strip()
            if text.lower() in ("quit", "exit", "q"):
                break
            await coordinator.handle_message(InboundMessage(sender_address=sender, text=text))
    finally:
        await watcher.stop()
        await ledger.aclose()


def _run_demo_mode() -> None:
    """Start the offline console demo (no API keys required)."""
    from console_demo import ConsoleSession

    session = ConsoleSession()
    asyncio.run(session.run_scenario("order"))


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "demo":
        _run_demo_mode()
    else:
        asyncio.run(_run_live_mode())
