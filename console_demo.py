"""
Offline console demo: runs a full ordering conversation without any API keys.

Uses the real coordinator, intent router, order extractor, session store
and notification watcher against an in-memory ledger. The agent is a
scripted stand-in that answers by keyword, and outbound messages are
printed instead of sent. No LLM, no spreadsheet, no network calls.

Usage:
    python console_demo.py
    python console_demo.py --scenario order
    python console_demo.py --scenario status
"""

import argparse
import asyncio
import json
from typing import Optional

from order_agent.config import settings
from order_agent.conversation.coordinator import ConversationCoordinator
from order_agent.conversation.notification_watcher import NotificationWatcher
from order_agent.schemas.conversation_schema import (
    ORDER_BLOCK_MARKER,
    AgentContext,
    AgentReply,
    InboundMessage,
)
from order_agent.conversation.order_extractor import extract
from order_agent.schemas.order_schema import OrderStatus
from order_agent.tools.ledger import InMemoryLedger

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

DEMO_SENDER = "5541999998888@s.whatsapp.net"


class ConsoleTransport:
    """Prints outbound messages instead of delivering them."""

    async def send(self, address: str, text: str) -> bool:
        print(f"{GREEN}{BOLD}[Bot -> {address}]{RESET} {GREEN}{text}{RESET}")
        return True


class ScriptedAgentGateway:
    """Keyword-driven stand-in for the attendant agent."""

    def __init__(self) -> None:
        self._items: Optional[str] = None
        self._address: Optional[str] = None

    async def generate(self, context: AgentContext) -> AgentReply:
        lower = context.message.lower()

        if context.first_interaction:
            text = (
                f"Olá, tudo bem? Seja bem-vindo ao {settings.restaurant.name}! 😄\n"
                "Qual o seu nome, por favor?"
            )
        elif "pizza" in lower:
            self._items = "1x Pizza Calabresa"
            text = (
                "Anotado: 1x Pizza Calabresa.\n"
                "Total com entrega: R$ 50,00\n"
                "Me passa o endereço completo e a forma de pagamento?"
            )
        elif self._items and "rua" in lower:
            self._address = context.message
            text = "Perfeito! Posso confirmar seu pedido assim?"
        elif self._items and self._address and ("sim" in lower or "confirm" in lower):
            block = json.dumps(
                {
                    "nome": context.customer_name or "",
                    "telefone": context.phone or "",
                    "endereco": self._address,
                    "itens": self._items,
                    "total": "50,00",
                    "formaPagamento": "Pix",
                    "observacoes": "sem observação",
                    "origem": "WhatsApp",
                },
                ensure_ascii=False,
            )
            text = f"Pedido confirmado! Já vamos preparar. 🍕\n{ORDER_BLOCK_MARKER}\n{block}"
        else:
            name = f", {context.customer_name}" if context.customer_name else ""
            text = f"Prazer{name}! Posso te enviar o cardápio? Hoje temos pizzas e bebidas."

        reply_text, order = extract(text)
        return AgentReply(text=reply_text, order=order)


class ConsoleSession:
    """Drives the coordinator and watcher from the terminal."""

    SCENARIOS: dict[str, list[str]] = {
        "order": [
            "oi",
            "Ana",
            "quero uma pizza calabresa",
            "Rua das Flores, 45, Centro. Pago no pix",
            "sim, pode confirmar",
            "sim, pode confirmar",
            "ok, obrigado",
            "@accept",
            "qual o status do meu pedido?",
            "@dispatch",
        ],
        "status": [
            "qual o status do meu pedido?",
        ],
    }

    MAX_INPUT_LENGTH = 500

    def __init__(self) -> None:
        self.ledger = InMemoryLedger()
        self.transport = ConsoleTransport()
        self.coordinator = ConversationCoordinator(
            gateway=ScriptedAgentGateway(),
            ledger=self.ledger,
            transport=self.transport,
        )
        self.watcher = NotificationWatcher(self.ledger, self.transport)

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    async def _simulate_restaurant(self, status: OrderStatus) -> None:
        """Set the latest order's status as the restaurant would, then poll once."""
        if not self.ledger.orders:
            self.system_log("No order in the ledger yet")
            return
        row = self.ledger.orders[-1].row_number
        self.ledger.set_status(row, status.value)
        self.system_log(f"Restaurant set row {row} to {status.value}")
        sent = await self.watcher.run_cycle()
        self.system_log(f"Watcher cycle sent {sent} notification(s)")

    async def process(self, text: str) -> None:
        if text == "@accept":
            await self._simulate_restaurant(OrderStatus.ACCEPTED)
            return
        if text == "@dispatch":
            await self._simulate_restaurant(OrderStatus.OUT_FOR_DELIVERY)
            return
        await self.coordinator.handle_message(
            InboundMessage(sender_address=DEMO_SENDER, text=text)
        )
        self.system_log(f"Ledger rows: {len(self.ledger.orders)}")

    async def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        steps = self.SCENARIOS.get(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        self._banner(f"Scenario: {scenario}")
        for step in steps:
            print(f"\n{BLUE}[Customer] {RESET}{step}")
            await self.process(step)
        self._summary()

    async def run(self) -> None:
        self._banner("Console Demo")
        print(f"{DIM}  Commands: @accept, @dispatch simulate the restaurant; 'quit' exits{RESET}")
        while True:
            user_input = (await asyncio.to_thread(input, f"\n{BLUE}[Customer] {RESET}")).strip()
            if not user_input:
                continue
            if user_input.lower() in ("quit", "exit", "q"):
                print(f"\n{DIM}Session ended.{RESET}")
                break
            if len(user_input) > self.MAX_INPUT_LENGTH:
                print(f"{YELLOW}Message too long, keep it under {self.MAX_INPUT_LENGTH} characters.{RESET}")
                continue
            await self.process(user_input)
        self._summary()

    def _banner(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  ORDER AGENT - {title}{RESET}")
        print(f"{BOLD}  Restaurant: {settings.restaurant.name}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    def _summary(self) -> None:
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        for order in self.ledger.orders:
            print(
                f"{DIM}  Row {order.row_number}: {order.order_id} {order.items} "
                f"[{order.status}] notified={order.notified_status or '-'}{RESET}"
            )
        print(f"{BOLD}{'=' * 60}{RESET}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline ordering agent demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        help="Auto-play a scripted scenario instead of reading from the terminal",
    )
    args = parser.parse_args()

    session = ConsoleSession()
    if args.scenario:
        asyncio.run(session.run_scenario(args.scenario))
    else:
        asyncio.run(session.run())


if __name__ == "__main__":
    main()
