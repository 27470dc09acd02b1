"""
Agent gateway: the restaurant attendant as a stateless call.

Given the conversation context for one turn, returns the text to send to
the customer and, when the agent closed an order, the structured order
to persist. Callers never see the raw completion text.
"""

import logging
from typing import Any, Optional, Protocol

from openai import AsyncOpenAI

from order_agent.config import settings
from order_agent.conversation.order_extractor import extract
from order_agent.prompts.prompt_templates import AGENT_FALLBACK_REPLY, build_system_info
from order_agent.prompts.system_prompts import build_system_prompt
from order_agent.schemas.conversation_schema import AgentContext, AgentReply
from order_agent.tools.restaurant import RestaurantData, load_restaurant_data

logger = logging.getLogger(__name__)


class AgentGateway(Protocol):
    async def generate(self, context: AgentContext) -> AgentReply: ...


class OpenAIAgentGateway:
    """Attendant backed by OpenAI chat completions."""

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        restaurant: Optional[RestaurantData] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> None:
        self._client = client or AsyncOpenAI()
        self._restaurant = restaurant or load_restaurant_data()
        self.model = model or settings.model.llm_model
        self.temperature = (
            temperature if temperature is not None else settings.model.llm_temperature
        )

    def build_messages(self, context: AgentContext) -> list[dict[str, Any]]:
        messages: list[dict[str, Any]] = [
            {"role": "system", "content": build_system_prompt(self._restaurant, context.last_order)}
        ]
        messages.extend(turn.model_dump() for turn in context.history)
        messages.append({"role": "user", "content": build_system_info(context)})
        return messages

    async def generate(self, context: AgentContext) -> AgentReply:
        completion = await self._client.chat.completions.create(
            model=self.model,
            messages=self.build_messages(context),
            temperature=self.temperature,
        )
        content = ""
        if completion.choices:
            content = (completion.choices[0].message.content or "").strip()
        if not content:
            logger.warning("Empty completion from %s, using fallback reply", self.model)
            return AgentReply(text=AGENT_FALLBACK_REPLY)

        text, order = extract(content)
        return AgentReply(text=text, order=order)
