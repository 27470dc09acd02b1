"""Agent gateway implementations for the restaurant attendant."""

from order_agent.agents.gateway import AgentGateway, OpenAIAgentGateway

__all__ = ["AgentGateway", "OpenAIAgentGateway"]
