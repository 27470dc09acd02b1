"""Customer identity and per-customer conversation state."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from order_agent.schemas.order_schema import LedgerOrder


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class CustomerIdentity:
    """Stable key and displayable phone derived from a transport address."""

    canonical_id: str
    display_phone: str


@dataclass
class ChatTurn:
    role: Role
    content: str

    def as_message(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass
class Session:
    """
    Per-customer conversation state.

    Owned by the SessionStore and mutated only inside the handling of a
    single message for that customer. The full history is kept; only
    the most recent turns are passed to the agent.
    """

    customer_name: Optional[str] = None
    history: list[ChatTurn] = field(default_factory=list)
    initialized: bool = False
    last_known_order: Optional[LedgerOrder] = None
    last_registered_fingerprint: Optional[str] = None
    address_confirmed: bool = False

    def add_turn(self, role: Role, content: str) -> None:
        self.history.append(ChatTurn(role=role, content=content))

    def recent_history(self, limit: int) -> list[ChatTurn]:
        return list(self.history[-limit:]) if limit > 0 else []

    def last_assistant_message(self) -> Optional[str]:
        for turn in reversed(self.history):
            if turn.role == Role.ASSISTANT:
                return turn.content
        return None
