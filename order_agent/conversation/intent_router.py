"""
Rule-based intent routing for inbound customer messages.

Deterministic paths (closing remarks, order status lookups) are answered
without the agent. Everything else is GENERIC and goes to the agent.

Classifiers are pluggable: each implements ``classify(session, text)``
and returns an Intent or None. The router asks them in order and falls
back to GENERIC, so closing always wins over status when both match.

The router also infers session facts from the text before classifying:
the customer's name and whether a recurring address was reconfirmed.
"""

import logging
import re
from typing import Optional, Protocol, Sequence

from order_agent.schemas.conversation_schema import Intent
from order_agent.schemas.customer_schema import Session

logger = logging.getLogger(__name__)

SHORT_MESSAGE_MAX_CHARS = 40


def _normalize(text: str) -> str:
    return (text or "").strip().lower()


class IntentClassifier(Protocol):
    def classify(self, session: Session, text: str) -> Optional[Intent]: ...


class ClosingClassifier:
    """Short acknowledgements and thanks that end an exchange.

    Acknowledgement words ("ok", "beleza", "show", "perfeito") double as
    answers to the agent's "posso confirmar seu pedido?". While such a
    question is pending, only thanks count as closing; anything else goes
    to the agent so the order can be placed.
    """

    THANKS_WORDS: tuple[str, ...] = (
        "obrigado", "obrigada", "brigado", "brigada", "agradeço",
        "valeu", "vlw", "tmj",
    )
    ACK_WORDS: tuple[str, ...] = (
        "ok", "okay", "beleza", "blz", "show", "perfeito", "maravilha",
    )
    CLOSING_WORDS: tuple[str, ...] = THANKS_WORDS + ACK_WORDS

    PENDING_CONFIRMATION = re.compile(
        r"posso (confirmar|fechar|finalizar)|confirm[ao] (o |seu )?pedido\?"
        r"|pode(mos)? (confirmar|fechar)\b.*\?"
    )
    CONFIRMATION_WORDS = re.compile(r"\b(confirm\w*|pode|sim|fecha\w*|isso)\b")

    def classify(self, session: Session, text: str) -> Optional[Intent]:
        normalized = _normalize(text)
        if not normalized or len(normalized) > SHORT_MESSAGE_MAX_CHARS:
            return None
        if not normalized.startswith(self.CLOSING_WORDS):
            return None
        if self._answers_pending_confirmation(session, normalized):
            return None
        return Intent.CLOSING

    def _answers_pending_confirmation(self, session: Session, normalized: str) -> bool:
        previous = _normalize(session.last_assistant_message() or "")
        if not self.PENDING_CONFIRMATION.search(previous):
            return False
        if self.CONFIRMATION_WORDS.search(normalized):
            return True
        return not normalized.startswith(self.THANKS_WORDS)


class StatusQueryClassifier:
    """Questions about an existing order's status or delivery."""

    STATUS_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
        re.compile(p)
        for p in (
            r"status d[oa] (meu )?pedido",
            r"\bstatus\b.*\bpedido\b",
            r"\bpedido\b.*\bstatus\b",
            r"(meu )?pedido j[aá] saiu",
            r"cad[eê] (o )?(meu )?pedido",
            r"pedido (est[aá]|ta|tá) (a )?caminho",
            r"j[aá] saiu (pra|para) (a )?entrega",
            r"previs[aã]o d[ae] entrega",
            r"quando (o (meu )?pedido )?(chega|vai chegar)",
            r"quanto tempo (pra|para) chegar",
        )
    )

    def classify(self, session: Session, text: str) -> Optional[Intent]:
        normalized = _normalize(text)
        if any(p.search(normalized) for p in self.STATUS_PATTERNS):
            return Intent.STATUS_QUERY
        return None


class IntentRouter:
    """Runs classifiers in priority order; GENERIC is the fallback."""

    NAME_QUESTION = re.compile(
        r"qual (é |e )?o seu nome|qual (é |e )?seu nome|qual o nome|como (você |voce )?se chama"
        r"|seu nome, por favor"
    )
    EXPLICIT_NAME = re.compile(r"meu nome [ée] (.+)|me chamo (.+)", re.IGNORECASE)
    ADDRESS_RECONFIRM_QUESTION = re.compile(
        r"continuam? como|seu endere[cç]o e regi[aã]o|mesmo endere[cç]o"
    )
    CONFIRMATION = re.compile(
        r"^(sim|s|isso|isso mesmo|correto|certo|certinho|exato|confirmo|pode ser"
        r"|continua|continuam|[ée] esse|[ée] o mesmo|mesmo)\b"
    )

    def __init__(self, classifiers: Optional[Sequence[IntentClassifier]] = None) -> None:
        self.classifiers: list[IntentClassifier] = list(
            classifiers if classifiers is not None
            else (ClosingClassifier(), StatusQueryClassifier())
        )

    def classify(self, session: Session, text: str) -> Intent:
        for classifier in self.classifiers:
            intent = classifier.classify(session, text)
            if intent is not None:
                return intent
        return Intent.GENERIC

    def infer_session_updates(self, session: Session, text: str) -> None:
        """Adopt the customer's name and address confirmation from the text."""
        stripped = (text or "").strip()
        normalized = stripped.lower()
        previous = _normalize(session.last_assistant_message() or "")

        if (
            stripped
            and len(stripped) <= SHORT_MESSAGE_MAX_CHARS
            and self.NAME_QUESTION.search(previous)
        ):
            session.customer_name = stripped
            logger.debug("Adopted name from answer to name question")

        match = self.EXPLICIT_NAME.search(stripped)
        if match:
            name = (match.group(1) or match.group(2) or "").strip().rstrip(".!")
            if name:
                session.customer_name = name
                logger.debug("Adopted explicitly stated name")

        if (
            not session.address_confirmed
            and self.ADDRESS_RECONFIRM_QUESTION.search(previous)
            and self.CONFIRMATION.search(normalized)
        ):
            session.address_confirmed = True
            logger.info("Recurring address confirmed for this session")
