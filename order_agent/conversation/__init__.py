from order_agent.conversation.identity import normalize, resolve_delivery_address
from order_agent.conversation.intent_router import (
    ClosingClassifier,
    IntentRouter,
    StatusQueryClassifier,
)
from order_agent.conversation.notification_watcher import NotificationWatcher
from order_agent.conversation.order_extractor import OrderRegistrar, extract
from order_agent.conversation.session_store import SessionStore

__all__ = [
    "normalize",
    "resolve_delivery_address",
    "IntentRouter",
    "ClosingClassifier",
    "StatusQueryClassifier",
    "NotificationWatcher",
    "OrderRegistrar",
    "extract",
    "SessionStore",
]
