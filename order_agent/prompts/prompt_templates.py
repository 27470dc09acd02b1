"""Canned replies, status templates, and per-turn system info for the agent."""

from typing import Optional

from order_agent.schemas.conversation_schema import AgentContext
from order_agent.schemas.order_schema import UNKNOWN_CUSTOMER_NAME, OrderStatus

CLOSING_REPLY = "Por nada, estou à disposição! 🙂"

NO_RECENT_ORDER_REPLY = (
    "Não encontrei nenhum pedido recente no seu número. 🤔\n"
    "Quer fazer um pedido agora? É só me dizer o que vai querer!"
)

AGENT_FALLBACK_REPLY = "Desculpe, tive um probleminha para responder agora. Pode repetir, por favor?"

ORDER_REGISTERED_REPLY = "Pedido confirmado! Já estamos cuidando dele. 🙌"

MEDIA_ONLY_MESSAGE = "(sem texto, apenas mídia)"
EMPTY_MESSAGE = "[mensagem vazia]"

STATUS_REPLIES: dict[OrderStatus, str] = {
    OrderStatus.PENDING: (
        "Recebemos seu pedido e ele está aguardando a confirmação do restaurante. ⏳"
    ),
    OrderStatus.ACCEPTED: "Seu pedido foi aceito e já está sendo preparado! 👨‍🍳",
    OrderStatus.OUT_FOR_DELIVERY: "Seu pedido saiu para entrega! 🛵 Já já chega aí.",
    OrderStatus.DELIVERED: (
        "Seu pedido consta como entregue. ✅ Qualquer coisa, estou à disposição!"
    ),
}

STATUS_NOTIFICATIONS: dict[OrderStatus, str] = {
    OrderStatus.ACCEPTED: (
        "{greeting} 👋\n"
        "Seu pedido foi ACEITO e já está sendo preparado. 👨‍🍳"
    ),
    OrderStatus.OUT_FOR_DELIVERY: (
        "{greeting} 🛵\n"
        "Seu pedido SAIU PARA ENTREGA e já já chega aí!"
    ),
}


def build_status_reply(raw_status: str) -> str:
    """Reply to a status question, echoing statuses we do not recognize."""
    status = OrderStatus.parse(raw_status)
    if status is None:
        return f"O status atual do seu pedido é: {raw_status.strip() or 'sem status'}."
    return STATUS_REPLIES[status]


def build_status_notification(status: OrderStatus, customer_name: str = "") -> Optional[str]:
    """Proactive message for a status change, or None when not notifiable."""
    template = STATUS_NOTIFICATIONS.get(status)
    if template is None:
        return None
    name = (customer_name or "").strip()
    if name and name.lower() != UNKNOWN_CUSTOMER_NAME:
        greeting = f"Olá, {name}!"
    else:
        greeting = "Olá!"
    return template.format(greeting=greeting)


def build_system_info(context: AgentContext) -> str:
    """Append the per-turn [INFO DO SISTEMA] flags to the customer's message."""
    parts = [context.message]
    parts.append(
        f"[INFO DO SISTEMA: PRIMEIRA_INTERACAO={'SIM' if context.first_interaction else 'NAO'}]"
    )
    if context.customer_name:
        parts.append(
            f'[INFO DO SISTEMA: o nome atual do cliente é "{context.customer_name}". '
            "Use esse nome para se dirigir a ele.]"
        )
    if context.phone:
        parts.append(f"[INFO DO SISTEMA: TELEFONE_DO_CLIENTE={context.phone}]")
    if context.has_media:
        parts.append(
            "[INFO DO SISTEMA: HOUVE_COMPROVANTE_PIX=SIM. O cliente acabou de enviar "
            "uma imagem ou documento (possível comprovante).]"
        )
    if context.last_order:
        parts.append(
            f"[INFO DO SISTEMA: ULTIMO_PEDIDO_PLANILHA={context.last_order.model_dump_json()}]"
        )
    if context.address_confirmed:
        parts.append("[INFO DO SISTEMA: ENDERECO_JA_CONFIRMADO=SIM]")
    return "\n\n".join(parts)
