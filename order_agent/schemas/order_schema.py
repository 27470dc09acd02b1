"""Order data models: the extracted payload and the ledger row."""

from enum import Enum
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Stored as the customer name when neither the agent nor the session knows it.
UNKNOWN_CUSTOMER_NAME = "cliente"
DEFAULT_ORIGIN = "WhatsApp"


class OrderStatus(str, Enum):
    """Status literals used in the ledger's status column."""

    PENDING = "PENDENTE CONFIRMACAO"
    ACCEPTED = "ACEITO"
    OUT_FOR_DELIVERY = "SAIU PRA ENTREGA"
    DELIVERED = "ENTREGUE"

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["OrderStatus"]:
        """Map a free-text status cell to a known status by prefix, or None."""
        normalized = (raw or "").strip().upper()
        if not normalized:
            return None
        for prefix, status in _STATUS_PREFIXES:
            if normalized.startswith(prefix):
                return status
        return None


_STATUS_PREFIXES: list[tuple[str, OrderStatus]] = [
    ("PENDENTE", OrderStatus.PENDING),
    ("ACEIT", OrderStatus.ACCEPTED),
    ("SAIU", OrderStatus.OUT_FOR_DELIVERY),
    ("ENTREGUE", OrderStatus.DELIVERED),
]

NOTIFIABLE_STATUSES: frozenset[OrderStatus] = frozenset(
    {OrderStatus.ACCEPTED, OrderStatus.OUT_FOR_DELIVERY}
)


def _as_text(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float):
        return f"{value:.2f}".replace(".", ",")
    if isinstance(value, int):
        return str(value)
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    if isinstance(value, str):
        return value.strip()
    return value


class OrderPayload(BaseModel):
    """Order emitted by the agent inside the structured block.

    JSON keys follow the agent's output contract; attribute names are
    English. Every field is free text and defaults to empty.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    customer_name: str = Field(default="", alias="nome")
    phone: str = Field(default="", alias="telefone")
    region: str = Field(default="", alias="regiao")
    address: str = Field(default="", alias="endereco")
    items: str = Field(default="", alias="itens")
    total: str = ""
    payment_method: str = Field(default="", alias="formaPagamento")
    notes: str = Field(default="", alias="observacoes")
    origin: str = Field(default=DEFAULT_ORIGIN, alias="origem")
    transport_address: str = Field(default="", alias="waJid")

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _as_text(value)

    @field_validator("origin")
    @classmethod
    def _default_origin(cls, value: str) -> str:
        return value or DEFAULT_ORIGIN

    def fingerprint(self) -> str:
        """Equality key used to spot a re-confirmed identical order."""
        return "|".join(
            part.strip()
            for part in (self.items, self.total, self.address, self.payment_method)
        )


class LastOrderSnapshot(BaseModel):
    """The slice of a previous order the agent may reuse."""

    name: str = ""
    region: str = ""
    address: str = ""


class LedgerOrder(BaseModel):
    """One order row in the ledger.

    ``row_number`` is assigned by the ledger on insert and is the only
    stable handle for later cell updates.
    """

    row_number: int
    order_id: str = ""
    created_at: str = ""
    customer_name: str = ""
    phone: str = ""
    items: str = ""
    total: str = ""
    status: str = OrderStatus.PENDING.value
    region: str = ""
    address: str = ""
    notified_status: str = ""
    payment_method: str = ""
    notes: str = ""
    origin: str = ""
    transport_address: str = ""

    # Column order A..N of the ledger sheet.
    COLUMNS: ClassVar[tuple[str, ...]] = (
        "order_id",
        "created_at",
        "customer_name",
        "phone",
        "items",
        "total",
        "status",
        "region",
        "address",
        "notified_status",
        "payment_method",
        "notes",
        "origin",
        "transport_address",
    )

    @classmethod
    def from_row(cls, row: list[Any], row_number: int) -> "LedgerOrder":
        """Build an order from a raw sheet row (short rows are padded)."""
        values = {
            name: str(row[i]) if i < len(row) and row[i] is not None else ""
            for i, name in enumerate(cls.COLUMNS)
        }
        return cls(row_number=row_number, **values)

    def to_row(self) -> list[str]:
        return [getattr(self, name) for name in self.COLUMNS]

    @property
    def parsed_status(self) -> Optional[OrderStatus]:
        return OrderStatus.parse(self.status)

    @property
    def has_known_name(self) -> bool:
        name = self.customer_name.strip()
        return bool(name) and name.lower() != UNKNOWN_CUSTOMER_NAME

    def snapshot(self) -> LastOrderSnapshot:
        return LastOrderSnapshot(
            name=self.customer_name, region=self.region, address=self.address
        )
