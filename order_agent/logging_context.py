"""Per-customer log correlation.

Every log line carries the canonical id of the customer whose message
(or order notification) is being processed, so one customer's turns,
agent calls and ledger writes can be followed through interleaved
output from concurrent conversations.

``install_customer_filter`` stamps the id on records at the handler
level, which covers third-party loggers (httpx, openai) as well as ours.
``load_config()`` installs it on the root handlers together with
LOG_FORMAT.

Usage:
    with customer_scope("5541999998888@s.whatsapp.net"):
        logger.info("Handling message")
    # 2025-03-01 19:30:00 [order_agent.x] [5541999998888@s.whatsapp.net] INFO: Handling message
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

NO_CUSTOMER = "-"

LOG_FORMAT = "%(asctime)s [%(name)s] [%(customer_id)s] %(levelname)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_customer_id: ContextVar[str] = ContextVar("customer_id", default=NO_CUSTOMER)


def get_customer_id() -> str:
    return _customer_id.get()


@contextmanager
def customer_scope(customer_id: str) -> Iterator[None]:
    """Tag log records with ``customer_id`` until the block exits."""
    token = _customer_id.set(customer_id or NO_CUSTOMER)
    try:
        yield
    finally:
        _customer_id.reset(token)


class CustomerIdFilter(logging.Filter):
    """Adds ``customer_id`` to records that do not carry one yet."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "customer_id"):
            record.customer_id = _customer_id.get()  # type: ignore[attr-defined]
        return True


def install_customer_filter(logger: Optional[logging.Logger] = None) -> None:
    """Attach CustomerIdFilter to every handler of ``logger`` (root by default)."""
    target = logger if logger is not None else logging.getLogger()
    for handler in target.handlers:
        if not any(isinstance(f, CustomerIdFilter) for f in handler.filters):
            handler.addFilter(CustomerIdFilter())
