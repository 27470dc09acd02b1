"""
Chat transport port.

The connection, pairing and delivery lifecycle belong to the transport
itself. The ordering agent only needs to send text to an address and
learn whether the send went through.
"""

from typing import Protocol


class Transport(Protocol):
    async def send(self, address: str, text: str) -> bool:
        """Deliver text to a transport address. Returns False on failure."""
        ...
