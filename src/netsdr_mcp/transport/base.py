"""Transport abstraction shared by the control and data connections."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

MessageHandler = Callable[[bytes], None]


class Transport(Protocol):
    """What a client session needs from a connection.

    ``on_message`` is called once per received message, from the event
    loop. Handlers must not block.
    """

    on_message: MessageHandler | None

    @property
    def connected(self) -> bool:
        ...

    async def connect(self) -> None:
        ...

    async def close(self) -> None:
        ...

    async def send(self, data: bytes) -> None:
        ...
