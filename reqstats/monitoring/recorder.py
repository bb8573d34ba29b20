"""Per-request ASGI send wrapper that captures the response status code."""
from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any

Message = MutableMapping[str, Any]
Send = Callable[[Message], Awaitable[None]]

DEFAULT_STATUS = 200


class Recorder:
    """
    Stands in for the ASGI ``send`` callable of one request.
    Every message is forwarded to the wrapped send as-is; the status of the
    ``http.response.start`` message is remembered. Until a status is set,
    ``status`` reports ``default_status``.
    """

    def __init__(self, send: Send, default_status: int = DEFAULT_STATUS):
        self._send = send
        self._status = default_status
        self.response_started = False

    @property
    def status(self) -> int:
        return self._status

    def set_status(self, code: int) -> None:
        # Latest call wins; ASGI only allows one response start per request anyway.
        self._status = code

    async def __call__(self, message: Message) -> None:
        if message["type"] == "http.response.start":
            self.set_status(message["status"])
            self.response_started = True
        await self._send(message)
