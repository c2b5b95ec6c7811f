from __future__ import annotations

import asyncio
import logging
from typing import Optional

import httpx

from smsoutbox.domain.entities import OutgoingMessage
from smsoutbox.domain.ports.transport import SendResultListener, TransportPort

logger = logging.getLogger(__name__)


class HttpSmsGatewayAdapter(TransportPort):
    """
    Hands message parts to an HTTP SMS gateway. try_send only schedules the
    request on the event loop; the result comes back through the listener.
    """

    def __init__(
        self,
        base_url: str,
        *,
        loop: asyncio.AbstractEventLoop,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
        send_path: str = "/send",
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._send_path = send_path if send_path.startswith("/") else f"/{send_path}"
        self._loop = loop
        self._owns_client: bool = client is None
        self._client: httpx.AsyncClient = client or httpx.AsyncClient(timeout=timeout)
        self._tasks: set[asyncio.Task] = set()

    def try_send(
        self,
        message: OutgoingMessage,
        parts: list[str],
        channel: str,
        listener: SendResultListener,
    ) -> None:
        self._loop.call_soon_threadsafe(self._spawn, message, parts, channel, listener)

    def _spawn(
        self,
        message: OutgoingMessage,
        parts: list[str],
        channel: str,
        listener: SendResultListener,
    ) -> None:
        task = self._loop.create_task(self.deliver(message, parts, channel, listener))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def deliver(
        self,
        message: OutgoingMessage,
        parts: list[str],
        channel: str,
        listener: SendResultListener,
    ) -> None:
        try:
            await self.send(message, parts, channel)
        except Exception as e:  # noqa: BLE001
            # any error still releases the message's sending slot
            logger.warning("gateway send failed", extra={"uri": message.uri, "error": str(e)})
            listener.message_failed(message, str(e) or type(e).__name__)
        else:
            listener.message_sent(message)

    async def send(self, message: OutgoingMessage, parts: list[str], channel: str) -> None:
        url = f"{self._base_url}{self._send_path}"
        payload = {"id": message.uri, "to": message.to, "parts": parts, "channel": channel}

        try:
            resp = await self._client.post(url, json=payload)
            if not (200 <= resp.status_code < 300):
                text = resp.text[:200]
                raise RuntimeError(f"Gateway responded {resp.status_code}: {text}")
        except httpx.HTTPError as e:
            raise RuntimeError(f"Gateway HTTP error: {e}") from e

    async def aclose(self) -> None:
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        if self._owns_client:
            await self._client.aclose()
