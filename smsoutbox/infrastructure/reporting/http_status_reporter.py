from __future__ import annotations

import asyncio
import logging
from typing import Optional

import httpx

from smsoutbox.domain.ports.status_sink import MessageStatus, StatusSinkPort

logger = logging.getLogger(__name__)

ACTION_SEND_STATUS = "send_status"


class HttpStatusReporter(StatusSinkPort):
    """Posts message status back to the server the message came from."""

    def __init__(
        self,
        server_url: str,
        *,
        loop: asyncio.AbstractEventLoop,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ) -> None:
        self._server_url = server_url
        self._loop = loop
        self._owns_client: bool = client is None
        self._client: httpx.AsyncClient = client or httpx.AsyncClient(timeout=timeout)
        self._tasks: set[asyncio.Task] = set()

    def report(self, server_id: str, status: MessageStatus, error: str) -> None:
        if not self._server_url:
            logger.debug("no status server configured", extra={"server_id": server_id})
            return
        self._loop.call_soon_threadsafe(self._spawn, server_id, status, error)

    def _spawn(self, server_id: str, status: MessageStatus, error: str) -> None:
        task = self._loop.create_task(self.post_status(server_id, status, error))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def post_status(self, server_id: str, status: MessageStatus, error: str) -> bool:
        form = {
            "id": server_id,
            "status": status,
            "error": error,
            "action": ACTION_SEND_STATUS,
        }
        try:
            resp = await self._client.post(self._server_url, data=form)
        except httpx.HTTPError as e:
            logger.warning(
                "status report failed", extra={"server_id": server_id, "error": str(e)}
            )
            return False
        if not (200 <= resp.status_code < 300):
            logger.warning(
                "status report rejected",
                extra={"server_id": server_id, "status_code": resp.status_code},
            )
            return False
        return True

    async def aclose(self) -> None:
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        if self._owns_client:
            await self._client.aclose()
