from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import httpx

from smsoutbox.domain.outbox import Outbox
from smsoutbox.domain.retry import RetryPolicy
from smsoutbox.infrastructure.reporting.change_feed import ChangeFeed
from smsoutbox.infrastructure.reporting.http_status_reporter import HttpStatusReporter
from smsoutbox.infrastructure.scheduling.loop_timer import LoopWakeTimer
from smsoutbox.infrastructure.sms.capacity import SlidingWindowCapacity
from smsoutbox.infrastructure.sms.http_gateway_adapter import HttpSmsGatewayAdapter
from smsoutbox.infrastructure.sms.segmenter import GsmSegmenter
from smsoutbox.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class OutboxRuntime:
    """The Outbox plus the adapters it was built with, for shutdown and introspection."""

    outbox: Outbox
    transport: HttpSmsGatewayAdapter
    status_reporter: HttpStatusReporter
    timer: LoopWakeTimer
    capacity: SlidingWindowCapacity
    changes: ChangeFeed
    retry_policy: RetryPolicy

    async def aclose(self) -> None:
        self.timer.close()
        await self.transport.aclose()
        await self.status_reporter.aclose()


def retry_policy_from(settings: Settings) -> RetryPolicy:
    return RetryPolicy(
        base=settings.retry_base_seconds,
        max_delay=settings.retry_max_seconds,
        max_retries=settings.max_retries,
    )


def build_outbox(
    settings: Settings,
    *,
    client: httpx.AsyncClient,
    loop: asyncio.AbstractEventLoop,
) -> OutboxRuntime:
    transport = HttpSmsGatewayAdapter(settings.gateway_base_url, loop=loop, client=client)
    reporter = HttpStatusReporter(settings.status_server_url, loop=loop, client=client)
    timer = LoopWakeTimer(loop)
    capacity = SlidingWindowCapacity(
        settings.sms_channels,
        max_parts_per_window=settings.parts_per_window,
        window_seconds=settings.rate_window_seconds,
    )
    changes = ChangeFeed()

    outbox = Outbox(
        segmenter=GsmSegmenter(),
        capacity=capacity,
        transport=transport,
        timer=timer,
        status_sink=reporter,
        observer=changes,
        max_sending=settings.max_sending,
        max_parts=settings.max_message_parts,
        min_wake_delay=settings.min_wake_delay_seconds,
        test_mode=settings.test_mode,
        test_numbers=settings.test_phone_numbers,
    )
    logger.info(
        "outbox ready",
        extra={
            "channels": settings.sms_channels,
            "max_sending": settings.max_sending,
            "test_mode": settings.test_mode,
        },
    )
    return OutboxRuntime(
        outbox=outbox,
        transport=transport,
        status_reporter=reporter,
        timer=timer,
        capacity=capacity,
        changes=changes,
        retry_policy=retry_policy_from(settings),
    )
