import itertools

import pytest

from smsoutbox.domain.entities import OutgoingMessage
from smsoutbox.domain.outbox import Outbox
from smsoutbox.domain.retry import RetryPolicy
from tests.fakes import (
    FakeCapacity,
    FakeSegmenter,
    ManualClock,
    RecordingObserver,
    RecordingStatusSink,
    RecordingTimer,
    RecordingTransport,
)


@pytest.fixture()
def clock():
    return ManualClock()


@pytest.fixture()
def segmenter():
    return FakeSegmenter(chunk=10)


@pytest.fixture()
def capacity():
    return FakeCapacity(available=True)


@pytest.fixture()
def transport():
    return RecordingTransport()


@pytest.fixture()
def timer():
    return RecordingTimer()


@pytest.fixture()
def sink():
    return RecordingStatusSink()


@pytest.fixture()
def observer():
    return RecordingObserver()


@pytest.fixture()
def outbox(segmenter, capacity, transport, timer, sink, observer, clock):
    return Outbox(
        segmenter=segmenter,
        capacity=capacity,
        transport=transport,
        timer=timer,
        status_sink=sink,
        observer=observer,
        max_sending=2,
        max_parts=5,
        clock=clock,
    )


@pytest.fixture()
def make_message():
    """
    Build messages with strictly increasing local ids, independent of the
    process-wide counter other tests may have advanced.
    """
    ids = itertools.count(1)

    def _make(
        uri: str | None = None,
        *,
        to: str | None = "+15550001",
        body: str | None = "hello",
        priority: int = 0,
        server_id: str | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> OutgoingMessage:
        local_id = next(ids)
        return OutgoingMessage(
            uri=uri or f"msg-{local_id}",
            to=to,
            message_body=body,
            priority=priority,
            server_id=server_id,
            local_id=local_id,
            retry_policy=retry_policy or RetryPolicy(),
        )

    return _make
