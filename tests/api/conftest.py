import pytest
from fastapi.testclient import TestClient

from smsoutbox.domain.outbox import Outbox
from smsoutbox.domain.retry import RetryPolicy
from smsoutbox.infrastructure.reporting.change_feed import ChangeFeed
from smsoutbox.main import create_app
from smsoutbox.presentation.dependencies import (
    get_change_feed,
    get_outbox,
    get_retry_policy,
)


@pytest.fixture()
def changes():
    return ChangeFeed()


@pytest.fixture()
def api_outbox(segmenter, capacity, transport, timer, sink, changes, clock):
    return Outbox(
        segmenter=segmenter,
        capacity=capacity,
        transport=transport,
        timer=timer,
        status_sink=sink,
        observer=changes,
        max_parts=5,
        clock=clock,
    )


@pytest.fixture()
def app_and_deps(api_outbox, changes):
    app = create_app()
    policy = RetryPolicy(base=30, max_retries=2)

    app.dependency_overrides[get_outbox] = lambda: api_outbox
    app.dependency_overrides[get_change_feed] = lambda: changes
    app.dependency_overrides[get_retry_policy] = lambda: policy

    try:
        yield app, api_outbox, policy
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def client(app_and_deps):
    app, _, _ = app_and_deps
    return TestClient(app, raise_server_exceptions=False)
