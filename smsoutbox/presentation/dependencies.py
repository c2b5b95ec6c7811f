from fastapi import Request

from smsoutbox.domain.outbox import Outbox
from smsoutbox.domain.retry import RetryPolicy
from smsoutbox.infrastructure.reporting.change_feed import ChangeFeed


def get_outbox(request: Request) -> Outbox:
    # This is set in smsoutbox.main lifespan()
    return request.app.state.runtime.outbox


def get_change_feed(request: Request) -> ChangeFeed:
    return request.app.state.runtime.changes


def get_retry_policy(request: Request) -> RetryPolicy:
    return request.app.state.runtime.retry_policy
