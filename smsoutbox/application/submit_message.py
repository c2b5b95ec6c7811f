from smsoutbox.domain.entities import OutgoingMessage, make_uri
from smsoutbox.domain.outbox import Outbox, SubmitResult
from smsoutbox.domain.retry import RetryPolicy


def submit_message(
    outbox: Outbox,
    to: str | None,
    body: str | None,
    priority: int = 0,
    server_id: str | None = None,
    retry_policy: RetryPolicy | None = None,
) -> SubmitResult:
    normalized_to = to.strip() if to else to
    message = OutgoingMessage(
        uri=make_uri(server_id),
        to=normalized_to,
        message_body=body,
        priority=priority,
        server_id=server_id,
        retry_policy=retry_policy or RetryPolicy(),
    )
    return outbox.send_message(message)
