from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status

from smsoutbox.application.delete_message import delete_message
from smsoutbox.application.submit_message import submit_message
from smsoutbox.domain.errors import MessageNotFound
from smsoutbox.domain.outbox import Outbox
from smsoutbox.domain.retry import RetryPolicy
from smsoutbox.infrastructure.reporting.change_feed import ChangeFeed
from smsoutbox.presentation.dependencies import (
    get_change_feed,
    get_outbox,
    get_retry_policy,
)
from smsoutbox.schemas.requests import MessageCreateIn
from smsoutbox.schemas.responses import (
    AcceptedOut,
    DuplicateOut,
    MessageListOut,
    MessageOut,
    OkOut,
    OutboxStatsOut,
)

router = APIRouter(prefix="/outbox", tags=["Outbox"])


@router.post(
    "/messages",
    status_code=202,
    response_model=AcceptedOut | DuplicateOut,
)
async def post_message(
    body: MessageCreateIn,
    response: Response,
    outbox: Annotated[Outbox, Depends(get_outbox)],
    retry_policy: Annotated[RetryPolicy, Depends(get_retry_policy)],
):
    result = submit_message(
        outbox,
        to=body.to,
        body=body.body,
        priority=body.priority,
        server_id=body.server_id,
        retry_policy=retry_policy,
    )
    if result.duplicate:
        response.status_code = status.HTTP_200_OK
        return DuplicateOut(uri=result.uri)
    if not result.accepted:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=result.error
        )
    return AcceptedOut(uri=result.uri)


@router.get("/messages", response_model=MessageListOut)
async def get_messages(
    outbox: Annotated[Outbox, Depends(get_outbox)],
    changes: Annotated[ChangeFeed, Depends(get_change_feed)],
):
    messages = sorted(outbox.messages(), key=lambda m: m.local_id)
    return MessageListOut(
        messages=[MessageOut.from_entity(m) for m in messages],
        stats=OutboxStatsOut.from_stats(outbox.stats()),
        version=changes.version,
    )


@router.delete("/messages/{uri}", status_code=204)
async def delete_outbox_message(
    uri: str,
    outbox: Annotated[Outbox, Depends(get_outbox)],
):
    try:
        delete_message(outbox, uri)
    except MessageNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="message not found"
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/retry-all", status_code=202, response_model=OkOut)
async def post_retry_all(outbox: Annotated[Outbox, Depends(get_outbox)]):
    outbox.retry_all()
    return OkOut()
