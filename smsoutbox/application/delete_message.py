from smsoutbox.domain.errors import MessageNotFound
from smsoutbox.domain.outbox import Outbox


def delete_message(outbox: Outbox, uri: str) -> None:
    message = outbox.get_message(uri)
    if message is None:
        raise MessageNotFound(uri)
    outbox.delete_message(message)
