from pydantic import BaseModel, Field


class MessageCreateIn(BaseModel):
    to: str = Field("", description="Destination phone number", max_length=64)
    body: str = Field("", description="Text of the message")
    priority: int = Field(0, description="Higher priority messages are sent first")
    server_id: str | None = Field(
        None,
        description="Id of the message on the server; status is reported back when set",
        max_length=128,
    )
