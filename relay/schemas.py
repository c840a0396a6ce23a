from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


MAX_MESSAGE_LENGTH = 4000
NO_TEXT_PLACEHOLDER = "[No text]"


class ChatTurn(BaseModel):
    """One user send from the widget.

    Both fields are optional on the wire: emptiness and length are checked by
    the relay so a missing credential is reported before bad input.
    """

    message: Optional[str] = Field(default=None, description="User's latest message")
    previous_response_id: Optional[str] = Field(
        default=None,
        description="Continuation token from the previous reply, passed through untouched",
    )


class RelayResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: bool = True
    response_id: Optional[str] = None
    assistant_message: str = ""
    error: Optional[Any] = None

    def to_body(self) -> dict:
        # Absent fields are left off the wire rather than sent as null.
        return self.model_dump(exclude_none=True)


class UpstreamPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    model: str
    instructions: str
    input: str
    temperature: float
    previous_response_id: Optional[str] = None

    def to_json(self) -> dict:
        # The token key only exists on the wire when there is a token.
        return self.model_dump(exclude_none=True)
