from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Annotated, Any, List, Literal, Optional, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from config.settings import Settings
from relay.errors import MalformedUpstreamResponse
from relay.schemas import UpstreamPayload


logger = logging.getLogger(__name__)


class OutputTextPart(BaseModel):
    type: Literal["output_text"]
    text: str = ""


class RefusalPart(BaseModel):
    type: Literal["refusal"]
    refusal: str = ""


class UnknownPart(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Optional[str] = None


ContentPart = Annotated[
    Union[OutputTextPart, RefusalPart, UnknownPart],
    Field(union_mode="left_to_right"),
]


class OutputItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Optional[str] = None
    content: Optional[List[ContentPart]] = None


class ResponsesResult(BaseModel):
    """The subset of a Responses API result the relay reads."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    output: List[OutputItem] = Field(default_factory=list)

    @field_validator("output", mode="before")
    @classmethod
    def _null_output_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value


def parse_result(body: Any) -> ResponsesResult:
    try:
        return ResponsesResult.model_validate(body)
    except ValidationError as exc:
        raise MalformedUpstreamResponse(f"Unexpected upstream response shape: {exc}") from exc


def extract_text(result: ResponsesResult) -> str:
    """Concatenate every ``output_text`` part, in order. Empty when there are none."""
    chunks: List[str] = []
    for item in result.output:
        for part in item.content or []:
            if isinstance(part, OutputTextPart) and part.text:
                chunks.append(part.text)
    return "".join(chunks)


@dataclass(frozen=True)
class UpstreamReply:
    status_code: int
    body: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class UpstreamClient:
    """Single POST to the completion API. No retry.

    Non-2xx statuses come back as a normal ``UpstreamReply``; transport
    failures (including an expired ``upstream_timeout``) and non-JSON bodies
    propagate to the caller.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._settings = settings
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return self._settings.openai_base_url.rstrip("/") + "/responses"

    async def complete(self, payload: UpstreamPayload) -> UpstreamReply:
        headers = {
            "Authorization": f"Bearer {self._settings.openai_api_key}",
            "Content-Type": "application/json",
        }
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self._settings.upstream_timeout),
            transport=self._transport,
        ) as client:
            response = await client.post(self.endpoint, json=payload.to_json(), headers=headers)

        logger.info("Upstream replied: status=%s bytes=%s", response.status_code, len(response.content))
        return UpstreamReply(status_code=response.status_code, body=response.json())
