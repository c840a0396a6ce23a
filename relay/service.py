from __future__ import annotations

import logging
from typing import Optional

import httpx

from config.settings import Settings
from relay.core.instructions import build_instructions
from relay.errors import (
    ConfigurationError,
    InputError,
    InternalRelayError,
    RelayError,
    UpstreamStatusError,
)
from relay.sanitizer import sanitize
from relay.schemas import (
    MAX_MESSAGE_LENGTH,
    NO_TEXT_PLACEHOLDER,
    ChatTurn,
    RelayResponse,
    UpstreamPayload,
)
from relay.upstream import UpstreamClient, extract_text, parse_result


logger = logging.getLogger(__name__)


def validate_message(message: Optional[str]) -> str:
    if not message or len(message) > MAX_MESSAGE_LENGTH:
        raise InputError()
    return message


class RelayService:
    """Turns one ``ChatTurn`` into one ``RelayResponse``.

    Stateless: continuity lives entirely in the token the widget sends back.
    """

    def __init__(self, settings: Settings, upstream: Optional[UpstreamClient] = None):
        self._settings = settings
        self._upstream = upstream or UpstreamClient(settings)
        self._instructions = build_instructions(
            settings.assistant_name, detect_language=settings.detect_language
        )

    def build_payload(self, turn: ChatTurn) -> UpstreamPayload:
        return UpstreamPayload(
            model=self._settings.openai_model,
            instructions=self._instructions,
            input=turn.message or "",
            temperature=self._settings.temperature,
            previous_response_id=turn.previous_response_id or None,
        )

    async def handle(self, turn: ChatTurn) -> RelayResponse:
        try:
            return await self._handle(turn)
        except RelayError:
            raise
        except httpx.TimeoutException as exc:
            logger.error("Upstream call timed out after %ss: %s", self._settings.upstream_timeout, exc)
            raise InternalRelayError() from exc
        except Exception as exc:
            logger.exception("Chat processing failed: %s", exc)
            raise InternalRelayError() from exc

    async def _handle(self, turn: ChatTurn) -> RelayResponse:
        if not self._settings.openai_api_key:
            logger.warning("Rejecting chat turn: OPENAI_API_KEY is not configured")
            raise ConfigurationError()

        validate_message(turn.message)
        payload = self.build_payload(turn)
        logger.info(
            "Incoming chat: model=%s message_len=%s continued=%s",
            payload.model,
            len(payload.input),
            payload.previous_response_id is not None,
        )

        reply = await self._upstream.complete(payload)
        if not reply.ok:
            logger.warning("Upstream error passed through: status=%s", reply.status_code)
            raise UpstreamStatusError(reply.status_code, reply.body)

        result = parse_result(reply.body)
        text = sanitize(extract_text(result))
        return RelayResponse(
            ok=True,
            response_id=result.id,
            assistant_message=text or NO_TEXT_PLACEHOLDER,
        )
