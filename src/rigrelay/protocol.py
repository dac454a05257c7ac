"""
RIGRELAY - Wire Protocol

Inbound frames are ``{id, method, params?}`` JSON objects. Outbound frames
are one of an acknowledgement, an injection event or an error reply, each
tagged with the process session id.
"""

import json
from dataclasses import dataclass
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError

TRIGGER_METHOD = "Target.setDiscoverTargets"
INJECTION_EVENT_METHOD = "Network.requestWillBeSent"

# JSON-RPC style error codes
PARSE_ERROR = -32700
INTERNAL_ERROR = -32000


class _Missing:
    """Sentinel for an id that could not be recovered."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


class InboundMessage(BaseModel):
    """A validated inbound request."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: Any
    method: StrictStr = Field(min_length=1)
    params: Any = None

    @property
    def frame_id(self) -> Any:
        """params.frameId as sent, or None when absent or empty."""
        if isinstance(self.params, dict):
            return self.params.get("frameId") or None
        return None


@dataclass(frozen=True)
class ParseFailure:
    """Frame text was not JSON, or was JSON null."""
    detail: str


@dataclass(frozen=True)
class InvalidRequest:
    """Frame was JSON but lacked a usable id or method."""
    reason: str
    raw: str


ParseResult = Union[InboundMessage, ParseFailure, InvalidRequest]


def parse_message(text: str) -> ParseResult:
    """Parse one frame into a request or a distinguishable failure."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        return ParseFailure(str(e))

    if data is None:
        return ParseFailure("expected a JSON object, got null")

    if not isinstance(data, dict) or "id" not in data:
        return InvalidRequest("missing id", text)

    try:
        return InboundMessage.model_validate(data)
    except ValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err["loc"])
        return InvalidRequest(f"invalid {fields or 'message'}", text)


# ===========================================
# Outbound replies
# ===========================================

def acknowledgement(msg_id: Any, session_id: str) -> dict:
    """Generic success reply for any non-trigger method."""
    return {"id": msg_id, "result": {}, "sessionId": session_id}


def error_reply(code: int, message: str, session_id: str, msg_id: Any = MISSING) -> dict:
    """Error reply; ``id`` is omitted when it could not be recovered."""
    reply = {}
    if msg_id is not MISSING:
        reply["id"] = msg_id
    reply["error"] = {"code": code, "message": message}
    reply["sessionId"] = session_id
    return reply


def injection_event(params: dict, session_id: str) -> dict:
    """Synthetic network event carrying the assembled locator."""
    return {
        "method": INJECTION_EVENT_METHOD,
        "params": params,
        "sessionId": session_id,
    }
