"""
RIGRELAY - Message Handler

Transport-independent dispatch for one inbound frame:

    parse -> validate -> trigger? assemble : acknowledge

Returns the reply to send, or None when the frame is dropped.
"""

from typing import Optional

from rigrelay.assembly import PayloadAssembler
from rigrelay.errors import AssemblyError
from rigrelay.protocol import (
    INTERNAL_ERROR,
    PARSE_ERROR,
    TRIGGER_METHOD,
    InboundMessage,
    InvalidRequest,
    ParseFailure,
    acknowledgement,
    error_reply,
    injection_event,
    parse_message,
)
from rigrelay.utils.logger import logger


class RelayProtocol:
    """Stateless per-message handler shared by every connection."""

    def __init__(self, assembler: PayloadAssembler, session_id: str,
                 trigger_method: str = TRIGGER_METHOD):
        self.assembler = assembler
        self.session_id = session_id
        self.trigger_method = trigger_method

    def handle(self, text: str) -> Optional[dict]:
        result = parse_message(text)

        if isinstance(result, ParseFailure):
            logger.error(f"Error processing WebSocket message: {result.detail}")
            logger.outbound("ParseError")
            return error_reply(
                PARSE_ERROR,
                f"Parse error or invalid message format: {result.detail}",
                self.session_id,
            )

        if isinstance(result, InvalidRequest):
            logger.warning(
                f"Received malformed message ({result.reason}): {result.raw[:200]}"
            )
            return None

        logger.inbound(result.id, result.method, result.params)

        if result.method == self.trigger_method:
            return self._inject(result)

        logger.outbound("Ack", result.id)
        return acknowledgement(result.id, self.session_id)

    def _inject(self, message: InboundMessage) -> dict:
        try:
            params = self.assembler.assemble(message.frame_id)
        except AssemblyError as e:
            logger.error(f"Error processing payload for ID {message.id}: {e}")
            return error_reply(
                INTERNAL_ERROR,
                f"Internal server error during payload processing: {e}",
                self.session_id,
                message.id,
            )

        logger.info(
            f"<- Sending Injection Payload [ID: {message.id}] "
            f"(JS URL length: {len(params['request']['url'])})"
        )
        return injection_event(params, self.session_id)
