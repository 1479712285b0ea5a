"""
Twilio Media Streams adapter: decodes inbound stream events and encodes outbound audio/control.
"""
import contextlib
import json
import logging
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from models import MARK_NAME, CallSession, ConnectionState
from openai_service import RealtimeClient

logger = logging.getLogger(__name__)

KNOWN_QUIET_EVENTS = {"connected", "dtmf"}


class TwilioStream:
    """One call's telephony side. The coordinator owns it and is the only caller of ``close``."""

    def __init__(self, websocket: WebSocket, session: CallSession, model: RealtimeClient):
        self.websocket = websocket
        self.session = session
        self.model = model
        self.session.telephony_state = ConnectionState.OPEN

    @property
    def is_open(self) -> bool:
        return (
            self.session.telephony_state == ConnectionState.OPEN
            and self.websocket.client_state == WebSocketState.CONNECTED
        )

    async def messages(self) -> AsyncIterator[Dict[str, Any]]:
        """Yield decoded inbound events; undecodable frames are logged and skipped."""
        async for message in self.websocket.iter_text():
            try:
                data = json.loads(message)
            except ValueError:
                logger.warning("Dropping undecodable telephony frame: %.80r", message)
                continue
            if not isinstance(data, dict):
                logger.warning("Dropping non-object telephony frame: %.80r", message)
                continue
            yield data

    async def handle(self, data: Dict[str, Any]) -> bool:
        """Process one inbound event. Returns False when the stream has ended."""
        event = data.get("event")

        if event == "media":
            await self._on_media(data.get("media") or {})
        elif event == "start":
            start = data.get("start") or {}
            stream_sid = start.get("streamSid") or data.get("streamSid")
            self.session.start_stream(stream_sid)
            logger.info("Incoming stream has started %s", stream_sid)
        elif event == "mark":
            self.session.pop_ack()
        elif event in ("stop", "close"):
            logger.info("Stream %s stopped", self.session.session_id)
            return False
        elif event in KNOWN_QUIET_EVENTS:
            logger.debug("Received %s event", event)
        else:
            logger.info("Received non-media event: %s", event)
        return True

    async def _on_media(self, media: Dict[str, Any]):
        try:
            timestamp = int(media.get("timestamp", self.session.latest_media_timestamp))
        except (TypeError, ValueError):
            logger.warning("Media event with invalid timestamp: %r", media.get("timestamp"))
            return
        self.session.observe_media_timestamp(timestamp)

        payload = media.get("payload")
        if not payload:
            logger.warning("Received media event with no payload")
            return
        if not self.model.is_open:
            return
        await self.model.append_audio(payload)

    async def send_audio(self, payload: str, item_id: Optional[str] = None) -> bool:
        """Forward one assistant audio fragment followed by its playback mark."""
        stream_sid = self.session.session_id
        if not stream_sid or not self.is_open:
            logger.debug("No open stream; dropping assistant audio for item %s", item_id)
            return False
        await self.websocket.send_json({
            "event": "media",
            "streamSid": stream_sid,
            "media": {"payload": payload},
        })
        self.session.record_outbound_audio(item_id)
        await self.websocket.send_json({
            "event": "mark",
            "streamSid": stream_sid,
            "mark": {"name": MARK_NAME},
        })
        return True

    async def send_clear(self):
        """Tell Twilio to drop any buffered, not yet played audio."""
        if not self.is_open:
            return
        await self.websocket.send_json({"event": "clear", "streamSid": self.session.session_id})

    async def close(self, code: int = 1000):
        if self.session.telephony_state == ConnectionState.CLOSED:
            return
        self.session.telephony_state = ConnectionState.CLOSED
        if self.websocket.client_state != WebSocketState.DISCONNECTED:
            # The peer may have sent its close frame already.
            with contextlib.suppress(RuntimeError):
                await self.websocket.close(code=code)
        logger.info("Client disconnected.")
