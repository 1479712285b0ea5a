"""
Barge-in handling: truncates the assistant's in-flight reply at the point the caller heard.

States:
- IDLE: no assistant audio in flight
- RESPONDING: assistant audio forwarded and not yet fully played or interrupted
"""
import logging
from typing import Optional

from models import CallSession, ResponsePhase
from openai_service import RealtimeClient
from twilio_stream import TwilioStream

logger = logging.getLogger(__name__)


class InterruptionController:
    def __init__(self, session: CallSession, model: RealtimeClient, telephony: TwilioStream):
        self.session = session
        self.model = model
        self.telephony = telephony

    @property
    def phase(self) -> ResponsePhase:
        return self.session.phase

    def should_forward(self, item_id: Optional[str]) -> bool:
        """False for audio that belongs to a reply we already truncated."""
        return item_id is None or item_id not in self.session.truncated_item_ids

    async def on_speech_started(self) -> bool:
        """
        Caller started talking. If assistant audio is still queued for playback,
        truncate the model's item at the heard offset and clear Twilio's buffer.
        Returns True when an interruption was applied.
        """
        s = self.session
        if s.phase is ResponsePhase.IDLE or not s.ack_queue:
            logger.debug("Speech started with nothing in flight")
            return False

        elapsed = max(0, s.latest_media_timestamp - s.response_start_timestamp)
        item_id = s.last_assistant_item_id
        logger.info(
            "Caller interrupted: latest=%s - start=%s = %sms (item %s)",
            s.latest_media_timestamp, s.response_start_timestamp, elapsed, item_id,
        )

        if item_id:
            s.truncated_item_ids.add(item_id)
            await self.model.truncate(item_id, elapsed)
        await self.telephony.send_clear()
        s.end_response()
        return True

    def on_response_done(self):
        self.session.model_response_complete = True
        self._finish_if_played()

    def on_playback_ack(self):
        self._finish_if_played()

    def _finish_if_played(self):
        s = self.session
        if s.phase is ResponsePhase.RESPONDING and s.model_response_complete and not s.ack_queue:
            logger.debug("Assistant reply %s fully played", s.last_assistant_item_id)
            s.end_response()
