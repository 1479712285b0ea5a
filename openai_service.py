"""
OpenAI realtime session client: session setup and the outbound messages used by the relay.
"""
import logging
from typing import Any, AsyncIterator, Dict

from openai import AsyncOpenAI

from capability_registry import CapabilityRegistry
from config import RelayConfig
from models import CallSession, ConnectionState
from utils import normalize_event_to_dict

logger = logging.getLogger(__name__)


async def connect_realtime(config: RelayConfig):
    """Open a realtime connection; returns the SDK's connection object."""
    client = AsyncOpenAI(api_key=config.openai_api_key)
    manager = client.beta.realtime.connect(model=config.realtime_model)
    return await manager.enter()


class RealtimeClient:
    """Wraps one model connection for one call."""

    def __init__(self, connection, session: CallSession):
        self.connection = connection
        self.session = session

    @property
    def is_open(self) -> bool:
        return self.session.model_state == ConnectionState.OPEN

    async def initialize_session(self, config: RelayConfig, registry: CapabilityRegistry):
        """Configure audio, voice, instructions and tools, then have the assistant speak first."""
        self.session.model_state = ConnectionState.OPEN
        session_update = {
            "type": "session.update",
            "session": {
                "turn_detection": dict(config.turn_detection),
                "input_audio_format": config.audio_format,
                "output_audio_format": config.audio_format,
                "voice": config.voice,
                "instructions": config.instructions,
                "modalities": ["text", "audio"],
                "temperature": config.temperature,
                "tools": registry.tools(),
                "tool_choice": "auto",
            },
        }
        logger.debug("Sending session update: %s", session_update)
        await self._send(session_update)
        await self.send_initial_conversation_item(config.greeting)

    async def send_initial_conversation_item(self, text: str):
        await self._send({
            "type": "conversation.item.create",
            "item": {
                "type": "message",
                "role": "user",
                "content": [{"type": "input_text", "text": text}],
            },
        })
        await self.continue_response()

    async def append_audio(self, payload: str):
        await self._send({"type": "input_audio_buffer.append", "audio": payload})

    async def truncate(self, item_id: str, audio_end_ms: int):
        await self._send({
            "type": "conversation.item.truncate",
            "item_id": item_id,
            "content_index": 0,
            "audio_end_ms": audio_end_ms,
        })

    async def send_tool_result(self, call_id: str, output: str):
        await self._send({
            "type": "conversation.item.create",
            "item": {
                "type": "function_call_output",
                "call_id": call_id,
                "output": output,
            },
        })

    async def continue_response(self):
        await self._send({"type": "response.create"})

    async def events(self) -> AsyncIterator[Dict[str, Any]]:
        async for event in self.connection:
            yield normalize_event_to_dict(event)

    async def close(self):
        if self.session.model_state == ConnectionState.CLOSED:
            return
        self.session.model_state = ConnectionState.CLOSED
        await self.connection.close()
        logger.info("Disconnected from the OpenAI Realtime API")

    async def _send(self, message: Dict[str, Any]):
        if not self.is_open:
            logger.debug("Model connection not open; dropping %s", message.get("type"))
            return
        await self.connection.send(message)
