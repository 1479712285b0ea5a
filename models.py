"""
Data models for a relayed call.
"""
import json
import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Deque, Dict, Optional, Set

logger = logging.getLogger(__name__)

MARK_NAME = "responsePart"


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class ResponsePhase(str, Enum):
    IDLE = "idle"
    RESPONDING = "responding"


@dataclass
class CallSession:
    """
    Mutable per-call state shared by the telephony adapter, the model client
    and the interruption controller. Only the session's event loop mutates it.
    """
    session_id: Optional[str] = None
    latest_media_timestamp: int = 0  # ms, from telephony media events
    last_assistant_item_id: Optional[str] = None
    response_start_timestamp: Optional[int] = None  # ms
    ack_queue: Deque[str] = field(default_factory=deque)
    model_state: ConnectionState = ConnectionState.CONNECTING
    telephony_state: ConnectionState = ConnectionState.CONNECTING
    model_response_complete: bool = False
    truncated_item_ids: Set[str] = field(default_factory=set)

    @property
    def phase(self) -> ResponsePhase:
        if self.response_start_timestamp is None:
            return ResponsePhase.IDLE
        return ResponsePhase.RESPONDING

    def start_stream(self, session_id: Optional[str]) -> None:
        """Begin a new telephony stream epoch."""
        if self.session_id is None:
            self.session_id = session_id
        elif session_id != self.session_id:
            logger.warning("Ignoring new stream id %s; call is bound to %s", session_id, self.session_id)
        self.latest_media_timestamp = 0
        self.response_start_timestamp = None

    def observe_media_timestamp(self, timestamp: int) -> None:
        if timestamp < self.latest_media_timestamp:
            logger.warning(
                "Out-of-order media timestamp %s (latest %s) ignored",
                timestamp, self.latest_media_timestamp,
            )
            return
        self.latest_media_timestamp = timestamp

    def record_outbound_audio(self, item_id: Optional[str]) -> None:
        """Track one forwarded audio fragment for playback accounting."""
        new_item = item_id is not None and item_id != self.last_assistant_item_id
        if self.response_start_timestamp is None or new_item:
            self.response_start_timestamp = self.latest_media_timestamp
            self.model_response_complete = False
        if item_id:
            self.last_assistant_item_id = item_id
        self.ack_queue.append(MARK_NAME)

    def pop_ack(self) -> Optional[str]:
        if not self.ack_queue:
            logger.warning("Playback acknowledgment received with empty queue")
            return None
        return self.ack_queue.popleft()

    def end_response(self) -> None:
        self.ack_queue.clear()
        self.last_assistant_item_id = None
        self.response_start_timestamp = None
        self.model_response_complete = False


@dataclass(frozen=True)
class ToolCall:
    name: str
    arguments: Any
    call_id: str


@dataclass(frozen=True)
class ToolResult:
    call_id: str
    payload: Dict[str, Any]

    @property
    def ok(self) -> bool:
        return "error" not in self.payload

    def to_json(self) -> str:
        """Serialize the payload as the function_call_output string."""
        return json.dumps(self.payload, ensure_ascii=False, default=str)
