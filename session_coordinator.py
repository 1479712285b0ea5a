"""
Per-call session lifecycle: wires Twilio, the realtime model, barge-in handling and tools.

Both connections are read by pump tasks that only enqueue events; a single loop
per call handles them one at a time, so call state is never mutated concurrently.
Tool calls run as separate tasks and post their results back onto the same queue.
"""
import asyncio
import contextlib
import logging
from typing import Any, Awaitable, Callable, List, NamedTuple, Optional, Set

from fastapi import WebSocket
from fastapi.websockets import WebSocketDisconnect

from capability_registry import CapabilityRegistry
from config import LOG_EVENT_TYPES, RelayConfig
from errors import SessionSetupError
from interruption_controller import InterruptionController
from models import CallSession, ConnectionState, ToolCall, ToolResult
from openai_service import RealtimeClient, connect_realtime
from tool_dispatcher import ToolDispatcher
from twilio_stream import TwilioStream

logger = logging.getLogger(__name__)

TELEPHONY = "telephony"
MODEL = "model"
TOOL_RESULTS = "tool_results"
CLOSED = "closed"


class SessionEvent(NamedTuple):
    source: str
    data: Any


class RelaySession:
    """One phone call. Owns both connections and is the only place either gets closed."""

    def __init__(
        self,
        session: CallSession,
        telephony: TwilioStream,
        model: RealtimeClient,
        dispatcher: ToolDispatcher,
    ):
        self.session = session
        self.telephony = telephony
        self.model = model
        self.dispatcher = dispatcher
        self.interruptions = InterruptionController(session, model, telephony)
        self.events: "asyncio.Queue[SessionEvent]" = asyncio.Queue()
        self.tool_tasks: Set[asyncio.Task] = set()
        self._pumps: List[asyncio.Task] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def run(self):
        """Relay until either side ends, then tear both down."""
        self._pumps = [
            asyncio.create_task(self._pump_telephony(), name="twilio->session"),
            asyncio.create_task(self._pump_model(), name="openai->session"),
        ]
        try:
            while True:
                event = await self.events.get()
                if not await self.handle_event(event):
                    break
        except Exception:
            logger.exception("Relay session %s failed", self.session.session_id)
        finally:
            await self.close()

    async def handle_event(self, event: SessionEvent) -> bool:
        """Apply one event to the call. Returns False once the call should end."""
        if event.source == CLOSED:
            logger.info("%s connection closed; ending session %s", event.data, self.session.session_id)
            return False
        if event.source == TELEPHONY:
            keep_going = await self.telephony.handle(event.data)
            if event.data.get("event") == "mark":
                self.interruptions.on_playback_ack()
            return keep_going
        if event.source == MODEL:
            await self._on_model_event(event.data)
        elif event.source == TOOL_RESULTS:
            await self._on_tool_results(event.data)
        return True

    async def _on_model_event(self, response: dict):
        t = response.get("type")

        if t in LOG_EVENT_TYPES:
            if t == "error":
                error = response.get("error") or {}
                if error.get("code") != "input_audio_buffer_commit_empty":
                    logger.error("OpenAI error event: %s", error)
            else:
                logger.info("Received event: %s", t)

        if t == "response.audio.delta" and response.get("delta"):
            item_id = response.get("item_id")
            if not self.interruptions.should_forward(item_id):
                logger.debug("Dropping audio for truncated item %s", item_id)
                return
            await self.telephony.send_audio(response["delta"], item_id)

        elif t == "input_audio_buffer.speech_started":
            await self.interruptions.on_speech_started()

        elif t == "response.done":
            self.interruptions.on_response_done()
            calls = self.dispatcher.extract_calls(response)
            if calls:
                self._start_tool_calls(calls)

    def _start_tool_calls(self, calls: List[ToolCall]):
        task = asyncio.create_task(self._run_tool_calls(calls), name="tool-calls")
        self.tool_tasks.add(task)
        task.add_done_callback(self.tool_tasks.discard)

    async def _run_tool_calls(self, calls: List[ToolCall]):
        results = await self.dispatcher.dispatch_all(calls)
        await self.events.put(SessionEvent(TOOL_RESULTS, results))

    async def _on_tool_results(self, results: List[ToolResult]):
        for result in results:
            await self.model.send_tool_result(result.call_id, result.to_json())
        await self.model.continue_response()

    async def _pump_telephony(self):
        try:
            async for data in self.telephony.messages():
                await self.events.put(SessionEvent(TELEPHONY, data))
        except WebSocketDisconnect:
            logger.info("Twilio WebSocket disconnected")
        except Exception:
            logger.exception("Twilio stream failed")
        finally:
            await self.events.put(SessionEvent(CLOSED, TELEPHONY))

    async def _pump_model(self):
        try:
            async for response in self.model.events():
                await self.events.put(SessionEvent(MODEL, response))
        except Exception:
            logger.exception("OpenAI connection failed")
        finally:
            await self.events.put(SessionEvent(CLOSED, MODEL))

    async def close(self, code: int = 1000):
        """Close both connections exactly once; later calls are no-ops."""
        if self._closed:
            return
        self._closed = True

        current = asyncio.current_task()
        tasks = [t for t in [*self._pumps, *self.tool_tasks] if t is not current]
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task

        try:
            await self.model.close()
        finally:
            await self.telephony.close(code=code)
        logger.info("Session %s closed", self.session.session_id)


Connector = Callable[[RelayConfig], Awaitable[Any]]


class SessionCoordinator:
    """Creates a RelaySession for each inbound media stream."""

    def __init__(
        self,
        config: RelayConfig,
        registry: CapabilityRegistry,
        connect: Connector = connect_realtime,
    ):
        self.config = config
        self.registry = registry
        self.connect = connect
        self.dispatcher = ToolDispatcher(registry, timeout_s=config.tool_timeout_s)

    async def open_session(self, websocket: WebSocket) -> RelaySession:
        """Open and initialize the model side for an accepted telephony websocket."""
        session = CallSession()
        connection = None
        try:
            connection = await asyncio.wait_for(
                self.connect(self.config), timeout=self.config.model_connect_timeout_s
            )
            model = RealtimeClient(connection, session)
            await asyncio.wait_for(
                model.initialize_session(self.config, self.registry),
                timeout=self.config.model_connect_timeout_s,
            )
        except Exception as e:
            session.model_state = ConnectionState.CLOSED
            if connection is not None:
                with contextlib.suppress(Exception):
                    await connection.close()
            if isinstance(e, asyncio.TimeoutError):
                raise SessionSetupError("Timed out connecting to the OpenAI Realtime API") from e
            raise SessionSetupError(f"OpenAI bridge failed: {e}") from e

        logger.info("Connected to the OpenAI Realtime API")
        telephony = TwilioStream(websocket, session, model)
        return RelaySession(session, telephony, model, self.dispatcher)

    async def handle(self, websocket: WebSocket) -> Optional[RelaySession]:
        """Run one call end to end on an accepted websocket."""
        try:
            relay = await self.open_session(websocket)
        except SessionSetupError as e:
            logger.error("Session setup failed: %s", e.detail)
            with contextlib.suppress(RuntimeError):
                await websocket.close(code=1011, reason=e.detail[:120])
            return None
        await relay.run()
        return relay
