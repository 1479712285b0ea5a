import asyncio
import json

import pytest
from starlette.websockets import WebSocketState

from capability_registry import Capability, CapabilityRegistry
from config import RelayConfig
from models import CallSession, ConnectionState
from openai_service import RealtimeClient
from session_coordinator import RelaySession
from tool_dispatcher import ToolDispatcher
from twilio_stream import TwilioStream


class FakeWebSocket:
    """Stands in for the Twilio media stream websocket."""

    def __init__(self, messages=(), hold_open=False):
        self.messages = list(messages)
        self.hold_open = hold_open
        self.release = asyncio.Event()
        self.sent = []
        self.close_calls = []
        self.client_state = WebSocketState.CONNECTED

    async def iter_text(self):
        for message in self.messages:
            yield message if isinstance(message, str) else json.dumps(message)
        if self.hold_open:
            await self.release.wait()

    async def send_json(self, data):
        self.sent.append(data)

    async def close(self, code=1000, reason=None):
        self.close_calls.append(code)
        self.client_state = WebSocketState.DISCONNECTED


class FakeRealtimeConnection:
    """Stands in for the OpenAI realtime connection."""

    def __init__(self, events=(), hold_open=True):
        self.events = list(events)
        self.hold_open = hold_open
        self.release = asyncio.Event()
        self.sent = []
        self.close_calls = 0

    async def send(self, message):
        self.sent.append(message)

    async def close(self):
        self.close_calls += 1

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for event in self.events:
            yield event
        if self.hold_open:
            await self.release.wait()

    def sent_types(self):
        return [m["type"] for m in self.sent]


async def echo_handler(args):
    return {"echo": args}


@pytest.fixture
def config():
    return RelayConfig(openai_api_key="sk-test", tool_timeout_s=0.5, model_connect_timeout_s=0.5)


@pytest.fixture
def registry():
    return CapabilityRegistry([
        Capability(name="echo", description="Echo the arguments back.", handler=echo_handler),
    ])


@pytest.fixture
def make_relay(registry):
    """Build a RelaySession over fakes with the model side already open."""

    def _make(telephony_messages=(), model_events=(), hold_telephony=False, hold_model=True, stream_sid="MZ123"):
        session = CallSession()
        session.model_state = ConnectionState.OPEN
        if stream_sid:
            session.start_stream(stream_sid)
        connection = FakeRealtimeConnection(model_events, hold_open=hold_model)
        websocket = FakeWebSocket(telephony_messages, hold_open=hold_telephony)
        model = RealtimeClient(connection, session)
        telephony = TwilioStream(websocket, session, model)
        relay = RelaySession(session, telephony, model, ToolDispatcher(registry, timeout_s=0.5))
        return relay, websocket, connection

    return _make


@pytest.fixture
def fake_connection():
    """The fake connection class, for tests that build their own clients."""
    return FakeRealtimeConnection


@pytest.fixture
def fake_websocket():
    return FakeWebSocket
