"""
FastAPI routes for the Twilio voice webhook and media stream.
"""
import logging

from fastapi import FastAPI, Request, WebSocket
from fastapi.responses import HTMLResponse, JSONResponse
from twilio.twiml.voice_response import Connect, VoiceResponse

from session_coordinator import SessionCoordinator

logger = logging.getLogger(__name__)


class Routes:
    """Contains all FastAPI route handlers."""

    def __init__(self, app: FastAPI, coordinator: SessionCoordinator):
        self.app = app
        self.coordinator = coordinator
        self._setup_routes()

    def _setup_routes(self):
        """Setup all route handlers."""
        self.app.get("/", response_class=JSONResponse)(self.index_page)
        self.app.api_route("/incoming-call", methods=["GET", "POST"])(self.handle_incoming_call)
        self.app.websocket("/media-stream")(self.handle_media_stream)

    async def index_page(self):
        """Root endpoint returning status information."""
        return {"message": "Twilio Media Stream Server is running!"}

    async def handle_incoming_call(self, request: Request):
        """Answer an inbound call with TwiML that opens a media stream back to us."""
        response = VoiceResponse()
        notice = self.coordinator.config.connect_notice
        if notice:
            response.say(notice)
        host = request.headers.get("host") or request.url.hostname
        connect = Connect()
        connect.stream(url=f"wss://{host}/media-stream")
        response.append(connect)
        logger.info("Using WebSocket URL: wss://%s/media-stream", host)
        return HTMLResponse(content=str(response), media_type="application/xml")

    async def handle_media_stream(self, websocket: WebSocket):
        """Bridge one Twilio media stream to a realtime model session."""
        await websocket.accept()
        logger.info("Client connected")
        await self.coordinator.handle(websocket)
