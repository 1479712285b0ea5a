"""
Configuration and constants for the call relay.
"""
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from errors import ConfigurationError

# =============================
# OpenAI Realtime Defaults
# =============================
DEFAULT_REALTIME_MODEL = "gpt-4o-realtime-preview-2024-10-01"
DEFAULT_VOICE = "alloy"
DEFAULT_TEMPERATURE = 0.8
AUDIO_FORMAT = "g711_ulaw"

SYSTEM_MESSAGE = (
    "You are a friendly phone assistant.\n"
    "Keep answers short and conversational; the caller is listening, not reading.\n"
    "Tools available to you:\n"
    "- `search_catalog` to look up products, prices and availability.\n"
    "- `search_web` for current events or anything you are unsure of.\n"
    "- `lookup_fact` for store hours, policies and contact details.\n"
    "If a tool reports an error, apologize briefly and offer another way to help.\n"
)

GREETING = "Greet the caller briefly and ask how you can help."

LOG_EVENT_TYPES = [
    "error",
    "response.content.done",
    "rate_limits.updated",
    "response.done",
    "input_audio_buffer.committed",
    "input_audio_buffer.speech_stopped",
    "input_audio_buffer.speech_started",
    "session.created",
    "session.updated",
]

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _default_turn_detection() -> Dict[str, Any]:
    return {"type": "server_vad"}


@dataclass(frozen=True)
class RelayConfig:
    """Immutable settings handed to the session coordinator at startup."""

    openai_api_key: str
    realtime_model: str = DEFAULT_REALTIME_MODEL
    voice: str = DEFAULT_VOICE
    instructions: str = SYSTEM_MESSAGE
    greeting: str = GREETING
    temperature: float = DEFAULT_TEMPERATURE
    audio_format: str = AUDIO_FORMAT
    turn_detection: Dict[str, Any] = field(default_factory=_default_turn_detection)

    # Seconds; model connect + session init, and each tool call.
    model_connect_timeout_s: float = 10.0
    tool_timeout_s: float = 15.0

    host: str = "0.0.0.0"
    port: int = 5050
    log_level: str = "INFO"
    connect_notice: Optional[str] = "Connecting you now..."

    # Capability providers
    perplexity_api_key: Optional[str] = None
    perplexity_model: str = "sonar"
    catalog_api_url: Optional[str] = None
    catalog_api_key: Optional[str] = None

    @classmethod
    def from_env(cls) -> "RelayConfig":
        """Read configuration from the environment (and ``.env`` if present)."""
        load_dotenv()

        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ConfigurationError("Missing the OpenAI API key. Please set OPENAI_API_KEY in the .env file.")

        try:
            return cls(
                openai_api_key=api_key,
                realtime_model=os.getenv("OPENAI_REALTIME_MODEL", DEFAULT_REALTIME_MODEL),
                voice=os.getenv("VOICE", DEFAULT_VOICE),
                instructions=os.getenv("SYSTEM_MESSAGE", SYSTEM_MESSAGE),
                greeting=os.getenv("GREETING", GREETING),
                temperature=float(os.getenv("TEMPERATURE", DEFAULT_TEMPERATURE)),
                model_connect_timeout_s=float(os.getenv("MODEL_CONNECT_TIMEOUT_S", 10.0)),
                tool_timeout_s=float(os.getenv("TOOL_TIMEOUT_S", 15.0)),
                host=os.getenv("HOST", "0.0.0.0"),
                port=int(os.getenv("PORT", 5050)),
                log_level=os.getenv("LOG_LEVEL", "INFO"),
                connect_notice=os.getenv("CONNECT_NOTICE", "Connecting you now...") or None,
                perplexity_api_key=os.getenv("PERPLEXITY_API_KEY"),
                perplexity_model=os.getenv("PERPLEXITY_MODEL", "sonar"),
                catalog_api_url=os.getenv("CATALOG_API_URL"),
                catalog_api_key=os.getenv("CATALOG_API_KEY"),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
