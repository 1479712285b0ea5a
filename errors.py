"""
Exceptions raised by the call relay.
"""
from typing import Any, Dict, Optional


class RelayError(Exception):
    """Base class for relay errors."""

    default_detail: str = "Relay error"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail or self.default_detail)
        self.detail = detail or self.default_detail


class ConfigurationError(RelayError):
    default_detail = "Missing required configuration."


class SessionSetupError(RelayError):
    default_detail = "Could not open the model session."


class ToolArgumentsError(RelayError):
    default_detail = "Tool arguments are not a valid JSON object."


class ProviderError(RelayError):
    """Raised by a capability provider; ``detail`` is safe to read to the caller."""

    default_detail = "Sorry, I couldn't get that information right now."


def error_payload(code: str, message: str) -> Dict[str, Any]:
    """Build the structured error payload returned to the model for a tool call."""
    return {"error": {"code": code, "message": message}}
