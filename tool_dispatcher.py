"""
Dispatches model function calls to registered capabilities.
"""
import asyncio
import logging
from typing import Any, Dict, List

from capability_registry import CapabilityRegistry
from errors import ProviderError, ToolArgumentsError, error_payload
from models import ToolCall, ToolResult
from utils import parse_tool_arguments

logger = logging.getLogger(__name__)

APOLOGY = "Sorry, I couldn't get that information right now."


class ToolDispatcher:
    """Turns tool calls into results. Never raises for a failing call."""

    def __init__(self, registry: CapabilityRegistry, timeout_s: float = 15.0):
        self.registry = registry
        self.timeout_s = timeout_s

    @staticmethod
    def extract_calls(event: Dict[str, Any]) -> List[ToolCall]:
        """Completed function calls from a ``response.done`` event."""
        output = (event.get("response") or {}).get("output") or []
        calls = []
        for item in output:
            if item.get("type") != "function_call" or item.get("status") != "completed":
                continue
            calls.append(ToolCall(
                name=item.get("name") or "",
                arguments=item.get("arguments"),
                call_id=item.get("call_id") or item.get("id") or "",
            ))
        return calls

    async def dispatch(self, call: ToolCall) -> ToolResult:
        try:
            args = parse_tool_arguments(call.arguments)
        except ToolArgumentsError as e:
            logger.warning("Tool %s called with bad arguments: %s", call.name, e.detail)
            return ToolResult(call.call_id, error_payload("invalid_arguments", e.detail))

        capability = self.registry.get(call.name)
        if capability is None:
            logger.warning("Model requested unknown tool %s", call.name)
            return ToolResult(
                call.call_id,
                error_payload("capability_not_available", f"The capability '{call.name}' is not available."),
            )

        logger.info("Calling tool %s (%s)", call.name, call.call_id)
        try:
            result = await asyncio.wait_for(capability.handler(args), timeout=self.timeout_s)
        except asyncio.TimeoutError:
            logger.warning("Tool %s timed out after %ss", call.name, self.timeout_s)
            return ToolResult(call.call_id, error_payload("provider_timeout", APOLOGY))
        except ProviderError as e:
            logger.warning("Tool %s failed: %s", call.name, e.detail)
            return ToolResult(call.call_id, error_payload("provider_failed", e.detail))
        except Exception:
            logger.exception("Tool %s raised", call.name)
            return ToolResult(call.call_id, error_payload("provider_failed", APOLOGY))

        if isinstance(result, dict) and "error" in result:
            logger.warning("Tool %s reported an error: %s", call.name, result["error"])
            return ToolResult(call.call_id, error_payload("provider_failed", APOLOGY))
        return ToolResult(call.call_id, {"result": result})

    async def dispatch_all(self, calls: List[ToolCall]) -> List[ToolResult]:
        return list(await asyncio.gather(*(self.dispatch(call) for call in calls)))
