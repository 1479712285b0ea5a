"""
Utility functions shared by the relay components.
"""
import json
from typing import Any, Dict

from errors import ToolArgumentsError


def normalize_event_to_dict(event: Any) -> Dict[str, Any]:
    """Convert a realtime SDK event, raw JSON text or dict to a plain dict."""
    if isinstance(event, dict):
        return event
    if isinstance(event, (str, bytes, bytearray)):
        try:
            decoded = json.loads(event if isinstance(event, str) else event.decode())
        except ValueError:
            return {"type": "unknown", "raw": repr(event)}
        return decoded if isinstance(decoded, dict) else {"type": "unknown", "raw": repr(event)}

    model_dump = getattr(event, "model_dump", None)
    if callable(model_dump):
        return model_dump()

    return {"type": "unknown", "raw": repr(event)}


def parse_tool_arguments(args: Any) -> Dict[str, Any]:
    """
    Parse function call arguments into a dict.
    Raises ToolArgumentsError when the payload is not a JSON object.
    """
    if args is None or args == "":
        return {}
    if isinstance(args, dict):
        return args
    if isinstance(args, (bytes, bytearray)):
        try:
            args = args.decode()
        except UnicodeDecodeError as e:
            raise ToolArgumentsError(f"Arguments are not valid UTF-8: {e}") from e
    if not isinstance(args, str):
        raise ToolArgumentsError(f"Unsupported arguments type: {type(args).__name__}")
    try:
        parsed = json.loads(args)
    except ValueError as e:
        raise ToolArgumentsError(f"Arguments are not valid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise ToolArgumentsError("Arguments must be a JSON object.")
    return parsed
