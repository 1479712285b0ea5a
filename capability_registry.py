"""
Registry mapping tool names to asynchronous capability handlers.
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, Iterable, Iterator, List, Mapping

Handler = Callable[[Dict[str, Any]], Awaitable[Any]]


@dataclass(frozen=True)
class Capability:
    """A callable tool advertised to the model."""

    name: str
    description: str
    handler: Handler
    parameters: Mapping[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )

    def as_tool(self) -> Dict[str, Any]:
        """Function tool definition for the session.update message."""
        return {
            "type": "function",
            "name": self.name,
            "description": self.description,
            "parameters": dict(self.parameters),
        }


class CapabilityRegistry(Mapping[str, Capability]):
    """Read-only name -> capability mapping, built once at startup."""

    def __init__(self, capabilities: Iterable[Capability] = ()):
        entries: Dict[str, Capability] = {}
        for capability in capabilities:
            if capability.name in entries:
                raise ValueError(f"Duplicate capability name: {capability.name}")
            entries[capability.name] = capability
        self._entries = MappingProxyType(entries)

    def __getitem__(self, name: str) -> Capability:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def tools(self) -> List[Dict[str, Any]]:
        return [capability.as_tool() for capability in self._entries.values()]
