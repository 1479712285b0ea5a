"""
Static fact lookup service.
"""
from typing import Any, Dict, Mapping, Optional


class FactService:
    """Looks up canned answers for common caller questions."""

    # Demo facts; replace with your business details.
    DEFAULT_FACTS = {
        "hours": "We're open Monday to Friday 9 AM to 6 PM, and Saturday 10 AM to 4 PM.",
        "address": "We're located at 120 Market Street, Suite 4.",
        "returns": "Unused items can be returned within 30 days with a receipt.",
        "shipping": "Standard shipping takes 3 to 5 business days; orders over $50 ship free.",
        "phone": "You can reach a human at 555-0100 during business hours.",
        "email": "Our support email is help@example.com.",
    }

    def __init__(self, facts: Optional[Mapping[str, str]] = None):
        source = self.DEFAULT_FACTS if facts is None else facts
        self.facts: Dict[str, str] = {k.strip().lower(): v for k, v in source.items()}

    async def lookup_fact(self, args: Dict[str, Any]) -> Dict[str, Any]:
        topic = str(args.get("topic") or "").strip().lower()
        fact = self.facts.get(topic)
        return {
            "found": fact is not None,
            "topic": topic,
            "fact": fact,
            "topics": sorted(self.facts),
        }
