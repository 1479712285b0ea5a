"""
Web search service backed by the Perplexity chat completions API.
"""
from typing import Any, Dict, Optional

import httpx

from errors import ProviderError

PERPLEXITY_URL = "https://api.perplexity.ai/chat/completions"

SEARCH_SYSTEM_PROMPT = (
    "You are an internet-based AI assistant, helping another AI assistant (a phone agent) "
    "to assist a human. The phone agent will pass along the human's question, and you need "
    "to give the phone agent a quick, concise, and accurate response."
)


class SearchService:
    """Answers caller questions using an online answer engine."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "sonar",
        timeout: float = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.transport = transport

    async def search_web(self, args: Dict[str, Any]) -> Dict[str, Any]:
        """Tool handler: ``{"question": str}`` -> ``{"answer": str}``."""
        question = (args.get("question") or "").strip()
        if not question:
            raise ProviderError("I didn't catch what you wanted me to look up.")
        if not self.api_key:
            raise ProviderError("Web search isn't available right now.")

        body = {
            "model": self.model,
            "stream": False,
            "temperature": 0.5,
            "messages": [
                {"role": "system", "content": SEARCH_SYSTEM_PROMPT},
                {"role": "user", "content": question},
            ],
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                r = await client.post(PERPLEXITY_URL, json=body, headers=headers)
            except httpx.HTTPError as e:
                raise ProviderError("I couldn't reach the search service.") from e

        if r.status_code != 200:
            raise ProviderError(f"The search service returned an error (http_{r.status_code}).")

        choices = r.json().get("choices") or []
        content = choices[0].get("message", {}).get("content") if choices else None
        if not content:
            raise ProviderError("The search came back empty.")
        return {"answer": content}
