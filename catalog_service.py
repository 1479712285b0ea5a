"""
Product catalog search service.
"""
from typing import Any, Dict, List, Optional

import httpx

from errors import ProviderError

MAX_RESULTS = 10


class CatalogService:
    """Searches a product catalog HTTP API (``GET {base}/products/search``)."""

    def __init__(
        self,
        base_url: Optional[str],
        api_key: Optional[str] = None,
        timeout: float = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/") if base_url else None
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    async def search_products(self, args: Dict[str, Any]) -> Dict[str, Any]:
        """
        Tool handler: ``{"query": str, "limit"?: int}``.
        Returns a trimmed list of matching products suitable for reading aloud.
        """
        query = (args.get("query") or "").strip()
        if not query:
            raise ProviderError("I need a product name or description to search for.")
        if not self.base_url:
            raise ProviderError("The product catalog isn't available right now.")

        try:
            limit = max(1, min(int(args.get("limit") or 3), MAX_RESULTS))
        except (TypeError, ValueError):
            limit = 3

        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        params = {"q": query, "limit": limit}

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                r = await client.get(f"{self.base_url}/products/search", params=params, headers=headers)
            except httpx.HTTPError as e:
                raise ProviderError("I couldn't reach the product catalog.") from e

        if r.status_code != 200:
            raise ProviderError(f"The product catalog returned an error (http_{r.status_code}).")

        data = r.json()
        items = data.get("products") if isinstance(data, dict) else data
        return {"query": query, "products": self._summarize(items or [], limit)}

    @staticmethod
    def _summarize(items: List[Dict[str, Any]], limit: int) -> List[Dict[str, Any]]:
        products = []
        for item in items[:limit]:
            products.append({
                "name": item.get("name") or item.get("title"),
                "price": item.get("price"),
                "currency": item.get("currency"),
                "in_stock": item.get("in_stock", item.get("available")),
                "description": item.get("description"),
            })
        return products
