"""Tests for the capability registry and the default providers."""

import httpx
import pytest

from capabilities import build_default_registry
from capability_registry import Capability, CapabilityRegistry
from catalog_service import CatalogService
from errors import ProviderError
from fact_service import FactService
from search_service import PERPLEXITY_URL, SearchService


async def _noop(args):
    return {}


class TestCapabilityRegistry:

    def test_lookup_and_tools(self):
        registry = CapabilityRegistry([Capability(name="a", description="A", handler=_noop)])

        assert registry["a"].name == "a"
        assert registry.get("missing") is None
        assert registry.tools() == [{
            "type": "function",
            "name": "a",
            "description": "A",
            "parameters": {"type": "object", "properties": {}},
        }]

    def test_duplicate_names_rejected(self):
        with pytest.raises(ValueError):
            CapabilityRegistry([
                Capability(name="a", description="A", handler=_noop),
                Capability(name="a", description="again", handler=_noop),
            ])

    def test_read_only(self):
        registry = CapabilityRegistry([Capability(name="a", description="A", handler=_noop)])
        with pytest.raises(TypeError):
            registry["b"] = registry["a"]

    def test_default_registry(self, config):
        registry = build_default_registry(config)
        assert sorted(registry) == ["lookup_fact", "search_catalog", "search_web"]
        for tool in registry.tools():
            assert tool["parameters"]["type"] == "object"


class TestFactService:

    @pytest.mark.asyncio
    async def test_known_topic(self):
        service = FactService({"Hours": "Always open."})

        result = await service.lookup_fact({"topic": " hours "})

        assert result == {"found": True, "topic": "hours", "fact": "Always open.", "topics": ["hours"]}

    @pytest.mark.asyncio
    async def test_unknown_topic(self):
        result = await FactService().lookup_fact({"topic": "parking"})

        assert result["found"] is False
        assert result["fact"] is None
        assert "hours" in result["topics"]


class TestSearchService:

    @pytest.mark.asyncio
    async def test_returns_answer(self):
        def handler(request):
            assert str(request.url) == PERPLEXITY_URL
            assert request.headers["Authorization"] == "Bearer pplx-test"
            return httpx.Response(200, json={"choices": [{"message": {"content": "It is sunny."}}]})

        service = SearchService("pplx-test", transport=httpx.MockTransport(handler))

        assert await service.search_web({"question": "weather?"}) == {"answer": "It is sunny."}

    @pytest.mark.asyncio
    async def test_http_error_raises_provider_error(self):
        service = SearchService("pplx-test", transport=httpx.MockTransport(lambda r: httpx.Response(500)))

        with pytest.raises(ProviderError):
            await service.search_web({"question": "weather?"})

    @pytest.mark.asyncio
    async def test_not_configured(self):
        with pytest.raises(ProviderError):
            await SearchService(None).search_web({"question": "weather?"})


class TestCatalogService:

    @pytest.mark.asyncio
    async def test_search_products(self):
        def handler(request):
            assert request.url.path == "/api/products/search"
            assert request.url.params["q"] == "boots"
            return httpx.Response(200, json={"products": [
                {"name": "Trail Boot", "price": 89.0, "currency": "USD", "in_stock": True},
                {"title": "Rain Boot", "price": 40.0, "available": False},
            ]})

        service = CatalogService("https://catalog.test/api/", transport=httpx.MockTransport(handler))

        result = await service.search_products({"query": "boots", "limit": 5})

        assert result["query"] == "boots"
        assert [p["name"] for p in result["products"]] == ["Trail Boot", "Rain Boot"]
        assert result["products"][1]["in_stock"] is False

    @pytest.mark.asyncio
    async def test_empty_query(self):
        with pytest.raises(ProviderError):
            await CatalogService("https://catalog.test").search_products({"query": "  "})

    @pytest.mark.asyncio
    async def test_not_configured(self):
        with pytest.raises(ProviderError):
            await CatalogService(None).search_products({"query": "boots"})
