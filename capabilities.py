"""
Default capabilities advertised to the model.
"""
from capability_registry import Capability, CapabilityRegistry
from catalog_service import CatalogService
from config import RelayConfig
from fact_service import FactService
from search_service import SearchService


def build_default_registry(config: RelayConfig) -> CapabilityRegistry:
    """Register the catalog, web search and fact lookup tools."""
    catalog = CatalogService(config.catalog_api_url, config.catalog_api_key)
    search = SearchService(config.perplexity_api_key, model=config.perplexity_model)
    facts = FactService()

    return CapabilityRegistry([
        Capability(
            name="search_catalog",
            description="Search the product catalog; returns matching products with price and stock.",
            handler=catalog.search_products,
            parameters={
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "Product name or description from the caller."},
                    "limit": {"type": "integer", "description": "Maximum number of products to return (1-10)."},
                },
                "required": ["query"],
            },
        ),
        Capability(
            name="search_web",
            description="Search the web for an up-to-date answer to the caller's question.",
            handler=search.search_web,
            parameters={
                "type": "object",
                "properties": {
                    "question": {"type": "string", "description": "The raw question from the caller."},
                },
                "required": ["question"],
                "additionalProperties": False,
            },
        ),
        Capability(
            name="lookup_fact",
            description="Look up a static business fact by topic: " + ", ".join(sorted(facts.facts)) + ".",
            handler=facts.lookup_fact,
            parameters={
                "type": "object",
                "properties": {
                    "topic": {"type": "string", "enum": sorted(facts.facts)},
                },
                "required": ["topic"],
            },
        ),
    ])
