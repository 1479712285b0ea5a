"""
Entry point: Twilio <-> OpenAI realtime call relay.
"""
from typing import Optional

from fastapi import FastAPI

from capabilities import build_default_registry
from capability_registry import CapabilityRegistry
from config import RelayConfig, configure_logging
from routes import Routes
from session_coordinator import SessionCoordinator


def create_app(
    config: Optional[RelayConfig] = None,
    registry: Optional[CapabilityRegistry] = None,
    coordinator: Optional[SessionCoordinator] = None,
) -> FastAPI:
    """Build the FastAPI app. Raises ConfigurationError if required settings are missing."""
    config = config or RelayConfig.from_env()
    if coordinator is None:
        coordinator = SessionCoordinator(config, registry or build_default_registry(config))

    app = FastAPI(title="Realtime Call Relay")
    Routes(app, coordinator)
    return app


def main():
    import uvicorn

    config = RelayConfig.from_env()
    configure_logging(config.log_level)
    uvicorn.run(create_app(config), host=config.host, port=config.port)


if __name__ == "__main__":
    main()
