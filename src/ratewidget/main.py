"""Entry point for the rate widget service.

Loads settings, configures logging, and serves the FastAPI app with uvicorn.
The history store is connected and closed by the app lifespan.
"""

import asyncio

import uvicorn

from ratewidget.config import AppSettings
from ratewidget.logging import bind_service_context, get_logger, setup_logging
from ratewidget.server import create_app


async def run() -> None:
    """Run the HTTP server until interrupted."""
    settings = AppSettings()

    setup_logging(settings.log_level)
    bind_service_context(
        settings.exchange_api.base_currency,
        settings.exchange_api.quote_currency,
        settings.history.backend,
    )
    logger = get_logger("ratewidget.main")

    app = create_app(settings)

    logger.info(
        "starting_server",
        host=settings.server.host,
        port=settings.server.port,
        backend=settings.history.backend,
    )
    if not settings.exchange_api.api_key.get_secret_value():
        logger.warning(
            "no_api_key_configured",
            note="Set EXCHANGE_API_API_KEY; /rates will fail until it is set.",
        )

    config = uvicorn.Config(
        app,
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,  # keep the structlog handler installed above
    )
    server = uvicorn.Server(config)
    await server.serve()


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
