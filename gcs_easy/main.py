"""
FastAPI application entry point.

Shows how an application wires the storage facade: create_app() builds
the app, registers one StorageFacade from settings and mounts the health
routes. Applications embedding gcs_easy do the same with their own app:

    app = FastAPI()
    register_storage(app, ClientConfig(default_bucket="my-bucket"))

For local development:
    GCS_MOCK_MODE=true uvicorn gcs_easy.main:create_app --factory --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .api.dependencies import register_storage
from .api.routes import health
from .config.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup configuration problems and shutdown."""
    settings: Settings = app.state.settings

    logger.info(
        "gcs-easy API starting",
        extra={
            "version": settings.api_version,
            "default_bucket": settings.gcs_default_bucket,
            "mock_mode": settings.gcs_mock_mode,
        }
    )

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing_fields}
        )

    yield

    logger.info("gcs-easy API shutting down")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory.

    Pass `settings` in tests to avoid reading the environment; the same
    instance is then served to every SettingsDep.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.dependency_overrides[get_settings] = lambda: settings

    register_storage(
        app,
        settings.to_client_config(),
        mock_mode=settings.gcs_mock_mode,
    )

    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    return app


def run() -> None:
    """Run the development server."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "gcs_easy.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
