"""
FastAPI dependency injection.

register_storage() is the composition root for FastAPI applications: it
builds one StorageFacade (and one StorageService wrapping it) and keeps
both on app.state, so they live exactly as long as the application.

The get_* functions are what route handlers depend on. They read the
registered instances from the request's application. If nothing was
registered they fall back to a process-wide facade built from Settings,
so a bare router still works in development.
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends, FastAPI, Request

from ..config.settings import Settings, get_settings
from ..core.facade import StorageFacade
from ..core.models import ClientConfig
from ..infrastructure.storage.client import create_storage_facade
from .service import StorageService

logger = logging.getLogger(__name__)

# Fallback instances shared across requests when no app registered its own
_default_facade: Optional[StorageFacade] = None
_default_service: Optional[StorageService] = None


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

def register_storage(
    app: FastAPI,
    config: Optional[ClientConfig] = None,
    *,
    mock_mode: bool = False,
    facade: Optional[StorageFacade] = None,
) -> StorageFacade:
    """
    Register a storage facade and service on a FastAPI application.

    Args:
        app: Application that owns the instances
        config: Client configuration used to build the facade
        mock_mode: If True, back the facade with the in-memory store
        facade: Prebuilt facade to register instead of building one

    Returns:
        The registered StorageFacade
    """
    if facade is None:
        facade = create_storage_facade(config, mock_mode=mock_mode)

    app.state.storage_facade = facade
    app.state.storage_service = StorageService(facade)

    logger.info(
        "Registered storage facade",
        extra={"default_bucket": facade.default_bucket, "mock_mode": mock_mode},
    )

    return facade


def _fallback_facade(settings: Settings) -> StorageFacade:
    global _default_facade

    if _default_facade is None:
        _default_facade = create_storage_facade(
            settings.to_client_config(),
            mock_mode=settings.gcs_mock_mode,
        )
        logger.info(
            "Created shared storage facade from settings",
            extra={"mock_mode": settings.gcs_mock_mode},
        )
    return _default_facade


def reset_default_storage() -> None:
    """Drop the fallback instances. Used by tests between cases."""
    global _default_facade, _default_service
    _default_facade = None
    _default_service = None


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def get_storage_facade(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> StorageFacade:
    """Provide the application's StorageFacade."""
    facade = getattr(request.app.state, "storage_facade", None)
    if facade is not None:
        return facade
    return _fallback_facade(settings)


def get_storage_service(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> StorageService:
    """Provide the application's StorageService."""
    global _default_service

    service = getattr(request.app.state, "storage_service", None)
    if service is not None:
        return service

    if _default_service is None:
        _default_service = StorageService(_fallback_facade(settings))
    return _default_service


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

StorageFacadeDep = Annotated[StorageFacade, Depends(get_storage_facade)]
StorageServiceDep = Annotated[StorageService, Depends(get_storage_service)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
