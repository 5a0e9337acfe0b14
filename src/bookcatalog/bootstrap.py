"""
Wiring: one ConnectionProvider shared by both stores behind a CatalogService.

    async with catalog_lifespan(get_settings()) as catalog:
        result = await catalog.add_author("Ada", "Lovelace")
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from bookcatalog.config.settings import Settings, get_settings
from bookcatalog.core.logging.builder import setup_logging
from bookcatalog.database.provider import ConnectionProvider
from bookcatalog.repositories.author_repository import AuthorRepository
from bookcatalog.repositories.title_repository import TitleRepository
from bookcatalog.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)


def build_catalog(provider: ConnectionProvider) -> CatalogService:
    return CatalogService(AuthorRepository(provider), TitleRepository(provider))


@asynccontextmanager
async def catalog_lifespan(settings: Settings | None = None, *,
                           create_schema: bool = False) -> AsyncIterator[CatalogService]:
    """Set up logging and the provider, yield the service, dispose of the pool on exit."""
    settings = settings or get_settings()
    setup_logging(settings)

    provider = ConnectionProvider(settings)
    provider.init()
    if create_schema:
        await provider.create_schema()
    logger.info("catalog.startup", extra={"env": settings.ENV})
    try:
        yield build_catalog(provider)
    finally:
        await provider.shutdown()
        logger.info("catalog.shutdown")
