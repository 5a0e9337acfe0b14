import pytest

from bookcatalog.bootstrap import build_catalog, catalog_lifespan
from bookcatalog.exceptions.base import ConnectivityError
from bookcatalog.repositories.author_repository import AuthorRepository
from bookcatalog.services.catalog_service import CatalogService


@pytest.mark.asyncio
async def test_build_catalog_shares_provider(provider):
    catalog = build_catalog(provider)

    assert isinstance(catalog, CatalogService)
    assert isinstance(catalog.authors, AuthorRepository)
    assert catalog.authors.provider is catalog.titles.provider is provider


@pytest.mark.asyncio
async def test_lifespan_runs_catalog_and_shuts_down(test_settings, tmp_path):
    settings = test_settings.model_copy(
        update={"DATABASE_URL_OVERRIDE": f"sqlite+aiosqlite:///{tmp_path / 'life.db'}"}
    )

    async with catalog_lifespan(settings, create_schema=True) as catalog:
        result = await catalog.add_author("Barbara", "Liskov")
        assert result
        assert [a.last_name for a in await catalog.list_authors()] == ["Liskov"]

    with pytest.raises(ConnectivityError):
        await catalog.list_authors()
