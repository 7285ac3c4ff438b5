from advisor.core.catalog.catalog_schema import CatalogEntry, NewsItem, PriceBar
from advisor.core.catalog.catalog_store import CatalogStore, catalog_from_mapping, load_catalog

__all__ = [
    "CatalogEntry",
    "CatalogStore",
    "NewsItem",
    "PriceBar",
    "catalog_from_mapping",
    "load_catalog",
]
