# storefront/domain/services/catalog_svc.py
import json
import logging
import time
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from pymongo.errors import PyMongoError

from storefront.domain.models.product import Product
from storefront.domain.repositories.product_repo import ProductRepo
from storefront.domain.services.catalog_query_svc import (
    CatalogQuery,
    available_brands,
    paginate,
    query_products,
)

logger = logging.getLogger(__name__)

FALLBACK_DATASET = Path(__file__).resolve().parents[2] / "data" / "watches.json"

SOURCE_DB = "db"
SOURCE_FALLBACK = "fallback"


@lru_cache
def load_fallback_products(path: str = str(FALLBACK_DATASET)) -> tuple[Product, ...]:
    """Bundled static catalog served when the database cannot be reached."""
    with open(path, encoding="utf-8") as fh:
        raw = json.load(fh)
    products = tuple(Product.model_validate(doc) for doc in raw)
    logger.info("fallback catalog loaded items=%s path=%s", len(products), path)
    return products


async def fetch_products(
    repo: Optional[ProductRepo],
    params: CatalogQuery,
    page: int = 1,
    limit: int = 100,
) -> Dict[str, Any]:
    """
    Query the catalog, server side when possible.
    A missing repo or a Mongo failure serves the static dataset through the
    in-memory engine (brand included in search, like the server).
    Result: {items, total, page, limit, source}.
    """
    t0 = time.perf_counter()
    if repo is not None:
        try:
            items, total = await repo.find(params, page=page, limit=limit)
            logger.info(
                "catalog db_ok items=%s total=%s query=%s time=%.3fs",
                len(items), total, params, time.perf_counter() - t0,
            )
            return {"items": items, "total": total, "page": page, "limit": limit, "source": SOURCE_DB}
        except PyMongoError as e:
            logger.warning("catalog db error, serving fallback dataset err=%s", e)

    result = paginate(
        query_products(load_fallback_products(), params, match_brand_in_search=True),
        page=page,
        limit=limit,
    )
    logger.info("catalog fallback items=%s total=%s query=%s", len(result.items), result.total, params)
    return {
        "items": result.items,
        "total": result.total,
        "page": result.page,
        "limit": result.limit,
        "source": SOURCE_FALLBACK,
    }


async def fetch_brands(repo: Optional[ProductRepo]) -> List[str]:
    products: List[Product] | tuple[Product, ...]
    if repo is not None:
        try:
            products = await repo.list_all()
            return available_brands(products)
        except PyMongoError as e:
            logger.warning("brands db error, serving fallback dataset err=%s", e)
    return available_brands(load_fallback_products())


async def get_product(repo: Optional[ProductRepo], product_id: str) -> Optional[Product]:
    if repo is not None:
        try:
            return await repo.get_by_product_id(product_id)
        except PyMongoError as e:
            logger.warning("product get db error product_id=%s err=%s", product_id, e)
    return next((p for p in load_fallback_products() if p.product_id == product_id), None)


async def resolve_products(repo: Optional[ProductRepo], ids: List[str]) -> Dict[str, Product]:
    """Current product records for cart lines, keyed by id."""
    if repo is not None:
        try:
            return await repo.get_many_by_product_ids(ids)
        except PyMongoError as e:
            logger.warning("product lookup db error, using fallback dataset err=%s", e)
    wanted = set(ids)
    return {p.product_id: p for p in load_fallback_products() if p.product_id in wanted}
