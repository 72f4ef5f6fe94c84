# storefront/api/v1/routers/products.py

from fastapi import APIRouter, Depends, Query, HTTPException
from typing import Optional
import math
import time

from pymongo.errors import ServerSelectionTimeoutError, AutoReconnect, ConnectionFailure

from storefront.api.deps import product_repo
from storefront.api.v1.schemas.storefront import ProductListOut, ProductOut
from storefront.core.config import Settings, get_settings
from storefront.core.security import require_admin
from storefront.domain.models.product import ProductIn, ProductUpdate
from storefront.domain.repositories.product_repo import ProductRepo
from storefront.domain.services.catalog_query_svc import CatalogQuery
from storefront.domain.services.catalog_svc import fetch_brands, fetch_products, get_product
from storefront.domain.services.constants import ALL, SORT_DEFAULT

import logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])

MONGO_DOWN = (ServerSelectionTimeoutError, AutoReconnect, ConnectionFailure)


def _require_repo(repo: Optional[ProductRepo]) -> ProductRepo:
    if repo is None:
        raise HTTPException(status_code=503, detail="Catalog database unavailable")
    return repo


@router.get("", response_model=ProductListOut)
async def list_products(
    category: str = Query(ALL, description="'All', 'Men' or 'Women'"),
    brand: str = Query(ALL, description="Case-insensitive brand, 'All' for any"),
    search: str = Query("", description="Substring of name, description, brand or category"),
    sort: str = Query(SORT_DEFAULT, description="default | price-low | price-high | newest | popular"),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    repo: Optional[ProductRepo] = Depends(product_repo),
    settings: Settings = Depends(get_settings),
):
    """
    Filtered, sorted, paginated catalog.
    Unknown categories match nothing and unknown sort keys use the default order.
    """
    limit = min(limit or settings.DEFAULT_PAGE_LIMIT, settings.MAX_PAGE_LIMIT)
    params = CatalogQuery(category=category, brand=brand, search_text=search, sort_key=sort)
    logger.info("Request: list_products query=%s page=%s limit=%s", params, page, limit)

    t0 = time.perf_counter()
    res = await fetch_products(repo, params, page=page, limit=limit)
    items = res["items"]
    total = res["total"]

    logger.info(
        "Response: list_products count=%s total=%s source=%s elapsed_time=%.4fs",
        len(items), total, res["source"], time.perf_counter() - t0,
    )
    return ProductListOut(
        count=len(items),
        total=total,
        page=page,
        pages=math.ceil(total / limit) if total else 0,
        source=res["source"],
        data=[ProductOut.from_product(p) for p in items],
    )


@router.get("/brands")
async def list_brands(repo: Optional[ProductRepo] = Depends(product_repo)):
    brands = await fetch_brands(repo)
    return {"items": brands, "count": len(brands)}


@router.get("/{product_id}", response_model=ProductOut)
async def read_product(product_id: str, repo: Optional[ProductRepo] = Depends(product_repo)):
    product = await get_product(repo, product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return ProductOut.from_product(product)


@router.post("", response_model=ProductOut, status_code=201, dependencies=[Depends(require_admin)])
async def create_product(payload: ProductIn, repo: Optional[ProductRepo] = Depends(product_repo)):
    repo = _require_repo(repo)
    try:
        product = await repo.create(payload)
    except MONGO_DOWN as e:
        logger.error("create_product failed: %s", e)
        raise HTTPException(status_code=503, detail="MongoDB unavailable (connection/TLS).")
    logger.info("Response: create_product product_id=%s name=%s", product.product_id, product.name)
    return ProductOut.from_product(product)


@router.put("/{product_id}", response_model=ProductOut, dependencies=[Depends(require_admin)])
async def update_product(
    product_id: str,
    changes: ProductUpdate,
    repo: Optional[ProductRepo] = Depends(product_repo),
):
    repo = _require_repo(repo)
    try:
        product = await repo.update(product_id, changes)
    except MONGO_DOWN as e:
        logger.error("update_product failed product_id=%s: %s", product_id, e)
        raise HTTPException(status_code=503, detail="MongoDB unavailable (connection/TLS).")
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    logger.info("Response: update_product product_id=%s fields=%s", product_id, sorted(changes.model_fields_set))
    return ProductOut.from_product(product)


@router.delete("/{product_id}", dependencies=[Depends(require_admin)])
async def delete_product(product_id: str, repo: Optional[ProductRepo] = Depends(product_repo)):
    repo = _require_repo(repo)
    try:
        deleted = await repo.delete(product_id)
    except MONGO_DOWN as e:
        logger.error("delete_product failed product_id=%s: %s", product_id, e)
        raise HTTPException(status_code=503, detail="MongoDB unavailable (connection/TLS).")
    if not deleted:
        raise HTTPException(status_code=404, detail="Product not found")
    logger.info("Response: delete_product product_id=%s", product_id)
    return {"success": True, "message": "Product deleted successfully"}
