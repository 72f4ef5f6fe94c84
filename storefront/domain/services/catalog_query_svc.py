# storefront/domain/services/catalog_query_svc.py
"""
Catalog query engine: category -> brand -> text search -> stable sort.

Works on an already fetched working set and must agree with the MongoDB
translation in `filters.py` so the client-side and server-side views match.
"""
from __future__ import annotations

import logging
import math
from typing import Iterable, List, Sequence

from pydantic import BaseModel

from storefront.domain.models.product import Product
from storefront.domain.services.constants import (
    ALL,
    ALL_SORT_KEYS,
    DEFAULT_LIMIT,
    DEFAULT_PAGE,
    SORT_DEFAULT,
    SORT_NEWEST,
    SORT_POPULAR,
    SORT_PRICE_HIGH,
    SORT_PRICE_LOW,
)

logger = logging.getLogger(__name__)


class CatalogQuery(BaseModel):
    category: str = ALL
    brand: str = ALL
    search_text: str = ""
    sort_key: str = SORT_DEFAULT

    model_config = {"frozen": True}

    @property
    def normalized_search(self) -> str:
        return self.search_text.strip().lower()


class Page(BaseModel):
    items: List[Product]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.total else 0


def _matches_category(p: Product, category: str) -> bool:
    return p.category == category


def _matches_brand(p: Product, brand: str) -> bool:
    # absent/empty brand never matches a specific brand
    return bool(p.brand) and p.brand.lower() == brand.lower()


def _matches_text(p: Product, needle: str, match_brand: bool) -> bool:
    fields = [p.name, p.description, p.category]
    if match_brand:
        fields.append(p.brand)
    return any(needle in (f or "").lower() for f in fields)


def sort_products(products: Iterable[Product], sort_key: str) -> List[Product]:
    """
    Stable sort. `sorted(reverse=True)` keeps equal keys in input order,
    so descending keys stay stable too.
    """
    items = list(products)
    if sort_key == SORT_PRICE_LOW:
        return sorted(items, key=lambda p: p.price)
    if sort_key == SORT_PRICE_HIGH:
        return sorted(items, key=lambda p: p.price, reverse=True)
    if sort_key == SORT_NEWEST:
        return sorted(items, key=lambda p: p.date_added, reverse=True)
    if sort_key == SORT_POPULAR:
        return sorted(items, key=lambda p: p.reviews, reverse=True)
    if sort_key not in ALL_SORT_KEYS:
        logger.debug("unknown sort_key=%r, keeping input order", sort_key)
    return items


def query_products(
    products: Sequence[Product],
    params: CatalogQuery,
    *,
    match_brand_in_search: bool = False,
) -> List[Product]:
    """
    Filter and sort `products` without mutating it.
    `match_brand_in_search` adds brand to the searched fields (server-side behaviour).
    """
    filtered: Iterable[Product] = products

    if params.category != ALL:
        filtered = [p for p in filtered if _matches_category(p, params.category)]

    if params.brand != ALL:
        filtered = [p for p in filtered if _matches_brand(p, params.brand)]

    needle = params.normalized_search
    if needle:
        filtered = [p for p in filtered if _matches_text(p, needle, match_brand_in_search)]

    return sort_products(filtered, params.sort_key)


def paginate(items: Sequence[Product], page: int = DEFAULT_PAGE, limit: int = DEFAULT_LIMIT) -> Page:
    """1-indexed slice [(page-1)*limit, page*limit); `total` ignores the slice."""
    page = max(1, page)
    limit = max(1, limit)
    start = (page - 1) * limit
    return Page(items=list(items[start:start + limit]), total=len(items), page=page, limit=limit)


def available_brands(products: Iterable[Product]) -> List[str]:
    """["All", *brands in first-seen order]; empty brands skipped."""
    seen: dict[str, None] = {}
    for p in products:
        if p.brand:
            seen.setdefault(p.brand, None)
    return [ALL, *seen]


class CatalogView:
    """
    Memoized derived view over a product working set.
    `items` is recomputed only after set_products() or a set_query() that changes the query.
    """

    def __init__(self, products: Sequence[Product] = (), query: CatalogQuery | None = None, *, match_brand_in_search: bool = False):
        self._products: tuple[Product, ...] = tuple(products)
        self._query = query or CatalogQuery()
        self._match_brand = match_brand_in_search
        self._cached: List[Product] | None = None
        self.recomputations = 0

    @property
    def products(self) -> tuple[Product, ...]:
        return self._products

    @property
    def query(self) -> CatalogQuery:
        return self._query

    def set_products(self, products: Sequence[Product]) -> None:
        products = tuple(products)
        if products != self._products:
            self._products = products
            self._cached = None

    def set_query(self, query: CatalogQuery) -> None:
        if query != self._query:
            self._query = query
            self._cached = None

    def update_query(self, **changes) -> None:
        self.set_query(self._query.model_copy(update=changes))

    @property
    def items(self) -> List[Product]:
        if self._cached is None:
            self._cached = query_products(self._products, self._query, match_brand_in_search=self._match_brand)
            self.recomputations += 1
            logger.debug("catalog view recomputed n=%s query=%s", len(self._cached), self._query)
        return list(self._cached)

    @property
    def brands(self) -> List[str]:
        return available_brands(self._products)
