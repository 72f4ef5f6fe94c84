import re
from typing import Any, Dict, List, Tuple

from storefront.domain.services.catalog_query_svc import CatalogQuery
from storefront.domain.services.constants import (
    ALL,
    SORT_NEWEST,
    SORT_POPULAR,
    SORT_PRICE_HIGH,
    SORT_PRICE_LOW,
)

# Fields the server-side search looks into (brand included, unlike the client working set)
SEARCH_FIELDS = ("name", "description", "brand", "category")

ASC = 1
DESC = -1


def _contains(text: str) -> Dict[str, Any]:
    # user input is literal text, never a pattern
    return {"$regex": re.escape(text), "$options": "i"}


def build_catalog_filter(params: CatalogQuery) -> Dict[str, Any]:
    """
    Translate a CatalogQuery into a MongoDB filter.
    Empty dict means "whole collection".
    """
    clauses: List[Dict[str, Any]] = []

    if params.category != ALL:
        clauses.append({"category": params.category})

    if params.brand != ALL:
        # case-insensitive equality, anchored so "Omega" does not match "Omega X"
        clauses.append({"brand": {"$regex": f"^{re.escape(params.brand)}$", "$options": "i"}})

    needle = params.search_text.strip()
    if needle:
        clauses.append({"$or": [{f: _contains(needle)} for f in SEARCH_FIELDS]})

    if not clauses:
        return {}
    return clauses[0] if len(clauses) == 1 else {"$and": clauses}


def build_sort(sort_key: str) -> List[Tuple[str, int]]:
    """
    Sort spec for Motor's `.sort()`.
    Unknown keys use the default (most recently created first).
    A product_id tie-breaker keeps pages deterministic across requests.
    """
    if sort_key == SORT_PRICE_LOW:
        spec = [("price", ASC)]
    elif sort_key == SORT_PRICE_HIGH:
        spec = [("price", DESC)]
    elif sort_key == SORT_NEWEST:
        spec = [("date_added", DESC)]
    elif sort_key == SORT_POPULAR:
        spec = [("reviews", DESC)]
    else:
        spec = [("created_at", DESC)]
    return spec + [("product_id", ASC)]
