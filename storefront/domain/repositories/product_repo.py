# storefront/domain/repositories/product_repo.py

from __future__ import annotations
import uuid
from typing import Dict, Iterable, List, Optional, Tuple
from datetime import datetime, timezone
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from storefront.domain.models.product import Product, ProductIn, ProductUpdate
from storefront.domain.services.catalog_query_svc import CatalogQuery
from storefront.domain.services.filters import build_catalog_filter, build_sort

PROJECTION = {"_id": 0}


class ProductRepo:
    """
    Product repository backed by the 'products' collection.
    Documents are keyed by a string `product_id`; Mongo's `_id` never leaves the repo.
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "products"):
        self.col = db[collection_name]

    async def find(self, params: CatalogQuery, page: int = 1, limit: int = 100) -> Tuple[List[Product], int]:
        """Filtered, sorted page plus the total number of matches."""
        page = max(1, page)
        limit = max(1, limit)
        filt = build_catalog_filter(params)
        cursor = (
            self.col.find(filt, PROJECTION)
            .sort(build_sort(params.sort_key))
            .skip((page - 1) * limit)
            .limit(limit)
        )
        items = [Product.model_validate(doc) async for doc in cursor]
        total = await self.col.count_documents(filt)
        return items, total

    async def list_all(self) -> List[Product]:
        cursor = self.col.find({}, PROJECTION).sort(build_sort("default"))
        return [Product.model_validate(doc) async for doc in cursor]

    async def get_by_product_id(self, product_id: str) -> Optional[Product]:
        doc = await self.col.find_one({"product_id": product_id}, PROJECTION)
        return Product.model_validate(doc) if doc else None

    async def get_many_by_product_ids(self, ids: Iterable[str]) -> Dict[str, Product]:
        ids = list(ids)
        if not ids:
            return {}
        cursor = self.col.find({"product_id": {"$in": ids}}, PROJECTION)
        return {doc["product_id"]: Product.model_validate(doc) async for doc in cursor}

    async def create(self, payload: ProductIn) -> Product:
        now = datetime.now(timezone.utc)
        doc = payload.model_dump()
        doc["product_id"] = uuid.uuid4().hex
        doc["date_added"] = doc.get("date_added") or now
        doc["created_at"] = now
        doc["updated_at"] = now
        product = Product.model_validate(doc)
        # insert_one mutates its argument with _id; keep our copy clean
        await self.col.insert_one(product.model_dump())
        return product

    async def update(self, product_id: str, changes: ProductUpdate) -> Optional[Product]:
        fields = changes.model_dump(exclude_unset=True)
        fields["updated_at"] = datetime.now(timezone.utc)
        doc = await self.col.find_one_and_update(
            {"product_id": product_id},
            {"$set": fields},
            projection=PROJECTION,
            return_document=ReturnDocument.AFTER,
        )
        return Product.model_validate(doc) if doc else None

    async def delete(self, product_id: str) -> bool:
        res = await self.col.delete_one({"product_id": product_id})
        return res.deleted_count > 0
