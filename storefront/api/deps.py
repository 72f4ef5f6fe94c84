# storefront/api/deps.py
from typing import Optional
from fastapi import Depends
from storefront.core.config import Settings, get_settings
from storefront.db.mongo import get_db_or_none
from storefront.db.redis import get_redis
from storefront.domain.repositories.cart_repo import CartRepo, CartStore, MemoryCartStore
from storefront.domain.repositories.product_repo import ProductRepo
from storefront.domain.services.notifications import RecordingNotifier

# Carts survive across requests when Redis is absent, not across restarts
_memory_carts = MemoryCartStore()


# MongoDB database (None until lifespan connected it)
async def mongo_db():
    return get_db_or_none()


# Redis client or None
def redis_dep():
    return get_redis()


# Catalog repository; None makes the catalog service serve the fallback dataset
async def product_repo(db = Depends(mongo_db)) -> Optional[ProductRepo]:
    return ProductRepo(db) if db is not None else None


def cart_store(redis = Depends(redis_dep), settings: Settings = Depends(get_settings)) -> CartStore:
    if redis is None:
        return _memory_carts
    return CartRepo(redis, key_prefix=settings.cart_key_prefix, ttl=settings.cart_ttl)


# One notifier per request; messages are returned with the response
def notifier() -> RecordingNotifier:
    return RecordingNotifier()
