from __future__ import annotations
import json
import logging
from typing import Dict, Optional, Protocol

from redis.asyncio import Redis
from redis.exceptions import RedisError

from storefront.domain.models.cart import CartSnapshot

logger = logging.getLogger(__name__)


class CartStore(Protocol):
    async def load_cart(self, session_id: str) -> Optional[CartSnapshot]: ...
    async def save_cart(self, snapshot: CartSnapshot) -> None: ...
    async def delete_cart(self, session_id: str) -> None: ...


class CartRepo:
    """
    Carts in Redis as JSON under `<prefix>:<session_id>`, refreshed TTL on every save.
    Last write wins, there is no merge between concurrent sessions.
    Redis errors are logged and degrade to "no cart".
    """

    def __init__(self, redis: Redis, key_prefix: str = "cart", ttl: int = 7 * 24 * 3600):
        self.cache = redis
        self.prefix = key_prefix
        self.ttl = ttl

    def key(self, session_id: str) -> str:
        return f"{self.prefix}:{session_id}"

    async def load_cart(self, session_id: str) -> Optional[CartSnapshot]:
        try:
            raw = await self.cache.get(self.key(session_id))
        except RedisError as e:
            logger.warning("cart load error session_id=%s err=%s", session_id, e)
            return None
        if not raw:
            return None
        try:
            return CartSnapshot.model_validate(json.loads(raw))
        except ValueError as e:
            # pydantic's ValidationError is a ValueError too
            logger.warning("cart decode error session_id=%s err=%s", session_id, e)
            return None

    async def save_cart(self, snapshot: CartSnapshot) -> None:
        try:
            await self.cache.set(self.key(snapshot.session_id), snapshot.model_dump_json(), ex=self.ttl)
        except RedisError as e:
            logger.warning("cart save error session_id=%s err=%s", snapshot.session_id, e)

    async def delete_cart(self, session_id: str) -> None:
        try:
            await self.cache.delete(self.key(session_id))
        except RedisError as e:
            logger.warning("cart delete error session_id=%s err=%s", session_id, e)


class MemoryCartStore:
    """Process-local cart store used when Redis is not configured."""

    def __init__(self):
        self._carts: Dict[str, dict] = {}

    async def load_cart(self, session_id: str) -> Optional[CartSnapshot]:
        data = self._carts.get(session_id)
        return CartSnapshot.model_validate(data) if data else None

    async def save_cart(self, snapshot: CartSnapshot) -> None:
        self._carts[snapshot.session_id] = snapshot.model_dump(mode="json")

    async def delete_cart(self, session_id: str) -> None:
        self._carts.pop(session_id, None)
