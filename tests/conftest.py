import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from storefront.api.deps import cart_store, product_repo
from storefront.core.config import Settings, get_settings
from storefront.domain.models.product import Product, ProductIn, ProductUpdate
from storefront.domain.repositories.cart_repo import MemoryCartStore
from storefront.domain.services.catalog_query_svc import CatalogQuery, paginate, query_products
from storefront.main import app

BASE_DATE = datetime(2024, 1, 1, tzinfo=timezone.utc)
ADMIN_TOKEN = "test-admin-token"


def make_product(product_id, price=100.0, category="Men", **kw) -> Product:
    kw.setdefault("name", f"Watch {product_id}")
    kw.setdefault("brand", "Rolex")
    kw.setdefault("description", "A fine watch")
    kw.setdefault("stock", 5)
    kw.setdefault("date_added", BASE_DATE)
    return Product(product_id=str(product_id), price=price, category=category, **kw)


@pytest.fixture
def catalog() -> List[Product]:
    return [
        make_product("1", 50, "Men", name="Submariner", brand="Rolex", reviews=10,
                     date_added=BASE_DATE + timedelta(days=1)),
        make_product("2", 80, "Women", name="Lady Datejust", brand="Rolex", reviews=30,
                     date_added=BASE_DATE + timedelta(days=5)),
        make_product("3", 80, "Men", name="Seamaster", brand="Omega", reviews=30,
                     description="Diver with ceramic dial", date_added=BASE_DATE + timedelta(days=3)),
        make_product("4", 20, "Women", name="Constellation", brand="omega", reviews=5,
                     date_added=BASE_DATE + timedelta(days=2)),
        make_product("5", 50, "Men", name="Big Bang", brand=None, reviews=10,
                     description="Chronograph", date_added=BASE_DATE + timedelta(days=4)),
    ]


class FakeProductRepo:
    """In-memory stand-in for ProductRepo with the same async surface."""

    def __init__(self, products=()):
        self.docs: Dict[str, Product] = {p.product_id: p for p in products}

    async def find(self, params: CatalogQuery, page: int = 1, limit: int = 100):
        matched = query_products(list(self.docs.values()), params, match_brand_in_search=True)
        result = paginate(matched, page=page, limit=limit)
        return result.items, result.total

    async def list_all(self):
        return list(self.docs.values())

    async def get_by_product_id(self, product_id: str) -> Optional[Product]:
        return self.docs.get(product_id)

    async def get_many_by_product_ids(self, ids):
        return {i: self.docs[i] for i in ids if i in self.docs}

    async def create(self, payload: ProductIn) -> Product:
        now = datetime.now(timezone.utc)
        data = payload.model_dump()
        data["date_added"] = data.get("date_added") or now
        product = Product(product_id=uuid.uuid4().hex, created_at=now, updated_at=now, **data)
        self.docs[product.product_id] = product
        return product

    async def update(self, product_id: str, changes: ProductUpdate) -> Optional[Product]:
        current = self.docs.get(product_id)
        if current is None:
            return None
        updated = current.model_copy(update=changes.model_dump(exclude_unset=True))
        self.docs[product_id] = updated
        return updated

    async def delete(self, product_id: str) -> bool:
        return self.docs.pop(product_id, None) is not None


@pytest.fixture
def settings() -> Settings:
    return Settings(ADMIN_TOKEN=ADMIN_TOKEN, CHECKOUT_DELAY_S=0, REDIS_URL="")


@pytest.fixture
def fake_repo(catalog) -> FakeProductRepo:
    return FakeProductRepo(catalog)


@pytest.fixture
def carts() -> MemoryCartStore:
    return MemoryCartStore()


@pytest.fixture
def client(fake_repo, carts, settings):
    app.dependency_overrides[product_repo] = lambda: fake_repo
    app.dependency_overrides[cart_store] = lambda: carts
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def fallback_client(carts, settings):
    """No database at all: the catalog is served from the bundled dataset."""
    app.dependency_overrides[product_repo] = lambda: None
    app.dependency_overrides[cart_store] = lambda: carts
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"X-Admin-Token": ADMIN_TOKEN}
