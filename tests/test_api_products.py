NEW_WATCH = {
    "name": "Omega Speedmaster",
    "category": "Men",
    "brand": "Omega",
    "price": 1999.0,
    "original_price": 2499.0,
    "image": "/images/omega/speedmaster/1.jpg",
    "description": "The moonwatch",
    "stock": 3,
    "rating": 4.9,
    "reviews": 12,
}


def ids(body):
    return [p["product_id"] for p in body["data"]]


def test_list_products_defaults(client):
    res = client.get("/api/products")
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["source"] == "db"
    assert body["total"] == 5
    assert body["count"] == 5
    assert body["pages"] == 1


def test_list_products_filters_and_sorts(client):
    res = client.get("/api/products", params={"category": "Men", "sort": "price-high"})
    assert ids(res.json()) == ["3", "1", "5"]


def test_list_products_brand_and_search(client):
    body = client.get("/api/products", params={"brand": "omega", "search": "constell"}).json()
    assert ids(body) == ["4"]


def test_list_products_paginates_with_total(client):
    body = client.get("/api/products", params={"page": 2, "limit": 2}).json()
    assert ids(body) == ["3", "4"]
    assert body["total"] == 5
    assert body["pages"] == 3


def test_list_products_rejects_bad_page(client):
    assert client.get("/api/products", params={"page": 0}).status_code == 422


def test_unknown_sort_falls_back_to_default(client):
    body = client.get("/api/products", params={"sort": "random"}).json()
    assert ids(body) == ["1", "2", "3", "4", "5"]


def test_fallback_dataset_when_database_missing(fallback_client):
    body = fallback_client.get("/api/products", params={"search": "rolex", "sort": "price-low"}).json()
    assert body["source"] == "fallback"
    assert ids(body) == ["w-002", "w-001", "w-010"]


def test_brands(client):
    assert client.get("/api/products/brands").json()["items"] == ["All", "Rolex", "Omega", "omega"]


def test_read_product_and_discount(client, fake_repo):
    res = client.get("/api/products/1")
    assert res.status_code == 200
    assert res.json()["discount_percent"] is None
    assert client.get("/api/products/nope").status_code == 404


def test_create_requires_admin(client):
    assert client.post("/api/products", json=NEW_WATCH).status_code == 403
    assert client.post("/api/products", json=NEW_WATCH, headers={"X-Admin-Token": "wrong"}).status_code == 403


def test_create_update_delete(client, admin_headers):
    res = client.post("/api/products", json=NEW_WATCH, headers=admin_headers)
    assert res.status_code == 201
    created = res.json()
    assert created["discount_percent"] == 20
    pid = created["product_id"]

    res = client.put(f"/api/products/{pid}", json={"price": 1500.0, "stock": 0}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["price"] == 1500.0
    assert res.json()["in_stock"] is False
    assert res.json()["name"] == NEW_WATCH["name"]

    assert client.delete(f"/api/products/{pid}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/products/{pid}").status_code == 404
    assert client.delete(f"/api/products/{pid}", headers=admin_headers).status_code == 404


def test_create_validates_category(client, admin_headers):
    bad = dict(NEW_WATCH, category="Kids")
    assert client.post("/api/products", json=bad, headers=admin_headers).status_code == 422


def test_update_missing_product(client, admin_headers):
    res = client.put("/api/products/nope", json={"price": 1.0}, headers=admin_headers)
    assert res.status_code == 404


def test_writes_need_a_database(fallback_client, admin_headers):
    assert fallback_client.post("/api/products", json=NEW_WATCH, headers=admin_headers).status_code == 503


def test_health_reports_degraded_without_mongo(client):
    body = client.get("/health").json()
    assert body["status"] == "degraded"
    assert body["checks"]["redis"] == "skipped"


def test_update_rejects_null_for_required_fields(client, admin_headers, fake_repo):
    before = fake_repo.docs["1"]
    res = client.put("/api/products/1", json={"price": None, "name": None}, headers=admin_headers)
    assert res.status_code == 422
    assert fake_repo.docs["1"] == before
    assert client.get("/api/products").status_code == 200


def test_update_may_clear_optional_fields(client, admin_headers, fake_repo):
    fake_repo.docs["1"] = fake_repo.docs["1"].model_copy(update={"original_price": 80.0})
    res = client.put("/api/products/1", json={"original_price": None}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["original_price"] is None
    assert res.json()["discount_percent"] is None


def test_non_ascii_admin_token_is_forbidden(client):
    res = client.post("/api/products", json=NEW_WATCH, headers={"X-Admin-Token": b"caf\xe9"})
    assert res.status_code == 403
