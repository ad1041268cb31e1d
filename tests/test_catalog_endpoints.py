"""HTTP tests for categories, products and suppliers."""
from __future__ import annotations

MISSING_ID = "0" * 32


def _create_category(client, name: str = "Beverages") -> dict:
    resp = client.post("/api/categories", json={"name": name})
    assert resp.status_code == 201, resp.text
    return resp.json()


def _create_supplier(client, name: str = "Acme Supplies", **overrides) -> dict:
    payload = {
        "name": name,
        "contact_info": "+1 555 0100",
        "email": "orders@acme.test",
        "address": "1 Supply Road",
    }
    payload.update(overrides)
    resp = client.post("/api/suppliers", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


def _create_product(client, name: str = "Cola", category_id: str | None = None, supplier_id: str | None = None, **extra):
    category_id = category_id or _create_category(client, f"{name} category")["id"]
    supplier_id = supplier_id or _create_supplier(client)["id"]
    payload = {"name": name, "price": "1.25", "category_id": category_id, "supplier_id": supplier_id}
    payload.update(extra)
    resp = client.post("/api/products", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


def _create_warehouse(client, name: str = "Main", capacity: int = 100) -> dict:
    resp = client.post("/api/warehouses", json={"name": name, "location": "Lagos", "capacity": capacity})
    assert resp.status_code == 201, resp.text
    return resp.json()


def _add_stock(client, product_id: str, warehouse_id: str, stock: int) -> dict:
    resp = client.post(
        "/api/inventory",
        json={"product_id": product_id, "warehouse_id": warehouse_id, "stock": stock},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


def test_category_create_single_and_array(client):
    single = _create_category(client, "  Snacks  ")
    assert single["name"] == "Snacks"
    assert single["product_count"] == 0

    resp = client.post("/api/categories", json=[{"name": "Dairy"}, {"name": "Bakery"}])
    assert resp.status_code == 201, resp.text
    assert [c["name"] for c in resp.json()] == ["Dairy", "Bakery"]

    listed = client.get("/api/categories").json()
    assert [c["name"] for c in listed] == ["Bakery", "Dairy", "Snacks"]


def test_category_empty_array_is_rejected(client):
    resp = client.post("/api/categories", json=[])
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "REQ001"


def test_category_duplicate_name_conflicts(client):
    _create_category(client, "Frozen")
    resp = client.post("/api/categories", json={"name": "Frozen"})
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "ENT101"

    resp = client.post("/api/categories", json=[{"name": "Chilled"}, {"name": "Chilled"}])
    assert resp.status_code == 409
    assert client.get("/api/categories/name/Chilled").status_code == 404


def test_category_names_are_case_sensitive_in_every_path(client):
    batch = client.post("/api/categories", json=[{"name": "Food"}, {"name": "food"}])
    assert batch.status_code == 201, batch.text
    assert sorted(c["name"] for c in batch.json()) == ["Food", "food"]

    _create_category(client, "Pantry")
    assert client.post("/api/categories", json={"name": "pantry"}).status_code == 201
    assert client.post("/api/categories", json={"name": "Food"}).status_code == 409


def test_category_summaries_and_products(client):
    category = _create_category(client, "Drinks")
    supplier = _create_supplier(client)
    _create_product(client, "Water", category["id"], supplier["id"])
    _create_product(client, "Juice", category["id"], supplier["id"])

    summaries = client.get("/api/categories/summaries").json()
    assert summaries[0]["product_count"] == 2
    assert sorted(p["name"] for p in summaries[0]["products"]) == ["Juice", "Water"]

    by_name = client.get("/api/categories/name/Drinks")
    assert by_name.status_code == 200
    assert by_name.json()["id"] == category["id"]

    products = client.get(f"/api/categories/{category['id']}/products").json()
    assert [p["name"] for p in products] == ["Juice", "Water"]


def test_category_rename(client):
    category = _create_category(client, "Old")
    _create_category(client, "Taken")

    resp = client.put(f"/api/categories/{category['id']}/name", json={"name": "New"})
    assert resp.status_code == 200, resp.text
    assert resp.json()["name"] == "New"

    clash = client.put(f"/api/categories/{category['id']}/name", json={"name": "Taken"})
    assert clash.status_code == 409

    missing = client.put(f"/api/categories/{MISSING_ID}/name", json={"name": "Whatever"})
    assert missing.status_code == 404


def test_category_stock_total(client):
    category = _create_category(client, "Tins")
    supplier = _create_supplier(client)
    beans = _create_product(client, "Beans", category["id"], supplier["id"])
    soup = _create_product(client, "Soup", category["id"], supplier["id"])
    north = _create_warehouse(client, "North")
    south = _create_warehouse(client, "South")
    _add_stock(client, beans["id"], north["id"], 5)
    _add_stock(client, soup["id"], south["id"], 7)

    resp = client.get(f"/api/categories/{category['id']}/stock")
    assert resp.status_code == 200
    assert resp.json() == {"category_id": category["id"], "total_stock": 12}


def test_category_delete_blocked_then_allowed(client):
    category = _create_category(client, "Temporary")
    product = _create_product(client, "Thing", category_id=category["id"])

    blocked = client.delete(f"/api/categories/{category['id']}")
    assert blocked.status_code == 409
    body = blocked.json()
    assert body["error"]["code"] == "ENT102"
    assert body["error"]["details"]["references"]["products"] == 1

    assert client.delete(f"/api/products/{product['id']}").status_code == 204
    deleted = client.delete(f"/api/categories/{category['id']}")
    assert deleted.status_code == 200
    assert deleted.json()["message"] == "Category deleted successfully"
    assert client.get(f"/api/categories/{category['id']}").status_code == 404


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


def test_product_round_trip(client):
    category = _create_category(client, "Stationery")
    supplier = _create_supplier(client, "Paper Co")
    created = _create_product(
        client, "Notebook", category["id"], supplier["id"], description="A5 ruled", sku="NB-A5"
    )

    fetched = client.get(f"/api/products/{created['id']}")
    assert fetched.status_code == 200
    body = fetched.json()
    assert body["name"] == "Notebook"
    assert body["description"] == "A5 ruled"
    assert body["price"] == 1.25
    assert body["category"] == {"id": category["id"], "name": "Stationery"}
    assert body["supplier"]["name"] == "Paper Co"

    by_sku = client.get("/api/products/sku/NB-A5")
    assert by_sku.status_code == 200
    assert by_sku.json()["id"] == created["id"]
    assert client.get("/api/products/sku/NOPE").status_code == 404


def test_product_lookup_errors(client):
    assert client.get(f"/api/products/{MISSING_ID}").status_code == 404

    bad = client.get("/api/products/not-an-id")
    assert bad.status_code == 400
    assert bad.json()["error"]["code"] == "REQ002"


def test_product_requires_existing_references(client):
    category = _create_category(client)
    resp = client.post(
        "/api/products",
        json={"name": "Orphan", "price": "1", "category_id": category["id"], "supplier_id": MISSING_ID},
    )
    assert resp.status_code == 404

    negative = client.post(
        "/api/products",
        json={"name": "Cheap", "price": "-1", "category_id": category["id"], "supplier_id": MISSING_ID},
    )
    assert negative.status_code == 400


def test_product_duplicate_sku(client):
    first = _create_product(client, "First", sku="SKU-1")
    resp = client.post(
        "/api/products",
        json={
            "name": "Second",
            "price": "2",
            "category_id": first["category_id"],
            "supplier_id": first["supplier_id"],
            "sku": "SKU-1",
        },
    )
    assert resp.status_code == 409


def test_product_search_by_name(client):
    category = _create_category(client)
    supplier = _create_supplier(client)
    _create_product(client, "Green Apple", category["id"], supplier["id"])
    _create_product(client, "Red Apple", category["id"], supplier["id"])
    _create_product(client, "Pear", category["id"], supplier["id"])

    matches = client.get("/api/products/name/apple").json()
    assert [m["name"] for m in matches] == ["Green Apple", "Red Apple"]
    assert client.get("/api/products/name/kiwi").json() == []


def test_product_update_refreshes_inventory(client):
    product = _create_product(client, "Soap")
    warehouse = _create_warehouse(client)
    _add_stock(client, product["id"], warehouse["id"], 4)
    new_category = _create_category(client, "Hygiene")
    new_supplier = _create_supplier(client, "Clean Ltd")

    resp = client.put(
        f"/api/products/{product['id']}",
        json={
            "name": "Soap Bar",
            "price": "2.00",
            "category_id": new_category["id"],
            "supplier_id": new_supplier["id"],
        },
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["category"]["name"] == "Hygiene"

    rows = client.get(f"/api/inventory/product/{product['id']}").json()
    assert rows[0]["category_id"] == new_category["id"]
    assert rows[0]["supplier_id"] == new_supplier["id"]


def test_product_delete_blocked_by_inventory(client):
    product = _create_product(client, "Stocked")
    warehouse = _create_warehouse(client)
    _add_stock(client, product["id"], warehouse["id"], 1)

    resp = client.delete(f"/api/products/{product['id']}")
    assert resp.status_code == 409
    assert client.get(f"/api/products/{product['id']}").status_code == 200
    assert client.delete(f"/api/products/{MISSING_ID}").status_code == 404


# ---------------------------------------------------------------------------
# Suppliers
# ---------------------------------------------------------------------------


def test_supplier_create_array_and_search(client):
    resp = client.post(
        "/api/suppliers",
        json=[
            {"name": "North Farms", "contact_info": "n", "email": "n@farm.test", "address": "N", "rating": 4},
            {"name": "South Farms", "contact_info": "s", "email": "s@farm.test", "address": "S"},
        ],
    )
    assert resp.status_code == 201, resp.text
    assert resp.json()[0]["rating"] == 4

    found = client.get("/api/suppliers/name/farms").json()
    assert [s["name"] for s in found] == ["North Farms", "South Farms"]
    assert client.get("/api/suppliers/name/nobody").status_code == 404


def test_supplier_validation(client):
    bad_email = client.post(
        "/api/suppliers",
        json={"name": "X", "contact_info": "x", "email": "not-an-email", "address": "x"},
    )
    assert bad_email.status_code == 400

    bad_rating = client.post(
        "/api/suppliers",
        json={"name": "X", "contact_info": "x", "email": "x@x.test", "address": "x", "rating": 6},
    )
    assert bad_rating.status_code == 400


def test_supplier_update_and_delete(client):
    supplier = _create_supplier(client, "Renamed Soon")

    resp = client.put(f"/api/suppliers/{supplier['id']}", json={"name": "Renamed", "rating": 5})
    assert resp.status_code == 200, resp.text
    assert resp.json()["name"] == "Renamed"
    assert resp.json()["email"] == supplier["email"]

    assert client.delete(f"/api/suppliers/{supplier['id']}").status_code == 200
    assert client.get(f"/api/suppliers/{supplier['id']}").status_code == 404


def test_supplier_delete_blocked_by_products(client):
    product = _create_product(client, "Tied")
    resp = client.delete(f"/api/suppliers/{product['supplier_id']}")
    assert resp.status_code == 409
    assert resp.json()["error"]["details"]["references"]["products"] == 1


def test_supplier_deliveries(client):
    supplier = _create_supplier(client, "Dairy Direct")
    product = _create_product(client, "Milk", supplier_id=supplier["id"])
    warehouse = _create_warehouse(client, capacity=20)

    resp = client.post(
        f"/api/suppliers/{supplier['id']}/deliveries",
        json={"product_id": product["id"], "warehouse_id": warehouse["id"], "quantity": 12},
    )
    assert resp.status_code == 201, resp.text
    assert resp.json()["quantity"] == 12

    too_many = client.post(
        f"/api/suppliers/{supplier['id']}/deliveries",
        json={"product_id": product["id"], "warehouse_id": warehouse["id"], "quantity": 9},
    )
    assert too_many.status_code == 409

    detail = client.get(f"/api/suppliers/{supplier['id']}").json()
    assert len(detail["deliveries"]) == 1
    assert len(client.get(f"/api/suppliers/{supplier['id']}/deliveries").json()) == 1

    rows = client.get(f"/api/inventory/product/{product['id']}").json()
    assert rows[0]["stock"] == 12


def test_suppliers_for_product_and_warehouse(client):
    supplier = _create_supplier(client, "Orchard")
    other = _create_supplier(client, "Courier")
    product = _create_product(client, "Cider", supplier_id=supplier["id"])
    warehouse = _create_warehouse(client)
    client.post(
        f"/api/suppliers/{other['id']}/deliveries",
        json={"product_id": product["id"], "warehouse_id": warehouse["id"], "quantity": 3},
    )

    by_product = client.get("/api/suppliers/product/cider")
    assert by_product.status_code == 200
    assert [s["name"] for s in by_product.json()] == ["Courier", "Orchard"]
    assert client.get("/api/suppliers/product/nothing").status_code == 404

    by_warehouse = client.get(f"/api/suppliers/warehouse/{warehouse['id']}")
    assert by_warehouse.status_code == 200
    assert [s["name"] for s in by_warehouse.json()] == ["Orchard"]

    empty = _create_warehouse(client, "Empty")
    assert client.get(f"/api/suppliers/warehouse/{empty['id']}").status_code == 404
