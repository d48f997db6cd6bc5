import io

import pandas as pd

from conftest import ADMIN_HEADERS, add_item, db_execute, headers_for


def test_public_menu_groups_available_items(client, restaurant, category):
    add_item(client, restaurant["id"], "Paneer Tikka", price=249, is_veg=True)
    add_item(client, restaurant["id"], "Hidden Special", is_available=False)
    add_item(client, restaurant["id"], "Orphan", category="Nowhere")

    r = client.get(f"/api/menu/{restaurant['slug']}")
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["restaurant"]["name"] == "Spice Garden"
    assert body["category_order"] == ["Starters"]
    assert body["category_meta"]["Starters"]["id"] == category["id"]
    items = body["categories"]["Starters"]
    assert [i["name"] for i in items] == ["Paneer Tikka"]
    assert items[0]["price"] == 249.0
    assert items[0]["is_veg"] is True
    assert items[0]["item_code"] == 1


def test_unknown_slug_is_404(client):
    r = client.get("/api/menu/nope")
    assert r.status_code == 404
    assert r.json() == {"success": False, "message": "Restaurant not found"}


def test_item_codes_increase_per_restaurant(client, restaurant, category):
    first = add_item(client, restaurant["id"], "A")
    second = add_item(client, restaurant["id"], "B")
    assert (first["item_code"], second["item_code"]) == (1, 2)
    assert second["item_id"] > first["item_id"]


def test_search_is_case_insensitive(client, restaurant, category):
    add_item(client, restaurant["id"], "Paneer Tikka", description="Smoky")
    add_item(client, restaurant["id"], "Veg Soup", category="Soups")

    r = client.get(f"/api/menu/{restaurant['slug']}/search", params={"q": "  PANEER "})
    body = r.json()
    assert r.status_code == 200
    assert body["search_term"] == "PANEER"
    assert body["total_results"] == 1
    assert list(body["categories"]) == ["Starters"]

    r = client.get(f"/api/menu/{restaurant['slug']}/search", params={"q": "soups"})
    assert r.json()["total_results"] == 1


def test_search_requires_term(client, restaurant):
    r = client.get(f"/api/menu/{restaurant['slug']}/search", params={"q": "   "})
    assert r.status_code == 400
    assert r.json()["message"] == "Search term is required"


def test_category_search(client, restaurant, category):
    add_item(client, restaurant["id"], "Paneer Tikka")
    add_item(client, restaurant["id"], "Paneer Soup", category="Soups")

    r = client.get(
        f"/api/menu/{restaurant['slug']}/category/Starters/search", params={"q": "paneer"}
    )
    body = r.json()
    assert body["category"] == "Starters"
    assert [i["name"] for i in body["items"]] == ["Paneer Tikka"]


def test_add_requires_identity(client, restaurant):
    r = client.post(
        "/api/menu/add",
        json={"restaurant_id": restaurant["id"], "category": "X", "name": "Y", "price": 10},
    )
    assert r.status_code == 401


def test_add_validates_price(client, restaurant):
    r = client.post(
        "/api/menu/add",
        json={"restaurant_id": restaurant["id"], "category": "X", "name": "Y", "price": 0},
        headers=ADMIN_HEADERS,
    )
    assert r.status_code == 400
    assert r.json()["success"] is False


def test_add_for_missing_restaurant(client):
    r = client.post(
        "/api/menu/add",
        json={"restaurant_id": 999, "category": "X", "name": "Y", "price": 10},
        headers=ADMIN_HEADERS,
    )
    assert r.status_code == 400


def test_viewer_can_manage_menu(client, restaurant, make_user):
    make_user("viewer1", "viewer")
    r = client.post(
        "/api/menu/add",
        json={"restaurant_id": restaurant["id"], "category": "Starters", "name": "Y", "price": 10},
        headers=headers_for("viewer1"),
    )
    assert r.status_code == 200


def test_partial_update_keeps_other_fields(client, restaurant, category):
    item = add_item(client, restaurant["id"], "Paneer Tikka", price=249, description="Smoky")

    r = client.put(
        f"/api/menu/{item['item_id']}",
        json={"price": 199, "preparation_time": "15 min", "is_available": False},
        headers=ADMIN_HEADERS,
    )
    assert r.status_code == 200

    r = client.get(
        "/api/admin/menu-items/search",
        params={"restaurant_id": restaurant["id"]},
        headers=ADMIN_HEADERS,
    )
    updated = r.json()["items"][0]
    assert updated["name"] == "Paneer Tikka"
    assert updated["description"] == "Smoky"
    assert updated["price"] == 199.0
    assert updated["availability_time"] == "15 min"
    assert updated["is_available"] is False


def test_update_and_delete_missing_item(client):
    r = client.put("/api/menu/999", json={"name": "X"}, headers=ADMIN_HEADERS)
    assert r.status_code == 404
    r = client.delete("/api/menu/999", headers=ADMIN_HEADERS)
    assert r.status_code == 404


def test_delete_item(client, restaurant, category):
    item = add_item(client, restaurant["id"], "Paneer Tikka")
    r = client.delete(f"/api/menu/{item['item_id']}", headers=ADMIN_HEADERS)
    assert r.status_code == 200
    assert client.get(f"/api/menu/{restaurant['slug']}").json()["categories"]["Starters"] == []


def test_csv_bulk_import(client, restaurant, category):
    add_item(client, restaurant["id"], "Existing")
    content = b"name,description,price,veg\nDal Fry,,120,veg\nBad Row,,,\nChicken 65,,199/-,non-veg\n"

    r = client.post(
        "/api/menu/bulk-import-csv",
        data={"restaurant_id": str(restaurant["id"]), "category_name": "Starters"},
        files={"file": ("menu.csv", content, "text/csv")},
        headers=ADMIN_HEADERS,
    )
    body = r.json()
    assert r.status_code == 200, body
    assert body["inserted"] == 2
    assert body["skipped"] == 1
    assert body["errors"][0]["row"] == 3

    items = client.get(f"/api/menu/{restaurant['slug']}").json()["categories"]["Starters"]
    codes = {i["name"]: i["item_code"] for i in items}
    assert codes == {"Existing": 1, "Dal Fry": 2, "Chicken 65": 3}
    veg = {i["name"]: i["is_veg"] for i in items}
    assert veg["Chicken 65"] is False


def test_excel_bulk_import_by_category_id(client, restaurant, category):
    buffer = io.BytesIO()
    pd.DataFrame([{"Name": "Masala Dosa", "Price": 80}]).to_excel(
        buffer, index=False, engine="openpyxl"
    )

    r = client.post(
        "/api/menu/bulk-import",
        data={"restaurant_id": str(restaurant["id"]), "category_id": str(category["id"])},
        files={"file": ("menu.xlsx", buffer.getvalue(), "application/octet-stream")},
        headers=ADMIN_HEADERS,
    )
    assert r.status_code == 200, r.text
    assert r.json()["inserted"] == 1


def test_bulk_import_with_no_valid_rows(client, restaurant, category):
    r = client.post(
        "/api/menu/bulk-import-csv",
        data={"restaurant_id": str(restaurant["id"]), "category_name": "Starters"},
        files={"file": ("menu.csv", b"name,price\nNo Price,\n", "text/csv")},
        headers=ADMIN_HEADERS,
    )
    assert r.status_code == 400
    body = r.json()
    assert body["message"] == "No valid rows to insert"
    assert len(body["errors"]) == 1


def test_bulk_import_needs_category(client, restaurant):
    r = client.post(
        "/api/menu/bulk-import-csv",
        data={"restaurant_id": str(restaurant["id"])},
        files={"file": ("menu.csv", b"name,price\nDal,10\n", "text/csv")},
        headers=ADMIN_HEADERS,
    )
    assert r.status_code == 400


def test_update_stamps_updated_at(client, restaurant, category):
    item = add_item(client, restaurant["id"], "Paneer Tikka")
    db_execute(
        "UPDATE menu_items SET updated_at = '2000-01-01 00:00:00' WHERE id = :id",
        {"id": item["item_id"]},
    )
    client.put(f"/api/menu/{item['item_id']}", json={"price": 150}, headers=ADMIN_HEADERS)
    rows = db_execute("SELECT updated_at FROM menu_items WHERE id = :id", {"id": item["item_id"]})
    assert not str(rows[0]["updated_at"]).startswith("2000-01-01")


def test_openapi_documents_error_envelope(client):
    spec = client.get("/openapi.json").json()
    responses = spec["paths"]["/api/menu/{item_id}"]["put"]["responses"]
    assert responses["404"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")
    assert "message" in spec["components"]["schemas"]["ErrorResponse"]["required"]
