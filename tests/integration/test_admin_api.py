from decimal import Decimal

from ordering.db import crud, models
from ordering.services.permission_service import PermissionService

COMBO_PRICES = {
    "precio_pickup_capital": "60.00",
    "precio_domicilio_capital": "65.00",
    "precio_pickup_interior": "63.00",
    "precio_domicilio_interior": "68.00",
}


def _grant_role(db_session, email, role_name):
    PermissionService(db_session).sync_permissions()
    user = crud.get_or_create_user(db_session, email=email, display_name=email.split("@")[0])
    role = db_session.query(models.Role).filter(models.Role.name == role_name).one()
    db_session.add(models.UserRole(user_id=user.id, role_id=role.id))
    db_session.commit()
    return user


def test_viewer_role_reads_but_cannot_write(client, db_session, staff_headers):
    _grant_role(db_session, "viewer@example.com", "viewer")
    headers = staff_headers("viewer@example.com")

    assert client.get("/admin/menu/categories", headers=headers).status_code == 200
    response = client.post("/admin/menu/categories", json={"name": "Postres"}, headers=headers)
    assert response.status_code == 403
    assert response.json() == {"detail": "Forbidden"}


def test_category_crud_and_reorder(client, db_session, admin_headers):
    first = client.post("/admin/menu/categories", json={"name": "Subs"}, headers=admin_headers).json()
    second = client.post("/admin/menu/categories", json={"name": "Bebidas"}, headers=admin_headers).json()

    response = client.post(
        "/admin/menu/categories/reorder", json={"ids": [second["id"], first["id"]]}, headers=admin_headers
    )
    assert response.json() == {"updated": 2}
    listed = client.get("/admin/menu/categories", headers=admin_headers).json()
    assert [c["name"] for c in listed] == ["Bebidas", "Subs"]

    renamed = client.put(f"/admin/menu/categories/{first['id']}", json={"name": "Subs clásicos"}, headers=admin_headers)
    assert renamed.json()["name"] == "Subs clásicos"

    actions = {row.action_type for row in db_session.query(models.AuditLog).all()}
    assert {"category_create", "menu_reorder"} <= actions


def test_combo_choice_group_validation(client, admin_headers, category_factory, product_factory):
    category = category_factory()
    product = product_factory(category)

    bad = {
        "name": "Combo Familiar",
        **COMBO_PRICES,
        "items": [{"is_choice_group": True, "options": [{"product_id": str(product.id)}]}],
    }
    response = client.post("/admin/menu/combos", json=bad, headers=admin_headers)
    assert response.status_code == 422

    other = product_factory(category)
    good = {
        "name": "Combo Familiar",
        **COMBO_PRICES,
        "items": [
            {"product_id": str(product.id), "quantity": 2},
            {
                "is_choice_group": True,
                "choice_label": "Bebida",
                "options": [{"product_id": str(product.id)}, {"product_id": str(other.id)}],
            },
        ],
    }
    created = client.post("/admin/menu/combos", json=good, headers=admin_headers)
    assert created.status_code == 201
    body = created.json()
    assert [item["is_choice_group"] for item in body["items"]] == [False, True]
    assert client.get(f"/menu/combos/{body['id']}").status_code == 200


def test_permission_sync_endpoint(client, admin_headers):
    response = client.post("/admin/permissions/sync", headers=admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["created"] == body["total"] > 0
    roles = client.get("/admin/roles", headers=admin_headers).json()
    assert {"admin", "manager", "restaurant", "viewer"} <= {r["name"] for r in roles}


def test_points_expire_endpoint(client, admin_headers):
    response = client.post("/admin/points/expire", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"expired": 0, "points_debited": 0}


def test_customer_type_crud(client, db_session, admin_headers):
    created = client.post(
        "/admin/customer-types",
        json={"name": "Oro", "points_required": 100, "multiplier": "1.5", "color": "#d4af37"},
        headers=admin_headers,
    )
    assert created.status_code == 201
    type_id = created.json()["id"]
    assert Decimal(created.json()["multiplier"]) == Decimal("1.5")

    bad = client.post("/admin/customer-types", json={"name": "Menos", "multiplier": "0.5"}, headers=admin_headers)
    assert bad.status_code == 422

    updated = client.put(f"/admin/customer-types/{type_id}", json={"points_required": 150}, headers=admin_headers)
    assert updated.json()["points_required"] == 150
    assert updated.json()["name"] == "Oro"
    assert [t["name"] for t in client.get("/admin/customer-types", headers=admin_headers).json()] == ["Oro"]

    assert client.delete(f"/admin/customer-types/{type_id}", headers=admin_headers).status_code == 204
    assert client.delete(f"/admin/customer-types/{type_id}", headers=admin_headers).status_code == 404
    actions = {row.action_type for row in db_session.query(models.AuditLog).all()}
    assert {"customer_type_create", "customer_type_update", "customer_type_delete"} <= actions


def test_points_settings_read_and_update(client, admin_headers, staff_headers):
    current = client.get("/admin/points-settings", headers=admin_headers).json()
    assert current["expiration_months"] == 6
    assert current["expiration_method"] == "fifo"

    updated = client.put(
        "/admin/points-settings",
        json={"quetzales_per_point": "5", "expiration_method": "total"},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["expiration_method"] == "total"
    settings = client.get("/admin/points-settings", headers=admin_headers).json()
    assert Decimal(settings["quetzales_per_point"]) == Decimal("5")

    bad = client.put("/admin/points-settings", json={"expiration_method": "lifo"}, headers=admin_headers)
    assert bad.status_code == 422
    assert client.get("/admin/points-settings", headers=staff_headers()).status_code == 403


def test_customer_directory_search_by_full_name(client, admin_headers, customer_factory):
    customer_factory(email="ana@example.com")
    customer_factory(first_name="Luis", last_name="Pérez")

    found = client.get("/admin/customers", params={"search": "ana lópez"}, headers=admin_headers).json()
    assert [c["email"] for c in found] == ["ana@example.com"]
