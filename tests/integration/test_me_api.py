from decimal import Decimal

from ordering.db import models
from ordering.utils.token_crypto import hash_password


def _order(db_session, customer, restaurant, number="ORD-20261019-0042"):
    order = models.Order(
        order_number=number,
        customer_id=customer.id,
        restaurant_id=restaurant.id,
        service_type="pickup",
        zone="capital",
        subtotal=Decimal("50.00"),
        discount_total=Decimal("0"),
        delivery_fee=Decimal("0"),
        total=Decimal("50.00"),
        status="completed",
    )
    db_session.add(order)
    db_session.commit()
    return order


def test_rewards_catalog(client, customer_factory, customer_headers, category_factory, product_factory):
    category = category_factory()
    cookie = product_factory(category, name="Galleta", is_redeemable=True, points_cost=15)
    product_factory(category, name="Italiano")
    headers = customer_headers(customer_factory())

    body = client.get("/me/points/rewards", headers=headers).json()
    assert body["total"] == 1
    assert body["data"][0]["id"] == str(cookie.id)
    assert body["data"][0]["points_cost"] == 15
    assert body["data"][0]["type"] == "product"


def test_redeem_points(client, db_session, customer_factory, customer_headers, restaurant_factory):
    customer = customer_factory(points=20)
    headers = customer_headers(customer)
    order = _order(db_session, customer, restaurant_factory())

    response = client.post("/me/points/redeem", json={"order_id": str(order.id), "points_to_redeem": 15},
                           headers=headers)
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["points"] == 5
    assert body["transaction"]["type"] == "redeemed"
    assert body["transaction"]["points"] == -15

    short = client.post("/me/points/redeem", json={"order_id": str(order.id), "points_to_redeem": 6},
                        headers=headers)
    assert short.status_code == 422
    assert short.json() == {"detail": "Not enough points available"}
    assert client.get("/me/points", headers=headers).json()["points"] == 5


def test_redeem_against_another_customers_order(client, db_session, customer_factory, customer_headers,
                                                 restaurant_factory):
    order = _order(db_session, customer_factory(), restaurant_factory())
    headers = customer_headers(customer_factory(points=50))
    response = client.post("/me/points/redeem", json={"order_id": str(order.id), "points_to_redeem": 5},
                           headers=headers)
    assert response.status_code == 404


def test_favorites(client, customer_factory, customer_headers, category_factory, product_factory):
    headers = customer_headers(customer_factory())
    product = product_factory(category_factory(), name="Italiano")
    retired = product_factory(category_factory(name="Viejos"), is_active=False)
    payload = {"favorable_type": "product", "favorable_id": str(product.id)}

    first = client.post("/me/favorites", json=payload, headers=headers)
    assert first.status_code == 201
    assert first.json()["name"] == "Italiano"
    again = client.post("/me/favorites", json=payload, headers=headers)
    assert again.status_code == 200
    assert again.json()["id"] == first.json()["id"]

    missing = client.post("/me/favorites", json={"favorable_type": "product", "favorable_id": str(retired.id)},
                          headers=headers)
    assert missing.status_code == 404

    listed = client.get("/me/favorites", headers=headers).json()
    assert [(f["favorable_type"], f["favorable_id"]) for f in listed] == [("product", str(product.id))]

    assert client.delete(f"/me/favorites/variant/{product.id}", headers=headers).status_code == 422
    assert client.delete(f"/me/favorites/product/{product.id}", headers=headers).status_code == 204
    assert client.delete(f"/me/favorites/product/{product.id}", headers=headers).status_code == 404
    assert client.get("/me/favorites", headers=headers).json() == []


def test_change_password_signs_out_other_sessions(client, customer_factory, customer_headers):
    customer = customer_factory(email="ana@example.com", password_hash=hash_password("old-pass-1"))
    current = customer_headers(customer)
    other = customer_headers(customer)

    wrong = client.put("/me/password", json={"current_password": "nope-nope", "password": "new-pass-1"},
                       headers=current)
    assert wrong.status_code == 422
    assert wrong.json() == {"detail": "Current password is incorrect"}

    changed = client.put("/me/password", json={"current_password": "old-pass-1", "password": "new-pass-1"},
                         headers=current)
    assert changed.status_code == 204
    assert client.get("/me", headers=current).status_code == 200
    assert client.get("/me", headers=other).status_code == 401

    login = client.post("/auth/login", json={"email": "ana@example.com", "password": "new-pass-1"})
    assert login.status_code == 200


def test_delete_account_frees_email(client, db_session, customer_factory, customer_headers):
    customer = customer_factory(email="borrar@example.com")
    headers = customer_headers(customer)

    assert client.delete("/me", headers=headers).status_code == 204
    assert client.get("/me", headers=headers).status_code == 401
    db_session.refresh(customer)
    assert customer.deleted_at is not None
    assert customer.email == f"deleted-{customer.id}-borrar@example.com"

    registered = client.post("/auth/register", json={
        "first_name": "Ana",
        "last_name": "López",
        "email": "borrar@example.com",
        "password": "s3cret-pass",
    })
    assert registered.status_code == 201


def test_token_of_deleted_customer_is_rejected(client, db_session, customer_factory, customer_headers):
    customer = customer_factory()
    headers = customer_headers(customer)
    customer.deleted_at = models.now_utc()
    db_session.commit()

    response = client.get("/me", headers=headers)
    assert response.status_code == 401
    assert response.json() == {"detail": "Invalid token customer"}
