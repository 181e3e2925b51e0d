"""Admin API tests: role gate, catalog management, order oversight and stats."""

from decimal import Decimal
from pathlib import Path

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.main import create_app
from app.services.payment.mock import MockPaymentGateway

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin-secret"


def _build_app(tmp_path: Path):
    settings = Settings(
        database_url=f"sqlite:///{tmp_path / 'admin.db'}",
        admin_email=ADMIN_EMAIL,
        admin_password=ADMIN_PASSWORD,
    )
    return create_app(settings=settings, payment_gateway=MockPaymentGateway("test-secret"))


def _login(client: TestClient, email: str, password: str) -> dict[str, str]:
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


def _customer(client: TestClient, username: str = "ana") -> dict[str, str]:
    email = f"{username}@example.com"
    client.post("/api/auth/register", json={"username": username, "email": email, "password": "secret123"})
    return _login(client, email, "secret123")


def _create_restaurant(client: TestClient, admin: dict[str, str], **fields) -> dict:
    payload = {"name": "Mario's Pizzeria", "cuisine": "Italian", "deliveryFee": "2.99", **fields}
    response = client.post("/api/admin/restaurants", json=payload, headers=admin)
    assert response.status_code == 201
    return response.json()


def _create_item(client: TestClient, admin: dict[str, str], restaurant_id: int, **fields) -> dict:
    payload = {"restaurantId": restaurant_id, "name": "Margherita", "price": "12.99", "category": "Pizza", **fields}
    response = client.post("/api/admin/menu-items", json=payload, headers=admin)
    assert response.status_code == 201
    return response.json()


def test_admin_routes_require_admin_role(tmp_path: Path) -> None:
    app = _build_app(tmp_path)

    with TestClient(app) as client:
        customer = _customer(client)
        anonymous = client.get("/api/admin/stats")
        as_customer = client.get("/api/admin/stats", headers=customer)
        create_as_customer = client.post(
            "/api/admin/restaurants",
            json={"name": "Sneaky", "cuisine": "Italian", "deliveryFee": "1.00"},
            headers=customer,
        )
        me = client.get("/api/auth/user", headers=_login(client, ADMIN_EMAIL, ADMIN_PASSWORD))

    assert anonymous.status_code == 401
    assert as_customer.status_code == 403
    assert as_customer.json() == {"message": "Access denied", "kind": "Forbidden"}
    assert create_as_customer.status_code == 403
    assert me.json()["user"]["role"] == "admin"


def test_registration_cannot_grant_admin_role(tmp_path: Path) -> None:
    app = _build_app(tmp_path)

    with TestClient(app) as client:
        registered = client.post(
            "/api/auth/register",
            json={"username": "mallory", "email": "mallory@example.com", "password": "secret123", "role": "admin"},
        )
        headers = _login(client, "mallory@example.com", "secret123")
        stats = client.get("/api/admin/stats", headers=headers)

    assert registered.json()["user"]["role"] == "customer"
    assert stats.status_code == 403


def test_admin_manages_catalog(tmp_path: Path) -> None:
    app = _build_app(tmp_path)

    with TestClient(app) as client:
        admin = _login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
        restaurant = _create_restaurant(client, admin)
        item = _create_item(client, admin, restaurant["id"])

        renamed = client.patch(
            f"/api/admin/restaurants/{restaurant['id']}", json={"deliveryFee": "3.49"}, headers=admin
        )
        repriced = client.patch(f"/api/admin/menu-items/{item['id']}", json={"price": "13.50"}, headers=admin)
        hidden = client.patch(f"/api/admin/menu-items/{item['id']}", json={"isAvailable": False}, headers=admin)
        public_menu = client.get(f"/api/restaurants/{restaurant['id']}/menu")
        negative = client.post(
            "/api/admin/menu-items",
            json={"restaurantId": restaurant["id"], "name": "Free", "price": "-1.00", "category": "Pizza"},
            headers=admin,
        )
        orphan = client.post(
            "/api/admin/menu-items",
            json={"restaurantId": 9999, "name": "Ghost", "price": "1.00", "category": "Pizza"},
            headers=admin,
        )

    assert Decimal(renamed.json()["delivery_fee"]) == Decimal("3.49")
    assert Decimal(repriced.json()["price"]) == Decimal("13.50")
    assert hidden.json()["is_available"] is False
    assert public_menu.json() == []
    assert negative.status_code == 400
    assert orphan.status_code == 404


def test_deleting_restaurant_deactivates_it(tmp_path: Path) -> None:
    app = _build_app(tmp_path)

    with TestClient(app) as client:
        admin = _login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
        customer = _customer(client)
        restaurant = _create_restaurant(client, admin)
        item = _create_item(client, admin, restaurant["id"])
        placed = client.post(
            "/api/orders",
            json={
                "orderData": {
                    "restaurantId": restaurant["id"],
                    "deliveryAddress": "1 Main St",
                    "paymentMethod": "cash_on_delivery",
                },
                "items": [{"menuItemId": item["id"], "quantity": 1}],
            },
            headers=customer,
        )

        deleted = client.delete(f"/api/admin/restaurants/{restaurant['id']}", headers=admin)
        public = client.get(f"/api/restaurants/{restaurant['id']}")
        listed = client.get("/api/restaurants")
        admin_listed = client.get("/api/admin/restaurants", headers=admin)
        history = client.get(f"/api/orders/{placed.json()['order']['id']}", headers=customer)
        new_order = client.post(
            "/api/orders",
            json={
                "orderData": {
                    "restaurantId": restaurant["id"],
                    "deliveryAddress": "1 Main St",
                    "paymentMethod": "cash_on_delivery",
                },
                "items": [{"menuItemId": item["id"], "quantity": 1}],
            },
            headers=customer,
        )

    assert deleted.status_code == 200
    assert deleted.json()["is_active"] is False
    assert public.status_code == 404
    assert listed.json() == []
    assert [row["id"] for row in admin_listed.json()] == [restaurant["id"]]
    assert history.status_code == 200
    assert new_order.status_code == 404


def test_admin_lists_orders_and_reads_stats(tmp_path: Path) -> None:
    app = _build_app(tmp_path)

    with TestClient(app) as client:
        admin = _login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
        customer = _customer(client)
        restaurant = _create_restaurant(client, admin)
        item = _create_item(client, admin, restaurant["id"])
        order_ids = []
        for _ in range(2):
            placed = client.post(
                "/api/orders",
                json={
                    "orderData": {
                        "restaurantId": restaurant["id"],
                        "deliveryAddress": "1 Main St",
                        "paymentMethod": "cash_on_delivery",
                    },
                    "items": [{"menuItemId": item["id"], "quantity": 2}],
                },
                headers=customer,
            )
            order_ids.append(placed.json()["order"]["id"])
        client.patch(f"/api/orders/{order_ids[1]}/status", json={"status": "cancelled"}, headers=customer)

        orders = client.get("/api/admin/orders", headers=admin)
        stats = client.get("/api/admin/stats", headers=admin)

    assert orders.status_code == 200
    rows = orders.json()
    assert {row["id"] for row in rows} == set(order_ids)
    assert rows[0]["restaurant"]["name"] == "Mario's Pizzeria"
    assert rows[0]["user"]["username"] == "ana"
    assert rows[0]["item_count"] == 1

    body = stats.json()
    assert body["total_restaurants"] == 1
    assert body["total_orders"] == 2
    assert body["total_users"] == 2
    assert body["orders_today"] == 2
    assert Decimal(body["total_revenue"]) == Decimal("31.05")


def test_admin_edits_reject_null_for_required_fields(tmp_path: Path) -> None:
    app = _build_app(tmp_path)

    with TestClient(app) as client:
        admin = _login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
        restaurant = _create_restaurant(client, admin)
        item = _create_item(client, admin, restaurant["id"])

        null_name = client.patch(
            f"/api/admin/restaurants/{restaurant['id']}", json={"name": None, "cuisine": "Thai"}, headers=admin
        )
        null_fee = client.patch(f"/api/admin/restaurants/{restaurant['id']}", json={"deliveryFee": None}, headers=admin)
        null_price = client.patch(f"/api/admin/menu-items/{item['id']}", json={"price": None}, headers=admin)
        null_description = client.patch(
            f"/api/admin/menu-items/{item['id']}", json={"description": None}, headers=admin
        )
        after = client.get(f"/api/restaurants/{restaurant['id']}")

    for response in (null_name, null_fee, null_price):
        assert response.status_code == 400
        assert response.json()["kind"] == "ValidationError"
        assert "may not be null" in response.json()["message"]
    assert null_description.status_code == 200
    assert null_description.json()["description"] is None
    assert after.json()["name"] == "Mario's Pizzeria"
    assert after.json()["cuisine"] == "Italian"


def test_admin_catalog_write_failure_returns_structured_error(tmp_path: Path, monkeypatch) -> None:
    app = _build_app(tmp_path)

    with TestClient(app) as client:
        admin = _login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
        restaurant = _create_restaurant(client, admin)

        def _failing_commit(self) -> None:
            raise OperationalError("UPDATE restaurants", {}, Exception("disk I/O error"))

        monkeypatch.setattr(Session, "commit", _failing_commit)
        response = client.patch(f"/api/admin/restaurants/{restaurant['id']}", json={"name": "Renamed"}, headers=admin)
        monkeypatch.undo()
        after = client.get(f"/api/restaurants/{restaurant['id']}")

    assert response.status_code == 500
    assert response.json() == {"message": "Internal server error", "kind": "InternalError"}
    assert after.json()["name"] == "Mario's Pizzeria"


def test_revenue_counts_cod_orders_but_not_unpaid_wallet_orders(tmp_path: Path) -> None:
    app = _build_app(tmp_path)

    with TestClient(app) as client:
        admin = _login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
        customer = _customer(client)
        restaurant = _create_restaurant(client, admin)
        item = _create_item(client, admin, restaurant["id"])
        for method in ("cod", "razorpay"):
            placed = client.post(
                "/api/orders",
                json={
                    "orderData": {
                        "restaurantId": restaurant["id"],
                        "deliveryAddress": "1 Main St",
                        "paymentMethod": method,
                    },
                    "items": [{"menuItemId": item["id"], "quantity": 2}],
                },
                headers=customer,
            )
            assert placed.status_code == 201
        stats = client.get("/api/admin/stats", headers=admin)

    assert stats.json()["total_orders"] == 2
    assert Decimal(stats.json()["total_revenue"]) == Decimal("31.05")
