"""Order placement tests: server-side pricing, cart validation, idempotency and atomicity."""

from decimal import Decimal
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event, func, select
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import Settings
from app.main import create_app
from app.models import MenuItem, Order, OrderItem, Restaurant
from app.services.payment.mock import MockPaymentGateway


def _build_app(tmp_path: Path):
    settings = Settings(database_url=f"sqlite:///{tmp_path / 'orders.db'}", tax_rate=Decimal("0.08"))
    return create_app(settings=settings, payment_gateway=MockPaymentGateway("test-secret"))


def _seed_catalog(session_factory) -> dict[str, int]:
    with session_factory() as db:
        pizzeria = Restaurant(name="Mario's Pizzeria", cuisine="Italian", delivery_fee=Decimal("2.99"))
        burgers = Restaurant(name="Burger Palace", cuisine="American", delivery_fee=Decimal("3.99"))
        db.add_all([pizzeria, burgers])
        db.flush()
        margherita = MenuItem(restaurant_id=pizzeria.id, name="Margherita", price=Decimal("12.99"), category="Pizza")
        tiramisu = MenuItem(restaurant_id=pizzeria.id, name="Tiramisu", price=Decimal("6.75"), category="Desserts")
        sold_out = MenuItem(
            restaurant_id=pizzeria.id, name="Calzone", price=Decimal("11.00"), category="Pizza", is_available=False
        )
        burger = MenuItem(restaurant_id=burgers.id, name="Classic Burger", price=Decimal("12.99"), category="Burgers")
        db.add_all([margherita, tiramisu, sold_out, burger])
        db.commit()
        return {
            "pizzeria": pizzeria.id,
            "burgers": burgers.id,
            "margherita": margherita.id,
            "tiramisu": tiramisu.id,
            "sold_out": sold_out.id,
            "burger": burger.id,
        }


def _customer(client: TestClient, username: str = "ana") -> tuple[int, dict[str, str]]:
    email = f"{username}@example.com"
    registered = client.post(
        "/api/auth/register", json={"username": username, "email": email, "password": "secret123"}
    )
    assert registered.status_code == 201
    login = client.post("/api/auth/login", json={"email": email, "password": "secret123"})
    return registered.json()["user"]["id"], {"Authorization": f"Bearer {login.json()['access_token']}"}


def _order_payload(restaurant_id: int, items: list[dict], **order_data) -> dict:
    data = {
        "restaurantId": restaurant_id,
        "deliveryAddress": "1 Main St",
        "paymentMethod": "cash_on_delivery",
        **order_data,
    }
    return {"orderData": data, "items": items}


def _counts(session_factory) -> tuple[int, int]:
    with session_factory() as db:
        return db.scalar(select(func.count(Order.id))), db.scalar(select(func.count(OrderItem.id)))


def test_order_total_is_computed_server_side(tmp_path: Path) -> None:
    app = _build_app(tmp_path)

    with TestClient(app) as client:
        ids = _seed_catalog(app.state.session_factory)
        user_id, headers = _customer(client)
        payload = _order_payload(
            ids["pizzeria"],
            [{"menuItemId": ids["margherita"], "quantity": 2, "price": "0.01"}],
            userId=user_id,
            totalAmount="0.01",
        )
        response = client.post("/api/orders", json=payload, headers=headers)

    assert response.status_code == 201
    body = response.json()
    order = body["order"]
    assert Decimal(order["subtotal_amount"]) == Decimal("25.98")
    assert Decimal(order["delivery_fee"]) == Decimal("2.99")
    assert Decimal(order["tax_amount"]) == Decimal("2.08")
    assert Decimal(order["total_amount"]) == Decimal("31.05")
    assert order["status"] == "pending"
    assert order["payment_status"] == "pending"
    assert order["user_id"] == user_id
    assert body["payment"] is None

    assert len(body["items"]) == 1
    item = body["items"][0]
    assert item["name"] == "Margherita"
    assert Decimal(item["price"]) == Decimal("12.99")
    assert Decimal(item["line_total"]) == Decimal("25.98")


def test_repeated_items_are_merged_into_one_line(tmp_path: Path) -> None:
    app = _build_app(tmp_path)

    with TestClient(app) as client:
        ids = _seed_catalog(app.state.session_factory)
        _, headers = _customer(client)
        payload = _order_payload(
            ids["pizzeria"],
            [
                {"menuItemId": ids["margherita"], "quantity": 1},
                {"menuItemId": ids["tiramisu"], "quantity": 1},
                {"menuItemId": ids["margherita"], "quantity": 1},
            ],
        )
        response = client.post("/api/orders", json=payload, headers=headers)

    assert response.status_code == 201
    items = {row["name"]: row["quantity"] for row in response.json()["items"]}
    assert items == {"Margherita": 2, "Tiramisu": 1}
    assert Decimal(response.json()["order"]["subtotal_amount"]) == Decimal("32.73")


def test_order_requires_authentication(tmp_path: Path) -> None:
    app = _build_app(tmp_path)

    with TestClient(app) as client:
        ids = _seed_catalog(app.state.session_factory)
        response = client.post(
            "/api/orders", json=_order_payload(ids["pizzeria"], [{"menuItemId": ids["margherita"], "quantity": 1}])
        )

    assert response.status_code == 401
    assert _counts(app.state.session_factory) == (0, 0)


def test_order_for_another_user_is_forbidden(tmp_path: Path) -> None:
    app = _build_app(tmp_path)

    with TestClient(app) as client:
        ids = _seed_catalog(app.state.session_factory)
        other_id, _ = _customer(client, "bob")
        _, headers = _customer(client, "ana")
        response = client.post(
            "/api/orders",
            json=_order_payload(ids["pizzeria"], [{"menuItemId": ids["margherita"], "quantity": 1}], userId=other_id),
            headers=headers,
        )

    assert response.status_code == 403
    assert _counts(app.state.session_factory) == (0, 0)


def test_mixed_restaurant_cart_is_rejected_without_writes(tmp_path: Path) -> None:
    app = _build_app(tmp_path)

    with TestClient(app) as client:
        ids = _seed_catalog(app.state.session_factory)
        _, headers = _customer(client)
        response = client.post(
            "/api/orders",
            json=_order_payload(
                ids["pizzeria"],
                [{"menuItemId": ids["margherita"], "quantity": 1}, {"menuItemId": ids["burger"], "quantity": 1}],
            ),
            headers=headers,
        )

    assert response.status_code == 409
    assert response.json()["kind"] == "InvalidCart"
    assert _counts(app.state.session_factory) == (0, 0)


@pytest.mark.parametrize(
    ("items_key", "quantity", "expected_status", "expected_kind"),
    [
        ("sold_out", 1, 409, "InvalidCart"),
        ("missing", 1, 404, "NotFound"),
        ("margherita", 0, 400, "ValidationError"),
    ],
)
def test_invalid_cart_lines_are_rejected(
    tmp_path: Path, items_key: str, quantity: int, expected_status: int, expected_kind: str
) -> None:
    app = _build_app(tmp_path)

    with TestClient(app) as client:
        ids = _seed_catalog(app.state.session_factory)
        _, headers = _customer(client)
        menu_item_id = ids.get(items_key, 9999)
        response = client.post(
            "/api/orders",
            json=_order_payload(ids["pizzeria"], [{"menuItemId": menu_item_id, "quantity": quantity}]),
            headers=headers,
        )

    assert response.status_code == expected_status
    assert response.json()["kind"] == expected_kind
    assert _counts(app.state.session_factory) == (0, 0)


def test_empty_cart_and_bad_payment_method_are_validation_errors(tmp_path: Path) -> None:
    app = _build_app(tmp_path)

    with TestClient(app) as client:
        ids = _seed_catalog(app.state.session_factory)
        _, headers = _customer(client)
        empty = client.post("/api/orders", json=_order_payload(ids["pizzeria"], []), headers=headers)
        bad_method = client.post(
            "/api/orders",
            json=_order_payload(
                ids["pizzeria"], [{"menuItemId": ids["margherita"], "quantity": 1}], paymentMethod="bitcoin"
            ),
            headers=headers,
        )
        unknown_restaurant = client.post(
            "/api/orders",
            json=_order_payload(9999, [{"menuItemId": ids["margherita"], "quantity": 1}]),
            headers=headers,
        )

    assert empty.status_code == 400
    assert empty.json()["kind"] == "ValidationError"
    assert bad_method.status_code == 400
    assert unknown_restaurant.status_code == 404
    assert _counts(app.state.session_factory) == (0, 0)


def test_idempotency_key_replays_the_same_order(tmp_path: Path) -> None:
    app = _build_app(tmp_path)

    with TestClient(app) as client:
        ids = _seed_catalog(app.state.session_factory)
        _, headers = _customer(client)
        payload = _order_payload(ids["pizzeria"], [{"menuItemId": ids["margherita"], "quantity": 2}])
        keyed = {**headers, "Idempotency-Key": "checkout-123"}

        first = client.post("/api/orders", json=payload, headers=keyed)
        replay = client.post("/api/orders", json=payload, headers=keyed)
        different_cart = client.post(
            "/api/orders",
            json=_order_payload(ids["pizzeria"], [{"menuItemId": ids["tiramisu"], "quantity": 1}]),
            headers=keyed,
        )
        no_key = client.post("/api/orders", json=payload, headers=headers)

    assert first.status_code == 201
    assert replay.status_code == 200
    assert replay.json()["order"]["id"] == first.json()["order"]["id"]
    assert different_cart.status_code == 409
    assert different_cart.json()["kind"] == "Conflict"
    assert no_key.status_code == 201
    assert no_key.json()["order"]["id"] != first.json()["order"]["id"]
    assert _counts(app.state.session_factory) == (2, 2)


def test_order_persistence_is_all_or_nothing(tmp_path: Path) -> None:
    app = _build_app(tmp_path)

    def _fail_item_insert(mapper, connection, target) -> None:
        raise SQLAlchemyError("simulated write failure")

    with TestClient(app) as client:
        ids = _seed_catalog(app.state.session_factory)
        _, headers = _customer(client)
        event.listen(OrderItem, "before_insert", _fail_item_insert)
        try:
            response = client.post(
                "/api/orders",
                json=_order_payload(
                    ids["pizzeria"],
                    [{"menuItemId": ids["margherita"], "quantity": 1}, {"menuItemId": ids["tiramisu"], "quantity": 1}],
                ),
                headers=headers,
            )
        finally:
            event.remove(OrderItem, "before_insert", _fail_item_insert)

    assert response.status_code == 500
    assert response.json() == {"message": "Internal server error", "kind": "InternalError"}
    assert _counts(app.state.session_factory) == (0, 0)


def test_order_keeps_price_snapshot_after_menu_change(tmp_path: Path) -> None:
    app = _build_app(tmp_path)

    with TestClient(app) as client:
        ids = _seed_catalog(app.state.session_factory)
        _, headers = _customer(client)
        placed = client.post(
            "/api/orders",
            json=_order_payload(ids["pizzeria"], [{"menuItemId": ids["margherita"], "quantity": 1}]),
            headers=headers,
        )
        order_id = placed.json()["order"]["id"]

        with app.state.session_factory() as db:
            db.get(MenuItem, ids["margherita"]).price = Decimal("99.00")
            db.get(Restaurant, ids["pizzeria"]).delivery_fee = Decimal("10.00")
            db.commit()

        fetched = client.get(f"/api/orders/{order_id}", headers=headers)

    assert fetched.status_code == 200
    assert fetched.json()["order"]["total_amount"] == placed.json()["order"]["total_amount"]
    assert Decimal(fetched.json()["items"][0]["price"]) == Decimal("12.99")


def test_customers_only_see_their_own_orders(tmp_path: Path) -> None:
    app = _build_app(tmp_path)

    with TestClient(app) as client:
        ids = _seed_catalog(app.state.session_factory)
        ana_id, ana = _customer(client, "ana")
        bob_id, bob = _customer(client, "bob")
        placed = client.post(
            "/api/orders",
            json=_order_payload(ids["pizzeria"], [{"menuItemId": ids["margherita"], "quantity": 1}]),
            headers=ana,
        )
        order_id = placed.json()["order"]["id"]

        own = client.get(f"/api/orders/{order_id}", headers=ana)
        foreign = client.get(f"/api/orders/{order_id}", headers=bob)
        history = client.get(f"/api/users/{ana_id}/orders", headers=ana)
        foreign_history = client.get(f"/api/users/{ana_id}/orders", headers=bob)
        empty_history = client.get(f"/api/users/{bob_id}/orders", headers=bob)

    assert own.status_code == 200
    assert foreign.status_code == 404
    assert [row["id"] for row in history.json()] == [order_id]
    assert foreign_history.status_code == 403
    assert empty_history.json() == []


def test_checkout_form_payment_names_are_normalized(tmp_path: Path) -> None:
    app = _build_app(tmp_path)

    with TestClient(app) as client:
        ids = _seed_catalog(app.state.session_factory)
        _, headers = _customer(client)
        line = [{"menuItemId": ids["margherita"], "quantity": 1}]
        razorpay = client.post(
            "/api/orders", json=_order_payload(ids["pizzeria"], line, paymentMethod="razorpay"), headers=headers
        )
        cod = client.post("/api/orders", json=_order_payload(ids["pizzeria"], line, paymentMethod="COD"), headers=headers)

    assert razorpay.status_code == 201
    assert razorpay.json()["order"]["payment_method"] == "wallet"
    assert razorpay.json()["payment"]["order_id"] == razorpay.json()["order"]["id"]
    assert cod.status_code == 201
    assert cod.json()["order"]["payment_method"] == "cash_on_delivery"
    assert cod.json()["payment"] is None
    with app.state.session_factory() as db:
        stored = db.scalars(select(Order.payment_method).order_by(Order.id)).all()
    assert stored == ["wallet", "cash_on_delivery"]


def test_zero_total_is_rejected_only_for_upfront_payment(tmp_path: Path) -> None:
    app = _build_app(tmp_path)

    with TestClient(app) as client:
        with app.state.session_factory() as db:
            kiosk = Restaurant(name="Free Samples", cuisine="Snacks", delivery_fee=Decimal("0.00"))
            db.add(kiosk)
            db.flush()
            sample = MenuItem(restaurant_id=kiosk.id, name="Taster", price=Decimal("0.00"), category="Snacks")
            db.add(sample)
            db.commit()
            kiosk_id, sample_id = kiosk.id, sample.id
        _, headers = _customer(client)
        line = [{"menuItemId": sample_id, "quantity": 1}]
        card = client.post("/api/orders", json=_order_payload(kiosk_id, line, paymentMethod="card"), headers=headers)
        counts_after_card = _counts(app.state.session_factory)
        cash = client.post("/api/orders", json=_order_payload(kiosk_id, line), headers=headers)

    assert card.status_code == 400
    assert card.json()["kind"] == "InvalidAmount"
    assert counts_after_card == (0, 0)
    assert cash.status_code == 201
    assert Decimal(cash.json()["order"]["total_amount"]) == Decimal("0.00")
    assert _counts(app.state.session_factory) == (1, 1)
