import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine

from marketplace.core.config import Settings
from marketplace.core.container import ApplicationContainer
from marketplace.main import create_app

SELLER = {"X-Account-Id": "seller-1"}
BUYER = {"X-Account-Id": "buyer-1"}
ADMIN = {"X-Account-Id": "admin-1", "X-Account-Role": "admin"}


@pytest.fixture
def client(tmp_path):
    settings = Settings(environment="test")
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'api.db'}", connect_args={"timeout": 30})
    app = create_app(ApplicationContainer.build(settings, engine))
    with TestClient(app) as client:
        yield client


def deposit(client, headers, amount_cents, **extra_headers):
    return client.post(
        "/api/wallet/deposits",
        json={"amount_cents": amount_cents},
        headers={**headers, **extra_headers},
    )


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_missing_identity_is_rejected(client):
    assert client.get("/api/wallet").status_code == 401
    assert client.get("/api/wallet", headers={"X-Account-Id": "x", "X-Account-Role": "root"}).status_code == 401


def test_first_contact_creates_empty_wallet(client):
    response = client.get("/api/wallet", headers=BUYER)

    assert response.status_code == 200
    assert response.json() == {"account_id": "buyer-1", "balance_cents": 0, "currency": "EUR"}


def test_deposit_and_history(client):
    assert deposit(client, BUYER, 500).status_code == 201
    response = deposit(client, BUYER, 250)

    assert response.json()["balance_cents"] == 750
    history = client.get("/api/wallet/transactions", headers=BUYER, params={"limit": 1}).json()
    assert [tx["amount_cents"] for tx in history["transactions"]] == [250]
    assert history["limit"] == 1


def test_invalid_deposit_maps_to_422(client):
    response = deposit(client, BUYER, 0)

    assert response.status_code == 422
    assert response.json()["code"] == "invalid_amount"


def test_deposit_replay_via_header(client):
    deposit(client, BUYER, 400, **{"Idempotency-Key": "abc"})
    response = deposit(client, BUYER, 400, **{"Idempotency-Key": "abc"})

    assert response.json()["balance_cents"] == 400


def test_fee_quote(client):
    response = client.get("/api/wallet/fees", params={"price_cents": 50000})

    assert response.json() == {
        "price_cents": 50000,
        "listing_fee_cents": 250,
        "reserve_fee_cents": 20,
        "currency": "EUR",
    }


def test_listing_without_funds_returns_shortfall(client):
    deposit(client, SELLER, 100)

    response = client.post(
        "/api/products",
        json={"name": "Sofa", "price_cents": 100000, "category": "Furniture"},
        headers=SELLER,
    )

    assert response.status_code == 402
    body = response.json()
    assert body["code"] == "insufficient_balance"
    assert body["shortfall_cents"] == 400
    assert client.get("/api/products").json()["products"] == []


def test_invalid_product_is_422(client):
    deposit(client, SELLER, 1000)

    response = client.post("/api/products", json={"price_cents": 1000}, headers=SELLER)

    assert response.status_code == 422
    assert response.json()["code"] == "invalid_product"


def test_list_and_reserve_flow(client):
    deposit(client, SELLER, 1000)
    deposit(client, BUYER, 30)

    created = client.post(
        "/api/products",
        json={"name": "Lamp", "price_cents": 50000, "category": "Home"},
        headers=SELLER,
    )
    assert created.status_code == 201
    product_id = created.json()["id"]
    assert created.json()["listing_fee_cents"] == 250

    own = client.post(f"/api/products/{product_id}/reservation", headers=SELLER)
    assert own.status_code == 409
    assert own.json()["code"] == "self_reservation_not_allowed"

    reserved = client.post(f"/api/products/{product_id}/reservation", headers=BUYER)
    assert reserved.status_code == 200
    assert reserved.json()["reserved_by"] == "buyer-1"
    assert client.get("/api/wallet", headers=BUYER).json()["balance_cents"] == 10

    again = client.post(f"/api/products/{product_id}/reservation", headers={"X-Account-Id": "buyer-2"})
    assert again.status_code == 409
    assert again.json()["code"] == "already_reserved"

    audit = client.get("/api/admin/accounts/seller-1/audit", headers=ADMIN).json()
    assert audit["consistent"] is True
    assert audit["balance_cents"] == 750


def test_missing_product_is_404(client):
    response = client.post("/api/products/nope/reservation", headers=BUYER)

    assert response.status_code == 404
    assert response.json()["code"] == "product_not_found"


def test_only_owner_can_delete_product(client):
    deposit(client, SELLER, 1000)
    product_id = client.post(
        "/api/products",
        json={"name": "Chair", "price_cents": 2000, "category": "Home"},
        headers=SELLER,
    ).json()["id"]

    assert client.delete(f"/api/products/{product_id}", headers=BUYER).status_code == 403
    assert client.delete(f"/api/products/{product_id}", headers=SELLER).status_code == 204
    assert client.get(f"/api/products/{product_id}").status_code == 404


def test_support_escalation_and_admin_takeover(client):
    opened = client.post("/api/support/sessions", json={"language": "en"}, headers=BUYER)
    assert opened.status_code == 201
    session_id = opened.json()["id"]

    answer = client.post(
        f"/api/support/sessions/{session_id}/messages",
        json={"content": "What about shipping?"},
        headers=BUYER,
    ).json()
    assert answer["session"]["status"] == "active"
    assert answer["ticket"] is None

    escalation = client.post(
        f"/api/support/sessions/{session_id}/messages",
        json={"content": "I want to talk to a human"},
        headers=BUYER,
    ).json()
    assert escalation["session"]["status"] == "escalated"
    assert escalation["bot_message"]["message_type"] == "escalation"
    assert escalation["ticket"]["session_id"] == session_id

    queue = client.get("/api/admin/support/sessions", params={"status": "escalated"}, headers=ADMIN).json()
    assert [s["id"] for s in queue["sessions"]] == [session_id]

    reply = client.post(
        f"/api/admin/support/sessions/{session_id}/messages",
        json={"content": "Hi, how can I help?"},
        headers=ADMIN,
    )
    assert reply.status_code == 200
    assert reply.json()["sender_type"] == "admin"
    session = client.get(f"/api/support/sessions/{session_id}", headers=BUYER).json()
    assert session["admin_id"] == "admin-1"

    closed = client.post(f"/api/admin/support/sessions/{session_id}/close", headers=ADMIN)
    assert closed.json()["status"] == "closed"

    late = client.post(
        f"/api/support/sessions/{session_id}/messages",
        json={"content": "one more thing"},
        headers=BUYER,
    )
    assert late.status_code == 409
    assert late.json()["code"] == "session_closed"

    tickets = client.get("/api/admin/support/tickets", params={"user_id": "buyer-1"}, headers=ADMIN).json()
    assert len(tickets["tickets"]) == 1


def test_admin_routes_require_admin_role(client):
    response = client.get("/api/admin/support/sessions", headers=BUYER)

    assert response.status_code == 403


def test_other_users_session_is_hidden(client):
    session_id = client.post("/api/support/sessions", json={}, headers=BUYER).json()["id"]

    response = client.get(f"/api/support/sessions/{session_id}/messages", headers=SELLER)

    assert response.status_code == 404
    assert response.json()["code"] == "session_not_found"
