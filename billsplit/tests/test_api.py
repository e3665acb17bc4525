"""
End-to-end API tests: create a bill, add members and items, assign splits,
read the summary.
"""
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi.testclient import TestClient

from billsplit.db.database import get_db
from billsplit.services.auth.jwt_handler import ALGORITHM, SECRET_KEY, get_user_id_from_token
from billsplit.main import app
from billsplit.tests.conftest import OWNER_ID, FRIEND_ID, STRANGER_ID, auth_headers


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def create_bill(client, **overrides):
    payload = {"title": "Dinner", "vat_rate": 7, "service_charge_rate": 10, "owner_name": "Ann"}
    payload.update(overrides)
    response = client.post("/bills/", json=payload, headers=auth_headers(OWNER_ID))
    assert response.status_code == 200
    return response.json()


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_requires_token(client):
    response = client.get("/bills/")
    assert response.status_code == 422

    response = client.get("/bills/", headers={"access-token": "not-a-jwt"})
    assert response.status_code == 401


def test_full_flow(client):
    bill = create_bill(client)
    assert len(bill["members"]) == 1
    owner_member_id = bill["members"][0]["id"]

    joined = client.post(
        "/bill-members/join",
        json={"join_code": bill["join_code"].lower(), "name": "Ben"},
        headers=auth_headers(FRIEND_ID),
    ).json()
    assert joined["message"] == "Joined successfully"
    friend_member_id = joined["member"]["id"]

    item = client.post(
        "/bill-items/",
        json={"bill_id": bill["id"], "name": "Pizza", "price": 50, "quantity": 2},
        headers=auth_headers(FRIEND_ID),
    ).json()
    assert float(item["total_price"]) == 100

    response = client.post(
        "/splits/assign",
        json={"item_id": item["id"], "splits": [
            {"member_id": owner_member_id, "weight": 1},
            {"member_id": friend_member_id, "weight": 1},
        ]},
        headers=auth_headers(OWNER_ID),
    )
    assert response.status_code == 200
    assert response.json()["count"] == 2

    splits = client.get(f"/splits/{item['id']}", headers=auth_headers(FRIEND_ID)).json()
    assert {s["member"]["name"] for s in splits} == {"Ann", "Ben"}

    summary = client.get(f"/bills/{bill['id']}/summary", headers=auth_headers(FRIEND_ID)).json()
    assert float(summary["grand_total"]) == pytest.approx(117.70)
    assert {m["name"]: float(m["net_amount"]) for m in summary["members"]} == {
        "Ann": pytest.approx(58.85), "Ben": pytest.approx(58.85)
    }
    assert summary["status"] == "DRAFT"


def test_patch_bill_with_null_rate(client):
    bill = create_bill(client)

    response = client.patch(
        f"/bills/{bill['id']}", json={"vat_rate": None, "title": "Brunch"}, headers=auth_headers(OWNER_ID)
    )

    assert response.status_code == 200
    assert float(response.json()["vat_rate"]) == 7
    assert response.json()["title"] == "Brunch"


def test_item_price_limited_to_cents(client):
    bill = create_bill(client)

    response = client.post(
        "/bill-items/",
        json={"bill_id": bill["id"], "name": "Gum", "price": "0.333", "quantity": 3},
        headers=auth_headers(OWNER_ID),
    )
    assert response.status_code == 422

    item = client.post(
        "/bill-items/",
        json={"bill_id": bill["id"], "name": "Gum", "price": "0.33", "quantity": 3},
        headers=auth_headers(OWNER_ID),
    ).json()
    assert float(item["price"]) == 0.33
    assert float(item["total_price"]) == 0.99


def test_assign_foreign_member_rejected(client):
    bill = create_bill(client)
    other = create_bill(client, title="Other")
    item = client.post(
        "/bill-items/",
        json={"bill_id": bill["id"], "name": "Pizza", "price": 100},
        headers=auth_headers(OWNER_ID),
    ).json()

    response = client.post(
        "/splits/assign",
        json={"item_id": item["id"], "splits": [{"member_id": other["members"][0]["id"]}]},
        headers=auth_headers(OWNER_ID),
    )
    assert response.status_code == 400
    assert "not in this bill" in response.json()["detail"]


def test_deleted_bill_summary_not_found(client):
    bill = create_bill(client)
    response = client.delete(f"/bills/{bill['id']}", headers=auth_headers(OWNER_ID))
    assert response.status_code == 200

    response = client.get(f"/bills/{bill['id']}/summary", headers=auth_headers(OWNER_ID))
    assert response.status_code == 404


def test_stranger_cannot_read_summary(client):
    bill = create_bill(client)
    response = client.get(f"/bills/{bill['id']}/summary", headers=auth_headers(STRANGER_ID))
    assert response.status_code == 403


def test_close_bill_with_bank_account(client):
    client.post(
        "/bank-accounts/",
        json={"bank_name": "KBANK", "account_number": "0812345678", "account_name": "Ann"},
        headers=auth_headers(OWNER_ID),
    )
    bill = create_bill(client)

    closed = client.patch(f"/bills/{bill['id']}/close", headers=auth_headers(OWNER_ID)).json()

    assert closed["status"] == "COMPLETED"
    assert closed["prompt_pay_number"] == "0812345678"


def test_expired_token_rejected(client):
    expired = jwt.encode(
        {"user_id": OWNER_ID, "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
        SECRET_KEY, algorithm=ALGORITHM,
    )

    assert get_user_id_from_token(expired) is None
    assert client.get("/bills/", headers={"access-token": expired}).status_code == 401
