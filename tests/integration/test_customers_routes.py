"""Integration tests for customer onboarding, list filters and the recycle bin."""
from datetime import date

import pytest

from tiffinos.lib.jwt import create_access_token
from tiffinos.models.subscriptions import MealFrequency
from tiffinos.models.vendors import Vendor


@pytest.fixture
def roster(make_customer):
    """
    Four customers as of 15 Mar 2025:
    Amit owes his whole plan, Bhavna's paid-up plan ends within the week,
    Chetan's plan ended in February and Deepa never had one.
    """
    return {
        "amit": make_customer(full_name="Amit Joshi", mobile_number="9800000001"),
        "bhavna": make_customer(
            full_name="Bhavna Kulkarni",
            mobile_number="9800000002",
            plan_amount=2000,
            end_date=date(2025, 3, 20),
            meal_frequency=MealFrequency.TWO_TIMES,
            advance_amount=2000,
        ),
        "chetan": make_customer(
            full_name="Chetan Pawar",
            mobile_number="9800000003",
            plan_amount=2500,
            start_date=date(2025, 2, 1),
            end_date=date(2025, 2, 28),
            advance_amount=2500,
        ),
        "deepa": make_customer(full_name="Deepa Shinde", mobile_number="9800000004", with_subscription=False),
    }


def names(response):
    assert response.status_code == 200
    return [row["full_name"].split()[0] for row in response.json()]


@pytest.mark.integration
def test_create_customer_with_plan_and_advance(client, auth_headers):
    response = client.post(
        "/customers",
        json={
            "full_name": "Rahul Deshmukh",
            "mobile_number": "9822012345",
            "subscription": {
                "start_date": "2025-03-01",
                "end_date": "2025-03-31",
                "plan_amount": 3000,
                "meal_frequency": "two_times",
            },
            "advance_amount": 1000,
            "payment_mode": "upi",
        },
        headers=auth_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["whatsapp_number"] == "9822012345"
    assert data["lunch_meal_type"] == "chapati_bhaji"
    assert data["total_paid"] == 1000
    assert data["pending_amount"] == 2000
    assert data["subscription"]["meal_frequency"] == "two_times"
    assert data["subscription"]["days_left"] == 16
    assert data["subscription"]["can_renew"] is False

    payments = client.get("/payments", params={"customer_id": data["id"]}, headers=auth_headers).json()
    assert [(p["amount"], p["payment_type"], p["payment_mode"]) for p in payments] == [(1000, "advance", "upi")]


@pytest.mark.integration
def test_create_customer_without_plan(client, auth_headers):
    response = client.post(
        "/customers",
        json={"full_name": "Walk Along", "mobile_number": "9822000000"},
        headers=auth_headers,
    )

    assert response.status_code == 201
    assert response.json()["subscription"] is None
    assert response.json()["pending_amount"] == 0
    assert response.json()["can_renew"] is True


@pytest.mark.integration
@pytest.mark.parametrize("payload", [
    {"full_name": "Short", "mobile_number": "12345"},
    {"full_name": "", "mobile_number": "9822012345"},
    {
        "full_name": "Backwards",
        "mobile_number": "9822012345",
        "subscription": {"start_date": "2025-03-31", "end_date": "2025-03-01", "plan_amount": 3000},
    },
])
def test_create_customer_rejects_bad_input(client, auth_headers, payload):
    response = client.post("/customers", json=payload, headers=auth_headers)

    assert response.status_code == 422


@pytest.mark.integration
@pytest.mark.parametrize("flt, expected", [
    ("all", ["Amit", "Bhavna", "Chetan", "Deepa"]),
    ("active", ["Amit", "Bhavna"]),
    ("expired", ["Chetan", "Deepa"]),
    ("expiring", ["Bhavna"]),
    ("pending", ["Amit"]),
    ("clear", ["Bhavna", "Chetan", "Deepa"]),
    ("one_time", ["Amit", "Chetan"]),
    ("two_times", ["Bhavna"]),
])
def test_list_filters(client, auth_headers, roster, flt, expected):
    response = client.get("/customers", params={"filter": flt}, headers=auth_headers)

    assert names(response) == expected


@pytest.mark.integration
def test_list_rows_carry_money_and_renewal(client, auth_headers, roster):
    rows = {row["full_name"]: row for row in client.get("/customers", headers=auth_headers).json()}

    assert rows["Amit Joshi"]["pending_amount"] == 3000
    assert rows["Amit Joshi"]["can_renew"] is False
    assert rows["Bhavna Kulkarni"]["pending_amount"] == 0
    assert rows["Bhavna Kulkarni"]["can_renew"] is True
    assert rows["Deepa Shinde"]["subscription"] is None


@pytest.mark.integration
def test_search_by_name_or_mobile(client, auth_headers, roster):
    assert names(client.get("/customers", params={"search": "bhav"}, headers=auth_headers)) == ["Bhavna"]
    assert names(client.get("/customers", params={"search": "0000003"}, headers=auth_headers)) == ["Chetan"]
    assert names(client.get("/customers", params={"search": "zzz"}, headers=auth_headers)) == []


@pytest.mark.integration
def test_unknown_filter_is_422(client, auth_headers):
    response = client.get("/customers", params={"filter": "vip"}, headers=auth_headers)

    assert response.status_code == 422


@pytest.mark.integration
def test_update_customer(client, auth_headers, make_customer):
    customer = make_customer()

    response = client.put(
        f"/customers/{customer.id}",
        json={"address": "Shivaji Nagar", "dinner_meal_type": "chapati_bhaji"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["address"] == "Shivaji Nagar"
    assert data["dinner_meal_type"] == "chapati_bhaji"
    assert data["full_name"] == "Rahul Deshmukh"


@pytest.mark.integration
def test_recycle_bin_lifecycle(client, auth_headers, make_customer):
    customer = make_customer()
    url = f"/customers/{customer.id}"

    deleted = client.delete(url, headers=auth_headers)
    assert deleted.status_code == 200
    assert deleted.json()["is_active"] is False
    assert deleted.json()["deleted_at"] is not None

    assert client.get(url, headers=auth_headers).status_code == 404
    assert names(client.get("/customers", headers=auth_headers)) == []
    bin_ids = [c["id"] for c in client.get("/customers/deleted", headers=auth_headers).json()]
    assert bin_ids == [str(customer.id)]

    restored = client.post(f"{url}/restore", headers=auth_headers)
    assert restored.status_code == 200
    assert restored.json()["is_active"] is True
    assert restored.json()["deleted_at"] is None
    assert client.get(url, headers=auth_headers).status_code == 200


@pytest.mark.integration
def test_restore_or_purge_active_customer_is_conflict(client, auth_headers, make_customer):
    customer = make_customer()

    restore = client.post(f"/customers/{customer.id}/restore", headers=auth_headers)
    purge = client.delete(f"/customers/{customer.id}/purge", headers=auth_headers)

    assert restore.status_code == 409
    assert restore.json()["details"]["current_state"] == "active"
    assert purge.status_code == 409
    assert purge.json()["details"]["target_state"] == "purged"


@pytest.mark.integration
def test_purge_removes_all_records(client, auth_headers, make_customer):
    customer = make_customer(advance_amount=500)
    client.post(
        "/attendance",
        json={"customer_id": str(customer.id), "attendance_date": "2025-03-10", "lunch_taken": True},
        headers=auth_headers,
    )

    client.delete(f"/customers/{customer.id}", headers=auth_headers)
    response = client.delete(f"/customers/{customer.id}/purge", headers=auth_headers)

    assert response.status_code == 204
    assert client.get("/customers/deleted", headers=auth_headers).json() == []
    assert client.get("/payments", headers=auth_headers).json() == []
    assert client.post(f"/customers/{customer.id}/restore", headers=auth_headers).status_code == 404


@pytest.mark.integration
def test_other_vendors_customers_are_invisible(client, db, make_customer):
    customer = make_customer()
    other = Vendor(mobile_number="9111111111", business_name="Other Mess", onboarding_completed=True)
    db.add(other)
    db.commit()
    headers = {"Authorization": f"Bearer {create_access_token(str(other.id), other.mobile_number)}"}

    assert client.get(f"/customers/{customer.id}", headers=headers).status_code == 404
    assert client.delete(f"/customers/{customer.id}", headers=headers).status_code == 404
    assert client.get("/customers", headers=headers).json() == []
