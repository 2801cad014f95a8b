"""Integration tests for the vendor menu."""
from uuid import uuid4

import pytest


@pytest.mark.integration
def test_list_menu(client, auth_headers, menu):
    response = client.get("/menu", headers=auth_headers)

    assert response.status_code == 200
    items = {item["item_name"]: item for item in response.json()}
    assert set(items) == {"Chapati Bhaji", "Rice Plate", "Lassi"}
    assert items["Rice Plate"]["meal_kind"] == "rice_plate"
    assert items["Lassi"]["category"] == "beverage"


@pytest.mark.integration
def test_prices_fall_back_without_default_items(client, auth_headers):
    response = client.get("/menu/prices", headers=auth_headers)

    assert response.json() == {"chapati_bhaji": 50, "rice_plate": 70}


@pytest.mark.integration
def test_editing_a_default_item_changes_plate_price(client, auth_headers, menu):
    assert client.get("/menu/prices", headers=auth_headers).json() == {"chapati_bhaji": 50, "rice_plate": 70}

    response = client.put(
        f"/menu/{menu['rice_plate'].id}",
        json={"monthly_price": 75, "walk_in_price": 90},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["monthly_price"] == 75
    assert response.json()["item_name"] == "Rice Plate"
    assert client.get("/menu/prices", headers=auth_headers).json() == {"chapati_bhaji": 50, "rice_plate": 75}


@pytest.mark.integration
def test_create_and_delete_item(client, auth_headers, menu):
    created = client.post(
        "/menu",
        json={"item_name": "Poha", "category": "snack", "walk_in_price": 25},
        headers=auth_headers,
    )
    assert created.status_code == 201
    assert created.json()["is_default"] is False
    assert created.json()["is_active"] is True

    item_id = created.json()["id"]
    assert client.delete(f"/menu/{item_id}", headers=auth_headers).status_code == 204
    assert "Poha" not in [item["item_name"] for item in client.get("/menu", headers=auth_headers).json()]
    assert client.put(f"/menu/{item_id}", json={"walk_in_price": 30}, headers=auth_headers).status_code == 404


@pytest.mark.integration
def test_deleting_default_item_restores_fallback_price(client, auth_headers, menu):
    client.put(f"/menu/{menu['chapati_bhaji'].id}", json={"monthly_price": 55}, headers=auth_headers)
    assert client.get("/menu/prices", headers=auth_headers).json()["chapati_bhaji"] == 55

    client.delete(f"/menu/{menu['chapati_bhaji'].id}", headers=auth_headers)

    assert client.get("/menu/prices", headers=auth_headers).json()["chapati_bhaji"] == 50


@pytest.mark.integration
def test_negative_price_rejected(client, auth_headers):
    response = client.post("/menu", json={"item_name": "Tea", "walk_in_price": -5}, headers=auth_headers)

    assert response.status_code == 422


@pytest.mark.integration
def test_unknown_item_is_404(client, auth_headers):
    assert client.delete(f"/menu/{uuid4()}", headers=auth_headers).status_code == 404
