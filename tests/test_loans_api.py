"""
Cart and loan API tests - the borrow flow end to end over HTTP.
"""

import pytest
from httpx import AsyncClient


async def _list_item(client: AsyncClient, headers: dict, **overrides) -> int:
    payload = {
        "name": "Camping stove",
        "description": "Two burner gas stove",
        "daily_price": "10.00",
        "deposit_amount": "40.00",
        **overrides,
    }
    response = await client.post("/api/v1/items", headers=headers, json=payload)
    assert response.status_code == 201
    return response.json()["id"]


async def _borrow(client: AsyncClient, headers: dict, item_id: int, days: int = 3) -> int:
    added = await client.post("/api/v1/cart", headers=headers, json={"item_id": item_id, "days": days})
    assert added.status_code == 200
    report = (await client.post("/api/v1/cart/checkout", headers=headers)).json()
    [result] = report["results"]
    assert result["ok"], result
    return result["loan_id"]


@pytest.mark.asyncio
async def test_cart_endpoints(client: AsyncClient, owner_headers: dict, borrower_headers: dict):
    item_id = await _list_item(client, owner_headers, daily_price="15.00")

    cart = (await client.post("/api/v1/cart", headers=borrower_headers, json={"item_id": item_id})).json()
    [entry] = cart["entries"]
    assert entry["days"] == 3
    assert entry["fee"] == "45.00"
    assert cart["total_deposit"] == "40.00"

    cart = (await client.patch(f"/api/v1/cart/{entry['id']}", headers=borrower_headers, json={"days": 4})).json()
    assert cart["entries"][0]["fee"] == "60.00"
    assert cart["total_fee"] == "60.00"

    cart = (await client.delete(f"/api/v1/cart/{entry['id']}", headers=borrower_headers)).json()
    assert cart["entries"] == []


@pytest.mark.asyncio
async def test_own_item_cannot_be_added(client: AsyncClient, owner_headers: dict):
    item_id = await _list_item(client, owner_headers)
    response = await client.post("/api/v1/cart", headers=owner_headers, json={"item_id": item_id})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_borrow_and_return_flow(
    client: AsyncClient, owner_headers: dict, borrower_headers: dict
):
    item_id = await _list_item(client, owner_headers)
    loan_id = await _borrow(client, borrower_headers, item_id)

    item = (await client.get(f"/api/v1/items/{item_id}", headers=borrower_headers)).json()
    assert item["available_quantity"] == 0

    requests = (await client.get("/api/v1/loans/requests", headers=owner_headers)).json()
    assert [r["id"] for r in requests] == [loan_id]
    assert requests[0]["counterparty"]["display_name"] == "Bruno Borrower"

    forbidden = await client.post(f"/api/v1/loans/{loan_id}/approve", headers=borrower_headers)
    assert forbidden.status_code == 403
    assert forbidden.json()["code"] == "permission_denied"

    approved = await client.post(f"/api/v1/loans/{loan_id}/approve", headers=owner_headers)
    assert approved.status_code == 200
    assert approved.json()["status"] == "approved"

    again = await client.post(f"/api/v1/loans/{loan_id}/approve", headers=owner_headers)
    assert again.status_code == 409
    assert again.json()["code"] == "invalid_transition"

    # Start date is today, so the loan reads as active.
    borrowed = (await client.get("/api/v1/loans/borrowed", headers=borrower_headers)).json()
    assert borrowed[0]["status"] == "active"
    assert borrowed[0]["item"]["name"] == "Camping stove"

    extension = await client.post(
        f"/api/v1/loans/{loan_id}/extension-request", headers=borrower_headers, json={"extra_days": 4}
    )
    assert extension.json()["extension_requested"] is True
    accepted = await client.post(f"/api/v1/loans/{loan_id}/extension/accept", headers=owner_headers)
    assert accepted.json()["rental_fee"] == "70.00"

    requested = await client.post(f"/api/v1/loans/{loan_id}/return-request", headers=borrower_headers)
    assert requested.json()["status"] == "return_requested"

    confirmed = await client.post(
        f"/api/v1/loans/{loan_id}/return-confirm",
        headers=owner_headers,
        json={"deposit_returned": True, "notes": "All good"},
    )
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "returned"

    item = (await client.get(f"/api/v1/items/{item_id}", headers=borrower_headers)).json()
    assert item["available_quantity"] == 1

    lent = (await client.get("/api/v1/loans/lent", headers=owner_headers)).json()
    assert lent[0]["status"] == "returned"


@pytest.mark.asyncio
async def test_second_checkout_reports_out_of_stock(
    client: AsyncClient, owner_headers: dict, borrower_headers: dict, other_headers: dict
):
    item_id = await _list_item(client, owner_headers)
    await client.post("/api/v1/cart", headers=other_headers, json={"item_id": item_id})
    await _borrow(client, borrower_headers, item_id)

    report = (await client.post("/api/v1/cart/checkout", headers=other_headers)).json()
    [result] = report["results"]
    assert result["ok"] is False
    assert result["error_code"] == "out_of_stock"
    cart = (await client.get("/api/v1/cart", headers=other_headers)).json()
    assert len(cart["entries"]) == 1


@pytest.mark.asyncio
async def test_reject_with_reason(client: AsyncClient, owner_headers: dict, borrower_headers: dict):
    item_id = await _list_item(client, owner_headers)
    loan_id = await _borrow(client, borrower_headers, item_id)

    rejected = await client.post(
        f"/api/v1/loans/{loan_id}/reject", headers=owner_headers, json={"reason": "Not available"}
    )
    assert rejected.json()["status"] == "rejected"
    assert rejected.json()["notes"] == "Not available"

    detail = await client.get(f"/api/v1/loans/{loan_id}", headers=borrower_headers)
    assert detail.json()["status"] == "rejected"
    item = (await client.get(f"/api/v1/items/{item_id}", headers=borrower_headers)).json()
    assert item["available_quantity"] == 1


@pytest.mark.asyncio
async def test_rental_lengths_are_bounded(client: AsyncClient, owner_headers: dict, borrower_headers: dict):
    item_id = await _list_item(client, owner_headers)
    too_long = await client.post(
        "/api/v1/cart", headers=borrower_headers, json={"item_id": item_id, "days": 10**7}
    )
    assert too_long.status_code == 422

    cart = (await client.post("/api/v1/cart", headers=borrower_headers, json={"item_id": item_id})).json()
    entry_id = cart["entries"][0]["id"]
    too_long = await client.patch(f"/api/v1/cart/{entry_id}", headers=borrower_headers, json={"days": 10**7})
    assert too_long.status_code == 422

    report = (await client.post("/api/v1/cart/checkout", headers=borrower_headers)).json()
    loan_id = report["results"][0]["loan_id"]
    await client.post(f"/api/v1/loans/{loan_id}/approve", headers=owner_headers)
    too_long = await client.post(
        f"/api/v1/loans/{loan_id}/extension-request", headers=borrower_headers, json={"extra_days": 10**7}
    )
    assert too_long.status_code == 422
