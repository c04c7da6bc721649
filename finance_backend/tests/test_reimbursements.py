"""
Tests for reimbursement submission, visibility and detail edits.
"""

import pytest


@pytest.mark.asyncio
async def test_employee_submits_under_own_name(client, employee_headers, reimbursement_payload):
    response = await client.post(
        "/v1/reimbursements", json=reimbursement_payload(requestor_name="Orang Lain"), headers=employee_headers
    )

    assert response.status_code == 201
    assert response.json()["requestorName"] == "Budi"
    assert response.json()["status"] == "PENDING"


@pytest.mark.asyncio
async def test_employee_sees_only_own_requests(client, admin_headers, employee_headers, reimbursement_payload):
    await client.post("/v1/reimbursements", json=reimbursement_payload("R1"), headers=employee_headers)
    await client.post(
        "/v1/reimbursements", json=reimbursement_payload("R2", requestor_name="Sari"), headers=admin_headers
    )

    response = await client.get("/v1/reimbursements", headers=employee_headers)
    assert [r["id"] for r in response.json()] == ["R1"]

    response = await client.get("/v1/reimbursements/R2", headers=employee_headers)
    assert response.status_code == 404

    response = await client.get("/v1/reimbursements", headers=admin_headers)
    assert {r["id"] for r in response.json()} == {"R1", "R2"}


@pytest.mark.asyncio
async def test_listing_newest_first(client, admin_headers, reimbursement_payload):
    for reimbursement_id, date in (("R1", "2024-03-01"), ("R2", "2024-03-10"), ("R3", "2024-03-01")):
        body = reimbursement_payload(reimbursement_id)
        body["date"] = date
        await client.post("/v1/reimbursements", json=body, headers=admin_headers)

    response = await client.get("/v1/reimbursements", headers=admin_headers)

    # Same date: the later submission comes first
    assert [r["id"] for r in response.json()] == ["R2", "R3", "R1"]


@pytest.mark.asyncio
async def test_duplicate_id_conflicts(client, admin_headers, reimbursement_payload):
    await client.post("/v1/reimbursements", json=reimbursement_payload(), headers=admin_headers)

    response = await client.post("/v1/reimbursements", json=reimbursement_payload(), headers=admin_headers)

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_update_details_keeps_status(client, admin_headers, reimbursement_payload):
    await client.post("/v1/reimbursements", json=reimbursement_payload(), headers=admin_headers)
    await client.put(
        "/v1/reimbursements/R1/status",
        json={"status": "PROSES", "transferProofUrl": "https://files.example.com/x.jpg"},
        headers=admin_headers,
    )

    body = reimbursement_payload(
        description="Transport revisi",
        items=[
            {"id": "R1-I2", "name": "Parkir", "qty": 1, "price": 20000, "total": 20000},
            {"id": "R1-I1", "name": "Taxi", "qty": 1, "price": 80000, "total": 80000},
        ],
    )
    body.pop("id")
    response = await client.put("/v1/reimbursements/R1/details", json=body, headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "PROSES"
    assert data["transferProofUrl"] == "https://files.example.com/x.jpg"
    assert data["description"] == "Transport revisi"
    assert data["grandTotal"] == 100000
    assert [item["id"] for item in data["items"]] == ["R1-I2", "R1-I1"]


@pytest.mark.asyncio
async def test_update_details_unknown_id(client, admin_headers, reimbursement_payload):
    body = reimbursement_payload()
    body.pop("id")

    response = await client.put("/v1/reimbursements/NOPE/details", json=body, headers=admin_headers)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_reimbursement_keeps_posted_entry(client, admin_headers, reimbursement_payload):
    await client.post("/v1/reimbursements", json=reimbursement_payload(), headers=admin_headers)
    await client.put("/v1/reimbursements/R1/status", json={"status": "BERHASIL"}, headers=admin_headers)

    response = await client.delete("/v1/reimbursements/R1", headers=admin_headers)
    assert response.status_code == 204

    response = await client.get("/v1/reimbursements/R1", headers=admin_headers)
    assert response.status_code == 404
    response = await client.get("/v1/transactions/R1", headers=admin_headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_employee_cannot_delete(client, employee_headers, reimbursement_payload):
    await client.post("/v1/reimbursements", json=reimbursement_payload(), headers=employee_headers)

    response = await client.delete("/v1/reimbursements/R1", headers=employee_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_item_quantity_must_not_be_negative(client, admin_headers, reimbursement_payload):
    body = reimbursement_payload(items=[{"id": "X", "name": "Taxi", "qty": -1, "price": 1000, "total": 1000}])

    response = await client.post("/v1/reimbursements", json=body, headers=admin_headers)

    assert response.status_code == 422
