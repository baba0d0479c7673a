from __future__ import annotations


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"


def test_settings_roundtrip_and_cycle(client):
    res = client.get("/api/settings")
    assert res.status_code == 200
    assert res.json()["cycle_start_day"] == 1

    res = client.put("/api/settings", json={"cycle_start_day": 25})
    assert res.status_code == 200
    assert res.json()["cycle_start_day"] == 25

    cycle = client.get("/api/settings/cycle", params={"date": "2026-01-10"}).json()
    assert cycle == {"start": "2025-12-25", "end": "2026-01-24", "days": 31}


def test_settings_reject_out_of_range_day(client):
    res = client.put("/api/settings", json={"cycle_start_day": 32})
    assert res.status_code == 422


def test_category_crud(client):
    created = client.post("/api/categories", json={"name": "  카페 ", "type": "expense", "icon": "coffee"})
    assert created.status_code == 201
    cat = created.json()
    assert cat["name"] == "카페"

    dup = client.post("/api/categories", json={"name": "카페", "type": "expense"})
    assert dup.status_code == 409

    expenses = client.get("/api/categories", params={"type": "expense"}).json()
    assert any(c["id"] == cat["id"] for c in expenses)
    assert all(c["type"] == "expense" for c in expenses)

    renamed = client.patch(f"/api/categories/{cat['id']}", json={"name": "커피"})
    assert renamed.json()["name"] == "커피"

    assert client.delete(f"/api/categories/{cat['id']}").status_code == 204
    assert client.patch(f"/api/categories/{cat['id']}", json={"name": "x"}).status_code == 404


def test_transaction_crud_and_cycle_filter(client, category_ids):
    client.put("/api/settings", json={"cycle_start_day": 25})
    food = category_ids["식비"]
    for day in ("2025-12-24", "2025-12-25", "2026-01-24", "2026-01-25"):
        res = client.post(
            "/api/transactions",
            json={"amount": 10_000, "type": "expense", "category_id": food, "date": day},
        )
        assert res.status_code == 201

    res = client.get("/api/transactions", params={"cycle_of": "2026-01-10"})
    assert res.status_code == 200
    assert res.headers["X-Total-Count"] == "2"
    assert [t["date"] for t in res.json()] == ["2026-01-24", "2025-12-25"]

    ranged = client.get("/api/transactions", params={"start": "2025-12-24", "end": "2025-12-31"}).json()
    assert len(ranged) == 2

    txn_id = res.json()[0]["id"]
    updated = client.patch(f"/api/transactions/{txn_id}", json={"amount": 12_000, "memo": "점심"})
    assert updated.status_code == 200
    assert updated.json()["amount"] == 12_000
    assert updated.json()["memo"] == "점심"

    assert client.delete(f"/api/transactions/{txn_id}").status_code == 204
    assert client.delete(f"/api/transactions/{txn_id}").status_code == 404


def test_transaction_rejects_foreign_category_and_bad_range(client):
    res = client.post(
        "/api/transactions",
        json={"amount": 1_000, "type": "expense", "category_id": 999_999, "date": "2025-01-01"},
    )
    assert res.status_code == 400

    res = client.get("/api/transactions", params={"start": "2025-02-01", "end": "2025-01-01"})
    assert res.status_code == 400

    res = client.post("/api/transactions", json={"amount": 0, "type": "expense", "date": "2025-01-01"})
    assert res.status_code == 422
