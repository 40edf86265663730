import uuid

import pytest

import config

RESOURCES = {
    "/api/accounts": lambda account_id: {
        "name": "Savings", "type": "wallet", "balance": 250.5, "currency": "IDR"
    },
    "/api/pockets": lambda account_id: {
        "account_id": account_id, "name": "Emergency", "balance": 40, "percentage_allocation": 25
    },
    "/api/transactions": lambda account_id: {
        "account_id": account_id, "type": "expense", "category": "Food",
        "amount": 12.5, "description": "lunch", "transaction_date": "2024-01-15"
    },
    "/api/budgets": lambda account_id: {
        "category": "Food", "amount": 300, "period": "monthly",
        "start_date": "2024-01-01", "end_date": "2024-01-31"
    },
    "/api/credit-cards": lambda account_id: {
        "card_name": "Visa Gold", "last_four_digits": "4242", "credit_limit": 5000,
        "current_balance": 120, "billing_date": 5, "payment_due_date": 20
    },
    "/api/investments": lambda account_id: {
        "investment_type": "stock", "name": "BBCA", "purchase_value": 1000,
        "current_value": 1100, "quantity": 10, "purchase_date": "2023-06-01"
    },
    "/api/gold/assets": lambda account_id: {
        "name": "Bar", "gold_type": "antam", "weight_gram": 5,
        "purchase_price_per_gram": 1000000, "purchase_date": "2023-06-01",
        "storage_location": "safe", "notes": "birthday"
    },
}

paths = pytest.mark.parametrize("path", list(RESOURCES))


@paths
def test_create_then_get_round_trips(client, alice, account_id, path):
    payload = RESOURCES[path](account_id)
    created = client.post(path, json=payload, headers=alice)
    assert created.status_code == 201, created.text
    body = created.json()
    assert body["id"] and body["created_at"] and body["updated_at"]

    fetched = client.get(f"{path}/{body['id']}", headers=alice)
    assert fetched.status_code == 200
    for key, value in payload.items():
        assert fetched.json()[key] == value


@paths
def test_list_is_empty_for_new_user(client, bob, path):
    r = client.get(path, headers=bob)
    assert r.status_code == 200
    assert r.json() == []


@paths
def test_list_is_scoped_and_newest_first(client, alice, bob, account_id, path):
    first = client.post(path, json=RESOURCES[path](account_id), headers=alice).json()
    second = client.post(path, json=RESOURCES[path](account_id), headers=alice).json()

    ids = [row["id"] for row in client.get(path, headers=alice).json()]
    assert ids.index(second["id"]) < ids.index(first["id"])
    assert client.get(path, headers=bob).json() == []


@paths
def test_foreign_row_is_forbidden_and_missing_row_not_found(client, alice, bob, account_id, path):
    row = client.post(path, json=RESOURCES[path](account_id), headers=alice).json()

    foreign = client.get(f"{path}/{row['id']}", headers=bob)
    assert foreign.status_code == 403
    assert foreign.json() == {"error": "Access denied"}

    missing = client.get(f"{path}/{uuid.uuid4()}", headers=bob)
    assert missing.status_code == 404

    assert client.delete(f"{path}/{row['id']}", headers=bob).status_code == 403
    assert client.get(f"{path}/{row['id']}", headers=alice).status_code == 200


@paths
def test_malformed_id_is_bad_request(client, alice, path):
    r = client.get(f"{path}/not-a-uuid", headers=alice)
    assert r.status_code == 400
    assert "Invalid" in r.json()["error"]


@paths
def test_delete(client, alice, account_id, path):
    row = client.post(path, json=RESOURCES[path](account_id), headers=alice).json()

    r = client.delete(f"{path}/{row['id']}", headers=alice)
    assert r.status_code == 200
    assert r.json()["message"].endswith("deleted successfully")
    assert client.get(f"{path}/{row['id']}", headers=alice).status_code == 404


@pytest.mark.parametrize("path,field,value", [
    ("/api/budgets", "amount", -5),
    ("/api/budgets", "start_date", "2024-13-01"),
    ("/api/transactions", "amount", 0),
    ("/api/credit-cards", "last_four_digits", "42"),
    ("/api/credit-cards", "billing_date", 32),
    ("/api/accounts", "type", "piggy_bank"),
    ("/api/investments", "purchase_date", "01/06/2023"),
])
def test_invalid_payload_is_bad_request(client, alice, account_id, path, field, value):
    payload = RESOURCES[path](account_id)
    payload[field] = value
    r = client.post(path, json=payload, headers=alice)
    assert r.status_code == 400
    assert field in r.json()["error"]


def test_budget_end_before_start_rejected(client, alice):
    r = client.post("/api/budgets", json={
        "category": "Food", "amount": 10, "start_date": "2024-02-01", "end_date": "2024-01-01"
    }, headers=alice)
    assert r.status_code == 400


class TestAccountReferences:
    def test_pocket_on_foreign_account_is_forbidden(self, client, bob, account_id):
        r = client.post("/api/pockets", json={
            "account_id": account_id, "name": "Sneaky", "percentage_allocation": 10
        }, headers=bob)
        assert r.status_code == 403

    def test_transaction_on_missing_account_not_found(self, client, alice):
        r = client.post("/api/transactions", json={
            "account_id": str(uuid.uuid4()), "type": "income", "category": "Salary",
            "amount": 10, "transaction_date": "2024-01-01"
        }, headers=alice)
        assert r.status_code == 404
        assert r.json() == {"error": "Account not found"}

    def test_pocket_on_missing_account_not_found(self, client, alice):
        r = client.post("/api/pockets", json={
            "account_id": str(uuid.uuid4()), "name": "Orphan", "percentage_allocation": 10
        }, headers=alice)
        assert r.status_code == 404
        assert r.json() == {"error": "Account not found"}

    def test_transaction_on_foreign_account_is_forbidden(self, client, bob, account_id):
        r = client.post("/api/transactions", json={
            "account_id": account_id, "type": "expense", "category": "Food",
            "amount": 10, "transaction_date": "2024-01-01"
        }, headers=bob)
        assert r.status_code == 403
        assert r.json() == {"error": "Access denied"}

    def test_deleting_account_removes_pockets_and_transactions(self, client, alice, account_id):
        pocket = client.post("/api/pockets", json=RESOURCES["/api/pockets"](account_id), headers=alice).json()
        txn = client.post("/api/transactions", json=RESOURCES["/api/transactions"](account_id), headers=alice).json()

        assert client.delete(f"/api/accounts/{account_id}", headers=alice).status_code == 200

        assert client.get(f"/api/pockets/{pocket['id']}", headers=alice).status_code == 404
        assert client.get(f"/api/transactions/{txn['id']}", headers=alice).status_code == 404


class TestPocketAllocation:
    def pocket(self, account_id, pct):
        return {"account_id": account_id, "name": f"p{pct}", "percentage_allocation": pct}

    def test_no_policy_allows_over_allocation(self, client, alice, account_id):
        assert client.post("/api/pockets", json=self.pocket(account_id, 80), headers=alice).status_code == 201
        assert client.post("/api/pockets", json=self.pocket(account_id, 80), headers=alice).status_code == 201

    def test_cap_policy_limits_to_hundred(self, client, alice, account_id, monkeypatch):
        monkeypatch.setattr(config, "POCKET_ALLOCATION_POLICY", "cap")
        assert client.post("/api/pockets", json=self.pocket(account_id, 60), headers=alice).status_code == 201
        assert client.post("/api/pockets", json=self.pocket(account_id, 40), headers=alice).status_code == 201

        r = client.post("/api/pockets", json=self.pocket(account_id, 1), headers=alice)
        assert r.status_code == 400
        assert "exceeds 100%" in r.json()["error"]


class TestInvestmentUpdate:
    def test_patch_updates_narrow_fields(self, client, alice, account_id):
        row = client.post("/api/investments", json=RESOURCES["/api/investments"](account_id), headers=alice).json()

        r = client.patch(f"/api/investments/{row['id']}", json={"current_value": 1500}, headers=alice)
        assert r.status_code == 200
        assert r.json()["current_value"] == 1500
        assert r.json()["purchase_value"] == 1000

    def test_empty_patch_rejected(self, client, alice, account_id):
        row = client.post("/api/investments", json=RESOURCES["/api/investments"](account_id), headers=alice).json()
        r = client.patch(f"/api/investments/{row['id']}", json={}, headers=alice)
        assert r.status_code == 400

    def test_patch_foreign_forbidden(self, client, alice, bob, account_id):
        row = client.post("/api/investments", json=RESOURCES["/api/investments"](account_id), headers=alice).json()
        r = client.patch(f"/api/investments/{row['id']}", json={"quantity": 1}, headers=bob)
        assert r.status_code == 403


@paths
def test_delete_with_malformed_id_is_bad_request(client, alice, path):
    r = client.delete(f"{path}/not-a-uuid", headers=alice)
    assert r.status_code == 400
    assert "Invalid" in r.json()["error"]
