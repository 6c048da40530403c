from decimal import Decimal

import pytest


@pytest.fixture
def bank(client):
    response = client.post("/accounts/", json={
        "name": "TestBank", "starting_balance": "1000.00", "starting_date": "2026-01-01",
    })
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def debtor(client):
    return client.post("/debtors/", json={"name": "TestJohn"}).json()


class TestPostings:
    """Tests for posting through the HTTP surface"""

    def test_root(self, client):
        assert client.get("/").status_code == 200

    def test_expense_then_expected_balance(self, client, bank):
        response = client.post("/expenses/", json={
            "transaction_date": "2026-02-01", "amount": "150.00", "account_id": bank["id"],
        })
        assert response.status_code == 201

        balance = client.get(f"/accounts/{bank['id']}/expected-balance").json()
        assert Decimal(balance["expected_balance"]) == Decimal("850.00")
        assert Decimal(balance["discrepancy"]) == Decimal("150.00")

    def test_expense_with_debt(self, client, bank, debtor):
        response = client.post("/expenses/with-debt", json={
            "expense": {"transaction_date": "2026-02-01", "amount": "90.00", "account_id": bank["id"]},
            "debt": {"transaction_date": "2026-02-01", "amount": "45.00", "debtor_id": debtor["id"]},
        })

        assert response.status_code == 201
        body = response.json()
        assert body["debt"]["expense_id"] == body["expense"]["id"]

        by_debtor = client.get("/debts/by-debtor").json()
        assert Decimal(by_debtor[0]["net_owed"]) == Decimal("45.00")

    def test_incomes_are_paginated(self, client, bank):
        for day in (1, 2, 3):
            client.post("/incomes/", json={
                "transaction_date": f"2026-02-0{day}", "amount": "10.00", "account_id": bank["id"],
            })

        page = client.get("/incomes/", params={"limit": 2}).json()

        assert page["total"] == 3
        assert len(page["items"]) == 2

    def test_income_by_month(self, client, bank):
        for day, amount in (("2026-02-01", "100.00"), ("2026-02-15", "50.00"), ("2026-04-01", "25.00")):
            client.post("/incomes/", json={"transaction_date": day, "amount": amount, "account_id": bank["id"]})

        rows = client.get("/dashboard/income-by-month", params={"year": 2026}).json()

        assert [(row["month"], Decimal(row["total_income"])) for row in rows] == [
            (2, Decimal("150.00")),
            (4, Decimal("25.00")),
        ]
        assert all(row["year"] == 2026 for row in rows)

    def test_snapshot_round_trip(self, client, bank):
        stored = client.post("/net-worth/snapshot", params={"year": 2026, "month": 2})
        assert stored.status_code == 200

        fetched = client.get("/net-worth/2026/2").json()
        assert Decimal(fetched["total_fiat_balance"]) == Decimal("1000.00")


class TestErrorMapping:
    """Ledger errors map onto HTTP status codes"""

    def test_non_positive_amount_is_422(self, client, bank):
        response = client.post("/incomes/", json={
            "transaction_date": "2026-02-01", "amount": "0", "account_id": bank["id"],
        })

        assert response.status_code == 422

    def test_unknown_reference_is_400(self, client, bank):
        response = client.post("/expenses/with-debt", json={
            "expense": {"transaction_date": "2026-02-01", "amount": "90.00", "account_id": bank["id"]},
            "debt": {"transaction_date": "2026-02-01", "amount": "45.00", "debtor_id": 999},
        })

        assert response.status_code == 400
        assert client.get("/expenses/").json()["total"] == 0

    def test_missing_account_is_404(self, client):
        assert client.get("/accounts/999").status_code == 404
        assert client.get("/accounts/999/expected-balance").status_code == 404

    def test_missing_snapshot_is_404(self, client):
        assert client.get("/net-worth/2020/1").status_code == 404

    def test_duplicate_debtor_is_409(self, client, debtor):
        assert client.post("/debtors/", json={"name": "TestJohn"}).status_code == 409

    def test_unknown_account_in_reconcile_is_404(self, client, bank):
        response = client.post("/accounts/reconcile", json={"accounts": [{"id": 999, "balance": "1.00"}]})

        assert response.status_code == 404
        assert Decimal(client.get(f"/accounts/{bank['id']}").json()["balance"]) == Decimal("1000.00")
