from decimal import Decimal

import pytest

from app.shared.database.models import Payment


@pytest.fixture
def account(client, admin_headers, customer, make_motorcycle):
    motorcycle = make_motorcycle(state="VENDIDO")
    response = client.post("/api/v1/current-accounts", headers=admin_headers, json={
        "client_id": customer.id,
        "motorcycle_id": motorcycle.id,
        "total_amount": "150000",
        "down_payment": "30000",
        "number_of_installments": 12,
        "payment_frequency": "MONTHLY",
        "interest_rate": "0",
        "start_date": "2025-01-10T00:00:00"
    })
    assert response.status_code == 201
    return response.json()


def pay(client, headers, account_id, amount, **extra):
    return client.post(f"/api/v1/current-accounts/{account_id}/payments", headers=headers,
                       json={"amount_paid": amount, **extra})


class TestCreate:

    def test_down_payment_is_recorded_separately(self, account):
        assert Decimal(account["remaining_amount"]) == Decimal("120000")
        assert Decimal(account["installment_amount"]) == Decimal("10000")
        assert account["status"] == "ACTIVE"
        assert account["paid_installments"] == 0

        down = [p for p in account["payments"] if p["is_down_payment"]]
        assert len(down) == 1
        assert Decimal(down[0]["amount_paid"]) == Decimal("30000")

    def test_down_payment_cannot_exceed_total(self, client, cash_headers, customer, make_motorcycle):
        motorcycle = make_motorcycle()
        response = client.post("/api/v1/current-accounts", headers=cash_headers, json={
            "client_id": customer.id,
            "motorcycle_id": motorcycle.id,
            "total_amount": "1000",
            "down_payment": "2000",
            "number_of_installments": 3,
            "start_date": "2025-01-10T00:00:00"
        })
        assert response.status_code == 422

    def test_cash_manager_opens_account(self, client, cash_headers, customer, make_motorcycle):
        response = client.post("/api/v1/current-accounts", headers=cash_headers, json={
            "client_id": customer.id,
            "motorcycle_id": make_motorcycle(state="VENDIDO").id,
            "total_amount": "60000",
            "number_of_installments": 6,
            "start_date": "2025-01-10T00:00:00"
        })
        assert response.status_code == 201
        assert Decimal(response.json()["installment_amount"]) == Decimal("10000")

    def test_update_ignores_null_on_required_fields(self, client, admin_headers, account):
        response = client.put(f"/api/v1/current-accounts/{account['id']}", headers=admin_headers, json={
            "status": None,
            "payment_frequency": None,
            "notes": "Cobra los viernes"
        })

        assert response.status_code == 200
        assert response.json()["status"] == "ACTIVE"
        assert response.json()["payment_frequency"] == "MONTHLY"
        assert response.json()["notes"] == "Cobra los viernes"

    def test_schedule(self, client, cash_headers, account):
        schedule = client.get(f"/api/v1/current-accounts/{account['id']}/schedule", headers=cash_headers).json()
        assert len(schedule) == 12
        assert Decimal(schedule[0]["installment_amount"]) == Decimal("10000")


class TestPayments:

    def test_regular_payment(self, client, cash_headers, account):
        response = pay(client, cash_headers, account["id"], "10000")

        assert response.status_code == 201
        body = response.json()
        assert body["payment"]["installment_number"] == 1
        assert Decimal(body["payment"]["interest_amount"]) == Decimal(0)
        assert Decimal(body["account"]["remaining_amount"]) == Decimal("110000")
        assert body["account"]["paid_installments"] == 1
        assert body["account"]["next_due_date"].startswith("2025-02-10")

    def test_surplus_recalculates_installment(self, client, cash_headers, account):
        body = pay(client, cash_headers, account["id"], "30000").json()

        assert Decimal(body["account"]["remaining_amount"]) == Decimal("90000")
        assert Decimal(body["account"]["installment_amount"]) == Decimal("8182")
        assert body["account"]["number_of_installments"] == 12

    def test_surplus_reduces_installments(self, client, cash_headers, account):
        body = pay(client, cash_headers, account["id"], "30000", surplus_action="REDUCE_INSTALLMENTS").json()

        assert Decimal(body["account"]["installment_amount"]) == Decimal("10000")
        assert body["account"]["number_of_installments"] == 10
        assert Decimal(body["last_installment_amount"]) == Decimal("10000")

    def test_paying_off_closes_account(self, client, cash_headers, account):
        body = pay(client, cash_headers, account["id"], "120000").json()
        assert body["account"]["status"] == "PAID_OFF"
        assert body["account"]["next_due_date"] is None

        assert pay(client, cash_headers, account["id"], "1").status_code == 400


class TestCancellation:

    def test_cancel_creates_debit_credit_and_pending(self, client, db_session, cash_headers, account):
        payment_id = pay(client, cash_headers, account["id"], "10000").json()["payment"]["id"]

        response = client.post(f"/api/v1/current-accounts/payments/{payment_id}/cancel", headers=cash_headers)
        assert response.status_code == 200
        result = response.json()
        assert Decimal(result["remaining_amount"]) == Decimal("120000")

        rows = db_session.query(Payment).filter(
            Payment.current_account_id == account["id"],
            Payment.installment_number == 1
        ).all()
        versions = sorted((r.installment_version or "-", r.payment_date is None) for r in rows)
        assert versions == [("-", True), ("D", False), ("H", False)]

        # la próxima cobranza completa la cuota pendiente
        body = pay(client, cash_headers, account["id"], "10000").json()
        assert body["payment"]["id"] == result["pending_payment_id"]
        assert body["payment"]["installment_number"] == 1
        assert body["account"]["paid_installments"] == 1

    def test_cancel_restores_only_amortized_amount(self, client, cash_headers, customer, make_motorcycle):
        account = client.post("/api/v1/current-accounts", headers=cash_headers, json={
            "client_id": customer.id,
            "motorcycle_id": make_motorcycle(state="VENDIDO").id,
            "total_amount": "120000",
            "number_of_installments": 12,
            "payment_frequency": "MONTHLY",
            "interest_rate": "24",
            "start_date": "2025-01-10T00:00:00"
        }).json()

        first = pay(client, cash_headers, account["id"], "15000").json()
        balance_after_first = Decimal(first["account"]["remaining_amount"])

        second = pay(client, cash_headers, account["id"], "15000").json()["payment"]
        assert Decimal(second["interest_amount"]) > 0

        response = client.post(f"/api/v1/current-accounts/payments/{second['id']}/cancel", headers=cash_headers)
        assert response.status_code == 200
        assert Decimal(response.json()["remaining_amount"]) == balance_after_first

    def test_cancel_twice_conflicts(self, client, cash_headers, account):
        payment_id = pay(client, cash_headers, account["id"], "10000").json()["payment"]["id"]
        client.post(f"/api/v1/current-accounts/payments/{payment_id}/cancel", headers=cash_headers)

        again = client.post(f"/api/v1/current-accounts/payments/{payment_id}/cancel", headers=cash_headers)
        assert again.status_code == 409

    def test_down_payment_cannot_be_cancelled(self, client, cash_headers, account):
        down_id = [p for p in account["payments"] if p["is_down_payment"]][0]["id"]
        response = client.post(f"/api/v1/current-accounts/payments/{down_id}/cancel", headers=cash_headers)
        assert response.status_code == 400


class TestUndo:

    def test_admin_undoes_payment(self, client, admin_headers, cash_headers, account):
        payment_id = pay(client, cash_headers, account["id"], "10000").json()["payment"]["id"]

        assert client.delete(f"/api/v1/current-accounts/payments/{payment_id}", headers=cash_headers).status_code == 403

        response = client.delete(f"/api/v1/current-accounts/payments/{payment_id}", headers=admin_headers)
        assert response.status_code == 200
        assert Decimal(response.json()["remaining_amount"]) == Decimal("120000")

        detail = client.get(f"/api/v1/current-accounts/{account['id']}", headers=admin_headers).json()
        assert detail["paid_installments"] == 0
