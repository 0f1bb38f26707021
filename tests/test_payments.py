from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.modules.payments import promotions
from app.shared.database.models import PaymentMethod


@pytest.fixture
def credit_method(db_session):
    method = PaymentMethod(name="Tarjeta de crédito", type="card")
    db_session.add(method)
    db_session.commit()
    db_session.refresh(method)
    return method


@pytest.fixture
def cash_method(db_session):
    method = PaymentMethod(name="Efectivo", type="cash")
    db_session.add(method)
    db_session.commit()
    db_session.refresh(method)
    return method


def promotion_payload(method, **overrides):
    payload = {
        "name": "Jueves 10% off",
        "payment_method_id": method.id,
        "discount_rate": "10",
        "active_days": ["Jueves"],
        "installment_plans": [
            {"installments": 3, "interest_rate": "0"},
            {"installments": 6, "interest_rate": "12"}
        ]
    }
    payload.update(overrides)
    return payload


def fake_promotion(discount=None, surcharge=None, plans=()):
    return SimpleNamespace(
        discount_rate=discount,
        surcharge_rate=surcharge,
        installment_plans=[
            SimpleNamespace(installments=n, interest_rate=Decimal(rate), is_enabled=enabled)
            for n, rate, enabled in plans
        ]
    )


class TestCalculator:

    def test_discount_then_plan_interest(self):
        result = promotions.calculate(Decimal("100000"), fake_promotion(discount=Decimal("10"),
                                                                       plans=[(6, "12", True)]), 6)
        assert result["discount_amount"] == Decimal("10000.00")
        assert result["total_interest"] == Decimal("10800.00")
        assert result["final_amount"] == Decimal("100800.00")
        assert result["installment_amount"] == Decimal("16800.00")
        assert result["installments"] == 6

    def test_discount_takes_priority_over_surcharge(self):
        result = promotions.calculate(Decimal("1000"), fake_promotion(discount=Decimal("5"), surcharge=Decimal("20")))
        assert result["final_amount"] == Decimal("950.00")
        assert result["surcharge_amount"] is None

    def test_surcharge(self):
        result = promotions.calculate(Decimal("1000"), fake_promotion(surcharge=Decimal("5")))
        assert result["surcharge_amount"] == Decimal("50.00")
        assert result["final_amount"] == Decimal("1050.00")

    def test_disabled_plan_is_ignored(self):
        result = promotions.calculate(Decimal("1000"), fake_promotion(plans=[(12, "30", False)]), 12)
        assert result["final_amount"] == Decimal("1000.00")
        assert result["total_interest"] is None
        assert result["installments"] is None

    def test_day_names(self):
        assert promotions.canonical_day("MIERCOLES") == "miércoles"
        assert promotions.canonical_day("sabado") == "sábado"
        assert promotions.canonical_day("someday") is None
        assert promotions.day_name(date(2025, 1, 2)) == "jueves"

    def test_promotion_without_days_applies_every_day(self):
        every_day = SimpleNamespace(active_days=[])
        thursdays = SimpleNamespace(active_days=["jueves"])
        assert promotions.filter_by_day([every_day, thursdays], "lunes") == [every_day]


class TestPaymentMethods:

    def test_enable_and_reorder(self, client, admin_headers, credit_method, cash_method):
        catalogue = client.get("/api/v1/payments/methods", headers=admin_headers).json()
        assert {m["name"] for m in catalogue} == {"Tarjeta de crédito", "Efectivo"}

        for method in (credit_method, cash_method):
            response = client.patch(f"/api/v1/payments/methods/{method.id}", headers=admin_headers,
                                    json={"is_enabled": True})
            assert response.status_code == 200

        reordered = client.put("/api/v1/payments/methods/reorder", headers=admin_headers,
                               json={"ids": [cash_method.id, credit_method.id]})
        assert reordered.status_code == 200
        assert [m["payment_method_id"] for m in reordered.json()] == [cash_method.id, credit_method.id]

    def test_reorder_must_include_every_method(self, client, admin_headers, credit_method, cash_method):
        client.patch(f"/api/v1/payments/methods/{credit_method.id}", headers=admin_headers, json={"is_enabled": True})
        client.patch(f"/api/v1/payments/methods/{cash_method.id}", headers=admin_headers, json={"is_enabled": True})

        response = client.put("/api/v1/payments/methods/reorder", headers=admin_headers,
                              json={"ids": [cash_method.id]})
        assert response.status_code == 400


class TestBankCards:

    def test_bank_card_lifecycle(self, client, admin_headers, credit_method):
        bank = client.post("/api/v1/payments/banks", headers=admin_headers, json={"name": "Banco Nación"}).json()
        card = client.post("/api/v1/payments/card-types", headers=admin_headers,
                           json={"name": "Visa", "type": "credit"}).json()

        created = client.post("/api/v1/payments/bank-cards", headers=admin_headers,
                              json={"bank_id": bank["id"], "card_type_id": card["id"]})
        assert created.status_code == 201
        bank_card_id = created.json()["id"]

        duplicate = client.post("/api/v1/payments/bank-cards", headers=admin_headers,
                                json={"bank_id": bank["id"], "card_type_id": card["id"]})
        assert duplicate.status_code == 409

        toggled = client.patch(f"/api/v1/payments/bank-cards/{bank_card_id}/toggle", headers=admin_headers)
        assert toggled.json()["is_enabled"] is False

        client.post("/api/v1/payments/promotions", headers=admin_headers,
                    json=promotion_payload(credit_method, bank_card_id=bank_card_id))
        in_use = client.delete(f"/api/v1/payments/bank-cards/{bank_card_id}", headers=admin_headers)
        assert in_use.status_code == 400

    def test_duplicate_bank(self, client, admin_headers):
        client.post("/api/v1/payments/banks", headers=admin_headers, json={"name": "Galicia"})
        response = client.post("/api/v1/payments/banks", headers=admin_headers, json={"name": "Galicia"})
        assert response.status_code == 409


class TestPromotions:

    def test_create_and_filter_by_day(self, client, admin_headers, seller_headers, credit_method):
        created = client.post("/api/v1/payments/promotions", headers=admin_headers,
                              json=promotion_payload(credit_method, active_days=["jueves", "Jueves", "viernes"]))
        assert created.status_code == 201
        assert created.json()["active_days"] == ["jueves", "viernes"]
        assert [p["installments"] for p in created.json()["installment_plans"]] == [3, 6]

        client.post("/api/v1/payments/promotions", headers=admin_headers,
                    json=promotion_payload(credit_method, name="Todos los días", active_days=[]))

        thursday = client.get("/api/v1/payments/promotions/enabled", headers=seller_headers,
                              params={"day": "jueves"}).json()
        assert len(thursday) == 2

        monday = client.get("/api/v1/payments/promotions/enabled", headers=seller_headers,
                            params={"day": "lunes"}).json()
        assert [p["name"] for p in monday] == ["Todos los días"]

    def test_invalid_day(self, client, admin_headers, seller_headers, credit_method):
        response = client.post("/api/v1/payments/promotions", headers=admin_headers,
                               json=promotion_payload(credit_method, active_days=["funday"]))
        assert response.status_code == 422

        response = client.get("/api/v1/payments/promotions/enabled", headers=seller_headers,
                              params={"day": "funday"})
        assert response.status_code == 400

    def test_repeated_plans_are_rejected(self, client, admin_headers, credit_method):
        response = client.post("/api/v1/payments/promotions", headers=admin_headers, json=promotion_payload(
            credit_method,
            installment_plans=[{"installments": 3}, {"installments": 3}]
        ))
        assert response.status_code == 400

    def test_disabled_promotion_is_not_listed_as_enabled(self, client, admin_headers, credit_method):
        promotion = client.post("/api/v1/payments/promotions", headers=admin_headers,
                                json=promotion_payload(credit_method, active_days=[])).json()

        toggled = client.patch(f"/api/v1/payments/promotions/{promotion['id']}/toggle", headers=admin_headers)
        assert toggled.json()["is_enabled"] is False

        enabled = client.get("/api/v1/payments/promotions/enabled", headers=admin_headers,
                             params={"day": "martes"}).json()
        assert enabled == []

    def test_calculate_endpoint(self, client, admin_headers, seller_headers, credit_method):
        promotion = client.post("/api/v1/payments/promotions", headers=admin_headers,
                                json=promotion_payload(credit_method)).json()

        result = client.post("/api/v1/payments/promotions/calculate", headers=seller_headers, json={
            "amount": "100000",
            "promotion_id": promotion["id"],
            "installments": 6
        })
        assert result.status_code == 200
        assert Decimal(result.json()["final_amount"]) == Decimal("100800")

    def test_plan_toggle_changes_calculation(self, client, admin_headers, credit_method):
        promotion = client.post("/api/v1/payments/promotions", headers=admin_headers,
                                json=promotion_payload(credit_method)).json()
        plan_id = [p["id"] for p in promotion["installment_plans"] if p["installments"] == 6][0]

        client.patch(f"/api/v1/payments/promotions/{promotion['id']}/plans/{plan_id}/toggle", headers=admin_headers)

        result = client.post("/api/v1/payments/promotions/calculate", headers=admin_headers, json={
            "amount": "100000",
            "promotion_id": promotion["id"],
            "installments": 6
        }).json()
        assert Decimal(result["final_amount"]) == Decimal("90000")

    def test_update_replaces_plans(self, client, admin_headers, credit_method):
        promotion = client.post("/api/v1/payments/promotions", headers=admin_headers,
                                json=promotion_payload(credit_method)).json()

        updated = client.put(f"/api/v1/payments/promotions/{promotion['id']}", headers=admin_headers,
                             json=promotion_payload(credit_method, installment_plans=[{"installments": 12}]))
        assert updated.status_code == 200
        assert [p["installments"] for p in updated.json()["installment_plans"]] == [12]

    def test_delete_promotion(self, client, admin_headers, credit_method):
        promotion = client.post("/api/v1/payments/promotions", headers=admin_headers,
                                json=promotion_payload(credit_method)).json()

        response = client.delete(f"/api/v1/payments/promotions/{promotion['id']}", headers=admin_headers)
        assert response.status_code == 200

        assert client.get(f"/api/v1/payments/promotions/{promotion['id']}", headers=admin_headers).status_code == 404
        assert client.get("/api/v1/payments/promotions", headers=admin_headers).json() == []

    def test_seller_cannot_delete_promotion(self, client, admin_headers, seller_headers, credit_method):
        promotion = client.post("/api/v1/payments/promotions", headers=admin_headers,
                                json=promotion_payload(credit_method)).json()
        response = client.delete(f"/api/v1/payments/promotions/{promotion['id']}", headers=seller_headers)
        assert response.status_code == 403


class TestBankCardDeletion:

    def test_delete_bank_card_once_unused(self, client, admin_headers, credit_method):
        bank = client.post("/api/v1/payments/banks", headers=admin_headers, json={"name": "Macro"}).json()
        card = client.post("/api/v1/payments/card-types", headers=admin_headers,
                           json={"name": "Mastercard", "type": "credit"}).json()
        bank_card_id = client.post("/api/v1/payments/bank-cards", headers=admin_headers,
                                   json={"bank_id": bank["id"], "card_type_id": card["id"]}).json()["id"]
        promotion = client.post("/api/v1/payments/promotions", headers=admin_headers,
                                json=promotion_payload(credit_method, bank_card_id=bank_card_id)).json()

        assert client.delete(f"/api/v1/payments/bank-cards/{bank_card_id}", headers=admin_headers).status_code == 400

        client.delete(f"/api/v1/payments/promotions/{promotion['id']}", headers=admin_headers)
        response = client.delete(f"/api/v1/payments/bank-cards/{bank_card_id}", headers=admin_headers)
        assert response.status_code == 200
        assert client.get("/api/v1/payments/bank-cards", headers=admin_headers).json() == []

    def test_unknown_bank_card(self, client, admin_headers):
        response = client.delete("/api/v1/payments/bank-cards/9999", headers=admin_headers)
        assert response.status_code == 404
