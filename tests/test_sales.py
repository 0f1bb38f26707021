from decimal import Decimal

import pytest

from app.shared.database.models import Motorcycle, CurrentAccount, PaymentMethod


def reserve(client, headers, motorcycle, customer, amount="200000"):
    return client.post("/api/v1/sales/reservations", headers=headers, json={
        "motorcycle_id": motorcycle.id,
        "client_id": customer.id,
        "amount": amount,
        "payment_method": "efectivo"
    })


def sell(client, headers, motorcycle, customer, **extra):
    payload = {
        "motorcycle_id": motorcycle.id,
        "client_id": customer.id,
        "sale_price": "1000000",
        "payment_method": "efectivo"
    }
    payload.update(extra)
    return client.post("/api/v1/sales", headers=headers, json=payload)


def state_of(db_session, motorcycle):
    db_session.expire_all()
    return db_session.get(Motorcycle, motorcycle.id)


class TestReservations:

    def test_reserve_and_cancel(self, client, db_session, seller_headers, customer, make_motorcycle):
        motorcycle = make_motorcycle()

        response = reserve(client, seller_headers, motorcycle, customer)
        assert response.status_code == 201
        assert response.json()["status"] == "active"
        assert state_of(db_session, motorcycle).state == "RESERVADO"
        assert state_of(db_session, motorcycle).client_id == customer.id

        cancelled = client.post(f"/api/v1/sales/reservations/{response.json()['id']}/cancel",
                                headers=seller_headers)
        assert cancelled.status_code == 200
        assert cancelled.json()["motorcycle_state"] == "STOCK"
        assert state_of(db_session, motorcycle).client_id is None

        again = client.post(f"/api/v1/sales/reservations/{response.json()['id']}/cancel",
                            headers=seller_headers)
        assert again.status_code == 400

    def test_paused_motorcycle_can_be_reserved(self, client, seller_headers, customer, make_motorcycle):
        assert reserve(client, seller_headers, make_motorcycle(state="PAUSADO"), customer).status_code == 201

    @pytest.mark.parametrize("state", ["VENDIDO", "RESERVADO", "EN_TRANSITO", "ELIMINADO"])
    def test_unavailable_states(self, client, seller_headers, customer, make_motorcycle, state):
        response = reserve(client, seller_headers, make_motorcycle(state=state), customer)
        assert response.status_code == 400

    def test_list_by_status(self, client, seller_headers, customer, make_motorcycle):
        first = reserve(client, seller_headers, make_motorcycle(), customer).json()
        reserve(client, seller_headers, make_motorcycle(), customer)
        client.post(f"/api/v1/sales/reservations/{first['id']}/cancel", headers=seller_headers)

        active = client.get("/api/v1/sales/reservations", headers=seller_headers,
                            params={"status": "active"}).json()
        assert len(active) == 1


class TestSales:

    def test_plain_sale(self, client, db_session, seller_headers, seller, customer, make_motorcycle, branches):
        motorcycle = make_motorcycle()

        response = sell(client, seller_headers, motorcycle, customer)
        assert response.status_code == 201
        body = response.json()
        assert Decimal(body["final_amount"]) == Decimal("1000000")
        assert Decimal(body["balance_due"]) == Decimal("1000000")
        assert body["seller_id"] == seller.id
        assert body["branch_id"] == branches[0].id

        sold = state_of(db_session, motorcycle)
        assert sold.state == "VENDIDO"
        assert sold.client_id == customer.id

        assert sell(client, seller_headers, motorcycle, customer).status_code == 400

    def test_reservation_is_deducted_and_completed(self, client, seller_headers, customer, make_motorcycle):
        motorcycle = make_motorcycle()
        reservation = reserve(client, seller_headers, motorcycle, customer, amount="200000").json()

        body = sell(client, seller_headers, motorcycle, customer).json()
        assert body["reservation_id"] == reservation["id"]
        assert Decimal(body["reservation_amount"]) == Decimal("200000")
        assert Decimal(body["balance_due"]) == Decimal("800000")

        completed = client.get("/api/v1/sales/reservations", headers=seller_headers,
                               params={"status": "completed"}).json()
        assert [r["id"] for r in completed] == [reservation["id"]]

    def test_reserved_for_another_client(self, client, db_session, seller_headers, customer,
                                          make_motorcycle, organization):
        from app.shared.database.models import Client
        other = Client(organization_id=organization.id, first_name="Otro", tax_id="20-55555555-5")
        db_session.add(other)
        db_session.commit()

        motorcycle = make_motorcycle()
        reserve(client, seller_headers, motorcycle, customer)

        assert sell(client, seller_headers, motorcycle, other).status_code == 400

    def test_sale_on_current_account_finances_balance(self, client, db_session, seller_headers,
                                                      customer, make_motorcycle):
        motorcycle = make_motorcycle()
        reserve(client, seller_headers, motorcycle, customer, amount="100000")

        response = sell(client, seller_headers, motorcycle, customer, payment_method="cuenta_corriente",
                        current_account={
                            "down_payment": "300000",
                            "number_of_installments": 6,
                            "start_date": "2025-03-01T00:00:00"
                        })
        assert response.status_code == 201
        account_id = response.json()["current_account_id"]
        assert account_id is not None

        account = db_session.get(CurrentAccount, account_id)
        assert Decimal(account.total_amount) == Decimal("900000")
        assert Decimal(account.remaining_amount) == Decimal("600000")
        assert Decimal(account.installment_amount) == Decimal("100000")

        detail = client.get(f"/api/v1/sales/{response.json()['id']}", headers=seller_headers).json()
        assert detail["current_account_id"] == account_id

    def test_current_account_requires_plan(self, client, seller_headers, customer, make_motorcycle):
        response = sell(client, seller_headers, make_motorcycle(), customer, payment_method="cuenta_corriente")
        assert response.status_code == 422

    def test_sale_with_promotion(self, client, db_session, admin_headers, seller_headers, customer, make_motorcycle):
        method = PaymentMethod(name="Tarjeta", type="card")
        db_session.add(method)
        db_session.commit()

        promotion = client.post("/api/v1/payments/promotions", headers=admin_headers, json={
            "name": "Recargo 12 cuotas",
            "payment_method_id": method.id,
            "surcharge_rate": "10",
            "installment_plans": [{"installments": 12, "interest_rate": "20"}]
        }).json()

        body = sell(client, seller_headers, make_motorcycle(), customer, payment_method="tarjeta",
                    banking_promotion_id=promotion["id"], installments=12).json()
        assert Decimal(body["surcharge_amount"]) == Decimal("100000")
        assert Decimal(body["final_amount"]) == Decimal("1320000")

    def test_disabled_promotion_is_refused(self, client, db_session, admin_headers, seller_headers,
                                           customer, make_motorcycle):
        method = PaymentMethod(name="Débito", type="card")
        db_session.add(method)
        db_session.commit()
        promotion = client.post("/api/v1/payments/promotions", headers=admin_headers, json={
            "name": "Apagada",
            "payment_method_id": method.id,
            "discount_rate": "5",
            "is_enabled": False
        }).json()

        response = sell(client, seller_headers, make_motorcycle(), customer, banking_promotion_id=promotion["id"])
        assert response.status_code == 400

    def test_list_with_totals(self, client, seller_headers, customer, make_motorcycle, branches):
        sell(client, seller_headers, make_motorcycle(), customer)
        sell(client, seller_headers, make_motorcycle(branch_id=branches[1].id), customer, sale_price="500000")

        everything = client.get("/api/v1/sales", headers=seller_headers).json()
        assert everything["totals"]["count"] == 2
        assert Decimal(everything["totals"]["total_final_amount"]) == Decimal("1500000")

        north = client.get("/api/v1/sales", headers=seller_headers, params={"branch_id": branches[1].id}).json()
        assert north["totals"]["count"] == 1

    def test_unknown_sale(self, client, seller_headers):
        assert client.get("/api/v1/sales/999", headers=seller_headers).status_code == 404
