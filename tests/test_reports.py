from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from app.shared.database.models import CurrentAccount

BASE = "/api/v1/reports"


def sell(client, headers, motorcycle, customer, method="efectivo"):
    response = client.post("/api/v1/sales", headers=headers, json={
        "motorcycle_id": motorcycle.id,
        "client_id": customer.id,
        "sale_price": "1000000",
        "payment_method": method
    })
    assert response.status_code == 201
    return response.json()


def test_requires_report_role(client, seller_headers):
    assert client.get(f"{BASE}/sales", headers=seller_headers).status_code == 403


def test_invalid_range(client, admin_headers):
    response = client.get(f"{BASE}/sales", headers=admin_headers,
                          params={"start_date": "2025-02-01", "end_date": "2025-01-01"})
    assert response.status_code == 400


def test_sales_report(client, admin_headers, customer, make_motorcycle, branches):
    central, norte = branches
    sell(client, admin_headers, make_motorcycle(), customer)
    sell(client, admin_headers, make_motorcycle(branch_id=norte.id), customer, method="transferencia")

    today = datetime.utcnow().date()
    report = client.get(f"{BASE}/sales", headers=admin_headers, params={
        "start_date": (today - timedelta(days=1)).isoformat(),
        "end_date": (today + timedelta(days=1)).isoformat()
    }).json()

    assert report["total_sales"] == 2
    assert report["total_amount"] == 2000000
    assert report["average_ticket"] == 1000000
    assert {g["label"] for g in report["by_branch"]} == {"Central", "Norte"}
    assert report["by_brand"][0]["label"] == "Honda"
    assert {g["key"] for g in report["by_payment_method"]} == {"efectivo", "transferencia"}

    only_norte = client.get(f"{BASE}/sales", headers=admin_headers, params={"branch_id": norte.id}).json()
    assert only_norte["total_sales"] == 1

    past = client.get(f"{BASE}/sales", headers=admin_headers,
                      params={"start_date": "2020-01-01", "end_date": "2020-12-31"}).json()
    assert past["total_sales"] == 0
    assert past["average_ticket"] == 0


def test_inventory_report(client, cash_headers, make_motorcycle):
    make_motorcycle()
    make_motorcycle(state="RESERVADO")
    make_motorcycle(state="VENDIDO")

    report = client.get(f"{BASE}/inventory", headers=cash_headers).json()

    assert report["total_units"] == 2
    assert report["total_cost_value"] == 1400000
    assert report["total_retail_value"] == 2000000
    assert {g["key"]: g["count"] for g in report["by_state"]} == {"RESERVADO": 1, "STOCK": 1, "VENDIDO": 1}
    assert report["by_branch"][0]["label"] == "Central"


def test_reservations_report(client, admin_headers, customer, make_motorcycle):
    for _ in range(2):
        client.post("/api/v1/sales/reservations", headers=admin_headers, json={
            "motorcycle_id": make_motorcycle().id,
            "client_id": customer.id,
            "amount": "150000",
            "payment_method": "efectivo"
        })

    report = client.get(f"{BASE}/reservations", headers=admin_headers).json()
    assert report["total_reservations"] == 2
    assert report["total_amount"] == 300000
    assert report["by_status"] == [{"key": "active", "label": "active", "count": 2, "amount": 300000}]


def test_current_accounts_report(client, admin_headers, db_session, organization, customer, make_motorcycle):
    now = datetime.utcnow()
    db_session.add_all([
        CurrentAccount(
            organization_id=organization.id, client_id=customer.id, motorcycle_id=make_motorcycle().id,
            total_amount=Decimal("600000"), remaining_amount=Decimal("500000"),
            number_of_installments=6, installment_amount=Decimal("100000"),
            start_date=now - timedelta(days=60), next_due_date=now - timedelta(days=10)
        ),
        CurrentAccount(
            organization_id=organization.id, client_id=customer.id, motorcycle_id=make_motorcycle().id,
            total_amount=Decimal("300000"), remaining_amount=Decimal("0"),
            number_of_installments=3, installment_amount=Decimal("100000"),
            start_date=now - timedelta(days=120), status="PAID_OFF"
        )
    ])
    db_session.commit()

    report = client.get(f"{BASE}/current-accounts", headers=admin_headers).json()

    assert report["total_accounts"] == 2
    assert report["total_financed"] == 900000
    assert report["total_outstanding"] == 500000
    assert len(report["overdue_accounts"]) == 1
    overdue = report["overdue_accounts"][0]
    assert overdue["client_name"] == "Juan Pérez"
    assert overdue["days_overdue"] in (9, 10)


def test_suppliers_report(client, admin_headers, supplier, make_motorcycle):
    make_motorcycle(supplier_id=supplier.id)
    make_motorcycle(supplier_id=supplier.id, state="VENDIDO")

    report = client.get(f"{BASE}/suppliers", headers=admin_headers).json()

    assert report["total_suppliers"] == 1
    row = report["suppliers"][0]
    assert row["supplier_name"] == "Honda AR"
    assert (row["motorcycles"], row["in_stock"], row["sold"]) == (2, 1, 1)
    assert row["purchase_value"] == 1400000


@pytest.mark.usefixtures("branches")
def test_petty_cash_report(client, cash_headers):
    deposit = client.post("/api/v1/petty-cash/deposits", headers=cash_headers,
                          json={"description": "Fondo", "amount": "5000"}).json()
    withdrawal = client.post("/api/v1/petty-cash/withdrawals", headers=cash_headers,
                             json={"deposit_id": deposit["id"], "amount": "2000"}).json()
    client.post("/api/v1/petty-cash/spends", headers=cash_headers,
                json={"withdrawal_id": withdrawal["id"], "motive": "limpieza", "amount": "750"})

    report = client.get(f"{BASE}/petty-cash", headers=cash_headers).json()

    general = report["accounts"][0]
    assert general["account"] == "GENERAL"
    assert general["branch_name"] == "Caja general"
    assert (general["deposits"], general["withdrawals"], general["spends"]) == (5000, 2000, 750)
    assert general["balance"] == 4250
    assert [a["branch_name"] for a in report["accounts"][1:]] == ["Central", "Norte"]
    assert report["total_spends"] == 750
