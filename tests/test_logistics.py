import pytest

BASE = "/api/v1/logistics"


@pytest.fixture
def provider(client, admin_headers):
    response = client.post(f"{BASE}/providers", headers=admin_headers, json={
        "name": "Transportes Patagonia",
        "contact_phone": "2994000000",
        "transport_types": ["camion"],
        "coverage_zones": ["Neuquén", "Río Negro"],
        "price_per_km": "850.50"
    })
    assert response.status_code == 201
    return response.json()


def start_transfer(client, headers, motorcycle, to_branch, **extra):
    return client.post(f"{BASE}/transfers", headers=headers, json={
        "motorcycle_id": motorcycle.id,
        "from_branch_id": motorcycle.branch_id,
        "to_branch_id": to_branch.id,
        **extra
    })


class TestProviders:

    def test_create_and_list(self, client, admin_headers, provider):
        assert provider["status"] == "activo"
        assert provider["coverage_zones"] == ["Neuquén", "Río Negro"]

        listed = client.get(f"{BASE}/providers", headers=admin_headers, params={"status": "activo"}).json()
        assert [p["id"] for p in listed] == [provider["id"]]

    def test_only_admin_creates(self, client, seller_headers):
        response = client.post(f"{BASE}/providers", headers=seller_headers, json={"name": "Fletes SRL"})
        assert response.status_code == 403

    def test_toggle(self, client, admin_headers, provider):
        toggled = client.patch(f"{BASE}/providers/{provider['id']}/toggle", headers=admin_headers).json()
        assert toggled["status"] == "inactivo"

    def test_inactive_provider_cannot_transfer(self, client, admin_headers, provider, make_motorcycle, branches):
        client.patch(f"{BASE}/providers/{provider['id']}/toggle", headers=admin_headers)
        motorcycle = make_motorcycle()

        response = start_transfer(client, admin_headers, motorcycle, branches[1],
                                  logistic_provider_id=provider["id"])
        assert response.status_code == 400

    def test_provider_with_transfers_cannot_be_deleted(self, client, admin_headers, provider,
                                                       make_motorcycle, branches):
        start_transfer(client, admin_headers, make_motorcycle(), branches[1], logistic_provider_id=provider["id"])

        assert client.delete(f"{BASE}/providers/{provider['id']}", headers=admin_headers).status_code == 400

    def test_delete_unused_provider(self, client, admin_headers, provider):
        assert client.delete(f"{BASE}/providers/{provider['id']}", headers=admin_headers).status_code == 200
        assert client.get(f"{BASE}/providers/{provider['id']}", headers=admin_headers).status_code == 404


class TestTransfers:

    def test_transfer_and_arrival(self, client, seller_headers, db_session, make_motorcycle, branches):
        central, norte = branches
        motorcycle = make_motorcycle()

        response = start_transfer(client, seller_headers, motorcycle, norte)
        assert response.status_code == 201
        transfer = response.json()
        assert transfer["status"] == "IN_TRANSIT"
        assert transfer["from_branch_name"] == "Central"
        assert transfer["to_branch_name"] == "Norte"

        db_session.expire_all()
        assert motorcycle.state == "EN_TRANSITO"

        available = client.get(f"{BASE}/available-motorcycles", headers=seller_headers).json()
        assert motorcycle.id not in [m["id"] for m in available]

        in_transit = client.get(f"{BASE}/transfers/in-transit", headers=seller_headers).json()
        assert [t["id"] for t in in_transit] == [transfer["id"]]

        arrived = client.post(f"{BASE}/transfers/{transfer['id']}/confirm-arrival", headers=seller_headers)
        assert arrived.status_code == 200
        assert arrived.json()["status"] == "DELIVERED"
        assert arrived.json()["actual_delivery_date"] is not None

        db_session.expire_all()
        assert motorcycle.state == "STOCK"
        assert motorcycle.branch_id == norte.id

    def test_cancel_returns_to_origin(self, client, seller_headers, db_session, make_motorcycle, branches):
        central, norte = branches
        motorcycle = make_motorcycle()
        transfer = start_transfer(client, seller_headers, motorcycle, norte).json()

        response = client.post(f"{BASE}/transfers/{transfer['id']}/cancel", headers=seller_headers,
                               json={"reason": "Camión averiado"})
        assert response.status_code == 200
        assert response.json()["status"] == "CANCELLED"
        assert "Camión averiado" in response.json()["notes"]

        db_session.expire_all()
        assert motorcycle.state == "STOCK"
        assert motorcycle.branch_id == central.id

    def test_finished_transfer_is_final(self, client, seller_headers, make_motorcycle, branches):
        transfer = start_transfer(client, seller_headers, make_motorcycle(), branches[1]).json()
        client.post(f"{BASE}/transfers/{transfer['id']}/confirm-arrival", headers=seller_headers)

        response = client.patch(f"{BASE}/transfers/{transfer['id']}/status", headers=seller_headers,
                                json={"status": "CANCELLED"})
        assert response.status_code == 400

    def test_only_stock_motorcycles(self, client, seller_headers, make_motorcycle, branches):
        sold = make_motorcycle(state="VENDIDO")
        assert start_transfer(client, seller_headers, sold, branches[1]).status_code == 400

    def test_motorcycle_must_be_at_origin(self, client, seller_headers, make_motorcycle, branches):
        central, norte = branches
        motorcycle = make_motorcycle(branch_id=norte.id)

        response = client.post(f"{BASE}/transfers", headers=seller_headers, json={
            "motorcycle_id": motorcycle.id,
            "from_branch_id": central.id,
            "to_branch_id": norte.id
        })
        assert response.status_code == 400

    def test_same_branch_rejected(self, client, seller_headers, make_motorcycle, branches):
        motorcycle = make_motorcycle()
        assert start_transfer(client, seller_headers, motorcycle, branches[0]).status_code == 422

    def test_list_by_status(self, client, seller_headers, make_motorcycle, branches):
        first = start_transfer(client, seller_headers, make_motorcycle(), branches[1]).json()
        start_transfer(client, seller_headers, make_motorcycle(), branches[1])
        client.post(f"{BASE}/transfers/{first['id']}/confirm-arrival", headers=seller_headers)

        delivered = client.get(f"{BASE}/transfers", headers=seller_headers, params={"status": "DELIVERED"}).json()
        assert [t["id"] for t in delivered] == [first["id"]]
        assert len(client.get(f"{BASE}/transfers", headers=seller_headers).json()) == 2
