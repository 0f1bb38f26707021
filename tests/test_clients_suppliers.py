class TestClients:

    def test_create_search_and_update(self, client, seller_headers):
        created = client.post("/api/v1/clients", headers=seller_headers, json={
            "first_name": "María",
            "last_name": "Gómez",
            "tax_id": "27-22222222-2",
            "email": "maria@example.com"
        })
        assert created.status_code == 201
        assert created.json()["full_name"] == "María Gómez"

        found = client.get("/api/v1/clients", headers=seller_headers, params={"search": "gómez"}).json()
        assert [c["tax_id"] for c in found] == ["27-22222222-2"]

        updated = client.put(f"/api/v1/clients/{created.json()['id']}", headers=seller_headers,
                             json={"phone": "11-4444-4444"})
        assert updated.status_code == 200
        assert updated.json()["phone"] == "11-4444-4444"

    def test_legal_entity_requires_company_name(self, client, seller_headers):
        response = client.post("/api/v1/clients", headers=seller_headers, json={
            "type": "LegalEntity",
            "first_name": "Contacto",
            "tax_id": "30-33333333-3"
        })
        assert response.status_code == 422

    def test_duplicate_tax_id_conflicts(self, client, seller_headers, customer):
        response = client.post("/api/v1/clients", headers=seller_headers, json={
            "first_name": "Otro",
            "tax_id": customer.tax_id
        })
        assert response.status_code == 409

    def test_other_tenant_client_is_not_visible(self, client, db_session, seller_headers, other_organization):
        from app.shared.database.models import Client
        foreign = Client(organization_id=other_organization.id, first_name="Ajeno", tax_id="20-99999999-9")
        db_session.add(foreign)
        db_session.commit()

        assert client.get(f"/api/v1/clients/{foreign.id}", headers=seller_headers).status_code == 404

    def test_client_with_reservation_cannot_be_deleted(self, client, admin_headers, seller_headers,
                                                       customer, make_motorcycle):
        motorcycle = make_motorcycle()
        reservation = client.post("/api/v1/sales/reservations", headers=seller_headers, json={
            "motorcycle_id": motorcycle.id,
            "client_id": customer.id,
            "amount": "100000"
        })
        assert reservation.status_code == 201

        response = client.delete(f"/api/v1/clients/{customer.id}", headers=admin_headers)
        assert response.status_code == 400


class TestSuppliers:

    def test_crud_and_select(self, client, admin_headers):
        created = client.post("/api/v1/suppliers", headers=admin_headers, json={
            "legal_name": "Motos Importadas SRL",
            "commercial_name": "MotoImport",
            "tax_id": "30-44444444-4"
        })
        assert created.status_code == 201
        supplier_id = created.json()["id"]

        options = client.get("/api/v1/suppliers/select", headers=admin_headers).json()
        assert supplier_id in [o["id"] for o in options]

        assert client.delete(f"/api/v1/suppliers/{supplier_id}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/v1/suppliers/{supplier_id}", headers=admin_headers).status_code == 404

    def test_supplier_with_motorcycles_cannot_be_deleted(self, client, admin_headers, supplier, make_motorcycle):
        make_motorcycle(supplier_id=supplier.id)
        response = client.delete(f"/api/v1/suppliers/{supplier.id}", headers=admin_headers)
        assert response.status_code == 400
