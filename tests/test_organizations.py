class TestOrganizations:

    def test_root_creates_organization_and_admin(self, client, root_headers):
        response = client.post("/api/v1/organizations", headers=root_headers, json={
            "name": "Nueva Motos",
            "slug": "nueva-motos"
        })
        assert response.status_code == 201
        org_id = response.json()["id"]
        assert response.json()["secure_mode_enabled"] is False

        admin = client.post(f"/api/v1/organizations/{org_id}/admin", headers=root_headers, json={
            "email": "duenio@nueva.com",
            "password": "clave123",
            "name": "Dueño"
        })
        assert admin.status_code == 201
        assert admin.json()["role"] == "admin"
        assert admin.json()["organization_id"] == org_id

    def test_duplicate_slug_conflicts(self, client, root_headers, organization):
        response = client.post("/api/v1/organizations", headers=root_headers, json={
            "name": "Copia",
            "slug": organization.slug
        })
        assert response.status_code == 409

    def test_only_root_manages_organizations(self, client, admin_headers):
        assert client.get("/api/v1/organizations", headers=admin_headers).status_code == 403

    def test_root_without_organization_cannot_use_tenant_endpoints(self, client, root_headers):
        response = client.get("/api/v1/clients", headers=root_headers)
        assert response.status_code == 400

    def test_update_unknown_organization(self, client, root_headers):
        response = client.put("/api/v1/organizations/999", headers=root_headers, json={"name": "Nada"})
        assert response.status_code == 404
