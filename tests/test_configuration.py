class TestBranches:

    def test_create_list_and_reorder(self, client, admin_headers, branches):
        central, norte = branches

        created = client.post("/api/v1/configuration/branches", headers=admin_headers, json={"name": "Sur"})
        assert created.status_code == 201
        sur_id = created.json()["id"]

        reordered = client.put("/api/v1/configuration/branches/reorder", headers=admin_headers,
                               json={"ids": [sur_id, norte.id, central.id]})
        assert reordered.status_code == 200
        assert [b["name"] for b in reordered.json()] == ["Sur", "Norte", "Central"]

    def test_duplicate_name_conflicts(self, client, admin_headers, branches):
        response = client.post("/api/v1/configuration/branches", headers=admin_headers, json={"name": "Central"})
        assert response.status_code == 409

    def test_reorder_with_foreign_ids_fails(self, client, admin_headers, branches):
        response = client.put("/api/v1/configuration/branches/reorder", headers=admin_headers,
                              json={"ids": [branches[0].id, 9999]})
        assert response.status_code == 400

    def test_branch_with_motorcycles_cannot_be_deleted(self, client, admin_headers, branches, make_motorcycle):
        make_motorcycle(branch_id=branches[1].id)
        response = client.delete(f"/api/v1/configuration/branches/{branches[1].id}", headers=admin_headers)
        assert response.status_code == 400


class TestBrandsAndColors:

    def test_associate_brand_and_add_model(self, client, admin_headers):
        brand = client.post("/api/v1/configuration/brands", headers=admin_headers,
                            json={"name": "Yamaha", "color": "#0033A0"})
        assert brand.status_code == 201
        brand_id = brand.json()["brand_id"]

        again = client.post("/api/v1/configuration/brands", headers=admin_headers, json={"name": "Yamaha"})
        assert again.status_code == 409

        model = client.post(f"/api/v1/configuration/brands/{brand_id}/models", headers=admin_headers,
                            json={"name": "FZ 25"})
        assert model.status_code == 201

        brands = client.get("/api/v1/configuration/brands", headers=admin_headers).json()
        assert brands[0]["name"] == "Yamaha"
        assert [m["name"] for m in brands[0]["models"]] == ["FZ 25"]

    def test_two_tone_color_requires_second_color(self, client, admin_headers):
        response = client.post("/api/v1/configuration/colors", headers=admin_headers, json={
            "name": "Rojo/Negro",
            "type": "BITONO",
            "color_one": "#FF0000"
        })
        assert response.status_code == 400

        response = client.post("/api/v1/configuration/colors", headers=admin_headers, json={
            "name": "Rojo/Negro",
            "type": "BITONO",
            "color_one": "#FF0000",
            "color_two": "#000000"
        })
        assert response.status_code == 201

    def test_update_color(self, client, admin_headers):
        color = client.post("/api/v1/configuration/colors", headers=admin_headers,
                            json={"name": "Rojo", "color_one": "#FF0000"}).json()

        updated = client.put(f"/api/v1/configuration/colors/{color['id']}", headers=admin_headers,
                             json={"name": "Rojo Racing", "type": None})
        assert updated.status_code == 200
        assert updated.json()["name"] == "Rojo Racing"
        assert updated.json()["type"] == "SOLIDO"

        to_pattern = client.put(f"/api/v1/configuration/colors/{color['id']}", headers=admin_headers,
                                json={"type": "PATRON"})
        assert to_pattern.status_code == 400

    def test_color_in_use_cannot_be_deleted(self, client, admin_headers, make_motorcycle):
        color = client.post("/api/v1/configuration/colors", headers=admin_headers,
                            json={"name": "Negro", "color_one": "#000000"}).json()
        make_motorcycle(color_id=color["id"])

        response = client.delete(f"/api/v1/configuration/colors/{color['id']}", headers=admin_headers)
        assert response.status_code == 400

    def test_delete_unused_color(self, client, admin_headers):
        color = client.post("/api/v1/configuration/colors", headers=admin_headers,
                            json={"name": "Blanco", "color_one": "#FFFFFF"}).json()

        response = client.delete(f"/api/v1/configuration/colors/{color['id']}", headers=admin_headers)
        assert response.status_code == 200
        assert client.get("/api/v1/configuration/colors", headers=admin_headers).json() == []

    def test_reorder_colors(self, client, admin_headers):
        ids = [
            client.post("/api/v1/configuration/colors", headers=admin_headers,
                        json={"name": name, "color_one": "#111111"}).json()["id"]
            for name in ("Azul", "Verde", "Gris")
        ]

        reordered = client.put("/api/v1/configuration/colors/reorder", headers=admin_headers,
                               json={"ids": list(reversed(ids))})
        assert reordered.status_code == 200
        assert [c["name"] for c in reordered.json()] == ["Gris", "Verde", "Azul"]

        foreign = client.put("/api/v1/configuration/colors/reorder", headers=admin_headers,
                             json={"ids": [ids[0], 9999]})
        assert foreign.status_code == 400

    def test_reorder_brands(self, client, admin_headers, catalog):
        honda, _ = catalog
        yamaha_id = client.post("/api/v1/configuration/brands", headers=admin_headers,
                                json={"name": "Yamaha"}).json()["brand_id"]

        reordered = client.put("/api/v1/configuration/brands/reorder", headers=admin_headers,
                               json={"ids": [yamaha_id, honda.id]})
        assert reordered.status_code == 200
        assert [b["name"] for b in reordered.json()] == ["Yamaha", "Honda"]

        unknown = client.put("/api/v1/configuration/brands/reorder", headers=admin_headers,
                             json={"ids": [9999]})
        assert unknown.status_code == 400

    def test_dissociate_brand(self, client, admin_headers, catalog, make_motorcycle):
        honda, _ = catalog
        yamaha_id = client.post("/api/v1/configuration/brands", headers=admin_headers,
                                json={"name": "Yamaha"}).json()["brand_id"]

        removed = client.delete(f"/api/v1/configuration/brands/{yamaha_id}", headers=admin_headers)
        assert removed.status_code == 200
        brands = client.get("/api/v1/configuration/brands", headers=admin_headers).json()
        assert [b["name"] for b in brands] == ["Honda"]

        make_motorcycle()
        in_use = client.delete(f"/api/v1/configuration/brands/{honda.id}", headers=admin_headers)
        assert in_use.status_code == 400

    def test_model_in_use_cannot_be_deleted(self, client, admin_headers, catalog, make_motorcycle):
        honda, model = catalog
        make_motorcycle()

        response = client.delete(f"/api/v1/configuration/models/{model.id}", headers=admin_headers)
        assert response.status_code == 400

        spare = client.post(f"/api/v1/configuration/brands/{honda.id}/models", headers=admin_headers,
                            json={"name": "XR 150L"}).json()
        assert client.delete(f"/api/v1/configuration/models/{spare['id']}", headers=admin_headers).status_code == 200


class TestModelFiles:

    def test_upload_list_and_delete(self, client, admin_headers, seller_headers, storage, catalog):
        _, model = catalog

        uploaded = client.post(
            f"/api/v1/configuration/models/{model.id}/files",
            headers=admin_headers,
            files={"file": ("ficha.pdf", b"%PDF-1.4 ficha", "application/pdf")}
        )
        assert uploaded.status_code == 201
        body = uploaded.json()
        assert body["name"] == "ficha.pdf"
        assert body["size"] == len(b"%PDF-1.4 ficha")
        assert storage.upload.call_args.args[0] == f"models/{model.id}"

        listed = client.get(f"/api/v1/configuration/models/{model.id}/files", headers=seller_headers).json()
        assert [f["id"] for f in listed] == [body["id"]]

        deleted = client.delete(f"/api/v1/configuration/model-files/{body['id']}", headers=admin_headers)
        assert deleted.status_code == 200
        storage.delete.assert_called_once_with(f"models/{model.id}/ficha.pdf")
        assert client.get(f"/api/v1/configuration/models/{model.id}/files", headers=admin_headers).json() == []

    def test_empty_file_is_rejected(self, client, admin_headers, storage, catalog):
        _, model = catalog
        response = client.post(
            f"/api/v1/configuration/models/{model.id}/files",
            headers=admin_headers,
            files={"file": ("vacio.pdf", b"", "application/pdf")}
        )
        assert response.status_code == 400
        storage.upload.assert_not_called()

    def test_unknown_file(self, client, admin_headers):
        response = client.delete("/api/v1/configuration/model-files/9999", headers=admin_headers)
        assert response.status_code == 404
