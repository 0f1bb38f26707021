from app.shared.services import otp


class TestOtpAndSecureMode:

    def test_secure_mode_requires_verified_otp(self, client, admin_headers):
        response = client.put("/api/v1/configuration/security/secure-mode", headers=admin_headers,
                              json={"enabled": True})
        assert response.status_code == 400

    def test_full_setup_flow(self, client, admin_headers):
        setup = client.post("/api/v1/configuration/security/otp/setup", headers=admin_headers)
        assert setup.status_code == 200
        secret = setup.json()["secret"]
        assert setup.json()["provisioning_uri"].startswith("otpauth://totp/")

        status = client.get("/api/v1/configuration/security", headers=admin_headers).json()
        assert status == {"secure_mode_enabled": False, "otp_configured": True, "otp_verified": False}

        bad = client.post("/api/v1/configuration/security/otp/verify", headers=admin_headers,
                          json={"token": "000000" if otp.current_token(secret) != "000000" else "111111"})
        assert bad.status_code == 400

        ok = client.post("/api/v1/configuration/security/otp/verify", headers=admin_headers,
                         json={"token": otp.current_token(secret)})
        assert ok.status_code == 200

        enabled = client.put("/api/v1/configuration/security/secure-mode", headers=admin_headers,
                             json={"enabled": True})
        assert enabled.status_code == 200
        assert enabled.json()["secure_mode_enabled"] is True

        # con modo seguro activo no se puede regenerar el secreto
        again = client.post("/api/v1/configuration/security/otp/setup", headers=admin_headers)
        assert again.status_code == 400

    def test_verify_token_rejects_malformed_codes(self):
        secret = otp.generate_secret()
        assert otp.verify_token(secret, "12ab56") is False
        assert otp.verify_token(secret, "123") is False
        assert otp.verify_token("", "123456") is False
        assert otp.verify_token(secret, otp.current_token(secret)) is True

    def test_regular_user_cannot_see_security(self, client, seller_headers):
        assert client.get("/api/v1/configuration/security", headers=seller_headers).status_code == 403

    def test_verify_token_rejects_non_ascii_digits(self):
        secret = otp.generate_secret()
        assert otp.verify_token(secret, "١٢٣٤٥٦") is False

    def test_provisioning_uri_uses_sha1(self):
        uri = otp.provisioning_uri(otp.generate_secret(), "admin@motos.com")
        assert uri.startswith("otpauth://totp/")
        assert "algorithm" not in uri or "algorithm=SHA1" in uri
