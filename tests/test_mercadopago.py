import base64
import hashlib
from datetime import datetime, timedelta
from urllib.parse import urlparse, parse_qs

import httpx
import pytest

from app.shared.database.models import MercadoPagoOAuth, MercadoPagoOAuthState
from app.shared.services import pkce
from app.shared.services.mercadopago_client import MercadoPagoClient, MercadoPagoError

BASE = "/api/v1/mercadopago"
TOKEN = {
    "access_token": "APP_USR-org-token",
    "refresh_token": "TG-refresh",
    "public_key": "APP_USR-public",
    "scope": "offline_access read write",
    "expires_in": 15552000,
    "user_id": 123456
}


def query_of(response):
    return parse_qs(urlparse(response.headers["location"]).query)


@pytest.fixture
def connected(db_session, organization):
    oauth = MercadoPagoOAuth(
        organization_id=organization.id,
        mercadopago_user_id="123456",
        access_token="APP_USR-org-token",
        refresh_token="TG-refresh"
    )
    db_session.add(oauth)
    db_session.commit()
    return oauth


class TestPkce:

    def test_verifier_alphabet_and_length(self):
        verifier = pkce.generate_code_verifier()
        assert len(verifier) == 128
        assert pkce.is_valid_code_verifier(verifier)
        assert len(pkce.generate_code_verifier(43)) == 43

    def test_verifier_length_bounds(self):
        with pytest.raises(ValueError):
            pkce.generate_code_verifier(42)
        with pytest.raises(ValueError):
            pkce.generate_code_verifier(129)

    def test_invalid_verifiers(self):
        assert not pkce.is_valid_code_verifier(None)
        assert not pkce.is_valid_code_verifier("corto")
        assert not pkce.is_valid_code_verifier("a" * 42 + "!")

    def test_challenge_is_s256(self):
        verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
        expected = base64.urlsafe_b64encode(hashlib.sha256(verifier.encode()).digest()).decode().rstrip("=")
        assert pkce.generate_code_challenge(verifier) == expected
        assert pkce.generate_code_challenge(verifier) == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"

    def test_authorization_url(self):
        url = pkce.build_authorization_url("client", "http://api/callback", "challenge", "7-abc",
                                           auth_url="https://auth.example.com/authorization")
        params = parse_qs(urlparse(url).query)
        assert url.startswith("https://auth.example.com/authorization?")
        assert params["code_challenge_method"] == ["S256"]
        assert params["state"] == ["7-abc"]
        assert params["response_type"] == ["code"]


class TestOAuth:

    def test_connect_stores_state(self, client, admin_headers, db_session, organization):
        response = client.post(f"{BASE}/oauth/connect", headers=admin_headers)
        assert response.status_code == 200

        body = response.json()
        assert body["state"].startswith(f"{organization.id}-")
        params = parse_qs(urlparse(body["authorization_url"]).query)
        assert params["client_id"] == ["test-client-id"]

        pending = db_session.query(MercadoPagoOAuthState).filter_by(state=body["state"]).one()
        assert params["code_challenge"] == [pkce.generate_code_challenge(pending.code_verifier)]

    def test_connect_requires_admin(self, client, seller_headers):
        assert client.post(f"{BASE}/oauth/connect", headers=seller_headers).status_code == 403

    def test_callback_success(self, client, admin_headers, mp_client, db_session, organization):
        state = client.post(f"{BASE}/oauth/connect", headers=admin_headers).json()["state"]
        mp_client.exchange_code.return_value = TOKEN
        mp_client.get_user.return_value = {"id": 123456, "email": "ventas@motos.com"}

        response = client.get(f"{BASE}/oauth/callback", params={"code": "TG-code", "state": state},
                              follow_redirects=False)

        assert response.status_code == 302
        assert query_of(response) == {"mp_success": ["true"]}

        status = client.get(f"{BASE}/oauth/status", headers=admin_headers).json()
        assert status["connected"] is True
        assert status["email"] == "ventas@motos.com"
        assert status["scopes"] == ["offline_access", "read", "write"]
        assert status["credential_source"] == "oauth"

    def test_callback_state_is_single_use(self, client, admin_headers, mp_client):
        state = client.post(f"{BASE}/oauth/connect", headers=admin_headers).json()["state"]
        mp_client.exchange_code.return_value = TOKEN
        mp_client.get_user.return_value = {"id": 1}

        client.get(f"{BASE}/oauth/callback", params={"code": "c", "state": state}, follow_redirects=False)
        again = client.get(f"{BASE}/oauth/callback", params={"code": "c", "state": state}, follow_redirects=False)
        assert query_of(again) == {"mp_error": ["invalid_state"]}

    @pytest.mark.parametrize("params, error", [
        ({"error": "access_denied"}, "access_denied"),
        ({"code": "c"}, "missing_params"),
        ({"code": "c", "state": "desconocido"}, "invalid_state"),
    ])
    def test_callback_errors(self, client, params, error):
        response = client.get(f"{BASE}/oauth/callback", params=params, follow_redirects=False)
        assert response.status_code == 302
        assert query_of(response) == {"mp_error": [error]}

    def test_callback_expired_state(self, client, admin_headers, db_session):
        state = client.post(f"{BASE}/oauth/connect", headers=admin_headers).json()["state"]
        pending = db_session.query(MercadoPagoOAuthState).filter_by(state=state).one()
        pending.created_at = datetime.utcnow() - timedelta(minutes=16)
        db_session.commit()

        response = client.get(f"{BASE}/oauth/callback", params={"code": "c", "state": state},
                              follow_redirects=False)
        assert query_of(response) == {"mp_error": ["expired_state"]}

    def test_callback_token_exchange_failure(self, client, admin_headers, mp_client):
        state = client.post(f"{BASE}/oauth/connect", headers=admin_headers).json()["state"]
        mp_client.exchange_code.side_effect = MercadoPagoError("invalid_grant", status_code=400)

        response = client.get(f"{BASE}/oauth/callback", params={"code": "c", "state": state},
                              follow_redirects=False)
        assert query_of(response) == {"mp_error": ["token_exchange_failed"]}

    def test_status_without_connection(self, client, admin_headers):
        status = client.get(f"{BASE}/oauth/status", headers=admin_headers).json()
        assert status == {**status, "connected": False, "credential_source": "none"}

    def test_disconnect(self, client, admin_headers, connected):
        assert client.delete(f"{BASE}/oauth", headers=admin_headers).status_code == 200
        assert client.delete(f"{BASE}/oauth", headers=admin_headers).status_code == 404


class TestWebhook:

    def test_non_payment_is_ignored(self, client, organization, mp_client):
        response = client.post(f"/api/v1/webhooks/mercadopago/{organization.id}",
                               json={"type": "merchant_order", "data": {"id": "9"}})
        assert response.status_code == 200
        assert response.json()["status"] == "ignored"
        mp_client.get_payment.assert_not_called()

    def test_payment_is_processed(self, client, organization, connected, mp_client):
        mp_client.get_payment.return_value = {
            "id": 555,
            "status": "approved",
            "status_detail": "accredited",
            "transaction_amount": 1500.5,
            "currency_id": "ARS",
            "payer": {"email": "juan@example.com"}
        }

        response = client.post(f"/api/v1/webhooks/mercadopago/{organization.id}",
                               json={"type": "payment", "data": {"id": "555"}})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "processed"
        assert body["payment_status"] == "approved"
        assert body["credential_source"] == "oauth"
        mp_client.get_payment.assert_called_once_with("APP_USR-org-token", "555")

    def test_legacy_query_params(self, client, organization, connected, mp_client):
        mp_client.get_payment.return_value = {"id": 77, "status": "pending"}

        response = client.post(f"/api/v1/webhooks/mercadopago/{organization.id}",
                               params={"topic": "payment", "data.id": "77"})
        assert response.json()["payment_id"] == "77"

    def test_missing_payment_id(self, client, organization, connected):
        response = client.post(f"/api/v1/webhooks/mercadopago/{organization.id}", json={"type": "payment"})
        assert response.status_code == 400

    def test_unknown_payment(self, client, organization, connected, mp_client):
        mp_client.get_payment.side_effect = MercadoPagoError("not found", status_code=404)

        response = client.post(f"/api/v1/webhooks/mercadopago/{organization.id}",
                               json={"type": "payment", "data": {"id": "1"}})
        assert response.status_code == 404


class TestCheckoutAndPoint:

    def test_not_configured(self, client, admin_headers):
        response = client.post(f"{BASE}/preferences", headers=admin_headers,
                               json={"items": [{"title": "Seña", "unit_price": "1000"}]})
        assert response.status_code == 400

    def test_preference(self, client, admin_headers, connected, mp_client, organization):
        mp_client.create_preference.return_value = {"id": "pref-1", "init_point": "https://mp/init"}

        response = client.post(f"{BASE}/preferences", headers=admin_headers,
                               json={"items": [{"title": "Seña", "unit_price": "1000"}]})

        assert response.status_code == 201
        assert response.json()["init_point"] == "https://mp/init"
        payload = mp_client.create_preference.call_args.args[1]
        assert payload["notification_url"].endswith(f"/api/v1/webhooks/mercadopago/{organization.id}")

    def test_card_payment(self, client, admin_headers, connected, mp_client):
        mp_client.create_payment.return_value = {"id": 900, "status": "approved", "transaction_amount": 2500}

        response = client.post(f"{BASE}/payments", headers=admin_headers, json={
            "token": "card-token",
            "payment_method_id": "visa",
            "installments": 3,
            "amount": "2500",
            "description": "Seña CB 190R",
            "payer_email": "juan@example.com"
        })

        assert response.status_code == 201
        assert response.json()["mp_payment_id"] == "900"
        assert response.json()["source"] == "checkout"

    def test_card_payment_upstream_error(self, client, admin_headers, connected, mp_client):
        mp_client.create_payment.side_effect = MercadoPagoError("rejected", status_code=400)

        response = client.post(f"{BASE}/payments", headers=admin_headers, json={
            "token": "t", "payment_method_id": "visa", "amount": "10",
            "description": "x", "payer_email": "a@b.com"
        })
        assert response.status_code == 502

    def test_point_minimum_amount(self, client, admin_headers, connected, mp_client):
        response = client.post(f"{BASE}/point/payment-intents", headers=admin_headers,
                               json={"device_id": "PAX_A910__SMARTPOS1", "amount": "14.99", "description": "Seña"})

        assert response.status_code == 400
        assert "15.00" in response.json()["detail"]
        mp_client.create_order.assert_not_called()

    def test_point_intent_lifecycle(self, client, admin_headers, connected, mp_client):
        mp_client.create_order.return_value = {"id": "ORD01", "status": "created"}
        created = client.post(f"{BASE}/point/payment-intents", headers=admin_headers,
                              json={"device_id": "PAX_A910__SMARTPOS1", "amount": "15", "description": "Seña"})
        assert created.status_code == 201
        intent = created.json()
        assert intent["mp_order_id"] == "ORD01"

        payload = mp_client.create_order.call_args.args[1]
        assert payload["transactions"]["payments"] == [{"amount": "15.00"}]
        assert payload["config"]["point"]["terminal_id"] == "PAX_A910__SMARTPOS1"

        mp_client.cancel_order.return_value = {"id": "ORD01", "status": "canceled"}
        cancelled = client.post(f"{BASE}/point/payment-intents/{intent['id']}/cancel", headers=admin_headers)
        assert cancelled.json()["status"] == "canceled"

        again = client.post(f"{BASE}/point/payment-intents/{intent['id']}/cancel", headers=admin_headers)
        assert again.status_code == 409


class TestMercadoPagoClient:

    def test_sends_bearer_and_idempotency(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers["Authorization"]
            seen["key"] = request.headers.get("X-Idempotency-Key")
            return httpx.Response(201, json={"id": 1, "status": "approved"})

        mp = MercadoPagoClient(base_url="https://mp.test", transport=httpx.MockTransport(handler))
        assert mp.create_payment("token", {"transaction_amount": 10}, idempotency_key="k-1")["id"] == 1
        assert seen == {"auth": "Bearer token", "key": "k-1"}

    def test_error_response(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(404, json={"message": "Payment not found"}))
        mp = MercadoPagoClient(base_url="https://mp.test", transport=transport)

        with pytest.raises(MercadoPagoError) as exc:
            mp.get_payment("token", "1")
        assert exc.value.status_code == 404
        assert str(exc.value) == "Payment not found"
