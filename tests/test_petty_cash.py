from decimal import Decimal

import pytest

from app.shared.services import otp
from app.shared.services.storage import StorageError

BASE = "/api/v1/petty-cash"


def deposit(client, headers, amount, branch_id=None):
    response = client.post(f"{BASE}/deposits", headers=headers, json={
        "branch_id": branch_id,
        "description": "Fondo fijo",
        "amount": amount
    })
    assert response.status_code == 201
    return response.json()


def withdraw(client, headers, deposit_id, amount):
    return client.post(f"{BASE}/withdrawals", headers=headers, json={"deposit_id": deposit_id, "amount": amount})


def spend(client, headers, withdrawal_id, amount, motive="combustible", **extra):
    return client.post(f"{BASE}/spends", headers=headers, json={
        "withdrawal_id": withdrawal_id,
        "motive": motive,
        "amount": amount,
        **extra
    })


class TestBalances:

    def test_debe_haber_balance(self, client, cash_headers):
        dep = deposit(client, cash_headers, "10000")
        withdrawal = withdraw(client, cash_headers, dep["id"], "4000").json()

        response = spend(client, cash_headers, withdrawal["id"], "1500")
        assert response.status_code == 201

        balance = client.get(f"{BASE}/balance", headers=cash_headers).json()
        assert balance["account"] == "GENERAL"
        assert Decimal(balance["total_debe"]) == Decimal("10000")
        assert Decimal(balance["total_haber"]) == Decimal("1500")
        assert Decimal(balance["balance"]) == Decimal("8500")

        movements = client.get(f"{BASE}/movements", headers=cash_headers, params={"account": "GENERAL"}).json()
        assert sorted(m["type"] for m in movements) == ["DEBE", "HABER"]

    def test_accounts_are_separated_by_branch(self, client, cash_headers, branches):
        central, norte = branches
        deposit(client, cash_headers, "5000")
        branch_dep = deposit(client, cash_headers, "3000", branch_id=central.id)
        withdrawal = withdraw(client, cash_headers, branch_dep["id"], "1000").json()
        spend(client, cash_headers, withdrawal["id"], "400")

        balances = {b["account"]: Decimal(b["balance"])
                    for b in client.get(f"{BASE}/balances", headers=cash_headers).json()}
        assert balances == {
            "GENERAL": Decimal("5000"),
            str(central.id): Decimal("2600"),
            str(norte.id): Decimal("0")
        }

        central_balance = client.get(f"{BASE}/balance", headers=cash_headers,
                                     params={"account": str(central.id)}).json()
        assert central_balance["branch_name"] == "Central"

    def test_invalid_account(self, client, cash_headers):
        assert client.get(f"{BASE}/balance", headers=cash_headers, params={"account": "caja"}).status_code == 400

    def test_summary(self, client, cash_headers):
        dep = deposit(client, cash_headers, "1000")
        withdraw(client, cash_headers, dep["id"], "300")

        summary = client.get(f"{BASE}/summary", headers=cash_headers).json()
        assert len(summary["deposits"]) == 1
        assert Decimal(summary["deposits"][0]["available_amount"]) == Decimal("700")
        assert len(summary["withdrawals"]) == 1


class TestWithdrawalsAndSpends:

    def test_withdrawal_cannot_exceed_available(self, client, cash_headers):
        dep = deposit(client, cash_headers, "1000")
        withdraw(client, cash_headers, dep["id"], "800")

        assert withdraw(client, cash_headers, dep["id"], "300").status_code == 400

    def test_full_withdrawal_closes_deposit(self, client, cash_headers):
        dep = deposit(client, cash_headers, "1000")
        withdraw(client, cash_headers, dep["id"], "1000")

        deposits = client.get(f"{BASE}/deposits", headers=cash_headers).json()
        assert deposits[0]["status"] == "CLOSED"
        assert withdraw(client, cash_headers, dep["id"], "1").status_code == 400

    def test_withdrawal_uses_latest_open_deposit(self, client, cash_headers):
        deposit(client, cash_headers, "1000")
        response = client.post(f"{BASE}/withdrawals", headers=cash_headers, json={"amount": "200"})
        assert response.status_code == 201

    def test_justification_status(self, client, cash_headers):
        dep = deposit(client, cash_headers, "1000")
        withdrawal = withdraw(client, cash_headers, dep["id"], "1000").json()
        assert withdrawal["status"] == "PENDING_JUSTIFICATION"

        spend(client, cash_headers, withdrawal["id"], "600")
        assert spend(client, cash_headers, withdrawal["id"], "500").status_code == 400

        spend(client, cash_headers, withdrawal["id"], "400")
        summary = client.get(f"{BASE}/summary", headers=cash_headers).json()
        assert summary["withdrawals"][0]["status"] == "JUSTIFIED"
        assert summary["deposits"][0]["status"] == "CLOSED"

        assert spend(client, cash_headers, withdrawal["id"], "1").status_code == 400

    def test_other_motive_requires_description(self, client, cash_headers):
        dep = deposit(client, cash_headers, "1000")
        withdrawal = withdraw(client, cash_headers, dep["id"], "100").json()

        assert spend(client, cash_headers, withdrawal["id"], "50", motive="otros").status_code == 422
        ok = spend(client, cash_headers, withdrawal["id"], "50", motive="otros", description="Fotocopias")
        assert ok.status_code == 201

    def test_update_spend_amount_respects_withdrawal(self, client, cash_headers):
        dep = deposit(client, cash_headers, "1000")
        withdrawal = withdraw(client, cash_headers, dep["id"], "500").json()
        created = spend(client, cash_headers, withdrawal["id"], "100").json()

        too_much = client.put(f"{BASE}/spends/{created['id']}", headers=cash_headers, json={"amount": "600"})
        assert too_much.status_code == 400

        updated = client.put(f"{BASE}/spends/{created['id']}", headers=cash_headers, json={"amount": "500"})
        assert updated.status_code == 200
        assert Decimal(updated.json()["amount"]) == Decimal("500")


class TestTicketUpload:

    def test_upload_ticket(self, client, cash_headers, storage, organization):
        dep = deposit(client, cash_headers, "1000")
        withdrawal = withdraw(client, cash_headers, dep["id"], "500").json()

        response = client.post(
            f"{BASE}/spends/upload",
            headers=cash_headers,
            data={"withdrawal_id": str(withdrawal["id"]), "motive": "peajes", "amount": "120"},
            files={"ticket": ("ticket.png", b"\x89PNG fake", "image/png")}
        )

        assert response.status_code == 201
        assert response.json()["ticket_url"].endswith("ticket.png")
        prefix = storage.upload.call_args.args[0]
        assert prefix == f"tickets/petty-cash/{organization.id}/{withdrawal['id']}"

    def test_unsupported_file_type(self, client, cash_headers, storage):
        dep = deposit(client, cash_headers, "1000")
        withdrawal = withdraw(client, cash_headers, dep["id"], "500").json()

        response = client.post(
            f"{BASE}/spends/upload",
            headers=cash_headers,
            data={"withdrawal_id": str(withdrawal["id"]), "motive": "peajes", "amount": "120"},
            files={"ticket": ("notas.txt", b"hola", "text/plain")}
        )
        assert response.status_code == 400
        storage.upload.assert_not_called()

    def test_storage_failure(self, client, cash_headers, storage):
        storage.upload.side_effect = StorageError("bucket caído")
        dep = deposit(client, cash_headers, "1000")
        withdrawal = withdraw(client, cash_headers, dep["id"], "500").json()

        response = client.post(
            f"{BASE}/spends/upload",
            headers=cash_headers,
            data={"withdrawal_id": str(withdrawal["id"]), "motive": "peajes", "amount": "120"},
            files={"ticket": ("t.pdf", b"%PDF-1.4", "application/pdf")}
        )
        assert response.status_code == 502

    def test_rejected_spend_is_not_uploaded(self, client, cash_headers, storage):
        dep = deposit(client, cash_headers, "1000")
        withdrawal = withdraw(client, cash_headers, dep["id"], "500").json()

        response = client.post(
            f"{BASE}/spends/upload",
            headers=cash_headers,
            data={"withdrawal_id": str(withdrawal["id"]), "motive": "peajes", "amount": "800"},
            files={"ticket": ("t.pdf", b"%PDF-1.4", "application/pdf")}
        )
        assert response.status_code == 400
        storage.upload.assert_not_called()

    def test_justified_withdrawal_rejects_ticket(self, client, cash_headers, storage):
        dep = deposit(client, cash_headers, "1000")
        withdrawal = withdraw(client, cash_headers, dep["id"], "500").json()
        spend(client, cash_headers, withdrawal["id"], "500")

        response = client.post(
            f"{BASE}/spends/upload",
            headers=cash_headers,
            data={"withdrawal_id": str(withdrawal["id"]), "motive": "peajes", "amount": "10"},
            files={"ticket": ("t.png", b"\x89PNG fake", "image/png")}
        )
        assert response.status_code == 400
        storage.upload.assert_not_called()


class TestDeletions:

    def test_delete_withdrawal_reopens_deposit(self, client, cash_headers):
        dep = deposit(client, cash_headers, "1000")
        withdrawal = withdraw(client, cash_headers, dep["id"], "1000").json()

        response = client.delete(f"{BASE}/withdrawals/{withdrawal['id']}", headers=cash_headers)
        assert response.status_code == 200
        assert response.json()["deposit_status"] == "OPEN"

    def test_withdrawal_with_spends_cannot_be_deleted(self, client, cash_headers):
        dep = deposit(client, cash_headers, "1000")
        withdrawal = withdraw(client, cash_headers, dep["id"], "500").json()
        spend(client, cash_headers, withdrawal["id"], "100")

        assert client.delete(f"{BASE}/withdrawals/{withdrawal['id']}", headers=cash_headers).status_code == 400

    def test_deposit_with_withdrawals_cannot_be_deleted(self, client, cash_headers):
        dep = deposit(client, cash_headers, "1000")
        withdraw(client, cash_headers, dep["id"], "500")

        assert client.delete(f"{BASE}/deposits/{dep['id']}", headers=cash_headers).status_code == 400

    def test_delete_spend_updates_justification(self, client, cash_headers):
        dep = deposit(client, cash_headers, "1000")
        withdrawal = withdraw(client, cash_headers, dep["id"], "500").json()
        created = spend(client, cash_headers, withdrawal["id"], "500").json()

        response = client.delete(f"{BASE}/spends/{created['id']}", headers=cash_headers)
        assert response.status_code == 200
        assert response.json()["withdrawal_status"] == "PENDING_JUSTIFICATION"

    def test_regular_user_cannot_delete(self, client, cash_headers, seller_headers):
        dep = deposit(client, cash_headers, "1000")
        assert client.delete(f"{BASE}/deposits/{dep['id']}", headers=seller_headers).status_code == 403

    @pytest.fixture
    def secure_mode(self, db_session, organization):
        organization.otp_secret = otp.generate_secret()
        organization.otp_verified = True
        organization.secure_mode_enabled = True
        db_session.commit()
        return organization.otp_secret

    def test_secure_mode_requires_otp(self, client, cash_headers, secure_mode):
        dep = deposit(client, cash_headers, "1000")

        assert client.delete(f"{BASE}/deposits/{dep['id']}", headers=cash_headers).status_code == 403
        assert client.delete(f"{BASE}/deposits/{dep['id']}", headers={**cash_headers, "X-OTP-Token": "12345"}
                             ).status_code == 403

        ok = client.delete(f"{BASE}/deposits/{dep['id']}",
                           headers={**cash_headers, "X-OTP-Token": otp.current_token(secure_mode)})
        assert ok.status_code == 200

    def test_otp_as_query_parameter(self, client, cash_headers, secure_mode):
        dep = deposit(client, cash_headers, "1000")
        response = client.delete(f"{BASE}/deposits/{dep['id']}", headers=cash_headers,
                                 params={"otp_token": otp.current_token(secure_mode)})
        assert response.status_code == 200
