"""
HTTP tests for /api/users.

Verifies:
- Registration and login status codes, including the 401/402/403 gate matrix
- The full register -> pay -> approve -> login round trip
- Ownership rules on payment submission and status checks
- Admin overrides and cascade delete
"""

import pytest

from lotdesk.models import VerificationRequest

from conftest import USER_PASSKEY, auth_headers, make_user, token_for_user


def _login(client, mobile, passkey=USER_PASSKEY):
    return client.post("/api/users/login", json={"mobile": mobile, "passkey": passkey})


class TestRegistration:
    def test_register(self, client, db_session):
        resp = client.post("/api/users/register", json={
            "name": "Asha", "mobile": "9000000100", "passkey": "1234",
        })
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["user"]["mobile"] == "9000000100"
        assert body["user"]["subscriptionPaid"] is False
        assert body["user"]["isVerified"] is False
        assert "token" not in body
        assert "passkey" not in body["user"]

    def test_register_issues_token_when_enabled(self, app, client, db_session, monkeypatch):
        monkeypatch.setitem(app.config, "REGISTRATION_ISSUES_TOKEN", True)
        resp = client.post("/api/users/register", json={
            "name": "Asha", "mobile": "9000000101", "passkey": "1234",
        })
        assert resp.status_code == 201
        assert resp.get_json()["token"]

    def test_duplicate_mobile(self, client, new_user):
        resp = client.post("/api/users/register", json={
            "name": "Other", "mobile": new_user.mobile, "passkey": "1234",
        })
        assert resp.status_code == 400
        assert resp.get_json() == {"message": "User with this mobile number already exists"}

    def test_missing_field(self, client, db_session):
        resp = client.post("/api/users/register", json={"name": "Asha", "mobile": "9000000102"})
        assert resp.status_code == 400

    def test_passkey_kept_verbatim(self, client, db_session):
        resp = client.post("/api/users/register", json={
            "name": "Asha", "mobile": "9000000103", "passkey": " p1 ",
        })
        assert resp.status_code == 201

        assert _login(client, "9000000103", "p1").status_code == 401
        # Credentials match, then the unpaid gate applies
        assert _login(client, "9000000103", " p1 ").status_code == 402


class TestLoginGates:
    def test_bad_credentials(self, client, verified_user):
        resp = _login(client, verified_user.mobile, "nope")
        assert resp.status_code == 401

    def test_unpaid(self, client, new_user):
        resp = _login(client, new_user.mobile)
        assert resp.status_code == 402
        assert resp.get_json()["paymentRequired"] is True

    def test_unverified(self, client, paid_user):
        resp = _login(client, paid_user.mobile)
        assert resp.status_code == 403
        assert resp.get_json()["verificationPending"] is True

    def test_deactivated(self, client, db_session):
        user = make_user(db_session, "9000000110", is_active=False, subscription_paid=True, is_verified=True)
        resp = _login(client, user.mobile)
        assert resp.status_code == 403
        assert resp.get_json()["message"] == "Account is deactivated"

    def test_already_logged_in(self, client, verified_user):
        assert _login(client, verified_user.mobile).status_code == 200
        resp = _login(client, verified_user.mobile)
        assert resp.status_code == 403
        assert resp.get_json()["alreadyLoggedIn"] is True

    def test_success(self, client, verified_user):
        resp = _login(client, verified_user.mobile)
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["token"]
        assert body["user"]["isLoggedIn"] is True


class TestRoundTrip:
    def test_register_pay_approve_login(self, client, admin_headers):
        resp = client.post("/api/users/register", json={
            "name": "Ravi", "mobile": "9000000120", "passkey": "5678",
        })
        assert resp.status_code == 201
        user_id = resp.get_json()["user"]["id"]

        # Not yet paid
        resp = _login(client, "9000000120", "5678")
        assert resp.status_code == 402

        # A not-yet-verified user cannot log in, so the admin submits on their behalf
        resp = client.post(
            "/api/users/submit-payment",
            json={"userId": user_id, "transactionId": "UPI-4821"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        request_id = resp.get_json()["requestId"]

        resp = _login(client, "9000000120", "5678")
        assert resp.status_code == 403
        assert resp.get_json()["verificationPending"] is True

        resp = client.get("/api/users/verification-requests?status=pending", headers=admin_headers)
        assert [r["id"] for r in resp.get_json()] == [request_id]

        resp = client.put(
            f"/api/users/verification-requests/{request_id}",
            json={"status": "approved", "remarks": "OK"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["request"]["status"] == "approved"

        resp = _login(client, "9000000120", "5678")
        assert resp.status_code == 200
        user_headers = auth_headers(resp.get_json()["token"])

        resp = client.get("/api/products", headers=user_headers)
        assert resp.status_code == 200

        resp = client.post("/api/users/logout", headers=user_headers)
        assert resp.status_code == 200
        assert resp.get_json()["isLoggedIn"] is False

        # Logout does not revoke the token
        resp = client.get("/api/products", headers=user_headers)
        assert resp.status_code == 200


class TestSubmitPayment:
    def test_self_submission_with_user_token(self, client, new_user):
        headers = auth_headers(token_for_user(new_user))
        resp = client.post("/api/users/submit-payment", json={"transactionId": "TX-1"}, headers=headers)
        assert resp.status_code == 200
        assert resp.get_json()["user"]["subscriptionPaid"] is True

        resp = client.post("/api/users/submit-payment", json={"transactionId": "TX-2"}, headers=headers)
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Subscription already paid"

    def test_other_user_forbidden(self, client, new_user, paid_user):
        headers = auth_headers(token_for_user(paid_user))
        resp = client.post(
            "/api/users/submit-payment",
            json={"userId": new_user.id, "transactionId": "TX-1"},
            headers=headers,
        )
        assert resp.status_code == 403

    def test_missing_transaction_id(self, client, new_user):
        headers = auth_headers(token_for_user(new_user))
        resp = client.post("/api/users/submit-payment", json={}, headers=headers)
        assert resp.status_code == 400

    def test_requires_token(self, client, new_user):
        resp = client.post("/api/users/submit-payment", json={"transactionId": "TX-1"})
        assert resp.status_code == 401

    def test_status_for_self_and_admin(self, client, admin_headers, new_user, paid_user):
        headers = auth_headers(token_for_user(new_user))
        assert client.get(f"/api/users/verification-status/{new_user.id}", headers=headers).status_code == 200
        assert client.get(f"/api/users/verification-status/{paid_user.id}", headers=headers).status_code == 403
        assert client.get(f"/api/users/verification-status/{paid_user.id}", headers=admin_headers).status_code == 200


class TestAdjudicationApi:
    def _pending_request(self, db_session, admin, user):
        from lotdesk.services import verification_service
        from lotdesk.services.principal import Principal

        return verification_service.submit_payment(user.id, "TX-1", Principal.for_admin(admin)).request

    def test_reject_requires_remarks(self, client, db_session, admin, admin_headers, new_user):
        request = self._pending_request(db_session, admin, new_user)
        resp = client.put(
            f"/api/users/verification-requests/{request.id}",
            json={"status": "rejected", "remarks": "  "},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_reject(self, client, db_session, admin, admin_headers, new_user):
        request = self._pending_request(db_session, admin, new_user)
        resp = client.put(
            f"/api/users/verification-requests/{request.id}",
            json={"status": "rejected", "remarks": "Payment not received"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["request"]["remarks"] == "Payment not received"

    def test_unknown_request(self, client, admin_headers):
        resp = client.put(
            "/api/users/verification-requests/999999",
            json={"status": "approved"},
            headers=admin_headers,
        )
        assert resp.status_code == 404

    def test_user_token_forbidden(self, client, verified_user):
        headers = auth_headers(token_for_user(verified_user))
        assert client.get("/api/users/verification-requests", headers=headers).status_code == 403


class TestAdminOverrides:
    def test_deactivate_blocks_login(self, client, admin_headers, verified_user):
        assert _login(client, verified_user.mobile).status_code == 200

        resp = client.put(
            f"/api/users/{verified_user.id}/status",
            json={"isActive": False},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        body = resp.get_json()["user"]
        assert body["isActive"] is False
        assert body["isLoggedIn"] is False

        resp = _login(client, verified_user.mobile)
        assert resp.status_code == 403
        assert resp.get_json()["message"] == "Account is deactivated"

    def test_deactivated_user_token_rejected(self, client, admin_headers, verified_user):
        headers = auth_headers(token_for_user(verified_user))
        client.put(f"/api/users/{verified_user.id}/status", json={"isActive": False}, headers=admin_headers)

        assert client.get("/api/products", headers=headers).status_code == 403

    def test_force_logout(self, client, admin_headers, verified_user):
        _login(client, verified_user.mobile)
        resp = client.post(f"/api/users/{verified_user.id}/force-logout", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["user"]["isLoggedIn"] is False
        assert _login(client, verified_user.mobile).status_code == 200

    def test_admin_logout_requires_user_id(self, client, admin_headers, verified_user):
        assert client.post("/api/users/logout", json={}, headers=admin_headers).status_code == 400
        resp = client.post("/api/users/logout", json={"userId": verified_user.id}, headers=admin_headers)
        assert resp.status_code == 200

    def test_subscription_override(self, client, admin_headers, verified_user):
        resp = client.put(
            f"/api/users/{verified_user.id}/subscription",
            json={"subscriptionPaid": False},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["user"]["subscriptionPaid"] is False
        assert _login(client, verified_user.mobile).status_code == 402

    def test_verification_override(self, client, admin_headers, paid_user):
        resp = client.put(
            f"/api/users/{paid_user.id}/verification",
            json={"isVerified": True},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["user"]["isVerified"] is True
        assert _login(client, paid_user.mobile).status_code == 200

    @pytest.mark.parametrize("body", [{}, {"isActive": "maybe"}])
    def test_status_validation(self, client, admin_headers, verified_user, body):
        resp = client.put(f"/api/users/{verified_user.id}/status", json=body, headers=admin_headers)
        assert resp.status_code == 400

    def test_unknown_user(self, client, admin_headers):
        resp = client.put("/api/users/999999/status", json={"isActive": False}, headers=admin_headers)
        assert resp.status_code == 404
        assert resp.get_json() == {"message": "User not found"}

    def test_delete_cascades(self, client, db_session, admin_headers, new_user):
        client.post(
            "/api/users/submit-payment",
            json={"userId": new_user.id, "transactionId": "TX-1"},
            headers=admin_headers,
        )
        user_id = new_user.id

        resp = client.delete(f"/api/users/{user_id}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["deletedUser"]["id"] == user_id
        assert db_session.query(VerificationRequest).filter_by(user_id=user_id).count() == 0
        assert client.get(f"/api/users/{user_id}", headers=admin_headers).status_code == 404

    def test_directory(self, client, admin_headers, new_user, paid_user, verified_user):
        resp = client.get("/api/users/all?subscriptionStatus=paid&limit=1", headers=admin_headers)
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["pagination"]["totalUsers"] == 2
        assert body["pagination"]["totalPages"] == 2
        assert len(body["users"]) == 1

    def test_user_detail(self, client, admin_headers, new_user):
        resp = client.get(f"/api/users/{new_user.id}", headers=admin_headers)
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["user"]["mobile"] == new_user.mobile
        assert body["verificationHistory"] == []
