"""
Account lifecycle service tests.

Verifies:
- Registration starts in the initial state and rejects duplicate mobiles
- Login gate ordering and the single-session rule
- Admin overrides stamp timestamps and resolve pending requests
- Deleting a user removes their verification requests
"""

import pytest

from lotdesk.errors import (
    AccountDeactivatedError,
    AlreadyLoggedInError,
    DuplicateUserError,
    InvalidCredentialsError,
    NotFoundError,
    PaymentRequiredError,
    ValidationError,
    VerificationPendingError,
)
from lotdesk.models import User, VerificationRequest
from lotdesk.services import account_service, auth_service, token_service, verification_service
from lotdesk.services.principal import Principal

from conftest import USER_PASSKEY, make_user


class TestRegister:
    def test_initial_state(self, db_session):
        user = account_service.register("Asha", " 9000000010 ", "1234")

        assert user.mobile == "9000000010"
        assert user.is_active is True
        assert user.is_logged_in is False
        assert user.subscription_paid is False
        assert user.is_verified is False
        assert user.transaction_id == ""
        assert user.passkey_hash != "1234"
        assert auth_service.verify_password("1234", user.passkey_hash)

    def test_duplicate_mobile(self, db_session, new_user):
        with pytest.raises(DuplicateUserError) as exc:
            account_service.register("Someone", new_user.mobile, "0000")
        assert exc.value.status_code == 400
        assert exc.value.message == "User with this mobile number already exists"
        assert db_session.query(User).count() == 1

    @pytest.mark.parametrize("name,mobile,passkey", [
        ("", "9000000011", "1"),
        ("A", "", "1"),
        ("A", "9000000011", ""),
        ("A", "9" * 21, "1"),
    ])
    def test_missing_fields(self, db_session, name, mobile, passkey):
        with pytest.raises(ValidationError):
            account_service.register(name, mobile, passkey)


class TestLogin:
    def test_bad_credentials(self, db_session, verified_user):
        with pytest.raises(InvalidCredentialsError):
            account_service.login(verified_user.mobile, "wrong")
        with pytest.raises(InvalidCredentialsError):
            account_service.login("0000000000", USER_PASSKEY)

    def test_success_sets_session(self, db_session, verified_user):
        result = account_service.login(verified_user.mobile, USER_PASSKEY)

        assert result.user.is_logged_in is True
        assert result.user.last_login_at is not None
        claims = token_service.verify_token(result.token)
        assert claims.kind == token_service.KIND_USER
        assert claims.identity_id == verified_user.id

    def test_second_login_rejected(self, db_session, verified_user):
        account_service.login(verified_user.mobile, USER_PASSKEY)
        with pytest.raises(AlreadyLoggedInError):
            account_service.login(verified_user.mobile, USER_PASSKEY)

    def test_second_login_allowed_without_single_session(self, app, db_session, verified_user, monkeypatch):
        monkeypatch.setitem(app.config, "SINGLE_SESSION_LOGIN", False)
        account_service.login(verified_user.mobile, USER_PASSKEY)
        account_service.login(verified_user.mobile, USER_PASSKEY)

    def test_gate_order(self, db_session):
        logged_in_inactive = make_user(db_session, "9000000020", is_active=False, is_logged_in=True)
        inactive_unpaid = make_user(db_session, "9000000021", is_active=False)
        unpaid = make_user(db_session, "9000000022")
        unverified = make_user(db_session, "9000000023", subscription_paid=True)

        with pytest.raises(AlreadyLoggedInError):
            account_service.login(logged_in_inactive.mobile, USER_PASSKEY)
        with pytest.raises(AccountDeactivatedError):
            account_service.login(inactive_unpaid.mobile, USER_PASSKEY)
        with pytest.raises(PaymentRequiredError):
            account_service.login(unpaid.mobile, USER_PASSKEY)
        with pytest.raises(VerificationPendingError):
            account_service.login(unverified.mobile, USER_PASSKEY)

    def test_failed_gate_leaves_flags(self, db_session, new_user):
        with pytest.raises(PaymentRequiredError):
            account_service.login(new_user.mobile, USER_PASSKEY)
        db_session.refresh(new_user)
        assert new_user.is_logged_in is False
        assert new_user.last_login_at is None


class TestOverrides:
    def test_logout_round_trip(self, db_session, verified_user):
        account_service.login(verified_user.mobile, USER_PASSKEY)
        user = account_service.logout(verified_user.id)
        assert user.is_logged_in is False
        assert user.last_logout_at is not None

        # Session cleared, so a fresh login is allowed
        account_service.login(verified_user.mobile, USER_PASSKEY)

    def test_deactivate_logs_out(self, db_session, verified_user):
        account_service.login(verified_user.mobile, USER_PASSKEY)
        user = account_service.set_active(verified_user.id, False)

        assert user.is_active is False
        assert user.is_logged_in is False
        assert user.last_logout_at is not None
        with pytest.raises(AccountDeactivatedError):
            account_service.login(verified_user.mobile, USER_PASSKEY)

    def test_update_status_both_flags(self, db_session, verified_user):
        user = account_service.update_status(verified_user.id, is_active=True, is_logged_in=True)
        assert user.is_logged_in is True
        assert user.last_login_at is not None

    def test_unpay_clears_subscription_fields(self, db_session, verified_user):
        user = account_service.set_subscription_paid(verified_user.id, True, transaction_id=" TX-9 ")
        assert user.transaction_id == "TX-9"
        assert user.subscription_date is not None

        user = account_service.set_subscription_paid(verified_user.id, False)
        assert user.subscription_paid is False
        assert user.subscription_date is None
        assert user.transaction_id == ""
        # Verified flag is independent of payment
        assert user.is_verified is True

    def test_manual_verify_resolves_pending(self, db_session, admin, new_user):
        verification_service.submit_payment(new_user.id, "TX-1", Principal.for_user(new_user))

        user = account_service.set_verified(new_user.id, True, admin_id=admin.id)

        assert user.is_verified is True
        assert user.verification_date is not None
        request = db_session.query(VerificationRequest).filter_by(user_id=new_user.id).one()
        assert request.status == "approved"
        assert request.reviewed_by == admin.id
        assert request.remarks == "Manually verified by admin"

    def test_manual_unverify_rejects_pending(self, db_session, admin, new_user):
        verification_service.submit_payment(new_user.id, "TX-1", Principal.for_user(new_user))

        user = account_service.set_verified(new_user.id, False, admin_id=admin.id)

        assert user.is_verified is False
        assert user.verification_date is None
        request = db_session.query(VerificationRequest).filter_by(user_id=new_user.id).one()
        assert request.status == "rejected"
        assert request.remarks == "Manually rejected by admin"

    def test_unknown_user(self, db_session):
        with pytest.raises(NotFoundError) as exc:
            account_service.set_active(999999, False)
        assert exc.value.message == "User not found"


class TestDirectory:
    def test_delete_cascades_requests(self, db_session, new_user):
        verification_service.submit_payment(new_user.id, "TX-1", Principal.for_user(new_user))
        user_id = new_user.id

        deleted = account_service.delete_user(user_id)

        assert deleted == {"id": user_id, "name": "Asha", "mobile": "9000000001"}
        assert db_session.get(User, user_id) is None
        assert db_session.query(VerificationRequest).filter_by(user_id=user_id).count() == 0

    def test_list_filters_and_pagination(self, db_session, new_user, paid_user, verified_user):
        page = account_service.list_users(page=1, limit=2)
        assert page["pagination"] == {
            "currentPage": 1,
            "totalPages": 2,
            "totalUsers": 3,
            "hasNextPage": True,
            "hasPrevPage": False,
        }
        assert len(page["users"]) == 2

        paid = account_service.list_users(subscription_status="paid")
        assert {u["mobile"] for u in paid["users"]} == {paid_user.mobile, verified_user.mobile}

        unverified = account_service.list_users(verification_status="unverified")
        assert {u["mobile"] for u in unverified["users"]} == {new_user.mobile, paid_user.mobile}

        by_name = account_service.list_users(search="chit")
        assert [u["name"] for u in by_name["users"]] == ["Chitra"]
        for literal in ("%", "_", "Ch_tra"):
            assert account_service.list_users(search=literal)["users"] == []

        online = account_service.list_users(login_status="online")
        assert online["users"] == []

    def test_serialized_user_has_no_hash(self, db_session, new_user):
        body = new_user.to_dict()
        assert "passkeyHash" not in body
        assert "passkey_hash" not in body
        assert body["isActive"] is True
