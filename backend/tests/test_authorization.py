"""
Tests for supervisor authorization and the staff JWT helpers.
"""

import pytest
from fastapi import HTTPException

from rest_api.models import Order
from rest_api.services.domain import ForbiddenError, SupervisorVerifier
from shared.security.auth import require_roles, sign_jwt, verify_jwt
from shared.security.password import hash_password, verify_password
from tests.conftest import SUPERVISOR_PASSWORD


class TestSupervisorVerifier:

    def test_manager_with_correct_password(self, db_session, seed_users):
        actor = SupervisorVerifier(db_session).verify(2, SUPERVISOR_PASSWORD)

        assert actor.id == 2
        assert actor.name == "Marta"
        assert actor.role == "MANAGER"

    @pytest.mark.parametrize("role", ["CASHIER", "WAITER", "KITCHEN"])
    def test_non_supervisor_roles_are_forbidden(self, db_session, seed_users, role):
        with pytest.raises(ForbiddenError) as exc_info:
            SupervisorVerifier(db_session).verify(seed_users[role].id, "senha123")

        assert exc_info.value.reason == "role"

    def test_wrong_password_is_forbidden(self, db_session, seed_users):
        with pytest.raises(ForbiddenError) as exc_info:
            SupervisorVerifier(db_session).verify(2, "chute")

        assert exc_info.value.reason == "password"
        assert exc_info.value.payload == {"motivo": "password"}

    def test_missing_password_is_forbidden(self, db_session, seed_users):
        with pytest.raises(ForbiddenError):
            SupervisorVerifier(db_session).verify(2, None)

    def test_inactive_supervisor_is_forbidden(self, db_session, seed_users):
        seed_users["MANAGER"].is_active = False
        db_session.commit()

        with pytest.raises(ForbiddenError) as exc_info:
            SupervisorVerifier(db_session).verify(2, SUPERVISOR_PASSWORD)
        assert exc_info.value.reason == "role"


class TestCancelAuthorization:

    def test_forbidden_cancel_leaves_order_untouched(self, db_session, service, seed):
        order = service.create_order(table_id=1)
        service.add_item(order.id, 1, 2)

        with pytest.raises(ForbiddenError):
            service.cancel_order(order.id, "teste", 4, "senha123")

        db_session.expire_all()
        order = db_session.get(Order, order.id)
        assert order.status == "IN_PRODUCTION"
        assert order.note is None


class TestPasswords:

    def test_hash_round_trip(self):
        hashed = hash_password("s3nha", rounds=4)
        assert hashed != "s3nha"
        assert verify_password("s3nha", hashed)
        assert not verify_password("outra", hashed)

    def test_malformed_hash_does_not_verify(self):
        assert not verify_password("x", "not-a-bcrypt-hash")

    def test_password_longer_than_bcrypt_limit_does_not_verify(self):
        hashed = hash_password("s3nha", rounds=4)
        assert not verify_password("x" * 80, hashed)
        assert not verify_password("ã" * 40, hashed)


class TestJwt:

    def test_sign_and_verify(self):
        token = sign_jwt({"sub": "7", "name": "Ana", "role": "WAITER"})

        claims = verify_jwt(token)

        assert claims["sub"] == "7"
        assert claims["role"] == "WAITER"

    def test_expired_token(self):
        token = sign_jwt({"sub": "7", "role": "WAITER"}, ttl_seconds=-10)

        with pytest.raises(HTTPException) as exc_info:
            verify_jwt(token)
        assert exc_info.value.status_code == 401

    def test_missing_role_claim(self):
        token = sign_jwt({"sub": "7"})

        with pytest.raises(HTTPException) as exc_info:
            verify_jwt(token)
        assert exc_info.value.status_code == 401

    def test_require_roles(self):
        require_roles({"sub": "1", "role": "CASHIER"}, ["CASHIER", "ADMIN"])

        with pytest.raises(HTTPException) as exc_info:
            require_roles({"sub": "1", "role": "KITCHEN"}, ["CASHIER"])
        assert exc_info.value.status_code == 403
