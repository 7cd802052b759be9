"""
Supervisor authorization for order cancellation.

Cancelling an order needs a supervisor (ADMIN/MANAGER) who re-enters their
password. This is a precondition checked before the cancellation
transaction starts; the order aggregate only receives the verified actor.
"""

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from shared.config.constants import SUPERVISOR_ROLES
from shared.config.logging import audit_supervisor_event
from shared.security.password import verify_password
from rest_api.models import User
from rest_api.services.domain.errors import ForbiddenError


@dataclass(frozen=True)
class Actor:
    id: int
    name: str
    role: str


class SupervisorVerifier:
    """Checks role and password re-entry against the stored bcrypt hash."""

    def __init__(self, db: Session):
        self._db = db

    def verify(self, user_id: int, password: str | None) -> Actor:
        user = self._db.scalar(
            select(User).where(User.id == user_id, User.is_active.is_(True))
        )
        if user is None or user.role not in SUPERVISOR_ROLES:
            audit_supervisor_event(
                "CANCEL_DENIED",
                user_id=user_id,
                email=user.email if user else None,
                success=False,
                reason="role",
            )
            raise ForbiddenError("role")

        if not verify_password(password or "", user.password):
            audit_supervisor_event(
                "CANCEL_DENIED",
                user_id=user.id,
                email=user.email,
                success=False,
                reason="password",
            )
            raise ForbiddenError("password")

        audit_supervisor_event("CANCEL_AUTHORIZED", user_id=user.id, email=user.email)
        return Actor(id=user.id, name=user.name, role=user.role)
