"""Shared FastAPI dependencies."""

from fastapi import Header

from donation_ledger.core.exceptions import ForbiddenError, UnauthorizedError
from donation_ledger.core.logging import get_logger
from donation_ledger.models.user import Actor, Role

log = get_logger(__name__)

USER_ID_HEADER = "X-User-Id"
USER_ROLE_HEADER = "X-User-Role"


def actor_from_headers(user_id: str | None, role: str | None) -> Actor:
    """Build the caller from identity headers set by the auth gateway."""
    if not user_id or not user_id.strip():
        raise UnauthorizedError("Not authenticated")
    try:
        parsed = Role((role or "").strip().lower())
    except ValueError:
        raise UnauthorizedError("Unknown or missing role") from None
    return Actor(user_id=user_id.strip(), role=parsed)


async def get_current_actor(
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
    x_user_role: str | None = Header(None, alias=USER_ROLE_HEADER),
) -> Actor:
    """Dependency: identity of the caller."""
    return actor_from_headers(x_user_id, x_user_role)


async def require_admin(
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
    x_user_role: str | None = Header(None, alias=USER_ROLE_HEADER),
) -> Actor:
    """Dependency: require current caller to have role admin."""
    actor = actor_from_headers(x_user_id, x_user_role)
    if actor.role is not Role.ADMIN:
        log.warning("admin_required", user_id=actor.user_id, role=actor.role.value)
        raise ForbiddenError("Admin only")
    return actor
