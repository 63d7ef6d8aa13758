"""Role capabilities checked at the operation boundary."""

from donation_ledger.core.exceptions import InvalidParticipantError
from donation_ledger.models.user import Actor, Role

BUYER_ROLES = frozenset({Role.BUSINESS, Role.BENEFICIARY})


def require_role(actor: Actor, *roles: Role) -> Actor:
    if actor.role not in roles:
        raise InvalidParticipantError(
            f"Role '{actor.role.value}' cannot perform this action",
            details={"user_id": actor.user_id, "allowed_roles": sorted(r.value for r in roles)},
        )
    return actor


def require_admin(actor: Actor) -> Actor:
    return require_role(actor, Role.ADMIN)


def require_buyer(actor: Actor) -> Actor:
    return require_role(actor, *BUYER_ROLES)
