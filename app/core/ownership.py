# =========================================================
# OWNERSHIP GUARD
#
# SALES:
# - Owner can read/delete
# - ADMIN can read/delete any sale
#
# CLIENTS:
# - Owner only, no admin override
#
# The two policies stay separate functions so the admin
# override can never leak into client access.
# =========================================================

from dataclasses import dataclass

from app.models.users import UserRole


@dataclass(frozen=True)
class Caller:
    id: int
    role: UserRole = UserRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def can_access(caller_id: int, caller_role: UserRole | None, resource_owner_id: int) -> bool:
    # Sale policy
    if caller_role == UserRole.ADMIN:
        return True
    return resource_owner_id == caller_id


def can_access_client(caller_id: int, resource_owner_id: int) -> bool:
    # Client policy: strictly owner-scoped
    return resource_owner_id == caller_id
