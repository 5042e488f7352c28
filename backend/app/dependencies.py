"""
Request-scoped actor resolution and role checks.

Identity is asserted upstream (API gateway / auth service) and forwarded as
``X-User-Id`` and ``X-User-Role`` headers. Routers declare the roles allowed
for each operation with ``require_roles``; services only ever see the user id.
"""
from dataclasses import dataclass
from typing import Callable, List, Optional

from fastapi import Depends, Header, HTTPException, status


ROLE_ADMIN = "Admin"
ROLE_ADMINISTRATOR = "Administrator"
ROLE_MANAGER = "Mid-Level Manager"
ROLE_GODOWN = "Godown Incharge"

ADMIN_ROLES = [ROLE_ADMIN, ROLE_ADMINISTRATOR]


@dataclass(frozen=True)
class Actor:
    id: str
    role: str


def get_current_actor(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> Actor:
    if not x_user_id or not x_user_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "NOT_AUTHENTICATED", "message": "Missing user identity headers."},
        )
    return Actor(id=x_user_id.strip(), role=x_user_role.strip())


def require_roles(roles: List[str]) -> Callable[..., Actor]:
    allowed = set(roles)

    def _checker(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "code": "FORBIDDEN",
                    "message": f"Role '{actor.role}' is not allowed to perform this action.",
                },
            )
        return actor

    return _checker
