from collections.abc import Iterable

from fastapi import HTTPException, status

from goldpulse.models.enums import RoleName
from goldpulse.models.user import User


DASHBOARD_ROLES = (RoleName.admin, RoleName.staff)


def require_roles(user: User, allowed_roles: Iterable[RoleName]) -> None:
    allowed = {RoleName(role).value for role in allowed_roles}
    if RoleName(user.role).value in allowed:
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Insufficient role privileges.",
    )
