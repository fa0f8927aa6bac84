"""FastAPI dependencies resolving the caller identity.

Authentication happens at the gateway, which forwards the verified identity in
trusted headers:

    X-User-Id:        opaque user id (required)
    X-User-Role:      APPLICANT | MANAGER | ADMIN (required)
    X-User-Elevated:  "true" when the caller holds elevated privileges

Usage:
    @router.get("/applications/my")
    def my_applications(caller: CurrentCaller):
        ...

    @router.get("/statistics/applications")
    def statistics(caller: CallerIdentity = Depends(require_role([Role.ADMIN, Role.MANAGER]))):
        ...
"""

from typing import Annotated, Callable, Iterable, Optional

from fastapi import Depends, Header, HTTPException, status

from .roles import CallerIdentity, UserRole, ensure_role

TRUE_VALUES = frozenset({"1", "true", "yes"})


def get_caller(
    x_user_id: Annotated[Optional[str], Header()] = None,
    x_user_role: Annotated[Optional[str], Header()] = None,
    x_user_elevated: Annotated[Optional[str], Header()] = None,
) -> CallerIdentity:
    """Build the ``CallerIdentity`` from gateway headers.

    Raises:
        HTTPException 401: If the user id or role header is missing or the role is unknown
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    try:
        role = UserRole((x_user_role or "").strip().upper())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid X-User-Role header: {x_user_role!r}",
        )

    elevated = (x_user_elevated or "").strip().lower() in TRUE_VALUES
    return CallerIdentity(user_id=x_user_id.strip(), role=role, elevated=elevated)


CurrentCaller = Annotated[CallerIdentity, Depends(get_caller)]


def require_role(allowed_roles: Iterable[UserRole]) -> Callable[[CallerIdentity], CallerIdentity]:
    """Dependency factory rejecting callers outside ``allowed_roles`` with 403."""
    allowed = frozenset(allowed_roles)

    def role_checker(caller: CurrentCaller) -> CallerIdentity:
        ensure_role(caller, allowed)
        return caller

    return role_checker
