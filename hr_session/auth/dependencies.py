# hr_session/auth/dependencies.py — Bearer token -> CallerContext

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from hr_session.auth.models import CallerContext, SuperadminContext
from hr_session.database import get_supabase_client
from hr_session.models.profile import PrincipalId
from hr_session.services.profiles import load_profile
from hr_session.utils.exceptions import ForbiddenError, UnauthorizedError

security = HTTPBearer(auto_error=False)


async def get_current_caller(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> CallerContext:
    """Validate the bearer credential with the identity provider."""
    if credentials is None:
        raise UnauthorizedError("No authorization header")

    client = get_supabase_client()
    try:
        response = client.auth.get_user(credentials.credentials)
    except Exception:  # noqa: BLE001
        raise UnauthorizedError("Invalid user token")

    user = response.user if response is not None else None
    if user is None:
        raise UnauthorizedError("Invalid user token")

    return CallerContext(principal_id=PrincipalId(str(user.id)), email=user.email)


async def get_current_superadmin(
    caller: CallerContext = Depends(get_current_caller),
) -> SuperadminContext:
    profile = load_profile(get_supabase_client(), caller.principal_id)
    if profile is None or profile.role != "superadmin":
        raise ForbiddenError("Unauthorized. Requires superadmin role.")
    return SuperadminContext(caller=caller, profile=profile)
