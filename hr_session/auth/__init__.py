# hr_session/auth/__init__.py — Authentication for the privileged functions

from hr_session.auth.dependencies import get_current_caller, get_current_superadmin
from hr_session.auth.models import CallerContext, SuperadminContext

__all__ = [
    "get_current_caller",
    "get_current_superadmin",
    "CallerContext",
    "SuperadminContext",
]
