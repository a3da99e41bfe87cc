# hr_session/auth/models.py — Caller contexts for the privileged functions

from dataclasses import dataclass

from hr_session.models.profile import PrincipalId, Profile


@dataclass(frozen=True)
class CallerContext:
    principal_id: PrincipalId
    email: str | None = None


@dataclass(frozen=True)
class SuperadminContext:
    caller: CallerContext
    profile: Profile
