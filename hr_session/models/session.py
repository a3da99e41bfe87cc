# hr_session/models/session.py — Principal, credential and session-state schemas

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from hr_session.models.profile import PrincipalId, Profile, Role


class CredentialPair(BaseModel):
    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: str

    def __repr__(self) -> str:
        return "CredentialPair(access_token=***, refresh_token=***)"

    __str__ = __repr__


class Principal(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    email: str | None = None
    credentials: CredentialPair

    @property
    def principal_id(self) -> PrincipalId:
        return PrincipalId(self.id)

    @classmethod
    def from_provider_session(cls, session: Any) -> "Principal":
        """Build from a supabase/gotrue `Session` object."""
        user = session.user
        return cls(
            id=str(user.id),
            email=getattr(user, "email", None),
            credentials=CredentialPair(
                access_token=session.access_token,
                refresh_token=session.refresh_token,
            ),
        )


class SessionEventKind(str, Enum):
    ESTABLISHED = "established"
    TERMINATED = "terminated"
    REFRESHED = "refreshed"


# Provider event name -> typed event kind. Anything else is ignored.
PROVIDER_EVENT_KINDS: dict[str, SessionEventKind] = {
    "SIGNED_IN": SessionEventKind.ESTABLISHED,
    "SIGNED_OUT": SessionEventKind.TERMINATED,
    "TOKEN_REFRESHED": SessionEventKind.REFRESHED,
    "USER_UPDATED": SessionEventKind.REFRESHED,
}


class SessionEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: SessionEventKind
    principal: Principal | None = None


class SessionState(BaseModel):
    """Read-only snapshot of the process-wide session lifecycle state."""

    model_config = ConfigDict(frozen=True)

    principal: Principal | None = None
    profile: Profile | None = None
    role: Role | None = None
    loading: bool = True
    impersonating: bool = False

    @property
    def is_unprovisioned(self) -> bool:
        return self.principal is not None and self.profile is None and not self.loading
