# hr_session/session/policy.py — Session lifecycle timing policy

from dataclasses import dataclass

from hr_session.config import Settings


@dataclass(frozen=True)
class SessionPolicy:
    session_fetch_timeout_seconds: float = 5.0
    role_lookup_timeout_seconds: float = 5.0
    initialization_timeout_seconds: float = 8.0
    idle_timeout_seconds: float = 300.0
    default_impersonation_justification: str = "Support access"

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionPolicy":
        return cls(
            session_fetch_timeout_seconds=settings.session_fetch_timeout_seconds,
            role_lookup_timeout_seconds=settings.role_lookup_timeout_seconds,
            initialization_timeout_seconds=settings.initialization_timeout_seconds,
            idle_timeout_seconds=settings.idle_timeout_seconds,
            default_impersonation_justification=settings.default_impersonation_justification,
        )
