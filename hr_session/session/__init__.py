# hr_session/session/__init__.py — Client-side session lifecycle management

from hr_session.session.backup import ImpersonationBackup, MemoryEphemeralStore
from hr_session.session.bounded import with_timeout
from hr_session.session.controller import SessionLifecycleController
from hr_session.session.errors import (
    FunctionCallError,
    ImpersonationError,
    NotAuthenticatedError,
    NotImpersonatingError,
    ProvisioningError,
    RestorationError,
    SessionError,
)
from hr_session.session.inactivity import InactivityMonitor, InteractionSignal
from hr_session.session.policy import SessionPolicy
from hr_session.session.roles import RoleResolver

__all__ = [
    "FunctionCallError",
    "ImpersonationBackup",
    "ImpersonationError",
    "InactivityMonitor",
    "InteractionSignal",
    "MemoryEphemeralStore",
    "NotAuthenticatedError",
    "NotImpersonatingError",
    "ProvisioningError",
    "RestorationError",
    "RoleResolver",
    "SessionError",
    "SessionLifecycleController",
    "SessionPolicy",
    "with_timeout",
]
