# hr_session/session/impersonation.py — Impersonation state machine (backup, swap, restore)

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Awaitable, Callable

from hr_session.models.profile import ProfileId, Profile
from hr_session.models.session import Principal
from hr_session.session.backup import ImpersonationBackup
from hr_session.session.errors import (
    ImpersonationError,
    NotAuthenticatedError,
    NotImpersonatingError,
    RestorationError,
)
from hr_session.session.functions import PrivilegedFunctions

logger = logging.getLogger(__name__)


class ImpersonationPhase(str, Enum):
    IDLE = "idle"
    BACKED_UP = "backed_up"
    ACTIVE = "active"


class ImpersonationManager:
    """
    Idle -> BackedUp -> Active -> Idle, or BackedUp -> Idle on failure.

    The acting credential pair is backed up before any network call so a crash
    mid-swap always leaves a recovery path. Authorization and the audit record
    are the remote function's responsibility.
    """

    def __init__(
        self,
        store: Any,
        backup: ImpersonationBackup,
        functions: PrivilegedFunctions,
        *,
        on_restore_failure: Callable[[], Awaitable[None]],
        default_justification: str = "Support access",
    ) -> None:
        self._store = store
        self._backup = backup
        self._functions = functions
        self._on_restore_failure = on_restore_failure
        self._default_justification = default_justification
        self._phase = ImpersonationPhase.IDLE

    @property
    def phase(self) -> ImpersonationPhase:
        if not self._backup.exists():
            return ImpersonationPhase.IDLE
        if self._phase is ImpersonationPhase.IDLE:
            # Backup survived a reload of this process's state.
            return ImpersonationPhase.ACTIVE
        return self._phase

    async def start_impersonation(
        self,
        acting_profile: Profile | None,
        principal: Principal | None,
        target_profile_id: ProfileId,
        justification: str | None = None,
    ) -> Principal:
        if principal is None:
            raise NotAuthenticatedError("Impersonation requires an authenticated session")
        if self._backup.exists():
            raise ImpersonationError("An impersonation session is already active")

        self._backup.save(principal.credentials)
        self._phase = ImpersonationPhase.BACKED_UP
        log_extra = {
            "acting_profile_id": acting_profile.id if acting_profile else None,
            "target_profile_id": target_profile_id,
        }
        logger.info("Impersonation requested", extra=log_extra)

        try:
            grant = await self._functions.impersonate_user(
                target_profile_id,
                justification or self._default_justification,
                access_token=principal.credentials.access_token,
            )
        except Exception as exc:  # noqa: BLE001
            self._rollback()
            logger.warning("Impersonation rejected", extra={**log_extra, "error": str(exc)})
            raise ImpersonationError(str(exc) or "Failed to start impersonation") from exc

        try:
            await self._store.sign_out(scope="local")
        except Exception as exc:  # noqa: BLE001
            self._rollback()
            logger.warning("Could not leave acting session", extra={**log_extra, "error": str(exc)})
            raise ImpersonationError("Failed to start impersonation") from exc

        try:
            impersonated = await self._store.apply_grant(grant)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Failed to apply impersonation grant, restoring acting session", extra=log_extra)
            await self._restore_after_failed_swap()
            raise ImpersonationError("Failed to start impersonation") from exc

        self._phase = ImpersonationPhase.ACTIVE
        logger.info("Impersonation active", extra=log_extra)
        return impersonated

    async def stop_impersonation(self) -> Principal:
        try:
            credentials = self._backup.take()
        except ValueError as exc:
            self._phase = ImpersonationPhase.IDLE
            await self._on_restore_failure()
            raise RestorationError("Impersonation backup was unreadable; signed out") from exc
        if credentials is None:
            raise NotImpersonatingError("No impersonation session to stop")

        self._phase = ImpersonationPhase.IDLE
        try:
            await self._store.sign_out(scope="local")
            restored = await self._store.replace_session(
                credentials.access_token, credentials.refresh_token
            )
        except Exception as exc:  # noqa: BLE001
            logger.exception("Failed to restore acting session, forcing sign-out")
            await self._on_restore_failure()
            raise RestorationError("Could not restore the original session; signed out") from exc

        logger.info("Impersonation stopped", extra={"principal_id": restored.id})
        return restored

    def _rollback(self) -> None:
        self._backup.discard()
        self._phase = ImpersonationPhase.IDLE

    async def _restore_after_failed_swap(self) -> None:
        credentials = self._backup.take()
        self._phase = ImpersonationPhase.IDLE
        if credentials is None:
            await self._on_restore_failure()
            return
        try:
            await self._store.replace_session(credentials.access_token, credentials.refresh_token)
        except Exception:  # noqa: BLE001
            logger.exception("Failed to restore acting session after aborted impersonation")
            await self._on_restore_failure()
