# hr_session/session/controller.py — Process-wide session lifecycle coordinator

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Awaitable, Callable

from hr_session.config import Settings, get_settings
from hr_session.database import create_session_client
from hr_session.models.profile import ProfileId, Profile, Role
from hr_session.models.provisioning import InviteUserRequest
from hr_session.models.session import (
    Principal,
    SessionEvent,
    SessionEventKind,
    SessionState,
)
from hr_session.session.backup import EphemeralStore, ImpersonationBackup, MemoryEphemeralStore
from hr_session.session.bounded import with_timeout
from hr_session.session.errors import FunctionCallError, NotAuthenticatedError, ProvisioningError
from hr_session.session.functions import PrivilegedFunctions
from hr_session.session.impersonation import ImpersonationManager
from hr_session.session.inactivity import InactivityMonitor, InteractionSignal
from hr_session.session.policy import SessionPolicy
from hr_session.session.roles import RoleResolver
from hr_session.session.store import SessionStore

logger = logging.getLogger(__name__)


class SessionLifecycleController:
    """
    Owns the session lifecycle state. Every mutation goes through this class:
    initialization, the provider-event transition table, sign-out and the
    impersonation entry points. Consumers read `state` snapshots.

    Each identity transition bumps a generation counter; role resolutions apply
    their result only if no newer transition happened while they were running.
    """

    def __init__(
        self,
        *,
        store: Any,
        resolver: RoleResolver,
        functions: PrivilegedFunctions,
        backup: ImpersonationBackup,
        policy: SessionPolicy | None = None,
        monitor: InactivityMonitor | None = None,
    ) -> None:
        self._policy = policy or SessionPolicy()
        self._store = store
        self._resolver = resolver
        self._functions = functions
        self._backup = backup
        self._monitor = monitor or InactivityMonitor(self._policy.idle_timeout_seconds)
        self._impersonation = ImpersonationManager(
            store,
            backup,
            functions,
            on_restore_failure=self.sign_out,
            default_justification=self._policy.default_impersonation_justification,
        )
        self._state = SessionState(loading=True, impersonating=backup.exists())
        self._generation = 0
        self._initialized = False
        self._events: asyncio.Queue[SessionEvent] = asyncio.Queue()
        self._consumer: asyncio.Task | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._background: set[asyncio.Task] = set()
        self._transitions: dict[SessionEventKind, Callable[[SessionEvent], Awaitable[None]]] = {
            SessionEventKind.ESTABLISHED: self._on_established,
            SessionEventKind.TERMINATED: self._on_terminated,
            SessionEventKind.REFRESHED: self._on_refreshed,
        }

    @classmethod
    async def create(
        cls,
        settings: Settings | None = None,
        *,
        storage: EphemeralStore | None = None,
    ) -> "SessionLifecycleController":
        settings = settings or get_settings()
        policy = SessionPolicy.from_settings(settings)
        client = await create_session_client()
        return cls(
            store=SessionStore(client),
            resolver=RoleResolver(client, timeout_seconds=policy.role_lookup_timeout_seconds),
            functions=PrivilegedFunctions.from_settings(settings),
            backup=ImpersonationBackup(
                storage or MemoryEphemeralStore(),
                settings.impersonation_backup_key,
            ),
            policy=policy,
        )

    # -- read-only state -------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def principal(self) -> Principal | None:
        return self._state.principal

    @property
    def profile(self) -> Profile | None:
        return self._state.profile

    @property
    def role(self) -> Role | None:
        return self._state.role

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def impersonating(self) -> bool:
        return self._state.impersonating

    @property
    def monitor(self) -> InactivityMonitor:
        return self._monitor

    # -- initialization --------------------------------------------------

    async def initialize(self) -> SessionState:
        """Run once per process. `loading` is False when this returns."""
        if self._initialized:
            return self._state
        self._initialized = True

        self._unsubscribe = self._store.subscribe_to_changes(self._events.put_nowait)
        generation = self._generation
        try:
            await with_timeout(
                self._bootstrap(generation),
                self._policy.initialization_timeout_seconds,
                None,
                label="initialization",
            )
        except Exception:  # noqa: BLE001
            logger.exception("Session initialization failed")

        if self._state.loading:
            logger.warning(
                "Session initialization did not settle, forcing loading off",
                extra={"timeout_seconds": self._policy.initialization_timeout_seconds},
            )
            # Anything the bootstrap finishes after this point is stale.
            self._generation += 1
            self._set_state(loading=False)

        self._consumer = asyncio.create_task(self._consume_events())
        return self._state

    async def _bootstrap(self, generation: int) -> None:
        try:
            principal = await with_timeout(
                self._store.get_current_session(),
                self._policy.session_fetch_timeout_seconds,
                None,
                label="get_current_session",
            )
        except Exception:  # noqa: BLE001
            logger.exception("Session initialization failed")
            principal = None

        if generation != self._generation:
            return
        if principal is None:
            self._set_state(loading=False)
            return

        generation = self._begin_identity(principal)
        profile = await self._resolver.resolve_role(principal.principal_id)
        if generation != self._generation:
            return
        self._apply_profile(profile)
        self._set_state(loading=False)

    # -- provider events -------------------------------------------------

    async def _consume_events(self) -> None:
        while True:
            event = await self._events.get()
            try:
                await self._transitions[event.kind](event)
            except Exception:  # noqa: BLE001
                logger.exception("Failed to apply session event", extra={"kind": event.kind.value})
            finally:
                self._events.task_done()

    async def drain_events(self) -> None:
        """Wait until every provider event received so far has been applied."""
        if self._consumer is not None and not self._consumer.done():
            await self._events.join()

    async def _on_established(self, event: SessionEvent) -> None:
        if event.principal is None:
            return
        generation = self._begin_identity(event.principal)
        profile = await self._resolver.resolve_role(event.principal.principal_id)
        if generation == self._generation:
            self._apply_profile(profile)
            self._set_state(loading=False)

    async def _on_terminated(self, event: SessionEvent) -> None:
        self._clear_identity()

    async def _on_refreshed(self, event: SessionEvent) -> None:
        current = self._state.principal
        if event.principal is None:
            return
        if current is None or current.id != event.principal.id:
            await self._on_established(event)
            return
        # A token refresh never changes identity.
        self._set_state(principal=current.model_copy(update={"credentials": event.principal.credentials}))

    # -- state transitions -----------------------------------------------

    def _set_state(self, **changes: Any) -> None:
        self._state = self._state.model_copy(update=changes)

    def _begin_identity(self, principal: Principal) -> int:
        self._generation += 1
        current = self._state.principal
        changes: dict[str, Any] = {
            "principal": principal,
            "impersonating": self._backup.exists(),
        }
        if current is None or current.id != principal.id:
            changes.update(profile=None, role=None)
            self._monitor.arm(self._on_idle_timeout)
        elif not self._monitor.armed:
            self._monitor.arm(self._on_idle_timeout)
        self._set_state(**changes)
        return self._generation

    def _apply_profile(self, profile: Profile | None) -> None:
        self._set_state(profile=profile, role=profile.role if profile else None)

    def _clear_identity(self) -> None:
        self._generation += 1
        self._monitor.disarm()
        self._set_state(
            principal=None,
            profile=None,
            role=None,
            loading=False,
            impersonating=self._backup.exists(),
        )

    def _on_idle_timeout(self) -> None:
        task = asyncio.ensure_future(self.sign_out())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    # -- public operations -----------------------------------------------

    def record_activity(self, signal: InteractionSignal | str) -> bool:
        return self._monitor.record_activity(signal)

    async def sign_out(self) -> None:
        """Idempotent; safe from idle timeout, manual action or impersonation rollback."""
        self._backup.discard()
        self._monitor.disarm()
        self._clear_identity()
        try:
            await self._store.sign_out()
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Provider sign-out failed; local session already cleared",
                extra={"error": str(exc)},
            )

    async def refresh_profile(self) -> Profile | None:
        principal = self._state.principal
        if principal is None:
            return None
        generation = self._generation
        profile = await self._resolver.resolve_role(principal.principal_id)
        if generation == self._generation:
            self._apply_profile(profile)
        return self._state.profile

    async def impersonate_user(
        self,
        target_profile_id: ProfileId,
        justification: str | None = None,
    ) -> SessionState:
        try:
            impersonated = await self._impersonation.start_impersonation(
                self._state.profile,
                self._state.principal,
                target_profile_id,
                justification,
            )
        finally:
            self._set_state(impersonating=self._backup.exists())
            await self.drain_events()
        await self._ensure_principal(impersonated)
        return self._state

    async def stop_impersonation(self) -> SessionState:
        try:
            restored = await self._impersonation.stop_impersonation()
        finally:
            self._set_state(impersonating=self._backup.exists())
            await self.drain_events()
        await self._ensure_principal(restored)
        return self._state

    async def invite_company_user(self, request: InviteUserRequest) -> dict[str, Any]:
        principal = self._state.principal
        if principal is None:
            raise NotAuthenticatedError("Inviting users requires an authenticated session")
        try:
            return await self._functions.invite_user(
                request, access_token=principal.credentials.access_token
            )
        except FunctionCallError as exc:
            raise ProvisioningError(str(exc)) from exc

    async def close(self) -> None:
        self._monitor.disarm()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._consumer is not None:
            self._consumer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._consumer
            self._consumer = None

    async def _ensure_principal(self, principal: Principal) -> None:
        # Providers that do not emit a sign-in event for the swap still settle here.
        current = self._state.principal
        if current is None or current.id != principal.id:
            await self._on_established(SessionEvent(kind=SessionEventKind.ESTABLISHED, principal=principal))
