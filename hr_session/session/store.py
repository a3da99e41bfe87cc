# hr_session/session/store.py — Facade over the identity provider's session primitives

from __future__ import annotations

import logging
from typing import Any, Callable, Literal

from hr_session.models.impersonation import ImpersonationGrant
from hr_session.models.session import (
    PROVIDER_EVENT_KINDS,
    Principal,
    SessionEvent,
)

logger = logging.getLogger(__name__)

SignOutScope = Literal["local", "global", "others"]


class SessionStore:
    """
    Thin adapter over a supabase `AsyncClient`'s auth API.

    Callers are responsible for bounding `get_current_session` with `with_timeout`.
    """

    def __init__(self, client: Any) -> None:
        self._client = client

    async def get_current_session(self) -> Principal | None:
        session = await self._client.auth.get_session()
        if session is None or getattr(session, "user", None) is None:
            return None
        return Principal.from_provider_session(session)

    def subscribe_to_changes(self, handler: Callable[[SessionEvent], None]) -> Callable[[], None]:
        """Register `handler` for provider transitions; returns an idempotent unsubscribe."""

        def _on_auth_state_change(event: str, session: Any) -> None:
            kind = PROVIDER_EVENT_KINDS.get(str(event))
            if kind is None:
                logger.debug("Ignoring provider auth event", extra={"event": str(event)})
                return
            principal = None
            if session is not None and getattr(session, "user", None) is not None:
                principal = Principal.from_provider_session(session)
            handler(SessionEvent(kind=kind, principal=principal))

        subscription = self._client.auth.on_auth_state_change(_on_auth_state_change)
        unsubscribed = False

        def _unsubscribe() -> None:
            nonlocal unsubscribed
            if unsubscribed:
                return
            unsubscribed = True
            subscription.unsubscribe()

        return _unsubscribe

    async def sign_out(self, *, scope: SignOutScope = "local") -> None:
        """
        End the session at the provider. A global sign-out revokes every refresh
        token of the user, the impersonation backup included.
        """
        await self._client.auth.sign_out({"scope": scope})

    async def replace_session(self, access_token: str, refresh_token: str) -> Principal:
        response = await self._client.auth.set_session(access_token, refresh_token)
        if response is None or response.session is None:
            raise RuntimeError("Identity provider did not return a session")
        return Principal.from_provider_session(response.session)

    async def apply_grant(self, grant: ImpersonationGrant) -> Principal:
        """Exchange a one-time sign-in token for a live session."""
        response = await self._client.auth.verify_otp(
            {"token_hash": grant.token_hash, "type": "magiclink"}
        )
        if response is None or response.session is None:
            raise RuntimeError("Identity provider did not return a session for the grant")
        return Principal.from_provider_session(response.session)
