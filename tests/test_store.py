from __future__ import annotations

from types import SimpleNamespace

import pytest
from supabase_auth import AsyncGoTrueClient

from hr_session.models.impersonation import ImpersonationGrant
from hr_session.models.session import SessionEventKind
from hr_session.session.store import SessionStore


def _provider_session(user_id: str = "principal-1") -> SimpleNamespace:
    return SimpleNamespace(
        user=SimpleNamespace(id=user_id, email=f"{user_id}@acme.com"),
        access_token=f"access-{user_id}",
        refresh_token=f"refresh-{user_id}",
    )


class _AuthStub:
    def __init__(self) -> None:
        self.session = None
        self.callbacks: list = []
        self.unsubscribe_calls = 0
        self.sign_out_options: list[dict] = []
        self.set_session_calls: list[tuple[str, str]] = []
        self.verify_otp_calls: list[dict] = []
        self.response_session = _provider_session("principal-2")

    async def get_session(self):
        return self.session

    def on_auth_state_change(self, callback):
        self.callbacks.append(callback)

        def _unsubscribe() -> None:
            self.unsubscribe_calls += 1

        return SimpleNamespace(unsubscribe=_unsubscribe)

    async def sign_out(self, options):
        self.sign_out_options.append(options)

    async def set_session(self, access_token, refresh_token):
        self.set_session_calls.append((access_token, refresh_token))
        return SimpleNamespace(session=self.response_session)

    async def verify_otp(self, params):
        self.verify_otp_calls.append(params)
        return SimpleNamespace(session=self.response_session)


@pytest.fixture
def auth() -> _AuthStub:
    return _AuthStub()


@pytest.fixture
def store(auth) -> SessionStore:
    return SessionStore(SimpleNamespace(auth=auth))


@pytest.mark.asyncio
async def test_current_session_maps_to_principal(store, auth):
    assert await store.get_current_session() is None

    auth.session = _provider_session()
    principal = await store.get_current_session()

    assert principal.id == "principal-1"
    assert principal.email == "principal-1@acme.com"
    assert principal.credentials.refresh_token == "refresh-principal-1"


def test_provider_events_are_mapped_to_typed_events(store, auth):
    received = []
    store.subscribe_to_changes(received.append)
    [callback] = auth.callbacks

    callback("INITIAL_SESSION", _provider_session())
    callback("SIGNED_IN", _provider_session())
    callback("TOKEN_REFRESHED", _provider_session())
    callback("PASSWORD_RECOVERY", _provider_session())
    callback("SIGNED_OUT", None)

    assert [event.kind for event in received] == [
        SessionEventKind.ESTABLISHED,
        SessionEventKind.REFRESHED,
        SessionEventKind.TERMINATED,
    ]
    assert received[0].principal.id == "principal-1"
    assert received[2].principal is None


def test_unsubscribe_reaches_the_provider_once(store, auth):
    unsubscribe = store.subscribe_to_changes(lambda event: None)

    unsubscribe()
    unsubscribe()

    assert auth.unsubscribe_calls == 1


@pytest.mark.asyncio
async def test_sign_out_is_local_unless_asked_otherwise(store, auth):
    await store.sign_out()
    await store.sign_out(scope="global")

    assert auth.sign_out_options == [{"scope": "local"}, {"scope": "global"}]


@pytest.mark.asyncio
async def test_sign_out_keeps_other_refresh_tokens_alive_at_the_provider(monkeypatch):
    gotrue = AsyncGoTrueClient(url="http://localhost:9999", auto_refresh_token=False, persist_session=False)
    revoked_scopes = []

    async def _get_session():
        return SimpleNamespace(access_token="access-target")

    async def _admin_sign_out(jwt, scope="global"):
        revoked_scopes.append(scope)

    monkeypatch.setattr(gotrue, "get_session", _get_session)
    monkeypatch.setattr(gotrue.admin, "sign_out", _admin_sign_out)

    await SessionStore(SimpleNamespace(auth=gotrue)).sign_out()

    assert revoked_scopes == ["local"]


@pytest.mark.asyncio
async def test_replace_session_passes_the_pair_and_returns_the_new_principal(store, auth):
    principal = await store.replace_session("access-admin", "refresh-admin")

    assert auth.set_session_calls == [("access-admin", "refresh-admin")]
    assert principal.id == "principal-2"


@pytest.mark.asyncio
async def test_replace_session_without_provider_session_raises(store, auth):
    auth.response_session = None

    with pytest.raises(RuntimeError):
        await store.replace_session("access-admin", "refresh-admin")


@pytest.mark.asyncio
async def test_apply_grant_verifies_the_token_hash(store, auth):
    grant = ImpersonationGrant(
        action_link="https://project.supabase.co/auth/v1/verify?token=hashed-123&type=magiclink",
    )

    principal = await store.apply_grant(grant)

    assert auth.verify_otp_calls == [{"token_hash": "hashed-123", "type": "magiclink"}]
    assert principal.id == "principal-2"


@pytest.mark.asyncio
async def test_apply_grant_without_provider_session_raises(store, auth):
    auth.response_session = None

    with pytest.raises(RuntimeError):
        await store.apply_grant(ImpersonationGrant(action_link="https://x/verify", hashed_token="hashed-9"))
