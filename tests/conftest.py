from __future__ import annotations

import asyncio
import os
from types import SimpleNamespace
from typing import Any

import pytest

os.environ.setdefault("SUPABASE_URL", "https://project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "service-key")

from hr_session.models.impersonation import ImpersonationGrant  # noqa: E402
from hr_session.models.profile import Profile  # noqa: E402
from hr_session.models.session import (  # noqa: E402
    CredentialPair,
    Principal,
    SessionEvent,
    SessionEventKind,
)
from hr_session.session.backup import ImpersonationBackup, MemoryEphemeralStore  # noqa: E402
from hr_session.session.controller import SessionLifecycleController  # noqa: E402
from hr_session.session.errors import FunctionCallError  # noqa: E402
from hr_session.session.policy import SessionPolicy  # noqa: E402


def _principal(principal_id: str, access_token: str | None = None, refresh_token: str | None = None) -> Principal:
    return Principal(
        id=principal_id,
        email=f"{principal_id}@example.com",
        credentials=CredentialPair(
            access_token=access_token or f"access-{principal_id}",
            refresh_token=refresh_token or f"refresh-{principal_id}",
        ),
    )


class FakeProvider:
    """In-memory identity provider with the SessionStore surface."""

    def __init__(self, session: Principal | None = None) -> None:
        self.session = session
        self.accounts: dict[str, Principal] = {}
        self.grants: dict[str, Principal] = {}
        self.handlers: list[Any] = []
        self.sign_out_calls = 0
        self.sign_out_scopes: list[str] = []
        self.unsubscribe_calls = 0
        self.replace_calls: list[tuple[str, str]] = []
        self.hang_get_session = False
        self.get_session_error: Exception | None = None
        self.sign_out_error: Exception | None = None
        self.replace_error: Exception | None = None
        self.apply_error: Exception | None = None
        if session is not None:
            self.register(session)

    def register(self, principal: Principal) -> Principal:
        self.accounts[principal.credentials.access_token] = principal
        return principal

    def emit(self, kind: SessionEventKind, principal: Principal | None = None) -> None:
        for handler in list(self.handlers):
            handler(SessionEvent(kind=kind, principal=principal))

    async def get_current_session(self) -> Principal | None:
        if self.hang_get_session:
            await asyncio.sleep(30)
        if self.get_session_error is not None:
            raise self.get_session_error
        return self.session

    def subscribe_to_changes(self, handler):
        self.handlers.append(handler)

        def _unsubscribe() -> None:
            self.unsubscribe_calls += 1
            self.handlers.remove(handler)

        return _unsubscribe

    async def sign_out(self, *, scope: str = "local") -> None:
        self.sign_out_calls += 1
        self.sign_out_scopes.append(scope)
        if self.sign_out_error is not None:
            raise self.sign_out_error
        self.session = None
        self.emit(SessionEventKind.TERMINATED)

    async def replace_session(self, access_token: str, refresh_token: str) -> Principal:
        self.replace_calls.append((access_token, refresh_token))
        if self.replace_error is not None:
            raise self.replace_error
        principal = self.accounts[access_token]
        if principal.credentials.refresh_token != refresh_token:
            raise RuntimeError("Invalid refresh token")
        self.session = principal
        self.emit(SessionEventKind.ESTABLISHED, principal)
        return principal

    async def apply_grant(self, grant: ImpersonationGrant) -> Principal:
        if self.apply_error is not None:
            raise self.apply_error
        principal = self.grants[grant.token_hash]
        self.session = principal
        self.emit(SessionEventKind.ESTABLISHED, principal)
        return principal


class FakeFunctions:
    def __init__(self) -> None:
        self.grant: ImpersonationGrant | None = None
        self.error: Exception | None = None
        self.impersonate_calls: list[dict[str, Any]] = []
        self.invite_calls: list[dict[str, Any]] = []
        self.invite_result: dict[str, Any] = {"id": "new-company-user"}

    async def impersonate_user(self, target_profile_id, justification, *, access_token):
        self.impersonate_calls.append(
            {"target": target_profile_id, "justification": justification, "access_token": access_token}
        )
        if self.error is not None:
            raise self.error
        if self.grant is None:
            raise FunctionCallError("impersonate-user", "Link generation failed", 400)
        return self.grant

    async def invite_user(self, request, *, access_token):
        self.invite_calls.append({"request": request, "access_token": access_token})
        if self.error is not None:
            raise self.error
        return self.invite_result


class FakeResolver:
    def __init__(self) -> None:
        self.profiles: dict[str, Profile] = {}
        self.delay_seconds = 0.0
        self.calls: list[str] = []

    async def resolve_role(self, principal_id: str) -> Profile | None:
        self.calls.append(principal_id)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        return self.profiles.get(principal_id)


@pytest.fixture
def make_principal():
    return _principal


@pytest.fixture
def superadmin_profile() -> Profile:
    return Profile(
        id="profile-admin",
        name="Ana Admin",
        email="admin@example.com",
        role="superadmin",
        consultancy_id=None,
    )


@pytest.fixture
def company_profile() -> Profile:
    return Profile(
        id="profile-company",
        name="Carlos Company",
        email="carlos@acme.com",
        role="company_admin",
        consultancy_id="consultancy-1",
        client_company_id="company-1",
    )


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def functions() -> FakeFunctions:
    return FakeFunctions()


@pytest.fixture
def resolver() -> FakeResolver:
    return FakeResolver()


@pytest.fixture
def storage() -> MemoryEphemeralStore:
    return MemoryEphemeralStore()


@pytest.fixture
def backup(storage: MemoryEphemeralStore) -> ImpersonationBackup:
    return ImpersonationBackup(storage, "admin_backup_session")


@pytest.fixture
def policy() -> SessionPolicy:
    return SessionPolicy(
        session_fetch_timeout_seconds=0.2,
        role_lookup_timeout_seconds=0.2,
        initialization_timeout_seconds=0.3,
        idle_timeout_seconds=60.0,
    )


@pytest.fixture
def make_controller(provider, resolver, functions, backup, policy):
    def _make(**overrides: Any) -> SessionLifecycleController:
        controller = SessionLifecycleController(
            store=overrides.get("store", provider),
            resolver=overrides.get("resolver", resolver),
            functions=overrides.get("functions", functions),
            backup=overrides.get("backup", backup),
            policy=overrides.get("policy", policy),
            monitor=overrides.get("monitor"),
        )
        return controller

    return _make


class _SyncQuery:
    def __init__(self, client: "FakeSupabase", table: str) -> None:
        self._client = client
        self._table = table
        self._filters: list[tuple[str, Any]] = []
        self._payload: dict[str, Any] | None = None

    def select(self, *_: Any, **__: Any) -> "_SyncQuery":
        return self

    def eq(self, key: str, value: Any) -> "_SyncQuery":
        self._filters.append((key, value))
        return self

    def gte(self, key: str, value: Any) -> "_SyncQuery":
        self._client.range_filters.append((self._table, key, value))
        return self

    def order(self, *_: Any, **__: Any) -> "_SyncQuery":
        return self

    def limit(self, _: int) -> "_SyncQuery":
        return self

    def insert(self, payload: dict[str, Any]) -> "_SyncQuery":
        self._payload = payload
        return self

    def execute(self) -> SimpleNamespace:
        self._client.queries.append((self._table, tuple(self._filters)))
        if self._payload is not None:
            error = self._client.insert_errors.get(self._table)
            if error is not None:
                raise error
            self._client.inserted.setdefault(self._table, []).append(self._payload)
            return SimpleNamespace(data=[{"id": f"{self._table}-new", **self._payload}])
        rows = [
            row
            for row in self._client.rows.get(self._table, [])
            if all(row.get(key) == value for key, value in self._filters)
        ]
        return SimpleNamespace(data=rows)


class _AdminStub:
    def __init__(self) -> None:
        self.generated_links: list[dict[str, Any]] = []
        self.created_users: list[dict[str, Any]] = []
        self.deleted_users: list[str] = []
        self.link_error: Exception | None = None
        self.create_error: Exception | None = None

    def generate_link(self, params: dict[str, Any]) -> SimpleNamespace:
        if self.link_error is not None:
            raise self.link_error
        self.generated_links.append(params)
        return SimpleNamespace(
            properties=SimpleNamespace(
                action_link="https://project.supabase.co/auth/v1/verify?token=hashed-123&type=magiclink",
                hashed_token="hashed-123",
            )
        )

    def create_user(self, attributes: dict[str, Any]) -> SimpleNamespace:
        if self.create_error is not None:
            raise self.create_error
        self.created_users.append(attributes)
        return SimpleNamespace(user=SimpleNamespace(id="principal-new"))

    def delete_user(self, principal_id: str) -> None:
        self.deleted_users.append(principal_id)


class FakeSupabase:
    """Service-role client stand-in with table rows keyed by table name."""

    def __init__(self) -> None:
        self.rows: dict[str, list[dict[str, Any]]] = {}
        self.inserted: dict[str, list[dict[str, Any]]] = {}
        self.insert_errors: dict[str, Exception] = {}
        self.queries: list[tuple[str, tuple]] = []
        self.range_filters: list[tuple[str, str, Any]] = []
        self.users_by_token: dict[str, SimpleNamespace] = {}
        self.auth = SimpleNamespace(admin=_AdminStub(), get_user=self._get_user)

    def _get_user(self, token: str) -> SimpleNamespace:
        user = self.users_by_token.get(token)
        if user is None:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=user)

    def table(self, name: str) -> _SyncQuery:
        return _SyncQuery(self, name)


@pytest.fixture
def supabase(monkeypatch: pytest.MonkeyPatch) -> FakeSupabase:
    from hr_session.auth import dependencies
    from hr_session.routers import functions as functions_router
    from hr_session.services import audit, impersonation, provisioning

    client = FakeSupabase()
    for module in (dependencies, functions_router, audit, impersonation, provisioning):
        monkeypatch.setattr(module, "get_supabase_client", lambda: client)
    return client
