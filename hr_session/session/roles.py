# hr_session/session/roles.py — Ordered two-table role resolution

from __future__ import annotations

import logging
from typing import Any, Protocol, Sequence

from hr_session.models.profile import (
    COMPANY_USER_COLUMNS,
    COMPANY_USERS_TABLE,
    PLATFORM_USER_COLUMNS,
    PLATFORM_USERS_TABLE,
    PrincipalId,
    Profile,
    profile_from_company_row,
    profile_from_platform_row,
)
from hr_session.session.bounded import with_timeout

logger = logging.getLogger(__name__)


class RoleLookup(Protocol):
    name: str

    async def lookup(self, client: Any, principal_id: PrincipalId) -> Profile | None: ...


class PlatformUserLookup:
    """Superadmins and consultants (`usuarios`)."""

    name = "platform_user"

    async def lookup(self, client: Any, principal_id: PrincipalId) -> Profile | None:
        result = await (
            client.table(PLATFORM_USERS_TABLE)
            .select(PLATFORM_USER_COLUMNS)
            .eq("auth_user_id", principal_id)
            .limit(1)
            .execute()
        )
        if not result.data:
            return None
        return profile_from_platform_row(result.data[0])


class CompanyUserLookup:
    """Active company administrators (`usuarios_empresa`)."""

    name = "company_user"

    async def lookup(self, client: Any, principal_id: PrincipalId) -> Profile | None:
        result = await (
            client.table(COMPANY_USERS_TABLE)
            .select(COMPANY_USER_COLUMNS)
            .eq("auth_user_id", principal_id)
            .eq("ativo", True)
            .limit(1)
            .execute()
        )
        if not result.data:
            return None
        return profile_from_company_row(result.data[0])


# Platform identities take precedence over company identities.
DEFAULT_LOOKUPS: tuple[RoleLookup, ...] = (PlatformUserLookup(), CompanyUserLookup())


class RoleResolver:
    """
    Map a principal to its Profile by trying each lookup in order.

    The first lookup that yields a profile wins. A lookup that fails or times out
    counts as "no profile" for its table and resolution moves on, so this never
    raises; the worst case is `None` (authenticated but unprovisioned).
    """

    def __init__(
        self,
        client: Any,
        *,
        timeout_seconds: float = 5.0,
        lookups: Sequence[RoleLookup] = DEFAULT_LOOKUPS,
    ) -> None:
        self._client = client
        self._timeout_seconds = timeout_seconds
        self._lookups = tuple(lookups)

    async def resolve_role(self, principal_id: PrincipalId) -> Profile | None:
        for lookup in self._lookups:
            try:
                profile = await with_timeout(
                    lookup.lookup(self._client, principal_id),
                    self._timeout_seconds,
                    None,
                    label=f"role_lookup.{lookup.name}",
                )
            except Exception as exc:  # noqa: BLE001
                logger.warning(
                    "Role lookup failed, trying next source",
                    extra={"lookup": lookup.name, "principal_id": principal_id, "error": str(exc)},
                )
                continue
            if profile is not None:
                return profile

        logger.warning(
            "Principal authenticated but no profile found",
            extra={"principal_id": principal_id},
        )
        return None
