# hr_session/services/profiles.py — Service-role profile lookups

from typing import Any

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


def load_platform_user_row(client: Any, principal_id: PrincipalId) -> dict[str, Any] | None:
    result = (
        client.table(PLATFORM_USERS_TABLE)
        .select(PLATFORM_USER_COLUMNS)
        .eq("auth_user_id", principal_id)
        .limit(1)
        .execute()
    )
    return result.data[0] if result.data else None


def load_active_company_user_row(client: Any, principal_id: PrincipalId) -> dict[str, Any] | None:
    result = (
        client.table(COMPANY_USERS_TABLE)
        .select(COMPANY_USER_COLUMNS)
        .eq("auth_user_id", principal_id)
        .eq("ativo", True)
        .limit(1)
        .execute()
    )
    return result.data[0] if result.data else None


def load_profile(client: Any, principal_id: PrincipalId) -> Profile | None:
    """Same precedence as the client resolver: platform row, then active company row."""
    platform_row = load_platform_user_row(client, principal_id)
    if platform_row:
        return profile_from_platform_row(platform_row)
    company_row = load_active_company_user_row(client, principal_id)
    if company_row:
        return profile_from_company_row(company_row)
    return None
