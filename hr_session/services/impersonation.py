# hr_session/services/impersonation.py — Server side of impersonate-user

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from typing import Any

from hr_session.config import get_settings
from hr_session.database import get_supabase_client
from hr_session.models.impersonation import AUDIT_IMPERSONATION_TABLE, ImpersonationAuditRecord
from hr_session.models.profile import (
    COMPANY_USERS_TABLE,
    PLATFORM_USERS_TABLE,
    ProfileId,
    Profile,
)
from hr_session.utils.exceptions import BadRequestError, NotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImpersonationTarget:
    profile_id: ProfileId
    email: str
    name: str
    target_type: str


def resolve_impersonation_target(client: Any, target_profile_id: ProfileId) -> ImpersonationTarget:
    """
    Look the target up by profile id: platform users first, then company users.
    """
    platform = (
        client.table(PLATFORM_USERS_TABLE)
        .select("email, nome, role_plataforma")
        .eq("id", target_profile_id)
        .limit(1)
        .execute()
    )
    if platform.data:
        row = platform.data[0]
        target_type = row.get("role_plataforma") or "consultor"
    else:
        company = (
            client.table(COMPANY_USERS_TABLE)
            .select("email, nome, role_empresa")
            .eq("id", target_profile_id)
            .limit(1)
            .execute()
        )
        if not company.data:
            raise NotFoundError("Target user")
        row = company.data[0]
        target_type = row.get("role_empresa") or ""

    email = (row.get("email") or "").strip()
    if not email:
        raise BadRequestError("Target user email not found")

    return ImpersonationTarget(
        profile_id=target_profile_id,
        email=email,
        name=row.get("nome") or "",
        target_type=target_type,
    )


def _link_properties(link_response: Any) -> tuple[str, str | None]:
    properties = getattr(link_response, "properties", None)
    action_link = getattr(properties, "action_link", None)
    if not action_link:
        raise BadRequestError("Link generation failed")
    return action_link, getattr(properties, "hashed_token", None)


def issue_impersonation_grant(
    *,
    acting_profile: Profile,
    target_profile_id: ProfileId,
    justification: str | None,
    redirect_to: str | None = None,
) -> dict[str, Any]:
    """
    Generate a one-time sign-in link for the target and record the audit row.

    The acting profile must already be verified as superadmin. A link is never
    returned unless its audit row was written.
    """
    settings = get_settings()
    client = get_supabase_client()

    if acting_profile.id == target_profile_id:
        raise BadRequestError("Cannot impersonate yourself")

    target = resolve_impersonation_target(client, target_profile_id)

    try:
        link_response = client.auth.admin.generate_link(
            {
                "type": "magiclink",
                "email": target.email,
                "options": {"redirect_to": redirect_to or settings.impersonation_redirect_to},
            }
        )
    except Exception as exc:  # noqa: BLE001
        logger.exception(
            "Failed to generate impersonation link",
            extra={"target_profile_id": target_profile_id},
        )
        raise BadRequestError(str(exc) or "Link generation failed") from exc
    action_link, hashed_token = _link_properties(link_response)

    record = ImpersonationAuditRecord(
        acting_admin_profile_id=acting_profile.id,
        target_profile_id=target.profile_id,
        target_type=target.target_type,
        target_name=target.name,
        justification=(justification or "").strip() or settings.default_impersonation_justification,
        started_at=datetime.now(timezone.utc),
    )
    try:
        client.table(AUDIT_IMPERSONATION_TABLE).insert(record.to_row()).execute()
    except Exception as exc:  # noqa: BLE001
        logger.exception(
            "Failed to write impersonation audit record",
            extra={"acting_profile_id": acting_profile.id, "target_profile_id": target_profile_id},
        )
        raise BadRequestError("Failed to record impersonation audit entry") from exc

    logger.info(
        "Impersonation grant issued",
        extra={
            "acting_profile_id": acting_profile.id,
            "target_profile_id": target_profile_id,
            "target_type": target.target_type,
        },
    )
    return {"action_link": action_link, "hashed_token": hashed_token}
