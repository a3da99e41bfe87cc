# hr_session/services/provisioning.py — Server side of invite-user

from __future__ import annotations

import logging
from typing import Any

from hr_session.database import get_supabase_client
from hr_session.models.profile import COMPANY_USERS_TABLE, Profile
from hr_session.models.provisioning import InviteUserRequest
from hr_session.utils.exceptions import BadRequestError, ForbiddenError

logger = logging.getLogger(__name__)


def authorize_provisioning(caller: Profile | None, request: InviteUserRequest) -> None:
    if caller is None:
        raise ForbiddenError("Caller has no provisioned profile")
    if caller.role == "superadmin":
        return
    if caller.consultancy_id != request.consultoria_id:
        raise ForbiddenError("Cannot provision users outside your consultancy")
    if caller.role == "company_admin" and caller.client_company_id != request.empresa_id:
        raise ForbiddenError("Cannot provision users outside your company")


def invite_company_user(*, caller: Profile | None, request: InviteUserRequest) -> dict[str, Any]:
    """
    Create the provider principal, then its `usuarios_empresa` row.

    If the row insert fails the just-created principal is deleted before the
    error is surfaced, so no orphaned principal is left behind.
    """
    authorize_provisioning(caller, request)
    client = get_supabase_client()

    try:
        created = client.auth.admin.create_user(
            {
                "email": request.email,
                "password": request.password,
                "email_confirm": True,
                "user_metadata": {"full_name": request.nome},
            }
        )
    except Exception as exc:  # noqa: BLE001
        logger.warning("Failed to create principal", extra={"email": request.email, "error": str(exc)})
        raise BadRequestError(str(exc) or "Failed to create user") from exc

    principal_id = str(created.user.id)
    row = {
        "auth_user_id": principal_id,
        "consultoria_id": request.consultoria_id,
        "empresa_cliente_id": request.empresa_id,
        "nome": request.nome,
        "email": request.email,
        "role_empresa": request.role_empresa,
        "ativo": True,
    }
    try:
        result = client.table(COMPANY_USERS_TABLE).insert(row).execute()
        if not result.data:
            raise RuntimeError("Company user insert returned no row")
    except Exception as exc:  # noqa: BLE001
        logger.exception(
            "Company user insert failed, deleting orphaned principal",
            extra={"principal_id": principal_id, "empresa_id": request.empresa_id},
        )
        try:
            client.auth.admin.delete_user(principal_id)
        except Exception:  # noqa: BLE001
            logger.exception(
                "Compensating principal delete failed",
                extra={"principal_id": principal_id},
            )
        raise BadRequestError(str(exc) or "Failed to create company user") from exc

    logger.info(
        "Company user provisioned",
        extra={"principal_id": principal_id, "empresa_id": request.empresa_id},
    )
    return result.data[0]
