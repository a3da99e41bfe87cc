# hr_session/routers/functions.py — Privileged functions (impersonate-user, invite-user)

from typing import Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from hr_session.auth import (
    CallerContext,
    SuperadminContext,
    get_current_caller,
    get_current_superadmin,
)
from hr_session.database import get_supabase_client
from hr_session.models.profile import ProfileId
from hr_session.models.provisioning import InviteUserRequest
from hr_session.routers._responses import PRIVILEGED_ERROR_RESPONSES
from hr_session.services.impersonation import issue_impersonation_grant
from hr_session.services.profiles import load_profile
from hr_session.services.provisioning import invite_company_user
from hr_session.utils.exceptions import BadRequestError

router = APIRouter()


class ImpersonateUserRequest(BaseModel):
    target_user_id: str | None = None
    justificativa: str | None = None


class ImpersonateUserResponse(BaseModel):
    action_link: str
    hashed_token: str | None = None


@router.post(
    "/impersonate-user",
    response_model=ImpersonateUserResponse,
    responses=PRIVILEGED_ERROR_RESPONSES,
)
async def impersonate_user(
    payload: ImpersonateUserRequest,
    request: Request,
    superadmin: SuperadminContext = Depends(get_current_superadmin),
) -> ImpersonateUserResponse:
    """Issue a one-time sign-in credential for the target profile (superadmin only)."""
    target = (payload.target_user_id or "").strip()
    if not target:
        raise BadRequestError("target_user_id is required")

    grant = issue_impersonation_grant(
        acting_profile=superadmin.profile,
        target_profile_id=ProfileId(target),
        justification=payload.justificativa,
        redirect_to=request.headers.get("origin"),
    )
    return ImpersonateUserResponse(**grant)


@router.post(
    "/invite-user",
    responses=PRIVILEGED_ERROR_RESPONSES,
)
async def invite_user(
    payload: InviteUserRequest,
    caller: CallerContext = Depends(get_current_caller),
) -> dict[str, Any]:
    """Create a principal and its company-user row, rolling the principal back on failure."""
    caller_profile = load_profile(get_supabase_client(), caller.principal_id)
    return invite_company_user(caller=caller_profile, request=payload)
