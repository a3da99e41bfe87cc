# hr_session/routers/audit.py — Impersonation audit endpoints (superadmin only)

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from hr_session.auth import SuperadminContext, get_current_superadmin
from hr_session.config import get_settings
from hr_session.routers._responses import PRIVILEGED_ERROR_RESPONSES, DataEnvelope
from hr_session.services.audit import list_impersonation_audit

router = APIRouter()


class ImpersonationAuditListRequest(BaseModel):
    lookback_days: int | None = Field(default=None, ge=1, le=365)
    limit: int = Field(default=50, ge=1, le=500)


@router.post("/impersonation/list", response_model=DataEnvelope, responses=PRIVILEGED_ERROR_RESPONSES)
async def list_impersonation_events(
    payload: ImpersonationAuditListRequest,
    _: SuperadminContext = Depends(get_current_superadmin),
) -> DataEnvelope:
    lookback_days = payload.lookback_days or get_settings().audit_lookback_days
    records = list_impersonation_audit(lookback_days=lookback_days, limit=payload.limit)
    return DataEnvelope(data=[record.model_dump(mode="json") for record in records])
