# hr_session/services/audit.py — Impersonation audit reads

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from hr_session.database import get_supabase_client
from hr_session.models.impersonation import AUDIT_IMPERSONATION_TABLE, ImpersonationAuditRecord


def list_impersonation_audit(*, lookback_days: int, limit: int = 50) -> list[ImpersonationAuditRecord]:
    since = datetime.now(timezone.utc) - timedelta(days=lookback_days)
    result = (
        get_supabase_client()
        .table(AUDIT_IMPERSONATION_TABLE)
        .select("*")
        .gte("inicio", since.isoformat())
        .order("inicio", desc=True)
        .limit(limit)
        .execute()
    )
    return [ImpersonationAuditRecord.from_row(row) for row in result.data or []]
