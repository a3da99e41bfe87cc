# hr_session/models/impersonation.py — Impersonation grant and audit schemas

from datetime import datetime
from typing import Any
from urllib.parse import parse_qs, urlparse

from pydantic import BaseModel, ConfigDict, model_validator

AUDIT_IMPERSONATION_TABLE = "audit_impersonation"


def _token_from_link(action_link: str) -> str | None:
    query = parse_qs(urlparse(action_link).query)
    values = query.get("token")
    return values[0] if values else None


class ImpersonationGrant(BaseModel):
    """One-time sign-in credential issued for the impersonation target."""

    model_config = ConfigDict(frozen=True)

    action_link: str
    hashed_token: str | None = None

    @model_validator(mode="after")
    def _require_token(self) -> "ImpersonationGrant":
        if not self.hashed_token and not _token_from_link(self.action_link):
            raise ValueError("impersonation grant carries no sign-in token")
        return self

    @property
    def token_hash(self) -> str:
        return self.hashed_token or _token_from_link(self.action_link) or ""


class ImpersonationAuditRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    acting_admin_profile_id: str
    target_profile_id: str
    target_type: str
    target_name: str
    justification: str
    started_at: datetime

    def to_row(self) -> dict[str, Any]:
        return {
            "admin_user_id": self.acting_admin_profile_id,
            "target_user_id": self.target_profile_id,
            "target_user_type": self.target_type,
            "target_user_name": self.target_name,
            "justificativa": self.justification,
            "inicio": self.started_at.isoformat(),
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ImpersonationAuditRecord":
        started = row.get("inicio") or row.get("criado_em")
        return cls(
            acting_admin_profile_id=str(row["admin_user_id"]),
            target_profile_id=str(row["target_user_id"]),
            target_type=row.get("target_user_type") or "",
            target_name=row.get("target_user_name") or "",
            justification=row.get("justificativa") or "",
            started_at=datetime.fromisoformat(str(started).replace("Z", "+00:00")),
        )
