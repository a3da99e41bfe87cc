# hr_session/models/provisioning.py — Company-user provisioning schemas

from pydantic import BaseModel, field_validator


class InviteUserRequest(BaseModel):
    email: str
    password: str
    nome: str
    role_empresa: str
    empresa_id: str
    consultoria_id: str

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        cleaned = value.strip().lower()
        if "@" not in cleaned:
            raise ValueError("email must be a valid address")
        return cleaned

    @field_validator("nome", "role_empresa", "empresa_id", "consultoria_id")
    @classmethod
    def _require_text(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("must be non-empty")
        return cleaned
