# hr_session/models/profile.py — Profile schemas and identity-table row mapping

from typing import Any, Literal, NewType

from pydantic import BaseModel, ConfigDict, model_validator

# Identity-provider user id (the `auth_user_id` column).
PrincipalId = NewType("PrincipalId", str)
# Primary key of a `usuarios` / `usuarios_empresa` row.
ProfileId = NewType("ProfileId", str)

Role = Literal["superadmin", "consultant", "company_admin"]

PLATFORM_USERS_TABLE = "usuarios"
COMPANY_USERS_TABLE = "usuarios_empresa"

PLATFORM_USER_COLUMNS = "id, nome, email, role, role_plataforma, consultoria_id"
COMPANY_USER_COLUMNS = "id, nome, email, role_empresa, consultoria_id, empresa_cliente_id"


class Profile(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str
    role: Role
    consultancy_id: str | None = None
    client_company_id: str | None = None

    @model_validator(mode="after")
    def _check_scope(self) -> "Profile":
        if self.role == "company_admin":
            if not self.consultancy_id or not self.client_company_id:
                raise ValueError("company_admin profile requires a consultancy and a client company id")
        elif self.client_company_id is not None:
            raise ValueError(f"{self.role} profile cannot be scoped to a client company")
        return self

    @property
    def is_platform_user(self) -> bool:
        return self.role in {"superadmin", "consultant"}


def profile_from_platform_row(row: dict[str, Any]) -> Profile:
    role: Role = "superadmin" if row.get("role_plataforma") == "superadmin" else "consultant"
    return Profile(
        id=str(row["id"]),
        name=row.get("nome") or "",
        email=row.get("email") or "",
        role=role,
        consultancy_id=row.get("consultoria_id"),
        client_company_id=None,
    )


def profile_from_company_row(row: dict[str, Any]) -> Profile:
    return Profile(
        id=str(row["id"]),
        name=row.get("nome") or "",
        email=row.get("email") or "",
        role="company_admin",
        consultancy_id=row.get("consultoria_id"),
        client_company_id=row.get("empresa_cliente_id"),
    )
