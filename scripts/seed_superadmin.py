#!/usr/bin/env python3
"""
Seed a single platform superadmin (provider principal + `usuarios` row).

Required environment variables:
- SUPABASE_URL
- SUPABASE_ANON_KEY
- SUPABASE_SERVICE_KEY
- SUPERADMIN_EMAIL
- SUPERADMIN_PASSWORD
Optional:
- SUPERADMIN_NAME
"""

import os
import sys

from hr_session.database import get_supabase_client
from hr_session.models.profile import PLATFORM_USERS_TABLE


def _required_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


def main() -> int:
    email = _required_env("SUPERADMIN_EMAIL").strip().lower()
    password = _required_env("SUPERADMIN_PASSWORD")
    name = os.getenv("SUPERADMIN_NAME", "Superadmin")

    client = get_supabase_client()
    existing = (
        client.table(PLATFORM_USERS_TABLE)
        .select("id")
        .eq("email", email)
        .limit(1)
        .execute()
    )
    if existing.data:
        print(f"superadmin already exists for {email}")
        return 0

    created = client.auth.admin.create_user(
        {
            "email": email,
            "password": password,
            "email_confirm": True,
            "user_metadata": {"full_name": name},
        }
    )
    principal_id = str(created.user.id)
    try:
        client.table(PLATFORM_USERS_TABLE).insert(
            {
                "auth_user_id": principal_id,
                "nome": name,
                "email": email,
                "role_plataforma": "superadmin",
                "ativo": True,
            }
        ).execute()
    except Exception:
        client.auth.admin.delete_user(principal_id)
        raise

    print(f"seeded superadmin: {email}")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception as exc:  # noqa: BLE001
        print(f"seed_superadmin failed: {exc}", file=sys.stderr)
        raise SystemExit(1)
