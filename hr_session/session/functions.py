# hr_session/session/functions.py — HTTP client for the privileged remote functions

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from hr_session.config import Settings
from hr_session.models.impersonation import ImpersonationGrant
from hr_session.models.profile import ProfileId
from hr_session.models.provisioning import InviteUserRequest
from hr_session.session.errors import FunctionCallError

logger = logging.getLogger(__name__)


def _parse_body(response: httpx.Response) -> dict[str, Any]:
    try:
        parsed = response.json()
    except ValueError:
        return {"raw": response.text}
    if isinstance(parsed, dict):
        return parsed
    return {"value": parsed}


class PrivilegedFunctions:
    """Calls `/functions/v1/<name>` with the caller's bearer credential."""

    def __init__(self, base_url: str, api_key: str, *, timeout_seconds: float = 20.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout_seconds = timeout_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "PrivilegedFunctions":
        return cls(
            settings.supabase_url,
            settings.supabase_anon_key,
            timeout_seconds=settings.functions_timeout_seconds,
        )

    async def invoke(self, name: str, *, access_token: str, body: dict[str, Any]) -> dict[str, Any]:
        url = f"{self._base_url}/functions/v1/{name}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
                response = await client.post(
                    url,
                    headers={
                        "Authorization": f"Bearer {access_token}",
                        "apikey": self._api_key,
                        "Content-Type": "application/json",
                    },
                    json=body,
                )
        except httpx.HTTPError as exc:
            logger.warning("Privileged function call failed", extra={"function": name, "error": str(exc)})
            raise FunctionCallError(name, f"Error calling {name}: {exc}") from exc

        payload = _parse_body(response)
        error = payload.get("error")
        if response.status_code >= 400 or error:
            message = str(error) if error else f"{name} returned HTTP {response.status_code}"
            logger.warning(
                "Privileged function rejected the call",
                extra={"function": name, "status_code": response.status_code, "error": message},
            )
            raise FunctionCallError(name, message, response.status_code)
        return payload

    async def impersonate_user(
        self,
        target_profile_id: ProfileId,
        justification: str | None,
        *,
        access_token: str,
    ) -> ImpersonationGrant:
        payload = await self.invoke(
            "impersonate-user",
            access_token=access_token,
            body={"target_user_id": target_profile_id, "justificativa": justification},
        )
        try:
            return ImpersonationGrant.model_validate(payload)
        except ValidationError as exc:
            raise FunctionCallError("impersonate-user", "Link generation failed") from exc

    async def invite_user(self, request: InviteUserRequest, *, access_token: str) -> dict[str, Any]:
        return await self.invoke(
            "invite-user",
            access_token=access_token,
            body=request.model_dump(),
        )
