import asyncio
import logging
from typing import Any, Mapping, Optional

import aiohttp

from .backend import AdminBackend
from .errors import AdminError, AuthError, TransportError, error_from_dict
from .models import AdminAccount
from .payload import CreateAdminPayload
from .permissions import PermissionSet

logger = logging.getLogger(__name__)


class HttpAdminClient(AdminBackend):
    """
    `AdminBackend` talking to the /api/admin routes.

    Structured error bodies come back as the matching taxonomy member,
    401/403 without one as `AuthError`, and connection failures or
    timeouts as `TransportError`. Nothing is retried automatically.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "HttpAdminClient":
        return self

    async def __aexit__(self, *exc):
        await self.close()

    async def close(self):
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def login(self, phone_number: str, password: str) -> AdminAccount:
        data = await self._request(
            "POST",
            "/login",
            json={"phoneNumber": phone_number, "password": password},
            authenticated=False,
        )
        self.token = data["token"]
        return AdminAccount.from_public_dict(data["admin"])

    async def list(self) -> list[AdminAccount]:
        data = await self._request("GET", "/list")
        return [AdminAccount.from_public_dict(a) for a in data["admins"]]

    async def get(self, admin_id: int) -> AdminAccount:
        data = await self._request("GET", f"/{admin_id}")
        return AdminAccount.from_public_dict(data["admin"])

    async def create(
        self, name: str, phone_number: str, password: str, permissions: Mapping
    ) -> AdminAccount:
        payload = CreateAdminPayload(name, phone_number, password, permissions)
        data = await self._request("POST", "/create", json=payload.to_dict())
        return AdminAccount.from_public_dict(data["admin"])

    async def update_permissions(
        self, admin_id: int, permissions: Mapping
    ) -> AdminAccount:
        body = {"permissions": PermissionSet.parse(permissions).to_dict()}
        data = await self._request("PUT", f"/{admin_id}/permissions", json=body)
        return AdminAccount.from_public_dict(data["admin"])

    async def update_password(self, admin_id: int, new_password: str) -> None:
        await self._request(
            "PUT", f"/{admin_id}/password", json={"newPassword": new_password}
        )

    async def set_active(self, admin_id: int, active: bool) -> AdminAccount:
        data = await self._request(
            "PUT", f"/{admin_id}/status", json={"active": active}
        )
        return AdminAccount.from_public_dict(data["admin"])

    async def delete(self, admin_id: int) -> None:
        await self._request("DELETE", f"/{admin_id}")

    async def _request(
        self, method: str, path: str, json: Any = None, authenticated: bool = True
    ) -> dict:
        headers = {}
        if authenticated:
            if not self.token:
                raise AuthError("Not logged in")
            headers["Authorization"] = f"Bearer {self.token}"

        url = f"{self.base_url}{path}"
        try:
            async with self._get_session().request(
                method, url, json=json, headers=headers, timeout=self._timeout
            ) as response:
                try:
                    body = await response.json(content_type=None)
                except ValueError:
                    body = None
                status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("%s %s failed: %r", method, url, e)
            raise TransportError() from e

        if isinstance(body, dict) and body.get("success"):
            return body.get("data") or {}
        raise self._error(status, body)

    @staticmethod
    def _error(status: int, body: Any) -> AdminError:
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict) and error.get("kind"):
            return error_from_dict(error)
        if status in (401, 403):
            return AuthError()
        return TransportError(f"Unexpected response from admin service ({status})")
