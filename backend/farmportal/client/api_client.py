"""
HTTP client for the portal API.

Wraps an httpx AsyncClient; the cookie jar carries the admin session
between calls. Any non-2xx response raises PortalAPIError with the server's
``message``.

Usage:
    async with PortalClient("http://localhost:5000/api") as client:
        await client.admin_login(email, password)
        summary = await client.synchronize_allocations()
"""

from typing import Any, Dict, List, Optional

import httpx


class PortalAPIError(Exception):
    """Non-2xx response from the portal"""

    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(f"{status}: {message}")


class PortalClient:

    def __init__(
        self,
        base_url: str = "http://localhost:5000/api",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "PortalClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.ConnectError:
            raise PortalAPIError(0, f"Cannot connect to {self.base_url}. Is the server running?")
        except httpx.TimeoutException:
            raise PortalAPIError(0, "Request timed out")

        if response.status_code >= 400:
            try:
                message = response.json().get("message") or response.text
            except ValueError:
                message = response.text or response.reason_phrase
            raise PortalAPIError(response.status_code, message)

        if not response.content:
            return None
        return response.json()

    async def get(self, path: str, **params) -> Any:
        return await self.request("GET", path, params={k: v for k, v in params.items() if v is not None})

    async def post(self, path: str, body: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("POST", path, json=body or {})

    async def patch(self, path: str, body: Dict[str, Any]) -> Any:
        return await self.request("PATCH", path, json=body)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    # ==================== REGISTRATION ====================

    async def validate_email(self, email: str) -> Dict[str, Any]:
        return await self.post("/email/validate", {"email": email})

    async def register_step1(self, email: str, password: str, confirm_password: str) -> Dict[str, Any]:
        return await self.post("/register/step1", {
            "email": email,
            "password": password,
            "confirmPassword": confirm_password,
        })

    async def verify_code(self, email: str, code: str) -> Dict[str, Any]:
        return await self.post("/register/verify", {"email": email, "code": code})

    async def complete_registration(self, profile: Dict[str, Any]) -> Dict[str, Any]:
        return await self.post("/register/complete", profile)

    # ==================== ADMIN SESSION ====================

    async def admin_login(self, email: str, password: str) -> Dict[str, Any]:
        return await self.post("/admin/login", {"email": email, "password": password})

    async def admin_me(self) -> Dict[str, Any]:
        return await self.get("/admin/me")

    async def admin_logout(self) -> Dict[str, Any]:
        return await self.post("/admin/logout")

    # ==================== OVERVIEW ====================

    async def statistics(self) -> Dict[str, Any]:
        return await self.get("/statistics")

    async def list_trainees(self, sponsor_id: Optional[str] = None) -> List[Dict[str, Any]]:
        return await self.get("/trainees", sponsorId=sponsor_id)

    async def list_rooms(self, block: Optional[str] = None) -> List[Dict[str, Any]]:
        return await self.get("/rooms", block=block)

    async def list_tags(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        return await self.get("/tags", status=status)

    async def list_ids(self, id_type: Optional[str] = None) -> List[Dict[str, Any]]:
        return await self.get("/ids", type=id_type)

    async def list_sponsors(self) -> List[Dict[str, Any]]:
        return await self.get("/sponsors")

    # ==================== ALLOCATION ====================

    async def synchronize_allocations(self) -> Dict[str, Any]:
        return await self.post("/allocations/sync")

    async def cleanup_rooms(self) -> Dict[str, int]:
        return await self.post("/allocations/cleanup-rooms")

    async def cleanup_tags(self) -> Dict[str, int]:
        return await self.post("/allocations/cleanup-tags")

    async def fix_allocation_status(self) -> Dict[str, int]:
        return await self.post("/allocations/fix-status")

    async def migrate_trainees(self) -> Dict[str, int]:
        return await self.post("/allocations/migrate")

    # ==================== IDS & SPONSORS ====================

    async def generate_ids(self, id_type: str, count: int = 1) -> List[str]:
        result = await self.post("/ids/generate", {"type": id_type, "count": count})
        return result["ids"]

    async def free_id(self, generated_id: str, reason: Optional[str] = None) -> Dict[str, Any]:
        return await self.post(f"/ids/{generated_id}/free", {"reason": reason})

    async def deactivate_id(self, generated_id: str, reason: Optional[str] = None) -> Dict[str, Any]:
        return await self.post(f"/ids/{generated_id}/deactivate", {"reason": reason})

    async def activate_sponsor(self, sponsor_id: str) -> Dict[str, Any]:
        return await self.patch(f"/sponsors/{sponsor_id}", {"isActive": True})
