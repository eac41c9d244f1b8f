"""
Flow Fam - Family/profile API client.

Bearer-authenticated JSON calls against the Flow Fam backend. Each call
opens a short-lived httpx.AsyncClient; the transport can be injected for
tests.
"""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from .schemas import (
    CompleteStyleResponse,
    CreateFamilyRequest,
    CreateFamilyResponse,
    FamilyMember,
    FamilyMembersResponse,
    MemberStyleUpdate,
    NewFamilyMember,
    Profile,
)

logger = logging.getLogger(__name__)


class BackendNotConfiguredError(Exception):
    """No backend URL configured."""

    def __init__(self):
        super().__init__("Backend URL not configured. Set BACKEND_URL.")


class ApiError(Exception):
    """Backend answered with a non-2xx status or an unexpected payload."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(f"API error: {status_code} - {detail}")
        self.status_code = status_code
        self.detail = detail


class FamilyNotFoundError(ApiError):
    """The signed-in user has not created a family yet (404)."""


def _error_detail(response: httpx.Response) -> str:
    """Pull the message out of the backend's {"error": "..."} body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("error") or body.get("message") or body)
    return str(body)


class FamilyApiClient:
    """Client for the family and profile endpoints."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url)

    async def _request(
        self,
        method: str,
        endpoint: str,
        access_token: str,
        json: dict | None = None,
    ) -> Any:
        if not self.is_configured:
            raise BackendNotConfiguredError()

        headers = {"Authorization": f"Bearer {access_token}"}
        logger.debug(f"{method} {endpoint}")

        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            response = await client.request(method, endpoint, json=json, headers=headers)

        if response.is_error:
            detail = _error_detail(response)
            logger.warning(f"{method} {endpoint} failed: {response.status_code} {detail}")
            raise ApiError(response.status_code, detail)

        try:
            return response.json()
        except ValueError as e:
            raise ApiError(response.status_code, "Response is not JSON") from e

    async def get_family_members(self, access_token: str) -> list[FamilyMember]:
        """
        GET /api/families/members

        Raises FamilyNotFoundError when the user has no family yet.
        """
        try:
            data = await self._request("GET", "/api/families/members", access_token)
        except ApiError as e:
            if e.status_code == 404:
                raise FamilyNotFoundError(e.status_code, e.detail) from e
            raise

        try:
            return FamilyMembersResponse.model_validate(data).members
        except ValidationError as e:
            raise ApiError(200, f"Malformed members payload: {e}") from e

    async def get_profile(self, access_token: str) -> Profile:
        """GET /api/profile"""
        data = await self._request("GET", "/api/profile", access_token)
        try:
            return Profile.model_validate(data)
        except ValidationError as e:
            raise ApiError(200, f"Malformed profile payload: {e}") from e

    async def create_family(
        self,
        access_token: str,
        family_name: str,
        members: list[NewFamilyMember],
    ) -> CreateFamilyResponse:
        """POST /api/families - creates the family and flips setup complete."""
        body = CreateFamilyRequest(family_name=family_name, members=members)
        data = await self._request(
            "POST",
            "/api/families",
            access_token,
            json=body.model_dump(by_alias=True),
        )
        return CreateFamilyResponse.model_validate(data)

    async def update_member_style(
        self,
        access_token: str,
        member_id: str,
        color: str | None = None,
        avatar_url: str | None = None,
    ) -> FamilyMember:
        """PATCH /api/families/members/{member_id}"""
        body = MemberStyleUpdate(color=color, avatar_url=avatar_url)
        data = await self._request(
            "PATCH",
            f"/api/families/members/{member_id}",
            access_token,
            json=body.model_dump(exclude_none=True),
        )
        return FamilyMember.model_validate(data)

    async def complete_family_style(self, access_token: str) -> CompleteStyleResponse:
        """POST /api/families/complete-style"""
        data = await self._request("POST", "/api/families/complete-style", access_token, json={})
        return CompleteStyleResponse.model_validate(data)
