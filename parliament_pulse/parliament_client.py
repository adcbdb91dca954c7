"""HTTP client for the National Assembly public API."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Protocol, TypeVar

import httpx

from .config import DEFAULT_API_BASE_URL, DEFAULT_IMAGES_BASE_URL
from .models import AbsenceQuery, Absence, Assembly, MemberProfile, MembersResponse, Party

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ParliamentApiError(RuntimeError):
    """Base class for failures reported by the upstream API."""

    def __init__(self, path: str, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(f"Parliament API error for {path}: {message}")
        self.path = path
        self.status_code = status_code


class UpstreamUnavailable(ParliamentApiError):
    """Network failure, 5xx response or an unusable payload."""


class NotFound(ParliamentApiError):
    """The upstream answered 404 for the requested resource."""


class ParliamentApi(Protocol):
    """Read contract shared by the direct and the caching client."""

    async def fetch_assembly(self) -> Assembly: ...

    async def fetch_parties(self) -> list[Party]: ...

    async def fetch_members(self) -> MembersResponse: ...

    async def fetch_absences(self, query: AbsenceQuery) -> list[Absence]: ...

    async def fetch_member_profile(self, member_id: int) -> MemberProfile: ...

    async def fetch_member_image(self, member_id: int) -> bytes: ...


class ParliamentClient:
    """Async wrapper around the parliament.bg endpoints used by Parliament Pulse."""

    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE_URL,
        images_base_url: str = DEFAULT_IMAGES_BASE_URL,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._images_base_url = images_base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            headers={"Accept": "application/json"},
            timeout=httpx.Timeout(timeout, read=timeout * 2),
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        url: str,
        path: str,
        json: Optional[dict[str, Any]] = None,
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, url, json=json)
        except httpx.HTTPError as exc:
            logger.error("Request to %s failed: %s", path, exc)
            raise UpstreamUnavailable(path, str(exc) or exc.__class__.__name__) from exc

        if response.status_code == httpx.codes.NOT_FOUND:
            raise NotFound(path, "not found", status_code=response.status_code)
        if response.is_error:
            logger.error("Request to %s returned HTTP %s", path, response.status_code)
            raise UpstreamUnavailable(
                path, f"HTTP {response.status_code}", status_code=response.status_code
            )
        return response

    async def _get_json(self, path: str, json: Optional[dict[str, Any]] = None) -> Any:
        method = "POST" if json is not None else "GET"
        response = await self._request(method, f"{self._base_url}/{path}", path, json=json)
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamUnavailable(path, "invalid JSON payload") from exc

    async def _get_list(self, path: str, json: Optional[dict[str, Any]] = None) -> list[Any]:
        data = await self._get_json(path, json=json)
        if data is None:
            return []
        if not isinstance(data, list):
            raise UpstreamUnavailable(path, f"expected a list, got {type(data).__name__}")
        return data

    @staticmethod
    def _parse(path: str, build: Callable[[], T]) -> T:
        try:
            return build()
        except (AttributeError, TypeError, ValueError) as exc:
            logger.error("Malformed payload from %s: %s", path, exc)
            raise UpstreamUnavailable(path, f"malformed payload: {exc}") from exc

    async def fetch_assembly(self) -> Assembly:
        path = "fn-assembly/bg"
        data = await self._get_list(path)
        if not data:
            raise UpstreamUnavailable(path, "no assembly data available")
        return self._parse(path, lambda: Assembly.from_api(data[0]))

    async def fetch_parties(self) -> list[Party]:
        path = "coll-list/bg/2"
        data = await self._get_list(path)
        return self._parse(path, lambda: [Party.from_api(item) for item in data])

    async def fetch_members(self) -> MembersResponse:
        path = "coll-list-ns/bg"
        data = await self._get_json(path)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise UpstreamUnavailable(path, f"expected an object, got {type(data).__name__}")
        return self._parse(path, lambda: MembersResponse.from_api(data))

    async def fetch_absences(self, query: AbsenceQuery) -> list[Absence]:
        path = "mp-absense/bg"
        data = await self._get_list(path, json=query.to_api())
        return self._parse(path, lambda: [Absence.from_api(item) for item in data])

    async def fetch_member_profile(self, member_id: int) -> MemberProfile:
        path = f"mp-profile/bg/{member_id}"
        data = await self._get_json(path)
        if not isinstance(data, dict):
            raise UpstreamUnavailable(path, "unexpected member profile payload")
        return self._parse(path, lambda: MemberProfile.from_api(data))

    async def fetch_member_image(self, member_id: int) -> bytes:
        path = f"images/Assembly/{member_id}.png"
        response = await self._request("GET", f"{self._images_base_url}/{member_id}.png", path)
        return response.content


__all__ = [
    "NotFound",
    "ParliamentApi",
    "ParliamentApiError",
    "ParliamentClient",
    "UpstreamUnavailable",
]
