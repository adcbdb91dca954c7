"""Caching decorator over the parliament read contract."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar
from urllib.parse import quote

from .cache import MISS, CachePriority, CacheStore
from .config import CacheSettings, Settings
from .models import Absence, AbsenceQuery, Assembly, MemberProfile, MembersResponse, Party
from .parliament_client import ParliamentApi, ParliamentClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

ASSEMBLY_CACHE_KEY = "parliament:assembly:current"
PARTIES_CACHE_KEY = "parliament:parties:all"
MEMBERS_CACHE_KEY = "parliament:members:all"
ABSENCES_CACHE_KEY_PREFIX = "parliament:absences"
MEMBER_PROFILE_CACHE_KEY_PREFIX = "parliament:member-profile"
MEMBER_IMAGE_CACHE_KEY_PREFIX = "parliament:member-image"

ALL_MEMBERS_FILTER = "all"

# Rough per-category footprints used for capacity bookkeeping only.
ASSEMBLY_SIZE_BYTES = 1 * 1024
PARTIES_SIZE_BYTES = 10 * 1024
MEMBERS_SIZE_BYTES = 50 * 1024
ABSENCES_SIZE_BYTES = 100 * 1024
MEMBER_PROFILE_SIZE_BYTES = 10 * 1024


def _encode_component(value: str) -> str:
    return quote(value, safe="")


def absence_cache_key(query: AbsenceQuery) -> str:
    """Build the cache key for an absence query.

    Format: ``parliament:absences:{search}:{date1}:{date2}:{name_filter}``.
    A blank filter becomes ``all``; anything else is percent-encoded in full,
    and a filter that would encode to ``all`` itself is encoded byte by byte
    so it stays distinct from the blank one.
    """

    name = query.name_filter
    if not name or not name.strip():
        name_part = ALL_MEMBERS_FILTER
    else:
        name_part = _encode_component(name)
        if name_part == ALL_MEMBERS_FILTER:
            name_part = "".join(f"%{byte:02X}" for byte in name.encode("utf-8"))
    return ":".join(
        (
            ABSENCES_CACHE_KEY_PREFIX,
            str(query.search),
            _encode_component(query.date1),
            _encode_component(query.date2),
            name_part,
        )
    )


def member_profile_cache_key(member_id: int) -> str:
    return f"{MEMBER_PROFILE_CACHE_KEY_PREFIX}:{member_id}"


def member_image_cache_key(member_id: int) -> str:
    return f"{MEMBER_IMAGE_CACHE_KEY_PREFIX}:{member_id}"


def cache_priority(key: str) -> CachePriority:
    """Assembly and parties rarely change; absences have the most churn."""

    if key in (ASSEMBLY_CACHE_KEY, PARTIES_CACHE_KEY):
        return CachePriority.HIGH
    if key == MEMBERS_CACHE_KEY:
        return CachePriority.NORMAL
    return CachePriority.LOW


class CachedParliamentClient:
    """Wraps any ``ParliamentApi`` and memoizes its results in a ``CacheStore``.

    Upstream errors pass through untouched and nothing is cached for a failed
    call. Concurrent misses for the same key share a single upstream call.
    """

    def __init__(self, inner: ParliamentApi, store: CacheStore, settings: CacheSettings) -> None:
        self._inner = inner
        self._store = store
        self._settings = settings
        self._in_flight: dict[str, asyncio.Future[Any]] = {}

    @property
    def store(self) -> CacheStore:
        return self._store

    async def close(self) -> None:
        close = getattr(self._inner, "close", None)
        if close is not None:
            await close()

    async def fetch_assembly(self) -> Assembly:
        return await self._get_or_fetch(
            ASSEMBLY_CACHE_KEY,
            self._inner.fetch_assembly,
            self._settings.assembly_ttl_minutes,
            "Assembly",
            size_bytes=ASSEMBLY_SIZE_BYTES,
        )

    async def fetch_parties(self) -> list[Party]:
        parties = await self._get_or_fetch(
            PARTIES_CACHE_KEY,
            self._inner.fetch_parties,
            self._settings.parties_ttl_minutes,
            "Parties",
            size_bytes=PARTIES_SIZE_BYTES,
        )
        return list(parties)

    async def fetch_members(self) -> MembersResponse:
        return await self._get_or_fetch(
            MEMBERS_CACHE_KEY,
            self._inner.fetch_members,
            self._settings.members_ttl_minutes,
            "Members",
            size_bytes=MEMBERS_SIZE_BYTES,
        )

    async def fetch_absences(self, query: AbsenceQuery) -> list[Absence]:
        absences = await self._get_or_fetch(
            absence_cache_key(query),
            lambda: self._inner.fetch_absences(query),
            self._settings.absences_ttl_minutes,
            f"Absences ({query.date1} to {query.date2})",
            size_bytes=ABSENCES_SIZE_BYTES,
        )
        return list(absences)

    async def fetch_member_profile(self, member_id: int) -> MemberProfile:
        return await self._get_or_fetch(
            member_profile_cache_key(member_id),
            lambda: self._inner.fetch_member_profile(member_id),
            self._settings.members_ttl_minutes,
            f"Member Profile (ID: {member_id})",
            size_bytes=MEMBER_PROFILE_SIZE_BYTES,
        )

    async def fetch_member_image(self, member_id: int) -> bytes:
        # Images are stored at their real size.
        return await self._get_or_fetch(
            member_image_cache_key(member_id),
            lambda: self._inner.fetch_member_image(member_id),
            self._settings.members_ttl_minutes,
            f"Member Image (ID: {member_id})",
            size_bytes=None,
        )

    def _log(self, level: int, message: str, *args: Any) -> None:
        if self._settings.enable_cache_logging:
            logger.log(level, message, *args)

    async def _get_or_fetch(
        self,
        key: str,
        fetch: Callable[[], Awaitable[T]],
        ttl_minutes: int,
        category: str,
        size_bytes: Optional[int],
    ) -> T:
        """Return the cached value for ``key`` or load it through ``fetch``.

        The upstream call runs in its own task shared by every concurrent
        caller, so cancelling any one caller (including the first) leaves the
        call running for the rest. ``size_bytes=None`` books ``len(value)``.
        """

        if not self._store.enabled:
            self._log(logging.DEBUG, "Cache disabled, fetching %s from source", category)
            return await fetch()

        cached = self._store.get(key)
        if cached is not MISS:
            self._log(logging.INFO, "Cache HIT for %s (key: %s)", category, key)
            return cached

        task = self._in_flight.get(key)
        if task is not None:
            self._log(logging.INFO, "Joining in-flight fetch for %s (key: %s)", category, key)
        else:
            self._log(
                logging.INFO, "Cache MISS for %s (key: %s), fetching from upstream", category, key
            )
            task = asyncio.ensure_future(
                self._fetch_and_store(key, fetch, ttl_minutes, category, size_bytes)
            )
            self._in_flight[key] = task
            task.add_done_callback(lambda done: self._forget(key, done))
        return await asyncio.shield(task)

    async def _fetch_and_store(
        self,
        key: str,
        fetch: Callable[[], Awaitable[T]],
        ttl_minutes: int,
        category: str,
        size_bytes: Optional[int],
    ) -> T:
        value = await fetch()
        stored = self._store.set(
            key,
            value,
            ttl=ttl_minutes * 60,
            priority=cache_priority(key),
            size_bytes=len(value) if size_bytes is None else size_bytes,
        )
        if stored:
            self._log(
                logging.INFO,
                "Cached %s for %s minutes (key: %s)",
                category,
                ttl_minutes,
                key,
            )
        return value

    def _forget(self, key: str, task: asyncio.Future[Any]) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        if not task.cancelled():
            # Every caller may be gone by now; mark the outcome as seen.
            task.exception()


def build_data_source(
    settings: Settings,
    client: Optional[ParliamentApi] = None,
    store: Optional[CacheStore] = None,
) -> ParliamentApi:
    """Return the direct client, or the caching client when caching is enabled."""

    client = client or ParliamentClient(
        settings.api_base_url,
        settings.images_base_url,
        timeout=settings.request_timeout,
    )
    if not settings.cache.enable_caching:
        logger.info("Caching disabled; using the upstream client directly")
        return client
    return CachedParliamentClient(client, store or CacheStore(settings.cache), settings.cache)


__all__ = [
    "ABSENCES_CACHE_KEY_PREFIX",
    "ASSEMBLY_CACHE_KEY",
    "CachedParliamentClient",
    "MEMBERS_CACHE_KEY",
    "PARTIES_CACHE_KEY",
    "absence_cache_key",
    "build_data_source",
    "cache_priority",
    "member_image_cache_key",
    "member_profile_cache_key",
]
