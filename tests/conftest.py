import asyncio
from collections import Counter
from typing import Any, Optional

import pytest

from parliament_pulse.config import CacheSettings, Settings
from parliament_pulse.models import (
    Absence,
    AbsenceQuery,
    Assembly,
    Member,
    MemberProfile,
    MembersResponse,
    Party,
)


class FakeClock:
    """Manually advanced replacement for ``time.monotonic``."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_absence(
    member_id: int,
    party_id: int,
    *,
    absence_id: int = 0,
    day: str = "2024-03-01",
    first: str = "Ivan",
    middle: str = "",
    last: str = "Petrov",
    location: str = "Hall A",
    absence_type: int = 1,
) -> Absence:
    return Absence(
        id=absence_id,
        date=day,
        member_id=member_id,
        absence_type=absence_type,
        first_name=first,
        middle_name=middle,
        last_name=last,
        location=location,
        party_id=party_id,
    )


def make_party(party_id: int, name: str, short_name: Optional[str] = None) -> Party:
    return Party(id=party_id, name=name, short_name=short_name, active_count=10)


def make_member(member_id: int, party_id: int, party_name: str, party_short_name: str) -> Member:
    return Member(
        id=member_id,
        party_id=party_id,
        party_name=party_name,
        party_short_name=party_short_name,
        first_name="Maria",
        middle_name="Ivanova",
        last_name="Georgieva",
    )


class FakeParliamentApi:
    """In-memory stand-in for the upstream client that counts every call."""

    def __init__(self) -> None:
        self.calls: Counter[str] = Counter()
        self.errors: dict[str, Exception] = {}
        self.delay = 0.0
        self.assembly = Assembly(
            id=1, name="52nd National Assembly", short_name="52 NA",
            active_count=240, date_from="2024-11-11", date_to="9999-12-31",
        )
        self.parties = [make_party(1, "GERB-SDS", "GERB"), make_party(2, "PP-DB", "PP")]
        self.members = MembersResponse(
            party_id=0, party_name="", party_short_name="", active_count=2,
            members=(make_member(9, 7, "Vazrazhdane", "VAZ"),),
        )
        self.absences = [
            make_absence(7, 1, absence_id=1),
            make_absence(9, 7, absence_id=2, first="Maria", last="Georgieva"),
        ]
        self.queries: list[AbsenceQuery] = []

    async def _call(self, name: str, value: Any) -> Any:
        self.calls[name] += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if name in self.errors:
            raise self.errors[name]
        return value

    async def fetch_assembly(self) -> Assembly:
        return await self._call("assembly", self.assembly)

    async def fetch_parties(self) -> list[Party]:
        return await self._call("parties", list(self.parties))

    async def fetch_members(self) -> MembersResponse:
        return await self._call("members", self.members)

    async def fetch_absences(self, query: AbsenceQuery) -> list[Absence]:
        self.queries.append(query)
        return await self._call("absences", list(self.absences))

    async def fetch_member_profile(self, member_id: int) -> MemberProfile:
        profile = MemberProfile.from_api(
            {"A_ns_MP_id": member_id, "A_ns_MPL_Name1": "Ivan", "A_ns_MPL_Name3": "Petrov"}
        )
        return await self._call("profile", profile)

    async def fetch_member_image(self, member_id: int) -> bytes:
        return await self._call("image", b"\x89PNG" + bytes([member_id % 256]))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_settings() -> CacheSettings:
    return CacheSettings()


@pytest.fixture
def settings(cache_settings: CacheSettings) -> Settings:
    return Settings(cache=cache_settings)


@pytest.fixture
def fake_api() -> FakeParliamentApi:
    return FakeParliamentApi()
