"""Core orchestration logic for Parliament Pulse."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

from .aggregation import DEFAULT_TOP_PARTIES, aggregate_by_member, top_parties_by_absences
from .config import Settings
from .enrichment import enrich
from .models import (
    AbsenceQuery,
    AggregatedMemberAbsence,
    Absence,
    Assembly,
    EnrichedAbsence,
    MemberProfile,
    MembersResponse,
    Party,
    PartyWithAbsences,
)
from .parliament_client import ParliamentApi

DEFAULT_RANGE_DAYS = 30


@dataclass(slots=True)
class AbsenceReport:
    """Everything the dashboard needs for one date range."""

    query: AbsenceQuery
    absences: list[EnrichedAbsence]
    members: list[AggregatedMemberAbsence]
    top_parties: list[PartyWithAbsences]

    @property
    def total_absences(self) -> int:
        return len(self.absences)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date1": self.query.date1,
            "date2": self.query.date2,
            "nameFilter": self.query.name_filter,
            "totalAbsences": self.total_absences,
            "absentMembers": len(self.members),
            "members": [member.to_dict() for member in self.members],
            "topParties": [party.to_dict() for party in self.top_parties],
        }


class ParliamentPulseService:
    """High-level service that reads parliament data and builds absence reports."""

    def __init__(self, settings: Settings, source: ParliamentApi) -> None:
        self.settings = settings
        self.source = source

    # region Read helpers
    async def get_assembly(self) -> Assembly:
        return await self.source.fetch_assembly()

    async def get_parties(self) -> list[Party]:
        return await self.source.fetch_parties()

    async def get_members(self) -> MembersResponse:
        return await self.source.fetch_members()

    async def get_absences(self, query: AbsenceQuery) -> list[Absence]:
        return await self.source.fetch_absences(query)

    async def get_member_profile(self, member_id: int) -> MemberProfile:
        return await self.source.fetch_member_profile(member_id)

    async def get_member_image(self, member_id: int) -> bytes:
        return await self.source.fetch_member_image(member_id)

    # endregion

    # region Report helpers
    async def _load(self, query: AbsenceQuery) -> tuple[list[EnrichedAbsence], list[Party]]:
        absences, parties, members = await asyncio.gather(
            self.get_absences(query),
            self.get_parties(),
            self.get_members(),
        )
        enriched = enrich(absences, parties, members.members, self.settings.images_base_url)
        return enriched, parties

    async def get_enriched_absences(self, query: AbsenceQuery) -> list[EnrichedAbsence]:
        enriched, _ = await self._load(query)
        return enriched

    async def get_absence_report(
        self,
        start: date,
        end: date,
        name_filter: str = "",
        top: int = DEFAULT_TOP_PARTIES,
    ) -> AbsenceReport:
        query = build_query(start, end, name_filter)
        enriched, parties = await self._load(query)
        return AbsenceReport(
            query=query,
            absences=enriched,
            members=aggregate_by_member(enriched),
            top_parties=top_parties_by_absences(enriched, parties, top),
        )

    async def get_member_absences(
        self, member_id: int, start: date, end: date
    ) -> Optional[AggregatedMemberAbsence]:
        """Return one member's aggregated absences, or ``None`` if they have none."""

        enriched = await self.get_enriched_absences(build_query(start, end))
        own = [record for record in enriched if record.member_id == member_id]
        aggregated = aggregate_by_member(own)
        return aggregated[0] if aggregated else None

    # endregion


def parse_day(value: str) -> date:
    return datetime.strptime(value, "%Y-%m-%d").date()


def build_query(start: date, end: date, name_filter: str = "") -> AbsenceQuery:
    if end < start:
        raise ValueError("date2 must not be before date1")
    return AbsenceQuery(date1=start.isoformat(), date2=end.isoformat(), name_filter=name_filter)


__all__ = [
    "DEFAULT_RANGE_DAYS",
    "AbsenceReport",
    "ParliamentPulseService",
    "build_query",
    "parse_day",
]
