"""Group and rank enriched absence records."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Union

from .models import Absence, AggregatedMemberAbsence, EnrichedAbsence, Party, PartyWithAbsences

DEFAULT_TOP_PARTIES = 3


def aggregate_by_member(enriched: Iterable[EnrichedAbsence]) -> list[AggregatedMemberAbsence]:
    """Collect absences per member, most absent first.

    Records are processed in the order given. The first record of a member
    seeds its name, party and image; the last one decides its location. Ties
    keep the order in which members first appeared.
    """

    by_member: dict[int, AggregatedMemberAbsence] = {}
    for record in enriched:
        absence = record.absence
        entry = by_member.get(absence.member_id)
        if entry is None:
            entry = AggregatedMemberAbsence(
                member_id=absence.member_id,
                party_id=absence.party_id,
                full_name=record.full_name,
                first_name=absence.first_name,
                middle_name=absence.middle_name,
                last_name=absence.last_name,
                member_image_url=record.member_image_url,
                location=absence.location,
                party_name=record.party_name,
                party_short_name=record.party_short_name,
            )
            by_member[absence.member_id] = entry
        entry.absences.append(record)
        entry.absence_count += 1
        entry.location = absence.location

    return sorted(by_member.values(), key=lambda entry: entry.absence_count, reverse=True)


def count_by_party(records: Iterable[Union[Absence, EnrichedAbsence]]) -> dict[int, int]:
    """Count absence records (not distinct members) per party id."""

    counts: dict[int, int] = {}
    for record in records:
        counts[record.party_id] = counts.get(record.party_id, 0) + 1
    return counts


def top_parties_by_absences(
    enriched: Iterable[Union[Absence, EnrichedAbsence]],
    parties: Sequence[Party],
    n: int = DEFAULT_TOP_PARTIES,
) -> list[PartyWithAbsences]:
    """Return up to ``n`` parties ranked by absence count.

    Parties without absences are left out. Ties keep the directory order.
    """

    if n <= 0:
        return []
    counts = count_by_party(enriched)
    ranked = [
        PartyWithAbsences(party=party, absence_count=counts[party.id])
        for party in parties
        if counts.get(party.id, 0) > 0
    ]
    # sorted() is stable, so equal counts stay in directory order.
    ranked = sorted(ranked, key=lambda item: item.absence_count, reverse=True)
    return ranked[:n]


__all__ = [
    "DEFAULT_TOP_PARTIES",
    "aggregate_by_member",
    "count_by_party",
    "top_parties_by_absences",
]
