"""Join raw absence records against the party and member directories."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Optional, Union

from .config import DEFAULT_IMAGES_BASE_URL
from .models import Absence, AggregatedMemberAbsence, EnrichedAbsence, Member, Party


def member_image_url(member_id: int, base_url: str = DEFAULT_IMAGES_BASE_URL) -> str:
    return f"{base_url.rstrip('/')}/{member_id}.png"


def full_name(first: str, middle: str, last: str) -> str:
    return f"{first} {middle} {last}".strip()


def member_initials(record: Union[Absence, EnrichedAbsence, AggregatedMemberAbsence]) -> str:
    """Return the fallback avatar initials (first and last name)."""

    source = record.absence if isinstance(record, EnrichedAbsence) else record
    first = source.first_name[:1] if source.first_name else ""
    last = source.last_name[:1] if source.last_name else ""
    return f"{first}{last}".upper()


class DirectoryIndex:
    """Id lookups over the party and member directories.

    When an id appears more than once the first entry wins.
    """

    def __init__(self, parties: Iterable[Party] = (), members: Iterable[Member] = ()) -> None:
        self._parties: dict[int, Party] = {}
        self._members: dict[int, Member] = {}
        for party in parties:
            self._parties.setdefault(party.id, party)
        for member in members:
            self._members.setdefault(member.id, member)

    def party(self, party_id: int) -> Optional[Party]:
        return self._parties.get(party_id)

    def member(self, member_id: int) -> Optional[Member]:
        return self._members.get(member_id)

    def party_names(self, party_id: int, member_id: int) -> tuple[Optional[str], Optional[str]]:
        """Resolve ``(name, short_name)``: party directory first, member second."""

        party = self.party(party_id)
        member = self.member(member_id)
        name = (party.name if party else None) or (member.party_name if member else None)
        short_name = (
            (party.short_name or party.name if party else None)
            or (member.party_short_name if member else None)
        )
        return name or None, short_name or None


def enrich_absence(
    absence: Absence,
    index: DirectoryIndex,
    images_base_url: str = DEFAULT_IMAGES_BASE_URL,
) -> EnrichedAbsence:
    party_name, party_short_name = index.party_names(absence.party_id, absence.member_id)
    return EnrichedAbsence(
        absence=absence,
        full_name=full_name(absence.first_name, absence.middle_name, absence.last_name),
        member_image_url=member_image_url(absence.member_id, images_base_url),
        party_name=party_name,
        party_short_name=party_short_name,
    )


def enrich(
    raw_absences: Iterable[Absence],
    parties: Iterable[Party],
    members: Iterable[Member],
    images_base_url: str = DEFAULT_IMAGES_BASE_URL,
) -> list[EnrichedAbsence]:
    """Denormalize raw absences with party names, full names and image URLs.

    Missing directory entries leave the party fields as ``None``; this never
    raises for an unknown party or member.
    """

    index = DirectoryIndex(parties, members)
    return [enrich_absence(absence, index, images_base_url) for absence in raw_absences]


__all__ = [
    "DirectoryIndex",
    "enrich",
    "enrich_absence",
    "full_name",
    "member_image_url",
    "member_initials",
]
