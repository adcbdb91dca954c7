"""Dataclasses representing Parliament Pulse domain models.

Upstream payloads use the National Assembly field names (``A_ns_MP_id``,
``MP_Ab_date`` ...). Each model reads them with ``from_api`` and writes them
back with ``to_api`` so the REST layer can mirror the upstream shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


def _str(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    return "" if value is None else str(value)


def _int(payload: dict[str, Any], key: str) -> int:
    value = payload.get(key)
    if value in (None, ""):
        return 0
    return int(value)


def _opt_int(payload: dict[str, Any], key: str) -> Optional[int]:
    value = payload.get(key)
    if value in (None, ""):
        return None
    return int(value)


@dataclass(frozen=True, slots=True)
class Assembly:
    id: int
    name: str
    short_name: str
    active_count: int
    date_from: str
    date_to: str

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Assembly":
        return cls(
            id=_int(payload, "A_ns_C_id"),
            name=_str(payload, "A_ns_CL_value"),
            short_name=_str(payload, "A_ns_CL_value_short"),
            active_count=_int(payload, "A_ns_C_active_count"),
            date_from=_str(payload, "A_ns_C_date_F"),
            date_to=_str(payload, "A_ns_C_date_T"),
        )

    def to_api(self) -> dict[str, Any]:
        return {
            "A_ns_C_id": self.id,
            "A_ns_CL_value": self.name,
            "A_ns_CL_value_short": self.short_name,
            "A_ns_C_active_count": self.active_count,
            "A_ns_C_date_F": self.date_from,
            "A_ns_C_date_T": self.date_to,
        }


@dataclass(frozen=True, slots=True)
class Party:
    id: int
    name: str
    short_name: Optional[str] = None
    structure_type: int = 2
    active_count: int = 0
    date_from: str = ""
    date_to: str = ""

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Party":
        return cls(
            id=_int(payload, "A_ns_C_id"),
            name=_str(payload, "A_ns_CL_value"),
            short_name=payload.get("A_ns_CL_value_short") or None,
            structure_type=_int(payload, "A_ns_CT_id"),
            active_count=_int(payload, "A_ns_C_active_count"),
            date_from=_str(payload, "A_ns_C_date_F"),
            date_to=_str(payload, "A_ns_C_date_T"),
        )

    def to_api(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "A_ns_C_id": self.id,
            "A_ns_CT_id": self.structure_type,
            "A_ns_CL_value": self.name,
            "A_ns_C_active_count": self.active_count,
            "A_ns_C_date_F": self.date_from,
            "A_ns_C_date_T": self.date_to,
        }
        if self.short_name is not None:
            payload["A_ns_CL_value_short"] = self.short_name
        return payload


@dataclass(frozen=True, slots=True)
class Member:
    id: int
    party_id: int
    party_name: str
    party_short_name: str
    first_name: str
    middle_name: str
    last_name: str
    gender: int = 0
    position_id: int = 0
    position: str = ""
    secondary_position: str = ""
    region: str = ""
    image: str = ""
    date_from: str = ""
    date_to: str = ""

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Member":
        return cls(
            id=_int(payload, "A_ns_MP_id"),
            party_id=_int(payload, "A_ns_C_id"),
            party_name=_str(payload, "A_ns_CL_value"),
            party_short_name=_str(payload, "A_ns_CL_value_short"),
            first_name=_str(payload, "A_ns_MPL_Name1"),
            middle_name=_str(payload, "A_ns_MPL_Name2"),
            last_name=_str(payload, "A_ns_MPL_Name3"),
            gender=_int(payload, "A_ns_MP_FM"),
            position_id=_int(payload, "A_ns_MP_Pos_id"),
            position=_str(payload, "A_ns_MP_PosL_value"),
            secondary_position=_str(payload, "A_ns_MP_PosL_value1"),
            region=_str(payload, "A_ns_Va_name"),
            image=_str(payload, "A_ns_MP_img"),
            date_from=_str(payload, "A_ns_MSP_date_F"),
            date_to=_str(payload, "A_ns_MSP_date_T"),
        )

    def to_api(self) -> dict[str, Any]:
        return {
            "A_ns_C_id": self.party_id,
            "A_ns_MSP_date_F": self.date_from,
            "A_ns_MSP_date_T": self.date_to,
            "A_ns_MP_FM": self.gender,
            "A_ns_MP_id": self.id,
            "A_ns_CL_value": self.party_name,
            "A_ns_CL_value_short": self.party_short_name,
            "A_ns_MPL_Name1": self.first_name,
            "A_ns_MPL_Name2": self.middle_name,
            "A_ns_MPL_Name3": self.last_name,
            "A_ns_MP_Pos_id": self.position_id,
            "A_ns_MP_PosL_value": self.position,
            "A_ns_MP_PosL_value1": self.secondary_position,
            "A_ns_Va_name": self.region,
            "A_ns_MP_img": self.image,
        }


@dataclass(frozen=True, slots=True)
class MembersResponse:
    party_id: int
    party_name: str
    party_short_name: str
    active_count: int
    members: tuple[Member, ...] = ()

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "MembersResponse":
        return cls(
            party_id=_int(payload, "A_ns_C_id"),
            party_name=_str(payload, "A_ns_CL_value"),
            party_short_name=_str(payload, "A_ns_CL_value_short"),
            active_count=_int(payload, "A_ns_C_active_count"),
            members=tuple(Member.from_api(item) for item in payload.get("colListMP") or []),
        )

    def to_api(self) -> dict[str, Any]:
        return {
            "A_ns_C_id": self.party_id,
            "A_ns_CL_value": self.party_name,
            "A_ns_CL_value_short": self.party_short_name,
            "A_ns_C_active_count": self.active_count,
            "colListMP": [member.to_api() for member in self.members],
        }


@dataclass(frozen=True, slots=True)
class Absence:
    id: int
    date: str
    member_id: int
    absence_type: int
    first_name: str
    middle_name: str
    last_name: str
    location: str
    party_id: int

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Absence":
        return cls(
            id=_int(payload, "MP_Ab_id"),
            date=_str(payload, "MP_Ab_date"),
            member_id=_int(payload, "A_ns_MP_id"),
            absence_type=_int(payload, "MP_Ab_T_id"),
            first_name=_str(payload, "A_ns_MPL_Name1"),
            middle_name=_str(payload, "A_ns_MPL_Name2"),
            last_name=_str(payload, "A_ns_MPL_Name3"),
            location=_str(payload, "A_ns_CL_value"),
            party_id=_int(payload, "A_ns_C_id"),
        )

    def to_api(self) -> dict[str, Any]:
        return {
            "MP_Ab_id": self.id,
            "MP_Ab_date": self.date,
            "A_ns_MP_id": self.member_id,
            "MP_Ab_T_id": self.absence_type,
            "A_ns_MPL_Name1": self.first_name,
            "A_ns_MPL_Name2": self.middle_name,
            "A_ns_MPL_Name3": self.last_name,
            "A_ns_CL_value": self.location,
            "A_ns_C_id": self.party_id,
        }


@dataclass(frozen=True, slots=True)
class AbsenceQuery:
    date1: str
    date2: str
    name_filter: str = ""
    search: int = 1

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "AbsenceQuery":
        return cls(
            date1=_str(payload, "date1"),
            date2=_str(payload, "date2"),
            name_filter=_str(payload, "A_ns_MP_Name"),
            search=_int(payload, "search") or 1,
        )

    def to_api(self) -> dict[str, Any]:
        return {
            "search": self.search,
            "date1": self.date1,
            "date2": self.date2,
            "A_ns_MP_Name": self.name_filter,
        }


@dataclass(frozen=True, slots=True)
class Municipality:
    id: int
    name: str

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Municipality":
        return cls(id=_int(payload, "A_ns_Va_M_id"), name=_str(payload, "A_ns_Va_M_name"))


@dataclass(frozen=True, slots=True)
class Membership:
    structure_id: int
    structure_type: int
    name: str
    position: str
    date_from: str
    date_to: str
    note: str = ""

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "Membership":
        return cls(
            structure_id=_int(payload, "A_ns_C_id"),
            structure_type=_int(payload, "A_ns_CT_id"),
            name=_str(payload, "A_ns_CL_value"),
            position=_str(payload, "A_ns_MP_PosL_value"),
            date_from=_str(payload, "A_ns_MSP_date_F"),
            date_to=_str(payload, "A_ns_MSP_date_T"),
            note=_str(payload, "A_ns_MSP_note"),
        )


@dataclass(frozen=True, slots=True)
class MemberProfile:
    """Detailed profile of one member.

    Only the identity, contact and membership data is modelled. The upstream
    activity lists (proposed acts, control questions, amendments) are kept in
    ``raw`` so the REST layer can pass them through untouched.
    """

    member_id: int
    first_name: str
    middle_name: str
    last_name: str
    birth_date: str = ""
    birth_country: str = ""
    birth_city: str = ""
    email: str = ""
    website: str = ""
    profession: str = ""
    coalition: str = ""
    region: str = ""
    image: str = ""
    legislation_count: Optional[int] = None
    municipalities: tuple[Municipality, ...] = ()
    memberships: tuple[Membership, ...] = ()
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def full_name(self) -> str:
        return " ".join((self.first_name, self.middle_name, self.last_name)).strip()

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "MemberProfile":
        return cls(
            member_id=_int(payload, "A_ns_MP_id"),
            first_name=_str(payload, "A_ns_MPL_Name1"),
            middle_name=_str(payload, "A_ns_MPL_Name2"),
            last_name=_str(payload, "A_ns_MPL_Name3"),
            birth_date=_str(payload, "A_ns_MP_BDate"),
            birth_country=_str(payload, "A_ns_B_Country"),
            birth_city=_str(payload, "A_ns_B_City"),
            email=_str(payload, "A_ns_MP_Email"),
            website=_str(payload, "A_ns_MP_url"),
            profession=_str(payload, "A_ns_MPL_Prof"),
            coalition=_str(payload, "A_ns_CoalL_value"),
            region=_str(payload, "A_ns_Va_name"),
            image=_str(payload, "A_ns_MP_img"),
            legislation_count=_opt_int(payload, "A_ns_MP_leg_count"),
            municipalities=tuple(Municipality.from_api(m) for m in payload.get("munList") or []),
            memberships=tuple(Membership.from_api(m) for m in payload.get("mshipList") or []),
            raw=dict(payload),
        )

    def to_api(self) -> dict[str, Any]:
        return dict(self.raw)


@dataclass(frozen=True, slots=True)
class EnrichedAbsence:
    absence: Absence
    full_name: str
    member_image_url: str
    party_name: Optional[str] = None
    party_short_name: Optional[str] = None

    @property
    def member_id(self) -> int:
        return self.absence.member_id

    @property
    def party_id(self) -> int:
        return self.absence.party_id

    @property
    def location(self) -> str:
        return self.absence.location

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.absence.to_api(),
            "fullName": self.full_name,
            "memberImageUrl": self.member_image_url,
            "partyName": self.party_name,
            "partyShortName": self.party_short_name,
        }


@dataclass(slots=True)
class AggregatedMemberAbsence:
    member_id: int
    party_id: int
    full_name: str
    first_name: str
    middle_name: str
    last_name: str
    member_image_url: str
    location: str
    party_name: Optional[str] = None
    party_short_name: Optional[str] = None
    absence_count: int = 0
    absences: list[EnrichedAbsence] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "A_ns_MP_id": self.member_id,
            "A_ns_C_id": self.party_id,
            "A_ns_MPL_Name1": self.first_name,
            "A_ns_MPL_Name2": self.middle_name,
            "A_ns_MPL_Name3": self.last_name,
            "A_ns_CL_value": self.location,
            "fullName": self.full_name,
            "memberImageUrl": self.member_image_url,
            "partyName": self.party_name,
            "partyShortName": self.party_short_name,
            "absenceCount": self.absence_count,
            "absences": [absence.to_dict() for absence in self.absences],
        }


@dataclass(frozen=True, slots=True)
class PartyWithAbsences:
    party: Party
    absence_count: int

    def to_dict(self) -> dict[str, Any]:
        return {**self.party.to_api(), "absenceCount": self.absence_count}


__all__ = [
    "Absence",
    "AbsenceQuery",
    "AggregatedMemberAbsence",
    "Assembly",
    "EnrichedAbsence",
    "Member",
    "MemberProfile",
    "MembersResponse",
    "Membership",
    "Municipality",
    "Party",
    "PartyWithAbsences",
]
