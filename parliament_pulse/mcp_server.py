"""MCP server exposing Parliament Pulse absence tools."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from mcp.server.fastmcp import FastMCP

from .aggregation import DEFAULT_TOP_PARTIES
from .cached_client import build_data_source
from .config import load_settings
from .service import DEFAULT_RANGE_DAYS, ParliamentPulseService, parse_day

mcp = FastMCP("parliament-pulse")

_settings = load_settings()
_service = ParliamentPulseService(_settings, build_data_source(_settings))


def _ensure_range(date1: Optional[str], date2: Optional[str]) -> tuple[date, date]:
    end = parse_day(date2) if date2 else date.today()
    start = parse_day(date1) if date1 else end - timedelta(days=DEFAULT_RANGE_DAYS)
    if end < start:
        raise ValueError("date2 must not be before date1")
    return start, end


@mcp.tool()
async def get_absence_summary(
    date1: Optional[str] = None,
    date2: Optional[str] = None,
    name: str = "",
) -> dict:
    """Return absences per member and the most absent parties for a date range."""

    start, end = _ensure_range(date1, date2)
    report = await _service.get_absence_report(start, end, name_filter=name)
    return report.to_dict()


@mcp.tool()
async def get_top_absent_parties(
    date1: Optional[str] = None,
    date2: Optional[str] = None,
    limit: int = DEFAULT_TOP_PARTIES,
) -> dict:
    """Return the parties with the most absence records in the date range."""

    start, end = _ensure_range(date1, date2)
    report = await _service.get_absence_report(start, end, top=limit)
    return {
        "date1": start.isoformat(),
        "date2": end.isoformat(),
        "parties": [party.to_dict() for party in report.top_parties],
    }


@mcp.tool()
async def get_member_absences(
    member_id: int,
    date1: Optional[str] = None,
    date2: Optional[str] = None,
) -> dict:
    """Return every absence of one member in the date range."""

    start, end = _ensure_range(date1, date2)
    aggregated = await _service.get_member_absences(member_id, start, end)
    return {
        "date1": start.isoformat(),
        "date2": end.isoformat(),
        "member": aggregated.to_dict() if aggregated else None,
    }


@mcp.tool()
async def get_member_profile(member_id: int) -> dict:
    """Return the parliament.bg profile of a member."""

    profile = await _service.get_member_profile(member_id)
    return profile.to_api()


__all__ = [
    "mcp",
    "get_absence_summary",
    "get_top_absent_parties",
    "get_member_absences",
    "get_member_profile",
]
