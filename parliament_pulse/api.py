"""FastAPI application exposing the Parliament Pulse REST API."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .aggregation import DEFAULT_TOP_PARTIES
from .cached_client import CachedParliamentClient, build_data_source
from .config import Settings, load_settings
from .models import AbsenceQuery
from .parliament_client import NotFound, ParliamentApi, UpstreamUnavailable
from .service import DEFAULT_RANGE_DAYS, ParliamentPulseService, parse_day

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    source: Optional[ParliamentApi] = None,
) -> FastAPI:
    settings = settings or load_settings()
    source = source or build_data_source(settings)
    service = ParliamentPulseService(settings, source)

    def parse_date_param(value: Optional[str], default: date) -> date:
        if not value:
            return default
        try:
            return parse_day(value)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail="Invalid date format. Use YYYY-MM-DD") from exc

    def date_range(date1: Optional[str] = None, date2: Optional[str] = None) -> tuple[date, date]:
        end = parse_date_param(date2, date.today())
        start = parse_date_param(date1, end - timedelta(days=DEFAULT_RANGE_DAYS))
        if end < start:
            raise HTTPException(status_code=400, detail="date2 must not be before date1")
        return start, end

    app = FastAPI(title="Parliament Pulse API", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
        logger.warning("Upstream resource not found: %s", exc.path)
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": "not found"})

    @app.exception_handler(UpstreamUnavailable)
    async def upstream_handler(request: Request, exc: UpstreamUnavailable) -> JSONResponse:
        logger.error("Upstream unavailable for %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": "Error communicating with parliament.bg API"},
        )

    @app.on_event("shutdown")
    async def shutdown_event() -> None:  # pragma: no cover - io bound
        close = getattr(source, "close", None)
        if close is not None:
            await close()

    def get_service() -> ParliamentPulseService:
        return service

    @app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/v1/fn-assembly/bg")
    async def get_assembly(svc: ParliamentPulseService = Depends(get_service)) -> list[dict[str, Any]]:
        assembly = await svc.get_assembly()
        return [assembly.to_api()]

    @app.get("/api/v1/coll-list/bg/2")
    async def get_parties(svc: ParliamentPulseService = Depends(get_service)) -> list[dict[str, Any]]:
        return [party.to_api() for party in await svc.get_parties()]

    @app.get("/api/v1/coll-list-ns/bg")
    async def get_members(svc: ParliamentPulseService = Depends(get_service)) -> dict[str, Any]:
        members = await svc.get_members()
        return members.to_api()

    @app.post("/api/v1/mp-absense/bg")
    async def get_absences(
        payload: Optional[dict[str, Any]] = Body(None),
        svc: ParliamentPulseService = Depends(get_service),
    ) -> list[dict[str, Any]]:
        if not payload:
            raise HTTPException(status_code=400, detail="Request body is required")
        query = AbsenceQuery.from_api(payload)
        return [absence.to_api() for absence in await svc.get_absences(query)]

    @app.get("/api/v1/absences/summary")
    async def get_absence_summary(
        dates: tuple[date, date] = Depends(date_range),
        name: str = "",
        top: int = DEFAULT_TOP_PARTIES,
        svc: ParliamentPulseService = Depends(get_service),
    ) -> dict[str, Any]:
        start, end = dates
        report = await svc.get_absence_report(start, end, name_filter=name, top=top)
        return report.to_dict()

    @app.get("/api/v1/members/{member_id}/absences")
    async def get_member_absences(
        member_id: int,
        dates: tuple[date, date] = Depends(date_range),
        svc: ParliamentPulseService = Depends(get_service),
    ) -> dict[str, Any]:
        start, end = dates
        aggregated = await svc.get_member_absences(member_id, start, end)
        return {
            "memberId": member_id,
            "date1": start.isoformat(),
            "date2": end.isoformat(),
            "absenceCount": aggregated.absence_count if aggregated else 0,
            "member": aggregated.to_dict() if aggregated else None,
        }

    @app.get("/api/MemberProfile/{member_id}")
    async def get_member_profile(
        member_id: int,
        svc: ParliamentPulseService = Depends(get_service),
    ) -> dict[str, Any]:
        profile = await svc.get_member_profile(member_id)
        return profile.to_api()

    @app.get("/images/Assembly/{member_id}.png")
    async def get_member_image(
        member_id: int,
        svc: ParliamentPulseService = Depends(get_service),
    ) -> Response:
        content = await svc.get_member_image(member_id)
        return Response(content=content, media_type="image/png")

    @app.get("/api/cache/stats")
    async def get_cache_stats() -> dict[str, Any]:
        if isinstance(source, CachedParliamentClient):
            return source.store.stats().to_dict()
        return {"enabled": False}

    return app


app = create_app()


__all__ = ["app", "create_app"]
