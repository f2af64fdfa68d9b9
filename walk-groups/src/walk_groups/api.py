"""FastAPI application exposing the walk group endpoints."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings
from .dates import get_zone, parse_iso_date
from .grouping import ScheduledWalk, groupable_count, suggest_groups
from .models import CreateGroupRequest
from .store import Appointment, InMemoryStore, WalkGroup

logger = logging.getLogger(__name__)


def create_app(store: Optional[InMemoryStore] = None, settings: Optional[Settings] = None) -> FastAPI:
    """Build the API around a store; a fresh empty store is used when none is given."""

    settings = settings or Settings()
    app = FastAPI(title="Walk Groups", version="0.1.0")
    app.state.store = store or InMemoryStore()
    app.state.settings = settings

    @app.exception_handler(StarletteHTTPException)
    async def render_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def render_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"error": _validation_message(exc)})

    def get_store(request: Request) -> InMemoryStore:
        return request.app.state.store

    def current_user(
        request: Request,
        authorization: Optional[str] = Header(default=None),
    ) -> int:
        token = None
        if authorization and authorization.lower().startswith("bearer "):
            token = authorization[7:].strip()
        user_id = get_store(request).user_for_token(token)
        if user_id is None:
            raise HTTPException(status_code=401, detail="Unauthorized")
        return user_id

    @app.get("/walk_groups/suggestions")
    async def suggestions(
        request: Request,
        date: Optional[str] = None,
        max_distance: Optional[float] = None,
        user_id: int = Depends(current_user),
    ) -> Dict[str, Any]:
        """Suggested groupings for the user's walks on a date."""

        store = get_store(request)
        target = _resolve_date(date, settings)
        distance = max_distance if max_distance is not None else settings.max_distance

        walks = _scheduled_walks(store, store.appointments_for_date(user_id, target))
        if not walks:
            return {
                "message": "No appointments found for this date",
                "date": target.isoformat(),
                "suggestions": [],
            }

        found = suggest_groups(walks, max_distance=distance)
        logger.info("Suggested %s groups for user %s on %s", len(found), user_id, target)
        return {
            "date": target.isoformat(),
            "total_appointments": len(walks),
            "groupable_appointments": groupable_count(walks),
            "suggestions": [suggestion.model_dump() for suggestion in found],
            "count": len(found),
        }

    @app.get("/walk_groups")
    async def index(
        request: Request,
        date: Optional[str] = None,
        user_id: int = Depends(current_user),
    ) -> List[Dict[str, Any]]:
        """Saved walk groups containing appointments scheduled on a date."""

        store = get_store(request)
        target = _resolve_date(date, settings)
        return [_group_payload(store, group) for group in store.groups_for_date(user_id, target)]

    @app.post("/walk_groups", status_code=201)
    async def create(
        request: Request,
        body: CreateGroupRequest,
        user_id: int = Depends(current_user),
    ) -> Dict[str, Any]:
        """Accept a suggestion and persist it as a walk group."""

        store = get_store(request)
        target = _resolve_date(body.date, settings)
        members = store.user_appointments(user_id, body.appointment_ids)

        if not members:
            raise HTTPException(status_code=422, detail="No valid appointments found")
        if len(members) != len(body.appointment_ids):
            raise HTTPException(
                status_code=422,
                detail="Some appointments not found or do not belong to you",
            )

        name = body.name or f"Group {datetime.now(tz=get_zone(settings.timezone)):%I:%M %p}"
        group = store.create_group(user_id, name, target, members)
        logger.info("Created walk group %s with %s appointments", group.id, len(members))
        return {
            "message": "Walk group created successfully",
            "walk_group": _group_payload(store, group),
        }

    @app.delete("/walk_groups/{group_id}")
    async def destroy(
        request: Request,
        group_id: int,
        user_id: int = Depends(current_user),
    ) -> Dict[str, Any]:
        """Delete a walk group and ungroup its appointments."""

        if not get_store(request).delete_group(user_id, group_id):
            raise HTTPException(status_code=404, detail="Walk group not found")
        return {"message": "Walk group deleted successfully"}

    return app


def _validation_message(exc: RequestValidationError) -> str:
    problems = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path"))
        problems.append(f"{field}: {error.get('msg')}" if field else str(error.get("msg")))
    return "; ".join(problems) or "Invalid request"


def _resolve_date(value: Optional[str], settings: Settings) -> date:
    if not value:
        return settings.today()
    try:
        return parse_iso_date(value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid date format: {exc}") from exc


def _scheduled_walks(store: InMemoryStore, appointments: List[Appointment]) -> List[ScheduledWalk]:
    walks = []
    for appointment in appointments:
        pet = store.pet(appointment.pet_id)
        if pet is not None:
            walks.append(ScheduledWalk(appointment=appointment, pet=pet))
    return walks


def _appointment_payload(store: InMemoryStore, appointment: Appointment) -> Dict[str, Any]:
    pet = store.pet(appointment.pet_id)
    return {
        "id": appointment.id,
        "pet_id": appointment.pet_id,
        "start_time": appointment.start_time,
        "duration": appointment.duration,
        "walk_type": appointment.walk_type,
        "recurring": appointment.recurring,
        "appointment_date": appointment.appointment_date.isoformat() if appointment.appointment_date else None,
        "walk_group_id": appointment.walk_group_id,
        "pet": None
        if pet is None
        else {
            "id": pet.id,
            "name": pet.name,
            "address": pet.address,
            "latitude": pet.latitude,
            "longitude": pet.longitude,
        },
    }


def _group_payload(store: InMemoryStore, group: WalkGroup) -> Dict[str, Any]:
    return {
        "id": group.id,
        "user_id": group.user_id,
        "name": group.name,
        "date": group.date.isoformat(),
        "appointments": [_appointment_payload(store, appt) for appt in store.group_members(group.id)],
    }

