"""Pydantic models describing the walk group wire format."""

from __future__ import annotations

import datetime as dt
import hashlib
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class PetSummary(BaseModel):
    """Pet details embedded in suggestions and grouped appointments."""

    id: int
    name: str
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class Suggestion(BaseModel):
    """Server-computed candidate grouping of appointments."""

    appointments: List[int] = Field(default_factory=list)
    pets: List[PetSummary] = Field(default_factory=list)
    group_size: int = 0
    total_distance: float = 0.0
    estimated_time: int = 0
    estimated_savings: int = 0
    walk_type: Optional[str] = None

    @field_validator("estimated_savings")
    @classmethod
    def clamp_savings(cls, value: int) -> int:
        """Savings are never reported as negative."""
        return max(0, value)

    @property
    def key(self) -> str:
        """Stable key derived from the sorted member appointment ids."""
        joined = ",".join(str(appointment_id) for appointment_id in sorted(self.appointments))
        return hashlib.sha1(joined.encode("utf-8")).hexdigest()


class GroupedAppointment(BaseModel):
    """Appointment as returned inside an accepted group."""

    id: int
    pet: Optional[PetSummary] = None
    start_time: Optional[str] = None
    duration: Optional[int] = None
    walk_type: Optional[str] = None


class AcceptedGroup(BaseModel):
    """Persisted walk group."""

    id: int
    name: Optional[str] = None
    date: Optional[dt.date] = None
    appointments: List[GroupedAppointment] = Field(default_factory=list)

    @property
    def appointment_ids(self) -> List[int]:
        return [appointment.id for appointment in self.appointments]


class SuggestionsResponse(BaseModel):
    """Payload of ``GET /walk_groups/suggestions``."""

    suggestions: List[Suggestion] = Field(default_factory=list)
    date: Optional[dt.date] = None
    total_appointments: Optional[int] = None
    groupable_appointments: Optional[int] = None
    count: Optional[int] = None
    message: Optional[str] = None

    @field_validator("suggestions", mode="before")
    @classmethod
    def null_suggestions(cls, value):
        return [] if value is None else value


class CreateGroupRequest(BaseModel):
    """Body of ``POST /walk_groups``."""

    appointment_ids: List[int] = Field(default_factory=list)
    name: Optional[str] = None
    date: Optional[str] = None

