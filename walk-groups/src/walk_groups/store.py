"""In-memory persistence for pets, appointments and walk groups."""

from __future__ import annotations

import itertools
import json
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

import structlog

from .dates import minutes_since_midnight, parse_iso_date, weekday_name

LOGGER = structlog.get_logger(__name__)

DEFAULT_DURATION_MINUTES = 30


@dataclass
class Pet:
    """A walker's client pet and its geocoded home location."""

    id: int
    user_id: int
    name: str
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def geocoded(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass
class Appointment:
    """A one-off or weekly recurring walk for a single pet."""

    id: int
    user_id: int
    pet_id: int
    start_time: Optional[str] = None
    duration: Optional[int] = DEFAULT_DURATION_MINUTES
    walk_type: Optional[str] = None
    recurring: bool = False
    days: Set[str] = field(default_factory=set)
    appointment_date: Optional[date] = None
    walk_group_id: Optional[int] = None

    def occurs_on(self, value: date) -> bool:
        """Whether the appointment is scheduled on the given date."""
        if self.recurring:
            return weekday_name(value) in self.days
        return self.appointment_date == value

    @property
    def start_minutes(self) -> Optional[int]:
        return minutes_since_midnight(self.start_time)


@dataclass
class WalkGroup:
    """Persisted group of appointments walked together."""

    id: int
    user_id: int
    name: str
    date: date


class InMemoryStore:
    """Single-process store backing the HTTP API."""

    def __init__(self) -> None:
        self._tokens: Dict[str, int] = {}
        self._pets: Dict[int, Pet] = {}
        self._appointments: Dict[int, Appointment] = {}
        self._groups: Dict[int, WalkGroup] = {}
        self._user_ids = itertools.count(1)
        self._pet_ids = itertools.count(1)
        self._appointment_ids = itertools.count(1)
        self._group_ids = itertools.count(1)

    # Users -----------------------------------------------------------------

    def add_user(self, token: str) -> int:
        user_id = next(self._user_ids)
        self._tokens[token] = user_id
        return user_id

    def user_for_token(self, token: Optional[str]) -> Optional[int]:
        if not token:
            return None
        return self._tokens.get(token)

    # Pets and appointments -------------------------------------------------

    def add_pet(
        self,
        user_id: int,
        name: str,
        *,
        address: Optional[str] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> Pet:
        pet = Pet(
            id=next(self._pet_ids),
            user_id=user_id,
            name=name,
            address=address,
            latitude=latitude,
            longitude=longitude,
        )
        self._pets[pet.id] = pet
        return pet

    def add_appointment(
        self,
        user_id: int,
        pet_id: int,
        *,
        start_time: Optional[str] = None,
        duration: Optional[int] = DEFAULT_DURATION_MINUTES,
        walk_type: Optional[str] = None,
        recurring: bool = False,
        days: Iterable[str] = (),
        appointment_date: Optional[date] = None,
    ) -> Appointment:
        if pet_id not in self._pets:
            raise KeyError(f"Unknown pet {pet_id}")
        appointment = Appointment(
            id=next(self._appointment_ids),
            user_id=user_id,
            pet_id=pet_id,
            start_time=start_time,
            duration=duration,
            walk_type=walk_type,
            recurring=recurring,
            days={day.lower() for day in days},
            appointment_date=appointment_date,
        )
        self._appointments[appointment.id] = appointment
        return appointment

    def pet(self, pet_id: int) -> Optional[Pet]:
        return self._pets.get(pet_id)

    def appointment(self, appointment_id: int) -> Optional[Appointment]:
        return self._appointments.get(appointment_id)

    def appointments_for_date(self, user_id: int, value: date) -> List[Appointment]:
        """Appointments scheduled on ``value``, ordered by start time."""
        scheduled = [
            appointment
            for appointment in self._appointments.values()
            if appointment.user_id == user_id and appointment.occurs_on(value)
        ]
        return sorted(scheduled, key=_start_sort_key)

    def user_appointments(self, user_id: int, appointment_ids: Iterable[int]) -> List[Appointment]:
        """Appointments among ``appointment_ids`` that belong to the user."""
        found = []
        for appointment_id in dict.fromkeys(appointment_ids):
            appointment = self._appointments.get(appointment_id)
            if appointment is not None and appointment.user_id == user_id:
                found.append(appointment)
        return found

    # Walk groups -----------------------------------------------------------

    def create_group(self, user_id: int, name: str, value: date, members: List[Appointment]) -> WalkGroup:
        """Persist a group and move every member into it."""
        group = WalkGroup(id=next(self._group_ids), user_id=user_id, name=name, date=value)
        self._groups[group.id] = group
        for appointment in members:
            appointment.walk_group_id = group.id
        LOGGER.info("store.group.created", group_id=group.id, members=[a.id for a in members])
        return group

    def delete_group(self, user_id: int, group_id: int) -> bool:
        """Delete a group and ungroup its appointments; False when not found."""
        group = self._groups.get(group_id)
        if group is None or group.user_id != user_id:
            return False
        del self._groups[group_id]
        for appointment in self._appointments.values():
            if appointment.walk_group_id == group_id:
                appointment.walk_group_id = None
        LOGGER.info("store.group.deleted", group_id=group_id)
        return True

    def group_members(self, group_id: int) -> List[Appointment]:
        members = [a for a in self._appointments.values() if a.walk_group_id == group_id]
        return sorted(members, key=_start_sort_key)

    def groups_for_date(self, user_id: int, value: date) -> List[WalkGroup]:
        """Groups holding at least one of the user's appointments scheduled on ``value``."""
        group_ids = {
            appointment.walk_group_id
            for appointment in self.appointments_for_date(user_id, value)
            if appointment.walk_group_id is not None
        }
        return [
            self._groups[group_id]
            for group_id in sorted(group_ids)
            if group_id in self._groups and self._groups[group_id].user_id == user_id
        ]

    # Seeding ---------------------------------------------------------------

    def load_seed(self, path: Path) -> None:
        """
        Populate the store from a JSON document.

        Expected layout::

            {"users": [{"token": "...",
                        "pets": [{"name": "Rex", "latitude": 40.1, "longitude": -74.2,
                                  "appointments": [{"start_time": "09:00", "days": ["monday"],
                                                    "recurring": true}]}]}]}
        """
        payload = json.loads(path.read_text(encoding="utf-8"))
        for user in payload.get("users", []):
            user_id = self.add_user(user["token"])
            for pet_data in user.get("pets", []):
                pet = self.add_pet(
                    user_id,
                    pet_data["name"],
                    address=pet_data.get("address"),
                    latitude=pet_data.get("latitude"),
                    longitude=pet_data.get("longitude"),
                )
                for appt in pet_data.get("appointments", []):
                    raw_date = appt.get("appointment_date")
                    self.add_appointment(
                        user_id,
                        pet.id,
                        start_time=appt.get("start_time"),
                        duration=appt.get("duration", DEFAULT_DURATION_MINUTES),
                        walk_type=appt.get("walk_type"),
                        recurring=bool(appt.get("recurring", False)),
                        days=appt.get("days", []),
                        appointment_date=parse_iso_date(raw_date) if raw_date else None,
                    )
        LOGGER.info(
            "store.seed.loaded",
            path=str(path),
            pets=len(self._pets),
            appointments=len(self._appointments),
        )


def _start_sort_key(appointment: Appointment) -> tuple[int, int, int]:
    minutes = appointment.start_minutes
    if minutes is None:
        return (1, 0, appointment.id)
    return (0, minutes, appointment.id)
