"""Suggest groups of nearby, time-compatible walks that can be done together."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Set

import structlog

from .distance import total_route_distance, within_distance
from .models import PetSummary, Suggestion
from .store import DEFAULT_DURATION_MINUTES, Appointment, Pet

LOGGER = structlog.get_logger(__name__)

MAX_GROUP_SIZE = 5
DEFAULT_MAX_DISTANCE = 0.5  # miles
DEFAULT_BUFFER_MINUTES = 15
WALKING_SPEED_MPH = 3.0

SOLO_WALK_TYPES = {"solo", "training"}


@dataclass(frozen=True)
class ScheduledWalk:
    """An appointment paired with the pet being walked."""

    appointment: Appointment
    pet: Pet

    @property
    def duration(self) -> int:
        if self.appointment.duration is None:
            return DEFAULT_DURATION_MINUTES
        return self.appointment.duration


def groupable_walk_type(walk_type: Optional[str]) -> bool:
    """Solo and training walks are never grouped."""
    return (walk_type or "").lower() not in SOLO_WALK_TYPES


def walk_type_compatible(first: ScheduledWalk, second: ScheduledWalk) -> bool:
    return groupable_walk_type(first.appointment.walk_type) and groupable_walk_type(second.appointment.walk_type)


def times_overlap(start1: int, end1: int, start2: int, end2: int, buffer_minutes: int) -> bool:
    """Windows overlap, or the gap between them is within the buffer."""
    return start1 <= end2 + buffer_minutes and end1 + buffer_minutes >= start2


def time_compatible(
    first: ScheduledWalk,
    second: ScheduledWalk,
    *,
    buffer_minutes: int = DEFAULT_BUFFER_MINUTES,
) -> bool:
    start1 = first.appointment.start_minutes
    start2 = second.appointment.start_minutes
    if start1 is None or start2 is None:
        return False
    return times_overlap(start1, start1 + first.duration, start2, start2 + second.duration, buffer_minutes)


def suggest_groups(
    walks: Sequence[ScheduledWalk],
    *,
    max_distance: float = DEFAULT_MAX_DISTANCE,
    max_group_size: int = MAX_GROUP_SIZE,
) -> List[Suggestion]:
    """
    Greedily cluster walks into suggestions, best time savings first.

    Walks are considered in the order given (callers pass them sorted by start
    time). Each walk not yet placed seeds a new group; later walks join while
    the group has room, they lie within ``max_distance`` miles of the seed and
    their time windows are compatible with the seed's. Single-walk groups are
    dropped.
    """
    groupable = [
        walk
        for walk in walks
        if walk.pet.geocoded and groupable_walk_type(walk.appointment.walk_type)
    ]
    if not groupable:
        return []

    suggestions: List[Suggestion] = []
    processed: Set[int] = set()

    for index, seed in enumerate(groupable):
        if seed.appointment.id in processed:
            continue
        group = [seed]
        processed.add(seed.appointment.id)

        for candidate in groupable[index + 1:]:
            if candidate.appointment.id in processed:
                continue
            if len(group) >= max_group_size:
                break
            if not within_distance(
                seed.pet.latitude,
                seed.pet.longitude,
                candidate.pet.latitude,
                candidate.pet.longitude,
                max_distance,
            ):
                continue
            if not time_compatible(seed, candidate):
                continue
            if not walk_type_compatible(seed, candidate):
                continue
            group.append(candidate)
            processed.add(candidate.appointment.id)

        if len(group) > 1:
            suggestions.append(format_suggestion(group))

    LOGGER.debug("grouping.suggested", walks=len(walks), groupable=len(groupable), suggestions=len(suggestions))
    return sorted(suggestions, key=lambda suggestion: -suggestion.estimated_savings)


def format_suggestion(group: Sequence[ScheduledWalk]) -> Suggestion:
    """Summarise a cluster of walks as a suggestion."""
    total_distance = total_route_distance([(walk.pet.latitude, walk.pet.longitude) for walk in group])
    travel_time = round(total_distance / WALKING_SPEED_MPH * 60)
    durations = [walk.duration for walk in group]
    estimated_time = max(durations) + travel_time

    return Suggestion(
        appointments=[walk.appointment.id for walk in group],
        pets=[
            PetSummary(
                id=walk.pet.id,
                name=walk.pet.name,
                address=walk.pet.address,
                latitude=walk.pet.latitude,
                longitude=walk.pet.longitude,
            )
            for walk in group
        ],
        total_distance=total_distance,
        estimated_time=estimated_time,
        estimated_savings=max(0, sum(durations) - estimated_time),
        group_size=len(group),
        walk_type=group[0].appointment.walk_type,
    )


def groupable_count(walks: Sequence[ScheduledWalk]) -> int:
    return sum(1 for walk in walks if groupable_walk_type(walk.appointment.walk_type))
