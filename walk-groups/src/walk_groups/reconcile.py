"""Filtering of walk group suggestions against already accepted groups."""

from __future__ import annotations

from typing import Iterable, List, Sequence, Set

from .models import AcceptedGroup, Suggestion


def grouped_appointment_ids(accepted_groups: Iterable[AcceptedGroup]) -> Set[int]:
    """Union of appointment ids across every accepted group."""
    grouped: Set[int] = set()
    for group in accepted_groups:
        grouped.update(group.appointment_ids)
    return grouped


def is_subsumed(suggestion: Suggestion, grouped_ids: Set[int]) -> bool:
    """True when every member of the suggestion is already in some accepted group."""
    return all(appointment_id in grouped_ids for appointment_id in suggestion.appointments)


def reconcile(
    suggestions: Sequence[Suggestion],
    accepted_groups: Sequence[AcceptedGroup],
) -> List[Suggestion]:
    """
    Drop suggestions already fully covered by accepted groups.

    Order is preserved. A suggestion with only some members grouped stays in
    the result untouched.
    """
    if not accepted_groups:
        return list(suggestions)
    grouped_ids = grouped_appointment_ids(accepted_groups)
    return [suggestion for suggestion in suggestions if not is_subsumed(suggestion, grouped_ids)]


def is_empty_view(visible: Sequence[Suggestion], accepted_groups: Sequence[AcceptedGroup]) -> bool:
    """Nothing to show: no remaining suggestions and no accepted groups."""
    return not visible and not accepted_groups
