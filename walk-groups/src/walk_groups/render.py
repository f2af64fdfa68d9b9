"""Plain-text rendering of the group suggestions panel."""

from __future__ import annotations

from typing import List, Optional

from .models import AcceptedGroup, Suggestion
from .panel import PanelState

TITLE = "Smart Grouping"


def render_panel(state: PanelState) -> Optional[str]:
    """Build the panel text, or ``None`` when there is nothing to show."""
    if state.loading:
        return "\n".join([TITLE, "Analyzing walks..."])
    if state.error:
        return "\n".join([TITLE, "Unable to load suggestions"])

    visible = state.visible_suggestions
    accepted = state.accepted_groups
    if not visible and not accepted:
        return None

    lines: List[str] = [_header(len(accepted), len(visible))]

    if accepted:
        lines.append("")
        lines.append("Active Groups")
        for group in accepted:
            lines.extend(format_accepted_group(group))

    if visible:
        lines.append("")
        if accepted:
            lines.append("Suggestions")
        for index, suggestion in enumerate(visible, start=1):
            lines.extend(format_suggestion(index, suggestion, in_flight=state.is_processing(suggestion)))

    return "\n".join(lines).strip()


def _header(active: int, new: int) -> str:
    parts = []
    if active:
        parts.append(f"{active} active")
    if new:
        parts.append(f"{new} new")
    if not parts:
        return TITLE
    return f"{TITLE} ({' • '.join(parts)})"


def format_accepted_group(group: AcceptedGroup) -> List[str]:
    """Lines for one accepted group card."""
    name = group.name or f"Group {group.id}"
    lines = [f"- {name} [{len(group.appointments)}] (id {group.id})"]
    for appointment in group.appointments:
        if appointment.pet is not None:
            lines.append(f"    • {appointment.pet.name}")
    return lines


def format_suggestion(index: int, suggestion: Suggestion, *, in_flight: bool = False) -> List[str]:
    """Lines for one suggestion card."""
    stats = [f"{suggestion.total_distance} mi", f"{suggestion.estimated_time} min"]
    if suggestion.estimated_savings > 0:
        stats.append(f"-{suggestion.estimated_savings} min")

    lines = [f"{index}. Group {index} [{suggestion.group_size}]"]
    lines.extend(f"    • {pet.name}" for pet in suggestion.pets)
    lines.append(f"    {' | '.join(stats)}")
    if in_flight:
        lines.append("    Creating...")
    return lines
