"""Local state for the group suggestions panel and its accept/ungroup actions."""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, List, Optional, Sequence, Set

import structlog

from .client import GroupMutationError, SuggestionsUnavailable, WalkGroupsClient
from .models import AcceptedGroup, Suggestion
from .reconcile import is_empty_view, reconcile

LOGGER = structlog.get_logger(__name__)

AlertHandler = Callable[[str], None]
ChangeListener = Callable[[], Any]


@dataclass
class PanelState:
    """Everything the panel view renders from."""

    target: date
    suggestions: List[Suggestion] = field(default_factory=list)
    accepted_groups: List[AcceptedGroup] = field(default_factory=list)
    loading: bool = True
    error: Optional[str] = None
    processing: Set[str] = field(default_factory=set)

    @property
    def visible_suggestions(self) -> List[Suggestion]:
        return reconcile(self.suggestions, self.accepted_groups)

    @property
    def is_empty(self) -> bool:
        """Loaded without error and there is nothing to show."""
        if self.loading or self.error:
            return False
        return is_empty_view(self.visible_suggestions, self.accepted_groups)

    def is_processing(self, suggestion: Suggestion) -> bool:
        return suggestion.key in self.processing


def _log_alert(message: str) -> None:
    LOGGER.error("panel.alert", message=message)


class GroupSuggestionsPanel:
    """
    Keeps suggestions and accepted groups for one date in step with the server.

    Mutations never touch local state until the server has answered. The
    default ``sync_mode="refetch"`` then reloads accepted groups and then
    suggestions. ``sync_mode="merge"`` folds the mutation response into the
    accepted groups and reloads only the accepted groups, falling back to the
    full reload when the response does not match the request.
    """

    def __init__(
        self,
        client: WalkGroupsClient,
        *,
        target: date,
        on_group_change: Optional[ChangeListener] = None,
        alert: Optional[AlertHandler] = None,
        sync_mode: str = "refetch",
    ):
        if sync_mode not in ("merge", "refetch"):
            raise ValueError(f"Unknown sync mode: {sync_mode}")
        self._client = client
        self._on_group_change = on_group_change
        self._alert = alert or _log_alert
        self._sync_mode = sync_mode
        self.state = PanelState(target=target)

    @property
    def target(self) -> date:
        return self.state.target

    async def load(self, appointments: Sequence[Any]) -> PanelState:
        """Populate the panel, skipping the network when the day has no appointments."""
        if not appointments:
            self.state.loading = False
            return self.state
        await self.refresh()
        return self.state

    async def refresh(self) -> None:
        """Reload accepted groups, then suggestions."""
        await self.refresh_accepted_groups()
        await self.refresh_suggestions()

    async def refresh_accepted_groups(self) -> None:
        self.state.accepted_groups = await self._client.fetch_accepted_groups(self.target)

    async def refresh_suggestions(self) -> None:
        self.state.loading = True
        self.state.error = None
        try:
            self.state.suggestions = await self._client.fetch_suggestions(self.target)
        except SuggestionsUnavailable as exc:
            self.state.error = str(exc)
        finally:
            self.state.loading = False

    async def accept(self, suggestion: Suggestion) -> Optional[AcceptedGroup]:
        """Turn a suggestion into a walk group; a repeat call while in flight does nothing."""
        key = suggestion.key
        if key in self.state.processing:
            LOGGER.info("panel.accept.in_flight", appointment_ids=suggestion.appointments)
            return None

        self.state.processing.add(key)
        try:
            group = await self._client.create_group(
                suggestion.appointments,
                f"Group of {suggestion.group_size}",
                self.target,
            )
        except GroupMutationError as exc:
            self._alert(f"Failed to create group: {exc.message}")
            return None
        else:
            if self._sync_mode == "merge" and set(group.appointment_ids) == set(suggestion.appointments):
                self._merge_group(group)
                await self.refresh_accepted_groups()
            else:
                await self.refresh()
            await self._notify("Failed to create group")
            return group
        finally:
            self.state.processing.discard(key)

    async def ungroup(self, group_id: int) -> bool:
        """Delete a group. Returns True when the server deleted it."""
        try:
            await self._client.delete_group(group_id)
        except GroupMutationError as exc:
            if exc.not_found:
                LOGGER.info("panel.ungroup.already_deleted", group_id=group_id)
                await self.refresh()
            else:
                self._alert(f"Failed to delete group: {exc.message}")
            return False

        remaining = [group for group in self.state.accepted_groups if group.id != group_id]
        if self._sync_mode == "merge" and len(remaining) < len(self.state.accepted_groups):
            self.state.accepted_groups = remaining
            await self.refresh_accepted_groups()
        else:
            await self.refresh()
        await self._notify("Failed to delete group")
        return True

    def _merge_group(self, created: AcceptedGroup) -> None:
        # Members move to the new group on the server, so strip them elsewhere.
        moved = set(created.appointment_ids)
        merged: List[AcceptedGroup] = []
        for group in self.state.accepted_groups:
            if group.id == created.id:
                continue
            if moved.intersection(group.appointment_ids):
                kept = [appt for appt in group.appointments if appt.id not in moved]
                if not kept:
                    continue
                group = group.model_copy(update={"appointments": kept})
            merged.append(group)
        merged.append(created)
        self.state.accepted_groups = merged

    async def _notify(self, failure_prefix: str) -> None:
        if self._on_group_change is None:
            return
        try:
            result = self._on_group_change()
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            LOGGER.exception("panel.notify.failed", error=str(exc))
            self._alert(f"{failure_prefix}: {exc}")
