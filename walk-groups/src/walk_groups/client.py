"""Async HTTP client for the walk group endpoints."""

from __future__ import annotations

from datetime import date
from typing import Any, List, Optional, Sequence

import httpx
import structlog
from pydantic import ValidationError

from .config import Settings, TokenProvider
from .models import AcceptedGroup, CreateGroupRequest, Suggestion, SuggestionsResponse

LOGGER = structlog.get_logger(__name__)


class WalkGroupsError(RuntimeError):
    """Base error raised by the walk groups client."""


class SuggestionsUnavailable(WalkGroupsError):
    """Suggestions could not be loaded."""

    def __init__(self, message: str = "Unable to load suggestions"):
        super().__init__(message)


class GroupMutationError(WalkGroupsError):
    """Creating or deleting a group failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def not_found(self) -> bool:
        return self.status_code == 404


class WalkGroupsClient:
    """
    Fetches suggestions and accepted groups, and creates or deletes groups.

    The bearer token is obtained from ``token_provider`` on every request.
    Nothing is retried; callers decide what to do with failures.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        token_provider: Optional[TokenProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._settings = settings
        self._token_provider = token_provider or settings.token_provider()
        self._transport = transport

    async def fetch_suggestions(self, target: date) -> List[Suggestion]:
        """Return suggestions for ``target``; raises ``SuggestionsUnavailable`` on any failure."""
        LOGGER.info("walk_groups.suggestions.fetch.start", date=target.isoformat())
        try:
            response = await self._request("GET", "/walk_groups/suggestions", params={"date": target.isoformat()})
        except httpx.HTTPError as exc:
            LOGGER.error("walk_groups.suggestions.fetch.transport_error", error=str(exc))
            raise SuggestionsUnavailable() from exc

        if not response.is_success:
            LOGGER.error(
                "walk_groups.suggestions.fetch.failed",
                status_code=response.status_code,
                body=response.text,
            )
            raise SuggestionsUnavailable()

        try:
            payload = SuggestionsResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            LOGGER.error("walk_groups.suggestions.fetch.invalid_payload", error=str(exc))
            raise SuggestionsUnavailable() from exc

        LOGGER.info("walk_groups.suggestions.fetch.success", count=len(payload.suggestions))
        return payload.suggestions

    async def fetch_accepted_groups(self, target: date) -> List[AcceptedGroup]:
        """Return accepted groups for ``target``; failures are logged and yield an empty list."""
        try:
            response = await self._request("GET", "/walk_groups", params={"date": target.isoformat()})
            response.raise_for_status()
            data = response.json() or []
            groups = [AcceptedGroup.model_validate(item) for item in data]
        except (httpx.HTTPError, ValueError, TypeError, ValidationError) as exc:
            LOGGER.warning("walk_groups.accepted.fetch_failed", date=target.isoformat(), error=str(exc))
            return []
        LOGGER.info("walk_groups.accepted.fetch.success", count=len(groups))
        return groups

    async def create_group(self, appointment_ids: Sequence[int], name: str, target: date) -> AcceptedGroup:
        """Persist a group; raises ``GroupMutationError`` carrying the server's message."""
        body = CreateGroupRequest(appointment_ids=list(appointment_ids), name=name, date=target.isoformat())
        LOGGER.info("walk_groups.create.start", appointment_ids=body.appointment_ids, name=name)
        try:
            response = await self._request("POST", "/walk_groups", json=body.model_dump())
        except httpx.HTTPError as exc:
            LOGGER.error("walk_groups.create.transport_error", error=str(exc))
            raise GroupMutationError(str(exc) or "Failed to create group") from exc

        if not response.is_success:
            message = _error_message(response, "Failed to create group")
            LOGGER.error("walk_groups.create.failed", status_code=response.status_code, error=message)
            raise GroupMutationError(message, response.status_code)

        try:
            data = response.json()
            if isinstance(data, dict) and "walk_group" in data:
                data = data["walk_group"]
            group = AcceptedGroup.model_validate(data)
        except (ValueError, ValidationError) as exc:
            LOGGER.error("walk_groups.create.invalid_payload", error=str(exc))
            raise GroupMutationError("Failed to create group", response.status_code) from exc

        LOGGER.info("walk_groups.create.success", group_id=group.id)
        return group

    async def delete_group(self, group_id: int) -> None:
        """Delete a group; raises ``GroupMutationError`` on failure."""
        LOGGER.info("walk_groups.delete.start", group_id=group_id)
        try:
            response = await self._request("DELETE", f"/walk_groups/{group_id}")
        except httpx.HTTPError as exc:
            LOGGER.error("walk_groups.delete.transport_error", group_id=group_id, error=str(exc))
            raise GroupMutationError(str(exc) or "Failed to delete group") from exc

        if not response.is_success:
            message = _error_message(response, "Failed to delete group")
            LOGGER.error("walk_groups.delete.failed", group_id=group_id, status_code=response.status_code)
            raise GroupMutationError(message, response.status_code)
        LOGGER.info("walk_groups.delete.success", group_id=group_id)

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        headers = {}
        token = self._token_provider()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        async with httpx.AsyncClient(
            base_url=self._settings.base_url,
            timeout=self._settings.timeout_seconds,
            transport=self._transport,
        ) as client:
            return await client.request(method, path, headers=headers, **kwargs)


def _error_message(response: httpx.Response, fallback: str) -> str:
    """Server supplied ``error`` (or ``detail``) text, else ``fallback``."""
    try:
        data = response.json()
    except ValueError:
        return fallback
    if isinstance(data, dict):
        for key in ("error", "detail"):
            value = data.get(key)
            if isinstance(value, str) and value.strip():
                return value
    return fallback
