"""
Shared pytest fixtures.

The API runs in-process over an in-memory store; the client talks to it
through ``httpx.ASGITransport`` so no network is involved.
"""

from datetime import date

import httpx
import pytest

from walk_groups.api import create_app
from walk_groups.client import WalkGroupsClient
from walk_groups.config import Settings
from walk_groups.store import InMemoryStore

WALKER_TOKEN = "walker-token"
OTHER_TOKEN = "other-token"

# A Monday.
TARGET_DATE = date(2026, 10, 19)


@pytest.fixture
def settings() -> Settings:
    return Settings(api_base_url="http://test", api_token=WALKER_TOKEN, timezone="UTC")


@pytest.fixture
def store() -> InMemoryStore:
    """
    One walker with four nearby pets and one far away pet on TARGET_DATE.

    Appointments 1, 2 and 3 form a single suggestion; 4 is too far away and
    5 is a solo walk. Appointment 6 belongs to another walker.
    """
    store = InMemoryStore()
    walker = store.add_user(WALKER_TOKEN)
    other = store.add_user(OTHER_TOKEN)

    rex = store.add_pet(walker, "Rex", address="1 Main St", latitude=40.7128, longitude=-74.0060)
    bella = store.add_pet(walker, "Bella", latitude=40.7138, longitude=-74.0060)
    milo = store.add_pet(walker, "Milo", latitude=40.7148, longitude=-74.0060)
    far = store.add_pet(walker, "Scout", latitude=40.8000, longitude=-74.0060)
    other_pet = store.add_pet(other, "Luna", latitude=40.7128, longitude=-74.0060)

    store.add_appointment(walker, rex.id, start_time="09:00", duration=30, walk_type="group",
                          appointment_date=TARGET_DATE)
    store.add_appointment(walker, bella.id, start_time="09:15", duration=30,
                          recurring=True, days=["monday", "wednesday"])
    store.add_appointment(walker, milo.id, start_time="09:30", duration=45, appointment_date=TARGET_DATE)
    store.add_appointment(walker, far.id, start_time="09:00", duration=30, appointment_date=TARGET_DATE)
    store.add_appointment(walker, bella.id, start_time="09:00", duration=30, walk_type="Solo",
                          appointment_date=TARGET_DATE)
    store.add_appointment(other, other_pet.id, start_time="09:00", duration=30, appointment_date=TARGET_DATE)
    return store


@pytest.fixture
def app(store, settings):
    return create_app(store, settings)


@pytest.fixture
def api_client(app, settings) -> WalkGroupsClient:
    """Client wired to the in-process API."""
    return WalkGroupsClient(settings, transport=httpx.ASGITransport(app=app))
