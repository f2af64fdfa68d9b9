"""Tests for the plain-text panel rendering."""

from conftest import TARGET_DATE
from walk_groups.models import AcceptedGroup, Suggestion
from walk_groups.panel import PanelState
from walk_groups.render import render_panel


def _suggestion(*ids, savings=12):
    return Suggestion(
        appointments=list(ids),
        pets=[{"id": i, "name": f"Dog {i}"} for i in ids],
        group_size=len(ids),
        total_distance=0.21,
        estimated_time=34,
        estimated_savings=savings,
    )


def _group(group_id, *ids):
    return AcceptedGroup(
        id=group_id,
        name="Group of 2",
        appointments=[{"id": i, "pet": {"id": i, "name": f"Dog {i}"}} for i in ids],
    )


def test_loading():
    assert render_panel(PanelState(target=TARGET_DATE)) == "Smart Grouping\nAnalyzing walks..."


def test_error():
    state = PanelState(target=TARGET_DATE, loading=False, error="Unable to load suggestions")
    assert render_panel(state) == "Smart Grouping\nUnable to load suggestions"


def test_nothing_to_render():
    assert render_panel(PanelState(target=TARGET_DATE, loading=False)) is None


def test_subsumed_suggestions_only_show_groups():
    state = PanelState(
        target=TARGET_DATE,
        loading=False,
        suggestions=[_suggestion(1, 2)],
        accepted_groups=[_group(7, 1, 2)],
    )
    text = render_panel(state)

    assert text.splitlines()[0] == "Smart Grouping (1 active)"
    assert "Active Groups" in text
    assert "- Group of 2 [2] (id 7)" in text
    assert "Suggestions" not in text


def test_suggestions_with_active_groups():
    state = PanelState(
        target=TARGET_DATE,
        loading=False,
        suggestions=[_suggestion(1, 2), _suggestion(3, 4, savings=0)],
        accepted_groups=[_group(7, 1, 2)],
    )
    lines = render_panel(state).splitlines()

    assert lines[0] == "Smart Grouping (1 active • 1 new)"
    assert "Suggestions" in lines
    assert "1. Group 1 [2]" in lines
    assert "    • Dog 3" in lines
    assert "    0.21 mi | 34 min" in lines


def test_savings_and_in_flight_marker():
    suggestion = _suggestion(1, 2)
    state = PanelState(
        target=TARGET_DATE,
        loading=False,
        suggestions=[suggestion],
        processing={suggestion.key},
    )
    lines = render_panel(state).splitlines()

    assert lines[0] == "Smart Grouping (1 new)"
    assert "Suggestions" not in lines
    assert "    0.21 mi | 34 min | -12 min" in lines
    assert lines[-1] == "    Creating..."
