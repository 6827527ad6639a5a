"""Tests for the month view and the selection map."""

import pytest

from conftest import day
from custody_calendar.grid import build_month_grid
from custody_calendar.models.schedule import ParentType, RecurringAssignment
from custody_calendar.presentation import (
    DAY_NAMES,
    build_month_view,
    month_title,
    upcoming_events,
)
from custody_calendar.selection import SelectionMap


@pytest.fixture
def assignments():
    return [
        RecurringAssignment(
            child_id="c1",
            days_of_week=[0, 1, 2],
            parent_name="Dad",
            parent_type=ParentType.DAD,
            color="#4285f4",
        ),
        RecurringAssignment(
            child_id="c1",
            days_of_week=[4],
            parent_name="Mom",
            parent_type=ParentType.MOM,
            color="#ea4335",
        ),
    ]


@pytest.fixture
def view(assignments):
    selection = SelectionMap()
    selection.set(day(2024, 3, 10), "Soccer")
    selection.set(day(2024, 2, 29), "Piano")
    return build_month_view(
        build_month_grid(2024, 3),
        selection,
        assignments,
        today=day(2024, 3, 5),
    )


def cell_for(view, value):
    return next(cell for cell in view.cells if cell.date == value)


class TestMonthView:
    """Tests for build_month_view."""

    def test_header(self, view):
        assert view.title == "March 2024"
        assert view.day_names == DAY_NAMES == ("M", "T", "W", "Th", "F", "Sa", "Su")

    def test_rows_carry_week_numbers(self, view):
        assert len(view.rows) == 5
        assert view.rows[0].week_number == 9
        assert [row.week_number for row in view.rows] == [9, 10, 11, 12, 13]

    def test_padding_cells_are_muted(self, view):
        """Test that previous-month days carry no interaction or decoration."""
        cell = cell_for(view, day(2024, 2, 26))
        assert not cell.in_current_month
        assert not cell.tappable
        assert cell.custody is None

    def test_padding_cells_never_show_activities(self, view):
        cell = cell_for(view, day(2024, 2, 29))
        assert not cell.is_selected
        assert cell.activity is None

    def test_selected_cell(self, view):
        cell = cell_for(view, day(2024, 3, 10))
        assert cell.is_selected
        assert cell.activity == "Soccer"
        assert cell.tappable
        assert cell.custody is None

    def test_today(self, view):
        assert cell_for(view, day(2024, 3, 5)).is_today
        assert not cell_for(view, day(2024, 3, 6)).is_today

    def test_custody_run_geometry(self, view):
        """Test rounded ends and margins along a Mon-Wed run."""
        first = cell_for(view, day(2024, 3, 4)).custody
        middle = cell_for(view, day(2024, 3, 5)).custody
        last = cell_for(view, day(2024, 3, 6)).custody

        assert first.parent_name == "Dad"
        assert first.color == "#4285f4"
        assert (first.left_radius, first.right_radius) == (6, 0)
        assert (first.left_margin, first.right_margin) == (2, 0)
        assert (middle.left_radius, middle.right_radius) == (0, 0)
        assert (middle.left_margin, middle.right_margin) == (0, 0)
        assert (last.left_radius, last.right_radius) == (0, 6)
        assert (last.left_margin, last.right_margin) == (0, 2)

    def test_single_day_bar(self, view):
        bar = cell_for(view, day(2024, 3, 8)).custody
        assert bar.parent_name == "Mom"
        assert bar.run_position.is_isolated
        assert (bar.left_radius, bar.right_radius) == (6, 6)

    def test_unassigned_day(self, view):
        assert cell_for(view, day(2024, 3, 7)).custody is None

    def test_month_title(self):
        assert month_title(2025, 1) == "January 2025"


class TestSelectionMap:
    """Tests for the in-memory selection."""

    def test_set_get_remove(self):
        selection = SelectionMap()
        selection.set(day(2024, 3, 10), "Soccer")
        assert day(2024, 3, 10) in selection
        assert selection.get(day(2024, 3, 10)).activity == "Soccer"
        assert selection.remove(day(2024, 3, 10)).activity == "Soccer"
        assert selection.remove(day(2024, 3, 10)) is None
        assert not selection

    def test_set_overwrites(self):
        selection = SelectionMap()
        selection.set(day(2024, 3, 10), "Soccer")
        selection.set(day(2024, 3, 10), "Chess")
        assert len(selection) == 1
        assert selection.as_key_dict() == {"2024-03-10": "Chess"}

    def test_upcoming_sorted_and_limited(self):
        selection = SelectionMap()
        for value in (20, 3, 11, 7):
            selection.set(day(2024, 3, value), f"Day {value}")

        assert [e.date.day for e in selection.upcoming()] == [3, 7, 11, 20]
        assert [e.date.day for e in upcoming_events(selection, 2)] == [3, 7]
        assert [e.date.day for e in selection.upcoming(since=day(2024, 3, 8))] == [11, 20]

    def test_replace_all(self):
        selection = SelectionMap()
        selection.set(day(2024, 3, 10), "Soccer")
        other = SelectionMap()
        other.set(day(2024, 4, 1), "Chess")

        selection.replace_all(other.entries())
        assert selection.dates() == [day(2024, 4, 1)]
