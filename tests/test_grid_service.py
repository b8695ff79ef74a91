from __future__ import annotations

import pytest

from conftest import burst_frames, make_burst, make_image, seed_session
from core.models import Camera, FilterState
from core.services.grid_service import GridService
from core.services.mutation_service import MutationService


@pytest.fixture
def grid():
    return GridService(cell_width=216, min_columns=2)


@pytest.fixture
def session():
    """s0 | burst x (b0 b1 b2) | s1 s2 s3, all unflagged."""
    images = [
        make_image("s0", 100),
        *burst_frames("x", ["none", "none", "none"]),
        make_image("s1", 2000),
        make_image("s2", 3000),
        make_image("s3", 4000),
    ]
    return seed_session(images, [make_burst("x", ["b0", "b1", "b2"])])


def test_columns_for_width(grid):
    assert grid.columns_for_width(1080) == 5
    assert grid.columns_for_width(100) == 2
    assert grid.columns_for_width(0) == 2


class TestUnits:
    def test_burst_collapses_to_cover(self, grid, session):
        assert grid.navigable_units(session) == ["s0", "b0", "s1", "s2", "s3"]

    def test_cover_tracks_flags(self, grid, session):
        MutationService().set_flag(session, "b2", "pick")
        assert grid.navigable_units(session) == ["s0", "b2", "s1", "s2", "s3"]

    def test_review_mode_flattens_bursts(self, grid, session):
        session.filters = FilterState(flags=frozenset({"none"}))
        assert grid.navigable_units(session) == ["s0", "b0", "b1", "b2", "s1", "s2", "s3"]

    def test_review_mode_pick_filter_gives_independent_frames(self, grid):
        frames = burst_frames("x", ["pick", "none", "pick"])
        session = seed_session([*frames, make_image("s", 5000, flag="pick")], [make_burst("x", ["b0", "b1", "b2"])])
        session.filters = FilterState(flags=frozenset({"pick"}))

        assert grid.navigable_units(session) == ["b0", "b2", "s"]

    def test_scoping_filter_keeps_bursts_collapsed(self, grid, session):
        session.filters = FilterState(show_bursts_only=True)
        assert grid.navigable_units(session) == ["b0"]


class TestLayout:
    def test_rows_are_row_major(self, grid, session):
        rows = grid.rows(session, 2)
        assert [r.unit_ids for r in rows] == [["s0", "b0"], ["s1", "s2"], ["s3"]]
        assert not any(r.is_header for r in rows)

    def test_camera_sections_start_new_rows(self, grid):
        images = [
            make_image("n1", 1),
            make_image("n2", 2),
            make_image("n3", 3),
            make_image("c1", 4, serial_number="9001"),
        ]
        cameras = [Camera("3002851", "NIKON", "Z 9"), Camera("9001", "Canon", "R5")]
        session = seed_session(images, cameras=cameras)

        rows = grid.rows(session, 2)
        assert [r.header for r in rows] == ["NIKON Z 9 (3)", None, None, "Canon R5 (1)", None]
        assert [r.unit_ids for r in rows if not r.is_header] == [["n1", "n2"], ["n3"], ["c1"]]
        assert grid.move(session, "n3", "down", 2) == "c1"
        assert grid.move(session, "n3", "right", 2) == "c1"


class TestMoves:
    def test_left_right_clamp(self, grid, session):
        assert grid.move(session, "s0", "right", 2) == "b0"
        assert grid.move(session, "s0", "left", 2) == "s0"
        assert grid.move(session, "s3", "right", 2) == "s3"

    def test_up_down_keep_column(self, grid, session):
        assert grid.move(session, "b0", "down", 2) == "s2"
        assert grid.move(session, "s2", "up", 2) == "b0"
        assert grid.move(session, "s1", "up", 2) == "s0"

    def test_down_into_shorter_row_clamps_column(self, grid, session):
        assert grid.move(session, "s2", "down", 2) == "s3"

    def test_vertical_edges_clamp(self, grid, session):
        assert grid.move(session, "s3", "down", 2) == "s3"
        assert grid.move(session, "s0", "up", 2) == "s0"

    def test_hidden_member_resolves_to_cover_first(self, grid, session):
        assert grid.resolve_unit(session, "b2", grid.navigable_units(session)) == "b0"
        assert grid.move(session, "b2", "right", 2) == "s1"
        assert grid.move(session, "b1", "left", 2) == "s0"

    def test_nothing_focused_starts_at_first_unit(self, grid, session):
        assert grid.move(session, None, "down", 2) == "s0"

    def test_empty_grid(self, grid):
        assert grid.move(seed_session([]), None, "right", 2) is None

    def test_unknown_direction_stays(self, grid, session):
        assert grid.move(session, "s1", "diagonal", 2) == "s1"


class TestRecheck:
    def _review_session(self):
        images = [
            make_image("p1", 1000, flag="pick"),
            make_image("n1", 2000),
            make_image("p2", 3000, flag="pick"),
            make_image("p3", 4000, flag="pick"),
        ]
        session = seed_session(images)
        session.filters = FilterState(flags=frozenset({"pick"}))
        return session

    def test_dropped_selection_moves_forward(self, grid):
        session = self._review_session()
        session.selected_ids, session.focus_id = {"p2"}, "p2"
        MutationService().set_flag(session, "p2", "pick")

        grid.recheck_selection(session)

        assert session.selected_ids == {"p3"}
        assert session.focus_id == "p3"

    def test_dropped_last_moves_backward(self, grid):
        session = self._review_session()
        session.selected_ids, session.focus_id = {"p3"}, "p3"
        MutationService().set_flag(session, "p3", "reject")

        grid.recheck_selection(session)

        assert session.selected_ids == {"p2"}

    def test_nothing_left_clears(self, grid):
        session = seed_session([make_image("p", 1, flag="pick")])
        session.filters = FilterState(flags=frozenset({"pick"}))
        session.selected_ids, session.focus_id = {"p"}, "p"
        MutationService().set_flag(session, "p", "pick")

        grid.recheck_selection(session)

        assert session.selected_ids == set()
        assert session.focus_id is None

    def test_partially_dropped_keeps_survivors(self, grid):
        session = self._review_session()
        session.selected_ids, session.focus_id = {"p1", "p2"}, "p2"
        MutationService().set_flag(session, "p2", "none")

        grid.recheck_selection(session)

        assert session.selected_ids == {"p1"}
        assert session.focus_id == "p1"

    def test_outside_review_mode_nothing_changes(self, grid, session):
        session.selected_ids = {"s1"}
        grid.recheck_selection(session)
        assert session.selected_ids == {"s1"}

    def test_replacement_follows_camera_sections_not_capture_order(self, grid):
        images = [
            make_image("a1", 1, flag="pick", serial_number="A"),
            make_image("b1", 2, flag="pick", serial_number="B"),
            make_image("a2", 3, flag="pick", serial_number="A"),
            make_image("b2", 4, flag="pick", serial_number="B"),
        ]
        session = seed_session(images, cameras=[Camera("A", "NIKON", "Z 9"), Camera("B", "Canon", "R5")])
        session.filters = FilterState(flags=frozenset({"pick"}))
        assert grid.navigable_units(session) == ["a1", "a2", "b1", "b2"]
        session.selected_ids, session.focus_id = {"a1"}, "a1"
        MutationService().set_flag(session, "a1", "pick")

        grid.recheck_selection(session)

        assert session.selected_ids == {"a2"}

    def test_replacement_falls_back_into_previous_section(self, grid):
        images = [
            make_image("a1", 1, flag="pick", serial_number="A"),
            make_image("b1", 2, flag="pick", serial_number="B"),
        ]
        session = seed_session(images, cameras=[Camera("A", "NIKON", "Z 9"), Camera("B", "Canon", "R5")])
        session.filters = FilterState(flags=frozenset({"pick"}))
        session.selected_ids, session.focus_id = {"b1"}, "b1"
        MutationService().set_flag(session, "b1", "reject")

        grid.recheck_selection(session)

        assert session.selected_ids == {"a1"}
