"""Grid navigation: navigable units, row-major layout and arrow-key moves.

A *unit* is one grid cell: a standalone frame, a collapsed burst (represented
by its cover id) or, in review mode, an individual burst frame.
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from core.models import SessionState
from core.services.burst_service import cover_id
from core.services.filter_service import (
    camera_sections,
    filtered_ids,
    find_replacement,
    is_review_mode,
)

DIRECTIONS = ("left", "right", "up", "down")


@dataclass(frozen=True)
class GridRow:
    """One layout row: either a camera header or up to `columns` unit ids."""

    unit_ids: list[str]
    header: str | None = None

    @property
    def is_header(self) -> bool:
        return self.header is not None


def _section_units(session: SessionState, image_ids: list[str], review: bool) -> list[str]:
    units: list[str] = []
    seen_bursts: set[str] = set()
    for image_id in image_ids:
        burst_id = session.burst_index.get(image_id)
        if burst_id is None or review:
            units.append(image_id)
            continue
        if burst_id in seen_bursts:
            continue
        seen_bursts.add(burst_id)
        cover = cover_id(session, burst_id)
        if cover is not None:
            units.append(cover)
    return units


class GridService:
    """Builds grid layouts and resolves keyboard moves across them."""

    def __init__(self, cell_width: int = 216, min_columns: int = 2) -> None:
        self._cell_width = max(1, int(cell_width))
        self._min_columns = max(1, int(min_columns))

    def columns_for_width(self, width: int) -> int:
        """Column count that fits `width` pixels."""
        return max(self._min_columns, int(width) // self._cell_width)

    def navigable_units(self, session: SessionState) -> list[str]:
        """Flat unit list in display order, camera section by camera section."""
        review = is_review_mode(session.filters)
        units: list[str] = []
        for section in camera_sections(session):
            units.extend(_section_units(session, section.image_ids, review))
        return units

    def rows(self, session: SessionState, columns: int) -> list[GridRow]:
        """Row-major layout; each camera section starts on a fresh row.

        Header rows are emitted only when the session has more than one camera.
        """
        columns = max(1, int(columns))
        review = is_review_mode(session.filters)
        result: list[GridRow] = []
        for section in camera_sections(session):
            if section.serial is not None:
                result.append(
                    GridRow(unit_ids=[], header=f"{section.label} ({len(section.image_ids)})")
                )
            units = _section_units(session, section.image_ids, review)
            for start in range(0, len(units), columns):
                result.append(GridRow(unit_ids=units[start : start + columns]))
        return result

    def resolve_unit(self, session: SessionState, image_id: str | None, units: list[str]) -> str | None:
        """Map `image_id` to the unit that currently shows it.

        A burst member hidden behind its cover resolves to the cover id.
        """
        if image_id is None:
            return None
        if image_id in units:
            return image_id
        burst_id = session.burst_index.get(image_id)
        if burst_id is not None:
            cover = cover_id(session, burst_id)
            if cover in units:
                return cover
        return None

    def move(self, session: SessionState, current_id: str | None, direction: str, columns: int) -> str | None:
        """Unit id reached by pressing `direction` from `current_id`.

        Left/right step through the flat list; up/down keep the column,
        clamped to the last cell of a shorter row. Every move clamps at the
        edges. With nothing focused the first unit is returned.
        """
        if direction not in DIRECTIONS:
            return current_id
        units = self.navigable_units(session)
        if not units:
            return None
        current = self.resolve_unit(session, current_id, units)
        if current is None:
            return units[0]

        if direction in ("left", "right"):
            index = units.index(current) + (1 if direction == "right" else -1)
            return units[max(0, min(len(units) - 1, index))]

        grid = [row.unit_ids for row in self.rows(session, columns) if not row.is_header]
        for row_index, row in enumerate(grid):
            if current in row:
                col = row.index(current)
                break
        else:  # pragma: no cover - units and rows are built from the same list
            return current
        target_index = row_index + (1 if direction == "down" else -1)
        if target_index < 0 or target_index >= len(grid):
            return current
        target_row = grid[target_index]
        return target_row[min(col, len(target_row) - 1)]

    def display_order(self, session: SessionState) -> list[str]:
        """Every id, filtered or not, in the order the grid lays sections out."""
        return [i for section in camera_sections(session, session.image_order) for i in section.image_ids]

    def recheck_selection(self, session: SessionState) -> None:
        """Repair the selection after a mutation dropped ids from the filtered set.

        Runs deferred, against the live state. Only review mode filters can
        hide a selected frame, so outside review mode nothing happens. When
        every selected id was dropped, focus moves to the next passing id
        in grid order (forward, then backward) or the selection clears. Grid
        order is capture order grouped by camera section.
        """
        if not session.selected_ids or not is_review_mode(session.filters):
            return
        passing = set(filtered_ids(session))
        dropped = [i for i in session.image_order if i in session.selected_ids and i not in passing]
        if not dropped:
            return

        kept = {i for i in session.selected_ids if i in passing}
        if kept:
            session.selected_ids = kept
            if session.focus_id not in kept:
                session.focus_id = next(i for i in session.image_order if i in kept)
            return

        anchor = session.focus_id if session.focus_id in dropped else dropped[0]
        replacement = find_replacement(session, anchor, self.display_order(session))
        if replacement is None:
            logger.debug("Selection {} left the filter; nothing left to select", anchor)
            session.selected_ids = set()
            session.focus_id = None
            return
        logger.debug("Selection {} left the filter; moving to {}", anchor, replacement)
        session.selected_ids = {replacement}
        session.focus_id = replacement
