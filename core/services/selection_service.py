"""Single, multi and range selection over image ids.

The service works on a `SessionState` and never touches entries. Alongside
the selected set it keeps `focus_id`, the id keyboard navigation moves from.
"""

from __future__ import annotations

from core.models import SessionState


class SelectionService:
    """Maintains `selected_ids` and `focus_id` on a session."""

    def select(self, session: SessionState, image_id: str) -> None:
        """Replace the selection with `{image_id}`."""
        if image_id not in session.image_map:
            return
        session.selected_ids = {image_id}
        session.focus_id = image_id

    def toggle(self, session: SessionState, image_id: str) -> None:
        """Add `image_id` to the selection, or remove it if already selected."""
        if image_id not in session.image_map:
            return
        selected = set(session.selected_ids)
        if image_id in selected:
            selected.discard(image_id)
            if session.focus_id == image_id:
                session.focus_id = None
        else:
            selected.add(image_id)
            session.focus_id = image_id
        session.selected_ids = selected

    def select_range(self, session: SessionState, start_id: str, end_id: str) -> None:
        """Add every id between `start_id` and `end_id` in capture order.

        The endpoints may be given in either order. Unknown endpoints make
        this a no-op.
        """
        order = session.image_order
        try:
            start = order.index(start_id)
            end = order.index(end_id)
        except ValueError:
            return
        low, high = min(start, end), max(start, end)
        session.selected_ids = set(session.selected_ids) | set(order[low : high + 1])
        session.focus_id = end_id

    def clear(self, session: SessionState) -> None:
        """Drop the whole selection."""
        session.selected_ids = set()
        session.focus_id = None

    def focused(self, session: SessionState) -> str | None:
        """The id navigation starts from.

        Falls back to the earliest selected id in capture order when no focus
        was recorded.
        """
        if session.focus_id in session.selected_ids:
            return session.focus_id
        for image_id in session.image_order:
            if image_id in session.selected_ids:
                return image_id
        return None
