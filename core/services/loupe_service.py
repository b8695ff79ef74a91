"""Loupe (full-detail view) state machine.

States are derived from `LoupeState`:

- closed: `active` is False
- open-unscoped: `active` and no `burst_id`
- open-burst-scoped: `active` with `burst_id` set; `image_id` is a member

Opening a burst frame outside review mode locks the loupe to that burst and
starts on its smart-start frame. In review mode every frame is independent.
"""

from __future__ import annotations

from dataclasses import replace

from loguru import logger

from core.models import LoupeState, SessionState
from core.services.burst_service import burst_members, resolve_cover
from core.services.filter_service import (
    filtered_ids,
    find_replacement,
    is_review_mode,
    passes_filter,
)
from core.services.selection_service import SelectionService

CLOSED = "closed"
OPEN_UNSCOPED = "open-unscoped"
OPEN_BURST_SCOPED = "open-burst-scoped"


def loupe_mode(loupe: LoupeState) -> str:
    """Name of the state `loupe` is in."""
    if not loupe.active:
        return CLOSED
    return OPEN_BURST_SCOPED if loupe.burst_id else OPEN_UNSCOPED


class LoupeService:
    """Transitions of the loupe state machine over a `SessionState`."""

    def __init__(self, selection: SelectionService | None = None) -> None:
        self._selection = selection or SelectionService()

    def open(self, session: SessionState, image_id: str) -> bool:
        """Open on `image_id`. Returns False (and does nothing) if it is unknown."""
        image = session.image_map.get(image_id)
        if image is None:
            return False

        burst_id = session.burst_index.get(image_id)
        if burst_id is not None and burst_id in session.bursts and not is_review_mode(session.filters):
            start = resolve_cover(burst_members(session, burst_id))
            target = start.id if start else image_id
        else:
            burst_id = None
            target = image_id

        session.loupe = replace(session.loupe, active=True, image_id=target, burst_id=burst_id)
        self._selection.select(session, target)
        logger.debug("Loupe opened on {} (burst={})", target, burst_id)
        return True

    def close(self, session: SessionState) -> None:
        """Close the loupe, leaving the grid selection on a sensible frame.

        A burst-scoped loupe hands selection back to the burst's first frame;
        an unscoped one to the frame last viewed. The URL cache survives.
        """
        loupe = session.loupe
        if not loupe.active:
            return
        target = loupe.image_id
        if loupe.burst_id is not None:
            burst = session.bursts.get(loupe.burst_id)
            if burst is not None and burst.image_ids:
                target = burst.image_ids[0]
        session.loupe = replace(loupe, active=False, image_id=None, burst_id=None)
        if target is not None:
            self._selection.select(session, target)
        logger.debug("Loupe closed; selection -> {}", target)

    def navigable_ids(self, session: SessionState) -> list[str]:
        """Ids the loupe steps through in its current state."""
        loupe = session.loupe
        if not loupe.active:
            return []
        if loupe.burst_id is not None:
            burst = session.bursts.get(loupe.burst_id)
            return list(burst.image_ids) if burst else []
        if is_review_mode(session.filters):
            return filtered_ids(session)
        return list(session.image_order)

    def step(self, session: SessionState, delta: int) -> str | None:
        """Move `delta` frames, clamping at both ends. Returns the current id."""
        loupe = session.loupe
        if not loupe.active or loupe.image_id is None:
            return None
        ids = self.navigable_ids(session)
        if not ids:
            return loupe.image_id

        if loupe.image_id in ids:
            index = ids.index(loupe.image_id) + delta
        else:
            # Current frame already left the set: the first id after it in
            # capture order sits at `later`, the last one before it at `later - 1`
            position = {image_id: i for i, image_id in enumerate(session.image_order)}
            anchor = position.get(loupe.image_id, -1)
            later = next(
                (i for i, image_id in enumerate(ids) if position.get(image_id, -1) > anchor),
                len(ids),
            )
            index = later + delta - 1 if delta > 0 else later + delta
        target = ids[max(0, min(len(ids) - 1, index))]
        if target != loupe.image_id:
            session.loupe = replace(loupe, image_id=target)
        self._selection.select(session, target)
        return target

    def next(self, session: SessionState) -> str | None:
        return self.step(session, 1)

    def prev(self, session: SessionState) -> str | None:
        return self.step(session, -1)

    def recheck(self, session: SessionState) -> None:
        """Auto-advance after an edit hid the current frame in review mode.

        Runs deferred, against the live state. If the frame still passes the
        filters nothing changes; otherwise the loupe moves to the next passing
        frame (forward, then backward) or closes when none is left.
        """
        loupe = session.loupe
        if not loupe.active or loupe.burst_id is not None or loupe.image_id is None:
            return
        if not is_review_mode(session.filters):
            return
        image = session.image_map.get(loupe.image_id)
        if image is not None and passes_filter(image, session.filters):
            return

        replacement = find_replacement(session, loupe.image_id)
        if replacement is None:
            logger.debug("Loupe frame {} filtered out; no frames left, closing", loupe.image_id)
            self.close(session)
            return
        logger.debug("Loupe frame {} filtered out; advancing to {}", loupe.image_id, replacement)
        session.loupe = replace(loupe, image_id=replacement)
        self._selection.select(session, replacement)
