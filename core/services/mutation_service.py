"""Rating, flag and color-label writers, plus burst-aware flag fan-out.

Writers never mutate an entry in place: every changed entry is rebuilt with
`dataclasses.replace` and `session.image_map` is swapped for a new dict, so
identity checks on either the map or an entry see the change. Unknown ids are
ignored silently.
"""

from __future__ import annotations

from dataclasses import replace

from loguru import logger

from core.models import (
    COLOR_LABELS,
    FLAG_NONE,
    FLAGS,
    LABEL_NONE,
    MAX_RATING,
    MIN_RATING,
    ImageEntry,
    SessionState,
)
from core.services.filter_service import is_review_mode


def toggled(current: str, requested: str, empty: str) -> str:
    """Toggle rule shared by flags and labels.

    Requesting the value already held clears it to `empty`; any other request
    switches to the requested value.
    """
    return empty if current == requested else requested


def _commit(session: SessionState, updates: dict[str, ImageEntry]) -> None:
    """Swap in a new image map containing `updates`."""
    if not updates:
        return
    new_map = dict(session.image_map)
    new_map.update(updates)
    session.image_map = new_map


class MutationService:
    """Applies user edits to entries of a `SessionState`."""

    def set_rating(self, session: SessionState, image_id: str, rating: int) -> bool:
        """Set the star rating (clamped to 0..5). Returns True if anything changed."""
        image = session.image_map.get(image_id)
        if image is None:
            return False
        value = max(MIN_RATING, min(MAX_RATING, int(rating)))
        if image.rating == value:
            return False
        _commit(session, {image_id: replace(image, rating=value)})
        return True

    def set_flag(self, session: SessionState, image_id: str, flag: str) -> bool:
        """Toggle-set the flag of a single entry. Returns True if it changed."""
        image = session.image_map.get(image_id)
        if image is None or flag not in FLAGS:
            return False
        value = toggled(image.flag, flag, FLAG_NONE)
        if value == image.flag:
            return False
        _commit(session, {image_id: replace(image, flag=value)})
        return True

    def set_color_label(self, session: SessionState, image_id: str, label: str) -> bool:
        """Toggle-set the color label of a single entry. Returns True if it changed."""
        image = session.image_map.get(image_id)
        if image is None or label not in COLOR_LABELS:
            return False
        value = toggled(image.color_label, label, LABEL_NONE)
        if value == image.color_label:
            return False
        _commit(session, {image_id: replace(image, color_label=value)})
        return True

    def flag_targets(self, session: SessionState, image_id: str, flag: str) -> list[str]:
        """Flag an id the way the grid does, fanning out across collapsed bursts.

        Outside review mode a burst member stands for its whole burst: if every
        frame already carries `flag` they are all cleared, otherwise all are set
        to `flag`. In review mode, or for standalone frames, the ordinary
        single-entry toggle applies.

        Returns:
            Ids whose flag changed.
        """
        image = session.image_map.get(image_id)
        if image is None or flag not in FLAGS:
            return []

        burst = session.bursts.get(session.burst_index.get(image_id, ""))
        if burst is None or is_review_mode(session.filters):
            return [image_id] if self.set_flag(session, image_id, flag) else []

        members = [session.image_map[i] for i in burst.image_ids if i in session.image_map]
        all_same = all(m.flag == flag for m in members)
        value = FLAG_NONE if all_same else flag
        updates = {m.id: replace(m, flag=value) for m in members if m.flag != value}
        _commit(session, updates)
        logger.debug(
            "Burst {} fan-out '{}' -> '{}' on {} of {} frames",
            burst.id,
            flag,
            value,
            len(updates),
            len(members),
        )
        return list(updates)

    def flag_many(self, session: SessionState, image_ids: list[str], flag: str) -> list[str]:
        """Apply `flag_targets` to each id, visiting every burst at most once."""
        changed: list[str] = []
        seen_bursts: set[str] = set()
        review = is_review_mode(session.filters)
        for image_id in image_ids:
            burst_id = session.burst_index.get(image_id)
            if burst_id is not None and not review:
                if burst_id in seen_bursts:
                    continue
                seen_bursts.add(burst_id)
            changed.extend(self.flag_targets(session, image_id, flag))
        return changed
