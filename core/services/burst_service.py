"""Burst cover / smart-start resolution and burst-level predicates."""

from __future__ import annotations

from collections.abc import Sequence

from core.models import FLAG_NONE, FLAG_PICK, FLAG_REJECT, ImageEntry, SessionState


def burst_members(session: SessionState, burst_id: str) -> list[ImageEntry]:
    """Member entries of `burst_id` in capture order; empty if unknown."""
    burst = session.bursts.get(burst_id)
    if burst is None:
        return []
    return [session.image_map[i] for i in burst.image_ids if i in session.image_map]


def resolve_cover(members: Sequence[ImageEntry]) -> ImageEntry | None:
    """First pick, else first unflagged, else the first frame.

    The same rule picks the grid cover of a collapsed burst and the frame the
    loupe starts on.
    """
    for image in members:
        if image.flag == FLAG_PICK:
            return image
    for image in members:
        if image.flag == FLAG_NONE:
            return image
    return members[0] if members else None


def cover_id(session: SessionState, burst_id: str) -> str | None:
    """Id of the current cover frame of `burst_id`."""
    cover = resolve_cover(burst_members(session, burst_id))
    return cover.id if cover else None


def all_rejected(members: Sequence[ImageEntry]) -> bool:
    """True if the burst is non-empty and every frame is rejected."""
    return bool(members) and all(i.flag == FLAG_REJECT for i in members)


def has_picks(members: Sequence[ImageEntry]) -> bool:
    """True if at least one frame is picked."""
    return any(i.flag == FLAG_PICK for i in members)
