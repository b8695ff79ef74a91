"""View model for a collapsed burst card."""

from __future__ import annotations

from dataclasses import dataclass, field

from core.models import BurstGroup, ImageEntry, SessionState
from core.services.burst_service import all_rejected, burst_members, has_picks, resolve_cover


@dataclass
class BurstVM:
    burst: BurstGroup
    members: list[ImageEntry] = field(default_factory=list)
    is_expanded: bool = False

    @classmethod
    def from_session(cls, session: SessionState, burst_id: str) -> BurstVM | None:
        """Build from live session data; None if the burst is unknown."""
        burst = session.bursts.get(burst_id)
        if burst is None:
            return None
        return cls(
            burst=burst,
            members=burst_members(session, burst_id),
            is_expanded=burst_id in session.expanded_bursts,
        )

    @property
    def cover(self) -> ImageEntry | None:
        return resolve_cover(self.members)

    @property
    def all_rejected(self) -> bool:
        return all_rejected(self.members)

    @property
    def has_picks(self) -> bool:
        return has_picks(self.members)

    @property
    def badge(self) -> str | None:
        """"reject" when every frame is rejected, else "pick" if any is picked."""
        if self.all_rejected:
            return "reject"
        if self.has_picks:
            return "pick"
        return None

    @property
    def fps_label(self) -> str:
        fps = self.burst.estimated_fps
        return f"{fps:.1f} fps" if fps > 0 else ""

    def is_selected(self, selected_ids: set[str]) -> bool:
        """True if any frame of the burst is selected."""
        return any(m.id in selected_ids for m in self.members)
