"""Core domain models for a culling session.

Entities are frozen dataclasses: every write produces a new object via
`dataclasses.replace`, so identity comparisons detect changed entries.
`SessionState` is the single mutable container owned by the host.
"""

from __future__ import annotations

from dataclasses import dataclass, field

FLAG_NONE = "none"
FLAG_PICK = "pick"
FLAG_REJECT = "reject"
FLAGS = (FLAG_NONE, FLAG_PICK, FLAG_REJECT)

LABEL_NONE = "none"
COLOR_LABELS = (LABEL_NONE, "red", "yellow", "green", "blue", "purple")

MIN_RATING = 0
MAX_RATING = 5

# Progressive asset fidelity, lowest first
ASSET_TIERS = ("none", "micro", "preview", "loupe")

OVERLAY_MODES = ("none", "minimal", "standard", "full")


def tier_rank(tier: str) -> int:
    """Rank of an asset tier; unknown tiers rank lowest."""
    try:
        return ASSET_TIERS.index(tier)
    except ValueError:
        return 0


@dataclass(frozen=True)
class ExifData:
    """Capture metadata carried over from the import payload."""

    make: str | None = None
    model: str | None = None
    lens: str | None = None
    focal_length: float | None = None
    aperture: float | None = None
    shutter_speed: str | None = None
    iso: int | None = None


@dataclass(frozen=True)
class ImageEntry:
    """A single captured frame, standalone or a burst member."""

    id: str
    filename: str
    path: str
    timestamp: int
    capture_time: str
    serial_number: str
    drive_mode: str
    exif: ExifData = field(default_factory=ExifData)
    rating: int = 0
    flag: str = FLAG_NONE
    color_label: str = LABEL_NONE
    burst_group_id: str | None = None
    burst_index: int | None = None
    # Display assets
    color_swatch: str | None = None
    thumbnail_url: str | None = None
    preview_url: str | None = None
    asset_tier: str = "none"


@dataclass(frozen=True)
class BurstGroup:
    """A rapid sequence of frames from one camera, members in capture order."""

    id: str
    camera_serial: str
    image_ids: tuple[str, ...]
    frame_count: int
    duration_ms: float = 0.0
    avg_gap_ms: float = 0.0
    estimated_fps: float = 0.0


@dataclass(frozen=True)
class Camera:
    """Per-body summary derived at import time."""

    serial: str
    make: str
    model: str
    image_count: int = 0
    burst_count: int = 0

    @property
    def label(self) -> str:
        """Human readable "make model", falling back to the serial."""
        text = f"{self.make} {self.model}".strip()
        return text or self.serial


@dataclass(frozen=True)
class FilterState:
    """Active grid/loupe filters.

    `min_rating`, `flags` and `color_labels` cull content; `show_bursts_only`
    and `camera_serial` only scope it.
    """

    min_rating: int = 0
    flags: frozenset[str] = frozenset()
    color_labels: frozenset[str] = frozenset()
    show_bursts_only: bool = False
    camera_serial: str | None = None


@dataclass
class LoupeState:
    """Full-detail view state.

    Attributes:
        active: Whether the loupe is open.
        image_id: Frame currently shown.
        burst_id: Burst the loupe is locked to, if any.
        urls: Rendered full-resolution URLs keyed by source path.
    """

    active: bool = False
    image_id: str | None = None
    burst_id: str | None = None
    urls: dict[str, str] = field(default_factory=dict)


@dataclass
class SessionState:
    """Everything one culling session knows.

    `image_map` is the only copy of image data. `image_order` and
    `burst_index` are secondary indices rebuilt on import only.
    """

    image_map: dict[str, ImageEntry] = field(default_factory=dict)
    image_order: list[str] = field(default_factory=list)
    bursts: dict[str, BurstGroup] = field(default_factory=dict)
    burst_index: dict[str, str] = field(default_factory=dict)
    cameras: list[Camera] = field(default_factory=list)
    selected_ids: set[str] = field(default_factory=set)
    focus_id: str | None = None
    expanded_bursts: set[str] = field(default_factory=set)
    filters: FilterState = field(default_factory=FilterState)
    loupe: LoupeState = field(default_factory=LoupeState)
    overlay_mode: str = "minimal"
    folder_path: str | None = None
    import_error: str | None = None
    is_importing: bool = False
