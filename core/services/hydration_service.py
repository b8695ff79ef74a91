"""Import hydration: raw payload -> normalized session tables.

Hydration is pure and all-or-nothing. `hydrate` either returns a complete
`HydratedSession` or raises `ImportFailed`; callers swap it into the live
session in one assignment step via `apply_hydration`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import datetime, timezone
import hashlib
from typing import Any

from loguru import logger

from core.models import BurstGroup, Camera, ExifData, ImageEntry, LoupeState, SessionState
from core.services.interfaces import ImportFailed


@dataclass
class HydratedSession:
    """Normalized tables produced from one import payload."""

    image_map: dict[str, ImageEntry]
    image_order: list[str]
    bursts: dict[str, BurstGroup]
    burst_index: dict[str, str]
    cameras: list[Camera]


def image_id_for_path(path: str) -> str:
    """Stable image id derived from the source file path."""
    return hashlib.sha1(path.encode("utf-8", errors="ignore")).hexdigest()[:16]


def swatch_for_path(path: str) -> str:
    """Placeholder HSL color shown until a thumbnail arrives."""
    digest = hashlib.sha1(path.encode("utf-8", errors="ignore")).digest()
    hue = int.from_bytes(digest[:2], "big") % 360
    lightness = 25 + digest[2] % 20
    return f"hsl({hue}, 45%, {lightness}%)"


def parse_capture_time(value: Any) -> tuple[int, str]:
    """Parse an ISO-8601 capture time into (epoch ms, normalized ISO string).

    Naive times are taken as UTC.

    Raises:
        ImportFailed: The value is missing or not ISO-8601.
    """
    if not isinstance(value, str) or not value.strip():
        raise ImportFailed(f"Missing capture_time: {value!r}")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError as ex:
        raise ImportFailed(f"Invalid capture_time: {value!r}") from ex
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return round(dt.timestamp() * 1000), dt.isoformat()


def _optional_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _optional_int(value: Any) -> int | None:
    number = _optional_float(value)
    return int(number) if number is not None else None


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _build_entry(record: Any, burst_id: str | None = None) -> ImageEntry:
    """Turn one frame record into an `ImageEntry` (burst position set later)."""
    if not isinstance(record, Mapping):
        raise ImportFailed(f"Frame record is not an object: {record!r}")
    path = record.get("file_path")
    if not isinstance(path, str) or not path:
        raise ImportFailed(f"Frame record without file_path: {record!r}")
    timestamp, capture_time = parse_capture_time(record.get("capture_time"))
    filename = record.get("filename") or path.replace("\\", "/").rsplit("/", 1)[-1]
    return ImageEntry(
        id=image_id_for_path(path),
        filename=str(filename),
        path=path,
        timestamp=timestamp,
        capture_time=capture_time,
        serial_number=str(record.get("serial_number") or "unknown"),
        drive_mode=str(record.get("drive_mode") or "Single"),
        exif=ExifData(
            make=_optional_str(record.get("make")),
            model=_optional_str(record.get("model")),
            lens=_optional_str(record.get("lens")),
            focal_length=_optional_float(record.get("focal_length")),
            aperture=_optional_float(record.get("aperture")),
            shutter_speed=_optional_str(record.get("shutter_speed")),
            iso=_optional_int(record.get("iso")),
        ),
        burst_group_id=burst_id,
        color_swatch=swatch_for_path(path),
    )


def _list_field(payload: Mapping[str, Any], key: str) -> list[Any]:
    value = payload.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ImportFailed(f"Payload field '{key}' must be a list")
    return value


def hydrate(payload: Any) -> HydratedSession:
    """Normalize an import payload `{cameras, bursts, singles}`.

    Burst members are ordered by capture time (stable on ties) and numbered
    with `burst_index`. `image_order` merges burst members and singles and
    stable-sorts them by timestamp.

    Raises:
        ImportFailed: The payload is malformed, a path appears twice, or a
            burst has no frames.
    """
    if not isinstance(payload, Mapping):
        raise ImportFailed("Import payload is not an object")

    image_map: dict[str, ImageEntry] = {}
    bursts: dict[str, BurstGroup] = {}
    burst_index: dict[str, str] = {}

    def _add(entry: ImageEntry) -> None:
        if entry.id in image_map:
            raise ImportFailed(f"Duplicate frame in payload: {entry.path}")
        image_map[entry.id] = entry

    for raw in _list_field(payload, "bursts"):
        if not isinstance(raw, Mapping) or not raw.get("id"):
            raise ImportFailed(f"Burst record without id: {raw!r}")
        burst_id = str(raw["id"])
        if burst_id in bursts:
            raise ImportFailed(f"Duplicate burst id: {burst_id}")
        frames = raw.get("frames")
        if not isinstance(frames, list) or not frames:
            raise ImportFailed(f"Burst {burst_id} has no frames")

        members = sorted((_build_entry(f, burst_id) for f in frames), key=lambda e: e.timestamp)
        for position, entry in enumerate(members):
            entry = replace(entry, burst_index=position)
            _add(entry)
            burst_index[entry.id] = burst_id

        bursts[burst_id] = BurstGroup(
            id=burst_id,
            camera_serial=str(raw.get("camera_serial") or members[0].serial_number),
            image_ids=tuple(e.id for e in members),
            frame_count=len(members),
            duration_ms=_optional_float(raw.get("duration_ms")) or 0.0,
            avg_gap_ms=_optional_float(raw.get("avg_gap_ms")) or 0.0,
            estimated_fps=_optional_float(raw.get("estimated_fps")) or 0.0,
        )

    for raw in _list_field(payload, "singles"):
        _add(_build_entry(raw))

    # dicts keep insertion order and sorted() is stable, so ties keep payload order
    image_order = [e.id for e in sorted(image_map.values(), key=lambda e: e.timestamp)]

    cameras = _build_cameras(_list_field(payload, "cameras"), image_map, bursts, image_order)
    return HydratedSession(
        image_map=image_map,
        image_order=image_order,
        bursts=bursts,
        burst_index=burst_index,
        cameras=cameras,
    )


def _build_cameras(
    raw_cameras: list[Any],
    image_map: dict[str, ImageEntry],
    bursts: dict[str, BurstGroup],
    image_order: list[str],
) -> list[Camera]:
    """Camera summaries; counts are recomputed from the hydrated tables."""
    image_counts: dict[str, int] = {}
    for image_id in image_order:
        serial = image_map[image_id].serial_number
        image_counts[serial] = image_counts.get(serial, 0) + 1
    burst_counts: dict[str, int] = {}
    for burst in bursts.values():
        burst_counts[burst.camera_serial] = burst_counts.get(burst.camera_serial, 0) + 1

    cameras: list[Camera] = []
    known: set[str] = set()
    for raw in raw_cameras:
        if not isinstance(raw, Mapping) or not raw.get("serial"):
            raise ImportFailed(f"Camera record without serial: {raw!r}")
        serial = str(raw["serial"])
        if serial in known:
            continue
        known.add(serial)
        cameras.append(
            Camera(
                serial=serial,
                make=str(raw.get("make") or ""),
                model=str(raw.get("model") or ""),
                image_count=image_counts.get(serial, 0),
                burst_count=burst_counts.get(serial, 0),
            )
        )

    # Bodies seen in frames but missing from the camera list
    for serial in image_counts:
        if serial in known:
            continue
        known.add(serial)
        sample = next(e for e in image_map.values() if e.serial_number == serial)
        logger.warning("Camera {} not listed in payload; deriving summary from frames", serial)
        cameras.append(
            Camera(
                serial=serial,
                make=sample.exif.make or "",
                model=sample.exif.model or "",
                image_count=image_counts[serial],
                burst_count=burst_counts.get(serial, 0),
            )
        )
    return cameras


def apply_hydration(session: SessionState, hydrated: HydratedSession, folder: str | None = None) -> None:
    """Replace the session's tables with `hydrated` and reset transient UI state.

    Filters and overlay mode are user preferences and survive an import.
    """
    session.image_map = hydrated.image_map
    session.image_order = hydrated.image_order
    session.bursts = hydrated.bursts
    session.burst_index = hydrated.burst_index
    session.cameras = hydrated.cameras
    session.selected_ids = set()
    session.focus_id = None
    session.expanded_bursts = set()
    session.loupe = LoupeState()
    session.folder_path = folder
    session.import_error = None
