"""Shared factories for building sessions and payloads in tests."""

from __future__ import annotations

from typing import Any

import pytest

from core.models import BurstGroup, Camera, ImageEntry, SessionState


def make_image(image_id: str, timestamp: int = 1000, **overrides: Any) -> ImageEntry:
    """Build an `ImageEntry` with readable defaults."""
    values: dict[str, Any] = {
        "id": image_id,
        "filename": f"{image_id}.NEF",
        "path": f"/photos/{image_id}.NEF",
        "timestamp": timestamp,
        "capture_time": "2024-05-01T10:00:00+00:00",
        "serial_number": "3002851",
        "drive_mode": "ContinuousHigh",
    }
    values.update(overrides)
    return ImageEntry(**values)


def make_burst(burst_id: str, image_ids: list[str], serial: str = "3002851") -> BurstGroup:
    return BurstGroup(
        id=burst_id,
        camera_serial=serial,
        image_ids=tuple(image_ids),
        frame_count=len(image_ids),
        duration_ms=len(image_ids) * 50.0,
        avg_gap_ms=50.0,
        estimated_fps=20.0,
    )


def burst_frames(burst_id: str, flags: list[str], start: int = 1000, prefix: str = "b") -> list[ImageEntry]:
    """Frames `{prefix}0..n` of one burst, 50 ms apart, with the given flags."""
    return [
        make_image(
            f"{prefix}{i}",
            start + i * 50,
            flag=flag,
            burst_group_id=burst_id,
            burst_index=i,
        )
        for i, flag in enumerate(flags)
    ]


def seed_session(
    images: list[ImageEntry],
    bursts: list[BurstGroup] | None = None,
    cameras: list[Camera] | None = None,
) -> SessionState:
    """A session whose indices are derived exactly as hydration derives them."""
    bursts = bursts or []
    burst_index = {image_id: b.id for b in bursts for image_id in b.image_ids}
    return SessionState(
        image_map={i.id: i for i in images},
        image_order=[i.id for i in sorted(images, key=lambda e: e.timestamp)],
        bursts={b.id: b for b in bursts},
        burst_index=burst_index,
        cameras=cameras or [],
    )


def frame_record(path: str, capture_time: str, serial: str = "3002851", **extra: Any) -> dict[str, Any]:
    record = {
        "file_path": path,
        "filename": path.rsplit("/", 1)[-1],
        "serial_number": serial,
        "drive_mode": "ContinuousHigh",
        "capture_time": capture_time,
        "make": "NIKON CORPORATION",
        "model": "NIKON Z 9",
        "lens": "VR 500mm f/4E",
        "focal_length": 500,
        "aperture": 4.5,
        "shutter_speed": "1/3200",
        "iso": 800,
    }
    record.update(extra)
    return record


@pytest.fixture
def sample_payload() -> dict[str, Any]:
    """Two cameras, one three-frame burst and three singles."""
    return {
        "cameras": [
            {"serial": "3002851", "make": "NIKON", "model": "Z 9", "image_count": 5, "burst_count": 1},
            {"serial": "9001", "make": "Canon", "model": "R5", "image_count": 1, "burst_count": 0},
        ],
        "bursts": [
            {
                "id": "burst-1",
                "camera_serial": "3002851",
                "frame_count": 3,
                "duration_ms": 100,
                "avg_gap_ms": 50,
                "estimated_fps": 20,
                "frames": [
                    frame_record("/shoot/b0.NEF", "2024-05-01T10:00:01.000Z"),
                    frame_record("/shoot/b1.NEF", "2024-05-01T10:00:01.050Z"),
                    frame_record("/shoot/b2.NEF", "2024-05-01T10:00:01.100Z"),
                ],
            }
        ],
        "singles": [
            frame_record("/shoot/s2.NEF", "2024-05-01T10:00:05Z", drive_mode="Single"),
            frame_record("/shoot/s0.NEF", "2024-05-01T09:59:00Z", drive_mode="Single"),
            frame_record("/shoot/c0.CR3", "2024-05-01T10:00:03Z", serial="9001", drive_mode="Single"),
        ],
    }
