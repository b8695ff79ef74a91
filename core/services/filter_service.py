"""Filter predicate, review-mode detection and the views derived from them.

All functions are pure reads over a `SessionState`; nothing here is cached.
"""

from __future__ import annotations

from core.models import FLAG_PICK, FLAG_REJECT, FilterState, ImageEntry, SessionState
from core.services.interfaces import CameraSection, SessionStats


def passes_filter(image: ImageEntry, filters: FilterState) -> bool:
    """Return True if `image` is visible under `filters`."""
    if image.rating < filters.min_rating:
        return False
    if filters.flags and image.flag not in filters.flags:
        return False
    if filters.color_labels and image.color_label not in filters.color_labels:
        return False
    if filters.show_bursts_only and image.burst_group_id is None:
        return False
    if filters.camera_serial is not None and image.serial_number != filters.camera_serial:
        return False
    return True


def is_review_mode(filters: FilterState) -> bool:
    """Review mode is on whenever a content-culling filter is set.

    `show_bursts_only` and `camera_serial` only scope the view and never
    switch it on by themselves.
    """
    return filters.min_rating > 0 or bool(filters.flags) or bool(filters.color_labels)


def filtered_ids(session: SessionState) -> list[str]:
    """Ids passing the current filters, in capture order."""
    images = session.image_map
    return [
        image_id
        for image_id in session.image_order
        if image_id in images and passes_filter(images[image_id], session.filters)
    ]


def camera_sections(session: SessionState, image_ids: list[str] | None = None) -> list[CameraSection]:
    """Split `image_ids` (default: filtered ids) into per-camera sections.

    With one camera or none, a single unlabelled section is returned so callers
    can treat both layouts the same way. Sections follow first appearance in
    capture order.
    """
    ids = filtered_ids(session) if image_ids is None else image_ids
    if len(session.cameras) <= 1:
        return [CameraSection(serial=None, label="", image_ids=list(ids))] if ids else []

    by_serial: dict[str, list[str]] = {}
    for image_id in ids:
        serial = session.image_map[image_id].serial_number
        by_serial.setdefault(serial, []).append(image_id)

    labels = {cam.serial: cam.label for cam in session.cameras}
    return [
        CameraSection(serial=serial, label=labels.get(serial, serial), image_ids=members)
        for serial, members in by_serial.items()
    ]


def find_replacement(session: SessionState, dropped_id: str, order: list[str] | None = None) -> str | None:
    """Next id still passing the filters after `dropped_id` left the view.

    Searches forward from the dropped id's position in `order` (capture order
    by default), then backward. The order never changes under mutation, so
    the position is the same one the id held before it was dropped.
    """
    if order is None:
        order = session.image_order
    try:
        start = order.index(dropped_id)
    except ValueError:
        return None

    def _passes(image_id: str) -> bool:
        image = session.image_map.get(image_id)
        return image is not None and passes_filter(image, session.filters)

    for image_id in order[start + 1 :]:
        if _passes(image_id):
            return image_id
    for image_id in reversed(order[:start]):
        if _passes(image_id):
            return image_id
    return None


def session_stats(session: SessionState) -> SessionStats:
    """Compute status-bar counters from the live store."""
    images = session.image_map.values()
    return SessionStats(
        total=len(session.image_map),
        filtered=len(filtered_ids(session)),
        picks=sum(1 for i in images if i.flag == FLAG_PICK),
        rejects=sum(1 for i in images if i.flag == FLAG_REJECT),
        rated=sum(1 for i in images if i.rating > 0),
        bursts=len(session.bursts),
        selected=len(session.selected_ids),
    )
