"""Merging rendered asset results back into the session.

Render results arrive as path -> cache-path maps, possibly late, partial or
for a previous import. Merges are keyed by source path and idempotent, and a
lower-fidelity tier never replaces a higher one already applied.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from loguru import logger

from core.models import SessionState, tier_rank
from core.services.interfaces import UrlConverter


def _to_url(cache_path: Any, to_url: UrlConverter | None) -> str | None:
    if to_url is None or not isinstance(cache_path, str) or not cache_path:
        return None
    try:
        return to_url(cache_path)
    except Exception as ex:  # pylint: disable=broad-exception-caught
        logger.warning("URL conversion failed for {}: {}", cache_path, ex)
        return None


def merge_thumbnails(
    session: SessionState,
    patch: Mapping[str, Any] | None,
    to_url: UrlConverter | None,
    tier: str = "preview",
) -> int:
    """Apply a thumbnail patch. Returns the number of entries updated.

    Without a URL converter nothing is displayable, so the patch is dropped
    and entries keep their placeholder swatch.
    """
    if not patch:
        return 0
    if to_url is None:
        logger.debug("No URL converter; ignoring {} thumbnail results", len(patch))
        return 0

    incoming = tier_rank(tier)
    # Micro renders fill the small thumbnail slot, anything larger the preview slot
    field_name = "thumbnail_url" if tier == "micro" else "preview_url"
    updates = {}
    for image in session.image_map.values():
        if image.path not in patch:
            continue
        if incoming < tier_rank(image.asset_tier):
            logger.debug("Skipping {} thumbnail for {}; already at {}", tier, image.path, image.asset_tier)
            continue
        url = _to_url(patch[image.path], to_url)
        if url is None or (getattr(image, field_name) == url and image.asset_tier == tier):
            continue
        updates[image.id] = replace(image, **{field_name: url, "asset_tier": tier})

    if updates:
        new_map = dict(session.image_map)
        new_map.update(updates)
        session.image_map = new_map
    return len(updates)


def merge_loupe_urls(
    session: SessionState,
    patch: Mapping[str, Any] | None,
    to_url: UrlConverter | None,
) -> int:
    """Merge full-resolution URLs into the loupe cache. Returns how many were added."""
    if not patch or to_url is None:
        return 0
    added = {}
    for path, cache_path in patch.items():
        url = _to_url(cache_path, to_url)
        if url is not None and session.loupe.urls.get(path) != url:
            added[path] = url
    if added:
        session.loupe = replace(session.loupe, urls={**session.loupe.urls, **added})
    return len(added)


def loupe_url(session: SessionState, image_id: str | None) -> str | None:
    """Best URL to show in the loupe: full-res if cached, else the thumbnail."""
    image = session.image_map.get(image_id) if image_id else None
    if image is None:
        return None
    return session.loupe.urls.get(image.path) or image.preview_url or image.thumbnail_url
