from __future__ import annotations

from conftest import make_image, seed_session
from core.services.asset_service import loupe_url, merge_loupe_urls, merge_thumbnails


def to_url(cache_path: str) -> str:
    return f"asset://{cache_path}"


def test_thumbnail_patch_updates_matching_paths_only():
    session = seed_session([make_image("a", 1, rating=4), make_image("b", 2)])
    untouched = session.image_map["b"]

    count = merge_thumbnails(session, {"/photos/a.NEF": "/cache/a.jpg", "/elsewhere.NEF": "/x"}, to_url)

    assert count == 1
    a = session.image_map["a"]
    assert a.preview_url == "asset:///cache/a.jpg"
    assert a.asset_tier == "preview"
    assert a.rating == 4
    assert session.image_map["b"] is untouched


def test_lower_tier_never_overwrites_higher():
    session = seed_session([make_image("a", 1)])
    merge_thumbnails(session, {"/photos/a.NEF": "/cache/preview.jpg"}, to_url, tier="preview")

    assert merge_thumbnails(session, {"/photos/a.NEF": "/cache/micro.jpg"}, to_url, tier="micro") == 0
    assert session.image_map["a"].asset_tier == "preview"
    assert session.image_map["a"].thumbnail_url is None


def test_micro_then_preview_upgrades():
    session = seed_session([make_image("a", 1)])
    merge_thumbnails(session, {"/photos/a.NEF": "/cache/micro.jpg"}, to_url, tier="micro")
    merge_thumbnails(session, {"/photos/a.NEF": "/cache/preview.jpg"}, to_url, tier="preview")

    a = session.image_map["a"]
    assert a.thumbnail_url == "asset:///cache/micro.jpg"
    assert a.preview_url == "asset:///cache/preview.jpg"
    assert a.asset_tier == "preview"


def test_repeated_patch_is_idempotent():
    session = seed_session([make_image("a", 1)])
    patch = {"/photos/a.NEF": "/cache/a.jpg"}
    merge_thumbnails(session, patch, to_url)
    before = session.image_map

    assert merge_thumbnails(session, patch, to_url) == 0
    assert session.image_map is before


def test_missing_converter_degrades_gracefully():
    session = seed_session([make_image("a", 1)])
    before = session.image_map

    assert merge_thumbnails(session, {"/photos/a.NEF": "/cache/a.jpg"}, None) == 0
    assert merge_loupe_urls(session, {"/photos/a.NEF": "/cache/a.jpg"}, None) == 0
    assert session.image_map is before


def test_failing_converter_is_skipped():
    def broken(_: str) -> str:
        raise RuntimeError("no host")

    session = seed_session([make_image("a", 1)])
    assert merge_thumbnails(session, {"/photos/a.NEF": "/cache/a.jpg"}, broken) == 0


def test_loupe_urls_merge_and_fallback():
    session = seed_session([make_image("a", 1), make_image("b", 2)])
    merge_thumbnails(session, {"/photos/b.NEF": "/cache/b.jpg"}, to_url)

    assert merge_loupe_urls(session, {"/photos/a.NEF": "/full/a.jpg", "/photos/x.NEF": None}, to_url) == 1
    assert loupe_url(session, "a") == "asset:///full/a.jpg"
    assert loupe_url(session, "b") == "asset:///cache/b.jpg"
    assert loupe_url(session, None) is None
