"""Core service interfaces and shared data structures.

This module defines the boundary to the two external collaborators (the
capture-metadata importer and the renderer) plus small result dataclasses
shared by the core services and the view-models.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

# Turns a renderer cache path into a displayable URL
UrlConverter = Callable[[str], str]


class ImportFailed(Exception):
    """Raised when an import payload cannot be loaded or hydrated."""


class IImportService(Protocol):
    """Produces the raw import payload for a folder."""

    def load(self, folder: str) -> Mapping[str, Any]:
        """Return `{cameras, bursts, singles}` for `folder`.

        Raises:
            ImportFailed: The folder could not be scanned.
        """
        raise NotImplementedError


class IRenderService(Protocol):
    """Renders thumbnails and full-resolution images into an on-disk cache."""

    def request_thumbnails(self, paths: list[str]) -> Mapping[str, str]:
        """Return a source-path -> cache-path map for thumbnails."""
        raise NotImplementedError

    def request_full_res(self, paths: list[str]) -> Mapping[str, str]:
        """Return a source-path -> cache-path map for loupe renditions."""
        raise NotImplementedError


@dataclass(frozen=True)
class CameraSection:
    """A run of filtered ids belonging to one camera body.

    Attributes:
        serial: Camera serial, or None when sections are not split by camera.
        label: Header text ("make model" or the serial).
        image_ids: Filtered ids of this camera in capture order.
    """

    serial: str | None
    label: str
    image_ids: list[str]


@dataclass(frozen=True)
class SessionStats:
    """Counters shown in the status bar."""

    total: int
    filtered: int
    picks: int
    rejects: int
    rated: int
    bursts: int
    selected: int
