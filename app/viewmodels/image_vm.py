"""Lightweight view model wrapper around `ImageEntry`."""

from __future__ import annotations

from dataclasses import dataclass

from core.models import FLAG_PICK, FLAG_REJECT, LABEL_NONE, ImageEntry


@dataclass
class ImageVM:
    """Expose convenient properties for bindings/templates."""

    entry: ImageEntry
    selected: bool = False

    @property
    def display_url(self) -> str | None:
        """Best available grid image, preview before micro thumbnail."""
        return self.entry.preview_url or self.entry.thumbnail_url

    @property
    def swatch(self) -> str:
        """Placeholder color shown while no thumbnail is available."""
        return self.entry.color_swatch or "hsl(0, 0%, 30%)"

    @property
    def stars(self) -> str:
        """Rating rendered as filled/empty stars."""
        return "★" * self.entry.rating + "☆" * (5 - self.entry.rating)

    @property
    def is_pick(self) -> bool:
        return self.entry.flag == FLAG_PICK

    @property
    def is_reject(self) -> bool:
        return self.entry.flag == FLAG_REJECT

    @property
    def label_color(self) -> str | None:
        """Color label name, or None when unlabeled."""
        return None if self.entry.color_label == LABEL_NONE else self.entry.color_label

    @property
    def exposure_text(self) -> str:
        """Compact "1/3200 f/4.5 ISO 800" summary of available EXIF values."""
        exif = self.entry.exif
        parts = []
        if exif.shutter_speed:
            parts.append(exif.shutter_speed)
        if exif.aperture is not None:
            parts.append(f"f/{exif.aperture:g}")
        if exif.iso is not None:
            parts.append(f"ISO {exif.iso}")
        if exif.focal_length is not None:
            parts.append(f"{exif.focal_length:g}mm")
        return " ".join(parts)
