"""ViewModel orchestrating one culling session.

Owns a `SessionState` and an `EventQueue`, wires the core services together
and exposes the operations a UI host binds to keys and widgets. Every public
operation runs to completion synchronously; follow-up work (selection
re-checks, loupe auto-advance, asset results) is queued and applied when the
host calls `flush()` after the current input has been handled.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from loguru import logger

from app.viewmodels.image_vm import ImageVM
from core.events import EventQueue
from core.models import (
    FLAG_NONE,
    FLAG_PICK,
    FLAG_REJECT,
    OVERLAY_MODES,
    FilterState,
    SessionState,
)
from core.services.asset_service import loupe_url, merge_loupe_urls, merge_thumbnails
from core.services.burst_service import burst_members
from core.services.filter_service import filtered_ids, is_review_mode, session_stats
from core.services.grid_service import GridRow, GridService
from core.services.hydration_service import apply_hydration, hydrate
from core.services.interfaces import (
    IImportService,
    ImportFailed,
    IRenderService,
    SessionStats,
    UrlConverter,
)
from core.services.loupe_service import LoupeService
from core.services.mutation_service import MutationService
from core.services.selection_service import SelectionService
from infrastructure.asset_tasks import KIND_FULL_RES, AssetTaskRunner
from infrastructure.settings import JsonSettings

FLAG_KEYS = {"p": FLAG_PICK, "x": FLAG_REJECT, "u": FLAG_NONE}
LABEL_KEYS = {"6": "red", "7": "yellow", "8": "green", "9": "blue"}
ARROW_KEYS = {
    "left": "left",
    "arrowleft": "left",
    "right": "right",
    "arrowright": "right",
    "up": "up",
    "arrowup": "up",
    "down": "down",
    "arrowdown": "down",
}


def _as_frozenset(value: Any) -> frozenset[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        return frozenset({value})
    return frozenset(value)


class SessionVM:
    """Main session view-model.

    Mediates between the import/render collaborators and the in-memory
    session engine.
    """

    def __init__(
        self,
        import_service: IImportService,
        render_service: IRenderService | None = None,
        *,
        to_url: UrlConverter | None = None,
        settings: JsonSettings | None = None,
        pool: Any | None = None,
    ) -> None:
        """Create a SessionVM.

        Args:
            import_service: Object with `load(folder)` returning the payload.
            render_service: Object with `request_thumbnails(paths)` and
                `request_full_res(paths)`; None disables asset fetching.
            to_url: Converts renderer cache paths to displayable URLs. When
                absent, assets are not displayed but everything else works.
            settings: Configuration (defaults when omitted).
            pool: Thread pool used for render requests (Qt global pool when
                omitted).
        """
        self._settings = settings or JsonSettings.defaults()
        self._import_service = import_service
        self._to_url = to_url
        self.state = SessionState(overlay_mode=self._settings.get("overlay.default", "minimal"))
        self.events = EventQueue()

        self._selection = SelectionService()
        self._mutations = MutationService()
        self._grid = GridService(
            cell_width=int(self._settings.get("grid.cell_width", 216) or 216),
            min_columns=int(self._settings.get("grid.min_columns", 2) or 2),
        )
        self._loupe = LoupeService(self._selection)
        self._assets = AssetTaskRunner(
            service=render_service, queue=self.events, on_result=self._on_render_result, pool=pool
        )
        self._prefetch = bool(self._settings.get("loupe.prefetch", True))
        self.columns = self._grid.columns_for_width(0)

    # ---- import -------------------------------------------------------

    def import_folder(self, folder: str) -> bool:
        """Import `folder`, replacing the whole session on success.

        On failure the previous session is left untouched and a single
        message is stored in `state.import_error`.
        """
        logger.info("Importing {}", folder)
        self.state.is_importing = True
        try:
            payload = self._import_service.load(folder)
            hydrated = hydrate(payload)
        except (ImportFailed, OSError, ValueError) as ex:
            logger.error("Import of {} failed: {}", folder, ex)
            self.state.import_error = str(ex) or ex.__class__.__name__
            return False
        finally:
            self.state.is_importing = False

        # Queued re-checks belong to the session being replaced
        self.events.clear()
        apply_hydration(self.state, hydrated, folder)
        logger.info(
            "Imported {} images | bursts={} cameras={}",
            len(hydrated.image_map),
            len(hydrated.bursts),
            len(hydrated.cameras),
        )
        self._assets.request_thumbnails([e.path for e in self.state.image_map.values()])
        return True

    def flush(self) -> int:
        """Run deferred work queued by earlier operations."""
        return self.events.flush()

    def _on_render_result(self, kind: str, result: Mapping[str, str]) -> None:
        if kind == KIND_FULL_RES:
            merge_loupe_urls(self.state, result, self._to_url)
        else:
            merge_thumbnails(self.state, result, self._to_url)

    # ---- single-entry mutations ----------------------------------------

    def set_rating(self, image_id: str, rating: int) -> None:
        if self._mutations.set_rating(self.state, image_id, rating):
            self._after_mutation()

    def set_flag(self, image_id: str, flag: str) -> None:
        if self._mutations.set_flag(self.state, image_id, flag):
            self._after_mutation()

    def set_color_label(self, image_id: str, label: str) -> None:
        if self._mutations.set_color_label(self.state, image_id, label):
            self._after_mutation()

    def _after_mutation(self) -> None:
        """Queue the re-check matching where the edit came from."""
        if not is_review_mode(self.state.filters):
            return
        loupe = self.state.loupe
        if loupe.active:
            if loupe.burst_id is None:
                self.events.schedule(self._recheck_loupe)
        else:
            self.events.schedule(self._recheck_grid)

    def _recheck_grid(self) -> None:
        self._grid.recheck_selection(self.state)

    def _recheck_loupe(self) -> None:
        self._loupe.recheck(self.state)

    # ---- selection-wide actions (grid) ---------------------------------

    def _selected_in_order(self) -> list[str]:
        return [i for i in self.state.image_order if i in self.state.selected_ids]

    def flag_selection(self, flag: str) -> None:
        """Flag every selected id, fanning out across collapsed bursts."""
        if self._mutations.flag_many(self.state, self._selected_in_order(), flag):
            self._after_mutation()

    def rate_selection(self, rating: int) -> None:
        """Rate every selected id individually (never fanned out)."""
        changed = False
        for image_id in self._selected_in_order():
            changed = self._mutations.set_rating(self.state, image_id, rating) or changed
        if changed:
            self._after_mutation()

    def label_selection(self, label: str) -> None:
        """Label every selected id individually (never fanned out)."""
        changed = False
        for image_id in self._selected_in_order():
            changed = self._mutations.set_color_label(self.state, image_id, label) or changed
        if changed:
            self._after_mutation()

    # ---- selection ------------------------------------------------------

    def select(self, image_id: str) -> None:
        self._selection.select(self.state, image_id)

    def toggle_selection(self, image_id: str) -> None:
        self._selection.toggle(self.state, image_id)

    def select_range(self, start_id: str, end_id: str) -> None:
        self._selection.select_range(self.state, start_id, end_id)

    def clear_selection(self) -> None:
        self._selection.clear(self.state)

    # ---- filters ----------------------------------------------------------

    def set_filter(self, key: str, value: Any) -> None:
        """Update one filter field.

        Raises:
            KeyError: `key` is not a filter field.
        """
        current = self.state.filters
        if key == "min_rating":
            filters = replace(current, min_rating=max(0, int(value or 0)))
        elif key == "flags":
            filters = replace(current, flags=_as_frozenset(value))
        elif key == "color_labels":
            filters = replace(current, color_labels=_as_frozenset(value))
        elif key == "show_bursts_only":
            filters = replace(current, show_bursts_only=bool(value))
        elif key == "camera_serial":
            filters = replace(current, camera_serial=value or None)
        else:
            raise KeyError(f"Unknown filter: {key}")
        self.state.filters = filters
        if not self.state.loupe.active:
            self.events.schedule(self._recheck_grid)

    def clear_filters(self) -> None:
        self.state.filters = FilterState()

    def filtered_ids(self) -> list[str]:
        return filtered_ids(self.state)

    @property
    def review_mode(self) -> bool:
        return is_review_mode(self.state.filters)

    # ---- grid -------------------------------------------------------------

    def set_viewport_width(self, width: int) -> int:
        """Recompute the column count for a grid `width` pixels wide."""
        self.columns = self._grid.columns_for_width(width)
        return self.columns

    def navigable_units(self) -> list[str]:
        return self._grid.navigable_units(self.state)

    def grid_rows(self) -> list[GridRow]:
        return self._grid.rows(self.state, self.columns)

    def move_selection(self, direction: str) -> str | None:
        """Arrow-key move in the grid; the target becomes the sole selection."""
        current = self._selection.focused(self.state)
        target = self._grid.move(self.state, current, direction, self.columns)
        if target is not None:
            self._selection.select(self.state, target)
        return target

    def toggle_burst_expanded(self, burst_id: str) -> None:
        if burst_id not in self.state.bursts:
            return
        expanded = set(self.state.expanded_bursts)
        expanded.symmetric_difference_update({burst_id})
        self.state.expanded_bursts = expanded

    def collapse_all_bursts(self) -> None:
        self.state.expanded_bursts = set()

    def cycle_overlay_mode(self) -> str:
        """Advance none -> minimal -> standard -> full -> none."""
        try:
            index = OVERLAY_MODES.index(self.state.overlay_mode)
        except ValueError:
            index = -1
        self.state.overlay_mode = OVERLAY_MODES[(index + 1) % len(OVERLAY_MODES)]
        return self.state.overlay_mode

    def image_vm(self, image_id: str) -> ImageVM | None:
        """Presentation wrapper for one grid cell; None for unknown ids."""
        entry = self.state.image_map.get(image_id)
        if entry is None:
            return None
        return ImageVM(entry, selected=image_id in self.state.selected_ids)

    def stats(self) -> SessionStats:
        return session_stats(self.state)

    # ---- loupe ------------------------------------------------------------

    def open_loupe(self, image_id: str) -> bool:
        if not self._loupe.open(self.state, image_id):
            return False
        if self._prefetch:
            loupe = self.state.loupe
            if loupe.burst_id is not None:
                paths = [e.path for e in burst_members(self.state, loupe.burst_id)]
            else:
                paths = [self.state.image_map[loupe.image_id].path]
            self._assets.request_full_res(paths)
        return True

    def close_loupe(self) -> None:
        self._loupe.close(self.state)

    def loupe_next(self) -> str | None:
        return self._loupe.next(self.state)

    def loupe_prev(self) -> str | None:
        return self._loupe.prev(self.state)

    def loupe_navigable_ids(self) -> list[str]:
        return self._loupe.navigable_ids(self.state)

    def loupe_url(self) -> str | None:
        """URL for the frame on screen in the loupe, best tier available."""
        return loupe_url(self.state, self.state.loupe.image_id)

    # ---- keyboard ---------------------------------------------------------

    def handle_key(self, key: str) -> bool:
        """Dispatch a key press. Returns True if the key was handled.

        In the loupe, edits apply to the frame on screen only. In the grid,
        edits apply to the whole selection and flags fan out across bursts.
        """
        key = key.lower()
        if key == "j":
            self.cycle_overlay_mode()
            return True
        if self.state.loupe.active:
            return self._handle_loupe_key(key)
        return self._handle_grid_key(key)

    def _handle_loupe_key(self, key: str) -> bool:
        image_id = self.state.loupe.image_id
        direction = ARROW_KEYS.get(key)
        if key == "escape":
            self.close_loupe()
        elif direction == "right":
            self.loupe_next()
        elif direction == "left":
            self.loupe_prev()
        elif image_id is None:
            return False
        elif key in FLAG_KEYS:
            self.set_flag(image_id, FLAG_KEYS[key])
        elif key in LABEL_KEYS:
            self.set_color_label(image_id, LABEL_KEYS[key])
        elif key.isdigit() and int(key) <= 5:
            self.set_rating(image_id, int(key))
        else:
            return False
        return True

    def _handle_grid_key(self, key: str) -> bool:
        if key in ARROW_KEYS:
            self.move_selection(ARROW_KEYS[key])
            return True
        if key == "escape":
            self.collapse_all_bursts()
            return True
        if not self.state.selected_ids:
            return False
        if key == "enter":
            focused = self._selection.focused(self.state)
            return focused is not None and self.open_loupe(focused)
        if key in FLAG_KEYS:
            self.flag_selection(FLAG_KEYS[key])
        elif key in LABEL_KEYS:
            self.label_selection(LABEL_KEYS[key])
        elif key.isdigit() and int(key) <= 5:
            self.rate_selection(int(key))
        else:
            return False
        return True
