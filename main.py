from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

from app.viewmodels.burst_vm import BurstVM
from app.viewmodels.session_vm import SessionVM
from core.services.interfaces import IImportService
from infrastructure.logging import init_logging
from infrastructure.payload_repository import JsonPayloadRepository
from infrastructure.settings import JsonSettings


BASE_DIR = Path(__file__).parent


def _load_settings() -> JsonSettings:
    path = BASE_DIR / "settings.json"
    if path.exists():
        return JsonSettings(path)
    return JsonSettings.defaults()


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    settings = _load_settings()
    log_dir = init_logging(
        settings.get("logging.dir"),
        level=settings.get("logging.level", "INFO"),
        console=bool(settings.get("logging.console", False)),
    )
    logger.info("Logging to {}", log_dir)

    if not argv:
        print("usage: burst-culler <folder | payload.json>", file=sys.stderr)
        return 2

    repo: IImportService = JsonPayloadRepository(settings.get("import.payload_filename", "import-payload.json"))
    vm = SessionVM(repo, settings=settings)
    if not vm.import_folder(argv[0]):
        print(f"Import failed: {vm.state.import_error}", file=sys.stderr)
        return 1
    vm.flush()

    stats = vm.stats()
    print(f"{stats.total} images | {stats.bursts} bursts | {len(vm.state.cameras)} cameras")
    for camera in vm.state.cameras:
        print(f"  {camera.label}: {camera.image_count} images, {camera.burst_count} bursts")
    for burst_id in vm.state.bursts:
        card = BurstVM.from_session(vm.state, burst_id)
        if card is None or card.cover is None:
            continue
        cover = vm.image_vm(card.cover.id)
        print(
            f"  burst {burst_id}: {card.burst.frame_count} frames {card.fps_label} "
            f"cover={card.cover.filename} {cover.exposure_text}"
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
