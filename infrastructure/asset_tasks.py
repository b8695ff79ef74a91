from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from PySide6.QtCore import QRunnable, QThreadPool
from loguru import logger

from core.events import EventQueue

KIND_THUMBNAILS = "thumbnails"
KIND_FULL_RES = "full_res"


class _RenderTask(QRunnable):
    """QRunnable for one background render request.

    The result is never applied from the worker thread: it is posted to the
    session's `EventQueue` and merged when the host flushes.
    """

    def __init__(
        self,
        *,
        kind: str,
        paths: list[str],
        service: Any,
        queue: EventQueue,
        on_result: Callable[[str, Mapping[str, str]], None],
    ) -> None:
        super().__init__()
        self._kind = kind
        self._paths = paths
        self._service = service
        self._queue = queue
        self._on_result = on_result

    def run(self) -> None:  # type: ignore[override]
        try:
            if self._kind == KIND_FULL_RES:
                result = self._service.request_full_res(self._paths)
            else:
                result = self._service.request_thumbnails(self._paths)
        except Exception as ex:  # pylint: disable=broad-exception-caught
            logger.warning("Render task '{}' failed for {} paths: {}", self._kind, len(self._paths), ex)
            result = {}
        if not isinstance(result, Mapping):
            logger.warning("Render task '{}' returned {}; ignoring", self._kind, type(result).__name__)
            result = {}
        self._queue.schedule(self._on_result, self._kind, dict(result))


class AssetTaskRunner:
    """Dispatches render requests to a thread pool.

    Tokens identify requests in logs:
    - Thumbnails: "thumbnails|{count}"
    - Loupe renditions: "full_res|{count}"
    """

    def __init__(
        self,
        *,
        service: Any,
        queue: EventQueue,
        on_result: Callable[[str, Mapping[str, str]], None],
        pool: Any | None = None,
    ) -> None:
        self._service = service
        self._queue = queue
        self._on_result = on_result
        self._pool = pool

    def _start(self, kind: str, paths: list[str]) -> str:
        token = f"{kind}|{len(paths)}"
        if self._service is None or not paths:
            return token
        if self._pool is None:
            self._pool = QThreadPool.globalInstance()
        task = _RenderTask(
            kind=kind,
            paths=list(paths),
            service=self._service,
            queue=self._queue,
            on_result=self._on_result,
        )
        logger.debug("Dispatching render request {}", token)
        self._pool.start(task)
        return token

    def request_thumbnails(self, paths: list[str]) -> str:
        """Request thumbnails for `paths`. Returns the token string."""
        return self._start(KIND_THUMBNAILS, paths)

    def request_full_res(self, paths: list[str]) -> str:
        """Request full-resolution renditions for `paths`. Returns the token string."""
        return self._start(KIND_FULL_RES, paths)
