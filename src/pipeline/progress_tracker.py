"""Generation progress tracking with callback-based listener notification.

Tracks the current stage and progress percentage for each generation run
and broadcasts updates to registered listener callbacks.  Listeners are
keyed by run ID so concurrent runs never see each other's updates.

# ─── HOW PROGRESS TRACKING WORKS ──────────────────────────────────────
#
# Observer pattern:
#
#   Pipeline ──update()──→ ProgressTracker ──callback()──→ WebSocket handler
#                                                        ──→ CLI printer
#
#   1. The orchestrator calls tracker.update(run_id, stage, progress, msg)
#      at every stage change and once per song ("song 3 of 17").
#   2. ProgressTracker stores the snapshot and calls every listener.
#   3. Listener errors are logged and skipped; the run continues.
#   4. Sync and async callbacks are both accepted.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from src.models.playlist import ArtistStage
from src.utils.logging import get_logger


@dataclass
class _RunStatus:
    """Internal snapshot of a single run's progress."""

    stage: ArtistStage = ArtistStage.IDLE
    progress: float = 0.0
    message: str = ""
    artist: str | None = None


class ProgressTracker:
    """Tracks and broadcasts generation progress via callbacks.

    Each run is identified by a string ``run_id``.  Consumers register
    callbacks accepting ``(run_id, stage, progress, message)``.
    """

    def __init__(self) -> None:
        self._statuses: dict[str, _RunStatus] = {}
        self._listeners: dict[str, list[Callable]] = {}
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def update(
        self,
        run_id: str,
        stage: ArtistStage,
        progress: float,
        message: str,
        artist: str | None = None,
    ) -> None:
        """Record a progress update and notify all registered listeners.

        Parameters
        ----------
        run_id:
            The generation run to update.
        stage:
            The stage of the artist currently being processed.
        progress:
            Completion percentage of the whole run (0.0 - 100.0).
        message:
            Human-readable status message.
        artist:
            The artist being processed, if any.
        """
        progress = max(0.0, min(100.0, progress))
        self._statuses[run_id] = _RunStatus(
            stage=stage, progress=progress, message=message, artist=artist
        )

        self._logger.debug(
            "progress_update",
            run_id=run_id,
            stage=stage.value,
            progress=round(progress, 1),
            message=message,
        )

        await self._notify_listeners(run_id, stage, progress, message)

    def register_listener(self, run_id: str, callback: Callable) -> None:
        listeners = self._listeners.setdefault(run_id, [])
        if callback not in listeners:
            listeners.append(callback)
            self._logger.debug(
                "listener_registered", run_id=run_id, total_listeners=len(listeners)
            )

    def unregister_listener(self, run_id: str, callback: Callable) -> None:
        listeners = self._listeners.get(run_id, [])
        if callback in listeners:
            listeners.remove(callback)
            self._logger.debug(
                "listener_unregistered", run_id=run_id, remaining_listeners=len(listeners)
            )
        if not listeners:
            self._listeners.pop(run_id, None)

    def get_status(self, run_id: str) -> dict:
        """Return the current stage, progress, message and artist for a run.

        Unknown runs report zeroed defaults.
        """
        status = self._statuses.get(run_id) or _RunStatus()
        return {
            "stage": status.stage.value,
            "progress": status.progress,
            "message": status.message,
            "artist": status.artist,
        }

    def forget(self, run_id: str) -> None:
        """Drop the stored snapshot of a finished run."""
        self._statuses.pop(run_id, None)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _notify_listeners(
        self,
        run_id: str,
        stage: ArtistStage,
        progress: float,
        message: str,
    ) -> None:
        """Invoke all listeners for a run; a failing listener is logged and skipped."""
        for callback in list(self._listeners.get(run_id, [])):
            try:
                result = callback(run_id, stage, progress, message)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                self._logger.warning(
                    "listener_callback_error",
                    run_id=run_id,
                    error=str(exc),
                    callback=getattr(callback, "__name__", repr(callback)),
                )
