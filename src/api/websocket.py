"""WebSocket endpoint for real-time generation progress.

Connects a client to one generation run through the ``ProgressTracker``
listener mechanism.  Updates are pushed as JSON::

    {"run_id": "abc", "stage": "RESOLVING_TRACKS", "progress": 42.5,
     "message": "Matching Metallica: song 3 of 17"}

# ─── HOW WEBSOCKET PROGRESS WORKS ─────────────────────────────────────
#
#   Client                               Backend (this file)
#   ──────                               ──────────────────
#   connect /ws/progress/{run_id} ───→   accept(), register listener
#                                 ←───   current snapshot
#   POST /api/v1/playlists/generate {run_id}
#                                 ←───   one message per progress update
#   close                         ───→   unregister listener
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import contextlib

import structlog
from fastapi import WebSocket, WebSocketDisconnect

from src.models.playlist import ArtistStage
from src.pipeline.progress_tracker import ProgressTracker
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


async def websocket_progress(websocket: WebSocket, run_id: str) -> None:
    """Stream generation progress for *run_id* to the client.

    Parameters
    ----------
    websocket:
        The WebSocket connection managed by FastAPI / Starlette.
    run_id:
        The generation run to subscribe to.
    """
    progress_tracker: ProgressTracker = websocket.app.state.progress_tracker

    await websocket.accept()
    _logger.info("websocket_connected", run_id=run_id)

    async def _on_progress(
        rid: str,
        stage: ArtistStage,
        progress: float,
        message: str,
    ) -> None:
        # The socket may close between updates; cleanup happens in finally.
        with contextlib.suppress(WebSocketDisconnect, RuntimeError):
            await websocket.send_json(
                {
                    "run_id": rid,
                    "stage": stage.value,
                    "progress": round(progress, 1),
                    "message": message,
                }
            )

    progress_tracker.register_listener(run_id, _on_progress)

    try:
        status = progress_tracker.get_status(run_id)
        await websocket.send_json({"run_id": run_id, **status})

        # Blocks until the client disconnects.
        while True:
            await websocket.receive_text()

    except WebSocketDisconnect:
        _logger.info("websocket_disconnected", run_id=run_id)

    finally:
        progress_tracker.unregister_listener(run_id, _on_progress)
        _logger.debug("websocket_listener_cleaned_up", run_id=run_id)
