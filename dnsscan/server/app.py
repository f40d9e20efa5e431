"""
FastAPI application for dnsscan.

Serves the provider catalog and the last saved scan, and streams scan
progress events to clients over a WebSocket.
"""

import asyncio
import logging
from typing import Callable, Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
import uvicorn

from .. import __version__
from ..config import DEFAULT_INTENSITY, INTENSITY_PRESETS, ScanConfig
from ..models import BenchmarkProgress
from ..providers import PROVIDERS
from ..scanner import CancellationToken, ScanScheduler
from ..store import JSONResultStore, ResultStore


logger = logging.getLogger(__name__)

SchedulerFactory = Callable[[ScanConfig], ScanScheduler]


class ProgressForwarder:
    """
    Progress callback that sends events to one WebSocket client.

    Once a send fails the client is treated as gone: the scan is
    cancelled and later events are dropped.
    """

    def __init__(self, websocket: WebSocket, token: CancellationToken):
        self.websocket = websocket
        self.token = token
        self.closed = False

    async def __call__(self, event: BenchmarkProgress) -> None:
        if self.closed:
            return
        try:
            await self.websocket.send_json({"type": "progress", **event.to_dict()})
        except (WebSocketDisconnect, RuntimeError) as e:
            self.closed = True
            self.token.cancel()
            logger.debug("Client went away during scan, dropping progress: %r", e)


def create_app(
    scheduler_factory: Optional[SchedulerFactory] = None,
    store: Optional[ResultStore] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        scheduler_factory: Builds the scheduler for each scan request
        store: Where completed scans are saved and read back
    """
    store = store if store is not None else JSONResultStore()

    if scheduler_factory is None:
        def scheduler_factory(config: ScanConfig) -> ScanScheduler:
            return ScanScheduler(config=config, store=store)

    app = FastAPI(
        title="dnsscan",
        description="DNS provider latency and stability benchmarking",
        version=__version__,
    )

    @app.get("/api/providers")
    async def get_providers():
        """Get the provider catalog."""
        return {"providers": [p.to_dict() for p in PROVIDERS]}

    @app.get("/api/config")
    async def get_config():
        """Get default configuration options."""
        defaults = ScanConfig()
        return {
            "intensities": INTENSITY_PRESETS,
            "defaults": {
                "intensity": DEFAULT_INTENSITY,
                "tests": defaults.tests_per_method,
                "concurrency": defaults.concurrency,
            },
        }

    @app.get("/api/results/last")
    async def get_last_results():
        """Get the last saved scan."""
        stored = store.load_last()
        if stored is None:
            raise HTTPException(status_code=404, detail="No results available")
        return stored.to_dict()

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """WebSocket endpoint for running scans with real-time progress."""
        await websocket.accept()

        scan_task: Optional[asyncio.Task] = None
        token: Optional[CancellationToken] = None

        try:
            while True:
                data = await websocket.receive_json()
                if not isinstance(data, dict):
                    await websocket.send_json({
                        "type": "error",
                        "message": "Expected a JSON object",
                    })
                    continue
                action = data.get("action")

                if action == "start_scan":
                    if scan_task is not None and not scan_task.done():
                        await websocket.send_json({
                            "type": "error",
                            "message": "A scan is already running",
                        })
                        continue
                    token = CancellationToken()
                    scan_task = asyncio.create_task(run_scan(websocket, data, token))
                elif action == "cancel":
                    if token is not None:
                        token.cancel()
                elif action == "ping":
                    await websocket.send_json({"type": "pong"})
                else:
                    await websocket.send_json({
                        "type": "error",
                        "message": f"Unknown action: {action}",
                    })

        except WebSocketDisconnect:
            logger.debug("WebSocket client disconnected")
            if token is not None:
                token.cancel()
        finally:
            if scan_task is not None:
                await asyncio.gather(scan_task, return_exceptions=True)

    async def run_scan(websocket: WebSocket, request: dict, token: CancellationToken):
        """Run a scan and send progress updates via WebSocket."""
        try:
            overrides = {}
            if request.get("tests") is not None:
                overrides["tests_per_method"] = int(request["tests"])
            config = ScanConfig.from_intensity(
                request.get("intensity", DEFAULT_INTENSITY),
                **overrides,
            )
        except (TypeError, ValueError, AttributeError) as e:
            await websocket.send_json({"type": "error", "message": f"Invalid scan request: {e}"})
            return

        scheduler = scheduler_factory(config)
        on_progress = ProgressForwarder(websocket, token)

        try:
            await websocket.send_json({
                "type": "started",
                "providers": [p.name for p in scheduler.providers],
                "testsPerMethod": config.tests_per_method,
            })

            report = await scheduler.scan(
                progress_callback=on_progress,
                cancel_token=token,
            )
            if on_progress.closed:
                return

            best = report.best
            await websocket.send_json({
                "type": "complete",
                "state": report.state.value,
                "duration": round(report.duration_seconds, 1),
                "best": best.to_dict() if best else None,
                "results": [r.to_dict() for r in report.results],
            })

        except Exception as e:
            logger.exception("Scan request failed")
            try:
                await websocket.send_json({"type": "error", "message": str(e)})
            except (RuntimeError, WebSocketDisconnect):
                logger.debug("Could not report scan failure; client is gone")

    return app


def run_server(host: str = "127.0.0.1", port: int = 5000):
    """Run the API server."""
    app = create_app()
    uvicorn.run(app, host=host, port=port, log_level="warning")
