"""
FastAPI WebSocket dashboard mirroring a provisioning session.

Runs as a background task next to a flow, auto-stops once the session is
terminal.
"""

import asyncio
import json
import logging
import webbrowser
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import HTMLResponse

from bloghouse.progress.session import ProvisioningSession, SessionTracker
from bloghouse.progress.terminal import render_session

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"


class ProgressServer:
    """
    Manages the FastAPI server and WebSocket connections.

    Usage:
        server = ProgressServer(tracker, port=8765)
        await server.start()  # Starts in background, opens browser
        # ... session updates broadcast automatically ...
        await server.stop()   # Graceful shutdown
    """

    def __init__(
        self,
        tracker: SessionTracker,
        port: int = 8765,
        host: str = "127.0.0.1",
        auto_open_browser: bool = True,
        shutdown_delay: float = 5.0,  # Seconds to keep open after the session ends
    ):
        self.tracker = tracker
        self.port = port
        self.host = host
        self.auto_open_browser = auto_open_browser
        self.shutdown_delay = shutdown_delay

        self._connections: set[WebSocket] = set()
        self.app = self._create_app()
        self._server = None
        self._serve_task: Optional[asyncio.Task] = None
        self._shutdown_event = asyncio.Event()
        self._completion_handled = False

    def _snapshot(self) -> dict:
        state = self.tracker.state
        return {
            **state.model_dump(mode="json"),
            "rendered": render_session(state, self.tracker.locale),
        }

    def _create_app(self) -> FastAPI:
        """Create the FastAPI application."""
        app = FastAPI(title="bloghouse provisioning")

        @app.get("/", response_class=HTMLResponse)
        async def dashboard():
            """Serve the dashboard page."""
            return (STATIC_DIR / "dashboard.html").read_text(encoding="utf-8")

        @app.get("/state")
        async def state():
            """Current session snapshot."""
            return self._snapshot()

        @app.websocket("/ws")
        async def websocket_endpoint(websocket: WebSocket):
            await websocket.accept()
            self._connections.add(websocket)

            try:
                await websocket.send_json({"type": "state", "data": self._snapshot()})

                # Keep connection alive, answer state requests
                while True:
                    try:
                        data = await asyncio.wait_for(
                            websocket.receive_text(),
                            timeout=30.0
                        )
                    except asyncio.TimeoutError:
                        await websocket.send_json({"type": "ping"})
                        continue

                    try:
                        msg = json.loads(data)
                    except json.JSONDecodeError:
                        logger.debug(f"Ignoring non-JSON dashboard message: {data!r}")
                        continue
                    if isinstance(msg, dict) and msg.get("type") == "get_state":
                        await websocket.send_json({"type": "state", "data": self._snapshot()})

            except WebSocketDisconnect:
                logger.debug("Dashboard client disconnected")
            finally:
                self._connections.discard(websocket)

        return app

    async def broadcast(self, state: ProvisioningSession):
        """Broadcast a session update to all connected clients."""
        if self._connections:
            message = {"type": "update", "data": self._snapshot()}

            disconnected = set()
            for ws in self._connections:
                try:
                    await ws.send_json(message)
                except (RuntimeError, WebSocketDisconnect) as e:
                    logger.debug(f"Dropping dashboard client: {e}")
                    disconnected.add(ws)

            self._connections -= disconnected

        if state.is_terminal and not self._completion_handled:
            self._completion_handled = True
            asyncio.create_task(self._handle_completion(state))

    async def _handle_completion(self, state: ProvisioningSession):
        """Tell clients the session ended, then signal shutdown after a delay."""
        message = {
            "type": "complete",
            "data": {
                "session_id": state.session_id,
                "status": state.status.value,
                "error": state.error_message,
            }
        }
        for ws in list(self._connections):
            try:
                await ws.send_json(message)
            except (RuntimeError, WebSocketDisconnect) as e:
                logger.debug(f"Could not send completion to dashboard client: {e}")

        await asyncio.sleep(self.shutdown_delay)
        self._shutdown_event.set()

    async def start(self):
        """Start the server and optionally open the browser."""
        import uvicorn

        self.tracker.on_update(self.broadcast)

        config = uvicorn.Config(
            self.app,
            host=self.host,
            port=self.port,
            log_level="warning",
        )
        self._server = uvicorn.Server(config)
        self._serve_task = asyncio.create_task(self._server.serve())

        # Brief delay for server to start
        await asyncio.sleep(0.5)

        url = f"http://{self.host}:{self.port}"
        logger.info(f"Provisioning dashboard at {url}")
        if self.auto_open_browser:
            webbrowser.open(url)

    async def stop(self):
        """Stop the server gracefully."""
        if self._server:
            self._server.should_exit = True

        if self._serve_task:
            try:
                await asyncio.wait_for(self._serve_task, timeout=2.0)
            except asyncio.TimeoutError:
                self._serve_task.cancel()
                try:
                    await self._serve_task
                except asyncio.CancelledError:
                    pass

    async def wait_for_completion(self, timeout: Optional[float] = None):
        """Wait until the session ended and the shutdown delay elapsed."""
        await asyncio.wait_for(self._shutdown_event.wait(), timeout=timeout)


@asynccontextmanager
async def progress_server(
    tracker: SessionTracker,
    port: int = 8765,
    host: str = "127.0.0.1",
    auto_open_browser: bool = True,
    shutdown_delay: float = 5.0,
):
    """
    Context manager for running the dashboard.

    Usage:
        tracker = SessionTracker(...)
        async with progress_server(tracker) as server:
            # Run the flow, session updates broadcast automatically
            ...
        # Server auto-stops when context exits
    """
    server = ProgressServer(
        tracker,
        port=port,
        host=host,
        auto_open_browser=auto_open_browser,
        shutdown_delay=shutdown_delay,
    )
    await server.start()
    try:
        yield server
    finally:
        await server.stop()
