"""
Binding Service - Device-bound equipment synchronization

Responsible for:
- Loading equipment and connection configuration
- Keeping every equipment collection polled for comm faults
- Publishing live state for other processes
- Turning every output off on shutdown
"""

import asyncio
import os
import signal
from datetime import datetime, timezone
from pathlib import Path

from aiohttp import web

from equipsync.common.config import ControllerConfig, load_config_file
from equipsync.common.logging_setup import get_service_logger
from equipsync.common.state import set_live_state, set_service_health

from .control_panel import ControlPanel
from .device_client import DeviceServiceClient
from .live_state import LiveStateStore

logger = get_service_logger("binding")

SERVICE_NAME = "binding"


class BindingService:
    """
    Binding Service

    Wires the device client, live state store and control panel from
    configuration, runs polling, and serves a read-only health server.
    """

    def __init__(
        self,
        config_path: str | None = None,
        config: ControllerConfig | None = None,
        publish_state: bool = True,
    ):
        self.config_path = config_path or self._find_config_path()
        self.config = config
        self.publish_state = publish_state

        self.device_client: DeviceServiceClient | None = None
        self.state_store: LiveStateStore | None = None
        self.panel: ControlPanel | None = None

        self._start_time = datetime.now(timezone.utc)
        self._health_runner: web.AppRunner | None = None
        self._running = False
        self._shutdown_event = asyncio.Event()

    def _find_config_path(self) -> str:
        """Find configuration file"""
        env_path = os.environ.get("EQUIPSYNC_CONFIG")
        if env_path:
            return env_path

        possible_paths = [
            Path("/etc/equipsync/config.yaml"),
            Path("/opt/equipsync/config.yaml"),
            Path.cwd() / "config.yaml",
        ]
        for path in possible_paths:
            if path.exists():
                return str(path)
        return str(possible_paths[0])

    def build(self) -> ControlPanel:
        """Load config (if not injected) and construct the collaborators."""
        if self.config is None:
            self.config = load_config_file(self.config_path)

        settings = self.config.settings
        self.device_client = DeviceServiceClient(
            self.config.connections,
            timeout_s=settings.request_timeout_s,
        )
        self.state_store = LiveStateStore(publish=set_live_state if self.publish_state else None)
        self.panel = ControlPanel(settings, self.device_client, self.state_store)
        return self.panel

    async def start(self, wait: bool = True) -> None:
        """Start the binding service"""
        logger.info("Starting Binding Service")
        self._running = True
        self._set_health("starting", False)

        panel = self.panel or self.build()
        await panel.init_from_config(self.config.equipment)
        panel.start_polling(immediate=True)

        await self._start_health_server()

        self._set_health("running", True, started_at=self._start_time.isoformat())
        logger.info(
            f"Binding Service started ({panel.get_counts()})",
            extra={"counts": panel.get_counts()},
        )

        if wait:
            self._setup_signal_handlers()
            await self._shutdown_event.wait()

    async def stop(self) -> None:
        """Stop the binding service"""
        logger.info("Stopping Binding Service")
        self._running = False

        if self.panel:
            await self.panel.close()

        await self._stop_health_server()
        self._set_health("stopped", False)
        logger.info("Binding Service stopped")

    def request_shutdown(self) -> None:
        """Handle shutdown signal"""
        logger.info("Received shutdown signal")
        self._shutdown_event.set()

    def _setup_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, self.request_shutdown)
            except NotImplementedError:
                signal.signal(sig, lambda s, f: self.request_shutdown())

    def _set_health(self, status: str, healthy: bool, **extra) -> None:
        if not self.publish_state:
            return
        try:
            set_service_health(SERVICE_NAME, {"status": status, "is_healthy": healthy, **extra})
        except OSError as e:
            logger.warning(f"Could not record service health: {e}")

    def build_health_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/health", self._health_handler)
        app.router.add_get("/state", self._state_handler)
        return app

    async def _start_health_server(self) -> None:
        """Start the health check HTTP server"""
        port = self.config.settings.health_port
        if not port:
            return
        self._health_runner = web.AppRunner(self.build_health_app())
        await self._health_runner.setup()
        site = web.TCPSite(self._health_runner, "127.0.0.1", port)
        await site.start()
        logger.info(f"Health server started on port {port}")

    async def _stop_health_server(self) -> None:
        if self._health_runner:
            await self._health_runner.cleanup()
            self._health_runner = None

    async def _health_handler(self, request: web.Request) -> web.Response:
        uptime = (datetime.now(timezone.utc) - self._start_time).total_seconds()
        return web.json_response({
            "status": "healthy" if self._running else "unhealthy",
            "service": SERVICE_NAME,
            "uptime": int(uptime),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "equipment": self.panel.get_stats() if self.panel else {},
        })

    async def _state_handler(self, request: web.Request) -> web.Response:
        return web.json_response(self.state_store.snapshot() if self.state_store else {})

