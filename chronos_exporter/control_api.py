"""HTTP surface for telemetry and runtime management using FastAPI."""
from typing import Optional
from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse, Response
from prometheus_client import CollectorRegistry, CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel
import logging
import time

from chronos_exporter.exporter import ChronosExporter

logger = logging.getLogger(__name__)

LANDING_PAGE = """<html>
<head><title>Chronos Exporter</title></head>
<body>
<h1>Chronos Exporter</h1>
<p><a href='{telemetry_path}'>Metrics</a></p>
</body>
</html>"""


class LogLevelRequest(BaseModel):
    """Request to change log level."""
    level: str


class ControlAPI:
    """FastAPI app serving the exporter's registry."""

    def __init__(
        self,
        exporter: ChronosExporter,
        telemetry_path: str = "/metrics",
        registry: Optional[CollectorRegistry] = None,
    ):
        """
        Initialize control API.

        Args:
            exporter: Collector to expose
            telemetry_path: Path serving the Prometheus exposition
            registry: Registry to register the exporter in (a private one by default)
        """
        self.exporter = exporter
        self.telemetry_path = telemetry_path
        # Use a custom registry to avoid exporting default Python/process metrics
        self.registry = registry if registry is not None else CollectorRegistry()
        self.registry.register(exporter)
        self.start_time = time.time()

        self.app = FastAPI(title="Chronos Exporter")
        self._setup_routes()

    def _setup_routes(self):
        """Setup API routes."""

        @self.app.get("/", response_class=HTMLResponse)
        async def index():
            return LANDING_PAGE.format(telemetry_path=self.telemetry_path)

        # Sync handler: collection scrapes Chronos and must not block the event loop
        @self.app.get(self.telemetry_path)
        def metrics():
            """Scrape Chronos and render the registry."""
            return Response(content=generate_latest(self.registry), media_type=CONTENT_TYPE_LATEST)

        @self.app.get("/healthz")
        async def healthz():
            """Health check endpoint."""
            return {"status": "healthy", "timestamp": time.time()}

        @self.app.get("/status")
        async def status():
            """Registry size and outcome of the last scrape."""
            registry = self.exporter.registry
            report = self.exporter.last_report
            return {
                "uptime_seconds": time.time() - self.start_time,
                "counters": len(registry.counters),
                "gauges": len(registry.gauges),
                "last_scrape_time": self.exporter.last_scrape_time,
                "last_error": self.exporter.last_error,
                "last_report": {
                    "updated": report.updated,
                    "created": len(report.created),
                    "errors": [str(e) for e in report.errors],
                } if report else None,
            }

        @self.app.post("/control/loglevel")
        async def set_log_level(request: LogLevelRequest):
            """Change log level at runtime."""
            level = request.level.upper()

            if level not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
                raise HTTPException(
                    status_code=400,
                    detail=f"Invalid log level: {level}"
                )

            logging.getLogger().setLevel(getattr(logging, level))
            logger.info(f"Log level changed to: {level}")

            return {
                "status": "log_level_changed",
                "level": level,
                "timestamp": time.time()
            }

    def run(self, host: str = "0.0.0.0", port: int = 9044):
        """Run the API server."""
        import uvicorn
        uvicorn.run(self.app, host=host, port=port, log_level="info")
