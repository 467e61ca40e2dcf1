"""
Health service entry point.

Exposes the readiness of the stack's dependencies over HTTP, using the
same probes as the startup gate.
"""
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from stackgate import __version__
from stackgate.core.probes.probe_protocol import ReadinessProbe
from stackgate.utils.error_handler import ErrorHandler

logger = logging.getLogger(__name__)


def create_app(probes: Optional[List[ReadinessProbe]] = None) -> FastAPI:
    """
    Create the health API.

    Args:
        probes: Probes to report on; built from configuration at startup
            when None
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.probes is None:
            from stackgate.config import get_config
            from stackgate.services.startup_service import build_probes

            config = get_config()
            app.state.probes = build_probes(config, include_broker=True)
            logger.info("✓ Configuration loaded")

        logger.info(f"Reporting on: {', '.join(p.name for p in app.state.probes)}")
        yield

        for probe in app.state.probes:
            close = getattr(probe, "close", None)
            if close:
                close()
        logger.info("Health service shutting down")

    app = FastAPI(
        title="stackgate",
        description="Dependency readiness for the realtime stack",
        version=__version__,
        lifespan=lifespan
    )
    app.state.probes = probes

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "service": "stackgate",
            "version": __version__,
            "status": "running"
        }

    @app.get("/health")
    async def health_check(request: Request):
        """
        Health check endpoint.

        Returns:
            JSON with per-dependency readiness; 503 if any is not ready
        """
        error_handler = ErrorHandler()
        dependencies = {}

        for probe in request.app.state.probes or []:
            try:
                outcome = await run_in_threadpool(probe.check)
                dependencies[probe.name] = {"ready": outcome.ready, "detail": outcome.detail}
            except Exception as e:
                error_handler.handle_runtime_error(f"{probe.name} probe", e)
                dependencies[probe.name] = {"ready": False, "detail": str(e)}

        is_healthy = all(dep["ready"] for dep in dependencies.values())

        response = {
            "status": "healthy" if is_healthy else "unhealthy",
            "dependencies": dependencies,
        }
        status_code = 200 if is_healthy else 503
        return JSONResponse(content=response, status_code=status_code)

    return app


app = create_app()
