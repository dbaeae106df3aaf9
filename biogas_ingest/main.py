"""App FastAPI del bridge de biogás.

Levanta el runtime (MQTT + worker + heartbeat) en el lifespan y expone los
endpoints de salud y calibración de pH.

    uvicorn biogas_ingest.main:app --host 0.0.0.0 --port 3000
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from common.config import get_settings

from .calibration import CalibrationError
from .endpoints import calibration_router, health_router
from .runtime import BridgeRuntime, build_runtime

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


async def _calibration_error_handler(request: Request, exc: CalibrationError):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.error,
            "message": exc.message,
            "timestamp": _now_iso(),
        },
    )


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    # Body ausente o no-JSON: mismo envelope que el resto de errores de entrada
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": "Invalid input",
            "message": "Request body must be a JSON object with referencePh and currentPh",
            "timestamp": _now_iso(),
        },
    )


async def _http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return JSONResponse(
            status_code=404,
            content={"error": "Endpoint not found", "timestamp": _now_iso()},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail, "timestamp": _now_iso()},
        headers=getattr(exc, "headers", None),
    )


async def _unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("[HTTP] Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "timestamp": _now_iso()},
    )


def create_app(runtime: Optional[BridgeRuntime] = None) -> FastAPI:
    """Crea la app.

    Sin runtime, el lifespan construye uno desde el entorno y lo arranca/detiene.
    Un runtime inyectado (tests) se usa tal cual y no se arranca.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = runtime is None
        active = build_runtime(get_settings()) if owned else runtime
        app.state.runtime = active
        if owned:
            active.start()
        try:
            yield
        finally:
            if owned:
                active.stop()

    app = FastAPI(title="Biogas MQTT Receiver", version="1.0.0", lifespan=lifespan)
    if runtime is not None:
        app.state.runtime = runtime

    app.add_exception_handler(CalibrationError, _calibration_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    app.include_router(health_router)
    app.include_router(calibration_router)
    return app


app = create_app()
