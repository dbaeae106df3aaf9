"""Módulo de endpoints HTTP."""

from .calibration import router as calibration_router
from .health import router as health_router

__all__ = [
    "calibration_router",
    "health_router",
]
