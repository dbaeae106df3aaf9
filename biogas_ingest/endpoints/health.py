"""Health, status and debug endpoints."""

import os
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from ..mqtt.topics import INBOUND_TOPICS
from ..runtime import BridgeRuntime
from .deps import get_runtime

router = APIRouter(tags=["health"])

SERVICE_NAME = "Biogas MQTT Receiver"

_DEBUG_ENV_KEYS = ("MQTT_BROKER", "DATABASE_URL", "DB_PASSWORD")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/")
def root(runtime: BridgeRuntime = Depends(get_runtime)):
    return {
        "message": f"{SERVICE_NAME} is Running",
        "status": "active",
        "mqtt_status": "connected" if runtime.connection.is_connected else "disconnected",
        "endpoints": {
            "health": "/health",
            "status": "/api/status",
            "debug": "/debug",
            "calibrate": "POST /api/calibrate-ph",
            "calibration_status": "/api/calibration-status",
            "metrics": "/metrics",
        },
    }


@router.get("/health")
def health(runtime: BridgeRuntime = Depends(get_runtime)):
    """Liveness probe: OK while the process is up."""
    return {
        "status": "OK",
        "service": SERVICE_NAME,
        "timestamp": _now_iso(),
        "mqtt_connected": runtime.connection.is_connected,
    }


@router.get("/api/status")
def status(runtime: BridgeRuntime = Depends(get_runtime)):
    return {
        "service": SERVICE_NAME,
        "mqtt": {
            "connected": runtime.connection.is_connected,
            "state": runtime.connection.state.value,
            "topics": list(INBOUND_TOPICS),
        },
        "database": "PostgreSQL",
        "messages": runtime.processor.stats.to_dict(),
        "warmup_active": runtime.state.warmup_active,
        "uptime": runtime.uptime_seconds,
        "timestamp": _now_iso(),
    }


@router.get("/debug")
def debug(runtime: BridgeRuntime = Depends(get_runtime)):
    """Diagnóstico. Solo informa si la configuración existe, nunca su valor."""
    return {
        "service": SERVICE_NAME,
        "environment": {
            key.lower(): "SET" if os.getenv(key) else "NOT_SET" for key in _DEBUG_ENV_KEYS
        },
        "mqtt": {
            **runtime.connection.stats,
            "reconnecting": runtime.connection.is_reconnecting,
        },
        "worker": {
            **runtime.worker.metrics,
            "running": runtime.worker.is_running,
        },
        "database": {"reachable": runtime.storage.ping()},
        "correlation": runtime.state.snapshot(),
        "uptime": runtime.uptime_seconds,
        "timestamp": _now_iso(),
    }


@router.get("/metrics")
def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
