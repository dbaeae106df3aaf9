"""Dependencias compartidas por los endpoints."""

from fastapi import HTTPException, Request

from ..runtime import BridgeRuntime


def get_runtime(request: Request) -> BridgeRuntime:
    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return runtime
