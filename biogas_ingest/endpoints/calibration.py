"""Endpoints de calibración del sensor de pH."""

from fastapi import APIRouter, Depends

from ..runtime import BridgeRuntime
from ..schemas import (
    CalibrationStatusData,
    CalibrationStatusOut,
    ErrorOut,
    PhCalibrationData,
    PhCalibrationIn,
    PhCalibrationOut,
)
from .deps import get_runtime

router = APIRouter(prefix="/api", tags=["calibration"])

_ERRORS = {
    400: {"model": ErrorOut},
    409: {"model": ErrorOut},
    500: {"model": ErrorOut},
    503: {"model": ErrorOut},
}


@router.post("/calibrate-ph", response_model=PhCalibrationOut, responses=_ERRORS)
def calibrate_ph(payload: PhCalibrationIn, runtime: BridgeRuntime = Depends(get_runtime)):
    """Publica el offset de pH (referencia - medido) al dispositivo.

    Retorna apenas el broker confirma la publicación; el resultado de la
    calibración llega después por MQTT y se consulta en /api/calibration-status.
    Los errores (CalibrationError) los traduce el exception handler de la app.
    """
    result = runtime.calibration.calibrate(payload.reference_ph, payload.current_ph)
    return PhCalibrationOut(
        message=f"pH offset {result.offset} sent to device",
        data=PhCalibrationData(**result.to_dict()),
    )


@router.get("/calibration-status", response_model=CalibrationStatusOut)
def calibration_status(runtime: BridgeRuntime = Depends(get_runtime)):
    status = runtime.calibration.get_status()
    return CalibrationStatusOut(
        data=CalibrationStatusData(
            isCalibrating=status["in_progress"],
            lastCalibration=status["last_calibration"],
            pendingCalibration=status["pending"],
            mqttConnected=status["bus_connected"],
        )
    )
