from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class PhCalibrationIn(BaseModel):
    # Tipos laxos: la validación numérica la hace CalibrationService (400, no 422)
    model_config = ConfigDict(populate_by_name=True)

    reference_ph: Optional[Any] = Field(default=None, alias="referencePh")
    current_ph: Optional[Any] = Field(default=None, alias="currentPh")


class PhCalibrationData(BaseModel):
    referencePh: float
    currentPh: float
    offset: float
    timestamp: str


class PhCalibrationOut(BaseModel):
    success: bool = True
    message: str
    data: PhCalibrationData


class CalibrationStatusData(BaseModel):
    isCalibrating: bool
    lastCalibration: Optional[dict] = None
    pendingCalibration: Optional[dict] = None
    mqttConnected: bool


class CalibrationStatusOut(BaseModel):
    success: bool = True
    data: CalibrationStatusData


class ErrorOut(BaseModel):
    success: bool = False
    error: str
    message: str
    timestamp: str
