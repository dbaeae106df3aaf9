"""Esquema de tablas del reactor (SQLAlchemy Core)."""

from __future__ import annotations

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    func,
)

metadata = MetaData()

# BIGINT en PostgreSQL, INTEGER en SQLite (rowid autoincremental en tests)
_Id = BigInteger().with_variant(Integer(), "sqlite")

sensors = Table(
    "sensors",
    metadata,
    Column("id", _Id, primary_key=True, autoincrement=True),
    Column("ph", Float, nullable=False),
    Column("temp", Float, nullable=False),
    Column("ch4", Float, nullable=False),
    Column("pressure", Float, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)

sensor_errors = Table(
    "sensor_errors",
    metadata,
    Column("id", _Id, primary_key=True, autoincrement=True),
    Column("sensor_id", _Id, ForeignKey("sensors.id"), nullable=False, index=True),
    Column("ph_error", Float, nullable=False),
    Column("ph_delta_error", Float, nullable=False),
    Column("temp_error", Float, nullable=False),
    Column("temp_delta_error", Float, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)

actuators = Table(
    "actuators",
    metadata,
    Column("id", _Id, primary_key=True, autoincrement=True),
    Column("sensor_id", _Id, ForeignKey("sensors.id"), nullable=True, index=True),
    Column("pump_base", Float, nullable=False),
    Column("pump_acid", Float, nullable=False),
    Column("heater", Float, nullable=False),
    Column("solenoid", Float, nullable=False),
    Column("stirrer", Float, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)

calibration_logs = Table(
    "calibration_logs",
    metadata,
    Column("id", _Id, primary_key=True, autoincrement=True),
    Column("status", String(16), nullable=False),
    Column("success", Boolean, nullable=False),
    Column("reference_ph", Float, nullable=True),
    Column("current_ph", Float, nullable=True),
    Column("ph_offset", Float, nullable=True),
    Column("requested_at", DateTime(timezone=True), nullable=True),
    Column("completed_at", DateTime(timezone=True), nullable=False),
    Column("response", JSON, nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)
