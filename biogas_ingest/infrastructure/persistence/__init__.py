"""Persistence infrastructure for reactor telemetry."""

from .postgres import ReactorStorage
from .postgres_setup import create_storage_engine, ensure_schema

__all__ = [
    "ReactorStorage",
    "create_storage_engine",
    "ensure_schema",
]
