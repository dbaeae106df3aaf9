"""Recepción MQTT: conexión, worker de ingesta y pipeline de telemetría."""

from .async_processor import MessageWorker
from .connections import BrokerAddress, ConnectionState, MQTTConnection, PublishResult, parse_broker_url
from .heartbeat import Heartbeat
from .processor import TelemetryProcessor
from .receiver_stats import ReceiverStats

__all__ = [
    "BrokerAddress",
    "ConnectionState",
    "Heartbeat",
    "MessageWorker",
    "MQTTConnection",
    "PublishResult",
    "ReceiverStats",
    "TelemetryProcessor",
    "parse_broker_url",
]
