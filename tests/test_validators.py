"""Tests de sanitización y validación de payloads."""

import math

import pytest
from pydantic import ValidationError

from biogas_ingest.models import ActuatorState, SensorErrorMargin, SensorReading
from biogas_ingest.mqtt.validators import (
    ActuatorPayload,
    PayloadStructureError,
    SensorErrorsPayload,
    is_success_response,
    parse_finite_number,
    parse_warmup_flag,
    sanitize,
    validate_actuator_data,
    validate_sensor_data,
    validate_sensor_errors,
)


class TestSanitize:
    def test_rounds_to_six_decimals(self):
        assert sanitize(7.1234567) == 7.123457
        assert sanitize(35.5) == 35.5

    def test_numeric_strings_are_parsed(self):
        assert sanitize("7.5") == 7.5
        assert sanitize(" 12 ") == 12.0

    @pytest.mark.parametrize(
        "value",
        [None, "abc", "", True, False, float("nan"), float("inf"), float("-inf"), [1], {"a": 1}],
    )
    def test_invalid_values_become_zero(self, value):
        assert sanitize(value, "ph") == 0.0

    def test_never_returns_negative_zero(self):
        assert math.copysign(1.0, sanitize(-0.0)) == 1.0
        assert math.copysign(1.0, sanitize(-1e-9)) == 1.0

    def test_huge_values_are_not_rounded(self):
        assert sanitize(1e16) == 1e16

    def test_invalid_value_logs_warning(self, caplog):
        sanitize("abc", "temperature")
        assert "temperature is not a valid number" in caplog.text


class TestBlockValidators:
    def test_sensor_data_with_missing_fields(self):
        reading = validate_sensor_data({"ph": 7.1234567, "temp": "x"})
        assert reading == SensorReading(ph=7.123457, temp=0.0, ch4=0.0, pressure=0.0)

    def test_sensor_data_full(self):
        reading = validate_sensor_data({"ph": 6.9, "temp": 35.2, "ch4": 55.0, "pressure": 1.01})
        assert reading.to_row() == {"ph": 6.9, "temp": 35.2, "ch4": 55.0, "pressure": 1.01}

    def test_sensor_errors(self):
        errors = validate_sensor_errors({"ph_error": 0.1, "temp_delta_error": None})
        assert errors == SensorErrorMargin(ph_error=0.1)
        assert errors.to_row(3)["sensor_id"] == 3

    def test_actuators(self):
        state = validate_actuator_data({"pump_base": 1, "heater": 0.5, "stirrer": "bad"})
        assert state == ActuatorState(pump_base=1.0, heater=0.5)

    @pytest.mark.parametrize(
        "validator, block",
        [
            (validate_sensor_data, "sensors"),
            (validate_sensor_errors, "sensor_errors"),
            (validate_actuator_data, "actuators"),
        ],
    )
    def test_non_object_block_is_rejected(self, validator, block):
        with pytest.raises(PayloadStructureError, match=f"Invalid {block} data structure"):
            validator([1, 2, 3])
        with pytest.raises(PayloadStructureError):
            validator("7.0")


class TestFlags:
    @pytest.mark.parametrize("value, expected", [(1, True), (1.0, True), (0, False), (2, False)])
    def test_warmup_only_literal_one(self, value, expected):
        assert parse_warmup_flag(value) is expected

    @pytest.mark.parametrize("value", [True, "1", None, [1]])
    def test_warmup_non_numbers_are_false(self, value):
        assert parse_warmup_flag(value) is False

    def test_success_response(self):
        assert is_success_response({"success": True}) is True
        assert is_success_response({"status": "success"}) is True
        assert is_success_response({"status": "error"}) is False
        assert is_success_response({"success": False}) is False
        assert is_success_response({}) is False

    def test_parse_finite_number(self):
        assert parse_finite_number(7) == 7.0
        assert parse_finite_number("6.8") == 6.8
        assert parse_finite_number(None) is None
        assert parse_finite_number(True) is None
        assert parse_finite_number("abc") is None
        assert parse_finite_number("nan") is None
        assert parse_finite_number(float("inf")) is None


def test_sanitize_is_idempotent():
    for value in (7.1234567, -3.3333335, 0.1 + 0.2, 123456.7890129):
        once = sanitize(value)
        assert sanitize(once) == once


def test_empty_sensor_block_is_all_zeros():
    assert validate_sensor_data({}) == SensorReading()


def test_missing_actuator_block_raises():
    with pytest.raises(PayloadStructureError):
        validate_actuator_data(None)


class TestOutOfRangeNumbers:
    def test_huge_integer_becomes_zero(self):
        assert sanitize(10**400, "ph") == 0.0
        assert sanitize(-(10**400)) == 0.0

    def test_huge_integer_is_not_a_finite_number(self):
        assert parse_finite_number(10**400) is None

    def test_huge_integer_inside_block(self):
        assert validate_sensor_data({"ph": 10**400, "temp": 35}).ph == 0.0


class TestPayloadModels:
    def test_unknown_fields_are_dropped(self):
        reading = validate_sensor_data({"ph": 7, "humidity": 80, "extra": {"a": 1}})
        assert reading == SensorReading(ph=7.0)

    def test_missing_field_logs_warning(self, caplog):
        validate_actuator_data({"pump_base": 1})
        assert "heater is null/undefined" in caplog.text

    def test_payload_model_sanitizes_every_field(self):
        payload = SensorErrorsPayload.model_validate(
            {"ph_error": "0.1234567", "temp_error": float("nan"), "ph_delta_error": None}
        )
        assert payload.model_dump() == {
            "ph_error": 0.123457,
            "ph_delta_error": 0.0,
            "temp_error": 0.0,
            "temp_delta_error": 0.0,
        }

    def test_payload_model_rejects_non_object(self):
        with pytest.raises(ValidationError):
            ActuatorPayload.model_validate([1, 2])

    def test_structure_error_keeps_cause(self):
        with pytest.raises(PayloadStructureError) as exc_info:
            validate_sensor_errors(None)
        assert isinstance(exc_info.value.__cause__, ValidationError)
