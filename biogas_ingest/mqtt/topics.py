"""Topics MQTT del reactor."""

TOPIC_SENSORS = "biogas/data/sensors"
TOPIC_CONTROL = "biogas/data/control"
TOPIC_CALIBRATION_RESPONSE = "biogas/ph_calibration/response"
TOPIC_PH_OFFSET = "biogas/ph_offset"

INBOUND_TOPICS = (TOPIC_SENSORS, TOPIC_CONTROL, TOPIC_CALIBRATION_RESPONSE)
