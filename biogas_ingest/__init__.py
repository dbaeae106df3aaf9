"""Bridge MQTT → PostgreSQL para el reactor de biogás, con calibración de pH por HTTP."""
