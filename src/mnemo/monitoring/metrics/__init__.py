"""Metric exporters used by the engine's telemetry publisher."""
