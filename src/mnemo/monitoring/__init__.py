"""Telemetry for the episodic memory engine."""
