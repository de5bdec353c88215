"""Telemetry ingestion pipeline: framing, classification, connection, history."""
