"""stardash — live telemetry ingestion for the S.T.A.R. daemon dashboard."""

__version__ = "0.1.0"
