"""Prometheus exporter for Vega validator nodes."""

__version__ = "0.1.0"
