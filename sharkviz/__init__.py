"""Shark incident classification and aggregation for the incident visualizations."""

__version__ = "0.1.0"
