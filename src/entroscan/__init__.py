"""Entroscan: content-entropy scanner for incident response triage."""

__version__ = "0.1.0"
