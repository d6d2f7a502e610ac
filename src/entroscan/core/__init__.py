"""Core services: configuration, errors, logging and scan orchestration."""
