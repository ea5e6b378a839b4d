"""Application context layer: per-request coordinator, lazy collaborators and flash messages."""

__version__ = "0.1.0"
