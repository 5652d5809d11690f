"""Velero backup/restore performance engine."""

__version__ = "0.1.0"
