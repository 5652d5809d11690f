"""Subcommands registered on the velero-perf application."""
