"""velero-perf command-line interface."""
