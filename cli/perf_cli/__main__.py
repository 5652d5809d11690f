"""Entry point for `python -m perf_cli` and `velero-perf` console script."""

from __future__ import annotations

from perf_cli.app import app


def main() -> None:
    app()


if __name__ == "__main__":
    main()
