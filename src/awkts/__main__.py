"""Console-script entry point for :mod:`awkts`."""

from __future__ import annotations

from awkts.cli import create_app, run_safely


def main() -> None:
    """Execute the CLI application.

    Example:
        >>> from awkts.__main__ import main
        >>> main()  # doctest: +SKIP
    """

    run_safely(create_app(), prog_name="awkts")


if __name__ == "__main__":  # pragma: no cover - exercised via console script
    main()


__all__ = ["main"]
