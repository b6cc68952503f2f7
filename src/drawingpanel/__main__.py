"""Console entrypoint for drawingpanel.

Delegates to :mod:`drawingpanel.cli` so that ``python -m drawingpanel``
and the installed ``drawingpanel`` script run the same code.
"""

from __future__ import annotations

from drawingpanel.cli import main as cli_main


def main() -> None:
    """Application entrypoint (delegates to :func:`drawingpanel.cli.main`)."""
    cli_main()


if __name__ == "__main__":
    main()
