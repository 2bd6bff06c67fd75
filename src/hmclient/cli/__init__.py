"""CLI modules for running client sessions.

Note: avoid importing submodules at import-time. This keeps `python -m hmclient.cli.<cmd>`
free of `runpy` warnings and avoids side effects from eager imports.
"""

from __future__ import annotations


def run_main(argv: list[str] | None = None) -> int:
    """Lazy wrapper for `hmclient.cli.run.main`."""

    from .run import main

    return main(argv)


def scenario_main(argv: list[str] | None = None) -> int:
    """Lazy wrapper for `hmclient.cli.scenario.main`."""

    from .scenario import main

    return main(argv)


__all__ = ["run_main", "scenario_main"]
