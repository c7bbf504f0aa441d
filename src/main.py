"""Script de ejecución (`python -m main` desde `src/`)."""

from __future__ import annotations

import sys

# UnicodeEncodeError en terminales Windows (cp1252 vs utf-8) con las tablas Rich.
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8")
    sys.stderr.reconfigure(encoding="utf-8")

from cli.main import run


def main() -> None:
    run()


if __name__ == "__main__":
    main()
