"""pipesh CLI bootstrap."""

from __future__ import annotations

from pipesh.cli.app import app

if __name__ == "__main__":
    app()
