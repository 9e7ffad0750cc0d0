"""Entry point for ``python -m gitctx``."""

from gitctx.cli import app

if __name__ == "__main__":
    app()
