"""Entry point for running the CLI as a module.

Usage:
    python -m bothost.cli --help
"""

from bothost.cli.main import app

if __name__ == "__main__":
    app()
