"""Entry point for running DocDelta as a module.

Usage:
    python -m docdelta [command] [options]

Example:
    python -m docdelta scan --records modules.json
    python -m docdelta flow --repo . --records modules.json --json
"""

from docdelta.cli import app

if __name__ == "__main__":
    app()
