"""
Entry point for ``python -m renewalslots``.
"""

from .cli.app import app

if __name__ == "__main__":
    app()
