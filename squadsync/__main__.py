"""
Convenience entry point for running squadsync as a module.

Usage: python -m squadsync [command] [options]
"""

from .cli.app import app

if __name__ == "__main__":
    app()
