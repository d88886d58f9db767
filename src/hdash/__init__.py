"""
Command-line entry point for the hospital dashboard toolkit.
"""

from .cli import app


def main() -> None:
    # Delegate to Typer app so `hdash ...` works.
    app()
