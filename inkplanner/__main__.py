"""Entry point for running inkplanner as a module.

Usage:
    python -m inkplanner <command> [options]
"""
from .cli import main

if __name__ == "__main__":
    raise SystemExit(main())
