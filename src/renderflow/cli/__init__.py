"""CLI module for renderflow.

Provides command-line helpers for contain-fit geometry, local crops, and
saved project histories.
"""

from __future__ import annotations

from renderflow.cli.main import app

__all__ = ["app"]
