"""Shared pytest setup."""

from __future__ import annotations

import os

# Headless runs: matplotlib must not try to open a window.
os.environ.setdefault("MPLBACKEND", "Agg")
