from __future__ import annotations

from mirror_wars.application import app

__all__ = ["app"]
