from __future__ import annotations

from .clock import utc_now_iso

__all__ = ["utc_now_iso"]
