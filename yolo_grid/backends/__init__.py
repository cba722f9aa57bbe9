"""
Optional inference backends for yolo_grid.

Kept separate so decoding can be used without installing an inference runtime.
"""

from __future__ import annotations

__all__ = []
