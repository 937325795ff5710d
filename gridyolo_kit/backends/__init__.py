"""
Optional inference backends for gridyolo_kit.

Backends are kept in a separate module so decoding and NMS stay lightweight
and can be used without installing an inference runtime.
"""

from __future__ import annotations

__all__ = []
