from __future__ import annotations

from .logger import ReviewLogger
from .formatters import JSONFormatter, HumanReadableFormatter

__all__ = [
    "ReviewLogger",
    "JSONFormatter",
    "HumanReadableFormatter",
]
