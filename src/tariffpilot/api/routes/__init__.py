"""API route modules."""
from __future__ import annotations

from . import confidence, decisions, legal, precedents, product

__all__ = ["confidence", "decisions", "legal", "precedents", "product"]
