"""
API route handlers.
"""

from . import pairing

__all__ = ["pairing"]
