"""
Service layer for the Gravity BFF.
"""

from .stream import StreamService, validate_filter

__all__ = [
    'StreamService',
    'validate_filter',
]
