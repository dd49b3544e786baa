"""
Stream pagination primitives.
"""

from .cursor import Cursor, encode_cursor, decode_cursor

__all__ = [
    'Cursor',
    'encode_cursor',
    'decode_cursor',
]
