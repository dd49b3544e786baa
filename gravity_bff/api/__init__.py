"""
HTTP API for the Gravity BFF.
"""

from .auth import StreamAuthenticator, get_current_user_id
from .server import StreamServer

__all__ = [
    'StreamAuthenticator',
    'StreamServer',
    'get_current_user_id',
]
