"""
Opaque pagination cursors for the priority stream.

A cursor carries the ``(timestamp, id)`` sort key of the last item on a page.
It is URL-safe base64 over a compact JSON object and is purely structural:
nothing ties a cursor to the user or filter it was issued for.
"""

import base64
import binascii
import json
from dataclasses import dataclass
from datetime import datetime

from ..exceptions import InvalidCursor


@dataclass(frozen=True)
class Cursor:
    """Sort-key position of the last item seen."""
    timestamp: datetime
    id: str


def encode_cursor(timestamp: datetime, item_id: str) -> str:
    """Encode a sort key into an opaque, URL-safe token."""
    payload = json.dumps(
        {"t": timestamp.isoformat(), "id": item_id},
        separators=(",", ":"),
    )
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii")


def decode_cursor(token: str) -> Cursor:
    """Decode a token produced by :func:`encode_cursor`.

    Raises:
        InvalidCursor: If the token is not URL-safe base64, not JSON, or does
            not carry exactly a ``t`` timestamp and an ``id`` string.
    """
    try:
        raw = base64.urlsafe_b64decode(token.encode("ascii"))
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeError, binascii.Error, ValueError) as e:
        raise InvalidCursor(
            f"Invalid cursor format: {e}",
            user_message="Invalid pagination cursor",
        ) from e

    if not isinstance(data, dict) or set(data) != {"t", "id"}:
        raise InvalidCursor(
            "Invalid cursor data: expected fields 't' and 'id'",
            user_message="Invalid pagination cursor",
        )

    timestamp, item_id = data["t"], data["id"]
    if not isinstance(timestamp, str) or not isinstance(item_id, str):
        raise InvalidCursor(
            "Invalid cursor data: 't' and 'id' must be strings",
            user_message="Invalid pagination cursor",
        )

    try:
        parsed = datetime.fromisoformat(timestamp)
    except ValueError as e:
        raise InvalidCursor(
            f"Invalid cursor timestamp: {timestamp!r}",
            user_message="Invalid pagination cursor",
        ) from e

    return Cursor(timestamp=parsed, id=item_id)
