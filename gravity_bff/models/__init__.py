"""
Data models for the Gravity BFF stream service.
"""

from .stream import (
    SourceType, Priority, SenderType, ContentType, InsightType,
    SocialPlatform, StreamFilter, User, Attachment, CalendarEvent,
    SocialStats, SocialContent, AIInsight, TextPayload, EventPayload,
    SocialPayload, MessagePayload, Message, PriorityItem, StreamPage
)

__all__ = [
    # Enums
    'SourceType',
    'Priority',
    'SenderType',
    'ContentType',
    'InsightType',
    'SocialPlatform',
    'StreamFilter',

    # Participants
    'User',

    # Message payloads
    'Attachment',
    'CalendarEvent',
    'SocialStats',
    'SocialContent',
    'AIInsight',
    'TextPayload',
    'EventPayload',
    'SocialPayload',
    'MessagePayload',
    'Message',

    # Stream
    'PriorityItem',
    'StreamPage',
]
