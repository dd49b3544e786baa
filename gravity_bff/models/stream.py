"""
Priority stream domain models.

These are read-only projections of the item store. Field names are snake_case
in Python and camelCase on the wire (API responses and cached JSON).
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator
from pydantic.alias_generators import to_camel


class SourceType(str, Enum):
    """Origin platform of a priority item."""
    EMAIL = "email"
    WHATSAPP = "whatsapp"
    SLACK = "slack"
    TEAMS = "teams"
    CALENDAR = "calendar"
    TASK = "task"
    YOUTUBE = "youtube"
    LINKEDIN = "linkedin"
    TWITTER = "twitter"


class Priority(str, Enum):
    """Urgency level of a priority item."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class SenderType(str, Enum):
    """Who sent a message."""
    USER = "user"
    OTHER = "other"
    SYSTEM = "system"


class ContentType(str, Enum):
    """Kind of message content."""
    TEXT = "text"
    EVENT = "event"
    SOCIAL = "social"


class InsightType(str, Enum):
    """Kind of AI insight."""
    SUGGESTION = "suggestion"
    ANALYSIS = "analysis"
    DRAFT = "draft"


class SocialPlatform(str, Enum):
    """Supported social media platforms."""
    YOUTUBE = "youtube"
    LINKEDIN = "linkedin"
    TWITTER = "twitter"


class StreamFilter(str, Enum):
    """Filter options for the stream endpoint."""
    ALL = "all"
    HIGH = "high"
    UNREAD = "unread"


class StreamModel(BaseModel):
    """Base for stream models: camelCase aliases, accepts either spelling."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class User(StreamModel):
    """A participant or message sender."""
    id: str
    name: str
    email: Optional[str] = None
    avatar_url: Optional[str] = None


class Attachment(StreamModel):
    """A file attached to a message."""
    id: str
    name: str
    mime_type: str
    size_bytes: int
    url: str


class CalendarEvent(StreamModel):
    """Calendar event details carried by an event message."""
    id: str
    title: str
    start_time: datetime
    end_time: datetime
    attendees: List[User] = Field(default_factory=list)
    location: Optional[str] = None
    meeting_link: Optional[str] = None
    description: Optional[str] = None


class SocialStats(StreamModel):
    """Engagement statistics for social content."""
    views: Optional[int] = None
    likes: Optional[int] = None
    comments: Optional[int] = None
    shares: Optional[int] = None


class SocialContent(StreamModel):
    """Content from a social media platform."""
    id: str
    platform: SocialPlatform
    author: str
    author_avatar_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    stats: SocialStats = Field(default_factory=SocialStats)
    url: str


class AIInsight(StreamModel):
    """An AI-generated insight or suggestion."""
    id: str
    type: InsightType
    label: str
    content: str
    is_draft: bool = False


class TextPayload(StreamModel):
    """Plain text message; carries no structured payload."""
    kind: Literal["text"] = "text"


class EventPayload(StreamModel):
    """Event message. Details are None when the stored blob was unreadable."""
    kind: Literal["event"] = "event"
    event_details: Optional[CalendarEvent] = None


class SocialPayload(StreamModel):
    """Social message. Content is None when the stored blob was unreadable."""
    kind: Literal["social"] = "social"
    social_content: Optional[SocialContent] = None


MessagePayload = Annotated[
    Union[TextPayload, EventPayload, SocialPayload],
    Field(discriminator="kind"),
]


class Message(StreamModel):
    """A single message in a priority item's thread.

    The payload is held as a tagged variant but serialized flat, as
    ``contentType`` plus ``eventDetails`` and ``socialContent``; validation
    accepts either shape.
    """
    id: str
    sender_type: SenderType
    sender_info: Optional[User] = None
    content: str = ""
    timestamp: datetime
    payload: MessagePayload = Field(default_factory=TextPayload, exclude=True)
    ai_insights: List[AIInsight] = Field(default_factory=list)
    attachments: List[Attachment] = Field(default_factory=list)
    full_content_html: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _payload_from_flat_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "payload" in data:
            return data
        kind = data.get("contentType", data.get("content_type"))
        if kind is None:
            return data
        data = dict(data)
        kind = getattr(kind, "value", kind)
        data["payload"] = {
            "kind": kind,
            "event_details": data.get("eventDetails", data.get("event_details")),
            "social_content": data.get("socialContent", data.get("social_content")),
        }
        return data

    @computed_field(alias="contentType")
    @property
    def content_type(self) -> ContentType:
        return ContentType(self.payload.kind)

    @computed_field(alias="eventDetails")
    @property
    def event_details(self) -> Optional[CalendarEvent]:
        if isinstance(self.payload, EventPayload):
            return self.payload.event_details
        return None

    @computed_field(alias="socialContent")
    @property
    def social_content(self) -> Optional[SocialContent]:
        if isinstance(self.payload, SocialPayload):
            return self.payload.social_content
        return None


class PriorityItem(StreamModel):
    """A single item in the unified priority stream.

    ``messages`` is only populated in the detail view; feed pages leave it
    as None.
    """
    id: str
    title: str
    source: SourceType
    priority: Priority
    is_unread: bool
    snippet: Optional[str] = None
    timestamp: datetime
    participants: List[User] = Field(default_factory=list)
    messages: Optional[List[Message]] = None


class StreamPage(StreamModel):
    """One page of the stream plus the cursor for the next page."""
    data: List[PriorityItem] = Field(default_factory=list)
    next_cursor: Optional[str] = None
