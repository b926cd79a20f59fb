from __future__ import annotations

from datetime import datetime
from typing import Annotated, Generic, Literal, TypeVar

from pydantic import (
    AfterValidator,
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    PlainSerializer,
    StringConstraints,
    model_validator,
)

from .validation import validate_image_url

# Dumped as a plain string for storage
WebUrl = Annotated[HttpUrl, PlainSerializer(str, return_type=str)]
ImageUrl = Annotated[str, AfterValidator(validate_image_url)]
Tag = Annotated[str, StringConstraints(min_length=1)]

NotificationType = Literal["like", "comment", "connect", "insight"]
JobType = Literal["Full-time", "Part-time", "Freelance", "Contract", "Internship"]
ServiceCategory = Literal[
    "Web Development",
    "Mobile App Development",
    "UI/UX Design",
    "Graphic Design",
    "Photography",
    "Videography",
    "Content Writing",
    "Marketing",
    "Illustration",
    "3D Modeling",
    "Animation",
    "Music Production",
    "Other",
]


# ============================================================================
# BASE SCHEMAS
# ============================================================================


class Problem(BaseModel):
    """RFC 7807 Problem Details for HTTP APIs."""

    type: str = Field(default="about:blank")
    title: str
    status: int
    detail: str | None = None
    errors: dict[str, list[str]] | None = None


T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """Generic paginated response."""

    items: list[T]
    next_cursor: str | None = None


class SuccessResponse(BaseModel):
    """Acknowledgement for mutations with no payload of their own."""

    success: bool = True
    message: str | None = None


# ============================================================================
# HEALTH & CONFIG
# ============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["ok"] = "ok"
    uptime_s: float | None = None


class Config(BaseModel):
    """Public system configuration."""

    max_post_length: int = 1000
    max_comment_length: int = 1000
    max_message_length: int = 2000
    max_skills: int = 20
    max_image_bytes: int
    max_portfolio_inline_image_bytes: int
    features: dict[str, bool] = {}


# ============================================================================
# USER SCHEMAS
# ============================================================================


class UserSummary(BaseModel):
    """Display fields joined onto other entities (author, sender, ...)."""

    id: str
    name: str | None = None
    image: str | None = None

    model_config = ConfigDict(from_attributes=True)


class UserProfile(UserSummary):
    """Full profile of a user."""

    email: str
    bio: str | None = None
    skills: list[str] = []
    tools: list[str] = []
    created_at: datetime


class PersonCard(UserProfile):
    """User entry on the people page."""

    post_count: int = 0
    follower_count: int = 0
    following_count: int = 0


class ProfileUpdate(BaseModel):
    """Update profile request. Omitted fields are left unchanged."""

    name: str | None = Field(None, min_length=2, max_length=100)
    bio: str | None = Field(None, max_length=500)
    skills: list[Tag] | None = Field(None, max_length=20)
    tools: list[Tag] | None = Field(None, max_length=20)


# ============================================================================
# POST SCHEMAS
# ============================================================================


class _PostBody(BaseModel):
    content: str | None = Field(None, max_length=1000)
    image_url: ImageUrl | None = None

    @model_validator(mode="after")
    def require_content_or_image(self):
        if not self.content and not self.image_url:
            raise ValueError("Post must have either content or an image")
        return self


class PostCreate(_PostBody):
    """Create post request."""


class PostUpdate(_PostBody):
    """Update post request (replaces content and image)."""


class Post(BaseModel):
    """Feed post with author and interaction counts."""

    id: str
    author_id: str
    content: str | None = None
    image_url: str | None = None
    created_at: datetime
    updated_at: datetime | None = None
    author: UserSummary | None = None

    like_count: int = 0
    comment_count: int = 0
    liked_by_me: bool = False
    bookmarked_by_me: bool = False

    model_config = ConfigDict(from_attributes=True)


class LikeStatus(BaseModel):
    is_liked: bool
    count: int


class BookmarkStatus(BaseModel):
    is_bookmarked: bool


class ToggleResponse(BaseModel):
    """New state after a toggle."""

    active: bool


# ============================================================================
# COMMENT SCHEMAS
# ============================================================================


class Comment(BaseModel):
    """Comment on a post."""

    id: str
    post_id: str
    user_id: str
    content: str
    created_at: datetime
    user: UserSummary | None = None

    model_config = ConfigDict(from_attributes=True)


class CommentCreate(BaseModel):
    """Create comment request."""

    content: str = Field(..., min_length=1, max_length=1000)


# ============================================================================
# FOLLOW SCHEMAS
# ============================================================================


class FollowStatus(BaseModel):
    is_following: bool


class FollowStatusesRequest(BaseModel):
    user_ids: list[str] = Field(default_factory=list, max_length=200)


# ============================================================================
# NOTIFICATION SCHEMAS
# ============================================================================


class Notification(BaseModel):
    """Notification with sender and recipient display fields."""

    id: str
    type: NotificationType
    recipient_id: str
    sender_id: str | None = None
    post_id: str | None = None
    metadata: str | None = Field(None, validation_alias=AliasChoices("meta", "metadata"))
    read: bool
    created_at: datetime
    sender: UserSummary | None = None
    recipient: UserSummary | None = None
    message: str | None = None

    model_config = ConfigDict(from_attributes=True)


class NotificationGroup(BaseModel):
    """Notifications sharing a calendar relation to now (Today, Yesterday, ...)."""

    label: Literal["Today", "Yesterday", "This Week", "Older"]
    items: list[Notification]


class UnreadCount(BaseModel):
    unread_count: int


class MarkAllReadResponse(BaseModel):
    updated: int


# ============================================================================
# MESSAGING SCHEMAS
# ============================================================================


class Message(BaseModel):
    """Message within a conversation."""

    id: str
    conversation_id: str
    sender_id: str
    content: str
    read: bool
    created_at: datetime
    sender: UserSummary | None = None

    model_config = ConfigDict(from_attributes=True)


class MessageCreate(BaseModel):
    """Send message request."""

    content: str = Field(..., min_length=1, max_length=2000)


class ConversationCreate(BaseModel):
    """Get-or-create conversation request."""

    user_id: str = Field(..., min_length=1)


class Conversation(BaseModel):
    """Conversation between two users."""

    id: str
    user1_id: str
    user2_id: str
    user1: UserSummary | None = None
    user2: UserSummary | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ConversationThread(Conversation):
    """Conversation with all of its messages, oldest first."""

    messages: list[Message] = []


class ConversationSummary(BaseModel):
    """Conversation list entry from the perspective of the current user."""

    id: str
    other_user: UserSummary
    latest_message: Message | None = None
    unread_count: int = 0
    updated_at: datetime


# ============================================================================
# JOB & EVENT SCHEMAS
# ============================================================================


class JobCreate(BaseModel):
    """Create job request."""

    title: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=10, max_length=2000)
    company: str | None = Field(None, max_length=100)
    location: str | None = Field(None, max_length=100)
    type: JobType
    compensation: str | None = Field(None, max_length=100)
    application_url: WebUrl | None = None


class JobUpdate(JobCreate):
    """Update job request (replaces every field)."""


class Job(BaseModel):
    """Job listing."""

    id: str
    posted_by_id: str
    title: str
    description: str
    company: str | None = None
    location: str | None = None
    type: str
    compensation: str | None = None
    application_url: str | None = None
    created_at: datetime
    updated_at: datetime | None = None
    posted_by: UserSummary | None = None

    model_config = ConfigDict(from_attributes=True)


class EventCreate(BaseModel):
    """Create event request."""

    title: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=10, max_length=2000)
    image_url: ImageUrl | None = None
    location: str = Field(..., min_length=3, max_length=200)
    address: str | None = Field(None, max_length=500)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    start_date: datetime
    end_date: datetime | None = None
    category: str | None = Field(None, max_length=50)


class EventUpdate(EventCreate):
    """Update event request (replaces every field)."""


class Event(BaseModel):
    """Event listing."""

    id: str
    organizer_id: str
    title: str
    description: str
    image_url: str | None = None
    location: str
    address: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    start_date: datetime
    end_date: datetime | None = None
    category: str | None = None
    created_at: datetime
    updated_at: datetime | None = None
    organizer: UserSummary | None = None

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# PORTFOLIO, SERVICE & PROFILE SCHEMAS
# ============================================================================


class PortfolioItemCreate(BaseModel):
    """Create portfolio item request."""

    image_url: ImageUrl
    title: str | None = Field(None, max_length=100)
    description: str | None = Field(None, max_length=500)
    order: int | None = Field(None, ge=0)


class PortfolioItemUpdate(PortfolioItemCreate):
    """Update portfolio item request."""


class PortfolioItem(BaseModel):
    """Portfolio image."""

    id: str
    user_id: str
    image_url: str
    title: str | None = None
    description: str | None = None
    order: int
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ServiceCreate(BaseModel):
    """Create service request."""

    title: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=10, max_length=2000)
    price_range: str = Field(..., min_length=3, max_length=50)
    category: ServiceCategory | None = None


class ServiceUpdate(BaseModel):
    """Update service request. Omitted fields are left unchanged."""

    title: str | None = Field(None, min_length=3, max_length=100)
    description: str | None = Field(None, min_length=10, max_length=2000)
    price_range: str | None = Field(None, min_length=3, max_length=50)
    category: ServiceCategory | None = None
    is_active: bool | None = None


class Service(BaseModel):
    """Service offered by a user."""

    id: str
    provider_id: str
    title: str
    description: str
    price_range: str
    category: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class MeResponse(UserProfile):
    """Current user's profile with ordered portfolio."""

    portfolio_items: list[PortfolioItem] = []


class PublicProfile(BaseModel):
    """Profile of any user as seen by the viewer."""

    user: UserProfile
    portfolio_items: list[PortfolioItem] = []
    services: list[Service] = []
    post_count: int = 0
    follower_count: int = 0
    following_count: int = 0
    is_following: bool = False


# ============================================================================
# MOOD BOARD SCHEMAS
# ============================================================================


class MoodBoardCreate(BaseModel):
    """Create mood board request."""

    title: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    is_public: bool = False


class MoodBoardItemCreate(BaseModel):
    """Pin a post, portfolio item or raw image to a mood board."""

    post_id: str | None = None
    portfolio_item_id: str | None = None
    image_url: ImageUrl | None = None

    @model_validator(mode="after")
    def require_source(self):
        if not (self.post_id or self.portfolio_item_id or self.image_url):
            raise ValueError("Item must reference a post, a portfolio item or an image")
        return self


class MoodBoardItem(BaseModel):
    """Item on a mood board."""

    id: str
    mood_board_id: str
    post_id: str | None = None
    portfolio_item_id: str | None = None
    image_url: str | None = None
    order: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MoodBoard(BaseModel):
    """Mood board with item count and a preview of its first items."""

    id: str
    owner_id: str
    title: str
    description: str | None = None
    is_public: bool
    created_at: datetime
    updated_at: datetime
    item_count: int = 0
    preview_items: list[MoodBoardItem] = []

    model_config = ConfigDict(from_attributes=True)


class SavedStatus(BaseModel):
    """Whether a post is pinned to any of the viewer's mood boards."""

    is_saved: bool
    mood_board_ids: list[str] = []
