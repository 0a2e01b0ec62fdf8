import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import EmailStr
from sqlalchemy import JSON, DateTime, UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel


def get_datetime_utc() -> datetime:
    return datetime.now(timezone.utc)


# Shared properties
class UserBase(SQLModel):
    email: EmailStr = Field(unique=True, index=True, max_length=255)
    is_active: bool = True
    is_superuser: bool = False
    full_name: str | None = Field(default=None, max_length=255)


# Properties to receive via API on creation
class UserCreate(UserBase):
    password: str = Field(min_length=8, max_length=128)


class UserRegister(SQLModel):
    email: EmailStr = Field(max_length=255)
    password: str = Field(min_length=8, max_length=128)
    full_name: str | None = Field(default=None, max_length=255)


# Database model, database table inferred from class name
class User(UserBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    hashed_password: str
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


# Properties to return via API, id is always required
class UserPublic(UserBase):
    id: uuid.UUID
    created_at: datetime | None = None
    is_admin: bool = False


# Generic message
class InfoMessage(SQLModel):
    message: str


# JSON payload containing access token
class Token(SQLModel):
    access_token: str
    token_type: str = "bearer"


# Contents of JWT token
class TokenPayload(SQLModel):
    sub: str | None = None


# Profiles

class ProfileBase(SQLModel):
    display_name: str = Field(min_length=1, max_length=100)
    bio: str | None = Field(default=None, max_length=1000)
    age: int | None = Field(default=None, ge=13, le=120)
    location: str | None = Field(default=None, max_length=255)
    is_private: bool = False


class ProfileUpdate(ProfileBase):
    profile_image: uuid.UUID | None = None


class Profile(ProfileBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(
        foreign_key="user.id", unique=True, index=True, nullable=False, ondelete="CASCADE"
    )
    profile_image: uuid.UUID | None = Field(default=None)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class ProfilePublic(ProfileBase):
    id: uuid.UUID
    user_id: uuid.UUID
    profile_image: uuid.UUID | None = None
    profile_image_url: str | None = None
    created_at: datetime | None = None


# AI counselor conversations

class ConversationBase(SQLModel):
    title: str = Field(min_length=1, max_length=255)


class ConversationCreate(ConversationBase):
    pass


class ConversationRename(ConversationBase):
    pass


class Conversation(ConversationBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(
        foreign_key="user.id", index=True, nullable=False, ondelete="CASCADE"
    )
    is_active: bool = True
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    messages: list["Message"] = Relationship(back_populates="conversation", cascade_delete=True)


class ConversationPublic(ConversationBase):
    id: uuid.UUID
    user_id: uuid.UUID
    is_active: bool
    created_at: datetime | None = None


class MessageCreate(SQLModel):
    content: str = Field(min_length=1, max_length=5000)


class Message(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    conversation_id: uuid.UUID = Field(
        foreign_key="conversation.id", index=True, nullable=False, ondelete="CASCADE"
    )
    user_id: uuid.UUID = Field(foreign_key="user.id", nullable=False, ondelete="CASCADE")
    content: str
    is_ai: bool = False
    biblical_references: list[str] | None = Field(default=None, sa_type=JSON)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    conversation: Conversation | None = Relationship(back_populates="messages")


class MessagePublic(SQLModel):
    id: uuid.UUID
    conversation_id: uuid.UUID
    user_id: uuid.UUID
    content: str
    is_ai: bool
    biblical_references: list[str] | None = None
    created_at: datetime | None = None


# Community posts

class PostCategory(str, Enum):
    advice = "advice"
    testimony = "testimony"
    question = "question"
    encouragement = "encouragement"
    announcement = "announcement"


class ReactionType(str, Enum):
    like = "like"
    dislike = "dislike"


class PostBase(SQLModel):
    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1, max_length=10000)
    category: PostCategory
    is_anonymous: bool = False


class PostCreate(PostBase):
    image: uuid.UUID | None = None
    image_url: str | None = Field(default=None, max_length=2048)


class Post(PostBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(
        foreign_key="user.id", index=True, nullable=False, ondelete="CASCADE"
    )
    category: PostCategory = Field(index=True)
    likes: int = 0
    dislikes: int = 0
    image: uuid.UUID | None = Field(default=None)
    image_url: str | None = Field(default=None, max_length=2048)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    comments: list["Comment"] = Relationship(back_populates="post", cascade_delete=True)
    reactions: list["Reaction"] = Relationship(back_populates="post", cascade_delete=True)


class PostPublic(PostBase):
    id: uuid.UUID
    # None for anonymous posts so the author cannot be recovered from the feed
    user_id: uuid.UUID | None = None
    likes: int
    dislikes: int
    image: uuid.UUID | None = None
    image_url: str | None = None
    created_at: datetime | None = None


class PostWithDetails(PostPublic):
    author_name: str
    author_image: str | None = None
    author_bio: str | None = None
    user_reaction: ReactionType | None = None
    comment_count: int = 0


class PostAdminView(PostPublic):
    author_name: str
    author_email: str | None = None
    comment_count: int = 0


class ReactionToggle(SQLModel):
    reaction: ReactionType


class Reaction(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("user_id", "post_id", name="uq_reaction_user_post"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    post_id: uuid.UUID = Field(
        foreign_key="post.id", index=True, nullable=False, ondelete="CASCADE"
    )
    user_id: uuid.UUID = Field(foreign_key="user.id", nullable=False, ondelete="CASCADE")
    reaction: ReactionType
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    post: Post | None = Relationship(back_populates="reactions")


class ReactionResult(SQLModel):
    post_id: uuid.UUID
    likes: int
    dislikes: int
    user_reaction: ReactionType | None = None


class CommentCreate(SQLModel):
    content: str = Field(max_length=2000)
    is_anonymous: bool = False


class Comment(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    post_id: uuid.UUID = Field(
        foreign_key="post.id", index=True, nullable=False, ondelete="CASCADE"
    )
    user_id: uuid.UUID = Field(foreign_key="user.id", nullable=False, ondelete="CASCADE")
    content: str
    is_anonymous: bool = False
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    post: Post | None = Relationship(back_populates="comments")


class CommentPublic(SQLModel):
    id: uuid.UUID
    post_id: uuid.UUID
    content: str
    is_anonymous: bool
    author_name: str
    author_image: str | None = None
    created_at: datetime | None = None


# Testimonies

class TestimonyCategory(str, Enum):
    relationship = "relationship"
    marriage = "marriage"
    healing = "healing"
    guidance = "guidance"


class TestimonyBase(SQLModel):
    title: str = Field(min_length=1, max_length=255)
    story: str = Field(min_length=1, max_length=10000)
    category: TestimonyCategory
    is_anonymous: bool = False


class TestimonyCreate(TestimonyBase):
    pass


class Testimony(TestimonyBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(
        foreign_key="user.id", index=True, nullable=False, ondelete="CASCADE"
    )
    category: TestimonyCategory = Field(index=True)
    is_approved: bool = Field(default=False, index=True)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class TestimonyPublic(TestimonyBase):
    id: uuid.UUID
    is_approved: bool
    author_name: str
    created_at: datetime | None = None


class TestimonyStats(SQLModel):
    total: int
    approved: int
    pending: int


# Live chat

class ChatRoomBase(SQLModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(default="", max_length=500)


class ChatRoomCreate(ChatRoomBase):
    pass


class ChatRoom(ChatRoomBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    is_active: bool = True
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class ChatRoomPublic(ChatRoomBase):
    id: uuid.UUID
    is_active: bool
    created_at: datetime | None = None


class SeedResult(SQLModel):
    success: bool = True
    message: str
    count: int


class ChatMessageCreate(SQLModel):
    content: str = Field(max_length=2000)
    is_anonymous: bool = False


class ChatMessage(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    room_id: uuid.UUID = Field(
        foreign_key="chatroom.id", index=True, nullable=False, ondelete="CASCADE"
    )
    user_id: uuid.UUID = Field(foreign_key="user.id", nullable=False, ondelete="CASCADE")
    content: str
    is_anonymous: bool = False
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class ChatMessagePublic(SQLModel):
    id: uuid.UUID
    room_id: uuid.UUID
    content: str
    is_anonymous: bool
    author_name: str
    author_image: str | None = None
    created_at: datetime | None = None


# Video calls

class VideoCallBase(SQLModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(default="", max_length=1000)
    scheduled_time: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class VideoCallCreate(VideoCallBase):
    room_id: uuid.UUID
    max_participants: int = Field(default=10, ge=2, le=100)


class VideoCall(VideoCallBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    room_id: uuid.UUID = Field(
        foreign_key="chatroom.id", index=True, nullable=False, ondelete="CASCADE"
    )
    host_user_id: uuid.UUID = Field(foreign_key="user.id", nullable=False, ondelete="CASCADE")
    meeting_url: str
    is_active: bool = Field(default=True, index=True)
    max_participants: int = 10
    current_participants: int = 0
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    participants: list["VideoCallParticipant"] = Relationship(
        back_populates="call", cascade_delete=True
    )


class VideoCallPublic(VideoCallBase):
    id: uuid.UUID
    room_id: uuid.UUID
    host_user_id: uuid.UUID
    host_name: str
    meeting_url: str
    is_active: bool
    max_participants: int
    current_participants: int
    created_at: datetime | None = None


class VideoCallCreated(SQLModel):
    call_id: uuid.UUID
    meeting_url: str


class VideoCallJoined(SQLModel):
    meeting_url: str
    already_joined: bool


class VideoCallParticipant(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    call_id: uuid.UUID = Field(
        foreign_key="videocall.id", index=True, nullable=False, ondelete="CASCADE"
    )
    user_id: uuid.UUID = Field(foreign_key="user.id", nullable=False, ondelete="CASCADE")
    joined_at: datetime = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    left_at: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    is_active: bool = True
    call: VideoCall | None = Relationship(back_populates="participants")


class VideoCallParticipantPublic(SQLModel):
    id: uuid.UUID
    call_id: uuid.UUID
    user_id: uuid.UUID
    name: str
    profile_image_url: str | None = None
    joined_at: datetime
    is_active: bool


# Password reset

class PasswordResetToken(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(
        foreign_key="user.id", index=True, nullable=False, ondelete="CASCADE"
    )
    token: str = Field(unique=True, index=True, max_length=128)
    expires_at: datetime = Field(sa_type=DateTime(timezone=True))  # type: ignore
    is_used: bool = False
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class PasswordResetTokenPublic(SQLModel):
    id: uuid.UUID
    token: str
    expires_at: datetime
    is_used: bool


class PasswordResetRequest(SQLModel):
    email: EmailStr = Field(max_length=255)


class PasswordResetRequested(SQLModel):
    success: bool = True
    message: str
    # Returned to the caller until outbound email delivery exists
    token: str | None = None
    reset_url: str | None = None


class PasswordResetValidation(SQLModel):
    valid: bool
    message: str | None = None
    user_id: uuid.UUID | None = None
    email: str | None = None


class NewPassword(SQLModel):
    token: str
    new_password: str = Field(min_length=8, max_length=128)


class PasswordResetDone(SQLModel):
    success: bool = True
    message: str
    user_id: uuid.UUID


# Admin notifications

class NotificationType(str, Enum):
    new_message = "new_message"
    new_post = "new_post"
    new_testimony = "new_testimony"
    flagged_content = "flagged_content"


class NotificationPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class AdminNotification(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    type: NotificationType
    title: str = Field(max_length=255)
    description: str
    related_id: str | None = Field(default=None, max_length=64)
    is_read: bool = Field(default=False, index=True)
    priority: NotificationPriority = NotificationPriority.medium
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class AdminNotificationPublic(SQLModel):
    id: uuid.UUID
    type: NotificationType
    title: str
    description: str
    related_id: str | None = None
    is_read: bool
    priority: NotificationPriority
    created_at: datetime | None = None


class AdminStats(SQLModel):
    total_users: int
    total_posts: int
    total_comments: int
    total_reactions: int
    total_messages: int
    total_conversations: int
    unread_notifications: int
    recent_posts: int
    recent_comments: int


# Daily verses

class DailyVerse(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    verse: str
    reference: str = Field(max_length=100)
    reflection: str
    date: str = Field(index=True, max_length=10)
    topic: str = Field(max_length=50)
    minute_key: str = Field(index=True, max_length=64)
    is_ai_generated: bool = True
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class DailyVersePublic(SQLModel):
    id: uuid.UUID
    verse: str
    reference: str
    reflection: str
    date: str
    topic: str
    minute_key: str
    is_ai_generated: bool
    created_at: datetime | None = None


class VerseRequest(SQLModel):
    topic: str | None = Field(default=None, max_length=50)


# Object storage

class StoredFile(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    owner_id: uuid.UUID = Field(foreign_key="user.id", nullable=False, ondelete="CASCADE")
    filename: str = Field(max_length=255)
    content_type: str = Field(max_length=100)
    size_bytes: int
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class UploadUrl(SQLModel):
    upload_url: str


class StoredFilePublic(SQLModel):
    storage_id: uuid.UUID
    url: str
    content_type: str
    size_bytes: int
