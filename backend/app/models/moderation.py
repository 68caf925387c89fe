from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from .base import BaseDBModel
from .user import UserSummary


class ContentType(str, Enum):
    """Kinds of user-generated content that go through moderation."""

    MESSAGE = "message"
    REVIEW = "review"


class KeywordCategory(str, Enum):
    """Enum for keyword rule categories."""

    PROFANITY = "profanity"
    SPAM = "spam"
    LEGAL = "legal"
    HARASSMENT = "harassment"
    CUSTOM = "custom"


class FlagStatus(str, Enum):
    """Enum for content flag status.

    ``pending`` is the only non-terminal state.
    """

    PENDING = "pending"
    REVIEWED = "reviewed"
    DISMISSED = "dismissed"
    ACTION_TAKEN = "action_taken"


# Statuses an administrator may resolve a flag to
ResolutionStatus = Literal["reviewed", "dismissed", "action_taken"]


class KeywordRuleBase(BaseModel):
    """Base schema for keyword rules."""

    keyword: str = Field(..., min_length=1, max_length=255)
    category: KeywordCategory = KeywordCategory.CUSTOM
    severity: int = Field(1, ge=1, le=5)
    description: Optional[str] = None


class KeywordRuleCreate(KeywordRuleBase):
    """Schema for creating a keyword rule."""


class KeywordRuleUpdate(BaseModel):
    """Schema for editing a keyword rule.

    Keyword text and category are fixed once created.
    """

    severity: Optional[int] = Field(None, ge=1, le=5)
    description: Optional[str] = None


class KeywordRule(KeywordRuleBase, BaseDBModel):
    """Keyword rule model for API responses."""

    model_config = ConfigDict(from_attributes=True)

    is_active: bool = True
    updated_at: Optional[datetime] = None

    @field_serializer("updated_at", when_used="always")
    def _serialize_updated_at(self, v: Optional[datetime]) -> Optional[str]:
        return v.isoformat() if v else None


class ContentFlag(BaseDBModel):
    """Content flag model for API responses."""

    content_type: ContentType
    content_id: str
    user_id: Optional[str] = None
    flag_reason: str
    matched_keywords: List[str] = Field(default_factory=list)
    severity: int = 0
    status: FlagStatus = FlagStatus.PENDING
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    admin_notes: Optional[str] = None
    action_taken: Optional[str] = None

    @field_serializer("reviewed_at", when_used="always")
    def _serialize_reviewed_at(self, v: Optional[datetime]) -> Optional[str]:
        return v.isoformat() if v else None


class FlagWithUser(ContentFlag):
    """Content flag joined with the restricted view of its author."""

    user: Optional[UserSummary] = None


class FlagReviewRequest(BaseModel):
    """Schema for an administrator resolving a flag."""

    status: ResolutionStatus
    admin_notes: Optional[str] = None
    action_taken: Optional[str] = None


class FlagStatistics(BaseModel):
    """Flag counts by status."""

    pending: int = 0
    reviewed: int = 0
    dismissed: int = 0
    action_taken: int = 0
    total: int = 0


class ModerationQueued(BaseModel):
    """Response for content handed to background moderation."""

    content_type: ContentType
    content_id: str
    status: str = "queued"
