from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from ..db.base import Base


def generate_uuid():
    return str(uuid4())


def utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    """SQLAlchemy model for marketplace users (creators, companies, admins)."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    username = Column(String(100), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    role = Column(String(20), nullable=False, default="creator", index=True)  # creator | company | admin
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    flags = relationship("ContentFlag", back_populates="user", foreign_keys="ContentFlag.user_id")

    def __repr__(self):
        return f"<User(id='{self.id}', username='{self.username}', role='{self.role}')>"


class Review(Base):
    """SQLAlchemy model for company reviews written by creators."""

    __tablename__ = "reviews"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    creator_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    company_id = Column(String(36), nullable=True)
    overall_rating = Column(Integer, nullable=False)
    review_text = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    def __repr__(self):
        return f"<Review(id='{self.id}', overall_rating={self.overall_rating})>"


class Message(Base):
    """SQLAlchemy model for direct messages between creators and companies."""

    __tablename__ = "messages"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    conversation_id = Column(String(36), nullable=True)
    sender_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    def __repr__(self):
        return f"<Message(id='{self.id}', sender_id='{self.sender_id}')>"


class BannedKeyword(Base):
    """SQLAlchemy model for keyword moderation rules.

    Rules are never deleted; switching ``is_active`` off removes a rule from
    screening while keeping it around for flags that matched it earlier.
    """

    __tablename__ = "banned_keywords"
    __table_args__ = (
        CheckConstraint("severity >= 1 AND severity <= 5", name="ck_banned_keywords_severity"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    # Stored lower-cased; the unique index makes seeding race-free
    keyword = Column(String(255), unique=True, nullable=False)
    category = Column(String(20), nullable=False, default="custom")
    severity = Column(Integer, nullable=False, default=1)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, onupdate=utcnow, nullable=True)

    def __repr__(self):
        return f"<BannedKeyword(keyword='{self.keyword}', severity={self.severity})>"


class ContentFlag(Base):
    """SQLAlchemy model for flagged reviews and messages awaiting admin review."""

    __tablename__ = "content_flags"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    content_type = Column(String(20), nullable=False)  # 'message' or 'review'
    content_id = Column(String(36), nullable=False, index=True)
    # Flags outlive the users they reference
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    flag_reason = Column(Text, nullable=False)
    matched_keywords = Column(JSON, nullable=False, default=list)
    severity = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="pending", index=True)
    reviewed_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    admin_notes = Column(Text, nullable=True)
    action_taken = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)

    # Relationships
    user = relationship("User", back_populates="flags", foreign_keys=[user_id])

    def __repr__(self):
        return f"<ContentFlag(id='{self.id}', content_type='{self.content_type}', status='{self.status}')>"


class Notification(Base):
    """SQLAlchemy model for in-app notifications."""

    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    link_url = Column(String(512), nullable=True)
    metadata_json = Column("metadata", JSON, default=dict)
    is_read = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow)

    def __repr__(self):
        return f"<Notification(id='{self.id}', type='{self.type}')>"
