"""
Creation database model.
"""

from enum import Enum

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class CreationType(str, Enum):
    """Kinds of generated content."""

    ARTICLE = "article"
    BLOG_TITLE = "blog-title"
    IMAGE = "image"
    BACKGROUND_REMOVAL = "background-removal"
    OBJECT_REMOVAL = "object-removal"
    RESUME_REVIEW = "resume-review"


class Creation(Base, TimestampMixin):
    """One persisted generation result."""

    __tablename__ = "creations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Owner, immutable after insert
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    """Generated text, or the public URL of a stored image."""

    type: Mapped[str] = mapped_column(String(50), nullable=False)
    """Values: see CreationType"""

    publish: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    likes: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    """User ids that liked this creation. Never contains duplicates."""

    __table_args__ = (
        Index("ix_creations_publish_created", "publish", "created_at"),
        Index("ix_creations_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Creation(id={self.id}, user_id={self.user_id}, type={self.type})>"
