"""SQLAlchemy model for the ``video_urls`` queue table."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class VideoUrl(Base):
    """
    One queued video.

    Attributes:
        url: Video page URL, unique across the table
        view_count: Successful plays so far
        last_played_at: Time of the last successful play, NULL if never played
        status: 'pending', 'completed' or 'error' (terminal)
        device_used: Device name of the last successful play
        error_message: Reason recorded by the last failed play
    """

    __tablename__ = "video_urls"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    url: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    user_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    post_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    caption: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    view_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    last_played_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default="pending", server_default="pending"
    )
    device_used: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    __table_args__ = (
        Index("idx_video_urls_status", "status"),
        Index("idx_video_urls_view_count", "view_count"),
    )

    def __repr__(self) -> str:
        return f"<VideoUrl(id={self.id}, status={self.status}, views={self.view_count})>"
