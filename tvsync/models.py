"""
SQLAlchemy ORM Models for the sync service

This module defines the database models for credentials, channels and categories.
"""
from datetime import datetime, timezone
from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all ORM models"""
    pass


class Credential(Base):
    """Server credential used to authenticate against the media server API"""
    __tablename__ = "credentials"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    server_url: Mapped[str] = mapped_column(String, nullable=False)
    username: Mapped[str] = mapped_column(String, nullable=False)
    password: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    def __repr__(self) -> str:
        return f"<Credential(id={self.id}, server_url={self.server_url}, username={self.username})>"


class Channel(Base):
    """Live stream entry as last received from the server"""
    __tablename__ = "channels"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    num: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(String, nullable=False)
    stream_type: Mapped[str] = mapped_column(String, nullable=False, default="")
    stream_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0, index=True)
    stream_icon: Mapped[str] = mapped_column(String, nullable=False, default="")
    epg_channel_id: Mapped[str] = mapped_column(String, nullable=False, default="")
    added: Mapped[str] = mapped_column(String, nullable=False, default="")
    custom_sid: Mapped[str] = mapped_column(String, nullable=False, default="")
    tv_archive: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    direct_source: Mapped[str] = mapped_column(String, nullable=False, default="")
    tv_archive_duration: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    category_id: Mapped[str] = mapped_column(String, nullable=False, default="", index=True)
    category_ids: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    thumbnail: Mapped[str] = mapped_column(String, nullable=False, default="")
    synced_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    def __repr__(self) -> str:
        return f"<Channel(stream_id={self.stream_id}, name={self.name})>"


class Category(Base):
    """Channel grouping bucket as last received from the server"""
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category_id: Mapped[str] = mapped_column(String, nullable=False, default="", index=True)
    category_name: Mapped[str] = mapped_column(String, nullable=False)
    parent_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    synced_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    def __repr__(self) -> str:
        return f"<Category(category_id={self.category_id}, category_name={self.category_name})>"
