"""Event ORM models.

Events are device-observed recognitions (channels, ads and content detected in
a captured frame). They are written by the ingestion path and are read-only for
the labeling API.
"""

from datetime import datetime
from typing import List, Optional, TYPE_CHECKING

from pydantic import BaseModel, field_serializer, field_validator
from sqlalchemy import BigInteger, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from utils.timestamps import to_iso_utc, utc_now
from .base import Base
from .pagination import DateRangeOptions

if TYPE_CHECKING:
    from .label import LabelEventORM


class EventORM(Base):
    """ORM model for a recognition event.

    Maps to the ``events`` table. The id is assigned by the ingestion path
    and the timestamp is in seconds since the epoch.
    """
    __tablename__ = 'events'

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    device_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    type: Mapped[int] = mapped_column(Integer, nullable=False)
    image_path: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    max_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)

    ads: Mapped[List["EventAdORM"]] = relationship(
        "EventAdORM", back_populates="event", cascade="all, delete-orphan"
    )
    channels: Mapped[List["EventChannelORM"]] = relationship(
        "EventChannelORM", back_populates="event", cascade="all, delete-orphan"
    )
    content: Mapped[List["EventContentORM"]] = relationship(
        "EventContentORM", back_populates="event", cascade="all, delete-orphan"
    )
    labels: Mapped[List["LabelEventORM"]] = relationship(
        "LabelEventORM", back_populates="event", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Event(id={self.id}, device_id={self.device_id}, timestamp={self.timestamp})>"


class EventAdORM(Base):
    """An ad recognised within an event."""
    __tablename__ = 'event_ads'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('events.id', ondelete='CASCADE'), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    event: Mapped["EventORM"] = relationship("EventORM", back_populates="ads")


class EventChannelORM(Base):
    """A channel recognised within an event."""
    __tablename__ = 'event_channels'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('events.id', ondelete='CASCADE'), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    event: Mapped["EventORM"] = relationship("EventORM", back_populates="channels")


class EventContentORM(Base):
    """A content fragment recognised within an event."""
    __tablename__ = 'event_content'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('events.id', ondelete='CASCADE'), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    event: Mapped["EventORM"] = relationship("EventORM", back_populates="content")


class Recognition(BaseModel):
    id: int
    name: str
    score: Optional[float] = None


class Event(BaseModel):
    id: int
    device_id: str
    timestamp: int
    type: int
    image_path: Optional[str] = None
    max_score: Optional[float] = None
    created_at: datetime
    ads: List[Recognition] = []
    channels: List[Recognition] = []
    content: List[Recognition] = []
    label_ids: List[int] = []

    @field_serializer('created_at', when_used='json')
    def created_at_utc(self, value: datetime) -> str:
        return to_iso_utc(value)

    @staticmethod
    def from_orm_event(event: EventORM) -> 'Event':
        return Event(
            id=event.id,
            device_id=event.device_id,
            timestamp=event.timestamp,
            type=event.type,
            image_path=event.image_path,
            max_score=event.max_score,
            created_at=event.created_at,
            ads=[Recognition(id=a.id, name=a.name, score=a.score) for a in event.ads],
            channels=[Recognition(id=c.id, name=c.name, score=c.score) for c in event.channels],
            content=[Recognition(id=c.id, name=c.name, score=c.score) for c in event.content],
            label_ids=sorted(membership.label_id for membership in event.labels)
        )


class EventFilters(DateRangeOptions):
    """Filters for event listings. The date range applies to ``timestamp``."""
    types: Optional[List[int]] = None

    @field_validator('types', mode='before')
    @classmethod
    def split_types(cls, value):
        if value is None or value == '':
            return None
        if isinstance(value, str):
            parts = [part.strip() for part in value.split(',') if part.strip()]
            try:
                return [int(part) for part in parts] or None
            except ValueError as e:
                raise ValueError(f"Invalid type codes: {value}") from e
        return value
