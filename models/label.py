"""Label ORM models and the typed label payloads.

A label classifies a run of events. It owns exactly one payload row whose kind
matches ``label_type``; the pydantic payload classes carry that kind as a class
attribute so a payload is always tied to its label type.
"""

from datetime import datetime
from enum import Enum
from typing import ClassVar, Dict, List, Optional, Sequence, Tuple, Union, TYPE_CHECKING

from pydantic import BaseModel, Field, PositiveInt, conint, field_serializer, field_validator
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import BigInteger, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from utils.errors import ValidationError
from utils.timestamps import to_iso_utc, utc_now
from .base import Base
from .pagination import DateRangeOptions

if TYPE_CHECKING:
    from .event import EventORM


class LabelType(str, Enum):
    """Kind of a label, and of the single payload it owns."""
    SONG = "song"
    AD = "ad"
    ERROR = "error"
    PROGRAM = "program"


class AdBreakType(str, Enum):
    COMMERCIAL_BREAK = "COMMERCIAL_BREAK"
    SPOT_OUTSIDE_BREAK = "SPOT_OUTSIDE_BREAK"
    AUTO_PROMO = "AUTO_PROMO"


class LabelORM(Base):
    """ORM model for a label.

    ``start_time`` and ``end_time`` are derived from the member events whenever
    the membership is written and are never set on their own.
    """
    __tablename__ = 'labels'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    label_type: Mapped[LabelType] = mapped_column(
        SQLEnum(LabelType, name='label_type', values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        index=True
    )
    created_by: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now, index=True)
    start_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    end_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    events: Mapped[List["LabelEventORM"]] = relationship(
        "LabelEventORM", back_populates="label", cascade="all, delete-orphan"
    )
    song: Mapped[Optional["LabelSongORM"]] = relationship(
        "LabelSongORM", back_populates="label", uselist=False, cascade="all, delete-orphan"
    )
    ad: Mapped[Optional["LabelAdORM"]] = relationship(
        "LabelAdORM", back_populates="label", uselist=False, cascade="all, delete-orphan"
    )
    error: Mapped[Optional["LabelErrorORM"]] = relationship(
        "LabelErrorORM", back_populates="label", uselist=False, cascade="all, delete-orphan"
    )
    program: Mapped[Optional["LabelProgramORM"]] = relationship(
        "LabelProgramORM", back_populates="label", uselist=False, cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Label(id={self.id}, label_type={self.label_type}, created_by={self.created_by})>"


class LabelEventORM(Base):
    """Membership of an event in a label. An event is claimed by at most one label."""
    __tablename__ = 'label_events'
    __table_args__ = (
        UniqueConstraint('event_id', name='uq_label_events_event_id'),
    )

    label_id: Mapped[int] = mapped_column(Integer, ForeignKey('labels.id', ondelete='CASCADE'), primary_key=True)
    event_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('events.id', ondelete='CASCADE'), primary_key=True)

    label: Mapped["LabelORM"] = relationship("LabelORM", back_populates="events")
    event: Mapped["EventORM"] = relationship("EventORM", back_populates="labels")

    def __repr__(self):
        return f"<LabelEvent(label_id={self.label_id}, event_id={self.event_id})>"


class LabelSongORM(Base):
    __tablename__ = 'label_songs'

    label_id: Mapped[int] = mapped_column(Integer, ForeignKey('labels.id', ondelete='CASCADE'), primary_key=True)
    song_name: Mapped[str] = mapped_column(String(255), nullable=False)
    artist: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    album: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    language: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    release_year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    label: Mapped["LabelORM"] = relationship("LabelORM", back_populates="song")


class LabelAdORM(Base):
    __tablename__ = 'label_ads'

    label_id: Mapped[int] = mapped_column(Integer, ForeignKey('labels.id', ondelete='CASCADE'), primary_key=True)
    type: Mapped[AdBreakType] = mapped_column(
        SQLEnum(AdBreakType, name='ad_break_type', values_callable=lambda x: [e.value for e in x]),
        nullable=False
    )
    brand: Mapped[str] = mapped_column(String(255), nullable=False)
    product: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    sector: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    format: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    label: Mapped["LabelORM"] = relationship("LabelORM", back_populates="ad")


class LabelErrorORM(Base):
    __tablename__ = 'label_errors'

    label_id: Mapped[int] = mapped_column(Integer, ForeignKey('labels.id', ondelete='CASCADE'), primary_key=True)
    error_type: Mapped[str] = mapped_column(Text, nullable=False)

    label: Mapped["LabelORM"] = relationship("LabelORM", back_populates="error")


class LabelProgramORM(Base):
    __tablename__ = 'label_programs'

    label_id: Mapped[int] = mapped_column(Integer, ForeignKey('labels.id', ondelete='CASCADE'), primary_key=True)
    program_name: Mapped[str] = mapped_column(String(255), nullable=False)
    genre: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    episode_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    season_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    language: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    label: Mapped["LabelORM"] = relationship("LabelORM", back_populates="program")


class SongDetails(BaseModel):
    label_type: ClassVar[LabelType] = LabelType.SONG

    song_name: str = Field(min_length=1)
    artist: Optional[str] = None
    album: Optional[str] = None
    language: Optional[str] = None
    release_year: Optional[PositiveInt] = None


class AdDetails(BaseModel):
    label_type: ClassVar[LabelType] = LabelType.AD

    type: AdBreakType
    brand: str = Field(min_length=1)
    product: Optional[str] = None
    category: Optional[str] = None
    sector: Optional[str] = None
    format: Optional[str] = None


class ErrorDetails(BaseModel):
    label_type: ClassVar[LabelType] = LabelType.ERROR

    error_type: str = Field(min_length=1)


class ProgramDetails(BaseModel):
    label_type: ClassVar[LabelType] = LabelType.PROGRAM

    program_name: str = Field(min_length=1)
    genre: Optional[str] = None
    episode_number: Optional[PositiveInt] = None
    season_number: Optional[PositiveInt] = None
    language: Optional[str] = None


LabelDetails = Union[SongDetails, AdDetails, ErrorDetails, ProgramDetails]

DETAILS_BY_TYPE: Dict[LabelType, type] = {
    LabelType.SONG: SongDetails,
    LabelType.AD: AdDetails,
    LabelType.ERROR: ErrorDetails,
    LabelType.PROGRAM: ProgramDetails,
}

PAYLOAD_ORM_BY_TYPE: Dict[LabelType, type] = {
    LabelType.SONG: LabelSongORM,
    LabelType.AD: LabelAdORM,
    LabelType.ERROR: LabelErrorORM,
    LabelType.PROGRAM: LabelProgramORM,
}


def resolve_details(label_type, payloads: Dict[str, object]) -> LabelDetails:
    """Return the single payload matching ``label_type``.

    ``payloads`` maps payload kinds (``song``, ``ad``, ...) to a details model,
    a plain dict or None. Exactly one kind may be present and it must be the
    kind named by ``label_type``.

    Raises:
        ValidationError: Unknown label type, missing payload, extra payloads or
            a payload that does not validate.
    """
    try:
        label_type = LabelType(label_type)
    except ValueError as e:
        raise ValidationError(f"Unknown label type: {label_type}") from e

    unknown = set(payloads) - {t.value for t in LabelType}
    if unknown:
        raise ValidationError(f"Unknown label details: {', '.join(sorted(unknown))}")

    present = {kind: value for kind, value in payloads.items() if value is not None}
    if set(present) != {label_type.value}:
        raise ValidationError(
            f"Exactly one label details object is required and it must match label type '{label_type.value}'"
        )

    details_class = DETAILS_BY_TYPE[label_type]
    value = present[label_type.value]
    if isinstance(value, details_class):
        return value
    if isinstance(value, BaseModel):
        raise ValidationError(f"Details of kind '{value.label_type.value}' do not match label type '{label_type.value}'")
    try:
        return details_class.model_validate(value)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid {label_type.value} details: {e}") from e


def details_from_orm(label: LabelORM) -> Optional[LabelDetails]:
    payload = getattr(label, LabelType(label.label_type).value)
    if payload is None:
        return None
    details_class = DETAILS_BY_TYPE[LabelType(label.label_type)]
    return details_class(**{name: getattr(payload, name) for name in details_class.model_fields})


def order_events(events: Sequence["EventORM"]) -> List["EventORM"]:
    """Events ascending by timestamp, ties broken by id."""
    return sorted(events, key=lambda e: (e.timestamp, e.id))


def derive_span(events: Sequence["EventORM"]) -> Tuple[int, int, List[Optional[str]]]:
    """Compute ``(start_time, end_time, image_paths)`` for a membership snapshot.

    Raises:
        ValidationError: If ``events`` is empty.
    """
    if not events:
        raise ValidationError("A label requires at least one event")
    ordered = order_events(events)
    return ordered[0].timestamp, ordered[-1].timestamp, [e.image_path for e in ordered]


# Largest ids the BIGINT (events) and INTEGER (labels) key columns hold.
MAX_EVENT_ID = 2 ** 63 - 1
MAX_LABEL_ID = 2 ** 31 - 1

EventId = conint(ge=1, le=MAX_EVENT_ID)


def _parse_event_ids(value):
    if isinstance(value, (str, int)):
        value = [value]
    return value


class LabelCreate(BaseModel):
    event_ids: List[EventId] = Field(min_length=1)
    label_type: LabelType
    notes: Optional[str] = None
    song: Optional[SongDetails] = None
    ad: Optional[AdDetails] = None
    error: Optional[ErrorDetails] = None
    program: Optional[ProgramDetails] = None

    @field_validator('event_ids', mode='before')
    @classmethod
    def single_event_id(cls, value):
        return _parse_event_ids(value)

    def payloads(self) -> Dict[str, object]:
        return {t.value: getattr(self, t.value) for t in LabelType}


class LabelUpdate(BaseModel):
    """Partial update. Only fields present in the request are applied."""
    event_ids: Optional[List[EventId]] = None
    label_type: Optional[LabelType] = None
    notes: Optional[str] = None
    song: Optional[SongDetails] = None
    ad: Optional[AdDetails] = None
    error: Optional[ErrorDetails] = None
    program: Optional[ProgramDetails] = None

    @field_validator('event_ids', mode='before')
    @classmethod
    def single_event_id(cls, value):
        return _parse_event_ids(value)

    def payloads(self) -> Dict[str, object]:
        return {t.value: getattr(self, t.value) for t in LabelType}

    @property
    def has_payload(self) -> bool:
        return any(value is not None for value in self.payloads().values())


class Label(BaseModel):
    id: int
    label_type: LabelType
    created_by: str
    created_at: datetime
    start_time: int
    end_time: int
    notes: Optional[str] = None
    event_ids: List[int] = []
    image_paths: List[Optional[str]] = []
    song: Optional[SongDetails] = None
    ad: Optional[AdDetails] = None
    error: Optional[ErrorDetails] = None
    program: Optional[ProgramDetails] = None
    device_id: Optional[str] = None

    @field_serializer('created_at', when_used='json')
    def created_at_utc(self, value: datetime) -> str:
        return to_iso_utc(value)

    @property
    def details(self) -> Optional[LabelDetails]:
        return getattr(self, self.label_type.value)

    @staticmethod
    def from_orm_label(label: LabelORM, device_id: Optional[str] = None) -> 'Label':
        ordered = order_events([membership.event for membership in label.events])
        details = details_from_orm(label)
        fields = {t.value: None for t in LabelType}
        if details is not None:
            fields[details.label_type.value] = details
        return Label(
            id=label.id,
            label_type=label.label_type,
            created_by=label.created_by,
            created_at=label.created_at,
            start_time=label.start_time,
            end_time=label.end_time,
            notes=label.notes,
            event_ids=[e.id for e in ordered],
            image_paths=[e.image_path for e in ordered],
            device_id=device_id,
            **fields
        )


class LabelFilters(DateRangeOptions):
    """Filters for listing labels. The date range applies to ``created_at``."""
    created_by: Optional[str] = Field(default=None, alias='createdBy')
    label_type: Optional[LabelType] = Field(default=None, alias='labelType')

    @field_validator('created_by', 'label_type', mode='before')
    @classmethod
    def blank_is_none(cls, value):
        return value or None
