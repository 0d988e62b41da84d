from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from config import config
from utils.timestamps import parse_datetime

T = TypeVar('T')

SortDirection = Literal['asc', 'desc']


def count_pages(total: int, limit: int) -> int:
    """Number of pages needed to show ``total`` items, ``limit`` per page."""
    return -(-total // limit)


class PageOptions(BaseModel):
    """Pagination and sort parameters shared by every listing.

    Pages are 1-based. Query string aliases (``startDate``, ``deviceId``, ...)
    are accepted alongside the attribute names.
    """
    model_config = ConfigDict(populate_by_name=True)

    page: int = Field(default=1, ge=1)
    limit: int = Field(default_factory=lambda: config.app.default_page_size, ge=1)
    sort: SortDirection = 'desc'

    @field_validator('limit')
    @classmethod
    def limit_within_maximum(cls, value: int) -> int:
        if value > config.app.max_page_size:
            raise ValueError(f"limit must not exceed {config.app.max_page_size}")
        return value

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class DateRangeOptions(PageOptions):
    start_date: Optional[datetime] = Field(default=None, alias='startDate')
    end_date: Optional[datetime] = Field(default=None, alias='endDate')
    device_id: Optional[str] = Field(default=None, alias='deviceId')

    @field_validator('start_date', 'end_date', mode='before')
    @classmethod
    def parse_dates(cls, value):
        if value is None or value == '':
            return None
        try:
            return parse_datetime(value)
        except (ValueError, OverflowError) as e:
            raise ValueError(f"Invalid date: {value}") from e

    @field_validator('device_id', mode='before')
    @classmethod
    def blank_device_is_none(cls, value):
        return value or None


@dataclass
class Page(Generic[T]):
    items: List[T] = field(default_factory=list)
    total: int = 0
    total_pages: int = 0
    current_page: int = 1

    @staticmethod
    def build(items: List[T], total: int, options: PageOptions) -> 'Page[T]':
        return Page(
            items=items,
            total=total,
            total_pages=count_pages(total, options.limit),
            current_page=options.page
        )
