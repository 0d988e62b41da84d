from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from utils.timestamps import parse_datetime, to_iso_utc
from .label import Label, LabelFilters, LabelType


class ReportKind(str, Enum):
    USER_LABELING = "user-labeling"
    CONTENT_LABELING = "content-labeling"
    EMPLOYEE_PERFORMANCE = "employee-performance"
    LABEL_TYPE_DISTRIBUTION = "label-type-distribution"
    DEVICE_ACTIVITY_SUMMARY = "device-activity-summary"
    LABELING_EFFICIENCY = "labeling-efficiency"


class ReportOptions(LabelFilters):
    """Options shared by every report.

    Label based reports filter labels on ``created_at``; event based reports
    (content labeling, device activity) filter events on ``created_at``.
    ``day`` (query parameter ``date``) restricts the employee performance
    report to one local calendar day.
    """
    day: Optional[datetime] = Field(default=None, alias='date')
    format: Literal['json', 'csv'] = 'json'

    @field_validator('day', mode='before')
    @classmethod
    def parse_day(cls, value):
        if value is None or value == '':
            return None
        try:
            return parse_datetime(value)
        except (ValueError, OverflowError) as e:
            raise ValueError(f"Invalid date: {value}") from e

    @field_validator('format', mode='before')
    @classmethod
    def lower_format(cls, value):
        return value.lower() if isinstance(value, str) and value else 'json'


class ReportRow(BaseModel):
    """Base of every report row. Dumped with camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserLabelingRow(ReportRow):
    user: str
    label_count: int
    label_type: LabelType
    device_ids: List[str] = []
    created_at: datetime

    @field_serializer('created_at', when_used='json')
    def created_at_utc(self, value: datetime) -> str:
        return to_iso_utc(value)


class ContentLabelingRow(ReportRow):
    device_id: str
    labeled_count: int
    unlabeled_count: int
    total_events: int


class EmployeePerformanceRow(ReportRow):
    user: str
    label_count: int
    labels: List[Label] = []


class LabelTypeDistributionRow(ReportRow):
    label_type: LabelType
    count: int
    percentage: float


class LabelTypeCount(ReportRow):
    label_type: LabelType
    count: int


class DeviceActivityRow(ReportRow):
    device_id: str
    total_events: int
    labeled_events: int
    unlabeled_events: int
    label_types: List[LabelTypeCount] = []


class LabelingEfficiencyRow(ReportRow):
    user: str
    label_count: int
    average_labeling_time_seconds: Optional[float] = None
    total_labeling_time_seconds: Optional[float] = None


@dataclass
class ReportResult:
    kind: ReportKind
    rows: List[Any] = field(default_factory=list)
    total: int = 0
    total_pages: int = 0
    current_page: int = 1
    csv: Optional[str] = None
