"""Grouped queries behind the six reports.

Each report has a ``count_*`` function returning the number of groups for the
filters (the report total) and a ``fetch_*`` function returning one page of
rows. Label based reports filter labels through ``apply_label_filters``;
content labeling and device activity filter events on their own columns.
"""

import logging
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import distinct, func
from sqlalchemy.orm import Session

from db.labels import apply_label_filters, label_query
from models.event import EventORM
from models.label import Label, LabelEventORM, LabelORM, LabelType
from models.report import (
    ContentLabelingRow,
    DeviceActivityRow,
    EmployeePerformanceRow,
    LabelTypeCount,
    LabelTypeDistributionRow,
    LabelingEfficiencyRow,
    ReportOptions,
    UserLabelingRow,
)
from utils.timestamps import epoch_seconds, local_day_bounds, to_naive_utc

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------

def _filter_day(query, options: ReportOptions):
    """Restrict labels to the local calendar day given by ``options.day``."""
    if options.day is None:
        return query
    start, end = local_day_bounds(options.day)
    return query.filter(
        LabelORM.created_at >= to_naive_utc(start),
        LabelORM.created_at <= to_naive_utc(end),
    )


def _filter_events(query, options: ReportOptions):
    if options.start_date is not None:
        query = query.filter(EventORM.created_at >= to_naive_utc(options.start_date))
    if options.end_date is not None:
        query = query.filter(EventORM.created_at <= to_naive_utc(options.end_date))
    if options.device_id:
        query = query.filter(EventORM.device_id == options.device_id)
    return query


def _page(query, options: ReportOptions):
    return query.offset(options.offset).limit(options.limit)


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

def percentage(count: int, total: int) -> float:
    """Share of ``count`` in ``total`` as a percentage, 0 when ``total`` is 0."""
    if total <= 0:
        return 0.0
    return count / total * 100


def latency_summary(latencies: Iterable[float]) -> Tuple[Optional[float], Optional[float]]:
    """Return ``(average, total)`` of labeling latencies, both None when there are none."""
    latencies = list(latencies)
    if not latencies:
        return None, None
    total = sum(latencies)
    return total / len(latencies), total


# ---------------------------------------------------------------------------
# User labeling: (creator, label type, created_at)
# ---------------------------------------------------------------------------

_USER_LABELING_KEY = (LabelORM.created_by, LabelORM.label_type, LabelORM.created_at)


def count_user_labeling(session: Session, options: ReportOptions) -> int:
    return apply_label_filters(session.query(*_USER_LABELING_KEY), options).distinct().count()


def fetch_user_labeling(session: Session, options: ReportOptions) -> List[UserLabelingRow]:
    created_at = LabelORM.created_at.asc() if options.sort == 'asc' else LabelORM.created_at.desc()
    groups = _page(
        apply_label_filters(session.query(*_USER_LABELING_KEY, func.count(LabelORM.id)), options)
        .group_by(*_USER_LABELING_KEY)
        .order_by(created_at, LabelORM.created_by.asc(), LabelORM.label_type.asc()),
        options
    ).all()

    rows = []
    for created_by, label_type, created, label_count in groups:
        devices = (
            apply_label_filters(
                session.query(distinct(EventORM.device_id))
                .join(LabelEventORM, LabelEventORM.event_id == EventORM.id)
                .join(LabelORM, LabelORM.id == LabelEventORM.label_id),
                options
            )
            .filter(
                LabelORM.created_by == created_by,
                LabelORM.label_type == label_type,
                LabelORM.created_at == created,
            )
            .all()
        )
        rows.append(UserLabelingRow(
            user=created_by,
            label_count=label_count,
            label_type=label_type,
            device_ids=sorted(device_id for device_id, in devices),
            created_at=created,
        ))
    return rows


# ---------------------------------------------------------------------------
# Per device: content labeling and device activity
# ---------------------------------------------------------------------------

def count_devices(session: Session, options: ReportOptions) -> int:
    return _filter_events(session.query(EventORM.device_id), options).distinct().count()


def _device_counts(session: Session, options: ReportOptions):
    """Page of ``(device_id, total_events, labeled_events)`` ordered by device id."""
    device_order = EventORM.device_id.asc() if options.sort == 'asc' else EventORM.device_id.desc()
    return _page(
        _filter_events(
            session.query(
                EventORM.device_id,
                func.count(distinct(EventORM.id)),
                func.count(distinct(LabelEventORM.event_id)),
            ).outerjoin(LabelEventORM, LabelEventORM.event_id == EventORM.id),
            options
        )
        .group_by(EventORM.device_id)
        .order_by(device_order),
        options
    ).all()


def fetch_content_labeling(session: Session, options: ReportOptions) -> List[ContentLabelingRow]:
    return [
        ContentLabelingRow(
            device_id=device_id,
            labeled_count=labeled,
            unlabeled_count=total - labeled,
            total_events=total,
        )
        for device_id, total, labeled in _device_counts(session, options)
    ]


def _label_type_breakdown(session: Session, device_id: str, options: ReportOptions) -> List[LabelTypeCount]:
    counts = (
        _filter_events(
            session.query(LabelORM.label_type, func.count(distinct(LabelORM.id)))
            .join(LabelEventORM, LabelEventORM.label_id == LabelORM.id)
            .join(EventORM, EventORM.id == LabelEventORM.event_id),
            options
        )
        .filter(EventORM.device_id == device_id)
        .group_by(LabelORM.label_type)
        .all()
    )
    order = list(LabelType)
    return [
        LabelTypeCount(label_type=label_type, count=count)
        for label_type, count in sorted(counts, key=lambda c: order.index(LabelType(c[0])))
    ]


def fetch_device_activity(session: Session, options: ReportOptions) -> List[DeviceActivityRow]:
    return [
        DeviceActivityRow(
            device_id=device_id,
            total_events=total,
            labeled_events=labeled,
            unlabeled_events=total - labeled,
            label_types=_label_type_breakdown(session, device_id, options),
        )
        for device_id, total, labeled in _device_counts(session, options)
    ]


# ---------------------------------------------------------------------------
# Per creator: employee performance and labeling efficiency
# ---------------------------------------------------------------------------

def _creator_filters(query, options: ReportOptions, by_day: bool = False):
    query = apply_label_filters(query, options)
    if by_day:
        query = _filter_day(query, options)
    return query


def _count_creators(session: Session, options: ReportOptions, by_day: bool = False) -> int:
    return _creator_filters(session.query(LabelORM.created_by), options, by_day).distinct().count()


def _creator_groups(session: Session, options: ReportOptions, by_day: bool = False):
    """Page of ``(created_by, label_count)``, busiest creator first."""
    label_count = func.count(LabelORM.id)
    return _page(
        _creator_filters(session.query(LabelORM.created_by, label_count), options, by_day)
        .group_by(LabelORM.created_by)
        .order_by(label_count.desc(), LabelORM.created_by.asc()),
        options
    ).all()


def count_employee_performance(session: Session, options: ReportOptions) -> int:
    return _count_creators(session, options, by_day=True)


def fetch_employee_performance(session: Session, options: ReportOptions) -> List[EmployeePerformanceRow]:
    if options.sort == 'asc':
        order = (LabelORM.created_at.asc(), LabelORM.id.asc())
    else:
        order = (LabelORM.created_at.desc(), LabelORM.id.desc())

    rows = []
    for created_by, label_count in _creator_groups(session, options, by_day=True):
        labels = (
            _creator_filters(label_query(session), options, by_day=True)
            .filter(LabelORM.created_by == created_by)
            .order_by(*order)
            .all()
        )
        rows.append(EmployeePerformanceRow(
            user=created_by,
            label_count=label_count,
            labels=[Label.from_orm_label(label) for label in labels],
        ))
    return rows


def count_labeling_efficiency(session: Session, options: ReportOptions) -> int:
    return _count_creators(session, options)


def fetch_labeling_efficiency(session: Session, options: ReportOptions) -> List[LabelingEfficiencyRow]:
    """Labeling latency per creator.

    The latency of a label is its ``created_at`` minus the timestamp of its
    earliest member event, in seconds. Labels without member events are
    counted but contribute no latency.
    """
    rows = []
    for created_by, label_count in _creator_groups(session, options):
        spans = (
            apply_label_filters(
                session.query(LabelORM.id, LabelORM.created_at, func.min(EventORM.timestamp))
                .outerjoin(LabelEventORM, LabelEventORM.label_id == LabelORM.id)
                .outerjoin(EventORM, EventORM.id == LabelEventORM.event_id),
                options
            )
            .filter(LabelORM.created_by == created_by)
            .group_by(LabelORM.id, LabelORM.created_at)
            .all()
        )
        average, total = latency_summary(
            epoch_seconds(created) - first_event
            for _, created, first_event in spans
            if first_event is not None
        )
        rows.append(LabelingEfficiencyRow(
            user=created_by,
            label_count=label_count,
            average_labeling_time_seconds=average,
            total_labeling_time_seconds=total,
        ))
    return rows


# ---------------------------------------------------------------------------
# Label type distribution
# ---------------------------------------------------------------------------

def count_label_type_distribution(session: Session, options: ReportOptions) -> int:
    return apply_label_filters(session.query(LabelORM.label_type), options).distinct().count()


def fetch_label_type_distribution(session: Session, options: ReportOptions) -> List[LabelTypeDistributionRow]:
    total_labels = apply_label_filters(session.query(func.count(LabelORM.id)), options).scalar() or 0
    label_count = func.count(LabelORM.id)
    groups = _page(
        apply_label_filters(session.query(LabelORM.label_type, label_count), options)
        .group_by(LabelORM.label_type)
        .order_by(label_count.desc(), LabelORM.label_type.asc()),
        options
    ).all()
    logger.debug("Label type distribution over %d labels", total_labels)
    return [
        LabelTypeDistributionRow(
            label_type=label_type,
            count=count,
            percentage=percentage(count, total_labels),
        )
        for label_type, count in groups
    ]
