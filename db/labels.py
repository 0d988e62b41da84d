"""Label aggregation: create, update, delete and list labels over events.

Every write happens in the caller's session and is committed once, so a
label, its memberships and its payload row become visible together or not
at all. The span (``start_time``/``end_time``) is recomputed from the member
events whenever the membership is written.
"""

from contextlib import contextmanager
from datetime import date, datetime
import logging
from typing import Iterable, List

from sqlalchemy import and_, exists, func
from sqlalchemy.orm import Session, aliased, selectinload

from models.event import EventORM
from models.label import (
    PAYLOAD_ORM_BY_TYPE,
    Label,
    LabelCreate,
    LabelDetails,
    LabelEventORM,
    LabelFilters,
    LabelORM,
    LabelType,
    LabelUpdate,
    derive_span,
    order_events,
    resolve_details,
)
from models.pagination import Page
from utils.errors import ConflictError, LabelingError, NotFoundError, ValidationError, translate_store_errors
from utils.timestamps import datetime_to_timestamp, local_day_bounds, to_naive_utc
from db.events import find_events_by_ids

logger = logging.getLogger(__name__)


@contextmanager
def _write(session: Session, action: str):
    """Run the block as one transaction: commit on success, roll back on any error."""
    try:
        with translate_store_errors(action):
            yield
            session.commit()
    except LabelingError:
        session.rollback()
        raise


def label_query(session: Session):
    return session.query(LabelORM).options(
        selectinload(LabelORM.events).selectinload(LabelEventORM.event),
        selectinload(LabelORM.song),
        selectinload(LabelORM.ad),
        selectinload(LabelORM.error),
        selectinload(LabelORM.program),
    )


def _unique_ids(event_ids: Iterable[int]) -> List[int]:
    return list(dict.fromkeys(event_ids))


def _resolve_events(session: Session, event_ids: List[int]) -> List[EventORM]:
    """Load every requested event or fail without writing anything.

    Raises:
        ValidationError: If no event ids were given.
        NotFoundError: If any id does not name an existing event.
    """
    if not event_ids:
        raise ValidationError("At least one event id is required")
    events = find_events_by_ids(session, event_ids)
    missing = set(event_ids) - {e.id for e in events}
    if missing:
        raise NotFoundError(f"Events not found: {', '.join(str(i) for i in sorted(missing))}")
    return events


def _ensure_unclaimed(session: Session, event_ids: List[int], label_id: int | None = None):
    """Fail if another label already holds any of the events."""
    query = session.query(LabelEventORM.event_id).filter(LabelEventORM.event_id.in_(event_ids))
    if label_id is not None:
        query = query.filter(LabelEventORM.label_id != label_id)
    claimed = sorted(row.event_id for row in query.all())
    if claimed:
        raise ConflictError(f"Events already belong to another label: {', '.join(str(i) for i in claimed)}")


def _build_payload(label_type: LabelType, details: LabelDetails):
    return PAYLOAD_ORM_BY_TYPE[label_type](**details.model_dump())


def _set_payload(label: LabelORM, label_type: LabelType, details: LabelDetails):
    """Replace the label's payload with ``details``, removing a payload of another kind."""
    previous = LabelType(label.label_type) if label.label_type is not None else None
    if previous is not None and previous is not label_type:
        setattr(label, previous.value, None)
    existing = getattr(label, label_type.value)
    if existing is None:
        setattr(label, label_type.value, _build_payload(label_type, details))
    else:
        for name, value in details.model_dump().items():
            setattr(existing, name, value)
    label.label_type = label_type


def _set_members(label: LabelORM, events: List[EventORM]):
    """Make ``events`` the label's exact member set and recompute the span."""
    start_time, end_time, _ = derive_span(events)
    wanted = {e.id: e for e in events}
    for membership in list(label.events):
        if membership.event_id not in wanted:
            label.events.remove(membership)
    held = {membership.event_id for membership in label.events}
    for event in order_events(events):
        if event.id not in held:
            label.events.append(LabelEventORM(event_id=event.id, event=event))
    label.start_time = start_time
    label.end_time = end_time


def create_label(session: Session, data: LabelCreate, creator: str) -> Label:
    """Create a label over existing events.

    The payload is validated against ``label_type`` and all events are
    resolved before anything is written.

    Args:
        session (Session): Open database session.
        data (LabelCreate): Event ids, label type, payload and notes.
        creator (str): Identity of the annotator, stored as ``created_by``.

    Returns:
        Label: The stored label with its span and ordered image paths.

    Raises:
        ValidationError: Payload does not match the label type or no events given.
        NotFoundError: Any of the events does not exist.
        ConflictError: Any of the events already belongs to a label.
    """
    details = resolve_details(data.label_type, data.payloads())
    event_ids = _unique_ids(data.event_ids)

    with _write(session, "create label"):
        events = _resolve_events(session, event_ids)
        _ensure_unclaimed(session, event_ids)

        label = LabelORM(created_by=creator, notes=data.notes)
        _set_members(label, events)
        label.label_type = details.label_type
        session.add(label)
        session.flush()
        setattr(label, details.label_type.value, _build_payload(details.label_type, details))

    logger.info("Label %s (%s) created by %s over %d events", label.id, label.label_type.value, creator, len(event_ids))
    return Label.from_orm_label(label)


def update_label(session: Session, label_id: int, changes: LabelUpdate) -> Label:
    """Apply a partial update to a label.

    ``event_ids`` replaces the member set and recomputes the span. A new
    ``label_type`` requires the matching payload; a payload alone is checked
    against the current type.

    Raises:
        NotFoundError: The label or any new member event does not exist.
        ValidationError: The payload does not match the final label type, or
            ``event_ids`` is empty.
        ConflictError: A new member event already belongs to another label.
    """
    fields = changes.model_fields_set

    with _write(session, "update label"):
        label = session.get(LabelORM, label_id)
        if label is None:
            raise NotFoundError(f"Label {label_id} not found")

        if changes.label_type is not None or changes.has_payload:
            final_type = changes.label_type or LabelType(label.label_type)
            details = resolve_details(final_type, changes.payloads())
            _set_payload(label, final_type, details)

        if 'event_ids' in fields:
            if changes.event_ids is None:
                raise ValidationError("event_ids cannot be null")
            event_ids = _unique_ids(changes.event_ids)
            events = _resolve_events(session, event_ids)
            _ensure_unclaimed(session, event_ids, label_id=label.id)
            _set_members(label, events)

        if 'notes' in fields:
            label.notes = changes.notes

    logger.info("Label %s updated (%s)", label_id, ', '.join(sorted(fields)) or 'no changes')
    return Label.from_orm_label(label)


def delete_label(session: Session, label_id: int):
    """Delete a label, its memberships and its payload.

    Raises:
        NotFoundError: If the label does not exist.
    """
    with _write(session, "delete label"):
        label = session.get(LabelORM, label_id)
        if label is None:
            raise NotFoundError(f"Label {label_id} not found")
        session.delete(label)
    logger.info("Label %s deleted", label_id)


def delete_labels_bulk(session: Session, label_ids: Iterable[int]) -> int:
    """Delete every existing label among ``label_ids``. Unknown ids are skipped.

    Returns:
        int: Number of labels deleted.
    """
    ids = _unique_ids(label_ids)
    if not ids:
        return 0
    with _write(session, "delete labels"):
        labels = session.query(LabelORM).filter(LabelORM.id.in_(ids)).all()
        for label in labels:
            session.delete(label)
    logger.info("Deleted %d of %d requested labels", len(labels), len(ids))
    return len(labels)


def _device_member_clause(device_id: str):
    # aliased so the clause stays correlated only to labels inside joined queries
    member = aliased(LabelEventORM)
    member_event = aliased(EventORM)
    return exists().where(and_(
        member.label_id == LabelORM.id,
        member.event_id == member_event.id,
        member_event.device_id == device_id,
    ))


def apply_label_filters(query, filters: LabelFilters):
    """Filter a LabelORM query by creation range, creator, type and device membership."""
    if filters.start_date is not None:
        query = query.filter(LabelORM.created_at >= to_naive_utc(filters.start_date))
    if filters.end_date is not None:
        query = query.filter(LabelORM.created_at <= to_naive_utc(filters.end_date))
    if filters.created_by:
        query = query.filter(LabelORM.created_by == filters.created_by)
    if filters.label_type is not None:
        query = query.filter(LabelORM.label_type == filters.label_type)
    if filters.device_id:
        query = query.filter(_device_member_clause(filters.device_id))
    return query


def list_labels(session: Session, filters: LabelFilters) -> Page[Label]:
    """Return one page of labels, ordered by creation time."""
    with translate_store_errors("list labels"):
        total = apply_label_filters(session.query(func.count(LabelORM.id)), filters).scalar()

        if filters.sort == 'asc':
            order = (LabelORM.created_at.asc(), LabelORM.id.asc())
        else:
            order = (LabelORM.created_at.desc(), LabelORM.id.desc())
        rows = (
            apply_label_filters(label_query(session), filters)
            .order_by(*order)
            .offset(filters.offset)
            .limit(filters.limit)
            .all()
        )
        return Page.build([Label.from_orm_label(label) for label in rows], total, filters)


def get_program_guide(session: Session, day: date | datetime, device_id: str) -> List[Label]:
    """Labels on a device whose span starts within a local calendar day, in broadcast order.

    Args:
        day (date | datetime): The calendar day, in the application timezone.
        device_id (str): Device whose events the labels must cover.
    """
    start, end = local_day_bounds(day)
    with translate_store_errors("get program guide"):
        rows = (
            label_query(session)
            .filter(_device_member_clause(device_id))
            .filter(LabelORM.start_time >= datetime_to_timestamp(start))
            .filter(LabelORM.start_time <= datetime_to_timestamp(end))
            .order_by(LabelORM.start_time.asc(), LabelORM.id.asc())
            .all()
        )
        return [Label.from_orm_label(label, device_id=device_id) for label in rows]
