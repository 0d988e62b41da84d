"""Event Store reads.

Events are never written here. ``list_unlabeled_events`` is the anti-join
view: events with no label membership at all.
"""

import logging

from sqlalchemy import exists, func
from sqlalchemy.orm import Session, selectinload

from models.event import Event, EventFilters, EventORM
from models.label import LabelEventORM
from models.pagination import Page
from utils.errors import NotFoundError, translate_store_errors
from utils.timestamps import datetime_to_timestamp

logger = logging.getLogger(__name__)


def _unlabeled_clause():
    return ~exists().where(LabelEventORM.event_id == EventORM.id)


def _filtered_query(session: Session, filters: EventFilters, unlabeled_only: bool = False):
    """Build the filtered (unordered, unpaginated) event query.

    Date bounds are inclusive and converted to the integer-second unit of
    ``events.timestamp``.
    """
    query = session.query(EventORM)
    if unlabeled_only:
        query = query.filter(_unlabeled_clause())
    if filters.start_date is not None:
        query = query.filter(EventORM.timestamp >= datetime_to_timestamp(filters.start_date))
    if filters.end_date is not None:
        query = query.filter(EventORM.timestamp <= datetime_to_timestamp(filters.end_date))
    if filters.device_id:
        query = query.filter(EventORM.device_id == filters.device_id)
    if filters.types:
        query = query.filter(EventORM.type.in_(filters.types))
    return query


def find_event_by_id(session: Session, event_id: int) -> EventORM | None:
    return session.get(EventORM, event_id)


def find_events_by_ids(session: Session, event_ids) -> list[EventORM]:
    """Fetch the events with the given ids. Missing ids are simply absent from the result."""
    ids = list(set(event_ids))
    if not ids:
        return []
    return session.query(EventORM).filter(EventORM.id.in_(ids)).all()


def count_events(session: Session, filters: EventFilters, unlabeled_only: bool = False) -> int:
    return _filtered_query(session, filters, unlabeled_only).with_entities(func.count(EventORM.id)).scalar()


def find_events(session: Session, filters: EventFilters, unlabeled_only: bool = False) -> Page[Event]:
    """Return one page of events matching ``filters``, ordered by timestamp.

    The total is computed in the same session as the page, so both reflect
    the same snapshot.
    """
    with translate_store_errors("list events"):
        total = count_events(session, filters, unlabeled_only)

        order = EventORM.timestamp.asc() if filters.sort == 'asc' else EventORM.timestamp.desc()
        tiebreak = EventORM.id.asc() if filters.sort == 'asc' else EventORM.id.desc()
        rows = (
            _filtered_query(session, filters, unlabeled_only)
            .options(
                selectinload(EventORM.ads),
                selectinload(EventORM.channels),
                selectinload(EventORM.content),
                selectinload(EventORM.labels),
            )
            .order_by(order, tiebreak)
            .offset(filters.offset)
            .limit(filters.limit)
            .all()
        )
        logger.debug("Found %d of %d events (unlabeled_only=%s)", len(rows), total, unlabeled_only)
        return Page.build([Event.from_orm_event(e) for e in rows], total, filters)


def list_events(session: Session, filters: EventFilters) -> Page[Event]:
    return find_events(session, filters)


def list_unlabeled_events(session: Session, filters: EventFilters) -> Page[Event]:
    """Return one page of events that belong to no label."""
    return find_events(session, filters, unlabeled_only=True)


def get_event(session: Session, event_id: int) -> Event:
    """Fetch a single event with its recognitions.

    Raises:
        NotFoundError: If no event has this id.
    """
    with translate_store_errors("get event"):
        event = find_event_by_id(session, event_id)
        if event is None:
            raise NotFoundError(f"Event {event_id} not found")
        return Event.from_orm_event(event)
