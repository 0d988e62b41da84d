"""Unit tests for db/events.py: listings, filters and the unlabeled view."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import text

from db import events as event_store
from db.labels import create_label, delete_label
from models.event import EventAdORM, EventFilters
from models.label import LabelCreate, LabelEventORM
from utils.errors import NotFoundError

T0 = 1_700_000_000


def _label(session, event_ids):
    return create_label(
        session,
        LabelCreate(event_ids=event_ids, label_type='error', error={'error_type': 'Frozen frame'}),
        'annotator@example.com'
    )


# ---------------------------------------------------------------------------
# list_unlabeled_events
# ---------------------------------------------------------------------------

class TestUnlabeledEvents:

    def test_labeled_events_are_hidden_until_label_deleted(self, session, make_event):
        a = make_event(1, T0)
        b = make_event(2, T0 + 1)
        c = make_event(3, T0 + 2)
        label = _label(session, [a])

        page = event_store.list_unlabeled_events(session, EventFilters(sort='asc'))
        assert [e.id for e in page.items] == [b, c]
        assert page.total == 2

        delete_label(session, label.id)
        page = event_store.list_unlabeled_events(session, EventFilters(sort='asc'))
        assert [e.id for e in page.items] == [a, b, c]

    def test_all_events_listing_keeps_labeled_events(self, session, make_event):
        a = make_event(1, T0)
        make_event(2, T0 + 1)
        label = _label(session, [a])

        page = event_store.list_events(session, EventFilters(sort='asc'))
        assert page.total == 2
        assert page.items[0].label_ids == [label.id]
        assert page.items[1].label_ids == []

    def test_filters_by_device_and_type(self, session, make_event):
        make_event(1, T0, device_id='R-1001', type=29)
        make_event(2, T0, device_id='R-1001', type=33)
        make_event(3, T0, device_id='R-2002', type=29)

        page = event_store.list_unlabeled_events(session, EventFilters(deviceId='R-1001', types='29'))
        assert [e.id for e in page.items] == [1]
        page = event_store.list_unlabeled_events(session, EventFilters(types='29,33'))
        assert page.total == 3

    def test_date_range_is_inclusive_in_whole_seconds(self, session, make_event):
        make_event(1, T0 - 1)
        make_event(2, T0)
        make_event(3, T0 + 1)
        start = datetime.fromtimestamp(T0, tz=timezone.utc)
        # 999 ms past T0 still floors to T0
        end = start + timedelta(milliseconds=999)

        page = event_store.list_unlabeled_events(session, EventFilters(startDate=start, endDate=end))
        assert [e.id for e in page.items] == [2]

    def test_iso_strings_are_accepted_as_dates(self, session, make_event):
        make_event(1, T0)
        filters = EventFilters(startDate='2023-11-14T22:13:20Z', endDate='2023-11-14T22:13:20Z')
        assert event_store.list_unlabeled_events(session, filters).total == 1

    def test_order_and_pagination(self, session, make_event):
        for i in range(5):
            make_event(10 + i, T0 + i)

        newest_first = event_store.list_unlabeled_events(session, EventFilters(limit=2))
        assert [e.id for e in newest_first.items] == [14, 13]
        assert newest_first.total == 5
        assert newest_first.total_pages == 3

        last = event_store.list_unlabeled_events(session, EventFilters(limit=2, page=3))
        assert [e.id for e in last.items] == [10]
        assert last.current_page == 3

    def test_page_past_the_end_is_empty(self, session, make_event):
        make_event(1, T0)
        page = event_store.list_unlabeled_events(session, EventFilters(page=5))
        assert page.items == []
        assert page.total == 1


# ---------------------------------------------------------------------------
# get_event
# ---------------------------------------------------------------------------

class TestGetEvent:

    def test_recognitions_are_loaded(self, session, make_event):
        make_event(7, T0, ads=[('Wai Wai Noodles', 0.94)])
        event = event_store.get_event(session, 7)
        assert event.timestamp == T0
        assert [(a.name, a.score) for a in event.ads] == [('Wai Wai Noodles', 0.94)]

    def test_missing_event(self, session):
        with pytest.raises(NotFoundError):
            event_store.get_event(session, 7)

    def test_deleting_event_row_removes_its_dependents(self, session, make_event):
        make_event(7, T0, ads=[('Wai Wai Noodles', 0.94)])
        _label(session, [7])

        session.execute(text("DELETE FROM events WHERE id = :id"), {'id': 7})
        session.commit()
        assert session.query(EventAdORM).count() == 0
        assert session.query(LabelEventORM).count() == 0


# ---------------------------------------------------------------------------
# EventFilters
# ---------------------------------------------------------------------------

class TestEventFilters:

    def test_defaults(self):
        filters = EventFilters()
        assert filters.page == 1
        assert filters.limit == 10
        assert filters.sort == 'desc'
        assert filters.types is None

    def test_blank_values_are_ignored(self):
        filters = EventFilters(types='', deviceId='', startDate='')
        assert filters.types is None
        assert filters.device_id is None
        assert filters.start_date is None

    @pytest.mark.parametrize("params", [
        {'page': '0'},
        {'page': 'abc'},
        {'limit': '0'},
        {'limit': '100000'},
        {'types': '29,abc'},
        {'startDate': 'yesterday'},
        {'sort': 'sideways'},
    ])
    def test_malformed_values_are_rejected(self, params):
        with pytest.raises(PydanticValidationError):
            EventFilters.model_validate(params)
