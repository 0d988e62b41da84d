"""Unit tests for the report pipeline (db/reports.py and utils/reports)."""

import csv
import time
from datetime import timedelta
from io import StringIO

import pytest

from db import reports as queries
from db.labels import create_label
from models.event import EventORM
from models.label import LabelCreate, LabelORM, LabelType
from models.report import ReportKind, ReportOptions
from utils.errors import ValidationError
from utils.reports import REPORTS, get_report_definition, run_report, serialize_report
from utils.timestamps import utc_now

ALICE = 'alice@example.com'
BOB = 'bob@example.com'

PAYLOADS = {
    'song': {'song': {'song_name': 'Resham Firiri'}},
    'ad': {'ad': {'type': 'COMMERCIAL_BREAK', 'brand': 'Wai Wai'}},
    'error': {'error': {'error_type': 'Frozen frame'}},
    'program': {'program': {'program_name': 'Evening News'}},
}


@pytest.fixture
def add_label(session):
    def _add_label(event_ids, label_type='song', creator=ALICE):
        return create_label(
            session, LabelCreate(event_ids=event_ids, label_type=label_type, **PAYLOADS[label_type]), creator
        )
    return _add_label


@pytest.fixture
def workload(make_event, add_label):
    """Two devices, three annotators' worth of labels and some unlabeled events."""
    now = int(time.time())
    ids = iter(range(1, 100))
    for device_id in ('R-1001', 'R-2002'):
        for offset in range(4):
            make_event(next(ids), now - 600 + offset, device_id=device_id)
    add_label([1, 2], 'song', ALICE)
    add_label([3], 'ad', ALICE)
    add_label([5], 'song', BOB)
    add_label([6], 'error', 'carol@example.com')
    return now


def _all_pages(session, kind, limit, **params):
    first = run_report(session, kind, ReportOptions(limit=limit, **params))
    rows = list(first.rows)
    for page in range(2, first.total_pages + 1):
        rows.extend(run_report(session, kind, ReportOptions(limit=limit, page=page, **params)).rows)
    return first, rows


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

class TestMetrics:

    def test_percentage(self):
        assert queries.percentage(1, 4) == 25.0
        assert queries.percentage(0, 0) == 0.0

    def test_latency_summary(self):
        assert queries.latency_summary([10.0, 20.0]) == (15.0, 30.0)
        assert queries.latency_summary([]) == (None, None)


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------

class TestReportPagination:

    @pytest.mark.parametrize("kind", list(ReportKind))
    def test_pages_cover_every_group_once(self, session, workload, kind):
        total = run_report(session, kind, ReportOptions()).total
        assert total > 0
        for limit in (1, 10, total):
            first, rows = _all_pages(session, kind, limit)
            assert first.total == total
            assert first.total_pages == -(-total // limit)
            assert len(rows) == total

    def test_page_past_the_end_is_empty(self, session, workload):
        result = run_report(session, ReportKind.LABEL_TYPE_DISTRIBUTION, ReportOptions(page=50))
        assert result.rows == []
        assert result.current_page == 50
        assert result.total == 3


# ---------------------------------------------------------------------------
# Individual reports
# ---------------------------------------------------------------------------

class TestLabelTypeDistribution:

    def test_counts_and_percentages(self, session, workload):
        rows = run_report(session, ReportKind.LABEL_TYPE_DISTRIBUTION, ReportOptions()).rows
        assert [(r.label_type, r.count) for r in rows] == [
            (LabelType.SONG, 2), (LabelType.AD, 1), (LabelType.ERROR, 1)
        ]
        assert rows[0].percentage == pytest.approx(50.0)
        assert sum(r.percentage for r in rows) == pytest.approx(100.0)

    def test_nothing_matches(self, session, workload):
        result = run_report(session, ReportKind.LABEL_TYPE_DISTRIBUTION, ReportOptions(createdBy='nobody'))
        assert result.rows == []
        assert result.total == 0
        assert result.total_pages == 0

    def test_filter_by_device(self, session, workload):
        rows = run_report(session, ReportKind.LABEL_TYPE_DISTRIBUTION, ReportOptions(deviceId='R-2002')).rows
        assert {r.label_type for r in rows} == {LabelType.SONG, LabelType.ERROR}
        assert all(r.percentage == pytest.approx(50.0) for r in rows)


class TestContentLabeling:

    def test_labeled_and_unlabeled_per_device(self, session, workload):
        rows = run_report(session, ReportKind.CONTENT_LABELING, ReportOptions(sort='asc')).rows
        assert [(r.device_id, r.labeled_count, r.unlabeled_count, r.total_events) for r in rows] == [
            ('R-1001', 3, 1, 4),
            ('R-2002', 2, 2, 4),
        ]


class TestDeviceActivity:

    def test_label_type_breakdown(self, session, workload):
        rows = run_report(session, ReportKind.DEVICE_ACTIVITY_SUMMARY, ReportOptions(sort='asc')).rows
        first = rows[0]
        assert first.device_id == 'R-1001'
        assert (first.total_events, first.labeled_events, first.unlabeled_events) == (4, 3, 1)
        assert [(t.label_type, t.count) for t in first.label_types] == [(LabelType.SONG, 1), (LabelType.AD, 1)]


class TestUserLabeling:

    def test_groups_carry_devices(self, session, workload):
        rows = run_report(session, ReportKind.USER_LABELING, ReportOptions(createdBy=ALICE, sort='asc')).rows
        assert [(r.user, r.label_type, r.label_count, r.device_ids) for r in rows] == [
            (ALICE, LabelType.SONG, 1, ['R-1001']),
            (ALICE, LabelType.AD, 1, ['R-1001']),
        ]


class TestEmployeePerformance:

    def test_busiest_creator_first(self, session, workload):
        rows = run_report(session, ReportKind.EMPLOYEE_PERFORMANCE, ReportOptions()).rows
        assert [r.user for r in rows] == [ALICE, BOB, 'carol@example.com']
        assert rows[0].label_count == 2
        assert len(rows[0].labels) == 2

    def test_restricted_to_one_day(self, session, workload, monkeypatch):
        from config import config
        monkeypatch.setattr(config.app, 'timezone', 'UTC')
        today = utc_now().date()

        assert run_report(session, ReportKind.EMPLOYEE_PERFORMANCE, ReportOptions(date=today.isoformat())).total == 3
        yesterday = (today - timedelta(days=1)).isoformat()
        assert run_report(session, ReportKind.EMPLOYEE_PERFORMANCE, ReportOptions(date=yesterday)).total == 0


class TestLabelingEfficiency:

    def test_latency_from_first_event(self, session, workload):
        rows = run_report(session, ReportKind.LABELING_EFFICIENCY, ReportOptions(createdBy=BOB)).rows
        assert len(rows) == 1
        # event 5 was captured about ten minutes before the label was created
        assert rows[0].average_labeling_time_seconds == pytest.approx(600, abs=30)
        assert rows[0].total_labeling_time_seconds == pytest.approx(600, abs=30)

    def test_label_without_events_has_no_latency(self, session, workload):
        session.delete(session.get(EventORM, 5))
        session.commit()

        rows = run_report(session, ReportKind.LABELING_EFFICIENCY, ReportOptions(createdBy=BOB)).rows
        assert rows[0].label_count == 1
        assert rows[0].average_labeling_time_seconds is None
        assert rows[0].total_labeling_time_seconds is None
        assert session.query(LabelORM).filter(LabelORM.created_by == BOB).count() == 1


# ---------------------------------------------------------------------------
# Definitions and output
# ---------------------------------------------------------------------------

class TestReportOutput:

    def test_unknown_report(self):
        with pytest.raises(ValidationError):
            get_report_definition('weekly-summary')

    def test_every_kind_is_defined(self):
        assert set(REPORTS) == set(ReportKind)

    @pytest.mark.parametrize("kind, header", [
        (ReportKind.USER_LABELING, ['user', 'labelCount', 'labelType', 'deviceIds', 'createdAt']),
        (ReportKind.CONTENT_LABELING, ['deviceId', 'labeledCount', 'unlabeledCount', 'totalEvents']),
        (ReportKind.EMPLOYEE_PERFORMANCE,
         ['user', 'labelCount', 'labelId', 'labelType', 'createdAt', 'eventIds', 'imagePaths', 'notes']),
        (ReportKind.LABEL_TYPE_DISTRIBUTION, ['labelType', 'count', 'percentage']),
        (ReportKind.DEVICE_ACTIVITY_SUMMARY,
         ['deviceId', 'totalEvents', 'labeledEvents', 'unlabeledEvents', 'labelTypes']),
        (ReportKind.LABELING_EFFICIENCY,
         ['user', 'labelCount', 'averageLabelingTimeSeconds', 'totalLabelingTimeSeconds']),
    ])
    def test_csv_header(self, session, workload, kind, header):
        result = run_report(session, kind, ReportOptions(format='csv'))
        lines = list(csv.reader(StringIO(result.csv)))
        assert lines[0] == header
        assert all(len(line) == len(header) for line in lines)

    def test_csv_employee_performance_has_one_line_per_label(self, session, workload):
        result = run_report(session, ReportKind.EMPLOYEE_PERFORMANCE, ReportOptions(format='csv', createdBy=ALICE))
        records = list(csv.DictReader(StringIO(result.csv)))
        assert len(records) == 2
        assert {r['eventIds'] for r in records} == {'1,2', '3'}

    def test_csv_device_activity_label_types(self, session, workload):
        result = run_report(session, ReportKind.DEVICE_ACTIVITY_SUMMARY, ReportOptions(format='csv', sort='asc'))
        records = list(csv.DictReader(StringIO(result.csv)))
        assert records[0]['labelTypes'] == 'song:1;ad:1'

    def test_json_uses_camel_case(self, session, workload):
        result = run_report(session, ReportKind.CONTENT_LABELING, ReportOptions(sort='asc'))
        data = serialize_report(result)
        assert data['total'] == 2
        assert data['totalPages'] == 1
        assert data['currentPage'] == 1
        assert data['report'][0] == {
            'deviceId': 'R-1001', 'labeledCount': 3, 'unlabeledCount': 1, 'totalEvents': 4
        }

    def test_json_employee_performance_labels_are_serialized(self, session, workload):
        data = serialize_report(run_report(session, ReportKind.EMPLOYEE_PERFORMANCE, ReportOptions(createdBy=BOB)))
        label = data['report'][0]['labels'][0]
        assert label['event_ids'] == ['5']
        assert label['label_type'] == 'song'

    def test_created_at_is_utc_in_json_and_csv(self, session, workload):
        options = {'createdBy': BOB}
        data = serialize_report(run_report(session, ReportKind.USER_LABELING, ReportOptions(**options)))
        result = run_report(session, ReportKind.USER_LABELING, ReportOptions(format='csv', **options))
        record, = csv.DictReader(StringIO(result.csv))
        assert data['report'][0]['createdAt'].endswith('Z')
        assert data['report'][0]['createdAt'] == record['createdAt']

        data = serialize_report(run_report(session, ReportKind.EMPLOYEE_PERFORMANCE, ReportOptions(**options)))
        assert data['report'][0]['labels'][0]['created_at'] == record['createdAt']

    def test_format_is_case_insensitive(self):
        assert ReportOptions(format='CSV').format == 'csv'
        assert ReportOptions(format='').format == 'json'
