"""Report pipeline.

Every report follows the same steps: count the groups matching the options,
fetch one page of grouped rows, then optionally flatten the rows into CSV.
A ``ReportDefinition`` supplies the per-report pieces (counting, fetching,
CSV fields and flattening); ``run_report`` does the rest.
"""

from dataclasses import dataclass
import logging
from typing import Any, Callable, Dict, List, Sequence

from sqlalchemy.orm import Session

from db import reports as queries
from models.pagination import count_pages
from models.report import ReportKind, ReportOptions, ReportResult
from utils.errors import ValidationError, translate_store_errors
from utils.reports.tabular import render_csv
from utils.serialization import serialize_label

logger = logging.getLogger(__name__)


def _dump_row(row) -> dict:
    return row.model_dump(by_alias=True)


def _row_to_wire(row, **kwargs) -> dict:
    return row.model_dump(by_alias=True, mode='json')


@dataclass(frozen=True)
class ReportDefinition:
    kind: ReportKind
    fields: Sequence[str]
    count: Callable[[Session, ReportOptions], int]
    fetch: Callable[[Session, ReportOptions], List[Any]]
    flatten: Callable[[Any], List[dict]] = lambda row: [_dump_row(row)]
    to_wire: Callable[..., dict] = _row_to_wire


def _flatten_employee_performance(row) -> List[dict]:
    return [
        {
            'user': row.user,
            'labelCount': row.label_count,
            'labelId': label.id,
            'labelType': label.label_type,
            'createdAt': label.created_at,
            'eventIds': label.event_ids,
            'imagePaths': [path or '' for path in label.image_paths],
            'notes': label.notes or '',
        }
        for label in row.labels
    ]


def _employee_performance_to_wire(row, **kwargs) -> dict:
    return {
        'user': row.user,
        'labelCount': row.label_count,
        'labels': [serialize_label(label, **kwargs) for label in row.labels],
    }


def _flatten_device_activity(row) -> List[dict]:
    record = _dump_row(row)
    record['labelTypes'] = ';'.join(f"{t.label_type.value}:{t.count}" for t in row.label_types)
    return [record]


REPORTS: Dict[ReportKind, ReportDefinition] = {
    definition.kind: definition
    for definition in (
        ReportDefinition(
            kind=ReportKind.USER_LABELING,
            fields=('user', 'labelCount', 'labelType', 'deviceIds', 'createdAt'),
            count=queries.count_user_labeling,
            fetch=queries.fetch_user_labeling,
        ),
        ReportDefinition(
            kind=ReportKind.CONTENT_LABELING,
            fields=('deviceId', 'labeledCount', 'unlabeledCount', 'totalEvents'),
            count=queries.count_devices,
            fetch=queries.fetch_content_labeling,
        ),
        ReportDefinition(
            kind=ReportKind.EMPLOYEE_PERFORMANCE,
            fields=('user', 'labelCount', 'labelId', 'labelType', 'createdAt', 'eventIds', 'imagePaths', 'notes'),
            count=queries.count_employee_performance,
            fetch=queries.fetch_employee_performance,
            flatten=_flatten_employee_performance,
            to_wire=_employee_performance_to_wire,
        ),
        ReportDefinition(
            kind=ReportKind.LABEL_TYPE_DISTRIBUTION,
            fields=('labelType', 'count', 'percentage'),
            count=queries.count_label_type_distribution,
            fetch=queries.fetch_label_type_distribution,
        ),
        ReportDefinition(
            kind=ReportKind.DEVICE_ACTIVITY_SUMMARY,
            fields=('deviceId', 'totalEvents', 'labeledEvents', 'unlabeledEvents', 'labelTypes'),
            count=queries.count_devices,
            fetch=queries.fetch_device_activity,
            flatten=_flatten_device_activity,
        ),
        ReportDefinition(
            kind=ReportKind.LABELING_EFFICIENCY,
            fields=('user', 'labelCount', 'averageLabelingTimeSeconds', 'totalLabelingTimeSeconds'),
            count=queries.count_labeling_efficiency,
            fetch=queries.fetch_labeling_efficiency,
        ),
    )
}


def get_report_definition(kind) -> ReportDefinition:
    try:
        return REPORTS[ReportKind(kind)]
    except ValueError as e:
        raise ValidationError(f"Unknown report: {kind}") from e


def to_csv(definition: ReportDefinition, rows: List[Any]) -> str:
    """Flatten report rows into CSV text using the report's field order."""
    return render_csv(definition.fields, [record for row in rows for record in definition.flatten(row)])


def run_report(session: Session, kind, options: ReportOptions) -> ReportResult:
    """Build one page of a report.

    Args:
        session (Session): Open database session. Count and page are read in it.
        kind (ReportKind | str): Which report to run.
        options (ReportOptions): Filters, pagination, sort and output format.

    Returns:
        ReportResult: Rows of the page, the number of groups and, for the
            ``csv`` format, the rendered CSV text.

    Raises:
        ValidationError: Unknown report kind.
        InternalError: The store failed while building the report.
    """
    definition = get_report_definition(kind)
    with translate_store_errors(f"build {definition.kind.value} report"):
        total = definition.count(session, options)
        rows = definition.fetch(session, options)

    logger.info("Built %s report: page %d, %d rows of %d", definition.kind.value, options.page, len(rows), total)
    return ReportResult(
        kind=definition.kind,
        rows=rows,
        total=total,
        total_pages=count_pages(total, options.limit),
        current_page=options.page,
        csv=to_csv(definition, rows) if options.format == 'csv' else None,
    )


def serialize_report(result: ReportResult, **kwargs) -> dict:
    """Convert a ReportResult into ``{'report', 'total', 'totalPages', 'currentPage'}``."""
    definition = REPORTS[result.kind]
    return {
        'report': [definition.to_wire(row, **kwargs) for row in result.rows],
        'total': result.total,
        'totalPages': result.total_pages,
        'currentPage': result.current_page,
    }
