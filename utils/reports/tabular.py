"""Flat CSV rendering of report records.

Rendering never changes a value: numbers are written in their decimal text
form, datetimes in ISO 8601 (UTC), lists joined with ``,`` and ``None`` as an
empty cell.
"""

import csv
from datetime import datetime
from enum import Enum
from io import StringIO
from typing import Iterable, Mapping, Sequence

from utils.timestamps import to_iso_utc

LIST_DELIMITER = ','


def format_cell(value) -> str:
    if value is None:
        return ''
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, datetime):
        return to_iso_utc(value)
    if isinstance(value, (list, tuple)):
        return LIST_DELIMITER.join(format_cell(item) for item in value)
    return str(value)


def render_csv(fields: Sequence[str], records: Iterable[Mapping]) -> str:
    """Render ``records`` as CSV with a header row in ``fields`` order.

    Keys missing from a record render as empty cells; extra keys are ignored.
    """
    buffer = StringIO()
    writer = csv.writer(buffer, lineterminator='\n')
    writer.writerow(fields)
    for record in records:
        writer.writerow([format_cell(record.get(name)) for name in fields])
    return buffer.getvalue()
