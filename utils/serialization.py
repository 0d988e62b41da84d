"""Conversion of domain models into JSON-safe response dicts.

Event ids, event timestamps and label spans are 64-bit integers. They are
written out as decimal strings so that clients parsing JSON numbers as
doubles do not lose precision. The conversion is applied here, explicitly,
and nowhere else. ``created_at`` datetimes are dumped as UTC ISO 8601 with
a ``Z`` suffix by the models themselves.
"""

from config import config
from models.event import Event
from models.label import Label, LabelType
from utils.presign import presign_image_path, presign_image_paths


def to_wire_int(value: int | None) -> str | None:
    """Render a 64-bit integer as its decimal string."""
    if value is None:
        return None
    return str(int(value))


def serialize_event(event: Event, *, presign: bool | None = None, s3_client=None) -> dict:
    """Convert an Event to a response dict.

    ``image_path`` is replaced with a pre-signed URL when image presigning is
    enabled.
    """
    data = event.model_dump(mode='json')
    data['id'] = to_wire_int(event.id)
    data['timestamp'] = to_wire_int(event.timestamp)
    if config.app.presign_images if presign is None else presign:
        data['image_path'] = presign_image_path(event.image_path, client=s3_client)
    return data


def serialize_label(label: Label, *, presign: bool | None = None, s3_client=None) -> dict:
    """Convert a Label to a response dict.

    Only the payload matching ``label_type`` is included. ``device_id`` is
    present only on program guide entries.
    """
    exclude = {t.value for t in LabelType if t is not label.label_type}
    if label.device_id is None:
        exclude.add('device_id')
    data = label.model_dump(mode='json', exclude=exclude)
    data['event_ids'] = [to_wire_int(i) for i in label.event_ids]
    data['start_time'] = to_wire_int(label.start_time)
    data['end_time'] = to_wire_int(label.end_time)
    if config.app.presign_images if presign is None else presign:
        data['image_paths'] = presign_image_paths(label.image_paths, client=s3_client)
    return data


def serialize_page(page, serializer, key: str, **kwargs) -> dict:
    """Convert a Page into ``{key: [...], 'total', 'totalPages', 'currentPage'}``."""
    return {
        key: [serializer(item, **kwargs) for item in page.items],
        'total': page.total,
        'totalPages': page.total_pages,
        'currentPage': page.current_page,
    }
