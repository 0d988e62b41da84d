"""Label endpoints.

Labels classify runs of events. The creator of a label is the authenticated
user's email.
"""

import logging

from db import events as event_store
from db import labels as label_store
from db.database import session_scope
from middlewares.authenticate import authenticate
from models.event import EventFilters
from models.label import MAX_LABEL_ID, LabelCreate, LabelFilters, LabelUpdate
from routes import route
from utils import Response, use
from utils.errors import LabelingError, ValidationError
from utils.http import error_response, parse_int, parse_model, path_param, query_params, request_body
from utils.serialization import serialize_event, serialize_label, serialize_page
from utils.timestamps import parse_datetime

logger = logging.getLogger(__name__)


def _parse_label_ids(body: dict) -> list[int]:
    """Integer ids from ``labelIds``. Anything that is not a label id in range is dropped."""
    raw = body.get('labelIds')
    if not isinstance(raw, list):
        raise ValidationError("labelIds must be a list of label ids")
    ids = []
    for value in raw:
        if isinstance(value, bool):
            continue
        if isinstance(value, str) and value.strip().isdecimal():
            value = int(value.strip())
        if isinstance(value, int) and 1 <= value <= MAX_LABEL_ID:
            ids.append(value)
    if not ids:
        raise ValidationError("labelIds must contain at least one valid label id")
    return ids


@route('labels', 'POST')
@use(authenticate)
def create_label(event, response: Response):
    """Create a label over one or more events.

    The label type decides which details object is required: exactly one of
    ``song``, ``ad``, ``error`` or ``program`` must be given and it must match.
    start_time and end_time are taken from the earliest and latest event.
    ---
    tags:
        - labels
    requestBody:
        required: true
        content:
            application/json:
                schema:
                    type: object
                    required: [event_ids, label_type]
                    properties:
                        event_ids:
                            type: array
                            items:
                                type: string
                        label_type:
                            type: string
                            enum: [song, ad, error, program]
                        notes:
                            type: string
                        song:
                            type: object
                        ad:
                            type: object
                        error:
                            type: object
                        program:
                            type: object
    responses:
        201:
            description: The created label
        400:
            description: Invalid body, or details that do not match the label type
        404:
            description: One of the events does not exist
        409:
            description: One of the events already belongs to a label
    """
    try:
        data = parse_model(LabelCreate, request_body(event))
        with session_scope() as session:
            label = label_store.create_label(session, data, creator=event['user'].email)
        return response.status(201).json({
            'success': True,
            'message': 'Label created successfully',
            'label': serialize_label(label),
        })
    except LabelingError as e:
        return error_response(response, e)


@route('labels', 'GET')
@use(authenticate)
def list_labels(event, response: Response):
    """Retrieve a paginated list of labels.

    Labels are ordered by creation time.
    ---
    tags:
        - labels
    parameters:
        -   in: query
            name: page
            schema:
                type: integer
            required: false
        -   in: query
            name: limit
            schema:
                type: integer
            required: false
        -   in: query
            name: startDate
            schema:
                type: string
                format: date-time
            required: false
            description: Only labels created at or after this time
        -   in: query
            name: endDate
            schema:
                type: string
                format: date-time
            required: false
            description: Only labels created at or before this time
        -   in: query
            name: createdBy
            schema:
                type: string
            required: false
        -   in: query
            name: labelType
            schema:
                type: string
                enum: [song, ad, error, program]
            required: false
        -   in: query
            name: deviceId
            schema:
                type: string
            required: false
            description: Only labels with at least one event from this device
        -   in: query
            name: sort
            schema:
                type: string
                enum: [asc, desc]
            required: false
    responses:
        200:
            description: A page of labels
        400:
            description: Invalid filters
    """
    try:
        filters = parse_model(LabelFilters, query_params(event))
        with session_scope() as session:
            page = label_store.list_labels(session, filters)
        return {'success': True, **serialize_page(page, serialize_label, 'labels')}
    except LabelingError as e:
        return error_response(response, e)


@route('labels/unlabeled', 'GET')
@use(authenticate)
def list_unlabeled_events(event, response: Response):
    """Retrieve a paginated list of events that belong to no label.
    ---
    tags:
        - labels
    parameters:
        -   in: query
            name: page
            schema:
                type: integer
            required: false
        -   in: query
            name: limit
            schema:
                type: integer
            required: false
        -   in: query
            name: startDate
            schema:
                type: string
                format: date-time
            required: false
        -   in: query
            name: endDate
            schema:
                type: string
                format: date-time
            required: false
        -   in: query
            name: deviceId
            schema:
                type: string
            required: false
        -   in: query
            name: types
            schema:
                type: string
            required: false
            description: Comma separated event type codes
        -   in: query
            name: sort
            schema:
                type: string
                enum: [asc, desc]
            required: false
    responses:
        200:
            description: A page of unlabeled events
        400:
            description: Invalid filters
    """
    try:
        filters = parse_model(EventFilters, query_params(event))
        with session_scope() as session:
            page = event_store.list_unlabeled_events(session, filters)
        return {'success': True, **serialize_page(page, serialize_event, 'events')}
    except LabelingError as e:
        return error_response(response, e)


@route('labels/program-guides/{date}/{device_id}', 'GET')
@use(authenticate)
def get_program_guide(event, response: Response):
    """Retrieve the labels of a device for one day, in broadcast order.

    The day is taken in the configured application timezone.
    ---
    tags:
        - labels
    parameters:
        -   in: path
            name: date
            schema:
                type: string
                format: date
            required: true
        -   in: path
            name: device_id
            schema:
                type: string
            required: true
    responses:
        200:
            description: Labels whose start time falls within the day
        400:
            description: Invalid date
    """
    try:
        raw_date = path_param(event, 'date')
        try:
            day = parse_datetime(raw_date)
        except (ValueError, OverflowError) as e:
            raise ValidationError(f"Invalid date: {raw_date}") from e
        device_id = path_param(event, 'device_id')
        with session_scope() as session:
            labels = label_store.get_program_guide(session, day, device_id)
        return {'success': True, 'labels': [serialize_label(label) for label in labels]}
    except LabelingError as e:
        return error_response(response, e)


@route('labels/bulk', 'DELETE')
@use(authenticate)
def delete_labels_bulk(event, response: Response):
    """Delete several labels at once.

    Ids that are not integers are ignored, as are ids of labels that do not exist.
    ---
    tags:
        - labels
    requestBody:
        required: true
        content:
            application/json:
                schema:
                    type: object
                    properties:
                        labelIds:
                            type: array
                            items:
                                type: integer
    responses:
        200:
            description: The labels were deleted
        400:
            description: No valid label ids were given
    """
    try:
        label_ids = _parse_label_ids(request_body(event))
        with session_scope() as session:
            deleted = label_store.delete_labels_bulk(session, label_ids)
        return {'success': True, 'message': 'Labels deleted successfully', 'deleted': deleted}
    except LabelingError as e:
        return error_response(response, e)


@route('labels/{label_id}', 'PUT')
@use(authenticate)
def update_label(event, response: Response):
    """Update a label.

    Only the fields present in the body are changed. ``event_ids`` replaces the
    whole set of events and recomputes start_time and end_time. Changing
    ``label_type`` requires the matching details object.
    ---
    tags:
        - labels
    parameters:
        -   in: path
            name: label_id
            schema:
                type: integer
            required: true
    requestBody:
        required: true
        content:
            application/json:
                schema:
                    type: object
    responses:
        200:
            description: The updated label
        400:
            description: Invalid body, or details that do not match the label type
        404:
            description: The label or one of the events does not exist
        409:
            description: One of the events already belongs to another label
    """
    try:
        label_id = parse_int(path_param(event, 'label_id'), 'label_id', 1, MAX_LABEL_ID)
        changes = parse_model(LabelUpdate, request_body(event))
        with session_scope() as session:
            label = label_store.update_label(session, label_id, changes)
        return {'success': True, 'message': 'Label updated successfully', 'label': serialize_label(label)}
    except LabelingError as e:
        return error_response(response, e)


@route('labels/{label_id}', 'DELETE')
@use(authenticate)
def delete_label(event, response: Response):
    """Delete a label together with its event links and details.
    ---
    tags:
        - labels
    parameters:
        -   in: path
            name: label_id
            schema:
                type: integer
            required: true
    responses:
        200:
            description: The label was deleted
        404:
            description: No label with this id
    """
    try:
        label_id = parse_int(path_param(event, 'label_id'), 'label_id', 1, MAX_LABEL_ID)
        with session_scope() as session:
            label_store.delete_label(session, label_id)
        return {'success': True, 'message': 'Label deleted successfully'}
    except LabelingError as e:
        return error_response(response, e)
