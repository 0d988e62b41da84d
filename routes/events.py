"""Event endpoints.

Read-only access to the events recorded by the devices.
"""

from db import events as event_store
from db.database import session_scope
from middlewares.authenticate import authenticate
from models.event import EventFilters
from models.label import MAX_EVENT_ID
from routes import route
from utils import Response, use
from utils.errors import LabelingError
from utils.http import error_response, parse_int, parse_model, path_param, query_params
from utils.serialization import serialize_event, serialize_page


@route('events', 'GET')
@use(authenticate)
def list_events(event, response: Response):
    """Retrieve a paginated list of events.

    Events are ordered by timestamp. Ids and timestamps are returned as strings.
    ---
    tags:
        - events
    parameters:
        -   in: query
            name: page
            schema:
                type: integer
            required: false
            description: Page number, starting at 1
        -   in: query
            name: limit
            schema:
                type: integer
            required: false
            description: Number of events per page (default 10)
        -   in: query
            name: startDate
            schema:
                type: string
                format: date-time
            required: false
            description: Only events at or after this time
        -   in: query
            name: endDate
            schema:
                type: string
                format: date-time
            required: false
            description: Only events at or before this time
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
            description: A page of events
            content:
                application/json:
                    schema:
                        type: object
                        properties:
                            success:
                                type: boolean
                            events:
                                type: array
                                items:
                                    type: object
                            total:
                                type: integer
                            totalPages:
                                type: integer
                            currentPage:
                                type: integer
        400:
            description: Invalid filters
    """
    try:
        filters = parse_model(EventFilters, query_params(event))
        with session_scope() as session:
            page = event_store.list_events(session, filters)
        return {'success': True, **serialize_page(page, serialize_event, 'events')}
    except LabelingError as e:
        return error_response(response, e)


@route('events/{event_id}', 'GET')
@use(authenticate)
def get_event(event, response: Response):
    """Retrieve a single event with its recognised ads, channels and content.
    ---
    tags:
        - events
    parameters:
        -   in: path
            name: event_id
            schema:
                type: string
            required: true
    responses:
        200:
            description: The event
        400:
            description: The event id is not an integer
        404:
            description: No event with this id
    """
    try:
        event_id = parse_int(path_param(event, 'event_id'), 'event_id', 1, MAX_EVENT_ID)
        with session_scope() as session:
            found = event_store.get_event(session, event_id)
        return {'success': True, 'event': serialize_event(found)}
    except LabelingError as e:
        return error_response(response, e)
