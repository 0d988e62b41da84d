# Base file for testing the API endpoints.
import json
from urllib.parse import urlencode

from lambda_function import lambda_handler as local_handler

ADMIN_EMAIL = 'test.admin@example.com'
ANNOTATOR_EMAIL = 'annotator@example.com'

T0 = 1_700_000_000
FIRST_EVENT_ID = 1_700_000_000_000


def call(method: str, path: str, token: str | None = None, body=None, query: dict | None = None):
    """Invoke the handler the way API Gateway would and return ``(status, body)``.

    JSON bodies are decoded; anything else (CSV) is returned as text.
    """
    if query:
        path = f"{path}?{urlencode(query)}"
    headers = {'Content-Type': 'application/json'}
    if token is not None:
        headers['Authorization'] = f'Bearer {token}'
    event = {
        'path': path,
        'httpMethod': method,
        'headers': headers,
    }
    if body is not None:
        event['body'] = json.dumps(body)
    response = local_handler(event, None)
    content_type = response.get('headers', {}).get('Content-Type')
    if content_type == 'application/json':
        return response['statusCode'], json.loads(response['body'])
    return response['statusCode'], response.get('body')


def create_label(token: str, event_ids, label_type='song', **details):
    """Create a label through the API and return the created label."""
    if not details:
        details = {'song': {'song_name': 'Resham Firiri', 'artist': 'Traditional'}}
    status, body = call('POST', '/labels', token, {
        'event_ids': [str(i) for i in event_ids],
        'label_type': label_type,
        **details
    })
    assert status == 201, body
    return body['label']
