"""Unit tests for the route registry and the middleware decorator."""

import pytest

from middlewares.authorise import Role, authorise
from routes import get_path_param_keys, parse_path_parameters, parse_query_parameters
from utils import Response, use


def _handler(event, response):
    """Say hello.
    ---
    tags:
        - greetings
    """
    response.json({'hello': event['user'].email})


class _User:
    email = 'annotator@example.com'

    def __init__(self, role):
        self.role = role


class TestUse:

    def test_description_is_merged_before_properties(self):
        wrapped = use(authorise(Role.ADMIN))(_handler)
        head, properties = wrapped.__doc__.split('---')
        assert 'Requires one of the roles: admin.' in head
        assert 'greetings' in properties

    def test_terminating_middleware_stops_the_request(self):
        wrapped = use(authorise(Role.ADMIN))(_handler)
        _, response, _ = wrapped({'user': _User('user'), 'path': '/reports/x'})
        assert response.body['statusCode'] == 403

    def test_request_reaches_the_handler(self):
        wrapped = use(authorise(Role.ADMIN, Role.USER))(_handler)
        response = Response()
        wrapped({'user': _User('user')}, response)
        assert response.body['statusCode'] == 200


class TestPathMatching:

    def test_static_route_wins(self):
        assert parse_path_parameters('/labels/bulk') == ('/labels/bulk', {})

    def test_dynamic_route(self):
        assert parse_path_parameters('/labels/42') == ('/labels/{label_id}', {'label_id': '42'})

    def test_placeholders(self):
        assert get_path_param_keys('/labels/program-guides/{date}/{device_id}') == ['date', 'device_id']

    def test_unknown_path(self):
        with pytest.raises(KeyError):
            parse_path_parameters('/observations/1')

    def test_query_string(self):
        assert parse_query_parameters('/labels/unlabeled?page=2&deviceId=R-1001') == (
            '/labels/unlabeled', {'page': '2', 'deviceId': 'R-1001'}
        )
