"""Unit tests for request parsing in utils/http.py and the label id list of bulk delete."""

import pytest

from models.label import MAX_EVENT_ID, MAX_LABEL_ID
from routes.labels import _parse_label_ids
from utils.errors import ValidationError
from utils.http import parse_int


class TestParseInt:

    def test_surrounding_whitespace(self):
        assert parse_int(' 42 ', 'label_id') == 42

    @pytest.mark.parametrize("value", ['abc', '', None, '4.5'])
    def test_not_an_integer(self, value):
        with pytest.raises(ValidationError):
            parse_int(value, 'label_id')

    def test_bounds_are_inclusive(self):
        assert parse_int(str(MAX_LABEL_ID), 'label_id', 1, MAX_LABEL_ID) == MAX_LABEL_ID
        assert parse_int(str(MAX_EVENT_ID), 'event_id', 1, MAX_EVENT_ID) == MAX_EVENT_ID

    @pytest.mark.parametrize("value, maximum", [
        ('0', MAX_LABEL_ID),
        ('-3', MAX_LABEL_ID),
        ('99999999999', MAX_LABEL_ID),
        ('18446744073709551616', MAX_EVENT_ID),
    ])
    def test_out_of_range(self, value, maximum):
        with pytest.raises(ValidationError):
            parse_int(value, 'id', 1, maximum)


class TestParseLabelIds:

    def test_numbers_and_numeric_strings(self):
        assert _parse_label_ids({'labelIds': [3, ' 4 ', '5']}) == [3, 4, 5]

    def test_invalid_entries_are_dropped(self):
        body = {'labelIds': ['²', 'abc', True, 2 ** 40, '99999999999', 0, -1, 1.5, None, 7]}
        assert _parse_label_ids(body) == [7]

    @pytest.mark.parametrize("raw", [['²'], ['abc'], [2 ** 64], []])
    def test_nothing_valid(self, raw):
        with pytest.raises(ValidationError):
            _parse_label_ids({'labelIds': raw})

    def test_not_a_list(self):
        with pytest.raises(ValidationError):
            _parse_label_ids({'labelIds': '5'})
