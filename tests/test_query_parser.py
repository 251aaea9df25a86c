"""
Tests for QueryParser: raw input coercion and service name resolution.
"""

import pytest

from filterflix.errors import ValidationError
from filterflix.query_parser import QueryParser


@pytest.fixture
def parser():
	return QueryParser()


def test_blank_values_mean_not_set(parser):
	query = parser.parse(genres='  ', title='', services='netflix', min_duration='', max_rating=None)
	assert query.genre_terms == ''
	assert query.title_term is None
	assert query.min_duration is None
	assert query.max_rating is None
	assert query.services == ['netflix']


def test_numbers_are_parsed(parser):
	query = parser.parse(services=['hulu'], min_duration=' 90 ', max_rating='7.5')
	assert query.min_duration == 90.0
	assert query.max_rating == 7.5

	query = parser.parse(services=['hulu'], min_duration=120, max_rating=0)
	assert query.min_duration == 120.0
	assert query.max_rating == 0.0


@pytest.mark.parametrize('value', ['abc', 'nan', 'inf', True])
def test_bad_numbers_are_validation_errors(parser, value):
	with pytest.raises(ValidationError):
		parser.parse(services=['hulu'], min_duration=value)


def test_services_by_id_name_and_list(parser):
	assert parser.parse_services('netflix, Hulu ,prime') == ['netflix', 'hulu', 'prime']
	assert parser.parse_services(['Prime Video', 'Disney+', 'Paramount+', 'Max']) == ['prime', 'disney', 'paramount', 'max']
	assert parser.parse_services('disney plus') == ['disney']


def test_services_are_deduplicated_in_order(parser):
	assert parser.parse_services(['hulu', 'netflix', 'HULU', '']) == ['hulu', 'netflix']


def test_service_typos_are_matched_fuzzily(parser):
	assert parser.resolve_service('Netflx') == 'netflix'


def test_unknown_service_is_rejected(parser):
	with pytest.raises(ValidationError, match='blockbuster'):
		parser.parse_services('blockbuster')


# Fragments and look-alikes must not silently resolve to a real service
@pytest.mark.parametrize('name', ['x', 'net', 'disneyland', 'maximum', 'hbo max'])
def test_partial_or_unrelated_names_are_not_fuzzy_matched(parser, name):
	with pytest.raises(ValidationError, match='Unknown streaming service'):
		parser.resolve_service(name)


def test_no_services_gives_empty_list(parser):
	assert parser.parse(genres='drama').services == []


def test_genre_terms_are_split_by_the_query(parser):
	query = parser.parse(genres=' Sci , comedy,,', services='netflix')
	assert query.genre_list() == ['sci', 'comedy']
