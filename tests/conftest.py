"""
Shared fixtures: a small on-disk catalog, a catalog index, a search engine and an account store.
Only netflix, hulu and prime have sources; the other services fail to load on purpose.
"""

import csv
from pathlib import Path

import pytest

from filterflix.account_store import AccountStore
from filterflix.catalog import CatalogIndex
from filterflix.data_loader import CatalogLoader
from filterflix.search_engine import SearchEngine


HEADER = ['Title', 'Genre', 'Year', 'Rating (1-10)', 'Director', 'Cast', 'Duration (min)', 'Description']

NETFLIX_ROWS = [
	['Arrival', "['Sci-Fi', 'Drama']", '2016', '8', 'Denis Villeneuve', 'Amy Adams; Jeremy Renner', '116', 'Aliens arrive.'],
	['Dune', "['Sci-Fi', 'Adventure']", '2021', '8', 'Denis Villeneuve', 'Timothée Chalamet; Zendaya', '155', 'Desert planet.'],
	['Glass Onion', 'Comedy, Mystery', '2022', '7.1', 'Rian Johnson', 'Daniel Craig', '139', 'A private island.'],
	['Unrated Doc', "['Documentary']", '2020', '', 'Someone', '', '95', 'No rating yet.'],
	['No Genre Movie', '', '2020', '5', 'Nobody', '', '100', 'Cannot be indexed.'],
	['Short Laughs', "['Comedy']", '2019', '4.5', 'Jane Doe', ' ; Solo Act ;', '', 'Runtime unknown.'],
]

HULU_ROWS = [
	['Dune', "['Sci-Fi', 'Adventure']", '2021', '8', 'Denis Villeneuve', 'Timothée Chalamet; Zendaya', '155', 'Desert planet.'],
	['Palm Springs', "['Comedy', 'Romance']", '2020', '5', 'Max Barbakow', 'Andy Samberg', '90', 'Time loop.'],
]

# Lower-case headers and an explicit id column
PRIME_HEADER = ['id', 'title', 'genre', 'year', 'rating', 'director', 'cast', 'duration', 'description']
PRIME_ROWS = [
	['tt1', 'Air', 'Drama, Sport', '2023', '3.5', 'Ben Affleck', 'Matt Damon', '112', 'Sneakers.'],
]


def write_csv(path: Path, header, rows) -> None:
	with open(path, 'w', encoding='utf-8', newline='') as f:
		writer = csv.writer(f)
		writer.writerow(header)
		writer.writerows(rows)


@pytest.fixture
def csv_dir(tmp_path):
	directory = tmp_path / 'csvs'
	directory.mkdir()
	write_csv(directory / 'netflix.csv', HEADER, NETFLIX_ROWS)
	write_csv(directory / 'hulu.csv', HEADER, HULU_ROWS)
	write_csv(directory / 'prime.csv', PRIME_HEADER, PRIME_ROWS)
	return directory


@pytest.fixture
def loader(csv_dir):
	return CatalogLoader(csv_dir)


@pytest.fixture
def catalog(loader):
	return CatalogIndex(loader)


@pytest.fixture
def engine(catalog):
	return SearchEngine(catalog)


@pytest.fixture
def users_file(tmp_path):
	return tmp_path / 'users.json'


@pytest.fixture
def store(users_file):
	return AccountStore(users_file, bcrypt_rounds=4)  # minimum cost keeps tests fast
