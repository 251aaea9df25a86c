"""
Tests for AccountStore: registration, authentication, favorites and persistence guarantees.
"""

import json
import threading

import bcrypt
import pytest

from filterflix import account_store
from filterflix.account_store import AccountStore
from filterflix.errors import (
	DuplicateUserError,
	InvalidActionError,
	InvalidCredentialsError,
	PersistenceError,
	UserNotFoundError,
	ValidationError,
)


ARRIVAL = {'title': 'Arrival', 'year': 2016, 'service': 'netflix', 'genres': ['Sci-Fi', 'Drama']}
DUNE_NETFLIX = {'id': 'Dune-2021-netflix', 'title': 'Dune', 'year': 2021, 'service': 'netflix'}
DUNE_HULU = {'id': 'Dune-2021-hulu', 'title': 'Dune', 'year': 2021, 'service': 'hulu'}


def test_register_then_authenticate(store):
	store.register('alice', 's3cret')
	assert store.authenticate('alice', 's3cret') == {'username': 'alice', 'favorites': []}


def test_password_is_stored_as_bcrypt_hash(store, users_file):
	store.register('alice', 's3cret')
	raw = json.loads(users_file.read_text())
	assert raw[0]['username'] == 'alice'
	assert raw[0]['favorites'] == []
	assert raw[0]['passwordHash'].startswith('$2')
	assert 's3cret' not in users_file.read_text()


def test_duplicate_username(store):
	store.register('alice', 'one')
	with pytest.raises(DuplicateUserError):
		store.register('alice', 'two')


@pytest.mark.parametrize('username, password', [('', 'pw'), ('bob', ''), ('   ', 'pw'), (None, 'pw')])
def test_register_requires_fields(store, username, password):
	with pytest.raises(ValidationError):
		store.register(username, password)


def test_overlong_password_is_rejected(store):
	with pytest.raises(ValidationError):
		store.register('alice', 'x' * 73)


def test_wrong_password_and_unknown_user_fail_identically(store):
	store.register('alice', 's3cret')
	with pytest.raises(InvalidCredentialsError) as wrong_password:
		store.authenticate('alice', 'nope')
	with pytest.raises(InvalidCredentialsError) as unknown_user:
		store.authenticate('mallory', 'nope')
	assert str(wrong_password.value) == str(unknown_user.value)
	assert wrong_password.value.code == unknown_user.value.code


def test_get_favorites_unknown_user(store):
	with pytest.raises(UserNotFoundError):
		store.get_favorites('ghost')


def test_add_is_idempotent(store):
	store.register('alice', 'pw')
	store.set_favorite('alice', ARRIVAL, 'add')
	favorites = store.set_favorite('alice', ARRIVAL, 'add')
	assert [f['id'] for f in favorites] == ['Arrival-2016-netflix']
	assert store.get_favorites('alice') == favorites


def test_remove_non_member_is_a_no_op(store, users_file):
	store.register('alice', 'pw')
	store.set_favorite('alice', ARRIVAL, 'add')
	before = users_file.read_text()
	favorites = store.set_favorite('alice', DUNE_HULU, 'remove')
	assert [f['id'] for f in favorites] == ['Arrival-2016-netflix']
	assert users_file.read_text() == before


def test_remove_member(store):
	store.register('alice', 'pw')
	store.set_favorite('alice', ARRIVAL, 'add')
	assert store.set_favorite('alice', ARRIVAL, 'remove') == []


def test_same_title_on_two_services_are_distinct(store):
	store.register('alice', 'pw')
	favorites = store.set_favorite('alice', DUNE_NETFLIX, 'add')
	assert [f['id'] for f in favorites] == ['Dune-2021-netflix']

	favorites = store.set_favorite('alice', DUNE_HULU, 'remove')
	assert [f['id'] for f in favorites] == ['Dune-2021-netflix']


@pytest.mark.parametrize('action', ['toggle', 'ADD', '', None])
def test_invalid_action(store, action):
	store.register('alice', 'pw')
	with pytest.raises(InvalidActionError):
		store.set_favorite('alice', ARRIVAL, action)


def test_set_favorite_unknown_user(store):
	with pytest.raises(UserNotFoundError):
		store.set_favorite('ghost', ARRIVAL, 'add')


def test_set_favorite_requires_movie(store):
	store.register('alice', 'pw')
	with pytest.raises(ValidationError):
		store.set_favorite('alice', {}, 'add')


def test_state_survives_a_new_store_instance(store, users_file):
	store.register('alice', 'pw')
	store.set_favorite('alice', ARRIVAL, 'add')

	reopened = AccountStore(users_file, bcrypt_rounds=4)
	user = reopened.authenticate('alice', 'pw')
	assert [f['id'] for f in user['favorites']] == ['Arrival-2016-netflix']


def test_accounts_without_favorites_key_read_as_empty(users_file):
	legacy_hash = bcrypt.hashpw(b'admin123', bcrypt.gensalt(rounds=4)).decode()
	users_file.write_text(json.dumps([{'username': 'admin', 'passwordHash': legacy_hash}]))
	store = AccountStore(users_file, bcrypt_rounds=4)
	assert store.get_favorites('admin') == []
	assert store.authenticate('admin', 'admin123')['favorites'] == []


@pytest.mark.parametrize('favorites', [['oops'], {'k': 1}, 'Arrival'])
def test_malformed_favorites_are_a_persistence_error(users_file, favorites):
	valid_hash = bcrypt.hashpw(b'pw', bcrypt.gensalt(rounds=4)).decode()
	users_file.write_text(json.dumps([{'username': 'alice', 'passwordHash': valid_hash, 'favorites': favorites}]))
	store = AccountStore(users_file, bcrypt_rounds=4)
	with pytest.raises(PersistenceError):
		store.get_favorites('alice')
	with pytest.raises(PersistenceError):
		store.set_favorite('alice', ARRIVAL, 'add')


def test_missing_store_is_seeded_with_admin(users_file):
	store = AccountStore(users_file, bcrypt_rounds=4, admin_password='admin123')
	assert store.authenticate('admin', 'admin123')['username'] == 'admin'
	assert users_file.exists()


def test_missing_store_without_admin_password_is_empty(store, users_file):
	with pytest.raises(UserNotFoundError):
		store.get_favorites('admin')
	assert json.loads(users_file.read_text()) == []


def test_corrupt_store_is_a_persistence_error(users_file):
	users_file.write_text('{not json')
	store = AccountStore(users_file, bcrypt_rounds=4)
	with pytest.raises(PersistenceError):
		store.register('alice', 'pw')
	assert users_file.read_text() == '{not json'


def test_failed_write_leaves_previous_state(store, users_file, monkeypatch):
	store.register('alice', 'pw')
	before = users_file.read_text()

	def broken_replace(src, dst):
		raise OSError('disk full')

	monkeypatch.setattr(account_store.os, 'replace', broken_replace)
	with pytest.raises(PersistenceError):
		store.register('bob', 'pw')
	monkeypatch.undo()

	assert users_file.read_text() == before
	assert [p.name for p in users_file.parent.iterdir() if p.name.endswith('.tmp')] == []


def test_concurrent_registrations_are_not_lost(store, users_file):
	names = [f"user{i}" for i in range(10)]
	threads = [threading.Thread(target=store.register, args=(name, 'pw')) for name in names]
	for t in threads:
		t.start()
	for t in threads:
		t.join()

	stored = {a['username'] for a in json.loads(users_file.read_text())}
	assert stored == set(names)
