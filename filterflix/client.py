"""
HTTP client for the FilterFlix API.
Error responses are turned back into the matching FilterFlixError subclass; network problems
surface as requests exceptions.
"""

from typing import Any, Dict, Iterable, List, Mapping, MutableMapping, Optional  # type hints
from urllib.parse import quote  # usernames in URL paths

import requests  # HTTP calls to the API

from loguru import logger  # console logger

from .errors import ERRORS_BY_CODE, FilterFlixError  # taxonomy lookup by code
from .favorites import Session  # result of a successful login


class FilterFlixClient:
	"""Thin wrapper over the JSON endpoints; usable as a FavoritesToggle backend."""

	def __init__(self, base_url: str = 'http://localhost:5555', timeout_s: float = 10.0, session: Optional[requests.Session] = None):
		self.base_url = base_url.rstrip('/')  # API root without trailing slash
		self.timeout_s = timeout_s  # per-request timeout
		self.http = session or requests.Session()  # connection reuse

	def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
		url = f"{self.base_url}{path}"
		logger.debug(f"[Client] {method} {url}")
		response = self.http.request(method, url, timeout=self.timeout_s, **kwargs)
		try:
			payload = response.json()
		except ValueError:
			payload = {}
		if response.ok:
			return payload
		error_cls = ERRORS_BY_CODE.get(payload.get('code'), FilterFlixError)
		raise error_cls(payload.get('error'))

	def health(self) -> bool:
		"""True when the API answers its health check."""
		try:
			return self._request('GET', '/health').get('status') == 'ok'
		except (requests.RequestException, FilterFlixError):
			return False

	def register(self, username: str, password: str) -> None:
		self._request('POST', '/api/register', json={'username': username, 'password': password})

	def login(self, username: str, password: str) -> Session:
		payload = self._request('POST', '/api/login', json={'username': username, 'password': password})
		return Session.from_login(payload['user'])

	def get_favorites(self, username: str) -> List[Dict[str, Any]]:
		return self._request('GET', f"/api/user/{quote(username, safe='')}/favorites")['favorites']

	def set_favorite(self, username: str, movie: Mapping[str, Any], action: str) -> List[Dict[str, Any]]:
		payload = self._request(
			'POST',
			f"/api/favorites/{quote(username, safe='')}",
			json={'movie': dict(movie), 'action': action},
		)
		return payload['favorites']

	def search(
		self,
		services: Iterable[str],
		genres: str = '',
		title: str = '',
		min_duration: Optional[float] = None,
		max_rating: Optional[float] = None,
		limit: Optional[int] = None,
	) -> Dict[str, Any]:
		"""Run a search; returns {count, elapsed_ms, results}."""
		params: Dict[str, Any] = {'services': list(services), 'genres': genres, 'title': title}
		if min_duration is not None:
			params['min_duration'] = min_duration
		if max_rating is not None:
			params['max_rating'] = max_rating
		if limit is not None:
			params['limit'] = limit
		return self._request('GET', '/api/search', params=params)

	def genres(self) -> List[str]:
		return self._request('GET', '/api/genres')['genres']

	def services(self) -> List[Dict[str, str]]:
		return self._request('GET', '/api/services')['services']

	def stats(self) -> Dict[str, Any]:
		return self._request('GET', '/api/stats')['stats']


def client_for(state: MutableMapping[str, Any], api_url: str) -> FilterFlixClient:
	"""Return the client kept in a per-session state mapping, rebuilding it when the API URL changes."""
	client = state.get('client')
	if client is None or client.base_url != api_url.rstrip('/'):
		client = FilterFlixClient(api_url)
		state['client'] = client
	return client
