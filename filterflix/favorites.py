"""
Favorites toggle protocol.
A Session carries who is signed in (or that nobody is); FavoritesToggle flips a movie's
favorite state through any backend exposing set_favorite(username, movie, action).
"""

from dataclasses import dataclass, field  # session container
from datetime import datetime, timezone  # session start time
from typing import Any, Dict, List, Mapping, Union  # type hints

from loguru import logger  # console logger

from .errors import GuestModeError  # favorites need a real account
from .models import ACTION_ADD, ACTION_REMOVE, MovieRecord, identity_of


GUEST_USERNAME = 'guest'

Movie = Union[MovieRecord, Mapping[str, Any]]


def _as_dict(movie: Movie) -> Dict[str, Any]:
	return movie.to_dict() if isinstance(movie, MovieRecord) else dict(movie)


@dataclass
class Session:
	"""
	Explicit sign-in state handed to whatever needs to know the current user.
	How long a session lives, and where it is kept, is up to the hosting layer.
	"""
	username: str
	favorites: List[Dict[str, Any]] = field(default_factory=list)
	is_guest: bool = False
	started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

	@classmethod
	def guest(cls) -> 'Session':
		"""A non-persisted identity that may search but never keeps favorites."""
		return cls(username=GUEST_USERNAME, is_guest=True)

	@classmethod
	def from_login(cls, user: Mapping[str, Any]) -> 'Session':
		"""Build a session from the {username, favorites} view returned by a login."""
		return cls(username=user['username'], favorites=list(user.get('favorites') or []))

	def favorite_ids(self) -> List[str]:
		return [identity_of(f) for f in self.favorites]


class FavoritesToggle:
	"""Client-side add/remove contract: look up the current state, ask for the opposite."""

	def __init__(self, backend):
		self.backend = backend  # AccountStore or FilterFlixClient

	def is_favorite(self, session: Session, movie: Movie) -> bool:
		identity = identity_of(_as_dict(movie))
		return any(identity_of(f) == identity for f in session.favorites)

	def toggle(self, session: Session, movie: Movie) -> List[Dict[str, Any]]:
		"""Flip the movie's favorite state and return the updated favorites list."""
		if session.is_guest:
			raise GuestModeError()

		payload = _as_dict(movie)
		action = ACTION_REMOVE if self.is_favorite(session, payload) else ACTION_ADD
		favorites = self.backend.set_favorite(session.username, payload, action)
		session.favorites = list(favorites)  # the backend's answer is authoritative
		logger.debug(f"[Favorites] {action} '{identity_of(payload)}' for '{session.username}'")
		return session.favorites
