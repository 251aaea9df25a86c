"""
Data models for FilterFlix.
Defines the core data structures shared by the catalog, the search engine and the account store.
"""

# Import dataclass to define simple "record-like" classes without boilerplate
from dataclasses import dataclass, field  # auto-generates __init__, __repr__, etc.
# Import typing helpers for precise and self-documenting types
from typing import Any, Dict, List, Mapping, Optional, Tuple  # lists, tuples, mappings, optional values


# Favorites mutations accepted by the account store
ACTION_ADD = 'add'
ACTION_REMOVE = 'remove'
FAVORITE_ACTIONS = (ACTION_ADD, ACTION_REMOVE)


@dataclass(frozen=True)
class StreamingService:
	"""A streaming provider whose catalog is read from one CSV source."""
	id: str  # short identifier used in queries and identities (e.g. "netflix")
	name: str  # display name (e.g. "Prime Video")
	filename: str  # CSV file name inside the catalog directory / base URL


# Known services in load order; result ordering follows this sequence
STREAMING_SERVICES: List[StreamingService] = [
	StreamingService('netflix', 'Netflix', 'netflix.csv'),
	StreamingService('hulu', 'Hulu', 'hulu.csv'),
	StreamingService('prime', 'Prime Video', 'prime.csv'),
	StreamingService('disney', 'Disney+', 'disney.csv'),
	StreamingService('paramount', 'Paramount+', 'paramount.csv'),
	StreamingService('max', 'Max', 'max.csv'),
]
SERVICES_BY_ID: Dict[str, StreamingService] = {s.id: s for s in STREAMING_SERVICES}


def movie_identity(title: str, year: Optional[int], service: str, record_id: Optional[str] = None) -> str:
	"""
	Deduplication key of a movie on one service.
	A source-provided id wins; otherwise "{title}-{year}-{service}" with an empty year when unknown.
	Two rows with the same title, year and service collide.
	"""
	if record_id is not None and str(record_id).strip():
		return str(record_id).strip()
	year_text = '' if year is None else str(year)
	return f"{title}-{year_text}-{service}"


def identity_of(movie: Mapping[str, Any]) -> str:
	"""Identity of a MovieRecord-shaped mapping (a favorite entry or an API payload)."""
	year = movie.get('year')
	if isinstance(year, float) and year.is_integer():
		year = int(year)  # 2016.0 and 2016 must agree
	return movie_identity(
		str(movie.get('title') or ''),
		year if year not in ('', None) else None,
		str(movie.get('service') or ''),
		record_id=movie.get('id'),
	)


@dataclass(frozen=True)
class MovieRecord:
	"""
	One title available on one service.
	Created once per CSV row by the loader and never mutated afterwards.
	"""
	id: str  # identity (see movie_identity)
	title: str  # title as it appears in the source
	genres: Tuple[str, ...]  # trimmed, de-duplicated genre tags in source order
	service: str  # id of the streaming service carrying this title
	year: Optional[int] = None  # release year if known
	rating: Optional[float] = None  # 0-10 rating if known
	duration: Optional[int] = None  # runtime in minutes if known
	director: Optional[str] = None  # director name if present
	cast: Tuple[str, ...] = ()  # ordered cast list
	description: Optional[str] = None  # synopsis if present

	def to_dict(self) -> Dict[str, Any]:
		"""Plain dict used for JSON responses and stored favorites."""
		return {
			'id': self.id,
			'title': self.title,
			'genres': list(self.genres),
			'year': self.year,
			'rating': self.rating,
			'duration': self.duration,
			'director': self.director,
			'cast': list(self.cast),
			'description': self.description,
			'service': self.service,
		}


@dataclass
class SearchQuery:
	"""
	A validated search request.
	Empty / None fields mean "filter not active"; services is always required.
	"""
	services: List[str]  # service ids to search in (must be non-empty)
	genre_terms: str = ''  # comma-separated genre fragments, case-insensitive substrings
	title_term: Optional[str] = None  # case-insensitive title substring
	min_duration: Optional[float] = None  # duration floor in minutes
	max_rating: Optional[float] = None  # rating ceiling, active only when > 0

	def genre_list(self) -> List[str]:
		"""Lower-cased, trimmed genre terms with blanks removed."""
		return [g.strip().lower() for g in (self.genre_terms or '').split(',') if g.strip()]

	def title_needle(self) -> str:
		return (self.title_term or '').strip().lower()


@dataclass
class UserAccount:
	"""A persisted user: name, bcrypt hash and favorites list."""
	username: str  # unique, never renamed
	password_hash: str  # bcrypt hash, never the plaintext
	favorites: List[Dict[str, Any]] = field(default_factory=list)  # MovieRecord-shaped entries

	@classmethod
	def from_dict(cls, data: Mapping[str, Any]) -> 'UserAccount':
		# Accounts written before favorites existed carry no "favorites" key
		favorites = data.get('favorites')
		if favorites is None:
			favorites = []
		if not isinstance(favorites, list) or not all(isinstance(f, Mapping) for f in favorites):
			raise TypeError(f"favorites of '{data['username']}' must be a list of objects")
		return cls(
			username=str(data['username']),
			password_hash=str(data['passwordHash']),
			favorites=[dict(f) for f in favorites],
		)

	def to_dict(self) -> Dict[str, Any]:
		return {
			'username': self.username,
			'passwordHash': self.password_hash,
			'favorites': self.favorites,
		}

	def public_view(self) -> Dict[str, Any]:
		"""What callers may see: never the hash."""
		return {'username': self.username, 'favorites': list(self.favorites)}
