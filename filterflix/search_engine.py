"""
Search engine module.
Applies a conjunction of independent filters (service, genre, title, rating ceiling, duration floor) over the catalog.
"""

from typing import List  # type annotations for clarity

# Import project modules for data structures and components
from .catalog import CatalogIndex  # load-once catalog cache
from .errors import ValidationError  # user-correctable query problems
from .models import MovieRecord, SearchQuery  # core data classes

# Import loguru for console logging
from loguru import logger  # simple structured logger


class SearchEngine:
	"""
	High-level search API over the catalog index.
	Results keep catalog order: services in load order, then source row order.
	"""

	def __init__(self, catalog: CatalogIndex):
		self.catalog = catalog  # shared, injected catalog

	def validate(self, query: SearchQuery) -> None:
		"""Reject queries that would be meaningless rather than returning an empty result."""
		if not query.services:
			raise ValidationError('Select at least one streaming service')
		served = {s.id for s in self.catalog.services}  # only what this catalog indexes
		unknown = [s for s in query.services if s not in served]
		if unknown:
			raise ValidationError(f"Unknown streaming service: {', '.join(unknown)}")
		if query.max_rating is not None and query.max_rating < 0:
			raise ValidationError('Maximum rating cannot be negative')
		if query.min_duration is not None and query.min_duration < 0:
			raise ValidationError('Minimum duration cannot be negative')

		has_filter = (
			bool(query.genre_list())
			or bool(query.title_needle())
			or (query.max_rating is not None and query.max_rating > 0)
			or query.min_duration is not None
		)
		if not has_filter:
			raise ValidationError('No filters specified')

	def search(self, query: SearchQuery) -> List[MovieRecord]:
		"""Return every record matching all active filters."""
		self.validate(query)

		services = set(query.services)  # membership test per record
		genre_terms = query.genre_list()  # lower-cased fragments
		title_needle = query.title_needle()  # lower-cased fragment
		max_rating = query.max_rating if query.max_rating and query.max_rating > 0 else None  # 0 disables the ceiling
		min_duration = query.min_duration  # None disables the floor
		logger.debug(
			f"[Engine] Query | services={sorted(services)} genres={genre_terms} title='{title_needle}' max_rating={max_rating} min_duration={min_duration}"
		)

		results: List[MovieRecord] = []  # accumulator
		for movie in self.catalog.all_records():
			# Service filter is mandatory
			if movie.service not in services:
				continue

			# Genre filter: any movie genre containing any requested fragment ("com" matches "Comedy")
			if genre_terms:
				movie_genres = [g.lower() for g in movie.genres]
				if not any(term in g for term in genre_terms for g in movie_genres):
					continue

			# Title filter: substring, case-insensitive
			if title_needle and title_needle not in movie.title.lower():
				continue

			# Rating ceiling: unrated movies never pass once the filter is active
			if max_rating is not None and (movie.rating is None or movie.rating > max_rating):
				continue

			# Duration floor: movies without a runtime never pass once the filter is active
			if min_duration is not None and (movie.duration is None or movie.duration < min_duration):
				continue

			results.append(movie)

		logger.info(f"[Engine] Returning {len(results)} matches")
		return results
