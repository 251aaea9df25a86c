"""
Query parsing module.
Turns raw form / query-string values into a validated SearchQuery.
Service names are matched by id, by display name, or fuzzily to tolerate typos ("Netflx", "disney plus").
"""

import math  # reject nan/inf thresholds
import re  # name normalization
from typing import Dict, Iterable, List, Optional, Union  # type annotations

from rapidfuzz import process, fuzz  # fuzzy matching utilities

from loguru import logger  # console logging

from .errors import ValidationError  # user-correctable input problems
from .models import SearchQuery, STREAMING_SERVICES  # structured query + known services


RawNumber = Union[str, int, float, None]


def _service_key(text: str) -> str:
	"""Collapse a service name to lowercase alphanumerics ("Disney+" and "disney plus" -> "disneyplus")."""
	return re.sub(r"[^a-z0-9]", '', text.lower().replace('+', 'plus'))


class QueryParser:
	"""
	Parses loosely-typed search input into a SearchQuery.
	Blank values mean "filter not set"; malformed numbers are validation errors.
	"""

	FUZZY_CUTOFF = 80  # minimum whole-string ratio for a fuzzy service match
	FUZZY_MIN_LENGTH = 4  # shorter input must match an alias exactly

	def __init__(self, services=None):
		# Lookup table of every accepted spelling -> service id
		self._aliases: Dict[str, str] = {}
		for service in (services or STREAMING_SERVICES):
			self._aliases[_service_key(service.id)] = service.id
			self._aliases[_service_key(service.name)] = service.id
		self._alias_list = sorted(self._aliases)  # stable choice order for rapidfuzz
		logger.debug(f"[Parser] Initialized with {len(self._alias_list)} service aliases")

	def parse(
		self,
		genres: Optional[str] = None,
		title: Optional[str] = None,
		services: Union[str, Iterable[str], None] = None,
		min_duration: RawNumber = None,
		max_rating: RawNumber = None,
	) -> SearchQuery:
		"""Main entry: produce a SearchQuery from raw input values."""
		query = SearchQuery(
			services=self.parse_services(services),
			genre_terms=(genres or '').strip(),
			title_term=(title or '').strip() or None,
			min_duration=self._parse_number(min_duration, 'Minimum duration'),
			max_rating=self._parse_number(max_rating, 'Maximum rating'),
		)
		logger.debug(f"[Parser] Parsed query | {query}")
		return query

	def parse_services(self, services: Union[str, Iterable[str], None]) -> List[str]:
		"""Resolve service names to ids, keeping first-seen order and dropping duplicates."""
		if services is None:
			return []
		if isinstance(services, str):
			services = services.split(',')

		resolved: List[str] = []
		for name in services:
			if name is None or not str(name).strip():
				continue
			service_id = self.resolve_service(str(name))
			if service_id not in resolved:
				resolved.append(service_id)
		return resolved

	def resolve_service(self, name: str) -> str:
		"""Map one user-supplied service name to its id, or raise ValidationError."""
		key = _service_key(name)
		if key in self._aliases:
			return self._aliases[key]
		if len(key) >= self.FUZZY_MIN_LENGTH:
			match = process.extractOne(key, self._alias_list, scorer=fuzz.ratio, score_cutoff=self.FUZZY_CUTOFF)
			if match:
				alias, score, _ = match
				logger.debug(f"[Parser] Service fuzzy match: '{name}' -> '{self._aliases[alias]}' (score={score:.0f})")
				return self._aliases[alias]
		raise ValidationError(f"Unknown streaming service: {name.strip()}")

	def _parse_number(self, value: RawNumber, label: str) -> Optional[float]:
		"""Blank -> None; numeric text -> float; anything else is a validation error."""
		if value is None:
			return None
		if isinstance(value, bool):  # bool is an int subclass; never a threshold
			raise ValidationError(f"{label} must be a number")
		if isinstance(value, (int, float)):
			number = float(value)
		else:
			text = str(value).strip()
			if not text:
				return None
			try:
				number = float(text)
			except ValueError:
				raise ValidationError(f"{label} must be a number") from None
		if not math.isfinite(number):
			raise ValidationError(f"{label} must be a number")
		return number
