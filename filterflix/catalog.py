"""
Catalog index module.
Holds every loaded MovieRecord plus the derived genre set, built once on first use or on explicit refresh.
"""

import threading  # single-flight guard around the load
from collections import Counter  # per-genre / per-service counts
from datetime import datetime, timezone  # refresh timestamp
from typing import Dict, List, Optional, Sequence, Tuple  # type hints

from loguru import logger  # console logger

from .data_loader import CatalogLoader  # per-service CSV reader
from .errors import SourceLoadError  # per-service load failure
from .models import MovieRecord, STREAMING_SERVICES, StreamingService  # records and known services


class CatalogIndex:
	"""
	In-memory, load-once cache of the whole catalog.
	Concurrent first callers share a single load; refresh() rebuilds and swaps the snapshot.
	"""

	def __init__(self, loader: CatalogLoader, services: Optional[Sequence[StreamingService]] = None):
		self.loader = loader  # reads one service at a time
		self.services: Tuple[StreamingService, ...] = tuple(services or STREAMING_SERVICES)  # load order
		self._lock = threading.Lock()  # serializes loads
		self._records: Tuple[MovieRecord, ...] = ()  # current snapshot
		self._genres: Tuple[str, ...] = ()  # sorted distinct genres of the snapshot
		self._failed: Tuple[str, ...] = ()  # services that contributed nothing due to errors
		self._last_updated: Optional[datetime] = None  # when the snapshot was built
		self._loaded = False  # flips once a snapshot exists

	@property
	def is_loaded(self) -> bool:
		return self._loaded

	def ensure_loaded(self) -> None:
		"""Load the catalog if no snapshot exists yet; later calls are no-ops."""
		if self._loaded:  # fast path without the lock
			return
		with self._lock:
			if self._loaded:  # another caller finished the load while we waited
				return
			self._build()

	def refresh(self) -> int:
		"""Discard the current snapshot and rebuild it from every source. Returns the record count."""
		with self._lock:
			self._build()
			return len(self._records)

	def _build(self) -> None:
		"""Load every service and publish a new snapshot. Caller holds the lock."""
		logger.info(f"[Catalog] Building catalog from {len(self.services)} services...")
		records: List[MovieRecord] = []  # concatenation in service order
		failed: List[str] = []  # services skipped because of errors
		for service in self.services:
			try:
				records.extend(self.loader.load_service(service.id))
			except SourceLoadError as e:
				# One broken source never takes the others down
				logger.warning(f"[Catalog] {service.id} contributes no movies: {e}")
				failed.append(service.id)

		genres = set()  # single pass over every record's genres
		for record in records:
			genres.update(g.strip() for g in record.genres)
		genres.discard('')

		# Swap the whole snapshot at once; readers never see a half-built catalog
		self._records = tuple(records)
		self._genres = tuple(sorted(genres))
		self._failed = tuple(failed)
		self._last_updated = datetime.now(timezone.utc)
		self._loaded = True
		logger.info(
			f"[Catalog] Catalog ready | movies={len(self._records)} | genres={len(self._genres)} | failed_services={list(self._failed)}"
		)

	def all_records(self) -> Tuple[MovieRecord, ...]:
		"""Every record, in service load order then source row order."""
		self.ensure_loaded()
		return self._records

	def known_genres(self) -> Tuple[str, ...]:
		"""Sorted, de-duplicated genre tags seen across the catalog."""
		self.ensure_loaded()
		return self._genres

	def failed_services(self) -> Tuple[str, ...]:
		self.ensure_loaded()
		return self._failed

	def statistics(self) -> Dict:
		"""Summary of the current snapshot: totals, per-service counts and per-genre counts."""
		self.ensure_loaded()
		records = self._records  # read one snapshot consistently
		per_service = Counter(r.service for r in records)
		per_genre = Counter(g for r in records for g in r.genres)
		return {
			'total_movies': len(records),
			'total_services': len(self.services),
			'last_updated': self._last_updated.isoformat() if self._last_updated else None,
			'per_service': {s.id: per_service.get(s.id, 0) for s in self.services},
			'genre_breakdown': {g: per_genre.get(g, 0) for g in self._genres},
			'failed_services': list(self._failed),
		}
