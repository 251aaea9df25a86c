"""
Catalog loading module.
Reads one streaming service's CSV source (local file or HTTP URL) and normalizes rows into MovieRecords.
"""

# Standard libs for CSV/JSON parsing, regex, typing, and paths
import csv  # row producer for the tabular sources
import io  # wrap downloaded text for the csv reader
import json  # decode list-encoded genre fields
import math  # reject nan/inf cells
import re  # header normalization
from pathlib import Path  # filesystem-safe paths
from typing import Dict, Iterable, List, Optional  # type hints
from urllib.parse import quote  # file names with spaces in URLs

# HTTP client for remote catalog sources
import requests  # fetch CSVs when a base URL is configured

# Console logging
from loguru import logger  # console logger

from .errors import SourceLoadError  # per-service load failure
from .models import MovieRecord, SERVICES_BY_ID, movie_identity  # normalized record + identity


# Header cells like "Rating (1-10)" or "Duration (min)" keep only their leading word(s)
_HEADER_SUFFIX = re.compile(r"\s*\(.*?\)\s*$")

# Normalized header name -> MovieRecord field
COLUMN_ALIASES = {
	'id': 'id',
	'title': 'title',
	'genre': 'genre',
	'genres': 'genre',
	'year': 'year',
	'rating': 'rating',
	'director': 'director',
	'cast': 'cast',
	'duration': 'duration',
	'description': 'description',
}


class CatalogLoader:
	"""
	Loads per-service catalogs from CSV files.
	Sources live in csv_dir, or under base_url when one is configured.
	"""

	def __init__(self, csv_dir: Path = Path('data/csvs'), base_url: Optional[str] = None, timeout_s: float = 10.0):
		"""Remember where sources live and how long a remote fetch may take."""
		self.csv_dir = Path(csv_dir)  # local source directory
		self.base_url = base_url.rstrip('/') if base_url else None  # remote source root
		self.timeout_s = timeout_s  # HTTP timeout in seconds

	def source_for(self, service_id: str) -> str:
		"""Return the file path or URL that holds a service's catalog."""
		service = SERVICES_BY_ID.get(service_id)
		if service is None:
			raise SourceLoadError(f"Unknown streaming service: {service_id}")
		if self.base_url:
			return f"{self.base_url}/{quote(service.filename)}"
		return str(self.csv_dir / service.filename)

	def load_service(self, service_id: str) -> List[MovieRecord]:
		"""
		Load and normalize every usable row of one service's source.
		Raises SourceLoadError when the source cannot be fetched or decoded.
		"""
		source = self.source_for(service_id)  # path or URL
		logger.info(f"[Loader] Loading {service_id} catalog from {source}...")
		text = self._read_source(source)  # raw CSV text

		records = []  # accumulator
		skipped = 0  # rows without genre/title
		try:
			reader = csv.DictReader(io.StringIO(text))
			for line_num, row in enumerate(reader, 2):  # header is line 1
				record = self.parse_row(row, service_id)
				if record is None:
					skipped += 1
					logger.debug(f"[Loader] Skipping {service_id} row {line_num}: missing title or genre")
					continue
				records.append(record)
		except csv.Error as e:
			raise SourceLoadError(f"Malformed CSV in {source}: {e}") from e

		if skipped:
			logger.warning(f"[Loader] Skipped {skipped} {service_id} rows without title or genre")
		logger.info(f"[Loader] Loaded {len(records)} {service_id} movies.")
		return records

	def _read_source(self, source: str) -> str:
		"""Fetch a source's text; every failure becomes a SourceLoadError."""
		if self.base_url:
			try:
				response = requests.get(source, timeout=self.timeout_s)  # never wait forever
				response.raise_for_status()  # 4xx/5xx are load failures
			except requests.Timeout as e:
				raise SourceLoadError(f"Timed out after {self.timeout_s}s fetching {source}") from e
			except requests.RequestException as e:
				raise SourceLoadError(f"Could not fetch {source}: {e}") from e
			response.encoding = response.encoding or 'utf-8'
			return response.text

		path = Path(source)
		if not path.exists():
			raise SourceLoadError(f"Catalog file not found: {path}")
		try:
			return path.read_text(encoding='utf-8-sig')  # tolerate a BOM from spreadsheet exports
		except (OSError, UnicodeDecodeError) as e:
			raise SourceLoadError(f"Could not read {path}: {e}") from e

	def parse_row(self, row: Dict[str, Optional[str]], service_id: str) -> Optional[MovieRecord]:
		"""
		Convert one CSV row into a MovieRecord.
		Returns None for rows that cannot be indexed (no title or no genre).
		"""
		fields = self._normalize_columns(row)  # header-insensitive view
		title = self._clean_text(fields.get('title'))
		raw_genre = self._clean_text(fields.get('genre'))
		if not title or not raw_genre:
			return None

		genres = self.parse_genres(raw_genre)
		if not genres:
			return None

		year = self._parse_int(fields.get('year'))
		return MovieRecord(
			id=movie_identity(title, year, service_id, record_id=self._clean_text(fields.get('id'))),
			title=title,
			genres=tuple(genres),
			service=service_id,
			year=year,
			rating=self._parse_float(fields.get('rating')),
			duration=self._parse_int(fields.get('duration')),
			director=self._clean_text(fields.get('director')),
			cast=tuple(self.parse_cast(fields.get('cast'))),
			description=self._clean_text(fields.get('description')),
		)

	def _normalize_columns(self, row: Dict[str, Optional[str]]) -> Dict[str, Optional[str]]:
		"""Map header names case-insensitively onto known fields, ignoring "(unit)" suffixes."""
		fields = {}
		for header, value in row.items():
			if header is None:  # extra cells beyond the header row
				continue
			key = _HEADER_SUFFIX.sub('', header).strip().lower()
			name = COLUMN_ALIASES.get(key)
			if name and name not in fields:
				fields[name] = value
		return fields

	def parse_genres(self, value: str) -> List[str]:
		"""
		Parse a genre cell that is either a quoted list ("['Action','Drama']")
		or a plain comma-separated string ("Action, Drama").
		"""
		genres: Iterable = []
		try:
			decoded = json.loads(value.replace("'", '"'))  # list encoding with single quotes
			if isinstance(decoded, list):
				genres = decoded
			elif isinstance(decoded, str):
				genres = [decoded]
			else:
				raise ValueError(f"unexpected genre encoding: {type(decoded).__name__}")
		except ValueError:  # JSONDecodeError is a ValueError
			genres = value.split(',')  # plain text fallback

		cleaned: List[str] = []  # trimmed, order-preserving de-dup
		for genre in genres:
			text = str(genre).strip()
			if text and text not in cleaned:
				cleaned.append(text)
		return cleaned

	def parse_cast(self, value: Optional[str]) -> List[str]:
		"""Split a semicolon-separated cast cell into trimmed names."""
		if not value:
			return []
		return [name.strip() for name in value.split(';') if name.strip()]

	def _clean_text(self, value: Optional[str]) -> Optional[str]:
		"""Trim whitespace; blank cells become None."""
		if value is None:
			return None
		text = str(value).strip()
		return text or None

	def _parse_float(self, value: Optional[str]) -> Optional[float]:
		text = self._clean_text(value)
		if text is None:
			return None
		try:
			number = float(text)
		except ValueError:
			logger.debug(f"[Loader] Ignoring non-numeric value '{text}'")
			return None
		return number if math.isfinite(number) else None

	def _parse_int(self, value: Optional[str]) -> Optional[int]:
		number = self._parse_float(value)
		return int(number) if number is not None else None
