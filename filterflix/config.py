"""
Configuration for FilterFlix.
Settings come from FILTERFLIX_* environment variables with local-development defaults.
"""

import os  # environment-based settings
import sys  # stderr sink for loguru
from dataclasses import dataclass  # settings container
from pathlib import Path  # filesystem-safe paths
from typing import Optional  # optional settings

from loguru import logger  # console logger


ENV_PREFIX = 'FILTERFLIX_'


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
	value = os.getenv(ENV_PREFIX + name)
	if value is None or not value.strip():
		return default
	return value.strip()


def _env_bool(name: str, default: bool) -> bool:
	value = _env(name)
	if value is None:
		return default
	return value.lower() in ('1', 'true', 'yes', 'on')


@dataclass
class Settings:
	data_dir: Path = Path('data')  # root for users.json and csvs/
	users_file: Optional[Path] = None  # defaults to <data_dir>/users.json
	csv_dir: Optional[Path] = None  # defaults to <data_dir>/csvs
	catalog_base_url: Optional[str] = None  # fetch CSVs over HTTP instead of from csv_dir
	source_timeout_s: float = 10.0  # per-source HTTP timeout
	bcrypt_rounds: int = 12  # bcrypt work factor
	admin_password: Optional[str] = None  # seed an "admin" account when set
	log_level: str = 'INFO'
	preload_catalog: bool = False  # load the catalog at API startup instead of on first search
	api_url: str = 'http://localhost:5555'  # where the UI finds the API

	def __post_init__(self):
		self.data_dir = Path(self.data_dir)
		if self.users_file is None:
			self.users_file = self.data_dir / 'users.json'
		if self.csv_dir is None:
			self.csv_dir = self.data_dir / 'csvs'
		self.users_file = Path(self.users_file)
		self.csv_dir = Path(self.csv_dir)

	@classmethod
	def from_env(cls) -> 'Settings':
		"""Build settings from the process environment."""
		users_file = _env('USERS_FILE')
		csv_dir = _env('CSV_DIR')
		return cls(
			data_dir=Path(_env('DATA_DIR', 'data')),
			users_file=Path(users_file) if users_file else None,
			csv_dir=Path(csv_dir) if csv_dir else None,
			catalog_base_url=_env('CATALOG_BASE_URL'),
			source_timeout_s=float(_env('SOURCE_TIMEOUT_S', '10')),
			bcrypt_rounds=int(_env('BCRYPT_ROUNDS', '12')),
			admin_password=_env('ADMIN_PASSWORD'),
			log_level=_env('LOG_LEVEL', 'INFO').upper(),
			preload_catalog=_env_bool('PRELOAD_CATALOG', False),
			api_url=_env('API_URL', 'http://localhost:5555'),
		)


def configure_logging(level: str = 'INFO') -> None:
	"""Route loguru output to stderr at the given level."""
	logger.remove()  # drop loguru's default sink
	logger.add(sys.stderr, level=level.upper())
