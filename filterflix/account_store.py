"""
Account store module.
Persists user accounts and favorites in one JSON file and validates credentials with bcrypt.

Every operation is a read-modify-write of the whole file, serialized by a single lock.
Writes go to a temporary file that replaces the store in one step, so a failed write
leaves the previous contents untouched.
"""

import json  # store format
import os  # atomic replace + fsync
import tempfile  # staging file for atomic writes
import threading  # single-writer critical section
from pathlib import Path  # filesystem-safe paths
from typing import Any, Dict, List, Mapping, Optional  # type hints

import bcrypt  # slow, salted password hashing with constant-time verification

from loguru import logger  # console logger

from .errors import (
	DuplicateUserError,
	InvalidActionError,
	InvalidCredentialsError,
	PersistenceError,
	UserNotFoundError,
	ValidationError,
)
from .models import ACTION_ADD, ACTION_REMOVE, FAVORITE_ACTIONS, UserAccount, identity_of


BCRYPT_MAX_PASSWORD_BYTES = 72  # bcrypt ignores (or rejects) anything longer


class AccountStore:
	"""
	JSON-file-backed collection of UserAccounts.
	The file holds a list of {username, passwordHash, favorites} objects.
	"""

	def __init__(self, path: Path, bcrypt_rounds: int = 12, admin_password: Optional[str] = None):
		"""
		- path: JSON file holding every account (created on first access)
		- bcrypt_rounds: work factor for new hashes
		- admin_password: when set, a missing store is seeded with an "admin" account
		"""
		self.path = Path(path)  # backing file
		self.bcrypt_rounds = bcrypt_rounds  # hash cost
		self.admin_password = admin_password  # optional seed credential
		self._lock = threading.Lock()  # serializes every read-modify-write
		self._dummy_hash: Optional[bytes] = None  # verified against for unknown users

	# ----- public operations -------------------------------------------------

	def register(self, username: str, password: str) -> None:
		"""Create an account with an empty favorites list."""
		username = self._require_username(username)
		password = self._require_password(password)
		password_hash = self._hash(password)  # slow; done outside the lock

		with self._lock:
			accounts = self._read_accounts()
			if any(a.username == username for a in accounts):
				logger.info(f"[Store] Registration refused, duplicate username '{username}'")
				raise DuplicateUserError()
			accounts.append(UserAccount(username=username, password_hash=password_hash))
			self._write_accounts(accounts)
		logger.info(f"[Store] Registered user '{username}'")

	def authenticate(self, username: str, password: str) -> Dict[str, Any]:
		"""
		Verify credentials and return the public view {username, favorites}.
		Unknown users and wrong passwords raise the same InvalidCredentialsError.
		"""
		if not isinstance(username, str) or not isinstance(password, str) or not username or not password:
			raise InvalidCredentialsError()
		username = username.strip()  # registration stores trimmed names

		with self._lock:
			account = self._find(self._read_accounts(), username)

		if account is None:
			self._verify(password, self._get_dummy_hash())  # same cost as a real check
			logger.info("[Store] Login failed")
			raise InvalidCredentialsError()
		if not self._verify(password, account.password_hash.encode('utf-8')):
			logger.info("[Store] Login failed")
			raise InvalidCredentialsError()

		logger.info(f"[Store] User '{username}' logged in")
		return account.public_view()

	def get_favorites(self, username: str) -> List[Dict[str, Any]]:
		"""Return a user's favorites (possibly empty)."""
		with self._lock:
			account = self._find(self._read_accounts(), username)
		if account is None:
			raise UserNotFoundError()
		return list(account.favorites)

	def set_favorite(self, username: str, movie: Mapping[str, Any], action: str) -> List[Dict[str, Any]]:
		"""
		Add or remove one movie from a user's favorites and return the resulting list.
		Both actions are idempotent: adding twice keeps one entry, removing a non-member is a no-op.
		"""
		if action not in FAVORITE_ACTIONS:
			raise InvalidActionError(f"Invalid action '{action}', expected 'add' or 'remove'")
		if not isinstance(movie, Mapping) or not (movie.get('id') or movie.get('title')):
			raise ValidationError('Movie is required')

		identity = identity_of(movie)  # same derivation as the catalog
		with self._lock:
			accounts = self._read_accounts()
			account = self._find(accounts, username)
			if account is None:
				raise UserNotFoundError()

			present = any(identity_of(f) == identity for f in account.favorites)
			changed = False
			if action == ACTION_ADD and not present:
				entry = dict(movie)
				entry['id'] = identity  # stored entries always carry their identity
				account.favorites.append(entry)
				changed = True
			elif action == ACTION_REMOVE and present:
				account.favorites = [f for f in account.favorites if identity_of(f) != identity]
				changed = True

			if changed:
				self._write_accounts(accounts)
			favorites = list(account.favorites)

		logger.info(f"[Store] Favorite {action} | user='{username}' | movie='{identity}' | changed={changed}")
		return favorites

	# ----- persistence -------------------------------------------------------

	def _read_accounts(self) -> List[UserAccount]:
		"""Load every account; a missing file is created (and seeded) first. Caller holds the lock."""
		if not self.path.exists():
			accounts = self._seed_accounts()
			self._write_accounts(accounts)
			logger.info(f"[Store] Created account store with {len(accounts)} seeded account(s)")
			return accounts

		try:
			raw = json.loads(self.path.read_text(encoding='utf-8'))
		except (OSError, ValueError) as e:
			logger.error(f"[Store] Cannot read account store {self.path}: {e}")
			raise PersistenceError('Cannot read user database') from e
		if not isinstance(raw, list):
			logger.error(f"[Store] Account store {self.path} is not a JSON list")
			raise PersistenceError('Cannot read user database')

		try:
			return [UserAccount.from_dict(item) for item in raw]
		except (KeyError, TypeError, AttributeError) as e:
			logger.error(f"[Store] Malformed account record in {self.path}: {e!r}")
			raise PersistenceError('Cannot read user database') from e

	def _write_accounts(self, accounts: List[UserAccount]) -> None:
		"""Rewrite the whole store atomically. Caller holds the lock."""
		payload = [a.to_dict() for a in accounts]
		tmp_name = None
		try:
			self.path.parent.mkdir(parents=True, exist_ok=True)
			with tempfile.NamedTemporaryFile(
				'w', encoding='utf-8', dir=self.path.parent, prefix=f".{self.path.name}.", suffix='.tmp', delete=False
			) as tmp:
				tmp_name = tmp.name
				json.dump(payload, tmp, indent=2)
				tmp.flush()
				os.fsync(tmp.fileno())  # committed before we report success
			os.replace(tmp_name, self.path)  # all-or-nothing swap
		except OSError as e:
			if tmp_name and os.path.exists(tmp_name):
				os.unlink(tmp_name)
			logger.error(f"[Store] Cannot write account store {self.path}: {e}")
			raise PersistenceError('Cannot save user database') from e

	def _seed_accounts(self) -> List[UserAccount]:
		if not self.admin_password:
			return []
		return [UserAccount(username='admin', password_hash=self._hash(self.admin_password))]

	# ----- helpers -----------------------------------------------------------

	@staticmethod
	def _find(accounts: List[UserAccount], username: str) -> Optional[UserAccount]:
		for account in accounts:
			if account.username == username:
				return account
		return None

	@staticmethod
	def _require_username(value: Any) -> str:
		if not isinstance(value, str) or not value.strip():
			raise ValidationError('Username and password required')
		return value.strip()

	def _require_password(self, password: Any) -> str:
		if not isinstance(password, str) or not password:
			raise ValidationError('Username and password required')
		if len(password.encode('utf-8')) > BCRYPT_MAX_PASSWORD_BYTES:
			raise ValidationError(f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes")
		return password

	def _hash(self, password: str) -> str:
		return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=self.bcrypt_rounds)).decode('utf-8')

	@staticmethod
	def _verify(password: str, password_hash: bytes) -> bool:
		"""Constant-time bcrypt verification; malformed hashes and oversize passwords never match."""
		encoded = password.encode('utf-8')
		if len(encoded) > BCRYPT_MAX_PASSWORD_BYTES:
			return False
		try:
			return bcrypt.checkpw(encoded, password_hash)
		except ValueError:
			logger.warning("[Store] Stored password hash is malformed")
			return False

	def _get_dummy_hash(self) -> bytes:
		if self._dummy_hash is None:
			self._dummy_hash = bcrypt.hashpw(b'filterflix-dummy', bcrypt.gensalt(rounds=self.bcrypt_rounds))
		return self._dummy_hash
