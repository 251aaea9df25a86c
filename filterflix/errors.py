"""
Error taxonomy for FilterFlix.
Each error carries a stable machine-readable code and the HTTP status the API maps it to.
"""


class FilterFlixError(Exception):
	"""Base class for every error raised by the FilterFlix core."""
	code = 'internal_error'  # stable name sent to clients
	status_code = 500  # HTTP status used by the API layer
	public_message = 'Internal server error'  # message safe to show to clients

	def __init__(self, message: str = None):
		super().__init__(message or self.public_message)
		self.message = message or self.public_message


class ValidationError(FilterFlixError):
	"""Bad or missing request fields; the user must correct the input."""
	code = 'validation_error'
	status_code = 400
	public_message = 'Invalid request'


class DuplicateUserError(FilterFlixError):
	code = 'duplicate_user'
	status_code = 400
	public_message = 'Username already exists'


class InvalidCredentialsError(FilterFlixError):
	"""Unknown user or wrong password; the two cases are deliberately indistinguishable."""
	code = 'invalid_credentials'
	status_code = 401
	public_message = 'Invalid username or password'


class UserNotFoundError(FilterFlixError):
	code = 'user_not_found'
	status_code = 404
	public_message = 'User not found'


class InvalidActionError(FilterFlixError):
	code = 'invalid_action'
	status_code = 400
	public_message = 'Invalid action'


class GuestModeError(FilterFlixError):
	"""Guest sessions may search but cannot keep favorites."""
	code = 'guest_mode'
	status_code = 403
	public_message = 'Sign in to save favorites'


class SourceLoadError(FilterFlixError):
	"""One service's catalog source could not be fetched or parsed."""
	code = 'source_load_failure'
	status_code = 500


class PersistenceError(FilterFlixError):
	"""The account store could not be read or written; detail stays in the server log."""
	code = 'persistence_failure'
	status_code = 500


# Lookup used by the HTTP client to rebuild errors from response payloads
ERRORS_BY_CODE = {
	cls.code: cls
	for cls in (
		ValidationError,
		DuplicateUserError,
		InvalidCredentialsError,
		UserNotFoundError,
		InvalidActionError,
		GuestModeError,
		SourceLoadError,
		PersistenceError,
	)
}
