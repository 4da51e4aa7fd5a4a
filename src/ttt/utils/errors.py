"""Error types raised by the tracker.

Every error a user can trigger derives from ``TttError``; the command
entry point catches that base class once and exits with ``exit_code``.
"""

AUTH_FAILED = "Invalid passphrase or corrupted data file."


class TttError(Exception):
    """Base class for user-facing failures."""

    exit_code = 2


class AuthenticationError(TttError):
    """Wrong passphrase, or an envelope that is tampered, truncated or of unknown format."""


class InvariantViolation(TttError):
    """The store decrypted fine but its contents are malformed or inconsistent."""


class ConflictError(TttError):
    """A lifecycle operation does not fit the current global task state."""


class NoActiveTaskError(ConflictError):
    pass


class NoPausedTaskError(ConflictError):
    pass


class NoCurrentTaskError(ConflictError):
    pass


class NotFoundError(TttError):
    """A referenced task, data file or backup slot does not exist."""


class ValidationError(TttError):
    """User-supplied input is malformed."""


class StoreIOError(TttError):
    """Reading or writing the data file failed at the filesystem level."""
