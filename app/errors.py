"""Error taxonomy shared by the web API and the Slack handlers."""
from fastapi import status


class AppError(Exception):
    """Base class for expected, user-facing failures."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class AuthenticationError(AppError):
    """Missing or invalid request signature, stale timestamp or bad token."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ConfigurationError(AppError):
    """A required secret or token is not configured."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ValidationError(AppError):
    """Malformed or incomplete command payload."""

    status_code = status.HTTP_400_BAD_REQUEST


class IdentityNotFound(AppError):
    """An external chat user could not be mapped to an internal user."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, external_user_id: str) -> None:
        self.external_user_id = external_user_id
        super().__init__(f"No linked account for chat user {external_user_id}")


class NotFoundError(AppError):
    """Referenced project or ticket does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    """A timer is already running for the user."""

    status_code = status.HTTP_409_CONFLICT


class NoActiveEntryError(AppError):
    """No timer is running for the user."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "No timer running") -> None:
        super().__init__(message)


class StoreError(AppError):
    """The durable store failed; details are logged, never shown."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
