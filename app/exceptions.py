"""
Exception hierarchy for the Conduit API.

Every error carries the HTTP status it maps to at the boundary; the
handlers registered in ``app.main`` turn them into the ``{"errors": ...}``
envelope.  Infrastructure failures (database, token backend) are not
part of this hierarchy and surface as 500.
"""


class ConduitError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# Authentication (401)
# ---------------------------------------------------------------------------

class AuthenticationError(ConduitError):
    """
    The request could not be tied to a principal.

    ``kind`` distinguishes the failure for logs and tests only; callers
    always see the same unauthenticated response.
    """

    kind = "unauthenticated"

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message, status_code=401)


class NoCredentialError(AuthenticationError):
    kind = "no_credential"


class MalformedCredentialError(AuthenticationError):
    kind = "malformed_credential"


class InvalidTokenError(AuthenticationError):
    kind = "invalid_token"


class UnknownSubjectError(AuthenticationError):
    kind = "unknown_subject"


# ---------------------------------------------------------------------------
# Validation (422)
# ---------------------------------------------------------------------------

class ProfileValidationError(ConduitError):
    """One or more submitted user fields were rejected."""

    def __init__(self, errors: dict[str, list[str]]) -> None:
        self.errors = errors
        super().__init__("Invalid user fields", status_code=422)


class InvalidCredentialsError(ConduitError):
    def __init__(self) -> None:
        super().__init__("invalid email or password", status_code=422)


# ---------------------------------------------------------------------------
# Not found (404)
# ---------------------------------------------------------------------------

class NotFoundError(ConduitError):
    """Resource not found error."""

    resource = "resource"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or f"{self.resource} not found", status_code=404)


class UserNotFoundError(NotFoundError):
    resource = "profile"

    def __init__(self, username: str | None = None) -> None:
        self.username = username
        super().__init__(f"User {username!r} not found" if username else None)


class ArticleNotFoundError(NotFoundError):
    resource = "article"

    def __init__(self, slug: str | None = None) -> None:
        self.slug = slug
        super().__init__(f"Article {slug!r} not found" if slug else None)


class RelationNotFoundError(NotFoundError):
    resource = "follow"
