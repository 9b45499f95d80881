"""
Request authentication: ``Authorization`` header -> Principal.

The only accepted shape is ``Token <opaque-token>``: the case-sensitive
scheme, exactly one space, then a non-empty token with no whitespace.
"""
import logging
from dataclasses import dataclass

from app.exceptions import (
    AuthenticationError,
    InvalidTokenError,
    MalformedCredentialError,
    NoCredentialError,
    UnknownSubjectError,
)
from app.models import User
from app.security import TokenService, token_service
from app.stores import UserStore

logger = logging.getLogger(__name__)

TOKEN_SCHEME = "Token "


@dataclass(frozen=True)
class Principal:
    """The authenticated caller of a request."""

    user: User
    token: str

    @property
    def id(self) -> str:
        return self.user.id


def parse_authorization(header: str | None) -> str:
    """Return the token carried by *header* or raise the matching failure."""
    if not header:
        raise NoCredentialError()
    if not header.startswith(TOKEN_SCHEME):
        raise MalformedCredentialError()
    token = header[len(TOKEN_SCHEME):]
    if not token or any(ch.isspace() for ch in token):
        raise MalformedCredentialError()
    return token


class AuthResolver:
    def __init__(self, users: UserStore, tokens: TokenService = token_service) -> None:
        self.users = users
        self.tokens = tokens

    async def resolve(self, header: str | None) -> Principal:
        try:
            token = parse_authorization(header)
            subject = self.tokens.extract_subject(token)
            if subject is None:
                raise InvalidTokenError()
            user = await self.users.find_by_id(subject)
            if user is None:
                raise UnknownSubjectError()
        except AuthenticationError as exc:
            logger.info("Authentication failed: %s", exc.kind)
            raise
        return Principal(user=user, token=token)

    async def try_resolve(self, header: str | None) -> Principal | None:
        """
        Like ``resolve`` but anonymous when no credential is sent at all.

        A header that is present but malformed or unresolvable still fails.
        """
        if not header:
            return None
        return await self.resolve(header)
