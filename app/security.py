"""Token issuing/verification and password hashing."""
import logging
from datetime import datetime, timedelta, timezone

import jwt
from jwt import InvalidTokenError
from pwdlib import PasswordHash

from app.config import settings

logger = logging.getLogger(__name__)

password_hash = PasswordHash.recommended()


def hash_password(plain_password: str) -> str:
    return password_hash.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return password_hash.verify(plain_password, hashed_password)


class TokenService:
    """
    Signs and reads HS256 JWTs whose ``sub`` claim is the user id.

    Only ``extract_subject`` is used on the request path; it returns None
    for any token that fails signature, expiry or shape checks.
    """

    def __init__(
        self,
        secret_key: str = settings.SECRET_KEY,
        algorithm: str = settings.JWT_ALGORITHM,
        expire_minutes: int = settings.ACCESS_TOKEN_EXPIRE_MINUTES,
    ) -> None:
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def create_token(self, user_id: str) -> str:
        expire = datetime.now(timezone.utc) + timedelta(minutes=self.expire_minutes)
        return jwt.encode({"sub": user_id, "exp": expire}, self.secret_key, algorithm=self.algorithm)

    def extract_subject(self, token: str) -> str | None:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except InvalidTokenError as exc:
            logger.debug("Rejected token: %s", exc)
            return None
        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            return None
        return subject


token_service = TokenService()
