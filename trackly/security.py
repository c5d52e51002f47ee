"""Bearer-token verification against the identity provider."""

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

import jwt
from jwt.exceptions import PyJWTError

from trackly.config import settings

logger = logging.getLogger(__name__)


@dataclass
class Caller:
    """Authenticated user making the current request."""

    id: str
    email: Optional[str] = None
    metadata: dict = field(default_factory=dict)


class IdentityVerifier(Protocol):
    def verify(self, token: str) -> Optional[Caller]:
        """Return the caller for a valid token, None otherwise."""
        ...


class JwtIdentityVerifier:
    """
    Validates access tokens issued by the identity provider.

    Tokens are HS256 JWTs signed with the provider's shared secret; ``sub`` is
    the user id and ``user_metadata`` carries profile hints such as full_name.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        audience: Optional[str] = "authenticated",
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.audience = audience

    def verify(self, token: str) -> Optional[Caller]:
        if not self.secret:
            logger.error("JWT_SECRET is not configured; rejecting bearer token")
            return None

        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                options={"require": ["sub", "exp"], "verify_aud": bool(self.audience)},
            )
        except PyJWTError as ex:
            logger.info("Rejected bearer token (%s)", type(ex).__name__)
            return None

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            return None

        metadata = payload.get("user_metadata")
        return Caller(
            id=subject,
            email=payload.get("email"),
            metadata=metadata if isinstance(metadata, dict) else {},
        )


def build_identity_verifier() -> JwtIdentityVerifier:
    return JwtIdentityVerifier(
        secret=settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
        audience=settings.JWT_AUDIENCE or None,
    )
