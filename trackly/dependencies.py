from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import settings
from .core.exception import AuthenticationException
from .security import Caller, IdentityVerifier, build_identity_verifier
from .services.email_service import InviteMailer

bearer_scheme = HTTPBearer(auto_error=False)


def get_identity_verifier() -> IdentityVerifier:
    return build_identity_verifier()


def get_mailer() -> InviteMailer:
    return InviteMailer.from_settings(settings)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> Caller:
    """
    Dependency to get the authenticated caller from the bearer token.
    Raises AuthenticationException (401 UNAUTHORIZED) for missing or invalid tokens.

    Example:
        @router.post("/protected")
        async def protected_route(current_user: Caller = Depends(get_current_user)):
            return {"user_id": current_user.id}
    """
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise AuthenticationException("Missing Authorization bearer token")

    caller = verifier.verify(credentials.credentials)
    if caller is None:
        raise AuthenticationException("Invalid session")

    return caller
