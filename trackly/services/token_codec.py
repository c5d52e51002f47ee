"""Invite token generation, hashing and signing.

Only ``hash_token(token)`` is ever persisted or used for lookup. The raw token
leaves the server exactly once, inside the invite URL.
"""

import base64
import hashlib
import hmac
import secrets

# 32 random bytes, 256 bits of entropy
TOKEN_BYTES = 32


def generate_token() -> str:
    """Return a new URL-safe opaque invite token."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def hash_token(token: str) -> str:
    """Return the SHA-256 hex digest of a raw token string."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def timing_safe_equals(a: str, b: str) -> bool:
    """Constant-time string comparison for secrets and signatures."""
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def sign_token(secret: str, token: str) -> str:
    """HMAC-SHA256 of ``token`` keyed by ``secret``, base64url without padding."""
    digest = hmac.new(secret.encode("utf-8"), token.encode("utf-8"), hashlib.sha256).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def verify_token_signature(secret: str, token: str, signature: str) -> bool:
    return timing_safe_equals(sign_token(secret, token), signature)
