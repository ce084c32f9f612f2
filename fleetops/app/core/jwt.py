"""
Access token issue and verification.

Tokens are HS256 JWTs carrying the user's email (sub), id, role and a unique
jti. The jti is what logout revokes.
"""

import uuid
from datetime import timedelta
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from fleetops.app.core.config import settings
from fleetops.app.core.timeutils import utcnow

REQUIRED_CLAIMS = ("sub", "user_id", "role", "jti")


def create_access_token(user, expires_delta: Optional[timedelta] = None) -> str:
    """
    Issue an access token for `user` (anything with id, email and role).

    Claims:
        {"sub": "dispatcher@fleetops.com", "user_id": 12, "role": "DISPATCHER",
         "jti": "<hex>", "exp": <unix time>}
    """
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    role = getattr(user.role, "value", user.role)
    claims = {
        "sub": user.email,
        "user_id": user.id,
        "role": role,
        "jti": uuid.uuid4().hex,
        "exp": utcnow() + lifetime,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Verify signature and expiry and return the claims.

    Returns None for a bad or expired token, or one missing any required claim.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    if any(not payload.get(claim) for claim in REQUIRED_CLAIMS):
        return None
    return payload
