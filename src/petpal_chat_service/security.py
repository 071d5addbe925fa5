from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from fastapi import HTTPException, Request, WebSocket, status
from jose import JWTError, jwt

from .config import settings
from .errors import Forbidden
from .logging_config import logger
from .models import normalize_email


class AuthError(Exception):
    pass


@dataclass
class SessionIdentity:
    email: str
    claims: dict = field(default_factory=dict)


def parse_bearer(
    headers: Mapping[str, str], query_params: Optional[Mapping[str, Any]] = None
) -> Optional[str]:
    """Parse a Bearer token from HTTP headers or query params.

    - Looks for Authorization: Bearer <token>
    - Falls back to query param `token`
    """
    auth = headers.get("authorization") or headers.get("Authorization")
    if auth:
        parts = auth.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]
    if query_params is not None:
        token = query_params.get("token")  # type: ignore[index]
        if isinstance(token, str) and token:
            return token
    return None


def decode_session_token(token: str) -> SessionIdentity:
    """Verify a user JWT and extract the email it was issued for.

    Issuer and audience are only verified when configured.
    """
    issuer = settings.AUTH_JWT_ISSUER
    audience = settings.AUTH_JWT_AUDIENCE
    options = {
        "verify_signature": True,
        "verify_exp": True,
        "verify_iss": bool(issuer),
        "verify_aud": bool(audience),
    }
    try:
        claims = jwt.decode(
            token,
            settings.AUTH_JWT_SECRET_KEY,
            algorithms=[settings.AUTH_JWT_ALGORITHM],
            audience=audience or None,
            issuer=issuer or None,
            options=options,
        )
    except JWTError as e:
        raise AuthError(str(e))

    email = normalize_email(claims.get("email"))
    if not email:
        raise AuthError("Token has no email claim")
    return SessionIdentity(email=email, claims=claims)


async def get_session_identity(request: Request) -> Optional[SessionIdentity]:
    """
    FastAPI dependency resolving the caller's verified identity.

    Returns None when session binding is disabled, in which case callers are
    identified by the email they send.
    """
    if not settings.session_binding_enabled():
        return None
    token = parse_bearer(request.headers)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return decode_session_token(token)
    except AuthError as e:
        logger.debug("JWT validation failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )


def authenticate_websocket(websocket: WebSocket) -> Optional[SessionIdentity]:
    """Same as get_session_identity for the live channel; raises AuthError."""
    if not settings.session_binding_enabled():
        return None
    token = parse_bearer(websocket.headers, websocket.query_params)
    if not token:
        raise AuthError("Missing bearer token")
    return decode_session_token(token)


def bind_email(identity: Optional[SessionIdentity], claimed_email: Optional[str]) -> None:
    """Reject a request whose email differs from the verified session email."""
    if identity is None:
        return
    if normalize_email(claimed_email) != identity.email:
        raise Forbidden("Email does not match the authenticated session")
