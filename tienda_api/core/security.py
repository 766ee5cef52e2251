"""Token and password security for the Tienda API.

Implements JWT bearer authentication with a single shared secret:
tokens carry the user id (``sub``) and email, are signed with
``JWT_SECRET_KEY`` and expire after ``ACCESS_TOKEN_EXPIRE_MINUTES``.
Passwords are stored as bcrypt hashes.

There is no per-resource policy: any valid token reaches every protected
route.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import bcrypt
import jwt

from tienda_api.core.config import settings, DEFAULT_JWT_SECRET
from tienda_api.core.errors import AuthenticationError, TokenRejectedError
from tienda_api.core.logging import get_logger
from tienda_api.domain.user import TokenClaims

logger = get_logger(__name__)

# JWT Configuration from settings
SECRET_KEY = settings.jwt_secret_key
ALGORITHM = settings.jwt_algorithm
ACCESS_TOKEN_EXPIRE_MINUTES = settings.access_token_expire_minutes

MISSING_TOKEN_MESSAGE = "Acceso denegado: Token no proporcionado"
INVALID_TOKEN_MESSAGE = "Acceso denegado: Token inválido o expirado"

# Production security check
if settings.environment == "production":
    if SECRET_KEY == DEFAULT_JWT_SECRET:
        raise ValueError("JWT_SECRET_KEY must be set to a secure value in production!")
    if len(SECRET_KEY) < 32:
        logger.warning("JWT_SECRET_KEY should be at least 32 characters for security")

# Missing credentials are reported by the gate itself (401), not by FastAPI
security = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    """Hash a plaintext password with a fresh bcrypt salt."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed: Optional[str]) -> bool:
    """Constant-time check of ``password`` against a stored bcrypt hash.

    A stored value that is not a bcrypt hash never matches.
    """
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Stored credential is not a bcrypt hash")
        return False


def create_access_token(
    user_id: str,
    email: str,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create a signed JWT for a user.

    Args:
        user_id: Store id of the user, written to ``sub``
        email: User email
        expires_delta: Token lifetime (default: ACCESS_TOKEN_EXPIRE_MINUTES)

    Returns:
        Encoded JWT token
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    now = datetime.now(timezone.utc)
    expire = now + expires_delta

    payload = {
        "sub": user_id,
        "email": email,
        "exp": expire,
        "iat": now,
    }

    token = jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)

    logger.info(
        f"Access token created for user {email}",
        extra={"user_id": user_id}
    )

    return token


def decode_token(token: str) -> TokenClaims:
    """Verify signature and expiry, then return the identity claims.

    Raises:
        TokenRejectedError: If the token is malformed, tampered with or expired
    """
    try:
        payload = jwt.decode(
            token,
            SECRET_KEY,
            algorithms=[ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token attempted")
        raise TokenRejectedError(INVALID_TOKEN_MESSAGE, context={"reason": "expired"})
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid token attempted: {e}")
        raise TokenRejectedError(INVALID_TOKEN_MESSAGE, context={"reason": "invalid"})

    return TokenClaims(
        id=payload["sub"],
        email=payload.get("email", ""),
        exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc) if payload.get("iat") else None,
    )


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenClaims:
    """FastAPI dependency guarding every protected router.

    Missing or non-bearer ``Authorization`` header -> 401; invalid or expired
    token -> 403. On success the claims are also stored on
    ``request.state.user``.

    Example:
        >>> router = APIRouter(dependencies=[Depends(get_current_user)])
    """
    if credentials is None or not credentials.credentials:
        logger.warning(f"Request without token: {request.method} {request.url.path}")
        raise AuthenticationError(MISSING_TOKEN_MESSAGE)

    claims = decode_token(credentials.credentials)
    request.state.user = claims

    logger.debug(f"User authenticated: {claims.email}", extra={"user_id": claims.id})

    return claims
