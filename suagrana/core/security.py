from datetime import datetime, timedelta, UTC

from jose import JWTError, jwt
from passlib.context import CryptContext

from suagrana.config import settings
from suagrana.core.exceptions import UnauthorizedException

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def _create_token(user_id: int, token_type: str, expires_delta: timedelta) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "type": token_type,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_access_token(user_id: int) -> str:
    return _create_token(
        user_id, ACCESS_TOKEN, timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )


def create_refresh_token(user_id: int) -> str:
    return _create_token(
        user_id, REFRESH_TOKEN, timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    )


def decode_jwt(token: str, expected_type: str = ACCESS_TOKEN) -> dict:
    """
    Decode and validate a JWT signed with SECRET_KEY.

    Args:
        token: Encoded JWT from the Authorization header or a cookie
        expected_type: "access" or "refresh"

    Returns:
        Decoded payload with 'sub' (user id), 'type' and 'exp'

    Raises:
        UnauthorizedException: If the token is invalid, expired or of the wrong type
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        raise UnauthorizedException(f"Invalid token: {str(e)}")

    if payload.get("exp") is None:
        raise UnauthorizedException("Token missing expiration")
    if payload.get("sub") is None:
        raise UnauthorizedException("Token missing user identifier")
    # Tokens without a type claim are treated as access tokens
    if payload.get("type", ACCESS_TOKEN) != expected_type:
        raise UnauthorizedException("Invalid token type")

    return payload


def extract_user_id(token: str, expected_type: str = ACCESS_TOKEN) -> int:
    """Extract the numeric user id from a token's 'sub' claim"""
    payload = decode_jwt(token, expected_type)
    try:
        return int(payload["sub"])
    except (TypeError, ValueError):
        raise UnauthorizedException("Invalid token subject")
