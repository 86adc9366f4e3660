import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from orbitfund.config import settings

from .error_types import TokenErrorReason, TokenValidationError
from .models import CallerIdentity, UserInDB, UserRoleEnum

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def build_claims(user: UserInDB) -> dict:
    """Claims for a user's access token. The role claim is only present for admins."""
    claims = {
        "sub": str(user.id),
        "id": user.id,
        "username": user.username,
        "email": user.email,
    }
    if user.admin_granted_at:
        claims["role"] = UserRoleEnum.admin.value
    return claims


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.jwt_access_token_expire_minutes
        )
    to_encode.update(
        {
            "exp": expire,
            "iss": settings.jwt_issuer,
            "aud": settings.jwt_audience,
        }
    )
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: Optional[str]) -> CallerIdentity:
    """
    Verifies signature, issuer, audience and expiry of a token and resolves the caller.

    Raises:
        TokenValidationError: reason is MISSING, EXPIRED or INVALID.
    """
    if not token:
        raise TokenValidationError(TokenErrorReason.MISSING)
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
        )
    except ExpiredSignatureError as e:
        raise TokenValidationError(TokenErrorReason.EXPIRED, str(e)) from e
    except JWTError as e:
        logger.warning(f"JWT decode error: {e}")
        raise TokenValidationError(TokenErrorReason.INVALID, str(e)) from e

    raw_id = payload.get("id", payload.get("sub"))
    try:
        user_id = int(raw_id)
    except (TypeError, ValueError):
        raise TokenValidationError(TokenErrorReason.INVALID, "Token carries no usable user id")

    role = UserRoleEnum.admin if payload.get("role") == UserRoleEnum.admin.value else UserRoleEnum.user
    return CallerIdentity(
        id=user_id,
        username=payload.get("username"),
        email=payload.get("email"),
        role=role,
    )
