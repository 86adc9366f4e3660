import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session as SQLModelSession, or_, select  # type: ignore

from .error_handlers import handle_authentication_error, handle_authorization_error
from .error_types import TokenValidationError
from .models import CallerIdentity, UserInDB, UserRegister
from .security import decode_access_token, get_password_hash

logger = logging.getLogger(__name__)


def get_user_by_email(session: SQLModelSession, email: str) -> Optional[UserInDB]:
    """Fetches a user from the database by email."""
    statement = select(UserInDB).where(UserInDB.email == email)
    return session.exec(statement).first()


def get_user_by_id(session: SQLModelSession, user_id: int) -> Optional[UserInDB]:
    return session.get(UserInDB, user_id)


def list_all_users_from_db(session: SQLModelSession) -> List[UserInDB]:
    statement = select(UserInDB).order_by(UserInDB.id)
    return list(session.exec(statement).all())


def add_user_to_db(session: SQLModelSession, user_in: UserRegister) -> UserInDB:
    """Adds a new user to the database."""
    statement = select(UserInDB).where(
        or_(UserInDB.email == user_in.email, UserInDB.username == user_in.username)
    )
    if session.exec(statement).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email or username already exists.",
        )

    user_in_db = UserInDB(
        username=user_in.username,
        email=user_in.email,
        hashed_password=get_password_hash(user_in.password),
    )
    session.add(user_in_db)
    session.commit()
    session.refresh(user_in_db)
    return user_in_db


def set_admin_grant(session: SQLModelSession, email: str, granted: bool) -> Optional[UserInDB]:
    """Grants (timestamps) or revokes admin rights. Returns None if the user does not exist."""
    user_in_db = get_user_by_email(session, email)
    if not user_in_db:
        return None
    user_in_db.admin_granted_at = datetime.now(timezone.utc) if granted else None
    session.add(user_in_db)
    session.commit()
    session.refresh(user_in_db)
    logger.info(f"Admin rights for '{email}' {'granted' if granted else 'revoked'}.")
    return user_in_db


# --- OAuth2 Scheme ---
# auto_error is off so a missing token gets its own 401 detail
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/users/login", auto_error=False)


# --- Dependency Functions ---
async def get_current_identity(token: Optional[str] = Depends(oauth2_scheme)) -> CallerIdentity:
    try:
        return decode_access_token(token)
    except TokenValidationError as e:
        raise handle_authentication_error(e.reason)


async def get_current_admin(identity: CallerIdentity = Depends(get_current_identity)) -> CallerIdentity:
    if not identity.is_admin:
        logger.warning(
            f"User '{identity.username}' ({identity.id}) does not have admin role. Access denied."
        )
        raise handle_authorization_error("Access Denied: Requires Admin role.")
    return identity


async def get_optional_identity(token: Optional[str] = Depends(oauth2_scheme)) -> Optional[CallerIdentity]:
    """Resolves the caller when a valid token is present, otherwise None. Never raises."""
    if not token:
        return None
    try:
        return decode_access_token(token)
    except TokenValidationError as e:
        logger.info(f"Ignoring unusable token on optional-auth route ({e.reason.value}).")
        return None
