import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session as SQLModelSession

from ..core import auth  # Import auth module
from ..core import models
from ..core.auth import get_current_identity
from ..core.error_handlers import handle_not_found, handle_processing_error
from ..core.security import build_claims, create_access_token, verify_password
from ..db import get_db_session

user_activity_logger = logging.getLogger("user_activity")

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("/register", response_model=models.RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register_user(
    user_in: models.UserRegister,
    session: Annotated[SQLModelSession, Depends(get_db_session)],
):
    auth.logger.info(f"Attempting to register new user: {user_in.username}")
    try:
        created = auth.add_user_to_db(session, user_in)
    except HTTPException as e:  # duplicate email or username
        auth.logger.warning(f"Registration failed for {user_in.username}: {e.detail}")
        raise e
    except SQLAlchemyError as e:
        session.rollback()
        raise handle_processing_error("registering user", e, resource=user_in.username)
    user_activity_logger.info(f"REGISTER: user_id={created.id}, username={created.username}")
    return models.RegisterResponse(message="User registered successfully", userId=created.id)


@router.post("/login", response_model=models.LoginResponse)
async def login(
    credentials: models.UserLogin,
    session: Annotated[SQLModelSession, Depends(get_db_session)],
):
    """Checks the password and issues a signed bearer token."""
    user_in_db = auth.get_user_by_email(session, credentials.email)
    if not user_in_db or not verify_password(credentials.password, user_in_db.hashed_password):
        auth.logger.warning(f"Failed login attempt for '{credentials.email}'.")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    auth.logger.info(f"User '{user_in_db.username}' authenticated successfully. Issuing token.")
    token = create_access_token(data=build_claims(user_in_db))
    user_activity_logger.info(f"LOGIN: user_id={user_in_db.id}, username={user_in_db.username}")
    return models.LoginResponse(token=token, username=user_in_db.username, message="Login successful")


@router.get("/verifyAdmin", response_model=models.VerifyAdminResponse)
async def verify_admin(
    identity: Annotated[models.CallerIdentity, Depends(get_current_identity)],
    session: Annotated[SQLModelSession, Depends(get_db_session)],
):
    # Checked against the database, not the token, so a revoked grant takes effect immediately
    user_in_db = auth.get_user_by_id(session, identity.id)
    if user_in_db is None:
        raise handle_not_found("user", str(identity.id))
    if user_in_db.admin_granted_at is None:
        auth.logger.warning(f"User '{user_in_db.username}' ({user_in_db.id}) is not an admin.")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access Denied: Not an admin.")
    return models.VerifyAdminResponse(isAdmin=True, grantedAt=user_in_db.admin_granted_at)
