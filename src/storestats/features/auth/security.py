"""Authentication helpers: bcrypt password hashing, signed JWT bearer tokens,
and the request dependencies that resolve the caller and check whether they
may manage the store."""
import logging
from datetime import datetime, timedelta, timezone
from typing import Annotated, Any, Optional

import bcrypt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt

from ...core.config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES
from . import service as auth_service
from .models import User

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")

_ENCODING = "utf-8"


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode(_ENCODING), bcrypt.gensalt()).decode(_ENCODING)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode(_ENCODING), hashed_password.encode(_ENCODING))


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a bearer token carrying `data`, valid for `expires_delta` (config default otherwise)."""
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    claims: dict[str, Any] = {**data, "iat": issued_at, "exp": issued_at + lifetime}
    return jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)


def _unauthorized(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def read_token_subject(token: str) -> str:
    """Return the username a token was issued to.

    Raises:
        HTTPException: 401 when the token is expired, forged or has no subject.
    """
    try:
        claims = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        logger.info("Rejected expired access token")
        raise _unauthorized("Token has expired")
    except JWTError as e:
        logger.warning(f"Rejected access token: {e}")
        raise _unauthorized()

    username = claims.get("sub")
    if not username:
        logger.warning("Access token carries no subject")
        raise _unauthorized()
    return username


async def get_current_user(token: Annotated[str, Depends(oauth2_scheme)]) -> User:
    username = read_token_subject(token)
    user = await auth_service.get_user_by_username(username=username)
    if user is None:
        logger.warning(f"Token subject {username} has no account")
        raise _unauthorized()
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    return user

async def get_current_active_user(current_user: Annotated[User, Depends(get_current_user)]) -> User:
    return current_user

async def get_current_store_manager(current_user: Annotated[User, Depends(get_current_user)]) -> User:
    """Requires the "manage store" capability held by admins and shop managers."""
    if not current_user.can_manage_store:
        logger.info(f"User {current_user.username} denied store management access.")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="The user doesn't have enough privileges",
        )
    return current_user
