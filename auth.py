"""
Bearer token issue and verification.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Cookie, Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

import config
from errors import Unauthenticated
from schemas import TokenPayload

logger = logging.getLogger(__name__)

TOKEN_COOKIE = "token"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def create_access_token(user: dict, expires_delta: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(days=config.ACCESS_TOKEN_EXPIRE_DAYS))
    to_encode = {
        "sub": str(user["_id"]),
        "userId": str(user["_id"]),
        "username": user["username"],
        "email": user["email"],
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(to_encode, config.SECRET_KEY, algorithm=config.ALGORITHM)


def decode_access_token(token: str) -> TokenPayload:
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except JWTError as e:
        logger.info("Rejected token: %s", e)
        raise Unauthenticated()
    user_id = payload.get("userId") or payload.get("sub")
    if not user_id or not payload.get("username"):
        raise Unauthenticated()
    return TokenPayload(user_id=user_id, username=payload["username"], email=payload.get("email", ""))


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    cookie_token: Optional[str] = Cookie(None, alias=TOKEN_COOKIE),
) -> TokenPayload:
    token = token or cookie_token
    if not token:
        raise Unauthenticated()
    return decode_access_token(token)
