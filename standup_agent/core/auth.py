from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from ..config import Settings

security = HTTPBearer(auto_error=False)


def create_access_token(data: dict, config: Settings, expires_delta: Optional[timedelta] = None) -> str:
    """Create a bot webhook token signed with bot_auth_secret"""
    if not config.bot_auth_secret:
        raise ValueError("bot_auth_secret is not configured")

    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=config.access_token_expire_minutes)

    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.bot_auth_secret, algorithm=config.algorithm)


async def verify_bot_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[Dict[str, Any]]:
    """Require a valid bearer token when bot_auth_secret is set; open otherwise"""
    config: Settings = request.app.state.settings
    if not config.bot_auth_secret:
        return None

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if credentials is None:
        raise credentials_exception

    try:
        payload = jwt.decode(
            credentials.credentials,
            config.bot_auth_secret,
            algorithms=[config.algorithm]
        )
    except JWTError:
        raise credentials_exception

    if payload.get("sub") is None:
        raise credentials_exception

    return payload
