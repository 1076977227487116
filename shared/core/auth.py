from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import ValidationError

from shared.core.config import settings
from shared.core.schemas import UserToken
from shared.helpers.json_response_helper import error_response
from shared.utils.app_status_code import AppStatusCode
from shared.utils.enums import UserRole

security = HTTPBearer()


def create_access_token(data: dict, expires_minutes: Optional[int] = 60 * 24):
    payload = data.copy()
    if expires_minutes:
        payload["exp"] = datetime.now(timezone.utc) + \
            timedelta(minutes=expires_minutes)
    if "user_id" in payload:
        payload["user_id"] = str(payload["user_id"])
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str) -> UserToken:
    """Verify and decode a JWT token."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET,
                             algorithms=[settings.JWT_ALGORITHM])
        return UserToken(**payload)
    except ExpiredSignatureError:
        return error_response(
            message="Token expired",
            status_code=AppStatusCode.AUTHENTICATION_TOKEN_EXPIRED,
            http_status=status.HTTP_401_UNAUTHORIZED
        )
    except (JWTError, ValidationError):
        return error_response(
            message="Invalid token",
            status_code=AppStatusCode.AUTHENTICATION_TOKEN_INVALID,
            http_status=status.HTTP_401_UNAUTHORIZED
        )


def validate_current_token(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> UserToken:
    return verify_token(credentials.credentials)


def allow_roles(*roles: UserRole):
    """Dependency factory: pass only callers holding at least one of ``roles``."""

    def checker(current_user: UserToken = Depends(validate_current_token)):
        if not current_user.has_role(*roles):
            return error_response(
                message="Access forbidden for your role",
                status_code=AppStatusCode.AUTHENTICATION_UNAUTHORIZED_ACCESS,
                http_status=403
            )
        return current_user

    return checker
