from datetime import datetime, timedelta, timezone
from fastapi import status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from pydantic import ValidationError as PydanticValidationError
from shared.utils.app_status_code import AppStatusCode
from shared.utils.enums import UserRole
from shared.core.config import settings
from shared.helpers.json_response_helper import error_response
from shared.core.schemas import UserToken

security = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_minutes: int = None):
    payload = data.copy()

    expires = datetime.now(timezone.utc) + timedelta(
        minutes=expires_minutes or settings.JWT_EXPIRE_MINUTES)
    payload["exp"] = expires

    if "user_id" in payload:
        payload["user_id"] = str(payload["user_id"])
    if isinstance(payload.get("role"), UserRole):
        payload["role"] = payload["role"].value

    token = jwt.encode(payload, settings.JWT_SECRET,
                       algorithm=settings.JWT_ALGORITHM)
    return token


def verify_token(token: str) -> UserToken:
    """Verify and decode a JWT token."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET,
                             algorithms=[settings.JWT_ALGORITHM])
        return UserToken(**payload)
    except JWTError:
        return error_response(
            message="Invalid or expired token",
            status_code=AppStatusCode.AUTHENTICATION_TOKEN_EXPIRED,
            http_status=status.HTTP_401_UNAUTHORIZED
        )
    except PydanticValidationError:
        return error_response(
            message="Invalid token structure",
            status_code=AppStatusCode.AUTHENTICATION_TOKEN_INVALID,
            http_status=status.HTTP_401_UNAUTHORIZED
        )


def validate_current_token(
    credentials: HTTPAuthorizationCredentials = Depends(security),
):
    if credentials is None or not credentials.credentials:
        return error_response(
            message="No token provided",
            status_code=AppStatusCode.AUTHENTICATION_TOKEN_INVALID,
            http_status=status.HTTP_401_UNAUTHORIZED
        )

    return verify_token(credentials.credentials)


def allow_roles(*roles: UserRole):
    """Dependency factory restricting a route to the given roles."""

    def checker(current_user: UserToken = Depends(validate_current_token)):
        if current_user.role not in roles:
            return error_response(
                message=f"Access denied: {current_user.role.value} not allowed",
                status_code=AppStatusCode.AUTHENTICATION_UNAUTHORIZED_ACCESS,
                http_status=status.HTTP_403_FORBIDDEN
            )
        return current_user

    return checker


allow_landlord = allow_roles(UserRole.LANDLORD)
allow_tenant = allow_roles(UserRole.TENANT)
allow_maintenance = allow_roles(UserRole.MAINTENANCE)
