"""
FastAPI dependencies for authentication and authorization.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from identity.auth.service import AuthService, build_auth_service
from identity.models.employee import Session
from identity.utils.exceptions import AuthError


def get_auth_service(request: Request) -> AuthService:
    """Service attached to the app, built from settings on first use"""
    service = getattr(request.app.state, "auth_service", None)
    if service is None:
        service = build_auth_service()
        request.app.state.auth_service = service
    return service


def get_session_token(request: Request) -> Optional[str]:
    """Extract session token from request (Authorization header or cookie)"""
    # Try Authorization header first
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip()

    # Try cookie
    service = get_auth_service(request)
    token = request.cookies.get(service.settings.auth.session_cookie_name)
    if token:
        return token

    return None


async def get_current_session(
    request: Request,
    service: AuthService = Depends(get_auth_service),
) -> Session:
    """Dependency to get the session behind the presented token"""
    token = get_session_token(request)
    try:
        return service.get_session(token)
    except AuthError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )


def require_role(*roles: str):
    """Dependency factory for role-based access control"""
    async def role_checker(current: Session = Depends(get_current_session)) -> Session:
        if current.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires {' or '.join(roles)} role",
            )
        return current

    return role_checker


# Pre-configured dependencies
require_admin = require_role("Admin")
