"""API routes: login, session, password change, handshake and peer actions"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as SchemaError

from identity.auth.service import AuthService
from identity.housekeeping.cache_cleaner import clean_cache
from identity.models.employee import Session
from identity.utils.logger import get_logger

from .auth_deps import get_auth_service, get_current_session, get_session_token, require_admin
from .models import (
    ActionRequest,
    ChangePasswordRequest,
    HandshakeResponse,
    LoginRequest,
    LoginResponse,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["api"])
auth_router = APIRouter(prefix="/auth", tags=["auth"])
action_router = APIRouter(tags=["peer"])


@auth_router.post("/login", response_model=LoginResponse)
async def login(login_data: LoginRequest, service: AuthService = Depends(get_auth_service)):
    """Login with employee code and password"""
    result = service.login(login_data.code, login_data.password)

    response = JSONResponse(result)
    response.set_cookie(
        key=service.settings.auth.session_cookie_name,
        value=result["token"],
        max_age=service.settings.auth.session_ttl_seconds,
        httponly=True,
        secure=service.settings.app.environment.lower() == "production",
        samesite="lax",
    )
    return response


@auth_router.get("/session")
async def current_session(current: Session = Depends(get_current_session)) -> Dict[str, Any]:
    """Session payload behind the presented token"""
    return {"user": current.model_dump()}


@auth_router.post("/change-password")
async def change_password(
    request: Request,
    password_data: ChangePasswordRequest,
    service: AuthService = Depends(get_auth_service),
):
    """Change the logged-in employee's password"""
    token = get_session_token(request)
    return service.change_password(token, password_data.old_password, password_data.new_password)


@auth_router.post("/handshake", response_model=HandshakeResponse)
async def generate_handshake(request: Request, service: AuthService = Depends(get_auth_service)):
    """Issue a single-use token a peer application can redeem once"""
    token = get_session_token(request)
    return service.generate_handshake_token(token)


@auth_router.get("/handoff")
async def peer_handoff(request: Request, service: AuthService = Depends(get_auth_service)):
    """Contract app URL with a fresh handshake token attached"""
    return {"url": service.peer_handoff_url(get_session_token(request))}


@action_router.post("/exec")
async def run_action(request: Request, service: AuthService = Depends(get_auth_service)):
    """
    JSON action endpoint for peer applications.

    {"action": "verifyHandshakeToken", "token": "..."} -> {"user": {...} | null}
    Anything else -> {"error": "..."}
    """
    try:
        body = await request.json()
        action = ActionRequest(**body) if isinstance(body, dict) else None
        if action is None:
            raise ValueError("Request body must be a JSON object")
        if action.action == "verifyHandshakeToken":
            user = service.verify_handshake_token(action.token)
            return {"user": user.model_dump() if user else None}
        raise ValueError("Unknown action")
    except (ValueError, SchemaError) as e:
        # json.JSONDecodeError is a ValueError
        logger.warning("Error in action endpoint", error=str(e))
        return JSONResponse({"error": str(e)})


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.post("/admin/cache/clear")
async def clear_cache(
    admin: Session = Depends(require_admin),
    service: AuthService = Depends(get_auth_service),
):
    """Drop every cached session and handshake (admin only)"""
    dropped = clean_cache(service.cache)
    logger.info("Cache cleared by admin", code=admin.code)
    return {"status": "success", "entries": dropped}
