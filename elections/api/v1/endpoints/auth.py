"""Authentication endpoints."""
from fastapi import APIRouter, HTTPException, Request, Response

from elections.schemas import AdminLoginRequest, SuccessResponse
from elections.core.security import verify_admin_password, create_access_token
from elections.core import config
from elections.core.logging_config import get_logger
from elections.core.rate_limit import get_client_ip

ADMIN_COOKIE = "admin_token"

logger = get_logger(__name__)
router = APIRouter()


@router.post("/admin/login", response_model=SuccessResponse)
async def admin_login(login: AdminLoginRequest, request: Request, response: Response) -> SuccessResponse:
    """
    Authenticate the election administrator and set the admin cookie.

    The password is checked against ``ADMIN_PASSWORD`` (Argon2 hash or
    plaintext). On success a JWT is stored in an httpOnly cookie that the
    ``/admin`` endpoints require.

    Raises:
        HTTPException: 401 Unauthorized if password is invalid

    Example:
        Request:
            POST /api/v1/auth/admin/login
            {
                "password": "your-secure-password"
            }

        Response (200):
            {
                "success": true,
                "message": "Logged in successfully"
            }
            Set-Cookie: admin_token=eyJhbGc...; HttpOnly; SameSite=Lax
    """
    if not verify_admin_password(login.password):
        logger.warning("admin_login_failed", client_ip=get_client_ip(request))
        raise HTTPException(status_code=401, detail="Invalid password")

    access_token = create_access_token(data={"is_admin": True})

    response.set_cookie(
        key=ADMIN_COOKIE,
        value=access_token,
        httponly=True,
        secure=config.settings.ENVIRONMENT == "production",  # Requires HTTPS in production
        samesite="lax",
        max_age=config.settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )

    logger.info("admin_logged_in")
    return SuccessResponse(success=True, message="Logged in successfully")


@router.post("/admin/logout", response_model=SuccessResponse)
async def admin_logout(response: Response) -> SuccessResponse:
    """Clear the admin cookie. Safe to call when not logged in."""
    response.delete_cookie(key=ADMIN_COOKIE, httponly=True, samesite="lax")
    return SuccessResponse(success=True, message="Logged out successfully")
