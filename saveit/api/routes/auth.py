"""
Authentication endpoints: signup, OTP verification, login (with the optional
email-confirmation handshake) and password reset.
"""

from __future__ import annotations

from html import escape

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from saveit.accounts import confirmation, service
from saveit.api.middleware.auth import AuthenticatedUser, get_current_user
from saveit.api.responses import ok
from saveit.errors import GoneError, NotFoundError
from saveit.infrastructure.settings import login_confirmation_enabled
from saveit.observability.logging import get_logger
from saveit.storage.models import ApiModel

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = get_logger(__name__)


class SignupRequest(ApiModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None


class VerifyOtpRequest(ApiModel):
    email: str | None = None
    otp: str | None = None
    purpose: str | None = None


class ResendOtpRequest(ApiModel):
    email: str | None = None
    purpose: str | None = None


class LoginRequest(ApiModel):
    email: str | None = None
    password: str | None = None


class CheckConfirmationRequest(ApiModel):
    temp_token: str | None = None


class ForgotPasswordRequest(ApiModel):
    email: str | None = None


class ResetPasswordRequest(ApiModel):
    email: str | None = None
    otp: str | None = None
    new_password: str | None = None


_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{title}</title>
<style>
body {{ font-family: -apple-system, sans-serif; background: #f5f5f7; display: flex;
       align-items: center; justify-content: center; height: 100vh; margin: 0; }}
.card {{ background: #fff; padding: 40px; border-radius: 12px; text-align: center;
        box-shadow: 0 4px 20px rgba(0,0,0,.08); max-width: 420px; }}
h1 {{ color: {color}; font-size: 22px; }}
p {{ color: #555; }}
</style>
</head>
<body><div class="card"><h1>{title}</h1><p>{message}</p></div></body>
</html>
"""


def _page(title: str, message: str, status_code: int, color: str = "#16a34a") -> HTMLResponse:
    return HTMLResponse(
        _PAGE.format(title=escape(title), message=escape(message), color=color),
        status_code=status_code,
    )


def _client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


@router.post("/signup")
def signup(body: SignupRequest):
    result = service.signup(body.name, body.email, body.password)
    return ok(
        result,
        status_code=201,
        message="Account created. Check your email for the verification code.",
    )


@router.post("/verify-otp")
def verify_otp(body: VerifyOtpRequest):
    return ok(service.verify_otp(body.email, body.otp, body.purpose))


@router.post("/resend-otp")
def resend_otp(body: ResendOtpRequest):
    return ok(service.resend_otp(body.email, body.purpose), message="A new code has been sent")


@router.post("/login")
def login(body: LoginRequest, request: Request):
    user = service.authenticate(body.email, body.password)

    if login_confirmation_enabled():
        pending = confirmation.start_login_confirmation(
            user, _client_ip(request), request.headers.get("User-Agent")
        )
        return ok(pending, message="Login pending confirmation")

    return ok(service.complete_login(user))


@router.get("/confirm-login/{confirm_token}", response_class=HTMLResponse)
async def confirm_login(confirm_token: str):
    try:
        approved = confirmation.confirm_login(confirm_token)
    except GoneError:
        return _page(
            "Link expired", "This confirmation link has expired. Ask to log in again.", 410, "#dc2626"
        )
    except NotFoundError:
        return _page(
            "Invalid link", "This confirmation link is invalid or was already used.", 404, "#dc2626"
        )
    return _page("Login confirmed", f"{approved.username} can now finish signing in.", 200)


@router.post("/check-confirmation")
async def check_confirmation(body: CheckConfirmationRequest):
    result = confirmation.check_confirmation(body.temp_token)
    return ok(result.pop("data", None), **result)


@router.post("/forgot-password")
def forgot_password(body: ForgotPasswordRequest):
    return ok(service.forgot_password(body.email), message="Password reset code sent")


@router.post("/reset-password")
def reset_password(body: ResetPasswordRequest):
    return ok(service.reset_password(body.email, body.otp, body.new_password))


@router.get("/verify")
async def verify(user: AuthenticatedUser = Depends(get_current_user)):
    return ok({"user": service.get_user_for_session(user.id).public()})
