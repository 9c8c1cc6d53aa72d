from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from sqlalchemy.orm import Session

from database import get_db
from models import User
from utils.auth_service import AuthService
from utils.credential_store import CredentialStore
from utils.errors import Unauthenticated


router = APIRouter(prefix="/auth", tags=["auth"])
bearer = HTTPBearer(auto_error=False)


def ok(message: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    return body


def get_auth_service(request: Request, db: Session = Depends(get_db)) -> AuthService:
    state = request.app.state
    return AuthService(
        CredentialStore(db),
        mailer=state.mailer,
        signer=state.token_signer,
        clock=state.clock,
    )


def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    service: AuthService = Depends(get_auth_service),
) -> User:
    if not creds or not creds.credentials:
        raise Unauthenticated("Missing Authorization token")
    return service.current_user(creds.credentials)


# Fields are optional here so a missing value is reported with the same
# message shape as an empty one.
class RegisterIn(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class VerifyOtpIn(BaseModel):
    email: Optional[str] = None
    otp: Optional[str] = None


class ResendOtpIn(BaseModel):
    email: Optional[str] = None


class LoginIn(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


@router.post("/register")
def register(payload: RegisterIn, service: AuthService = Depends(get_auth_service)):
    data = service.register(
        name=payload.name or "",
        email=payload.email or "",
        password=payload.password or "",
    )
    return ok("OTP sent to your email successfully. Please check your inbox.", data)


@router.post("/verify-otp")
def verify_otp(payload: VerifyOtpIn, service: AuthService = Depends(get_auth_service)):
    data = service.verify_otp(email=payload.email or "", otp=payload.otp or "")
    return ok("User verified successfully", data)


@router.post("/resend-otp")
def resend_otp(payload: ResendOtpIn, service: AuthService = Depends(get_auth_service)):
    data = service.resend_otp(email=payload.email or "")
    return ok("A new OTP has been sent to your email.", data)


@router.post("/login")
def login(payload: LoginIn, service: AuthService = Depends(get_auth_service)):
    data = service.login(email=payload.email or "", password=payload.password or "")
    return ok("Login successful", data)


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return ok("Authenticated", {"user": current_user.public()})
