"""
Name: Auth Routes (JWT)

Responsibilities:
  - Register users and hand back generated credentials
  - Log in with lockout handling and issue a bearer token
  - Change password for the authenticated principal
  - Expose /auth/me and a stateless /auth/logout

Collaborators:
  - identity.account_security.AccountSecurityService
  - identity.tokens.TokenService
  - identity.auth_users.require_username
  - error_responses: 401/403 problem responses

Notes:
  - Domain errors (lockout, not found, wrong old password, username taken,
    database) are mapped by exception_handlers.py
  - Usernames may be empty: names with no usable letters normalize to ""
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator

from .container import get_account_security_service, get_token_service
from .error_responses import forbidden, unauthorized
from .identity.account_security import AccountSecurityService
from .identity.auth_users import require_username
from .identity.tokens import TokenService

router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)


class CredentialsResponse(BaseModel):
    username: str
    password: str


class LoginRequest(BaseModel):
    username: str = Field(..., max_length=200)
    password: str = Field(..., min_length=1, max_length=512)

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        return v.strip()


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class ChangePasswordRequest(BaseModel):
    username: str = Field(..., max_length=200)
    old_password: str = Field(..., min_length=1, max_length=512)
    new_password: str = Field(..., min_length=1, max_length=512)


class MeResponse(BaseModel):
    username: str


@router.post("/register", response_model=CredentialsResponse, status_code=201)
def register(
    req: RegisterRequest,
    service: AccountSecurityService = Depends(get_account_security_service),
):
    user, password = service.register(req.first_name, req.last_name)
    return CredentialsResponse(username=user.username, password=password)


@router.post("/login", response_model=LoginResponse)
def login(
    req: LoginRequest,
    service: AccountSecurityService = Depends(get_account_security_service),
    tokens: TokenService = Depends(get_token_service),
):
    # AccountLockedError propagates to the 423 handler
    if not service.authenticate(req.username, req.password):
        raise unauthorized("Invalid username or password.")

    return LoginResponse(
        access_token=tokens.issue(req.username),
        expires_in=tokens.expires_in,
    )


@router.put("/change-password")
def change_password(
    req: ChangePasswordRequest,
    principal: str = Depends(require_username()),
    service: AccountSecurityService = Depends(get_account_security_service),
):
    if principal != req.username:
        raise forbidden("Cannot change the password of another user.")
    service.change_password(req.username, req.old_password, req.new_password)
    return {"ok": True}


@router.post("/logout")
def logout():
    # R: tokens are stateless; the client discards its copy
    return {"ok": True}


@router.get("/me", response_model=MeResponse)
def me(principal: str = Depends(require_username())):
    return MeResponse(username=principal)
