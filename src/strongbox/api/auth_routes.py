# Auth API - registration and login
#
# POST /api/v1/register → 201 {token, user}
# POST /api/v1/login    → 200 {token, user}
#
# Missing fields surface as 400 from the identity service; a duplicate
# username/email as 409; bad credentials as a single 401.

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel

from ..auth import IdentityService

router = APIRouter(prefix="/api/v1", tags=["auth"])


# Request Models
class RegisterRequest(BaseModel):
    username: str = ""
    email: str = ""
    password: str = ""


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


def get_identity_service(request: Request) -> IdentityService:
    return request.app.state.identity_service


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    request: RegisterRequest,
    service: IdentityService = Depends(get_identity_service),
):
    """Register a new identity and return its first session token."""
    result = service.register(request.username, request.email, request.password)
    return result.to_dict()


@router.post("/login")
def login(
    request: LoginRequest,
    service: IdentityService = Depends(get_identity_service),
):
    """Exchange username/password for a session token."""
    result = service.login(request.username, request.password)
    return result.to_dict()
