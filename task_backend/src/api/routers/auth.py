from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ..container import Services
from ..credentials import CredentialStore
from ..dependencies import get_credentials, get_current_identity, get_services
from ..models import Identity
from ..schemas import AuthResponse, LoginRequest, ProfileResponse, RegisterRequest, UserOut

router = APIRouter(
    prefix="/api/auth",
    tags=["auth"],
)


# PUBLIC_INTERFACE
@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create a user account and return a bearer token for it.",
    responses={
        201: {"description": "User registered"},
        400: {"description": "Missing field, invalid email, short password or duplicate email"},
    },
)
def register(
    payload: RegisterRequest,
    credentials: CredentialStore = Depends(get_credentials),
    services: Services = Depends(get_services),
) -> AuthResponse:
    """
    Register a new user. The password is stored only as a bcrypt digest.
    """
    user = credentials.register(payload.name, payload.email, payload.password)
    token = services.issuer.issue(user["id"])
    return AuthResponse(message="User registered successfully", token=token, user=UserOut(**user))


# PUBLIC_INTERFACE
@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Login",
    description="Exchange email and password for a bearer token.",
    responses={
        200: {"description": "Login successful"},
        400: {"description": "Missing email or password"},
        401: {"description": "Invalid email or password"},
    },
)
def login(
    payload: LoginRequest,
    credentials: CredentialStore = Depends(get_credentials),
    services: Services = Depends(get_services),
) -> AuthResponse:
    """
    Verify credentials and issue a token.
    """
    user = credentials.verify_credentials(payload.email, payload.password)
    token = services.issuer.issue(user["id"])
    return AuthResponse(message="Login successful", token=token, user=UserOut(**user))


# PUBLIC_INTERFACE
@router.get(
    "/profile",
    response_model=ProfileResponse,
    summary="Profile",
    description="Return the user the bearer token belongs to.",
    responses={
        200: {"description": "Authenticated user"},
        401: {"description": "Missing or invalid token"},
    },
)
def profile(identity: Identity = Depends(get_current_identity)) -> ProfileResponse:
    return ProfileResponse(
        user=UserOut(id=identity.id, name=identity.name, email=identity.email, created_at=identity.created_at)
    )
