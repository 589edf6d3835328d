"""Authentication endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import get_current_user, require_admin
from ..container import Services
from ..deps import get_db, get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=schemas.AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
def register(
    payload: schemas.RegisterRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
) -> schemas.AuthResponse:
    """
    Register a new account and log it in.

    The verification email goes out after the response is sent.
    """
    registration = services.users.register(db, payload)
    background_tasks.add_task(
        services.email.send_verification_email,
        registration.user.email,
        registration.verification_token,
        registration.user.username,
    )
    return schemas.AuthResponse(
        token=registration.access_token,
        user=schemas.UserFull.model_validate(registration.user),
        message="Registration successful. Please verify your email.",
    )


@router.post("/login", response_model=schemas.LoginResponse)
def login(
    payload: schemas.LoginRequest,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
) -> schemas.LoginResponse:
    """
    Login with email or username and password.

    Admins with two-factor enabled must also send ``totp_code``; without it the
    response only carries ``requires_2fa: true``.
    """
    result = services.users.login(db, payload.email, payload.password, payload.totp_code)
    if result.requires_2fa:
        return schemas.LoginResponse(requires_2fa=True)
    return schemas.LoginResponse(
        token=result.access_token,
        user=schemas.UserFull.model_validate(result.user),
    )


@router.get("/verify-email", response_model=schemas.VerifyEmailResponse)
def verify_email(
    token: str = Query(..., description="Email verification token"),
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
) -> schemas.VerifyEmailResponse:
    services.users.verify_email(db, token)
    return schemas.VerifyEmailResponse()


@router.get("/me", response_model=schemas.UserFull)
def get_me(current_user: models.User = Depends(get_current_user)) -> models.User:
    return current_user


@router.post("/2fa/setup", response_model=schemas.TwoFactorSetupResponse)
def setup_two_factor(
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(require_admin),
) -> schemas.TwoFactorSetupResponse:
    return services.users.setup_two_factor(db, current_user)


@router.post("/2fa/enable", response_model=schemas.MessageResponse)
def enable_two_factor(
    payload: schemas.TwoFactorCodeRequest,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(require_admin),
) -> schemas.MessageResponse:
    services.users.enable_two_factor(db, current_user, payload.totp_code)
    return schemas.MessageResponse(message="2FA enabled")


@router.post("/2fa/disable", response_model=schemas.MessageResponse)
def disable_two_factor(
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(require_admin),
) -> schemas.MessageResponse:
    services.users.disable_two_factor(db, current_user)
    return schemas.MessageResponse(message="2FA disabled")
