"""
Authentication router
"""
from datetime import timedelta
from fastapi import APIRouter, Depends, HTTPException, status, Request, Response
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from scholarship_app.database import get_db
from scholarship_app.schemas.user import UserRegister, Token, UserResponse
from scholarship_app.services.auth import (
    authenticate_user, create_access_token, get_current_user,
    register_user, update_last_login
)
from scholarship_app.services.audit import audit_recorder
from scholarship_app.config import settings
from scholarship_app.models.audit import AuditAction
from scholarship_app.models.user import User

router = APIRouter(prefix="/auth", tags=["Authentication"])


def client_info(request: Request) -> dict:
    """IP address and user agent for audit entries"""
    return {
        "ip_address": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Applicant self-registration
    """
    user = register_user(db, user_data.email, user_data.password, name=user_data.name)
    audit_recorder.record(db, AuditAction.AUTH_REGISTER, user_id=user.id, **client_info(request))
    db.commit()
    return user


@router.post("/login", response_model=Token)
async def login(
    request: Request,
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    """
    Login endpoint

    The OAuth2 form's username field carries the email. Returns a JWT access
    token and sets it in a cookie.
    """
    user = authenticate_user(db, form_data.username, form_data.password)
    if not user:
        audit_recorder.record(
            db, AuditAction.AUTH_FAILED_LOGIN,
            details={"email": form_data.username}, **client_info(request)
        )
        db.commit()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Update last login
    update_last_login(db, user)
    audit_recorder.record(db, AuditAction.AUTH_LOGIN, user_id=user.id, **client_info(request))
    db.commit()

    # Create access token
    access_token_expires = timedelta(minutes=settings.access_token_expire_minutes)
    access_token = create_access_token(
        data={"sub": user.email, "role": user.role.value},
        expires_delta=access_token_expires
    )

    # Set cookie
    response.set_cookie(
        key="access_token",
        value=access_token,
        httponly=True,
        max_age=settings.access_token_expire_minutes * 60,
        samesite="lax"
    )

    return {"access_token": access_token, "token_type": "bearer"}


@router.post("/logout")
async def logout(
    response: Response,
    current_user: User = Depends(get_current_user)
):
    """
    Logout endpoint - clears the token cookie
    """
    response.delete_cookie(key="access_token")
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """
    Get current user information
    """
    return current_user
