"""Registration and login. The username issued here is the chat sender identity."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr, field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.messages import (
    AUTH_INVALID_PASSWORD,
    AUTH_LOGIN_FAILED,
    AUTH_LOGIN_SUCCESS,
    AUTH_USER_NOT_FOUND,
    REG_FAILED,
    REG_FIELD_EXISTS,
    REG_SUCCESS,
    REG_USERNAME_REQUIRED,
)
from app.core.security import MIN_PASSWORD_LENGTH, create_access_token, get_password_hash, verify_password
from app.models.user import User


logger = logging.getLogger("app.api.auth")

router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    username: str

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError(REG_USERNAME_REQUIRED)
        if len(v) > 50:
            raise ValueError("Username must be less than 50 characters")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    message: str
    token: str
    username: str


def _duplicate_field(db: Session, payload: RegisterRequest) -> str | None:
    if db.query(User).filter(User.email == payload.email).first():
        return "email"
    if db.query(User).filter(User.username == payload.username).first():
        return "username"
    return None


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> dict:
    try:
        duplicate = _duplicate_field(db, payload)
        if duplicate:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=REG_FIELD_EXISTS.format(field=duplicate),
            )

        user = User(
            email=payload.email,
            username=payload.username,
            password_hash=get_password_hash(payload.password),
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email/username
            db.rollback()
            duplicate = _duplicate_field(db, payload) or "user"
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=REG_FIELD_EXISTS.format(field=duplicate),
            )
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Registration failed: username=%s, %s", payload.username, e, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=REG_FAILED,
        )

    logger.info("User registered: user_id=%s, username=%s", user.id, user.username)
    return {"message": REG_SUCCESS}


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> LoginResponse:
    try:
        user = db.query(User).filter(User.email == payload.email).first()
    except SQLAlchemyError as e:
        logger.error("Login failed: %s", e, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=AUTH_LOGIN_FAILED,
        )

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=AUTH_USER_NOT_FOUND,
        )

    if not verify_password(payload.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=AUTH_INVALID_PASSWORD,
        )

    token = create_access_token(user.id, claims={"email": user.email, "username": user.username})
    logger.info("User logged in: user_id=%s", user.id)
    return LoginResponse(message=AUTH_LOGIN_SUCCESS, token=token, username=user.username)
