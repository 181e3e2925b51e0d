"""Authentication endpoints (API JWT)."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.security import create_access_token, get_current_user, get_password_hash, verify_password
from app.db.session import get_db
from app.models.user import User
from app.schemas.auth import LoginRequest, LoginResponse, RegisterRequest, UserEnvelope, UserRead
from app.services.user_service import create_user, get_user_by_email, identity_taken, mark_logged_in

router: APIRouter = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/register", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> UserEnvelope:
    if identity_taken(db, username=payload.username, email=payload.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User already exists")
    try:
        user = create_user(
            db=db,
            username=payload.username,
            email=payload.email,
            hashed_password=get_password_hash(payload.password),
            role="CUSTOMER",
            phone=payload.phone,
            address=payload.address,
        )
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User already exists") from exc
    logger.info("[AUTH] Registered user_id=%s", user.id)
    return UserEnvelope(user=UserRead.model_validate(user))


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> LoginResponse:
    user: User | None = get_user_by_email(db=db, email=payload.email)
    if user is None or not user.is_active or not verify_password(payload.password, user.password_hash):
        logger.info("[AUTH] Failed login for %s", payload.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    mark_logged_in(db, user)
    return LoginResponse(
        user=UserRead.model_validate(user),
        access_token=create_access_token(data={"sub": str(user.id)}, settings=settings),
    )


@router.get("/user", response_model=UserEnvelope)
def me(current_user: User = Depends(get_current_user)) -> UserEnvelope:
    return UserEnvelope(user=UserRead.model_validate(current_user))
