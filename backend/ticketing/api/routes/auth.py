"""
Authentication endpoints: register and login.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.config import get_settings
from ticketing.db.session import get_db
from ticketing.schemas.common import Envelope
from ticketing.schemas.user import Token, UserCreate, UserLogin, UserResponse
from ticketing.services.auth_service import authenticate_user, register_user

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=Envelope[UserResponse], status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    user = await register_user(db, user_data)
    return Envelope(data=UserResponse.model_validate(user), message="Registration successful")


@router.post("/login", response_model=Envelope[Token])
async def login(login_data: UserLogin, db: AsyncSession = Depends(get_db)):
    """Exchange credentials for a bearer token."""
    token = await authenticate_user(db, login_data)
    expires_in = get_settings().ACCESS_TOKEN_EXPIRE_MINUTES * 60
    return Envelope(data=Token(access_token=token, expires_in=expires_in), message="Login successful")
