"""Login and user directory endpoints."""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from leadcrm.models.auth_models import LoginRequest, Principal, TokenResponse
from leadcrm.models.lead_models import MessageResponse
from leadcrm.repositories.crm.dependencies import get_db
from leadcrm.repositories.crm.schemas.user_schema import UserCreate, UserResponse
from leadcrm.services.users.auth_service import admin_only, any_user, create_access_token
from leadcrm.services.users.user_service import UserDirectory, get_user_directory

user_router = APIRouter(tags=["Users"])


@user_router.post("/auth/login", response_model=TokenResponse)
def login(
    data: LoginRequest,
    db: Session = Depends(get_db),
    directory: UserDirectory = Depends(get_user_directory),
) -> TokenResponse:
    """
    Exchange a user name and password for a bearer token.

    Returns:
        TokenResponse: token plus the normalized user name and role.
    """
    principal = directory.authenticate(db, data.user_name, data.password)
    return TokenResponse(
        token=create_access_token(principal),
        role=principal.role,
        user_name=principal.user_name,
    )


@user_router.post(
    "/add-user", response_model=MessageResponse, status_code=status.HTTP_201_CREATED
)
def add_user(
    data: UserCreate,
    db: Session = Depends(get_db),
    directory: UserDirectory = Depends(get_user_directory),
    principal: Principal = Depends(admin_only),
) -> MessageResponse:
    directory.create(db, data)
    return MessageResponse(message="User added successfully")


@user_router.get("/users", response_model=List[UserResponse])
def list_users(
    db: Session = Depends(get_db),
    directory: UserDirectory = Depends(get_user_directory),
    principal: Principal = Depends(any_user),
) -> List[UserResponse]:
    return directory.list(db)
