from fastapi import APIRouter, Depends

from authentication.infrastructure.factory import get_current_user
from core.presentation.responses import SuccessResponse
from users.domain.entities import User as DomainUser

from .responses import UserResponse

router = APIRouter(prefix="/users")


@router.get("/me", response_model=SuccessResponse, status_code=200)
async def read_me(
    current_user: DomainUser = Depends(get_current_user),
) -> SuccessResponse:
    """Retrieve details of the currently authenticated user.

    Clients call this after connecting to learn the id they announce to the
    notification socket with a `register` signal.

    Returns
    -------
    SuccessResponse
        `SuccessResponse` containing the `UserResponse` data of the current user.
    """
    return SuccessResponse(
        data=UserResponse(
            id=current_user.id,
            name=current_user.name,
            email=current_user.email,
            role=current_user.role.value,
            is_active=current_user.is_active,
            created_at=current_user.created_at,
        ),
        message="User fetch successful",
    )
