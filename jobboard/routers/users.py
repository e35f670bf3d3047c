# users.py
from fastapi import APIRouter, Depends

from jobboard.models.user import User
from jobboard.routers.dependencies import get_current_user, is_admin
from jobboard.schemas.user import UserRead


router = APIRouter()


@router.get("/me", response_model=UserRead)
def read_current_user(current_user: User = Depends(get_current_user)) -> UserRead:
    user_out = UserRead.model_validate(current_user)
    return user_out.model_copy(update={"is_admin": is_admin(current_user)})
