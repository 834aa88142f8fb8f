from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from taskhub.database import get_db
from taskhub.middleware.auth import get_current_user_id, require_internal_token
from taskhub.schemas.user import UserProfileUpdate, UserResponse, UserSync
from taskhub.services.user_service import get_user, sync_user, update_profile
from taskhub.services.workspace_service import ensure_default_workspace
from taskhub.utils.errors import ServiceError, as_http_exception

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/sync", response_model=UserResponse, dependencies=[Depends(require_internal_token)])
def sync_user_endpoint(data: UserSync, db: Session = Depends(get_db)) -> UserResponse:
    """Upsert a user pushed by the identity provider and enrol them in the default workspace."""
    try:
        user = sync_user(db, data)
        ensure_default_workspace(db, user.id)
        return user
    except ServiceError as exc:
        raise as_http_exception(exc) from exc


@router.get("/me", response_model=UserResponse)
def get_me_endpoint(
    db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
) -> UserResponse:
    try:
        return get_user(db, user_id)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc


@router.put("/profile", response_model=UserResponse)
def update_profile_endpoint(
    data: UserProfileUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> UserResponse:
    try:
        return update_profile(db, user_id, data)
    except ServiceError as exc:
        raise as_http_exception(exc) from exc
