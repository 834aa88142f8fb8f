import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from taskhub.database import transaction
from taskhub.models.user import User
from taskhub.schemas.user import UserByEmail, UserById, UserProfileUpdate, UserSync
from taskhub.utils.errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: str) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError(f"User {user_id} not found")
    return user


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.scalars(select(User).where(User.email == email.lower())).first()


def resolve_user_ref(db: Session, ref: UserById | UserByEmail) -> str | None:
    """Return the user id a reference points at, or None when no such user exists."""
    if isinstance(ref, UserByEmail):
        user = get_user_by_email(db, ref.email)
    else:
        user = db.get(User, ref.id)
    return user.id if user else None


def sync_user(db: Session, data: UserSync) -> User:
    """Create or update a user record pushed by the identity provider."""
    existing = get_user_by_email(db, data.email)
    if existing and existing.id != data.id:
        raise ConflictError(f"Email {data.email} is already used by another user")

    with transaction(db):
        user = db.get(User, data.id)
        if user is None:
            user = User(id=data.id)
            db.add(user)
            logger.info("Creating user %s", data.id)
        user.email = data.email.lower()
        user.name = data.name
        user.image = data.image
        user.email_verified = data.email_verified
    db.refresh(user)
    return user


def update_profile(db: Session, user_id: str, data: UserProfileUpdate) -> User:
    """Change the caller's display name and/or avatar; omitted fields are left alone."""
    user = get_user(db, user_id)
    with transaction(db):
        if data.name is not None:
            user.name = data.name
        if data.image is not None:
            user.image = data.image
    db.refresh(user)
    return user
