from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, EmailStr, Field, StringConstraints

UserName = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=255),
]


class UserSync(BaseModel):
    """User record pushed by the identity provider."""

    id: str
    email: EmailStr
    name: UserName = "User"
    image: str | None = None
    email_verified: bool = False


class UserProfileUpdate(BaseModel):
    name: UserName | None = None
    image: str | None = None


class UserSummary(BaseModel):
    id: str
    name: str
    email: str
    image: str | None = None

    model_config = {"from_attributes": True}


class UserResponse(UserSummary):
    email_verified: bool
    created_at: datetime
    updated_at: datetime


class UserById(BaseModel):
    kind: Literal["id"] = "id"
    id: str


class UserByEmail(BaseModel):
    kind: Literal["email"] = "email"
    email: EmailStr


UserRef = Annotated[Union[UserById, UserByEmail], Field(discriminator="kind")]
