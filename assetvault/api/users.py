"""API Endpoints for managing users and their keys."""

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator

from assetvault.api.auth import authenticated_user
from assetvault.models import User
from assetvault.systemdata.users import MAX_PASSWORD_BYTES, get_user, grant_key, register_user

app_users = APIRouter(tags=["users"])


# REQUEST MODELS
class CreateUserBody(BaseModel):
    """Body for registering a new user."""

    username: str = Field(..., min_length=1, description="Unique name of the new user.")
    password: str = Field(..., min_length=1, description=f"Password of the new user (at most {MAX_PASSWORD_BYTES} bytes).")

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, password: str) -> str:
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
        return password


class GrantKeyBody(BaseModel):
    key_id: str = Field(..., description="The key to give to the user.")


# RESPONSE MODELS
class UserResponse(BaseModel):
    """A user, without credentials."""

    id: str
    user: str
    keys: list[str]
    key_admins: list[str]
    user_admins: list[str]
    folder_admins: list[str]
    access_group_admins: list[str]
    timestamp_readable: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls.model_validate(user.model_dump(exclude={"pass_hash"}))


@app_users.post("/users", status_code=status.HTTP_201_CREATED)
async def create_user(new_user: CreateUserBody, user: User = Depends(authenticated_user)) -> UserResponse:
    """Register a new user. The current user becomes an admin of the new user."""
    created = await register_user(new_user.username, new_user.password, created_by=user.id)
    return UserResponse.from_user(created)


@app_users.get("/users/me")
async def get_current_user(user: User = Depends(authenticated_user)) -> UserResponse:
    return UserResponse.from_user(user)


@app_users.post("/users/{user_id}/keys", status_code=status.HTTP_204_NO_CONTENT)
async def give_key(user_id: str, body: GrantKeyBody, user: User = Depends(authenticated_user)):
    """Give a key to a user. Requires being an admin of the key."""
    if not user.administers("key", body.key_id):
        raise HTTPException(403, f"{user.user} is not an admin of key {body.key_id}")
    if await get_user(user_id) is None:
        raise HTTPException(404, f"User {user_id} does not exist")
    await grant_key(user_id, body.key_id)
