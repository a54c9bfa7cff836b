"""API Endpoints for keys and access groups."""

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from assetvault.api.auth import authenticated_user
from assetvault.models import AccessGroup, Key, User
from assetvault.systemdata.access_groups import create_access_group, get_access_group
from assetvault.systemdata.keys import create_key, get_key, revoke_key

app_access = APIRouter(tags=["access"])


class CreateAccessGroupBody(BaseModel):
    tag: str = Field(..., min_length=1, description="Unique name of the access group.")
    keys: list[str] = Field([], description="Keys that grant access to folders of this group.")


@app_access.post("/keys", status_code=status.HTTP_201_CREATED)
async def post_key(user: User = Depends(authenticated_user)) -> Key:
    """Create a new key. The current user becomes its admin."""
    return await create_key(user.id)


@app_access.get("/keys/{key_id}")
async def view_key(key_id: str, user: User = Depends(authenticated_user)) -> Key:
    key = await get_key(key_id)
    if key is None:
        raise HTTPException(404, f"Key {key_id} does not exist")
    return key


@app_access.post("/keys/{key_id}/revoke", status_code=status.HTTP_204_NO_CONTENT)
async def post_revoke_key(key_id: str, user: User = Depends(authenticated_user)):
    if not user.administers("key", key_id):
        raise HTTPException(403, f"{user.user} is not an admin of key {key_id}")
    await revoke_key(key_id)


@app_access.post("/access_groups", status_code=status.HTTP_201_CREATED)
async def post_access_group(body: CreateAccessGroupBody, user: User = Depends(authenticated_user)) -> AccessGroup:
    """Create an access group from keys the current user administers."""
    if not_admin := [key for key in body.keys if not user.administers("key", key)]:
        raise HTTPException(403, f"{user.user} is not an admin of keys {not_admin}")
    return await create_access_group(user.id, body.tag, body.keys)


@app_access.get("/access_groups/{group_id}")
async def view_access_group(group_id: str, user: User = Depends(authenticated_user)) -> AccessGroup:
    group = await get_access_group(group_id)
    if group is None:
        raise HTTPException(404, f"Access group {group_id} does not exist")
    return group
