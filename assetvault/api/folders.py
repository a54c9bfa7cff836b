"""API Endpoints for folders and the assets in them."""

import mimetypes
from pathlib import PurePosixPath
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile, status
from pydantic import BaseModel, Field

from assetvault.api.auth import authenticated_user, optional_user
from assetvault.assets import get_asset, list_folder_assets, read_asset, save_asset
from assetvault.folders import can_access_folder, create_folder, create_sub_folder, get_folder
from assetvault.models import Asset, Folder, FolderName, User

app_folders = APIRouter(tags=["folders"])


class CreateFolderBody(BaseModel):
    name: FolderName = Field(..., description="Name (and unique tag) of the new folder.")
    access_group: str | None = Field(
        None, description="Access group that may read this folder. If not given, the folder is public."
    )


async def _get_folder_or_404(folder_id: str) -> Folder:
    folder = await get_folder(folder_id)
    if folder is None:
        raise HTTPException(404, f"Folder {folder_id} does not exist")
    return folder


async def _readable_folder(folder_id: str, user: User | None) -> Folder:
    folder = await _get_folder_or_404(folder_id)
    if not await can_access_folder(user, folder):
        raise HTTPException(403, f"{user.user if user else 'GUEST'} cannot access folder {folder_id}")
    return folder


def HTTPException_if_not_admin(user: User, folder: Folder):
    if not user.administers("folder", folder.id):
        raise HTTPException(403, f"{user.user} is not an admin of folder {folder.path}")


def HTTPException_if_cannot_use_group(user: User, access_group: str | None):
    if access_group is not None and not user.administers("access_group", access_group):
        raise HTTPException(403, f"{user.user} is not an admin of access group {access_group}")


@app_folders.post("/folders", status_code=status.HTTP_201_CREATED)
async def post_folder(body: CreateFolderBody, user: User = Depends(authenticated_user)) -> Folder:
    """Create a top-level folder. The current user becomes its admin."""
    HTTPException_if_cannot_use_group(user, body.access_group)
    return await create_folder(user.id, body.name, access_group=body.access_group)


@app_folders.get("/folders/{folder_id}")
async def view_folder(folder_id: str, user: User | None = Depends(optional_user)) -> Folder:
    return await _readable_folder(folder_id, user)


@app_folders.post("/folders/{folder_id}/subfolders", status_code=status.HTTP_201_CREATED)
async def post_sub_folder(folder_id: str, body: CreateFolderBody, user: User = Depends(authenticated_user)) -> Folder:
    """Create a folder inside this folder. Requires being an admin of the parent folder."""
    parent = await _get_folder_or_404(folder_id)
    HTTPException_if_not_admin(user, parent)
    HTTPException_if_cannot_use_group(user, body.access_group)
    return await create_sub_folder(user.id, parent.path, body.name, access_group=body.access_group)


@app_folders.post("/folders/{folder_id}/assets", status_code=status.HTTP_201_CREATED)
async def upload_asset(
    folder_id: str,
    file: Annotated[UploadFile, File(description="The file to store")],
    tag: Annotated[str, Form(description="Free text tag of the asset")],
    extension: Annotated[str | None, Form(description="File extension, taken from the file name if omitted")] = None,
    user: User = Depends(authenticated_user),
) -> Asset:
    """Store a file in this folder. Requires being an admin of the folder."""
    folder = await _get_folder_or_404(folder_id)
    HTTPException_if_not_admin(user, folder)
    if extension is None:
        extension = PurePosixPath(file.filename or "").suffix.lstrip(".")
    if not extension:
        raise HTTPException(422, "Cannot determine the file extension, please specify it")
    data = await file.read()
    return await save_asset(data, tag, folder.path, extension)


@app_folders.get("/folders/{folder_id}/assets")
async def list_assets(folder_id: str, user: User | None = Depends(optional_user)) -> list[Asset]:
    folder = await _readable_folder(folder_id, user)
    return await list_folder_assets(folder)


@app_folders.get("/folders/{folder_id}/assets/{asset_id}")
async def download_asset(folder_id: str, asset_id: str, user: User | None = Depends(optional_user)) -> Response:
    folder = await _readable_folder(folder_id, user)
    asset = await get_asset(asset_id) if asset_id in folder.files else None
    if asset is None:
        raise HTTPException(404, f"Asset {asset_id} does not exist in folder {folder_id}")
    media_type, _ = mimetypes.guess_type(asset.path)
    return Response(content=read_asset(asset), media_type=media_type or "application/octet-stream")
