"""
Folder creation and authorization

A folder exists in two places: as a directory under the asset root, and as a document
in the folders system index. Creating one also makes the requesting user its admin.
All of this happens in one saga, so a failure at any point leaves neither the directory,
nor the record, nor the claims on its path and tag behind:

1. claim the tag and the path (AlreadyExists if taken)
2. create the directory (VaultIOError if the disk refuses)
3. save the folder record (StoreError if elastic refuses)
4. add the folder to the admin's folder_admins (NoAdminFound if the admin does not exist)

Access rules:
- A public folder (no access groups) can be read by anyone
- A private folder can be read by its admins, and by users holding an active key
  that is allowed by one of the folder's access groups
"""

import logging
from pathlib import Path

from assetvault.elastic.util import es_create, es_delete, es_get, es_update_set
from assetvault.errors import FolderNotFound, NotFound
from assetvault.models import Folder, User
from assetvault.storage.paths import allocate_folder_path, make_directory, remove_directories
from assetvault.storage.saga import Saga
from assetvault.systemdata.access_groups import get_access_group
from assetvault.systemdata.indices import folders_index_name
from assetvault.systemdata.keys import get_key
from assetvault.systemdata.uniques import claim_unique, lookup_unique, release_unique
from assetvault.systemdata.users import add_admin_link
from assetvault.util import new_uuid, time_meta


async def create_folder(
    admin_id: str,
    name: str,
    access_group: str | None = None,
    parent_path: str | None = None,
) -> Folder:
    """
    Create a new folder and make admin_id its admin.

    :param admin_id: The id of the user that will administer the folder
    :param name: The folder name, which is also its (globally unique) tag
    :param access_group: If given, the folder is private to this access group, otherwise it is public
    :param parent_path: The path of the parent folder, or None for a top-level folder
    :return: The persisted Folder
    """
    path = allocate_folder_path(parent_path, name)
    if access_group is not None and await get_access_group(access_group) is None:
        raise NotFound(f"Access group {access_group} does not exist")

    timestamp, timestamp_readable = time_meta()
    folder = Folder(
        id=new_uuid(),
        tag=name,
        path=path,
        files=[],
        is_public=access_group is None,
        access_groups=[access_group] if access_group is not None else [],
        timestamp=timestamp,
        timestamp_readable=timestamp_readable,
    )
    index = folders_index_name()
    directories: list[Path] = []

    async with Saga(f"create folder {path}") as saga:
        await saga.step(
            "claim tag",
            lambda: claim_unique("folder", "tag", name, folder.id),
            compensate=lambda: release_unique("folder", "tag", name),
        )
        await saga.step(
            "claim path",
            lambda: claim_unique("folder", "path", path, folder.id),
            compensate=lambda: release_unique("folder", "path", path),
        )
        await saga.step(
            "create directory",
            lambda: directories.extend(make_directory(path)),
            compensate=lambda: remove_directories(directories),
        )
        await saga.step(
            "save folder",
            lambda: es_create(index, folder.id, _folder_to_elastic(folder)),
            compensate=lambda: es_delete(index, folder.id),
        )
        await saga.step("link admin", lambda: add_admin_link(admin_id, "folder", folder.id))

    logging.info(f"Created {'public' if folder.is_public else 'private'} folder {path} ({folder.id})")
    return folder


async def create_sub_folder(
    admin_id: str,
    parent_path: str,
    name: str,
    access_group: str | None = None,
) -> Folder:
    """
    Create a folder inside parent_path. This only composes the path: the caller must make sure
    that parent_path belongs to an existing folder.
    """
    return await create_folder(admin_id, name, access_group=access_group, parent_path=parent_path)


async def get_folder(folder_id: str) -> Folder | None:
    doc = await es_get(folders_index_name(), folder_id)
    return _folder_from_elastic(folder_id, doc) if doc else None


async def get_folder_by_path(path: str) -> Folder | None:
    folder_id = await lookup_unique("folder", "path", path)
    if folder_id is None:
        return None
    return await get_folder(folder_id)


async def add_asset_to_folder(folder_path: str, asset_id: str) -> None:
    """Add the asset to the files of the folder at this path, raising FolderNotFound if there is none"""
    folder_id = await lookup_unique("folder", "path", folder_path)
    if folder_id is None:
        raise FolderNotFound(f"No folder record for {folder_path}")
    try:
        await es_update_set(folders_index_name(), folder_id, "add", "files", asset_id)
    except NotFound as e:
        raise FolderNotFound(f"No folder record for {folder_path}") from e


async def can_access_folder(user: User | None, folder: Folder) -> bool:
    """
    Can this user (None for an anonymous user) read the folder and its assets?
    """
    if folder.is_public:
        return True
    if user is None:
        return False
    if user.administers("folder", folder.id):
        return True
    user_keys = set(user.keys)
    for group_id in folder.access_groups:
        group = await get_access_group(group_id)
        if group is None:
            logging.warning(f"Folder {folder.path} refers to missing access group {group_id}")
            continue
        for key_id in group.allowed_keys:
            if key_id not in user_keys:
                continue
            key = await get_key(key_id)
            if key is not None and key.active:
                return True
    return False


def _folder_to_elastic(folder: Folder) -> dict:
    return folder.model_dump(exclude={"id"})


def _folder_from_elastic(id: str, doc: dict) -> Folder:
    return Folder.model_validate(dict(doc, id=id))
