"""
Saving assets into folders

The bytes are written before the metadata is persisted, so a failed write never leaves
an asset record pointing at a missing file. The steps of save_asset, each undone if a
later one fails:

1. write the file at a freshly allocated folder_path/{uuid}.{extension}
2. claim the asset path
3. save the asset record (the uuid is the document id)
4. add the asset to the files of the owning folder record
"""

import logging

from assetvault.elastic.util import es_create, es_delete, es_get
from assetvault.errors import FolderNotFound
from assetvault.folders import add_asset_to_folder
from assetvault.models import Asset, Folder
from assetvault.storage.paths import (
    allocate_asset_path,
    folder_exists,
    read_file,
    remove_file,
    validate_folder_path,
    write_file,
)
from assetvault.storage.saga import Saga
from assetvault.systemdata.indices import assets_index_name
from assetvault.systemdata.uniques import claim_unique, release_unique
from assetvault.util import IdFactory, new_uuid, time_meta


async def save_asset(
    file_bytes: bytes,
    tag: str,
    folder_path: str,
    extension: str,
    id_factory: IdFactory = new_uuid,
) -> Asset:
    """
    Store the bytes as a new asset in the folder at folder_path.
    Raises FolderNotFound if the folder directory does not exist, or if there is no folder record for it.
    """
    validate_folder_path(folder_path)
    if not folder_exists(folder_path):
        raise FolderNotFound(f"Cannot save asset in {folder_path}, this folder doesn't exist")

    id, path = allocate_asset_path(folder_path, extension, id_factory=id_factory)
    timestamp, timestamp_readable = time_meta()
    asset = Asset(id=id, path=path, tag=tag, timestamp=timestamp, timestamp_readable=timestamp_readable)
    index = assets_index_name()

    async with Saga(f"save asset {path}") as saga:
        await saga.step("write file", lambda: write_file(path, file_bytes), compensate=lambda: remove_file(path))
        await saga.step(
            "claim path",
            lambda: claim_unique("asset", "path", path, id),
            compensate=lambda: release_unique("asset", "path", path),
        )
        await saga.step(
            "save asset",
            lambda: es_create(index, id, asset.model_dump(exclude={"id"})),
            compensate=lambda: es_delete(index, id),
        )
        await saga.step("link to folder", lambda: add_asset_to_folder(folder_path, id))

    logging.info(f"Saved asset {path} ({len(file_bytes)} bytes)")
    return asset


async def get_asset(asset_id: str) -> Asset | None:
    doc = await es_get(assets_index_name(), asset_id)
    return Asset.model_validate(dict(doc, id=asset_id)) if doc else None


async def list_folder_assets(folder: Folder) -> list[Asset]:
    """The assets of this folder, in the order they were added"""
    assets = []
    for asset_id in folder.files:
        asset = await get_asset(asset_id)
        if asset is None:
            logging.warning(f"Folder {folder.path} lists missing asset {asset_id}")
            continue
        assets.append(asset)
    return assets


def read_asset(asset: Asset) -> bytes:
    return read_file(asset.path)
