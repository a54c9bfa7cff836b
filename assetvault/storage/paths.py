"""
Path allocation and the filesystem primitives used by the folder and asset services

Stored paths are POSIX strings relative to the configured asset root
(e.g. "photos/2024/3f0c...e1.jpg"). They are only resolved against the root
for disk operations, so the root can move without touching the metadata.

Existence checks here are point-in-time checks. The primitives that create things
(make_directory, write_file) fail if the target appeared in the meantime, and the
uniques index arbitrates between concurrent writers on the metadata side.
"""

import logging
from pathlib import Path, PurePosixPath

from pydantic import TypeAdapter

from assetvault.config import get_settings
from assetvault.errors import AlreadyExists, VaultIOError
from assetvault.models import Extension, FolderName
from assetvault.util import IdFactory, new_uuid

_folder_name = TypeAdapter(FolderName)
_extension = TypeAdapter(Extension)


def validate_folder_path(path: str) -> str:
    """Check that this is a relative path of valid folder names, raising a ValueError otherwise"""
    if not path or path.startswith("/"):
        raise ValueError(f"Invalid folder path {path!r}: must be a non-empty relative path")
    for segment in path.split("/"):
        _folder_name.validate_python(segment)
    return path


def absolute_path(path: str) -> Path:
    return get_settings().asset_root / PurePosixPath(path)


def folder_exists(path: str) -> bool:
    return absolute_path(path).is_dir()


def allocate_folder_path(parent_path: str | None, name: str) -> str:
    """
    Derive the path of a new folder: parent_path/name, or just name for a top-level folder.
    Raises AlreadyExists if something already exists at that path on disk.
    """
    _folder_name.validate_python(name)
    path = f"{validate_folder_path(parent_path)}/{name}" if parent_path else name
    if absolute_path(path).exists():
        raise AlreadyExists(f"Folder {path} already exists on disk")
    return path


def allocate_asset_path(folder_path: str, extension: str, id_factory: IdFactory = new_uuid) -> tuple[str, str]:
    """
    Derive a new (id, path) for an asset in this folder: folder_path/{id}.{extension}.
    A colliding file name is retried once with a fresh id before giving up with AlreadyExists.
    """
    validate_folder_path(folder_path)
    _extension.validate_python(extension)
    for attempt in range(2):
        id = id_factory()
        path = f"{folder_path}/{id}.{extension}"
        if not absolute_path(path).exists():
            return id, path
        logging.warning(f"Asset path {path} already exists (attempt {attempt + 1})")
    raise AlreadyExists(f"Could not allocate a free asset path in {folder_path}")


def ensure_asset_root() -> Path:
    root = get_settings().asset_root
    if not root.is_dir():
        logging.info(f"Creating asset directory {root}")
        try:
            root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise VaultIOError(f"Could not create asset directory {root}: {e}") from e
    return root


def make_directory(path: str) -> list[Path]:
    """
    Create the directory (and any missing parents), failing if it already exists.
    Returns the directories that were created, outermost first.
    """
    target = absolute_path(path)
    created = [p for p in reversed(target.parents) if not p.exists()] + [target]
    try:
        target.mkdir(parents=True, exist_ok=False)
    except FileExistsError as e:
        raise AlreadyExists(f"Folder {path} already exists on disk") from e
    except OSError as e:
        raise VaultIOError(f"Could not create folder {path}: {e}") from e
    return created


def remove_directories(directories: list[Path]) -> None:
    """Undo make_directory. Only empty directories are removed."""
    for directory in reversed(directories):
        try:
            directory.rmdir()
        except FileNotFoundError:
            continue
        except OSError as e:
            raise VaultIOError(f"Could not remove directory {directory}: {e}") from e


def write_file(path: str, data: bytes) -> None:
    """Write the bytes to a new file, failing if the file already exists"""
    target = absolute_path(path)
    try:
        f = target.open("xb")
    except FileExistsError as e:
        raise AlreadyExists(f"Asset {path} already exists on disk") from e
    except OSError as e:
        raise VaultIOError(f"Could not write asset {path}: {e}") from e
    try:
        with f:
            f.write(data)
    except OSError as e:
        # the file is ours, don't leave a truncated copy behind
        target.unlink(missing_ok=True)
        raise VaultIOError(f"Could not write asset {path}: {e}") from e


def remove_file(path: str) -> None:
    try:
        absolute_path(path).unlink(missing_ok=True)
    except OSError as e:
        raise VaultIOError(f"Could not remove asset {path}: {e}") from e


def read_file(path: str) -> bytes:
    try:
        return absolute_path(path).read_bytes()
    except OSError as e:
        raise VaultIOError(f"Could not read asset {path}: {e}") from e
