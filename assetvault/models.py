from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, Field, model_validator
from typing_extensions import Self

RecordId = Annotated[str, Field(min_length=1, max_length=512, title="Record ID")]


def _not_a_relative_reference(name: str) -> str:
    if name in {".", ".."}:
        raise ValueError(f"{name!r} is not a valid folder name")
    return name


# A single path segment: no separators, no NUL, and not a relative reference
FolderName = Annotated[
    str,
    Field(pattern=r"^[^/\\\x00]+$", max_length=255, title="Folder name"),
    AfterValidator(_not_a_relative_reference),
]
Extension = Annotated[str, Field(pattern=r"^[A-Za-z0-9]+$", max_length=16, title="File extension")]

AdminResource = Literal["key", "user", "folder", "access_group"]

ADMIN_FIELDS: dict[AdminResource, str] = {
    "key": "key_admins",
    "user": "user_admins",
    "folder": "folder_admins",
    "access_group": "access_group_admins",
}


class User(BaseModel):
    """A registered user. Only the bcrypt hash of the password is ever stored."""

    id: RecordId
    user: str
    pass_hash: str = Field(repr=False)
    keys: list[RecordId] = []
    key_admins: list[RecordId] = []
    user_admins: list[RecordId] = []
    folder_admins: list[RecordId] = []
    access_group_admins: list[RecordId] = []
    timestamp: str
    timestamp_readable: str

    def administers(self, resource: AdminResource, resource_id: str) -> bool:
        return resource_id in getattr(self, ADMIN_FIELDS[resource])


class Key(BaseModel):
    """An authorization key. The id is the key's uuid."""

    id: RecordId
    active: bool = True
    timestamp: str

    @property
    def uuid(self) -> str:
        return self.id


class AccessGroup(BaseModel):
    id: RecordId
    tag: str
    allowed_keys: list[RecordId] = []
    timestamp: str


class Folder(BaseModel):
    """
    A named directory under the asset root. A folder is public exactly when it has no access groups.
    Admins are recorded on the User side (User.folder_admins).
    """

    id: RecordId
    tag: str
    path: str
    files: list[RecordId] = []
    is_public: bool
    access_groups: list[RecordId] = []
    timestamp: str
    timestamp_readable: str

    @model_validator(mode="after")
    def validate_visibility(self) -> Self:
        if self.is_public and self.access_groups:
            raise ValueError(f"Folder {self.path} is public but has access groups {self.access_groups}")
        if not self.is_public and not self.access_groups:
            raise ValueError(f"Folder {self.path} is private but has no access groups")
        return self


class Asset(BaseModel):
    """A stored file. The id is the asset's uuid; the owning folder lists it in Folder.files."""

    id: RecordId
    path: str
    tag: str
    timestamp: str
    timestamp_readable: str

    @property
    def uuid(self) -> str:
        return self.id
