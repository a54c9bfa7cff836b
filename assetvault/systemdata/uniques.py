"""
Unique value claims

Elasticsearch has no unique constraint on fields other than the document id, so every
value that must be globally unique (usernames, folder paths and tags, asset paths,
access group tags) is claimed by creating a document whose id is derived from the value.
The create either succeeds or conflicts, which makes the store the authoritative arbiter
between concurrent writers: the loser gets AlreadyExists even if its own pre-checks passed.
A claim also records the owning record, so it doubles as a lookup index.
"""

from typing import Literal

from assetvault.elastic.util import es_create, es_delete, es_get
from assetvault.errors import AlreadyExists
from assetvault.systemdata.indices import uniques_index_id, uniques_index_name

UniqueEntity = Literal["user", "folder", "asset", "access_group"]


async def claim_unique(entity: UniqueEntity, field: str, value: str, owner: str) -> None:
    """Claim this value for the given owner, raising AlreadyExists if it was claimed before"""
    id = uniques_index_id(entity, field, value)
    doc = dict(entity=entity, field=field, value=value, owner=owner)
    try:
        await es_create(uniques_index_name(), id, doc)
    except AlreadyExists as e:
        raise AlreadyExists(f"{entity} with {field} {value!r} already exists") from e


async def release_unique(entity: UniqueEntity, field: str, value: str) -> None:
    await es_delete(uniques_index_name(), uniques_index_id(entity, field, value))


async def lookup_unique(entity: UniqueEntity, field: str, value: str) -> str | None:
    """Return the id of the record holding this value, or None if it is unclaimed"""
    doc = await es_get(uniques_index_name(), uniques_index_id(entity, field, value))
    return doc["owner"] if doc else None
