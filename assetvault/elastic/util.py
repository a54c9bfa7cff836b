"""
Record level helpers on top of the elasticsearch connection

All functions here translate elasticsearch failures into the vault error kinds:
a 409 conflict becomes AlreadyExists, a 404 becomes NotFound (or None for lookups),
and every other API or transport error becomes StoreError.
Writes use refresh=True, so a record is visible to the next request immediately.
"""

from typing import Literal

from elasticsearch import ApiError, ConflictError, NotFoundError, TransportError
from pydantic import BaseModel

from assetvault.config import get_settings
from assetvault.connections import es
from assetvault.elastic.mapping import ElasticMapping
from assetvault.errors import AlreadyExists, NotFound, StoreError


class SystemIndexMapping(BaseModel):
    name: str
    mapping: ElasticMapping


def system_index_name(path: str) -> str:
    """
    Get the full name for a system index, e.g. assetvault_system_folders
    """
    return f"{get_settings().system_index}_{path}"


# Painless scripts for set-style updates of list fields, noop if nothing changes
UPDATE_SCRIPTS = dict(
    add="""
    if (ctx._source[params.field] == null) {
      ctx._source[params.field] = [params.value]
    } else {
      if (ctx._source[params.field].contains(params.value)) {
        ctx.op = 'noop';
      } else {
        ctx._source[params.field].add(params.value)
      }
    }
    """,
    remove="""
    if (ctx._source[params.field] != null && ctx._source[params.field].contains(params.value)) {
      ctx._source[params.field].removeAll([params.value]);
    } else {
      ctx.op = 'noop';
    }
    """,
)


async def es_create(index: str, id: str, doc: dict) -> None:
    """Create a document, failing with AlreadyExists if the id is taken"""
    try:
        await es().create(index=index, id=id, document=doc, refresh=True)
    except ConflictError as e:
        raise AlreadyExists(f"{id} already exists in {index}") from e
    except (ApiError, TransportError) as e:
        raise StoreError(f"Could not create {id} in {index}: {e}") from e


async def es_get(index: str, id: str) -> dict | None:
    """Return the source of this document, or None if it does not exist"""
    try:
        return (await es().get(index=index, id=id))["_source"]
    except NotFoundError:
        return None
    except (ApiError, TransportError) as e:
        raise StoreError(f"Could not get {id} from {index}: {e}") from e


async def es_update(index: str, id: str, doc: dict) -> None:
    try:
        await es().update(index=index, id=id, doc=doc, refresh=True)
    except NotFoundError as e:
        raise NotFound(f"{id} does not exist in {index}") from e
    except (ApiError, TransportError) as e:
        raise StoreError(f"Could not update {id} in {index}: {e}") from e


async def es_delete(index: str, id: str, ignore_missing: bool = False) -> None:
    try:
        await es().delete(index=index, id=id, refresh=True)
    except NotFoundError as e:
        if not ignore_missing:
            raise NotFound(f"{id} does not exist in {index}") from e
    except (ApiError, TransportError) as e:
        raise StoreError(f"Could not delete {id} from {index}: {e}") from e


async def es_update_set(index: str, id: str, action: Literal["add", "remove"], field: str, value: str) -> None:
    """
    Add or remove a value from a list field with set semantics.
    Raises NotFound if the document does not exist, so this doubles as an existence check.
    """
    script = dict(
        source=UPDATE_SCRIPTS[action],
        lang="painless",
        params=dict(field=field, value=value),
    )
    try:
        await es().update(index=index, id=id, script=script, refresh=True)
    except NotFoundError as e:
        raise NotFound(f"{id} does not exist in {index}") from e
    except (ApiError, TransportError) as e:
        raise StoreError(f"Could not {action} {value} on {index}/{id}.{field}: {e}") from e
