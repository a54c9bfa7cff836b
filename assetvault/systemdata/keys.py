import logging

from assetvault.elastic.util import es_create, es_delete, es_get, es_update
from assetvault.models import Key
from assetvault.storage.saga import Saga
from assetvault.systemdata.indices import keys_index_name
from assetvault.systemdata.users import add_admin_link
from assetvault.util import IdFactory, new_uuid, time_meta


async def create_key(admin_id: str, id_factory: IdFactory = new_uuid) -> Key:
    """
    Create a new active key administered by admin_id.
    The key uuid is the document id, so a duplicate uuid raises AlreadyExists.
    If the admin does not exist, the key is removed again and NoAdminFound is raised.
    """
    timestamp, _ = time_meta()
    key = Key(id=id_factory(), active=True, timestamp=timestamp)
    index = keys_index_name()
    async with Saga(f"create key {key.id}") as saga:
        await saga.step(
            "save key",
            lambda: es_create(index, key.id, key.model_dump(exclude={"id"})),
            compensate=lambda: es_delete(index, key.id),
        )
        await saga.step("link admin", lambda: add_admin_link(admin_id, "key", key.id))
    logging.info(f"Created key {key.id}")
    return key


async def get_key(key_id: str) -> Key | None:
    doc = await es_get(keys_index_name(), key_id)
    return Key.model_validate(dict(doc, id=key_id)) if doc else None


async def revoke_key(key_id: str) -> None:
    """Deactivate this key without deleting it. Raises NotFound if it does not exist."""
    await es_update(keys_index_name(), key_id, dict(active=False))
    logging.info(f"Revoked key {key_id}")
