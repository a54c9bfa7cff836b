import logging
from typing import Iterable

from assetvault.elastic.util import es_create, es_delete, es_get
from assetvault.errors import NotFound
from assetvault.models import AccessGroup
from assetvault.storage.saga import Saga
from assetvault.systemdata.indices import access_groups_index_name, keys_index_name
from assetvault.systemdata.uniques import claim_unique, release_unique
from assetvault.systemdata.users import add_admin_link
from assetvault.util import new_uuid, time_meta


async def create_access_group(admin_id: str, tag: str, key_ids: Iterable[str] = ()) -> AccessGroup:
    """
    Create a named group of keys, administered by admin_id.
    Raises AlreadyExists if the tag is taken, NotFound if a key does not exist,
    and NoAdminFound (after removing the group again) if the admin does not exist.
    """
    # ordered set: keep the first occurrence of every key
    allowed_keys = list(dict.fromkeys(key_ids))
    for key_id in allowed_keys:
        if await es_get(keys_index_name(), key_id) is None:
            raise NotFound(f"Key {key_id} does not exist")

    timestamp, _ = time_meta()
    group = AccessGroup(id=new_uuid(), tag=tag, allowed_keys=allowed_keys, timestamp=timestamp)
    index = access_groups_index_name()
    async with Saga(f"create access group {tag}") as saga:
        await saga.step(
            "claim tag",
            lambda: claim_unique("access_group", "tag", tag, group.id),
            compensate=lambda: release_unique("access_group", "tag", tag),
        )
        await saga.step(
            "save access group",
            lambda: es_create(index, group.id, group.model_dump(exclude={"id"})),
            compensate=lambda: es_delete(index, group.id),
        )
        await saga.step("link admin", lambda: add_admin_link(admin_id, "access_group", group.id))
    logging.info(f"Created access group {tag} ({group.id})")
    return group


async def get_access_group(group_id: str) -> AccessGroup | None:
    doc = await es_get(access_groups_index_name(), group_id)
    return AccessGroup.model_validate(dict(doc, id=group_id)) if doc else None
