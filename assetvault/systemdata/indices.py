import uuid

from assetvault.elastic.mapping import ElasticMapping, keyword
from assetvault.elastic.util import SystemIndexMapping, system_index_name


def users_index_name() -> str:
    return system_index_name("users")


def folders_index_name() -> str:
    return system_index_name("folders")


def assets_index_name() -> str:
    return system_index_name("assets")


def access_groups_index_name() -> str:
    return system_index_name("access_groups")


def keys_index_name() -> str:
    return system_index_name("keys")


def uniques_index_name() -> str:
    return system_index_name("uniques")


def uniques_index_id(entity: str, field: str, value: str) -> str:
    # values such as paths can be longer than an elastic id allows, so hash them
    id = str(uuid.uuid5(uuid.NAMESPACE_URL, f"{entity}/{field}/{value}"))
    return f"{entity}.{field}:{id}"


_time_fields: ElasticMapping = dict(
    timestamp=keyword(),
    timestamp_readable=keyword(),
)

users_mapping: ElasticMapping = dict(
    user=keyword(),
    pass_hash={"type": "keyword", "index": False},
    keys=keyword(),
    key_admins=keyword(),
    user_admins=keyword(),
    folder_admins=keyword(),
    access_group_admins=keyword(),
    **_time_fields,
)

folders_mapping: ElasticMapping = dict(
    tag=keyword(),
    path=keyword(),
    files=keyword(),  # asset ids
    is_public={"type": "boolean"},
    access_groups=keyword(),  # access group ids
    **_time_fields,
)

assets_mapping: ElasticMapping = dict(
    path=keyword(),
    tag={"type": "text"},
    **_time_fields,
)

access_groups_mapping: ElasticMapping = dict(
    tag=keyword(),
    allowed_keys=keyword(),  # key ids, in insertion order
    timestamp=keyword(),
)

keys_mapping: ElasticMapping = dict(
    active={"type": "boolean"},
    timestamp=keyword(),
)

# One document per claimed unique value (username, folder path, folder tag, ...).
# Creating the claim is the atomic uniqueness check: a second create of the same id conflicts.
uniques_mapping: ElasticMapping = dict(
    entity=keyword(),  # user, folder, asset, access_group
    field=keyword(),
    value=keyword(),
    owner=keyword(),  # id of the record holding the value
)


SYSTEM_INDICES = [
    SystemIndexMapping(name="users", mapping=users_mapping),
    SystemIndexMapping(name="folders", mapping=folders_mapping),
    SystemIndexMapping(name="assets", mapping=assets_mapping),
    SystemIndexMapping(name="access_groups", mapping=access_groups_mapping),
    SystemIndexMapping(name="keys", mapping=keys_mapping),
    SystemIndexMapping(name="uniques", mapping=uniques_mapping),
]
