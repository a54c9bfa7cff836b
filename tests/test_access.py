import pytest

from assetvault.errors import AlreadyExists, NoAdminFound, NotFound
from assetvault.folders import can_access_folder, create_folder
from assetvault.systemdata.access_groups import create_access_group, get_access_group
from assetvault.systemdata.indices import access_groups_index_name, keys_index_name
from assetvault.systemdata.keys import create_key, get_key, revoke_key
from assetvault.systemdata.users import get_user, grant_key
from tests.tools import claimed, count_docs


@pytest.mark.anyio
async def test_create_key(elastic, admin):
    key = await create_key(admin.id)
    assert key.active
    assert key.uuid == key.id
    assert await get_key(key.id) == key
    assert (await get_user(admin.id)).administers("key", key.id)
    assert await get_key("nonexistent") is None


@pytest.mark.anyio
async def test_create_key_duplicate_uuid(elastic, admin):
    await create_key(admin.id, id_factory=lambda: "k1")
    with pytest.raises(AlreadyExists):
        await create_key(admin.id, id_factory=lambda: "k1")


@pytest.mark.anyio
async def test_create_key_missing_admin(elastic):
    with pytest.raises(NoAdminFound):
        await create_key("nonexistent", id_factory=lambda: "k1")
    assert await count_docs(keys_index_name()) == 0


@pytest.mark.anyio
async def test_revoke_key(elastic, admin):
    key = await create_key(admin.id)
    await revoke_key(key.id)
    assert not (await get_key(key.id)).active
    with pytest.raises(NotFound):
        await revoke_key("nonexistent")


@pytest.mark.anyio
async def test_create_access_group(elastic, admin):
    k1 = await create_key(admin.id)
    k2 = await create_key(admin.id)
    group = await create_access_group(admin.id, "staff", [k2.id, k1.id, k2.id])
    # keys are an ordered set
    assert group.allowed_keys == [k2.id, k1.id]
    assert await get_access_group(group.id) == group
    assert (await get_user(admin.id)).administers("access_group", group.id)

    with pytest.raises(AlreadyExists):
        await create_access_group(admin.id, "staff")
    with pytest.raises(NotFound):
        await create_access_group(admin.id, "other", ["nonexistent"])
    assert not await claimed("access_group", "tag", "other")


@pytest.mark.anyio
async def test_create_access_group_missing_admin(elastic):
    with pytest.raises(NoAdminFound):
        await create_access_group("nonexistent", "staff")
    assert await count_docs(access_groups_index_name()) == 0
    assert not await claimed("access_group", "tag", "staff")


@pytest.mark.anyio
async def test_can_access_folder(elastic, admin, user):
    key = await create_key(admin.id)
    group = await create_access_group(admin.id, "staff", [key.id])
    public = await create_folder(admin.id, "public")
    private = await create_folder(admin.id, "private", access_group=group.id)
    admin = await get_user(admin.id)

    # everyone can read public folders
    assert await can_access_folder(None, public)
    assert await can_access_folder(user, public)

    # private folders need a key of the group, or being an admin
    assert not await can_access_folder(None, private)
    assert not await can_access_folder(user, private)
    assert await can_access_folder(admin, private)

    await grant_key(user.id, key.id)
    user = await get_user(user.id)
    assert await can_access_folder(user, private)

    # revoked keys no longer give access
    await revoke_key(key.id)
    assert not await can_access_folder(user, private)
    assert await can_access_folder(admin, private)
