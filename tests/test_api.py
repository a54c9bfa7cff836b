import pytest
from httpx import AsyncClient

from assetvault.api.auth import create_token
from assetvault.models import User
from assetvault.systemdata.users import get_user
from tests.tools import build_headers, check, get_json, post_json, vault_settings


@pytest.mark.anyio
async def test_token(client: AsyncClient, admin: User):
    response = await client.post("/auth/token", data=dict(username="admin", password="admin-password"))
    check(response, 200)
    token = response.json()["access_token"]
    me = await get_json(client, "/users/me", headers={"Authorization": f"Bearer {token}"})
    assert me["id"] == admin.id
    assert "pass_hash" not in me

    # wrong password and unknown user give the same reply
    wrong = await client.post("/auth/token", data=dict(username="admin", password="wrong"))
    unknown = await client.post("/auth/token", data=dict(username="nobody", password="admin-password"))
    check(wrong, 401)
    check(unknown, 401)
    assert wrong.json() == unknown.json()


@pytest.mark.anyio
async def test_authentication_required(client: AsyncClient, admin: User):
    check(await client.get("/users/me"), 401)
    check(await client.get("/users/me", headers={"Authorization": "Bearer invalid"}), 401)
    check(await client.post("/folders", json=dict(name="root")), 401)


@pytest.mark.anyio
async def test_create_user(client: AsyncClient, admin: User):
    new_user = dict(username="alice", password="wonderland")
    created = await post_json(client, "/users", json=new_user, user=admin)
    assert created["user"] == "alice"
    assert "pass_hash" not in created
    await post_json(client, "/users", json=new_user, user=admin, expected=409)
    assert (await get_user(admin.id)).administers("user", created["id"])


@pytest.mark.anyio
async def test_folders(client: AsyncClient, admin: User, user: User):
    root = await post_json(client, "/folders", json=dict(name="root"), user=admin)
    assert root["path"] == "root"
    assert root["is_public"]
    await post_json(client, "/folders", json=dict(name="root"), user=admin, expected=409)
    await post_json(client, "/folders", json=dict(name=".."), user=admin, expected=422)

    # public folders can be read by anyone
    assert (await get_json(client, f"/folders/{root['id']}"))["path"] == "root"
    await get_json(client, "/folders/nonexistent", expected=404)

    child = await post_json(client, f"/folders/{root['id']}/subfolders", json=dict(name="child"), user=admin)
    assert child["path"] == "root/child"
    # only admins of the parent can create sub folders
    await post_json(client, f"/folders/{root['id']}/subfolders", json=dict(name="other"), user=user, expected=403)


@pytest.mark.anyio
async def test_assets(client: AsyncClient, admin: User, user: User):
    folder = await post_json(client, "/folders", json=dict(name="pictures"), user=admin)
    url = f"/folders/{folder['id']}/assets"
    files = dict(file=("cat.png", b"not really a png", "image/png"))
    asset = await post_json(client, url, files=files, data=dict(tag="cat"), user=admin)
    assert asset["tag"] == "cat"
    assert asset["path"] == f"pictures/{asset['id']}.png"

    # only admins can upload
    await post_json(client, url, files=files, data=dict(tag="cat"), user=user, expected=403)

    assert await get_json(client, url) == [asset]
    response = await client.get(f"{url}/{asset['id']}")
    check(response, 200)
    assert response.content == b"not really a png"
    assert response.headers["content-type"] == "image/png"
    await get_json(client, f"{url}/nonexistent", expected=404)


@pytest.mark.anyio
async def test_private_folder(client: AsyncClient, admin: User, user: User):
    key = await post_json(client, "/keys", user=admin)
    group = await post_json(client, "/access_groups", json=dict(tag="staff", keys=[key["id"]]), user=admin)
    assert group["allowed_keys"] == [key["id"]]
    # users can only group keys they administer
    await post_json(client, "/access_groups", json=dict(tag="mine", keys=[key["id"]]), user=user, expected=403)
    # and only use groups they administer
    await post_json(client, "/folders", json=dict(name="theirs", access_group=group["id"]), user=user, expected=403)

    folder = await post_json(client, "/folders", json=dict(name="secret", access_group=group["id"]), user=admin)
    assert not folder["is_public"]
    url = f"/folders/{folder['id']}"
    await get_json(client, url, expected=403)
    await get_json(client, url, user=user, expected=403)
    await get_json(client, url, user=admin)

    await post_json(client, f"/users/{user.id}/keys", json=dict(key_id=key["id"]), user=user, expected=403)
    await post_json(client, f"/users/{user.id}/keys", json=dict(key_id=key["id"]), user=admin, expected=204)
    await get_json(client, url, user=user)

    await post_json(client, f"/keys/{key['id']}/revoke", user=user, expected=403)
    await post_json(client, f"/keys/{key['id']}/revoke", user=admin, expected=204)
    assert (await get_json(client, f"/keys/{key['id']}", user=admin))["active"] is False
    await get_json(client, url, user=user, expected=403)


@pytest.mark.anyio
async def test_store_errors(client: AsyncClient, fake_elastic, admin: User):
    fake_elastic.fail_on("create", index="folders")
    response = await client.post("/folders", json=dict(name="root"), headers=build_headers(admin))
    check(response, 503)
    # the folder was rolled back, so it can be created once the store is back
    await post_json(client, "/folders", json=dict(name="root"), user=admin)


@pytest.mark.anyio
async def test_token_for_other_host(client: AsyncClient, admin: User):
    with vault_settings(host="http://elsewhere:5000"):
        token = create_token(admin.id)
    check(await client.get("/users/me", headers={"Authorization": f"Bearer {token}"}), 401)
    expired = create_token(admin.id, days_valid=-1)
    check(await client.get("/users/me", headers={"Authorization": f"Bearer {expired}"}), 401)


@pytest.mark.anyio
async def test_long_passwords(client: AsyncClient, admin: User):
    for username in ["admin", "nobody"]:
        check(await client.post("/auth/token", data=dict(username=username, password="x" * 100)), 401)
    # 40 characters, but 80 bytes
    response = await client.post("/users", json=dict(username="alice", password="é" * 40), headers=build_headers(admin))
    check(response, 422)
    assert response.json()["fields_invalid"][0]["loc"] == ["body", "password"]


@pytest.mark.anyio
async def test_invalid_folder_name(client: AsyncClient, admin: User):
    response = await client.post("/folders", json=dict(name=".."), headers=build_headers(admin))
    check(response, 422)
    assert response.json()["fields_invalid"][0]["loc"] == ["body", "name"]
