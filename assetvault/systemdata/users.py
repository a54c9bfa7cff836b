"""
Users, credentials and admin links

A user administers keys, other users, folders and access groups. These links are stored
on the user document as set-valued lists (key_admins, user_admins, folder_admins,
access_group_admins); adding a link that already exists is a no-op.

Passwords are hashed with bcrypt using the configured cost factor. The plaintext is
never stored or logged.
"""

import logging

import bcrypt

from assetvault.config import get_settings
from assetvault.elastic.util import es_create, es_delete, es_get, es_update_set
from assetvault.errors import CredentialError, NoAdminFound, NotFound
from assetvault.models import ADMIN_FIELDS, AdminResource, User
from assetvault.storage.saga import Saga
from assetvault.systemdata.indices import keys_index_name, users_index_name
from assetvault.systemdata.uniques import claim_unique, lookup_unique, release_unique
from assetvault.util import new_uuid, time_meta

#: bcrypt only looks at the first 72 bytes of a password (and recent versions refuse longer ones)
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    try:
        salt = bcrypt.gensalt(rounds=get_settings().bcrypt_rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")
    except ValueError as e:
        raise CredentialError(f"Could not hash password: {e}") from e


def check_password(password: str, pass_hash: str) -> bool:
    encoded = password.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        # no stored password can be this long
        return False
    try:
        return bcrypt.checkpw(encoded, pass_hash.encode("utf-8"))
    except ValueError as e:
        raise CredentialError(f"Could not verify password: {e}") from e


async def register_user(username: str, password: str, created_by: str | None = None) -> User:
    """
    Create and return a new User with the given information.
    If created_by is given, that user becomes an admin of the new user.
    Raises AlreadyExists if the username is taken, and ValueError for an empty username
    or a password longer than MAX_PASSWORD_BYTES.
    """
    if not username.strip():
        raise ValueError("Username cannot be empty")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
    timestamp, timestamp_readable = time_meta()
    user = User(
        id=new_uuid(),
        user=username,
        pass_hash=hash_password(password),
        timestamp=timestamp,
        timestamp_readable=timestamp_readable,
    )
    index = users_index_name()
    async with Saga(f"register user {username}") as saga:
        await saga.step(
            "claim username",
            lambda: claim_unique("user", "user", username, user.id),
            compensate=lambda: release_unique("user", "user", username),
        )
        await saga.step(
            "save user",
            lambda: es_create(index, user.id, _user_to_elastic(user)),
            compensate=lambda: es_delete(index, user.id),
        )
        if created_by is not None:
            await saga.step("link creator as admin", lambda: add_admin_link(created_by, "user", user.id))
    logging.info(f"Registered user {username} ({user.id})")
    return user


async def login(username: str, password: str) -> User | None:
    """
    Check that this user exists and can be authenticated with the given password.
    An unknown user and a wrong password both give None, so callers cannot tell them apart.
    :return: A User object if user could be authenticated, None otherwise
    """
    logging.info(f"Attempted login: {username}")
    user = await get_user_by_name(username)
    if user is None:
        logging.warning(f"Login failed for {username}")
        return None
    if not check_password(password, user.pass_hash):
        logging.warning(f"Login failed for {username}")
        return None
    return user


async def get_user(user_id: str) -> User | None:
    doc = await es_get(users_index_name(), user_id)
    return _user_from_elastic(user_id, doc) if doc else None


async def get_user_by_name(username: str) -> User | None:
    user_id = await lookup_unique("user", "user", username)
    if user_id is None:
        return None
    return await get_user(user_id)


async def add_admin_link(user_id: str, resource: AdminResource, resource_id: str) -> None:
    """
    Record that this user administers the resource. Raises NoAdminFound if the user does not exist.
    """
    try:
        await es_update_set(users_index_name(), user_id, "add", ADMIN_FIELDS[resource], resource_id)
    except NotFound as e:
        raise NoAdminFound(f"No user {user_id} to administer {resource} {resource_id}") from e


async def remove_admin_link(user_id: str, resource: AdminResource, resource_id: str) -> None:
    await es_update_set(users_index_name(), user_id, "remove", ADMIN_FIELDS[resource], resource_id)


async def grant_key(user_id: str, key_id: str) -> None:
    """Give this user an existing key. Raises NotFound if the user or key does not exist."""
    if await es_get(keys_index_name(), key_id) is None:
        raise NotFound(f"Key {key_id} does not exist")
    await es_update_set(users_index_name(), user_id, "add", "keys", key_id)


def _user_to_elastic(user: User) -> dict:
    return user.model_dump(exclude={"id"})


def _user_from_elastic(id: str, doc: dict) -> User:
    return User.model_validate(dict(doc, id=id))
