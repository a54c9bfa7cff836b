"""
assetvault: store binary assets in folders, guarded by access groups and folder admins
"""

import argparse
import asyncio
import getpass
import inspect
import logging
import os
import secrets
import sys
from pathlib import Path

import uvicorn
from uvicorn.config import LOGGING_CONFIG

from assetvault.assets import save_asset
from assetvault.config import get_settings
from assetvault.connections import es, vault_connections
from assetvault.errors import VaultError
from assetvault.folders import create_folder, create_sub_folder
from assetvault.storage.paths import ensure_asset_root
from assetvault.systemdata.manage import create_or_update_systemdata, systemdata_status
from assetvault.systemdata.users import get_user_by_name, register_user


async def _check_elastic_connection():
    async with vault_connections():
        if await es().ping():
            logging.info(f"Connect to elasticsearch {get_settings().elastic_host}")


def run(args):
    logging.info(f"Starting server at port {args.port}, debug={not args.nodebug}")
    logging.info(
        "To change server config, create an .env file and/or set environment parameters,\n"
        f"{' ' * 26}see assetvault/config.py for more information.\n"
        f"{' ' * 26}You can also run `python -m assetvault create-env` to create an .env file with a fresh secret\n"
    )

    asyncio.run(_check_elastic_connection())
    log_config = "logging.yml" if Path("logging.yml").exists() else LOGGING_CONFIG
    uvicorn.run("assetvault.api:app", host="0.0.0.0", reload=not args.nodebug, port=int(args.port), log_config=log_config)


def base_env():
    return dict(
        assetvault_secret_key=secrets.token_hex(nbytes=32),
    )


def create_env(args):
    if os.path.exists(".env"):
        print("*** File .env already exists, quitting ***")
        sys.exit(1)

    env = base_env()
    if args.asset_root:
        env["assetvault_asset_root"] = args.asset_root
    with open(".env", "w") as f:
        for key, val in env.items():
            f.write(f"{key}={val}\n")
    os.chmod(".env", 0o600)
    print("*** Created .env file ***")


async def sync_indices(_args):
    settings = get_settings()
    async with vault_connections():
        if not await es().ping():
            logging.error(f"Cannot connect to elasticsearch server {settings.elastic_host}")
            sys.exit(1)
        await create_or_update_systemdata()
        for index, status in (await systemdata_status()).items():
            print(f"{status}: {index}")


async def add_user(args):
    password = args.password or getpass.getpass(f"Password for {args.username}: ")
    async with vault_connections():
        await create_or_update_systemdata()
        user = await register_user(args.username, password)
    print(f"Created user {user.user} with id {user.id}")


async def _resolve_admin(username: str) -> str:
    user = await get_user_by_name(username)
    if user is None:
        logging.error(f"User {username} does not exist, use add-user first")
        sys.exit(1)
    return user.id


async def add_folder(args):
    ensure_asset_root()
    async with vault_connections():
        await create_or_update_systemdata()
        admin_id = await _resolve_admin(args.admin)
        if args.parent:
            folder = await create_sub_folder(admin_id, args.parent, args.name, access_group=args.access_group)
        else:
            folder = await create_folder(admin_id, args.name, access_group=args.access_group)
    print(f"Created folder {folder.path} with id {folder.id}")


async def upload(args):
    file = Path(args.file)
    extension = args.extension or file.suffix.lstrip(".")
    if not extension:
        logging.error(f"Cannot determine the extension of {file}, please use --extension")
        sys.exit(1)
    async with vault_connections():
        await create_or_update_systemdata()
        asset = await save_asset(file.read_bytes(), args.tag or file.stem, args.folder, extension)
    print(f"Saved {file} as {asset.path} with id {asset.id}")


def main():
    parser = argparse.ArgumentParser(description=__doc__, prog="python -m assetvault")

    subparsers = parser.add_subparsers(dest="action", title="action", help="Action to perform:", required=True)
    p = subparsers.add_parser("run", help="Run the backend API in development mode")
    p.add_argument(
        "--no-debug",
        action="store_true",
        dest="nodebug",
        help="Disable debug mode (useful for testing downstream clients)",
    )
    p.add_argument("-p", "--port", help="Port", default=5000)
    p.set_defaults(func=run)

    p = subparsers.add_parser("create-env", help="Create the .env file with a random secret key")
    p.add_argument("-r", "--asset_root", help="The directory to store folders and assets in.")
    p.set_defaults(func=create_env)

    p = subparsers.add_parser("sync-indices", help="Create or update the system indices")
    p.set_defaults(func=sync_indices)

    p = subparsers.add_parser("add-user", help="Register a new user")
    p.add_argument("username", help="The name of the new user.")
    p.add_argument("--password", help="The password (prompted for if omitted).")
    p.set_defaults(func=add_user)

    p = subparsers.add_parser("create-folder", help="Create a folder administered by an existing user")
    p.add_argument("admin", help="Username of the folder admin.")
    p.add_argument("name", help="Name of the folder.")
    p.add_argument("--parent", help="Path of the parent folder, e.g. photos/2024")
    p.add_argument("--access-group", dest="access_group", help="Id of the access group (public if omitted)")
    p.set_defaults(func=add_folder)

    p = subparsers.add_parser("upload", help="Store a file as an asset in a folder")
    p.add_argument("folder", help="Path of the folder, e.g. photos/2024")
    p.add_argument("file", help="The file to upload.")
    p.add_argument("--tag", help="Tag of the asset (default: file name without extension)")
    p.add_argument("--extension", help="Extension of the asset (default: from the file name)")
    p.set_defaults(func=upload)

    args = parser.parse_args()

    logging.basicConfig(format="[%(levelname)-7s:%(name)-15s] %(message)s", level=logging.INFO)
    es_logger = logging.getLogger("elasticsearch")
    es_logger.setLevel(logging.WARNING)

    try:
        if inspect.iscoroutinefunction(args.func):
            asyncio.run(args.func(args))
        else:
            args.func(args)
    except VaultError as e:
        logging.error(f"{type(e).__name__}: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
