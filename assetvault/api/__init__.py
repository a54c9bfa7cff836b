"""assetvault API: folders of binary assets, guarded by access groups of keys."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from assetvault.api.access import app_access
from assetvault.api.auth import app_auth
from assetvault.api.folders import app_folders
from assetvault.api.users import app_users
from assetvault.connections import vault_connections
from assetvault.errors import (
    AlreadyExists,
    CredentialError,
    InconsistentState,
    NotFound,
    StoreError,
    VaultIOError,
)
from assetvault.storage.paths import ensure_asset_root
from assetvault.systemdata.manage import create_or_update_systemdata


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.info("Initializing system data...")
    ensure_asset_root()
    async with vault_connections():
        await create_or_update_systemdata()
        yield


app = FastAPI(
    title="assetvault",
    description=__doc__ if __doc__ else "",
    openapi_tags=[
        dict(name="auth", description="Endpoints to obtain access tokens"),
        dict(name="users", description="Endpoints for user management"),
        dict(name="folders", description="Endpoints to create folders and upload or download assets"),
        dict(name="access", description="Endpoints to manage keys and access groups"),
    ],
    lifespan=lifespan,
)
app.include_router(app_auth)
app.include_router(app_users)
app.include_router(app_folders)
app.include_router(app_access)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AlreadyExists)
async def already_exists_handler(request: Request, exc: AlreadyExists):
    return JSONResponse(status_code=409, content={"message": str(exc)})


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"message": str(exc)})


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logging.error(f"Metadata store error on {request.url.path}: {exc}")
    return JSONResponse(status_code=503, content={"message": "The metadata store is unavailable, please try again"})


@app.exception_handler(VaultIOError)
async def io_error_handler(request: Request, exc: VaultIOError):
    logging.error(f"Filesystem error on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"message": "Could not read or write on the asset storage"})


@app.exception_handler(CredentialError)
async def credential_error_handler(request: Request, exc: CredentialError):
    logging.error(f"Credential error on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"message": "Could not process credentials"})


@app.exception_handler(InconsistentState)
async def inconsistent_state_handler(request: Request, exc: InconsistentState):
    logging.critical(f"INCONSISTENT STATE after {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"message": f"{exc.operation} failed and could not be rolled back"})


@app.exception_handler(ValueError)
async def value_error_exception_handler(request: Request, exc: ValueError):
    return JSONResponse(
        status_code=400,
        content={"message": str(exc)},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "message": "There was an issue with the data you sent.",
            "fields_invalid": jsonable_encoder(exc.errors()),
        },
    )
