import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from elasticsearch import AsyncElasticsearch

from assetvault.config import get_settings


class VaultConnections:
    elastic: AsyncElasticsearch | None

    def __init__(self, elastic: AsyncElasticsearch | None = None):
        self.elastic = elastic


CONNECTIONS = VaultConnections(elastic=None)


@asynccontextmanager
async def vault_connections() -> AsyncGenerator[None, None]:
    """
    The main context manager to start and stop the metadata store connection.
    Always use this once (and only once):
        - For running the server: in the FastAPI lifespan
        - For CLI commands: within the CLI command
    Tests install their own client in CONNECTIONS instead.
    """
    try:
        await _start_elastic()
        yield
    finally:
        await _close_elastic()


def es() -> AsyncElasticsearch:
    """
    Use this function to access the elasticsearch connection.
    """
    if CONNECTIONS.elastic is None:
        raise ConnectionError("Elasticsearch connection not initialized")
    return CONNECTIONS.elastic


async def _start_elastic():
    """
    Check whether we can connect with elastic
    """
    settings = get_settings()
    logging.debug(
        f"Connecting with elasticsearch at {settings.elastic_host}, password? {'yes' if settings.elastic_password else 'no'} "
    )

    if settings.elastic_password:
        host = settings.elastic_host
        if settings.elastic_verify_ssl is None:
            verify_certs = "localhost" in (host or "")
        else:
            verify_certs = settings.elastic_verify_ssl

        CONNECTIONS.elastic = AsyncElasticsearch(
            host,
            basic_auth=("elastic", settings.elastic_password),
            verify_certs=verify_certs,
        )
    else:
        CONNECTIONS.elastic = AsyncElasticsearch(settings.elastic_host or None)

    if not await CONNECTIONS.elastic.ping():
        raise ConnectionError(f"Cannot connect to elasticsearch server {settings.elastic_host}")


async def _close_elastic() -> None:
    if CONNECTIONS.elastic is not None:
        await CONNECTIONS.elastic.close()
        CONNECTIONS.elastic = None
