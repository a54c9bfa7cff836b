import logging
from typing import Literal

from elasticsearch import BadRequestError

from assetvault.connections import es
from assetvault.elastic.util import system_index_name
from assetvault.systemdata.indices import SYSTEM_INDICES


class InvalidSystemIndex(Exception):
    pass


async def create_or_update_systemdata() -> None:
    """
    This is the main function. It should be called at startup, before any request is served.
    It creates the missing system indices and updates the mappings of existing ones.
    The uniqueness guarantees of the stores depend on these indices being present.
    """
    elastic = es()
    for index in SYSTEM_INDICES:
        name = system_index_name(index.name)
        if await elastic.indices.exists(index=name):
            try:
                await elastic.indices.put_mapping(index=name, properties=dict(index.mapping))
            except BadRequestError as e:
                raise InvalidSystemIndex(
                    f"Failed to update the mapping of system index {name}. "
                    "This indicates that the existing mapping is incompatible with the current one, "
                    "which shouldn't happen unless someone changed the mapping manually."
                ) from e
        else:
            logging.info(f"Creating system index {name}")
            body = {
                "dynamic": "strict",
                "properties": dict(index.mapping),
            }
            await elastic.indices.create(index=name, mappings=body)


async def systemdata_status() -> dict[str, Literal["missing", "ready"]]:
    elastic = es()
    status: dict[str, Literal["missing", "ready"]] = {}
    for index in SYSTEM_INDICES:
        name = system_index_name(index.name)
        status[name] = "ready" if await elastic.indices.exists(index=name) else "missing"
    return status


async def delete_systemdata() -> None:
    """Remove all system indices. Only use this for tests or to start over from scratch."""
    elastic = es()
    for index in SYSTEM_INDICES:
        name = system_index_name(index.name)
        await elastic.indices.delete(index=name, ignore_unavailable=True)
