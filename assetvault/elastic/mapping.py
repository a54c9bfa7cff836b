from typing import Literal, Mapping

# pydantic needs the typing_extensions TypedDict on python < 3.12
from typing_extensions import NotRequired, TypedDict


class ElasticField(TypedDict):
    """
    An Elasticsearch field mapping for the system indices. Deliberately limits the types.
    """

    type: Literal["text", "keyword", "boolean", "date", "long"]
    index: NotRequired[bool]


ElasticMapping = Mapping[str, ElasticField]


def keyword() -> ElasticField:
    return {"type": "keyword"}
