import uuid
from datetime import UTC, datetime
from typing import Callable

IdFactory = Callable[[], str]


def get_timestamp() -> int:
    """Current time in seconds since epoch"""
    return int(datetime.now(tz=UTC).timestamp())


def get_readable_timestamp(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=UTC).strftime("%Y-%m-%d %H:%M:%S.%f")


def time_meta() -> tuple[str, str]:
    """The (timestamp, timestamp_readable) pair stored on every record"""
    timestamp = get_timestamp()
    return str(timestamp), get_readable_timestamp(timestamp)


def new_uuid() -> str:
    return str(uuid.uuid4())
