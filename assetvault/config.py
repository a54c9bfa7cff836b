"""
assetvault Configuration

We read configuration from 2 sources, in order of precedence (higher is more priority)
- Environment variables
- A .env file, either in the current working directory or in a location specified
  by the ASSETVAULT_ENV_FILE environment variable
"""

import functools
from pathlib import Path
from typing import Annotated, Any

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "assetvault_"

#: bcrypt cost factors below this are rejected
MIN_BCRYPT_ROUNDS = 10


class Settings(BaseSettings):
    env_file: Annotated[
        Path,
        Field(
            description="Location of a .env file (if used) relative to working directory",
        ),
    ] = Path(".env")
    host: Annotated[
        str,
        Field(
            description="Host this instance is served at (used as the resource in issued tokens)",
        ),
    ] = "http://localhost:5000"

    elastic_password: Annotated[
        str | None,
        Field(
            description=(
                "Elasticsearch password. This the password for the 'elastic' user when Elastic xpack security is enabled"
            )
        ),
    ] = None

    elastic_host: Annotated[
        str | None,
        Field(
            description=(
                "Elasticsearch host. "
                "Default: https://localhost:9200 if elastic_password is set, http://localhost:9200 otherwise"
            )
        ),
    ] = None

    elastic_verify_ssl: Annotated[
        bool | None,
        Field(
            description=(
                "Elasticsearch verify SSL (only used if elastic_password is set). Default: True unless host is localhost)"
            ),
        ),
    ] = None

    system_index: Annotated[
        str,
        Field(
            description="Prefix of the elasticsearch indices that hold users, folders, assets, keys and access groups",
        ),
    ] = "assetvault_system"

    asset_root: Annotated[
        Path,
        Field(
            description="Directory under which all folders and assets are stored on disk",
        ),
    ] = Path("assets")

    bcrypt_rounds: Annotated[
        int,
        Field(
            ge=MIN_BCRYPT_ROUNDS,
            le=31,
            description="bcrypt cost factor used when hashing passwords",
        ),
    ] = 12

    secret_key: Annotated[
        str,
        Field(
            description="Secret used to sign access tokens. Use `python -m assetvault create-env` to generate one",
        ),
    ] = "NOT VERY SECRET YET!"

    token_days_valid: Annotated[
        int,
        Field(
            ge=1,
            description="Number of days an access token stays valid",
        ),
    ] = 7

    @model_validator(mode="after")
    def set_ssl(self: Any) -> "Settings":
        if not self.elastic_host:
            self.elastic_host = ("https" if self.elastic_password else "http") + "://localhost:9200"
        if not self.elastic_verify_ssl:
            self.elastic_verify_ssl = self.elastic_host not in {
                "http://localhost:9200",
                "https://localhost:9200",
            }
        return self

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX)


@functools.lru_cache()
def get_settings() -> Settings:
    # Read the env_file location first, so the .env file itself can be found
    temp = Settings()
    load_dotenv(temp.env_file, override=False)
    return Settings()


if __name__ == "__main__":
    # Echo the settings
    for k, v in get_settings().model_dump().items():
        print(f"{ENV_PREFIX.upper()}{k.upper()}={v}")
