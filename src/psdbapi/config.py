"""Connection configuration: DSN parsing and environment loading."""

import os
from pathlib import Path
from typing import Optional, Union
from urllib.parse import parse_qs

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, ValidationError

from .exceptions import ConfigurationError

DSN_KEYS = ("username", "password", "host", "backend", "timeout")

ENV_PREFIX = "PSDB_"


class ConnectionConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    username: str = Field(default="", description="Basic auth user name.")
    password: str = Field(default="", repr=False, description="Basic auth password.")
    host: str = Field(min_length=1, max_length=255, description="Gateway host name, port allowed.")
    backend: str = Field(default="", description="Backend target the requests are routed through.")
    timeout: Optional[PositiveFloat] = Field(
        default=30.0, description="Default deadline per exchange, in seconds."
    )


def build_config(**params) -> ConnectionConfig:
    """
    Validate connection parameters.
    Throw ConfigurationError if fails
    """
    try:
        return ConnectionConfig(**params)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(f"invalid connection parameters: {problems}") from e


def parse_dsn(dsn: str) -> dict:
    """
    Split a query-string shaped DSN, e.g.
    username=u&password=p&host=db.example.com&backend=edge
    into connection parameters. Percent-escapes are decoded.
    Throw ConfigurationError if fails
    """
    if not dsn:
        return {}
    try:
        parsed = parse_qs(dsn, keep_blank_values=True, strict_parsing=True)
    except ValueError as e:
        raise ConfigurationError(f"error parsing dsn: {e}") from e

    params = {}
    for key, values in parsed.items():
        if key not in DSN_KEYS:
            raise ConfigurationError(f"error parsing dsn: unknown key {key!r}")
        if len(values) > 1:
            raise ConfigurationError(f"error parsing dsn: {key!r} given more than once")
        params[key] = values[0]
    return params


def config_from_dsn(dsn: Optional[str] = None, **overrides) -> ConnectionConfig:
    params = parse_dsn(dsn or "")
    params.update({k: v for k, v in overrides.items() if v is not None})
    return build_config(**params)


def config_from_env(env_file: Union[str, Path, None] = None) -> ConnectionConfig:
    """
    Read PSDB_USERNAME, PSDB_PASSWORD, PSDB_HOST, PSDB_BACKEND and PSDB_TIMEOUT,
    after loading `env_file` (or the .env file python-dotenv discovers).
    Variables already set in the process environment win.
    """
    load_dotenv(env_file)
    params = {}
    for key in DSN_KEYS:
        value = os.getenv(ENV_PREFIX + key.upper())
        if value is not None:
            params[key] = value
    return build_config(**params)
