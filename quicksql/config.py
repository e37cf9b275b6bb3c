from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from typing import Any, Mapping

from sqlalchemy.engine import URL, make_url

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class DbConfig:
    url: str
    username: str | None = None
    password: str | None = None
    table_prefix: str = ""
    strict_schema: bool = True
    capture_caller: bool = False
    engine_options: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if not self.url:
            raise ValueError("url must be a non-empty SQLAlchemy database URL")
        if not re.match(r"^[a-zA-Z0-9_]*$", self.table_prefix):
            raise ValueError(
                f"Invalid table_prefix {self.table_prefix!r}: "
                "must contain only alphanumeric characters and underscores"
            )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "DbConfig":
        """
        Build a config from QUICKSQL_* environment variables.

        QUICKSQL_DB_URL is required; QUICKSQL_DB_USER, QUICKSQL_DB_PASSWORD,
        QUICKSQL_TABLE_PREFIX and QUICKSQL_STRICT_SCHEMA are optional.
        """
        env = os.environ if environ is None else environ
        strict = env.get("QUICKSQL_STRICT_SCHEMA")
        return cls(
            url=env.get("QUICKSQL_DB_URL", ""),
            username=env.get("QUICKSQL_DB_USER"),
            password=env.get("QUICKSQL_DB_PASSWORD"),
            table_prefix=env.get("QUICKSQL_TABLE_PREFIX", ""),
            strict_schema=True if strict is None else strict.strip().lower() in _TRUE_VALUES,
        )

    def sqlalchemy_url(self) -> URL:
        """Connection target with the configured credentials applied."""
        url = make_url(self.url)
        if self.username is not None:
            url = url.set(username=self.username)
        if self.password is not None:
            url = url.set(password=self.password)
        return url
