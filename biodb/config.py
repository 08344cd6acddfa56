"""Connection parameter validation and config file loading."""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import jsonschema
import yaml
from psycopg.conninfo import make_conninfo

from biodb.const import DBTYPES, DEFAULT_DOMAIN, DEFAULT_PORT, POSTGRES
from biodb.exceptions import ConfigError

CONNECTION_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "dbname": {"type": "string", "minLength": 1},
        "dbtype": {"type": "string", "enum": list(DBTYPES)},
        "user": {"type": ["string", "null"]},
        "password": {"type": ["string", "null"]},
        "port": {"type": ["string", "integer"]},
        "domain": {"type": "string", "minLength": 1},
    },
    "required": ["dbtype", "dbname"],
}


@dataclass(frozen=True)
class DBSpec:
    """Validated connection parameters."""
    dbname: str
    dbtype: str
    user: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)
    port: str = DEFAULT_PORT
    domain: str = DEFAULT_DOMAIN

    @property
    def conninfo(self) -> str:
        """libpq connection string (postgres only)."""
        return make_conninfo(
            host=self.domain,
            port=self.port,
            dbname=self.dbname,
            user=self.user,
            password=self.password,
        )


def _normalize(params: Dict[str, Any]) -> Dict[str, Any]:
    out = {k: v for k, v in params.items() if v is not None}
    # Leading colons (":sqlite") are tolerated.
    if isinstance(out.get("dbtype"), str):
        out["dbtype"] = out["dbtype"].lstrip(":").lower()
    return out


def db_spec(params: Union[DBSpec, Dict[str, Any], None] = None, **kwargs) -> DBSpec:
    """
    Validate connection parameters and return a :class:`DBSpec`.

    ``dbtype`` and ``dbname`` are mandatory. Postgres additionally needs
    ``user`` and ``password``; ``port`` and ``domain`` default to
    ``BIODB_PORT``/``BIODB_DOMAIN``.

    Raises:
        ConfigError: If any parameter is missing or invalid. All problems are
            reported in one message.

    Example:
        >>> db_spec(dbtype="sqlite", dbname="seqs.db")
        DBSpec(dbname='seqs.db', dbtype='sqlite', user=None, port='5432', domain='127.0.0.1')
    """
    if isinstance(params, DBSpec):
        return params
    merged = dict(params or {})
    merged.update(kwargs)
    merged = _normalize(merged)

    validator = jsonschema.Draft7Validator(CONNECTION_SCHEMA)
    problems = []
    for error in sorted(validator.iter_errors(merged), key=lambda e: list(e.path)):
        where = ".".join(str(p) for p in error.path)
        problems.append(f"{where}: {error.message}" if where else error.message)

    if merged.get("dbtype") == POSTGRES:
        for key in ("user", "password"):
            if not merged.get(key):
                problems.append(f"postgres connections require '{key}'")

    if problems:
        raise ConfigError(
            "Invalid connection parameters: " + "; ".join(problems),
            operation="db_spec",
        )

    return DBSpec(
        dbname=merged["dbname"],
        dbtype=merged["dbtype"],
        user=merged.get("user"),
        password=merged.get("password"),
        port=str(merged.get("port", DEFAULT_PORT)),
        domain=merged.get("domain", DEFAULT_DOMAIN),
    )


def load_config(path: Union[str, Path]) -> DBSpec:
    """
    Load connection parameters from a YAML file.

    The parameters may sit at the top level or under a ``database`` key::

        database:
          dbtype: sqlite
          dbname: sequences.db
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}", operation="load_config")
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse config YAML: {e}", operation="load_config") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping: {path}", operation="load_config")
    if isinstance(data.get("database"), dict):
        data = data["database"]
    return db_spec(data)
