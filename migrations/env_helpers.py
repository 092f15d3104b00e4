"""Database URL helpers for Alembic migrations.

Kept apart from env.py so they can be tested without an alembic context.
The application itself talks to psycopg2 directly and accepts the same
DATABASE_URL / DB_PASSWORD pair; SQLAlchemy needs an explicit driver URL.
"""

from __future__ import annotations

import os
import re
from typing import Mapping
from urllib.parse import quote_plus, urlparse, urlunparse

DRIVER_SCHEME = "postgresql+psycopg2"

_DSN_PAIR = re.compile(r"(\w+)\s*=\s*('(?:\\.|[^'\\])*'|\S+)")


def parse_libpq_dsn(dsn: str) -> dict[str, str]:
    """Parse a libpq key=value DSN. Single-quoted values may hold spaces and \\' escapes."""
    tokens: dict[str, str] = {}
    for key, value in _DSN_PAIR.findall(dsn):
        if value.startswith("'"):
            value = re.sub(r"\\(.)", r"\1", value[1:-1])
        tokens[key] = value
    return tokens


def libpq_dsn_to_url(dsn: str, db_password: str | None = None) -> str:
    """Convert a libpq DSN to a SQLAlchemy URL.

    A host starting with "/" is a Unix socket directory and goes into the
    query string.
    """
    tokens = parse_libpq_dsn(dsn)
    if not tokens.get("password") and db_password:
        tokens["password"] = db_password

    credentials = quote_plus(tokens.get("user", ""))
    if tokens.get("password"):
        credentials += ":" + quote_plus(tokens["password"])
    dbname = quote_plus(tokens.get("dbname", ""))
    host = tokens.get("host", "localhost")

    if host.startswith("/"):
        return f"{DRIVER_SCHEME}://{credentials}@/{dbname}?host={quote_plus(host)}"

    port = tokens.get("port", "5432")
    return f"{DRIVER_SCHEME}://{credentials}@{host}:{port}/{dbname}"


def _with_driver(url: str) -> str:
    scheme, sep, rest = url.partition("://")
    if scheme in ("postgres", "postgresql"):
        return f"{DRIVER_SCHEME}{sep}{rest}"
    return url


def _inject_password(url: str, db_password: str) -> str:
    parsed = urlparse(url)
    if parsed.password or not parsed.hostname:
        return url
    netloc = f"{quote_plus(parsed.username or '')}:{quote_plus(db_password)}@{parsed.hostname}"
    if parsed.port:
        netloc += f":{parsed.port}"
    return urlunparse(parsed._replace(netloc=netloc))


def get_database_url(env: Mapping[str, str] | None = None) -> str:
    """Build the migration URL from DATABASE_URL (and DB_PASSWORD).

    Raises:
        RuntimeError: If DATABASE_URL is not set.
    """
    if env is None:
        env = os.environ

    url = env.get("DATABASE_URL", "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL is required to run migrations")
    db_password = env.get("DB_PASSWORD", "").strip() or None

    if "://" not in url:
        return libpq_dsn_to_url(url, db_password)

    url = _with_driver(url)
    if db_password:
        url = _inject_password(url, db_password)
    return url
