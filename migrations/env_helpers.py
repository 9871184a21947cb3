"""Database URL helpers for Alembic migrations.

Kept apart from env.py so they can be tested without alembic.context.
The application connects with the raw DATABASE_URL through psycopg2;
Alembic goes through SQLAlchemy and needs a driver-qualified URL.
"""

from __future__ import annotations

import os
from urllib.parse import quote_plus, urlparse, urlunparse


def _libpq_dsn_to_url(dsn: str) -> str:
    """Convert a simple libpq key=value DSN to a SQLAlchemy URL.

    Quoted values are not supported; use a URL-form DATABASE_URL for those.
    """
    tokens = dict(part.split("=", 1) for part in dsn.split() if "=" in part)
    if not tokens.get("password"):
        tokens["password"] = os.environ.get("DB_PASSWORD", "")

    user = quote_plus(tokens.get("user", ""))
    password = quote_plus(tokens.get("password", ""))
    dbname = quote_plus(tokens.get("dbname", ""))
    host = tokens.get("host", "localhost")
    port = tokens.get("port", "5432")

    credentials = f"{user}:{password}" if password else user
    if host.startswith("/"):
        # Unix socket directory
        return f"postgresql+psycopg2://{credentials}@/{dbname}?host={quote_plus(host)}"
    return f"postgresql+psycopg2://{credentials}@{host}:{port}/{dbname}"


def _normalize_url(url: str) -> str:
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            url = "postgresql+psycopg2://" + url[len(prefix):]
            break

    db_password = os.environ.get("DB_PASSWORD", "")
    parsed = urlparse(url)
    if db_password and not parsed.password:
        netloc = f"{quote_plus(parsed.username or '')}:{quote_plus(db_password)}@{parsed.hostname}"
        if parsed.port:
            netloc += f":{parsed.port}"
        url = urlunparse(parsed._replace(netloc=netloc))
    return url


def get_database_url() -> str:
    url = os.environ.get("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is required to run migrations")
    if "://" in url:
        return _normalize_url(url)
    return _libpq_dsn_to_url(url)
