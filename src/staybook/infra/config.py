"""Runtime settings read from environment variables.

STAYBOOK_STORE      postgres | memory   (default: postgres)
STAYBOOK_KEY_LOCKS  1/0, true/false     (default: on)
PORT                HTTP port for main() (default: 8000)

DATABASE_URL / DB_PASSWORD are read by infra.db at connect time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

StoreBackend = Literal["postgres", "memory"]

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    store: StoreBackend = "postgres"
    key_locks: bool = True
    port: int = 8000

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from the current environment.

        Raises:
            ValueError: On an unknown store backend or malformed value.
        """
        store = os.environ.get("STAYBOOK_STORE", "postgres").strip().lower()
        if store not in ("postgres", "memory"):
            raise ValueError(f"STAYBOOK_STORE must be 'postgres' or 'memory', got {store!r}")

        return cls(
            store=store,  # type: ignore[arg-type]
            key_locks=_env_flag("STAYBOOK_KEY_LOCKS", True),
            port=int(os.environ.get("PORT", "8000")),
        )
