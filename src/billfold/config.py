"""Application settings.

Settings is a frozen dataclass, immutable after creation. Build it
explicitly in tests and with :meth:`Settings.from_env` in the server.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

_TRUTHY = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True, slots=True)
class Settings:
    """Runtime settings for the budget backend.

    ``development`` is true when no explicit data directory was configured.
    """

    host: str = "127.0.0.1"
    port: int = 3000
    data_dir: Path = Path("data")
    debug: bool = False
    log_level: str = "info"
    development: bool = True

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Read ``BILLFOLD_*`` variables and ``DATA_DIR`` from *environ*."""
        env = os.environ if environ is None else environ
        port = env.get("BILLFOLD_PORT", "3000")
        try:
            port_number = int(port)
        except ValueError as exc:
            msg = f"BILLFOLD_PORT must be an integer, got {port!r}"
            raise ValueError(msg) from exc
        return cls(
            host=env.get("BILLFOLD_HOST", "127.0.0.1"),
            port=port_number,
            data_dir=Path(env.get("DATA_DIR", "data")),
            debug=env.get("BILLFOLD_DEBUG", "").lower() in _TRUTHY,
            log_level=env.get("BILLFOLD_LOG_LEVEL", "info").lower(),
            development="DATA_DIR" not in env,
        )
