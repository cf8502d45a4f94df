import os
import sys
from typing import Any

from billfold.config import Settings
from billfold.log import configure_logging

APP_FACTORY = "billfold.api:create_app"


def serve(
    settings: Settings,
    *,
    dev: bool = False,
    reload: bool | None = None,
    workers: int = 1,
    granian_kwargs: dict[str, Any] | None = None,
) -> None:
    """Start a Granian server running the budget API.

    Parameters
    ----------
    settings:
        Bind address, data directory and log level. The data directory is
        handed to worker processes through ``DATA_DIR``.
    dev:
        When ``True``, applies dev-friendly defaults (reload, debug logs,
        access logs) unless explicitly overridden.
    reload:
        Enable auto-reload.  ``None`` means follow *dev* flag.
    """
    from granian import Granian

    log_level = settings.log_level
    log_access = False
    if dev:
        if reload is None:
            reload = True
        log_level = "debug"
        log_access = True

    if reload is None:
        reload = False

    if not settings.development:
        os.environ["DATA_DIR"] = str(settings.data_dir)
    os.environ["BILLFOLD_LOG_LEVEL"] = log_level
    if settings.debug or dev:
        os.environ["BILLFOLD_DEBUG"] = "1"

    configure_logging(log_level)
    _print_banner(settings, workers=workers, reload=reload, dev=dev)

    kw: dict[str, Any] = granian_kwargs or {}
    server = Granian(
        target=APP_FACTORY,
        factory=True,
        address=settings.host,
        port=settings.port,
        interface="asgi",
        workers=workers,
        reload=reload,
        log_level=log_level,
        log_access=log_access,
        **kw,
    )
    server.serve()


# ------------------------------------------------------------------
# Startup banner
# ------------------------------------------------------------------

_CYAN = "\033[36m"
_GREEN = "\033[32m"
_BOLD = "\033[1m"
_RESET = "\033[0m"


def _print_banner(settings: Settings, *, workers: int, reload: bool, dev: bool) -> None:
    color = sys.stdout.isatty()

    def c(code: str, text: str) -> str:
        return f"{code}{text}{_RESET}" if color else text

    mode = "development" if dev or settings.development else "production"
    lines = [
        f"{c(_BOLD + _CYAN, 'billfold')}   Starting {mode} server",
        "",
        f"{c(_GREEN, 'server')}     Granian on http://{settings.host}:{settings.port}",
        f"{c(_GREEN, 'health')}     http://{settings.host}:{settings.port}/health",
        f"{c(_GREEN, 'data')}       {settings.data_dir}",
        f"{c(_GREEN, 'workers')}    {workers}",
        f"{c(_GREEN, 'reload')}     {'enabled' if reload else 'disabled'}",
        "",
    ]
    print("\n".join(lines), flush=True)
