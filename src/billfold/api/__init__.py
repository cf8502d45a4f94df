"""The budget HTTP API built on :class:`billfold.app.Billfold`."""

from __future__ import annotations

import logging

from billfold.app import Billfold
from billfold.api.routes import build_routes
from billfold.config import Settings
from billfold.services import Services
from billfold.storage import JsonStore

logger = logging.getLogger("billfold.api")

__all__ = ["create_app"]


def create_app(settings: Settings | None = None) -> Billfold:
    """Build the application: storage, services and the frozen route table.

    With no *settings*, they are read from the environment.
    """
    settings = settings or Settings.from_env()
    store = JsonStore(settings.data_dir)
    store.ensure_layout()
    services = Services.create(store)

    app = Billfold(debug=settings.debug)
    for spec in build_routes(services):
        app.add_route(spec.path, spec.method, spec.handler, has_path_param=spec.has_path_param)
    table = app.routes

    @app.on_startup
    def _announce() -> None:
        logger.info("Registered %d routes", len(table))
        logger.info("Data directory: %s", settings.data_dir)
        logger.info("Mode: %s", "development" if settings.development else "production")

    return app
